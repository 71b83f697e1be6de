"""Aligning translated sentences with word timings and writing timed SRT segments."""

from __future__ import annotations

import os
from collections import defaultdict
from dataclasses import replace
from typing import Iterable, Sequence

from .languages import LanguageCode
from .models import (
    SPLIT_BILINGUAL_SRT_PATTERN,
    SPLIT_SHORT_ORIGIN_MIXED_SRT_PATTERN,
    SPLIT_SHORT_ORIGIN_SRT_PATTERN,
    SrtSentence,
    SubtitleResultType,
    Word,
)
from .srtfiles import SrtBlock, recognizable_string, split_sentence
from .textutil import format_srt_time

# Languages whose sentences are aligned word by word; all others character by character.
_SPACE_SEPARATED = frozenset(
    code.value
    for code in (
        LanguageCode.ENGLISH,
        LanguageCode.GERMAN,
        LanguageCode.TURKISH,
        LanguageCode.RUSSIAN,
    )
)

# How far apart (in word numbers) an edge word may be and still be accepted.
_EDGE_WINDOW = 10


def _equal_fold(a: str, b: str) -> bool:
    if len(a) != len(b):
        return False
    return all(
        x == y or x.lower() == y.lower() or x.upper() == y.upper()
        for x, y in zip(a, b)
    )


def max_consecutive_run(words: Sequence[Word]) -> tuple[int, int]:
    """Return ``(start, end)`` of the longest run whose ``num`` rises by one each step."""
    if not words:
        return 0, 0
    max_start, max_len = 0, 1
    curr_start, curr_len = 0, 1
    for i, (prev, word) in enumerate(zip(words, words[1:]), start=1):
        if word.num == prev.num + 1:
            curr_len += 1
        else:
            if curr_len > max_len:
                max_start, max_len = curr_start, curr_len
            curr_start, curr_len = i, 1
    if curr_len > max_len:
        max_start, max_len = curr_start, curr_len
    return max_start, max_start + max_len


def longest_jump_chain(words: Sequence[Word]) -> tuple[int, int, list[Word]]:
    """Find the longest, not necessarily contiguous, chain with ``num`` rising by one.

    Returns the index of the chain's first and last element and the chain itself,
    or ``(-1, -1, [])`` when there is none.
    """
    n = len(words)
    if n == 0:
        return -1, -1, []
    length = [1] * n
    prev = [-1] * n
    max_len = 0
    end_idx = -1
    for i in range(1, n):
        for j in range(i):
            if words[i].num == words[j].num + 1 and length[i] < length[j] + 1:
                length[i] = length[j] + 1
                prev[i] = j
        if length[i] > max_len:
            max_len = length[i]
            end_idx = i
    if end_idx == -1:
        return -1, -1, []

    chain: list[Word] = []
    idx = end_idx
    start_idx = end_idx
    while idx != -1:
        chain.append(words[idx])
        start_idx = idx
        idx = prev[idx]
    chain.reverse()
    return start_idx, end_idx, chain


def _timestamps_by_words(
    words: Sequence[Word], sentence: str, last_ts: float
) -> tuple[SrtSentence, list[Word], float]:
    sentence_word_list = split_sentence(sentence)
    if not sentence_word_list:
        raise ValueError("sentence is empty")
    if not words:
        raise ValueError("no words to align with")

    this_last_ts = last_ts
    sentence_words: list[Word] = []
    for sentence_word in sentence_word_list:
        match = next(
            (
                w
                for w in words
                if _equal_fold(w.text, sentence_word) and w.start >= this_last_ts
            ),
            None,
        )
        sentence_words.append(match if match is not None else Word(text=sentence_word))

    begin, end = max_consecutive_run(sentence_words)
    if end - begin == 0:
        raise ValueError("no valid sentence")

    begin_word = sentence_words[begin]
    end_word = sentence_words[end - 1]
    if end - begin == len(sentence_words):
        return (
            SrtSentence(start=begin_word.start, end=end_word.end),
            sentence_words,
            end_word.end,
        )

    if begin > 0:
        i, j = begin - 1, begin_word.num - 1
        while i >= 0 and 0 <= j < len(words):
            if words[j].text == "":
                j -= 1
                continue
            if not _equal_fold(words[j].text, sentence_words[i].text):
                break
            begin_word = words[j]
            sentence_words[i] = begin_word
            i -= 1
            j -= 1

    if end < len(sentence_words):
        i, j = end, end_word.num + 1
        while i < len(sentence_words) and 0 <= j < len(words):
            if words[j].text == "":
                j += 1
                continue
            if not _equal_fold(words[j].text, sentence_words[i].text):
                break
            end_word = words[j]
            sentence_words[i] = end_word
            i += 1
            j += 1

    first, last = sentence_words[0], sentence_words[-1]
    if begin_word.num > first.num and begin_word.num - first.num < _EDGE_WINDOW:
        begin_word = first
    if last.num > end_word.num and last.num - end_word.num < _EDGE_WINDOW:
        end_word = last

    result = SrtSentence(start=max(begin_word.start, this_last_ts), end=end_word.end)
    if begin_word.num != end_word.num and end_word.end > this_last_ts:
        this_last_ts = end_word.end
    return result, sentence_words, this_last_ts


def _timestamps_by_characters(
    words: Sequence[Word], sentence: str, last_ts: float
) -> tuple[SrtSentence, list[Word], float]:
    characters = list(recognizable_string(sentence))
    if not characters:
        raise ValueError("sentence is empty")
    if not words:
        raise ValueError("no words to align with")

    this_last_ts = last_ts
    # Candidates in sentence order; a word may appear several times.
    candidates = [
        w
        for ch in characters
        for w in words
        if (_equal_fold(w.text, ch) or w.text.startswith(ch)) and w.start >= this_last_ts
    ]

    begin, end, readable = longest_jump_chain(candidates)
    if end - begin == 0:
        raise ValueError("no valid sentence")

    begin_word = candidates[begin]
    end_word = candidates[end]
    result = SrtSentence(start=max(begin_word.start, this_last_ts), end=end_word.end)
    if begin_word.num != end_word.num and end_word.end > this_last_ts:
        this_last_ts = end_word.end
    return result, readable, this_last_ts


def sentence_timestamps(
    words: Sequence[Word], sentence: str, last_ts: float, language: str
) -> tuple[SrtSentence, list[Word], float]:
    """Locate ``sentence`` among timed ``words`` at or after ``last_ts``.

    Returns the sentence's time span, the words it was matched to, and the new
    last timestamp. Raises ValueError when the sentence cannot be aligned.
    """
    if str(language) in _SPACE_SEPARATED:
        return _timestamps_by_words(words, sentence, last_ts)
    return _timestamps_by_characters(words, sentence, last_ts)


def _words_per_line(count: int, max_words: int) -> int:
    for parts in range(2, 6):
        if (parts - 1) * max_words < count <= parts * max_words:
            return count // parts + 1
    return max_words


def _timestamp(start: float, end: float) -> str:
    return f"{format_srt_time(start)} --> {format_srt_time(end)}"


def _short_lines(
    block: SrtBlock,
    sentence_words: Sequence[Word],
    span: SrtSentence,
    last_ts: float,
    offset: float,
    max_words: int,
) -> list[SrtBlock]:
    per_line = _words_per_line(len(sentence_words), max_words)
    lines: list[SrtBlock] = []
    text = ""
    start_word = Word()
    end_word = Word()
    i = 1
    next_start = True
    for word in sentence_words:
        if next_start:
            start_word = replace(word)
            start_word.start = max(start_word.start, last_ts, end_word.end, span.start)
            text += word.text + " "
            if start_word.end > span.end:
                # The first word lies beyond the sentence; it was matched wrongly.
                continue
            end_word = replace(start_word)
            i += 1
            next_start = False
            continue

        text += word.text + " "
        if end_word.end < word.end:
            end_word = replace(word)
        if end_word.end > span.end:
            end_word.end = span.end
        if i % per_line == 0 and i > 1:
            lines.append(
                SrtBlock(
                    index=block.index,
                    timestamp=_timestamp(start_word.start + offset, end_word.end + offset),
                    origin_language_sentence=text,
                )
            )
            text = ""
            next_start = True
        i += 1

    if text:
        lines.append(
            SrtBlock(
                index=block.index,
                timestamp=_timestamp(start_word.start + offset, end_word.end + offset),
                origin_language_sentence=text,
            )
        )
    return lines


def _write_blocks(path: str, entries: Iterable[tuple[object, str, Sequence[str]]]) -> None:
    with open(path, "w", encoding="utf-8", newline="") as out:
        for number, timestamp, texts in entries:
            out.write(f"{number}\n{timestamp}\n")
            out.write("".join(t + "\n" for t in texts))
            out.write("\n")


def generate_srt_with_timestamps(
    blocks: Sequence[SrtBlock],
    base_path: str,
    segment_index: int,
    origin_language: str,
    words: Sequence[Word],
    result_type: SubtitleResultType,
    max_words_per_line: int,
    segment_duration: int,
) -> None:
    """Time ``blocks`` against ``words`` and write the segment's SRT files.

    Writes the bilingual file, the long-target/short-origin mixed file and the
    short-origin file for segment ``segment_index`` into ``base_path``. Blocks
    are updated in place with their timestamps. ``segment_duration`` is in minutes.
    """
    if not blocks:
        return

    offset = float(segment_duration) * 60 * segment_index
    last_ts = 0.0
    short_origin: dict[int, list[SrtBlock]] = defaultdict(list)

    for block in blocks:
        if block.origin_language_sentence == "":
            continue
        try:
            span, sentence_words, ts = sentence_timestamps(
                words, block.origin_language_sentence, last_ts, origin_language
            )
        except ValueError:
            continue
        if ts < last_ts:
            continue

        block.timestamp = _timestamp(span.start + offset, span.end + offset)
        if len(sentence_words) <= max_words_per_line:
            short_origin[block.index].append(
                SrtBlock(
                    index=block.index,
                    timestamp=block.timestamp,
                    origin_language_sentence=block.origin_language_sentence,
                )
            )
        else:
            short_origin[block.index].extend(
                _short_lines(
                    block, sentence_words, span, last_ts, offset, max_words_per_line
                )
            )
        last_ts = ts

    on_top = result_type == SubtitleResultType.BILINGUAL_TRANSLATION_ON_TOP
    _write_blocks(
        os.path.join(base_path, SPLIT_BILINGUAL_SRT_PATTERN % segment_index),
        (
            (
                b.index,
                b.timestamp,
                (b.target_language_sentence, b.origin_language_sentence)
                if on_top
                else (b.origin_language_sentence, b.target_language_sentence),
            )
            for b in blocks
        ),
    )

    mixed: list[tuple[object, str, Sequence[str]]] = []
    short: list[tuple[object, str, Sequence[str]]] = []
    for b in blocks:
        mixed.append((len(mixed) + 1, b.timestamp, (b.target_language_sentence,)))
        for line in short_origin.get(b.index, []):
            mixed.append((len(mixed) + 1, line.timestamp, (line.origin_language_sentence,)))
            short.append((len(short) + 1, line.timestamp, (line.origin_language_sentence,)))

    _write_blocks(
        os.path.join(base_path, SPLIT_SHORT_ORIGIN_MIXED_SRT_PATTERN % segment_index),
        mixed,
    )
    _write_blocks(
        os.path.join(base_path, SPLIT_SHORT_ORIGIN_SRT_PATTERN % segment_index),
        short,
    )