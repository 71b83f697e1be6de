import pytest

from subtitlekit.alignment import (
    generate_srt_with_timestamps,
    longest_jump_chain,
    max_consecutive_run,
    sentence_timestamps,
)
from subtitlekit.languages import LanguageCode
from subtitlekit.models import (
    SPLIT_BILINGUAL_SRT_PATTERN,
    SPLIT_SHORT_ORIGIN_MIXED_SRT_PATTERN,
    SPLIT_SHORT_ORIGIN_SRT_PATTERN,
    SubtitleResultType,
    Word,
)
from subtitlekit.srtfiles import SrtBlock
from subtitlekit.textutil import format_srt_time


def _english_words():
    return [
        Word(0, "hello", 0.0, 0.5),
        Word(1, "world", 0.5, 1.0),
        Word(2, "again", 1.2, 1.8),
    ]


def _chinese_words():
    return [
        Word(0, "你", 0.0, 0.3),
        Word(1, "好", 0.3, 0.6),
        Word(2, "世", 0.6, 0.9),
        Word(3, "界", 0.9, 1.2),
    ]


def _read_blocks(path):
    content = path.read_text(encoding="utf-8")
    if not content:
        return []
    return [chunk.split("\n") for chunk in content.strip("\n").split("\n\n")]


@pytest.mark.parametrize("language", ["en", "de", "tr", "ru", LanguageCode.ENGLISH])
def test_sentence_timestamps_word_languages(language):
    words = _english_words()
    span, matched, ts = sentence_timestamps(words, "Hello, world!", 0.0, language)
    assert span.start == words[0].start
    assert span.end == words[1].end
    assert ts == words[1].end
    assert matched == words[:2]


def test_sentence_timestamps_skips_words_before_last_ts():
    words = [
        Word(0, "yes", 0.0, 0.4),
        Word(1, "no", 0.5, 0.9),
        Word(2, "yes", 2.0, 2.4),
        Word(3, "no", 2.5, 2.9),
    ]
    span, matched, ts = sentence_timestamps(words, "yes no", 1.0, "en")
    assert matched == [words[2], words[3]]
    assert span.start == words[2].start
    assert span.end == words[3].end
    assert ts == words[3].end


def test_sentence_timestamps_keeps_unmatched_word_as_placeholder():
    words = _english_words()
    span, matched, ts = sentence_timestamps(words, "hello there world", 0.0, "en")
    assert [w.text for w in matched] == ["hello", "there", "world"]
    assert span.end == words[1].end
    assert ts == words[1].end
    assert span.start >= 0.0


def test_sentence_timestamps_empty_sentence_raises():
    with pytest.raises(ValueError):
        sentence_timestamps(_english_words(), "!!! ...", 0.0, "en")


def test_sentence_timestamps_no_words_raises():
    with pytest.raises(ValueError):
        sentence_timestamps([], "hello", 0.0, "en")


def test_sentence_timestamps_character_languages():
    words = _chinese_words()
    span, matched, ts = sentence_timestamps(words, "你好！", 0.0, "zh_cn")
    assert matched == words[:2]
    assert span.start == words[0].start
    assert span.end == words[1].end
    assert ts == words[1].end


def test_sentence_timestamps_single_character_cannot_align():
    with pytest.raises(ValueError):
        sentence_timestamps(_chinese_words(), "你", 0.0, "zh_cn")


def test_max_consecutive_run_empty():
    assert max_consecutive_run([]) == (0, 0)


def test_max_consecutive_run_all_consecutive():
    words = _english_words()
    assert max_consecutive_run(words) == (0, len(words))


def test_max_consecutive_run_picks_longest():
    words = [Word(num=n) for n in [9, 1, 2, 3, 7]]
    begin, end = max_consecutive_run(words)
    assert [w.num for w in words[begin:end]] == [1, 2, 3]


def test_max_consecutive_run_prefers_first_of_equal_runs():
    words = [Word(num=n) for n in [1, 2, 5, 6]]
    begin, end = max_consecutive_run(words)
    assert words[begin:end] == words[:2]


def test_longest_jump_chain_empty_and_single():
    assert longest_jump_chain([]) == (-1, -1, [])
    assert longest_jump_chain([Word(num=4)]) == (-1, -1, [])


def test_longest_jump_chain_skips_gaps():
    words = [Word(num=n) for n in [3, 0, 1, 5, 2]]
    start, end, chain = longest_jump_chain(words)
    assert chain[0] is words[start]
    assert chain[-1] is words[end]
    assert all(b.num == a.num + 1 for a, b in zip(chain, chain[1:]))
    assert [w.num for w in chain] == [0, 1, 2]


def test_longest_jump_chain_without_chain_has_zero_span():
    words = [Word(num=5), Word(num=5)]
    start, end, chain = longest_jump_chain(words)
    assert start == end
    assert chain == [words[end]]


def test_generate_srt_translation_on_top(tmp_path):
    blocks = [
        SrtBlock(index=1, target_language_sentence="你好世界", origin_language_sentence="hello world")
    ]
    generate_srt_with_timestamps(
        blocks, str(tmp_path), 0, "en", _english_words(),
        SubtitleResultType.BILINGUAL_TRANSLATION_ON_TOP, 12, 5,
    )
    ts = f"{format_srt_time(0.0)} --> {format_srt_time(1.0)}"
    assert ts == "00:00:00,000 --> 00:00:01,000"
    assert blocks[0].timestamp == ts
    bilingual = (tmp_path / (SPLIT_BILINGUAL_SRT_PATTERN % 0)).read_text(encoding="utf-8")
    assert bilingual == f"1\n{ts}\n你好世界\nhello world\n\n"
    short = (tmp_path / (SPLIT_SHORT_ORIGIN_SRT_PATTERN % 0)).read_text(encoding="utf-8")
    assert short == f"1\n{ts}\nhello world\n\n"
    mixed = (tmp_path / (SPLIT_SHORT_ORIGIN_MIXED_SRT_PATTERN % 0)).read_text(encoding="utf-8")
    assert mixed == f"1\n{ts}\n你好世界\n\n2\n{ts}\nhello world\n\n"


def test_generate_srt_translation_on_bottom_keeps_untimed_blocks(tmp_path):
    blocks = [
        SrtBlock(index=1, target_language_sentence="A", origin_language_sentence=""),
        SrtBlock(index=2, target_language_sentence="B", origin_language_sentence="hello world"),
    ]
    generate_srt_with_timestamps(
        blocks, str(tmp_path), 0, "en", _english_words(),
        SubtitleResultType.BILINGUAL_TRANSLATION_ON_BOTTOM, 12, 5,
    )
    assert blocks[0].timestamp == ""
    bilingual = _read_blocks(tmp_path / (SPLIT_BILINGUAL_SRT_PATTERN % 0))
    assert bilingual[0] == ["1", "", "", "A"]
    assert bilingual[1] == ["2", blocks[1].timestamp, "hello world", "B"]


def test_generate_srt_skips_unalignable_block(tmp_path):
    blocks = [SrtBlock(index=1, target_language_sentence="X", origin_language_sentence="!!!")]
    generate_srt_with_timestamps(
        blocks, str(tmp_path), 0, "en", _english_words(),
        SubtitleResultType.TARGET_ONLY, 12, 5,
    )
    assert blocks[0].timestamp == ""
    assert _read_blocks(tmp_path / (SPLIT_SHORT_ORIGIN_SRT_PATTERN % 0)) == []


def test_generate_srt_applies_segment_offset(tmp_path):
    blocks = [SrtBlock(index=1, target_language_sentence="T", origin_language_sentence="hello world")]
    generate_srt_with_timestamps(
        blocks, str(tmp_path), 1, "en", _english_words(),
        SubtitleResultType.BILINGUAL_TRANSLATION_ON_TOP, 12, 5,
    )
    assert blocks[0].timestamp.startswith("00:05:00,000 --> ")
    bilingual = _read_blocks(tmp_path / (SPLIT_BILINGUAL_SRT_PATTERN % 1))
    assert bilingual[0][1] == blocks[0].timestamp


def test_generate_srt_splits_long_sentence_into_short_lines(tmp_path):
    texts = ["one", "two", "three", "four", "five", "six"]
    words = [Word(i, t, float(i), i + 0.5) for i, t in enumerate(texts)]
    sentence = " ".join(texts)
    blocks = [SrtBlock(index=1, target_language_sentence="T", origin_language_sentence=sentence)]
    generate_srt_with_timestamps(
        blocks, str(tmp_path), 0, "en", words,
        SubtitleResultType.BILINGUAL_TRANSLATION_ON_BOTTOM, 2, 5,
    )
    short = _read_blocks(tmp_path / (SPLIT_SHORT_ORIGIN_SRT_PATTERN % 0))
    assert len(short) > 1
    assert [b[0] for b in short] == [str(n) for n in range(1, len(short) + 1)]
    joined = " ".join(b[2] for b in short).split()
    assert joined == texts
    mixed = _read_blocks(tmp_path / (SPLIT_SHORT_ORIGIN_MIXED_SRT_PATTERN % 0))
    assert len(mixed) == len(short) + 1
    assert mixed[0][2] == "T"


def test_generate_srt_with_no_blocks_writes_nothing(tmp_path):
    generate_srt_with_timestamps(
        [], str(tmp_path), 0, "en", _english_words(),
        SubtitleResultType.ORIGIN_ONLY, 12, 5,
    )
    assert list(tmp_path.iterdir()) == []