"""Turning an audio file into timed bilingual subtitles."""

from __future__ import annotations

import glob
import logging
import os
import queue
import re
import subprocess
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .alignment import generate_srt_with_timestamps
from .languages import LanguageCode, language_name
from .models import (
    BILINGUAL_SRT_FILE_NAME,
    ORIGIN_LANGUAGE_SRT_FILE_NAME,
    ORIGIN_LANGUAGE_TEXT_FILE_NAME,
    SHORT_ORIGIN_MIXED_SRT_FILE_NAME,
    SHORT_ORIGIN_SRT_FILE_NAME,
    SPLIT_AUDIO_FILE_PATTERN,
    SPLIT_AUDIO_FILE_PREFIX,
    SPLIT_BILINGUAL_SRT_PATTERN,
    SPLIT_SHORT_ORIGIN_MIXED_SRT_PATTERN,
    SPLIT_SHORT_ORIGIN_SRT_PATTERN,
    SPLIT_SRT_NO_TIMESTAMP_PATTERN,
    SPLIT_TEXT_PROMPT,
    SPLIT_TEXT_PROMPT_WITH_MODAL_FILTER,
    SRT_NO_TIMESTAMP_FILE_NAME,
    TARGET_LANGUAGE_SRT_FILE_NAME,
    TARGET_LANGUAGE_TEXT_FILE_NAME,
    AppSettings,
    ChatCompleter,
    SmallAudio,
    StepParam,
    SubtitleFileInfo,
    SubtitleResultType,
    ToolPaths,
    Transcriber,
    TranscriptionData,
)
from .srtfiles import SrtBlock, merge_files, merge_srt_files, split_block
from .textutil import is_number

logger = logging.getLogger(__name__)

_THINK_RE = re.compile(r"^\s*<think>.*?</think>")
_NO_TEXT_MARK = "[无文本]"
_TRANSCRIBED = "transcribed"
_TRANSLATED = "translated"


@dataclass
class TranslatedItem:
    """One sentence of the original text and its translation."""

    origin_text: str = ""
    translated_text: str = ""


def _strip_brackets(line: str) -> str:
    return line.strip().removeprefix("[").removesuffix("]")


def parse_translation(split_content: str, original_text: str) -> list[TranslatedItem]:
    """Parse numbered ``index / [translation] / [original]`` blocks from a model answer.

    Raises ValueError when the answer is not in that format.
    """
    if split_content == "" or original_text == "":
        if split_content == original_text:
            return []
        if split_content == "":
            raise ValueError("splitContent is empty but originalText is not")
        raise ValueError("originalText is empty but splitContent is not")

    if _NO_TEXT_MARK in split_content:
        lower = original_text.strip().lower()
        size = len(lower.encode("utf-8"))
        looks_like_music = size < 30 and (
            "music" in lower
            or "playing" in lower
            or "♪" in lower
            or "♫" in lower
            or size < 10
        )
        if not looks_like_music:
            logger.warning(
                "originalText might contain actual content but splitContent contains %s: %r",
                _NO_TEXT_MARK,
                original_text,
            )
        return []

    lines = split_content.split("\n")
    if len(lines) < 3:
        raise ValueError("invalid format, not enough lines")

    result: list[TranslatedItem] = []
    i = 0
    while i < len(lines):
        line = lines[i].strip()
        if line == "" or not is_number(line):
            i += 1
            continue
        if i + 2 >= len(lines):
            raise ValueError("invalid format, block is not complete")
        result.append(
            TranslatedItem(
                origin_text=_strip_brackets(lines[i + 2]),
                translated_text=_strip_brackets(lines[i + 1]),
            )
        )
        i += 3

    combined = sum(len(item.origin_text.strip().encode("utf-8")) for item in result)
    original_length = len(original_text.strip().encode("utf-8"))
    if abs(original_length - combined) > len(original_text.encode("utf-8")) // 10:
        logger.warning(
            "originalText and splitContent length not match: %r / %r",
            split_content,
            original_text,
        )
    return result


def split_audio(param: StepParam, ffmpeg: str = "ffmpeg", segment_minutes: int = 5) -> None:
    """Cut the task's audio into segments of ``segment_minutes`` and record them."""
    logger.info("split audio start, task %s", param.task_id)
    pattern = os.path.join(param.task_base_path, SPLIT_AUDIO_FILE_PATTERN)
    command = [
        ffmpeg,
        "-i",
        param.audio_file_path,
        "-f",
        "segment",
        "-segment_time",
        "%d" % (segment_minutes * 60),
        "-reset_timestamps",
        "1",
        "-y",
        pattern,
    ]
    try:
        subprocess.run(command, capture_output=True, check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise RuntimeError(f"split audio ffmpeg error: {exc}") from exc

    files = sorted(
        glob.glob(os.path.join(param.task_base_path, f"{SPLIT_AUDIO_FILE_PREFIX}_*.mp3"))
    )
    if not files:
        raise RuntimeError("split audio: no audio files found")
    param.small_audios.extend(SmallAudio(audio_file=path) for path in files)
    param.task.process_pct = 20
    logger.info("split audio end, task %s", param.task_id)


def _read_lines(path: str) -> list[str]:
    with open(path, encoding="utf-8", errors="surrogateescape", newline="") as f:
        data = f.read()
    if not data:
        return []
    parts = data.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [p[:-1] if p.endswith("\r") else p for p in parts]


def _blocks(lines: list[str]):
    block: list[str] = []
    for line in lines:
        if line == "":
            if block:
                yield block
                block = []
        else:
            block.append(line)
    if block:
        yield block


def _subtitle_name(ui_language: str, english: str, chinese: str) -> str:
    if ui_language == LanguageCode.ENGLISH:
        return english
    if ui_language == LanguageCode.SIMPLIFIED_CHINESE:
        return chinese
    return ""


def split_srt(param: StepParam) -> None:
    """Split the bilingual SRT into monolingual SRT and plain text files."""
    logger.info("split srt start, task %s", param.task_id)
    base = param.task_base_path
    origin_srt_path = os.path.join(base, ORIGIN_LANGUAGE_SRT_FILE_NAME)
    origin_text_path = os.path.join(base, "output", ORIGIN_LANGUAGE_TEXT_FILE_NAME)
    target_srt_path = os.path.join(base, TARGET_LANGUAGE_SRT_FILE_NAME)
    target_text_path = os.path.join(base, "output", TARGET_LANGUAGE_TEXT_FILE_NAME)

    lines = _read_lines(param.bilingual_srt_file_path)
    on_top = param.subtitle_result_type == SubtitleResultType.BILINGUAL_TRANSLATION_ON_TOP

    def _open(path: str):
        return open(path, "w", encoding="utf-8", errors="surrogateescape", newline="")

    with _open(origin_srt_path) as origin_srt, _open(origin_text_path) as origin_text, _open(
        target_srt_path
    ) as target_srt, _open(target_text_path) as target_text:
        for block in _blocks(lines):
            parts = split_block(block, on_top)
            target_text.write(parts.target_text)
            origin_text.write(parts.origin_text)
            target_srt.write(parts.target_srt)
            origin_srt.write(parts.origin_srt)

    ui = param.user_ui_language
    origin_name = language_name(param.origin_language)
    param.subtitle_infos.append(
        SubtitleFileInfo(
            name=_subtitle_name(ui, origin_name + " Subtitle", origin_name + " 单语字幕"),
            path=origin_srt_path,
            language_identifier=str(param.origin_language),
        )
    )
    result_type = param.subtitle_result_type
    if result_type in (
        SubtitleResultType.TARGET_ONLY,
        SubtitleResultType.BILINGUAL_TRANSLATION_ON_BOTTOM,
        SubtitleResultType.BILINGUAL_TRANSLATION_ON_TOP,
    ):
        target_name = language_name(param.target_language)
        param.subtitle_infos.append(
            SubtitleFileInfo(
                name=_subtitle_name(ui, target_name + " Subtitle", target_name + " 单语字幕"),
                path=target_srt_path,
                language_identifier=str(param.target_language),
            )
        )
    if result_type in (
        SubtitleResultType.BILINGUAL_TRANSLATION_ON_TOP,
        SubtitleResultType.BILINGUAL_TRANSLATION_ON_BOTTOM,
    ):
        param.subtitle_infos.append(
            SubtitleFileInfo(
                name=_subtitle_name(ui, "Bilingual Subtitle", "双语字幕"),
                path=param.bilingual_srt_file_path,
                language_identifier="bilingual",
            )
        )

    param.tts_source_file_path = param.bilingual_srt_file_path
    logger.info("split srt end, task %s", param.task_id)


class Subtitler:
    """Transcribes, translates and times the audio segments of a task."""

    def __init__(
        self,
        transcriber: Transcriber,
        chat_completer: ChatCompleter,
        settings: Optional[AppSettings] = None,
        tools: Optional[ToolPaths] = None,
    ) -> None:
        self.transcriber = transcriber
        self.chat_completer = chat_completer
        self.settings = settings if settings is not None else AppSettings()
        self.tools = tools if tools is not None else ToolPaths()

    def transcribe(self, audio_file: str, language: str, work_dir: str) -> TranscriptionData:
        """Transcribe one audio file; ``zh_cn`` is passed on as ``zh``."""
        if language == LanguageCode.SIMPLIFIED_CHINESE:
            language = "zh"
        data = self.transcriber.transcription(audio_file, str(language), work_dir)
        if data.text == "":
            logger.info("transcription text is empty: %s (%s)", audio_file, work_dir)
        return data

    def translate(
        self, text: str, target_language: str, modal_filter: bool = False
    ) -> list[TranslatedItem]:
        """Ask the model to split ``text`` into sentences and translate each."""
        template = SPLIT_TEXT_PROMPT_WITH_MODAL_FILTER if modal_filter else SPLIT_TEXT_PROMPT
        prompt = template % target_language
        if text == "":
            return []
        answer = self.chat_completer.chat_completion(prompt + text)
        answer = _THINK_RE.sub("", answer).strip()
        return parse_translation(answer, text)

    def _retry(self, attempts: int, call: Callable[[], Any], default: Any) -> Any:
        result = default
        last_error: Optional[Exception] = None
        for _ in range(attempts):
            try:
                return call()
            except Exception as exc:  # retried, then re-raised
                last_error = exc
        if last_error is not None:
            raise last_error
        return result

    def _transcribe_with_retries(self, audio_file: str, param: StepParam) -> TranscriptionData:
        return self._retry(
            self.settings.transcribe_max_attempts,
            lambda: self.transcribe(audio_file, param.origin_language, param.task_base_path),
            TranscriptionData(),
        )

    def _translate_with_retries(self, text: str, param: StepParam) -> list[TranslatedItem]:
        target = language_name(param.target_language)
        return self._retry(
            self.settings.translate_max_attempts,
            lambda: self.translate(text, target, param.enable_modal_filter),
            [],
        )

    def _save_segment(self, param: StepParam, idx: int, items: list[TranslatedItem]) -> None:
        no_ts_path = os.path.join(param.task_base_path, SPLIT_SRT_NO_TIMESTAMP_PATTERN % idx)
        with open(no_ts_path, "w", encoding="utf-8", newline="") as out:
            for number, item in enumerate(items, start=1):
                out.write(f"{number}\n[{item.translated_text}]\n[{item.origin_text}]\n\n")
        small = param.small_audios[idx]
        small.srt_no_ts_file = no_ts_path

        blocks = [
            SrtBlock(
                index=number,
                origin_language_sentence=item.origin_text,
                target_language_sentence=item.translated_text,
            )
            for number, item in enumerate(items, start=1)
        ]
        words = small.transcription_data.words if small.transcription_data else []
        try:
            generate_srt_with_timestamps(
                blocks,
                param.task_base_path,
                idx,
                param.origin_language,
                words,
                param.subtitle_result_type,
                param.max_words_per_line,
                self.settings.segment_duration,
            )
        except OSError as exc:
            raise RuntimeError(f"audio to srt: generate timestamps error: {exc}") from exc

    def audio_to_srt(self, param: StepParam) -> None:
        """Transcribe and translate every segment, then merge the segment SRT files."""
        logger.info("audio to srt start, task %s", param.task_id)
        count = len(param.small_audios)
        events: "queue.Queue[tuple[str, int, Future]]" = queue.Queue()

        def submit(pool: ThreadPoolExecutor, stage: str, idx: int, fn, *args) -> None:
            future = pool.submit(fn, *args)
            future.add_done_callback(lambda f: events.put((stage, idx, f)))

        transcribe_pool = ThreadPoolExecutor(
            max_workers=max(1, self.settings.transcribe_parallel_num)
        )
        translate_pool = ThreadPoolExecutor(
            max_workers=max(1, self.settings.translate_parallel_num)
        )
        try:
            for idx, small in enumerate(param.small_audios):
                submit(
                    transcribe_pool,
                    _TRANSCRIBED,
                    idx,
                    self._transcribe_with_retries,
                    small.audio_file,
                    param,
                )
            steps = 0
            while steps < 2 * count:
                stage, idx, future = events.get()
                try:
                    result = future.result()
                except Exception as exc:
                    raise RuntimeError(f"audio to srt: {stage} step failed: {exc}") from exc
                steps += 1
                param.task.process_pct = 20 + 70 * steps // count // 2
                if stage == _TRANSCRIBED:
                    param.small_audios[idx].transcription_data = result
                    submit(
                        translate_pool,
                        _TRANSLATED,
                        idx,
                        self._translate_with_retries,
                        result.text,
                        param,
                    )
                else:
                    self._save_segment(param, idx, result)
        finally:
            transcribe_pool.shutdown(wait=True, cancel_futures=True)
            translate_pool.shutdown(wait=True, cancel_futures=True)

        base = param.task_base_path

        def segment_files(pattern: str) -> list[str]:
            return [os.path.join(base, pattern % i) for i in range(count)]

        merge_files(
            os.path.join(base, SRT_NO_TIMESTAMP_FILE_NAME),
            segment_files(SPLIT_SRT_NO_TIMESTAMP_PATTERN),
        )
        bilingual = os.path.join(base, BILINGUAL_SRT_FILE_NAME)
        merge_srt_files(bilingual, segment_files(SPLIT_BILINGUAL_SRT_PATTERN))
        mixed = os.path.join(base, SHORT_ORIGIN_MIXED_SRT_FILE_NAME)
        merge_srt_files(mixed, segment_files(SPLIT_SHORT_ORIGIN_MIXED_SRT_PATTERN))
        param.short_origin_mixed_srt_file_path = mixed
        merge_srt_files(
            os.path.join(base, SHORT_ORIGIN_SRT_FILE_NAME),
            segment_files(SPLIT_SHORT_ORIGIN_SRT_PATTERN),
        )
        param.bilingual_srt_file_path = bilingual
        param.task.process_pct = 90
        logger.info("audio to srt end, task %s", param.task_id)

    def audio_to_subtitle(self, param: StepParam) -> None:
        """Run the whole audio-to-subtitle step: split, transcribe, translate, split SRT."""
        split_audio(param, self.tools.ffmpeg, self.settings.segment_duration)
        self.audio_to_srt(param)
        split_srt(param)
        param.task.process_pct = 95


_lock_for_tests = threading.Lock  # kept for symmetry with thread-safe fakes