"""Speech-to-text through locally installed whisper command-line programs."""

from __future__ import annotations

import json
import logging
import re
import subprocess
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from .models import TranscriptionData, Word
from .textutil import change_extension, strip_punctuation

logger = logging.getLogger(__name__)

_EM_DASH = "—"
_BRACKETED_TOKEN_RE = re.compile(r"\[.*\]")
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")

FASTER_WHISPER_MODELS_DIR = "./models/"
WHISPERCPP_MODEL_PATTERN = "./models/whispercpp/ggml-%s.bin"
WHISPERKIT_MODEL_PATH = "./models/whisperkit/openai_whisper-large-v2"


def _clean(text: str) -> str:
    return strip_punctuation(text.strip())


def _timed_words(text: str, start: float, end: float, num: int) -> list[Word]:
    """Turn one recognised token into words, halving it at an em dash."""
    if _EM_DASH in text:
        mid = (start + end) / 2
        parts = text.split(_EM_DASH)
        return [
            Word(num=num, text=_clean(parts[0]), start=start, end=mid),
            Word(num=num + 1, text=_clean(parts[1]), start=mid, end=end),
        ]
    return [Word(num=num, text=_clean(text), start=start, end=end)]


def _collect(
    segments: Iterable[tuple[str, Iterable[tuple[str, float, float]]]]
) -> TranscriptionData:
    result = TranscriptionData()
    texts: list[str] = []
    for segment_text, tokens in segments:
        texts.append(segment_text.replace(_EM_DASH, " "))
        for text, start, end in tokens:
            result.words.extend(_timed_words(text, start, end, len(result.words)))
    result.text = "".join(texts)
    return result


def _segment_words(segment: Mapping[str, Any]):
    for word in segment.get("words") or []:
        yield (
            word.get("word", ""),
            float(word.get("start", 0.0)),
            float(word.get("end", 0.0)),
        )


def parse_faster_whisper(data: Mapping[str, Any]) -> TranscriptionData:
    """Build transcription data from faster-whisper's JSON output."""
    return _collect(
        (segment.get("text", ""), _segment_words(segment))
        for segment in data.get("segments") or []
    )


def parse_whisperkit(data: Mapping[str, Any]) -> TranscriptionData:
    """Build transcription data from WhisperKit's JSON report."""
    return _collect(
        (segment.get("text", ""), _segment_words(segment))
        for segment in data.get("segments") or []
    )


def _atoi_or_zero(text: str) -> int:
    return int(text) if _INTEGER_RE.fullmatch(text) else 0


def timestamp_to_seconds(text: str) -> float:
    """Convert a ``HH:MM:SS,mmm`` timestamp into seconds."""
    parts = text.split(",")
    if len(parts) != 2:
        raise ValueError(f"invalid timestamp format: {text}")
    clock = parts[0].split(":")
    if len(clock) != 3:
        raise ValueError(f"invalid time format: {parts[0]}")
    hours, minutes, seconds = (_atoi_or_zero(p) for p in clock)
    millis = _atoi_or_zero(parts[1])
    return float(hours * 3600 + minutes * 60 + seconds) + millis / 1000


def _whispercpp_tokens(segment: Mapping[str, Any]):
    for token in segment.get("tokens") or []:
        stamps = token.get("timestamps") or {}
        start = timestamp_to_seconds(stamps.get("from", ""))
        end = timestamp_to_seconds(stamps.get("to", ""))
        text = token.get("text", "")
        if _BRACKETED_TOKEN_RE.fullmatch(text):
            continue
        yield text, start, end


def parse_whispercpp(data: Mapping[str, Any]) -> TranscriptionData:
    """Build transcription data from whisper.cpp's full JSON output.

    Special tokens such as ``[_BEG_]`` are skipped. Raises ValueError on a
    malformed token timestamp.
    """
    result = TranscriptionData()
    texts: list[str] = []
    for segment in data.get("transcription") or []:
        texts.append(segment.get("text", "").replace(_EM_DASH, " "))
        for text, start, end in _whispercpp_tokens(segment):
            result.words.extend(_timed_words(text, start, end, len(result.words)))
    result.text = "".join(texts)
    return result


def _run(command: list[str], tolerated_marker: Optional[str] = None) -> None:
    logger.info("transcription start: %s", " ".join(command))
    try:
        completed = subprocess.run(
            command, stdout=subprocess.PIPE, stderr=subprocess.STDOUT
        )
    except OSError as exc:
        raise RuntimeError(f"transcription command failed: {exc}") from exc
    output = (completed.stdout or b"").decode("utf-8", errors="replace")
    if completed.returncode != 0 and not (
        tolerated_marker is not None and tolerated_marker in output
    ):
        logger.error("transcription command failed: %s", output)
        raise RuntimeError(
            f"transcription command exited with status {completed.returncode}: {output}"
        )


def _load_json(path: str) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


@dataclass
class FasterWhisperTranscriber:
    """Transcribes with the faster-whisper command-line program."""

    model: str
    executable: str = "faster-whisper"

    def transcription(self, audio_file: str, language: str, work_dir: str) -> TranscriptionData:
        """Transcribe ``audio_file``; the JSON result is read from beside it."""
        _run(
            [
                self.executable,
                "--model_dir",
                FASTER_WHISPER_MODELS_DIR,
                "--model",
                self.model,
                "--one_word",
                "2",
                "--output_format",
                "json",
                "--language",
                language,
                "--output_dir",
                work_dir,
                audio_file,
            ],
            tolerated_marker="Subtitles are written to",
        )
        data = parse_faster_whisper(_load_json(change_extension(audio_file, ".json")))
        logger.info("faster-whisper transcription done: %s", audio_file)
        return data


@dataclass
class WhisperCppTranscriber:
    """Transcribes with the whisper.cpp command-line program."""

    model: str
    executable: str = "whisper-cli"

    def transcription(self, audio_file: str, language: str, work_dir: str) -> TranscriptionData:
        """Transcribe ``audio_file``; the JSON result is written beside it."""
        _run(
            [
                self.executable,
                "-m",
                WHISPERCPP_MODEL_PATTERN % self.model,
                "--output-json-full",
                "--flash-attn",
                "--split-on-word",
                "--language",
                language,
                "--output-file",
                change_extension(audio_file, ""),
                "--file",
                audio_file,
            ],
            tolerated_marker="output_json: saving output to",
        )
        data = parse_whispercpp(_load_json(change_extension(audio_file, ".json")))
        logger.info("whisper.cpp transcription done: %s", audio_file)
        return data


@dataclass
class WhisperKitTranscriber:
    """Transcribes with the WhisperKit command-line program."""

    model: str = ""
    executable: str = "whisperkit-cli"

    def transcription(self, audio_file: str, language: str, work_dir: str) -> TranscriptionData:
        """Transcribe ``audio_file``; the report is read from beside it."""
        _run(
            [
                self.executable,
                "transcribe",
                "--model-path",
                WHISPERKIT_MODEL_PATH,
                "--audio-encoder-compute-units",
                "all",
                "--text-decoder-compute-units",
                "all",
                "--language",
                language,
                "--report",
                "--report-path",
                work_dir,
                "--word-timestamps",
                "--skip-special-tokens",
                "--audio-path",
                audio_file,
            ]
        )
        data = parse_whisperkit(_load_json(change_extension(audio_file, ".json")))
        logger.info("WhisperKit transcription done: %s", audio_file)
        return data