"""Reading, splitting, merging and rewriting SRT subtitle files."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from typing import Iterable, Mapping

import regex

from .textutil import is_number

_TIMESTAMP_RE = regex.compile(
    r"[0-9]{2}:[0-9]{2}:[0-9]{2},[0-9]{3} --> [0-9]{2}:[0-9]{2}:[0-9]{2},[0-9]{3}"
)
_NOT_WORD_RE = regex.compile(r"[^\p{L}\p{N}\t\n\f\r ']+")
_LATIN_OR_NUMBER_RE = regex.compile(r"[\p{Script=Latin}\p{N}]")
_HAN_RE = regex.compile(r"\p{Script=Han}")
_HANGUL_RE = regex.compile(r"\p{Script=Hangul}")
_KANA_RE = regex.compile(r"[\p{Script=Hiragana}\p{Script=Katakana}]")


@dataclass
class SrtBlock:
    """One bilingual subtitle entry."""

    index: int
    timestamp: str = ""
    target_language_sentence: str = ""
    origin_language_sentence: str = ""


def _srt_text(lines: list[str]) -> str:
    if len(lines) <= 2:
        return ""
    return "".join(line + "\n" for line in lines) + "\n"


@dataclass
class SplitBlock:
    """A bilingual block separated into its target and origin parts."""

    target_lines: list[str] = field(default_factory=list)
    origin_lines: list[str] = field(default_factory=list)
    target_text: str = ""
    origin_text: str = ""

    @property
    def target_srt(self) -> str:
        """The target-language SRT block, or "" if it has no text line."""
        return _srt_text(self.target_lines)

    @property
    def origin_srt(self) -> str:
        """The origin-language SRT block, or "" if it has no text line."""
        return _srt_text(self.origin_lines)


def split_block(lines: Iterable[str], is_target_on_top: bool) -> SplitBlock:
    """Split the lines of one bilingual block into two monolingual blocks."""
    result = SplitBlock()
    target_text: list[str] = []
    origin_text: list[str] = []
    for line in lines:
        if _TIMESTAMP_RE.search(line) or is_number(line):
            result.target_lines.append(line)
            result.origin_lines.append(line)
            continue
        upper = len(result.target_lines) == 2 and len(result.origin_lines) == 2
        to_target = is_target_on_top if upper else not is_target_on_top
        if to_target:
            result.target_lines.append(line)
            target_text.append(line)
        else:
            result.origin_lines.append(line)
            origin_text.append(line)
    result.target_text = "".join(target_text)
    result.origin_text = "".join(origin_text)
    return result


def is_subtitle_text(line: str) -> bool:
    """Whether ``line`` is a text line of an SRT file (not index, timing or blank)."""
    if line == "" or is_number(line):
        return False
    return not _TIMESTAMP_RE.search(line)


def trim_string(s: str) -> str:
    """Strip placeholder tags, surrounding brackets and spaces; normalise apostrophes."""
    s = s.replace("[中文翻译]", "").replace("[英文句子]", "")
    s = s.lstrip(" [").rstrip(" ]")
    return s.replace("’", "'")


def split_sentence(sentence: str) -> list[str]:
    """Split a sentence into words, dropping punctuation except apostrophes."""
    return _NOT_WORD_RE.sub(" ", sentence).split()


def _scan_lines(path: str) -> list[str]:
    with open(path, encoding="utf-8", errors="surrogateescape", newline="") as f:
        data = f.read()
    if not data:
        return []
    parts = data.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [p[:-1] if p.endswith("\r") else p for p in parts]


def _open_output(path: str):
    return open(path, "w", encoding="utf-8", errors="surrogateescape", newline="")


def merge_files(final_file: str, files: Iterable[str]) -> None:
    """Concatenate ``files`` line by line into ``final_file``."""
    with _open_output(final_file) as out:
        for path in files:
            for line in _scan_lines(path):
                out.write(line + "\n")


def merge_srt_files(final_file: str, files: Iterable[str]) -> None:
    """Merge SRT files into one, renumbering blocks; missing files are skipped."""
    counter = 0
    with _open_output(final_file) as out:
        for path in files:
            if not os.path.exists(path):
                continue
            for line in _scan_lines(path):
                if "```" in line:
                    continue
                if is_number(line):
                    counter += 1
                    line = str(counter)
                out.write(line + "\n")


def replace_file_content(src: str, dst: str, replacements: Mapping[str, str]) -> None:
    """Copy ``src`` to ``dst`` replacing every key of ``replacements`` by its value."""
    lines = _scan_lines(src)
    with _open_output(dst) as out:
        for line in lines:
            for before, after in replacements.items():
                line = line.replace(before, after)
            out.write(line + "\n")


def add_suffix_to_filename(path: str, suffix: str) -> str:
    """Insert ``suffix`` before the extension: ``a/abc.srt`` -> ``a/abc_tmp.srt``."""
    directory, base = os.path.split(path)
    dot = base.rfind(".")
    ext = base[dot:] if dot >= 0 else ""
    name = base[: len(base) - len(ext)]
    new_name = f"{name}{suffix}{ext}"
    if not directory:
        return new_name
    return os.path.normpath(os.path.join(directory, new_name))


def recognizable_string(s: str) -> str:
    """Keep only Latin letters, digits, Han, Hangul and kana characters."""
    out: list[str] = []
    for ch in s:
        if _LATIN_OR_NUMBER_RE.fullmatch(ch):
            out.append(ch)
        if _HAN_RE.fullmatch(ch):
            out.append(ch)
        if _HANGUL_RE.fullmatch(ch):
            out.append(ch)
        if _KANA_RE.fullmatch(ch):
            out.append(ch)
    return "".join(out)


def audio_duration(input_file: str, ffprobe: str = "ffprobe") -> float:
    """Return the duration of a media file in seconds, as reported by ffprobe."""
    try:
        completed = subprocess.run(
            [
                ffprobe,
                "-i",
                input_file,
                "-show_entries",
                "format=duration",
                "-v",
                "quiet",
                "-of",
                "csv=p=0",
            ],
            capture_output=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        raise RuntimeError(f"failed to get audio duration: {exc}") from exc
    text = completed.stdout.decode("utf-8", errors="replace").strip()
    try:
        return float(text)
    except ValueError as exc:
        raise RuntimeError(f"failed to parse audio duration: {text!r}") from exc