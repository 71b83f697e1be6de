"""Converting SRT subtitles to ASS and burning them into videos with ffmpeg."""

from __future__ import annotations

import logging
import os
import re
import subprocess
import sys
from datetime import timedelta
from typing import Iterator, Optional

from .languages import LanguageCode
from .models import (
    HORIZONTAL_EMBED_VIDEO_FILE_NAME,
    TRANSFERRED_VERTICAL_VIDEO_FILE_NAME,
    VERTICAL_EMBED_VIDEO_FILE_NAME,
    StepParam,
    SubtitleResultType,
    ToolPaths,
)
from .textutil import contains_alphabetic, strip_punctuation

logger = logging.getLogger(__name__)

ASS_HEADER_HORIZONTAL = """[Script Info]
Title: Example
Original Script: 
ScriptType: v4.00+
PlayDepth: 0

[V4+ Styles]
Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, BackColour, Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, BorderStyle, Outline, Shadow, Alignment, MarginL, MarginR, MarginV, Encoding
Style: Major,Arial,18,&H00BFFF,&H000000FF,&H00000000,&H64000000,-1,0,0,0,100,100,0,0,1,2.5,1.5,2,10,10,20,1
Style: Minor,Arial,12,&H00BFFF,&H000000FF,&H00000000,&H64000000,-1,0,0,0,100,100,0,0,1,2.5,1.5,2,10,10,30,1


[Events]
Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text
"""

ASS_HEADER_VERTICAL = """[Script Info]
Title: Example
Original Script: 
ScriptType: v4.00+
PlayDepth: 0

[V4+ Styles]
Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, BackColour, Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, BorderStyle, Outline, Shadow, Alignment, MarginL, MarginR, MarginV, Encoding
Style: Major,Arial,15,&H00BFFF,&H000000FF,&H00000000,&H64000000,-1,0,0,0,100,100,-10,0,1,2.5,1.5,2,10,10,80,1
Style: Minor,Arial,8,&H00BFFF,&H000000FF,&H00000000,&H64000000,-1,0,0,0,100,100,-10,0,1,2.5,1.5,2,10,10,100,1


[Events]
Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text
"""

ASS_FILE_NAME = "formatted_subtitles.ass"

# Languages written without spaces between words; split character by character.
_CHARACTER_LANGUAGES = frozenset(
    code.value
    for code in (
        LanguageCode.SIMPLIFIED_CHINESE,
        LanguageCode.TRADITIONAL_CHINESE,
        LanguageCode.JAPANESE,
        LanguageCode.KOREAN,
        LanguageCode.THAI,
    )
)

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_RESOLUTION_RE = re.compile(r"([0-9]+)x([0-9]+)")
_EMBED_TYPES = ("horizontal", "vertical", "all")

_FONTS = {
    "windows": ("C\\:/Windows/Fonts/msyhbd.ttc", "C\\:/Windows/Fonts/msyh.ttc"),
    "darwin": (
        "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
        "/System/Library/Fonts/Supplemental/Arial.ttf",
    ),
    "linux": (
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    ),
}


def split_major_text(text: str, language: str, max_words: int) -> list[str]:
    """Split a long subtitle line in two at about two fifths of its length."""
    if str(language) in _CHARACTER_LANGUAGES:
        segments = [ch for ch in text if ch != "\n"]
        sep = ""
    else:
        segments = text.split(" ")
        sep = " "

    total = len(segments)
    if total <= max_words:
        return [text]

    line1_max = int(total * 2 / 5)
    split_index = min(max(line1_max, 1), total)
    line1 = strip_punctuation(sep.join(segments[:split_index]))
    line2 = strip_punctuation(sep.join(segments[split_index:]))
    return [line1, line2]


def split_chinese_text(text: str, max_per_line: int) -> list[str]:
    """Cut ``text`` into chunks of at most ``max_per_line`` characters."""
    return [text[i : i + max_per_line] for i in range(0, len(text), max_per_line)]


def _atoi(text: str) -> int:
    if not _INTEGER_RE.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


def parse_srt_time(text: str) -> timedelta:
    """Parse an SRT time ``HH:MM:SS,mmm`` into a timedelta."""
    normalised = text.replace(",", ".", 1)
    parts = normalised.split(":")
    if len(parts) != 3:
        raise ValueError(f"parseSrtTime invalid time format: {normalised}")
    hours = _atoi(parts[0])
    minutes = _atoi(parts[1])
    sec_ms = parts[2].split(".")
    if len(sec_ms) != 2:
        raise ValueError(f"invalid time format: {normalised}")
    seconds = _atoi(sec_ms[0])
    millis = _atoi(sec_ms[1])
    return timedelta(hours=hours, minutes=minutes, seconds=seconds, milliseconds=millis)


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // b
    return q if a >= 0 else -q


def _trunc_rem(a: int, b: int) -> int:
    return a - b * _trunc_div(a, b)


def format_ass_time(t: timedelta) -> str:
    """Format a timedelta as an ASS time ``HH:MM:SS.cc``."""
    us = t // timedelta(microseconds=1)
    hours = _trunc_div(us, 3_600_000_000)
    minutes = _trunc_rem(_trunc_div(us, 60_000_000), 60)
    seconds = _trunc_rem(_trunc_div(us, 1_000_000), 60)
    centis = _trunc_div(_trunc_rem(_trunc_div(us, 1000), 1000), 10)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{centis:02d}"


def _read_lines(path: str) -> Iterator[str]:
    with open(path, encoding="utf-8", errors="surrogateescape", newline="") as f:
        data = f.read()
    if not data:
        return iter(())
    parts = data.split("\n")
    if parts[-1] == "":
        parts.pop()
    return iter([p[:-1] if p.endswith("\r") else p for p in parts])


def _dialogue(start: timedelta, end: timedelta, style: str, text: str) -> str:
    return (
        f"Dialogue: 0,{format_ass_time(start)},{format_ass_time(end)},"
        f"{style},,0,0,0,,{text}\n"
    )


def _timing(line: str) -> Optional[tuple[timedelta, timedelta]]:
    parts = line.split(" --> ")
    if len(parts) != 2:
        return None
    return parse_srt_time(parts[0].strip()), parse_srt_time(parts[1].strip())


def _horizontal_events(lines: Iterator[str], param: StepParam) -> Iterator[str]:
    if param.subtitle_result_type == SubtitleResultType.BILINGUAL_TRANSLATION_ON_TOP:
        major_language = param.target_language
    else:
        major_language = param.origin_language
    for line in lines:
        if line == "":
            continue
        timestamp_line = next(lines, None)
        if timestamp_line is None:
            break
        timing = _timing(timestamp_line)
        if timing is None:
            continue
        start, end = timing
        texts: list[str] = []
        for text_line in lines:
            if text_line == "":
                break
            texts.append(text_line)
        if len(texts) < 2:
            continue
        major = "      \\N".join(
            split_major_text(texts[0], major_language, param.max_words_per_line)
        )
        minor = strip_punctuation(texts[1])
        yield _dialogue(start, end, "Major", f"{{\\an2}}{{\\rMajor}}{major}\\N{{\\rMinor}}{minor}")


def _vertical_events(lines: Iterator[str]) -> Iterator[str]:
    for line in lines:
        if line == "":
            continue
        timestamp_line = next(lines, None)
        if timestamp_line is None:
            break
        timing = _timing(timestamp_line)
        if timing is None:
            continue
        start, end = timing
        content = next(lines, "")
        if content == "":
            continue
        if contains_alphabetic(content):
            text = strip_punctuation(content)
            yield _dialogue(start, end, "Minor", f"{{\\an2}}{{\\rMinor}}{text}")
            continue
        total_us = (end - start) // timedelta(microseconds=1)
        chunks = split_chinese_text(content, 10)
        count = len(chunks)
        for i, chunk in enumerate(chunks):
            chunk_start = start + timedelta(microseconds=int(i * total_us / count))
            chunk_end = start + timedelta(microseconds=int((i + 1) * total_us / count))
            chunk_end = min(chunk_end, end)
            text = strip_punctuation(chunk)
            yield _dialogue(chunk_start, chunk_end, "Major", f"{{\\an2}}{{\\rMajor}}{text}")


def srt_to_ass(input_srt: str, output_ass: str, is_horizontal: bool, param: StepParam) -> None:
    """Convert a bilingual SRT file into a styled ASS file."""
    lines = _read_lines(input_srt)
    with open(output_ass, "w", encoding="utf-8", errors="surrogateescape", newline="") as out:
        if is_horizontal:
            out.write(ASS_HEADER_HORIZONTAL)
            events = _horizontal_events(lines, param)
        else:
            out.write(ASS_HEADER_VERTICAL)
            events = _vertical_events(lines)
        for event in events:
            out.write(event)


def font_paths(system: Optional[str] = None) -> tuple[str, str]:
    """Return the bold and regular font files for ``system`` (default: this one)."""
    name = (system if system is not None else sys.platform).lower()
    if name.startswith("win"):
        name = "windows"
    elif name.startswith("linux"):
        name = "linux"
    try:
        return _FONTS[name]
    except KeyError:
        raise ValueError(f"unsupported OS: {system if system is not None else sys.platform}") from None


def video_resolution(video: str, ffprobe: str = "ffprobe") -> tuple[int, int]:
    """Return ``(width, height)`` of the first video stream of ``video``."""
    command = [
        ffprobe,
        "-v",
        "error",
        "-select_streams",
        "v:0",
        "-show_entries",
        "stream=width,height",
        "-of",
        "csv=s=x:p=0",
        video,
    ]
    try:
        completed = subprocess.run(
            command, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=True
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.error("failed to get video resolution: %s", exc)
        raise RuntimeError(f"failed to get video resolution: {exc}") from exc
    output = completed.stdout.decode("utf-8", errors="replace").strip()
    output = output.removesuffix("x")
    match = _RESOLUTION_RE.fullmatch(output)
    if match is None:
        raise ValueError(f"invalid resolution format: {output}")
    return int(match.group(1)), int(match.group(2))


def convert_to_vertical(
    input_video: str,
    output_video: str,
    major_title: str,
    minor_title: str,
    ffmpeg: str = "ffmpeg",
) -> None:
    """Pad a landscape video into a 720x1280 portrait video with two titles."""
    if os.path.exists(output_video):
        logger.info("vertical video already exists: %s", output_video)
        return
    font_bold, font_regular = font_paths()
    video_filter = (
        "scale=720:1280:force_original_aspect_ratio=decrease,"
        "pad=720:1280:(ow-iw)/2:(oh-ih)*2/5,"
        "drawbox=y=0:h=100:c=black@1:t=fill,"
        f"drawtext=text='{major_title}':x=(w-text_w)/2:y=210:fontsize=55:fontcolor=yellow"
        f":box=1:boxcolor=black@0.5:fontfile='{font_bold}',"
        f"drawtext=text='{minor_title}':x=(w-text_w)/2:y=280:fontsize=40:fontcolor=yellow"
        f":box=1:boxcolor=black@0.5:fontfile='{font_regular}'"
    )
    command = [
        ffmpeg,
        "-i",
        input_video,
        "-vf",
        video_filter,
        "-r",
        "30",
        "-b:v",
        "7587k",
        "-c:a",
        "aac",
        "-b:a",
        "192k",
        "-c:v",
        "libx264",
        "-preset",
        "fast",
        "-y",
        output_video,
    ]
    try:
        subprocess.run(command, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.error("converting video to vertical failed: %s", exc)
        raise RuntimeError(f"converting video to vertical failed: {exc}") from exc
    print(f"竖屏视频已保存到: {output_video}")


def embed_subtitles(param: StepParam, is_horizontal: bool, ffmpeg: str = "ffmpeg") -> str:
    """Burn the task's bilingual subtitles into its video; return the output path."""
    name = HORIZONTAL_EMBED_VIDEO_FILE_NAME if is_horizontal else VERTICAL_EMBED_VIDEO_FILE_NAME
    ass_path = os.path.join(param.task_base_path, ASS_FILE_NAME)
    srt_to_ass(param.bilingual_srt_file_path, ass_path, is_horizontal, param)

    output = os.path.join(param.task_base_path, "output", name)
    ass_filter = "ass=" + ass_path.replace("\\", "/")
    command = [
        ffmpeg,
        "-y",
        "-i",
        param.input_video_path,
        "-vf",
        ass_filter,
        "-c:a",
        "aac",
        "-b:a",
        "192k",
        output,
    ]
    try:
        subprocess.run(command, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.error("embedding subtitles into %s failed: %s", param.input_video_path, exc)
        raise RuntimeError(f"embed subtitle into video ffmpeg error: {exc}") from exc
    return output


def embed_for_task(param: StepParam, tools: Optional[ToolPaths] = None) -> None:
    """Produce the horizontal and/or vertical subtitled videos the task asks for."""
    tools = tools if tools is not None else ToolPaths()
    kind = param.embed_subtitle_video_type
    if kind not in _EMBED_TYPES:
        logger.info("no subtitled video requested")
        return

    width, height = video_resolution(param.input_video_path, tools.ffprobe)

    # A landscape video can become portrait, but not the other way round.
    if kind in ("horizontal", "all"):
        if width < height:
            logger.info("input video is portrait; skipping landscape output")
            return
        embed_subtitles(param, True, tools.ffmpeg)
    if kind in ("vertical", "all"):
        if width > height:
            vertical = os.path.join(param.task_base_path, TRANSFERRED_VERTICAL_VIDEO_FILE_NAME)
            convert_to_vertical(
                param.input_video_path,
                vertical,
                param.vertical_video_major_title,
                param.vertical_video_minor_title,
                tools.ffmpeg,
            )
            param.input_video_path = vertical
        embed_subtitles(param, False, tools.ffmpeg)
    logger.info("subtitles embedded into video")