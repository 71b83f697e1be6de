"""Small helpers for strings, links, time formatting and files."""

from __future__ import annotations

import logging
import math
import os
import random
import re
import shutil
import struct
import sys
import time
import unicodedata
import uuid
import zipfile
from urllib.parse import parse_qs, urlparse

import httpx

logger = logging.getLogger(__name__)

_TOKEN_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ123456789"
_BILIBILI_RE = re.compile(
    r"https://(?:www\.)?bilibili\.com/(?:video/|video/av\d+/)(BV[a-zA-Z0-9]+)"
)
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def random_token(n: int) -> str:
    """Return a random string of ``n`` letters and digits 1-9."""
    return "".join(random.choice(_TOKEN_ALPHABET) for _ in range(n))


def youtube_id(url: str) -> str:
    """Extract the video id from a YouTube link."""
    parsed = urlparse(url)
    if "watch" in parsed.path:
        params = parse_qs(parsed.query, keep_blank_values=True)
        if "v" in params:
            return params["v"][0]
        raise ValueError("no video ID found")
    return parsed.path.split("/")[-1]


def bilibili_video_id(url: str) -> str:
    """Extract the BV id from a bilibili link, or return an empty string."""
    match = _BILIBILI_RE.search(url)
    return match.group(1) if match else ""


def _f32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


def format_srt_time(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS,mmm`` using single-precision arithmetic."""
    seconds = _f32(seconds)
    total = int(math.floor(seconds))
    millis = int(_f32(_f32(seconds - _f32(total)) * 1000))
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def is_number(s: str) -> bool:
    """Whether ``s`` is a plain 64-bit decimal integer (a subtitle index)."""
    if not _INTEGER_RE.fullmatch(s):
        return False
    return _INT64_MIN <= int(s) <= _INT64_MAX


def unzip(zip_file: str, dest_dir: str) -> None:
    """Extract every entry of ``zip_file`` into ``dest_dir``."""
    try:
        archive = zipfile.ZipFile(zip_file)
    except (OSError, zipfile.BadZipFile) as exc:
        raise OSError(f"打开zip文件失败: {exc}") from exc
    with archive:
        os.makedirs(dest_dir, mode=0o755, exist_ok=True)
        for info in archive.infolist():
            target = os.path.join(dest_dir, info.filename)
            if info.is_dir():
                os.makedirs(target, exist_ok=True)
                continue
            parent = os.path.dirname(target)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with archive.open(info) as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)


def generate_id() -> str:
    """Return a random UUID as 32 hex characters without dashes."""
    return uuid.uuid4().hex


def _extension(path: str) -> str:
    for i in range(len(path) - 1, -1, -1):
        ch = path[i]
        if ch in ("/", os.sep):
            break
        if ch == ".":
            return path[i:]
    return ""


def change_extension(path: str, new_ext: str) -> str:
    """Replace the extension of ``path`` (after its last dot) with ``new_ext``."""
    ext = _extension(path)
    return path[: len(path) - len(ext)] + new_ext


def _is_punct(ch: str) -> bool:
    return unicodedata.category(ch).startswith("P")


def strip_punctuation(word: str) -> str:
    """Remove leading and trailing punctuation characters."""
    start, end = 0, len(word)
    while start < end and _is_punct(word[start]):
        start += 1
    while end > start and _is_punct(word[end - 1]):
        end -= 1
    return word[start:end]


def is_alphabetic(ch: str) -> bool:
    """Whether ``ch`` is a Latin, extended Latin, Greek or Cyrillic letter."""
    if not ch.isalpha():
        return False
    return (
        "A" <= ch <= "Z"
        or "a" <= ch <= "z"
        or "\u00c0" <= ch <= "\u024f"
        or "\u0370" <= ch <= "\u03ff"
        or "\u0400" <= ch <= "\u04ff"
    )


def contains_alphabetic(text: str) -> bool:
    """Whether any character in ``text`` is alphabetic in the sense above."""
    return any(is_alphabetic(ch) for ch in text)


def copy_file(src: str, dst: str) -> None:
    """Copy the contents of ``src`` into ``dst`` and flush it to disk."""
    with open(src, "rb") as source, open(dst, "wb") as target:
        shutil.copyfileobj(source, target)
        target.flush()
        os.fsync(target.fileno())


def _print_progress(downloaded: int, total: int, started: float) -> None:
    percent = downloaded / total * 100 if total > 0 else 0.0
    elapsed = time.monotonic() - started
    speed = downloaded / 1024 / 1024 / elapsed if elapsed > 0 else 0.0
    sys.stdout.write(
        f"\r下载进度: {percent:.2f}% ({downloaded / 1024 / 1024:.2f} MB / "
        f"{total / 1024 / 1024:.2f} MB) | 速度: {speed:.2f} MB/s"
    )
    sys.stdout.flush()


def download_file(url: str, path: str, proxy: str = "") -> None:
    """Download ``url`` to ``path``, showing progress, optionally via ``proxy``."""
    logger.info("开始下载文件 url=%s", url)
    with httpx.Client(proxy=proxy or None, follow_redirects=True) as client:
        with client.stream("GET", url) as response:
            total = int(response.headers.get("content-length", -1))
            print(f"文件大小: {total / 1024 / 1024:.2f} MB")
            downloaded = 0
            started = time.monotonic()
            with open(path, "wb") as out:
                for chunk in response.iter_bytes():
                    out.write(chunk)
                    downloaded += len(chunk)
                    _print_progress(downloaded, total, started)
    print()
    logger.info("文件下载完成 路径=%s", path)