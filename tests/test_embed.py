import subprocess
from datetime import timedelta
from unittest import mock

import pytest

from subtitlekit.embed import (
    ASS_HEADER_HORIZONTAL,
    ASS_HEADER_VERTICAL,
    convert_to_vertical,
    embed_for_task,
    embed_subtitles,
    font_paths,
    format_ass_time,
    parse_srt_time,
    split_chinese_text,
    split_major_text,
    srt_to_ass,
    video_resolution,
)
from subtitlekit.models import StepParam, SubtitleResultType, ToolPaths


def _completed(stdout=b""):
    return subprocess.CompletedProcess(args=[], returncode=0, stdout=stdout)


def _param(tmp_path, **kwargs):
    defaults = dict(
        task_base_path=str(tmp_path),
        origin_language="en",
        target_language="zh_cn",
        subtitle_result_type=SubtitleResultType.BILINGUAL_TRANSLATION_ON_BOTTOM,
        max_words_per_line=12,
    )
    defaults.update(kwargs)
    return StepParam(**defaults)


def test_split_major_text_short_text_unchanged():
    assert split_major_text("hello world", "en", 12) == ["hello world"]


def test_split_major_text_words():
    assert split_major_text("a b c d e f g h i j", "en", 5) == ["a b c d", "e f g h i j"]


def test_split_major_text_strips_edge_punctuation():
    lines = split_major_text("Hello, world this is a test.", "en", 3)
    assert lines == ["Hello, world", "this is a test"]


def test_split_major_text_characters_keep_all_text():
    text = "一二三四五六七八九十"
    lines = split_major_text(text, "zh_cn", 5)
    assert len(lines) == 2
    assert "".join(lines) == text
    assert len(lines[0]) < len(lines[1])


def test_split_chinese_text_chunks():
    assert split_chinese_text("一二三四五", 2) == ["一二", "三四", "五"]


def test_split_chinese_text_round_trip():
    text = "字幕测试文本一二三四五六七八九"
    chunks = split_chinese_text(text, 4)
    assert "".join(chunks) == text
    assert all(len(c) <= 4 for c in chunks)


def test_parse_srt_time_value():
    assert parse_srt_time("01:02:03,456") == timedelta(
        hours=1, minutes=2, seconds=3, milliseconds=456
    )


@pytest.mark.parametrize("text", ["01:02", "aa:00:00,000", "00:00:00", "00:0 1:00,000"])
def test_parse_srt_time_rejects_bad_input(text):
    with pytest.raises(ValueError):
        parse_srt_time(text)


def test_format_ass_time_from_srt_time():
    assert format_ass_time(parse_srt_time("01:02:03,456")) == "01:02:03.45"


def test_format_ass_time_zero():
    assert format_ass_time(timedelta(0)) == "00:00:00.00"


def test_srt_to_ass_horizontal(tmp_path):
    srt = tmp_path / "in.srt"
    srt.write_text(
        "1\n00:00:01,000 --> 00:00:02,500\nHello world\n你好世界。\n\n"
        "2\n00:00:03,000 --> 00:00:04,000\nonly one line\n\n",
        encoding="utf-8",
    )
    out = tmp_path / "out.ass"
    srt_to_ass(str(srt), str(out), True, _param(tmp_path))
    content = out.read_text(encoding="utf-8")
    assert content.startswith(ASS_HEADER_HORIZONTAL)
    events = content[len(ASS_HEADER_HORIZONTAL):].splitlines()
    assert events == [
        "Dialogue: 0,00:00:01.00,00:00:02.50,Major,,0,0,0,,"
        "{\\an2}{\\rMajor}Hello world\\N{\\rMinor}你好世界"
    ]


def test_srt_to_ass_vertical(tmp_path):
    srt = tmp_path / "in.srt"
    srt.write_text(
        "1\n00:00:00,000 --> 00:00:02,000\n一二三四五六七八九十一二\n\n"
        "2\n00:00:03,000 --> 00:00:04,000\nHello there.\n\n",
        encoding="utf-8",
    )
    out = tmp_path / "out.ass"
    srt_to_ass(str(srt), str(out), False, _param(tmp_path))
    content = out.read_text(encoding="utf-8")
    assert content.startswith(ASS_HEADER_VERTICAL)
    events = content[len(ASS_HEADER_VERTICAL):].splitlines()
    assert events == [
        "Dialogue: 0,00:00:00.00,00:00:01.00,Major,,0,0,0,,{\\an2}{\\rMajor}一二三四五六七八九十",
        "Dialogue: 0,00:00:01.00,00:00:02.00,Major,,0,0,0,,{\\an2}{\\rMajor}一二",
        "Dialogue: 0,00:00:03.00,00:00:04.00,Minor,,0,0,0,,{\\an2}{\\rMinor}Hello there",
    ]


def test_srt_to_ass_bad_time_raises(tmp_path):
    srt = tmp_path / "in.srt"
    srt.write_text("1\nxx --> 00:00:01,000\na\nb\n\n", encoding="utf-8")
    with pytest.raises(ValueError):
        srt_to_ass(str(srt), str(tmp_path / "out.ass"), True, _param(tmp_path))


def test_font_paths_linux():
    bold, regular = font_paths("linux")
    assert bold == "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"
    assert regular == "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"


def test_font_paths_unsupported():
    with pytest.raises(ValueError):
        font_paths("plan9")


@mock.patch("subtitlekit.embed.subprocess.run")
def test_video_resolution_trailing_x(run):
    run.return_value = _completed(b"1920x1080x\n")
    assert video_resolution("video.mp4") == (1920, 1080)


@mock.patch("subtitlekit.embed.subprocess.run")
def test_video_resolution_invalid(run):
    run.return_value = _completed(b"garbage\n")
    with pytest.raises(ValueError):
        video_resolution("video.mp4")


@mock.patch("subtitlekit.embed.subprocess.run")
def test_video_resolution_process_failure(run):
    run.side_effect = subprocess.CalledProcessError(1, ["ffprobe"])
    with pytest.raises(RuntimeError):
        video_resolution("video.mp4")


@mock.patch("subtitlekit.embed.subprocess.run")
def test_convert_to_vertical_skips_existing(run, tmp_path):
    target = tmp_path / "vertical.mp4"
    target.write_bytes(b"x")
    result = convert_to_vertical("in.mp4", str(target), "Major", "Minor")
    assert result is None
    assert target.read_bytes() == b"x"
    assert run.call_count == 0


@mock.patch("subtitlekit.embed.subprocess.run")
def test_embed_subtitles_writes_ass_and_runs_ffmpeg(run, tmp_path):
    run.return_value = _completed()
    srt = tmp_path / "bilingual.srt"
    srt.write_text("1\n00:00:01,000 --> 00:00:02,000\nHi\n你好\n\n", encoding="utf-8")
    param = _param(tmp_path, bilingual_srt_file_path=str(srt), input_video_path="in.mp4")
    output = embed_subtitles(param, True, "ffmpeg")
    assert output.endswith("horizontal_embed.mp4")
    assert (tmp_path / "formatted_subtitles.ass").exists()
    command = run.call_args[0][0]
    assert command[0] == "ffmpeg"
    assert command[-1] == output
    assert any(arg.startswith("ass=") for arg in command)


@mock.patch("subtitlekit.embed.subprocess.run")
def test_embed_for_task_none_does_nothing(run, tmp_path):
    param = _param(tmp_path, embed_subtitle_video_type="none", input_video_path="in.mp4")
    result = embed_for_task(param, ToolPaths())
    assert result is None
    assert param.input_video_path == "in.mp4"
    assert not (tmp_path / "formatted_subtitles.ass").exists()
    assert run.call_count == 0


@mock.patch("subtitlekit.embed.subprocess.run")
def test_embed_for_task_portrait_skips_horizontal(run, tmp_path):
    run.return_value = _completed(b"720x1280\n")
    param = _param(tmp_path, embed_subtitle_video_type="all", input_video_path="in.mp4")
    embed_for_task(param, ToolPaths())
    assert run.call_count == 1
    assert not (tmp_path / "formatted_subtitles.ass").exists()