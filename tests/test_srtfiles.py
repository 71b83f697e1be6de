import os

import pytest

from subtitlekit.srtfiles import (
    SrtBlock,
    add_suffix_to_filename,
    audio_duration,
    is_subtitle_text,
    merge_files,
    merge_srt_files,
    recognizable_string,
    replace_file_content,
    split_block,
    split_sentence,
    trim_string,
)

TS = "00:00:01,000 --> 00:00:02,500"


def _write(path, text):
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    return str(path)


def _read(path):
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def test_split_block_target_on_top():
    result = split_block(["1", TS, "你好", "hello"], True)
    assert result.target_lines == ["1", TS, "你好"]
    assert result.origin_lines == ["1", TS, "hello"]
    assert result.target_text == "你好"
    assert result.origin_text == "hello"
    assert result.target_srt == "1\n" + TS + "\n你好\n\n"


def test_split_block_target_on_bottom():
    result = split_block(["1", TS, "hello", "你好"], False)
    assert result.origin_lines == ["1", TS, "hello"]
    assert result.target_lines == ["1", TS, "你好"]
    assert result.origin_srt == "1\n" + TS + "\nhello\n\n"


def test_split_block_without_text_gives_no_srt():
    result = split_block(["1", TS], True)
    assert result.target_srt == ""
    assert result.origin_srt == ""


def test_is_subtitle_text():
    assert is_subtitle_text("hello")
    assert not is_subtitle_text("")
    assert not is_subtitle_text("12")
    assert not is_subtitle_text(TS)


def test_trim_string():
    assert trim_string(" [[中文翻译]hello’s] ") == "hello's"


def test_split_sentence():
    assert split_sentence("Hello, world! It's fine.") == ["Hello", "world", "It's", "fine"]
    assert split_sentence("...!!") == []


def test_recognizable_string():
    assert recognizable_string("你好, world! 123") == "你好world123"


def test_recognizable_string_keeps_kana_and_hangul():
    assert recognizable_string("こんにちは。한국") == "こんにちは한국"


def test_merge_files_concatenates(tmp_path):
    a = _write(tmp_path / "a.srt", "1\nfirst\n")
    b = _write(tmp_path / "b.srt", "2\nsecond\r\n")
    out = str(tmp_path / "out.srt")
    merge_files(out, [a, b])
    assert _read(out) == "1\nfirst\n" + "2\nsecond\n"


def test_merge_files_missing_input_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        merge_files(str(tmp_path / "out"), [str(tmp_path / "nope")])


def test_merge_srt_files_renumbers_and_skips(tmp_path):
    a = _write(tmp_path / "a.srt", f"1\n{TS}\nhello\n\n")
    b = _write(tmp_path / "b.srt", f"```\n1\n{TS}\nworld\n```\n\n")
    out = str(tmp_path / "out.srt")
    merge_srt_files(out, [a, str(tmp_path / "missing.srt"), b])
    lines = _read(out).split("\n")
    numbers = [int(line) for line in lines if line.isdigit()]
    assert numbers == list(range(1, len(numbers) + 1))
    assert len(numbers) == 2
    assert "```" not in _read(out)
    assert "hello" in lines and "world" in lines


def test_replace_file_content(tmp_path):
    src = _write(tmp_path / "s.srt", "foo bar\nbar baz")
    dst = str(tmp_path / "d.srt")
    replace_file_content(src, dst, {"bar": "qux"})
    assert _read(dst) == "foo qux\nqux baz\n"


def test_add_suffix_to_filename():
    assert add_suffix_to_filename("/home/ubuntu/abc.srt", "_tmp") == os.path.normpath(
        "/home/ubuntu/abc_tmp.srt"
    )
    assert add_suffix_to_filename("abc.srt", "_replaced") == "abc_replaced.srt"


def test_audio_duration_missing_tool(tmp_path):
    with pytest.raises(RuntimeError):
        audio_duration(str(tmp_path / "a.wav"), ffprobe=str(tmp_path / "no-ffprobe"))


def test_srt_block_fields():
    block = SrtBlock(index=1, origin_language_sentence="hello")
    assert block.timestamp == ""
    assert block.origin_language_sentence == "hello"