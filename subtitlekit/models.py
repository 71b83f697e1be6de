"""Data types shared by the subtitle pipeline, plus tool paths, settings and the task registry."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Protocol, runtime_checkable

SPLIT_TEXT_PROMPT = """你是一个语言处理专家，专注于自然语言处理和翻译任务。按照以下步骤和要求，以最大程度实现准确和高质量翻译：

1. 将原句翻译为%s，确保译文流畅、自然，达到专业翻译水平。
2. 严格依据标点符号（逗号、句号、问号等）将内容拆分成单独的句子，并依据以下规则确保拆分粒度合理：
   - 每个句子在保证句意完整的情况下尽可能短，长度尽量不得超过15个字。
   - 可以根据连词（例如 "and", "but", "which", "when", "so", "所以", "但是", "因此", "考虑到" 等）进一步拆分句子，避免语句太长。
3. 对每个拆分的句子分别翻译，确保不遗漏或修改任何字词。
4. 将每对翻译后的句子与原句用独立编号表示，并分别以方括号[]包裹内容。
5. 输出的翻译与原文应保持对应，严格按照原文顺序呈现，不得有错位，且原文尽可能使用原文。
6. 不管内容是正式还是非正式，都要翻译。

翻译输出应采用如下格式：
**正常翻译的示例（注意每块3部分，每个部分都独占一行，空格分块）**：
1
[翻译后的句子1]
[原句子1]

2
[翻译后的句子2]
[原句子2]

**无文本需要翻译的输出示例**：
[无文本]

确保高效、精确地完成上述翻译任务，输入内容如下：
"""

SPLIT_TEXT_PROMPT_WITH_MODAL_FILTER = """你是一个语言处理专家，专注于自然语言处理和翻译任务。按照以下步骤和要求，以最大程度实现准确和高质量翻译：

1. 将原句翻译为%s，确保译文流畅、自然，达到专业翻译水平。
2. 严格依据标点符号（逗号、句号、问号等）将内容拆分成单独的句子，并依据以下规则确保拆分粒度合理：
   - 每个句子在保证句意完整的情况下尽可能短，长度尽量不得超过15个字。
   - 可以根据连词（例如 "and", "but", "which", "when", "so", "所以", "但是", "因此", "考虑到" 等）进一步拆分句子，避免语句太长。
3. 对每个拆分的句子分别翻译，确保不遗漏或修改任何字词。
4. 将每对翻译后的句子与原句用独立编号表示，并分别以方括号[]包裹内容。
5. 输出的翻译与原文应保持对应，严格按照原文顺序呈现，不得有错位，且原文尽可能使用原文。
6. 忽略文本中的语气词，比如"Oh" "Ah" "Wow"等等。
7. 不管内容是正式还是非正式，都要翻译。

翻译输出应采用如下格式：
**正常翻译的示例（注意每块3部分，每个部分都独占一行，空格分块）**：
1
[翻译后的句子1]
[原句子1]

2
[翻译后的句子2]
[原句子2]

**无文本需要翻译的输出示例**：
[无文本]

确保高效、精确地完成上述翻译任务，输入内容如下：
"""

TRANSLATE_VIDEO_TITLE_AND_DESCRIPTION_PROMPT = """你是一个专业的翻译专家，请翻译下面给出的标题和描述信息（两者用####来分隔），要求如下：
 - 将内容翻译成 %s
 - 翻译后的内容仍然用####来分隔标题和描述两部分
 以下全部是源内容，请完整按要求翻译：
%s
"""

# File names inside a task directory. Patterns take an index via ``%``.
AUDIO_FILE_NAME = "origin_audio.mp3"
VIDEO_FILE_NAME = "origin_video.mp4"
SPLIT_AUDIO_FILE_PREFIX = "split_audio"
SPLIT_AUDIO_FILE_PATTERN = SPLIT_AUDIO_FILE_PREFIX + "_%03d.mp3"
SPLIT_AUDIO_TXT_FILE_PATTERN = "split_audio_txt_%d.txt"
SPLIT_AUDIO_WORDS_FILE_PATTERN = "split_audio_words_%d.txt"
SPLIT_SRT_NO_TIMESTAMP_PATTERN = "srt_no_ts_%d.srt"
SRT_NO_TIMESTAMP_FILE_NAME = "srt_no_ts.srt"
SPLIT_BILINGUAL_SRT_PATTERN = "split_bilingual_srt_%d.srt"
SPLIT_SHORT_ORIGIN_MIXED_SRT_PATTERN = "split_short_origin_mixed_srt_%d.srt"
SPLIT_SHORT_ORIGIN_SRT_PATTERN = "split_short_origin_srt_%d.srt"
BILINGUAL_SRT_FILE_NAME = "bilingual_srt.srt"
SHORT_ORIGIN_MIXED_SRT_FILE_NAME = "short_origin_mixed_srt.srt"
SHORT_ORIGIN_SRT_FILE_NAME = "short_origin_srt.srt"
ORIGIN_LANGUAGE_SRT_FILE_NAME = "origin_language_srt.srt"
ORIGIN_LANGUAGE_TEXT_FILE_NAME = "origin_language.txt"
TARGET_LANGUAGE_SRT_FILE_NAME = "target_language_srt.srt"
TARGET_LANGUAGE_TEXT_FILE_NAME = "target_language.txt"
TRANSFERRED_VERTICAL_VIDEO_FILE_NAME = "transferred_vertical_video.mp4"
HORIZONTAL_EMBED_VIDEO_FILE_NAME = "horizontal_embed.mp4"
VERTICAL_EMBED_VIDEO_FILE_NAME = "vertical_embed.mp4"
TTS_AUDIO_DURATION_DETAILS_FILE_NAME = "audio_duration_details.txt"
TTS_RESULT_AUDIO_FILE_NAME = "tts_final_audio.wav"
ASR_MONO_16K_AUDIO_FILE_NAME = "mono_16k_audio.mp3"

DEFAULT_MAX_WORDS_PER_LINE = 12


class SubtitleResultType(IntEnum):
    """Which subtitles a task produces."""

    ORIGIN_ONLY = 1
    TARGET_ONLY = 2
    BILINGUAL_TRANSLATION_ON_TOP = 3
    BILINGUAL_TRANSLATION_ON_BOTTOM = 4


class TaskStatus(IntEnum):
    """Lifecycle state of a subtitle task."""

    PROCESSING = 1
    SUCCESS = 2
    FAILED = 3


@dataclass
class Word:
    """A transcribed word with its position and time span in seconds."""

    num: int = 0
    text: str = ""
    start: float = 0.0
    end: float = 0.0


@dataclass
class TranscriptionData:
    """Result of transcribing one audio file."""

    language: str = ""
    text: str = ""
    words: list[Word] = field(default_factory=list)


@dataclass
class SmallAudio:
    """One segment of a split audio file and what was derived from it."""

    audio_file: str
    transcription_data: Optional[TranscriptionData] = None
    srt_no_ts_file: str = ""


@dataclass
class SubtitleFileInfo:
    """A produced subtitle file, before it is published."""

    name: str = ""
    path: str = ""
    language_identifier: str = ""


@dataclass
class SubtitleInfo:
    """A published subtitle file of a task."""

    task_id: str = ""
    name: str = ""
    download_url: str = ""
    id: int = 0
    uid: int = 0
    create_time: int = 0


@dataclass
class SubtitleTask:
    """Progress and results of one subtitle task, as reported to callers."""

    task_id: str = ""
    title: str = ""
    description: str = ""
    translated_title: str = ""
    translated_description: str = ""
    origin_language: str = ""
    target_language: str = ""
    video_src: str = ""
    status: TaskStatus = TaskStatus.PROCESSING
    last_success_step_num: int = 0
    fail_reason: str = ""
    process_pct: int = 0
    duration: int = 0
    srt_num: int = 0
    subtitle_infos: list[SubtitleInfo] = field(default_factory=list)
    cover: str = ""
    speech_download_url: str = ""
    create_time: int = 0
    update_time: int = 0
    id: int = 0


@dataclass
class SrtSentence:
    """A sentence with start and end times in seconds."""

    text: str = ""
    start: float = 0.0
    end: float = 0.0


@dataclass
class TimedText:
    """A subtitle text with start and end times kept as SRT strings."""

    text: str = ""
    start: str = ""
    end: str = ""


@dataclass
class StepParam:
    """State carried between the steps of one subtitle task."""

    task_id: str = ""
    task: SubtitleTask = field(default_factory=SubtitleTask)
    task_base_path: str = ""
    link: str = ""
    audio_file_path: str = ""
    small_audios: list[SmallAudio] = field(default_factory=list)
    subtitle_result_type: SubtitleResultType = SubtitleResultType.ORIGIN_ONLY
    enable_modal_filter: bool = False
    enable_tts: bool = False
    tts_voice_code: str = ""
    voice_clone_audio_url: str = ""
    replace_words_map: dict[str, str] = field(default_factory=dict)
    origin_language: str = ""
    target_language: str = ""
    user_ui_language: str = ""
    bilingual_srt_file_path: str = ""
    short_origin_mixed_srt_file_path: str = ""
    subtitle_infos: list[SubtitleFileInfo] = field(default_factory=list)
    tts_source_file_path: str = ""
    tts_result_file_path: str = ""
    input_video_path: str = ""
    embed_subtitle_video_type: str = ""
    vertical_video_major_title: str = ""
    vertical_video_minor_title: str = ""
    max_words_per_line: int = DEFAULT_MAX_WORDS_PER_LINE


@runtime_checkable
class ChatCompleter(Protocol):
    """Anything that answers a prompt with text."""

    def chat_completion(self, query: str) -> str: ...


@runtime_checkable
class Transcriber(Protocol):
    """Anything that turns an audio file into text with word timings."""

    def transcription(
        self, audio_file: str, language: str, work_dir: str
    ) -> TranscriptionData: ...


@dataclass
class ToolPaths:
    """Locations of the external programs the pipeline runs."""

    ffmpeg: str = "ffmpeg"
    ffprobe: str = "ffprobe"
    ytdlp: str = "yt-dlp"
    fasterwhisper: str = ""
    whisperkit: str = ""
    whispercpp: str = ""


@dataclass
class AppSettings:
    """Tunable limits of the pipeline; segment duration is in minutes."""

    segment_duration: int = 5
    translate_parallel_num: int = 5
    translate_max_attempts: int = 3
    transcribe_parallel_num: int = 1
    transcribe_max_attempts: int = 3
    proxy: str = ""


class TaskRegistry:
    """Thread-safe map from task id to task, used for status queries."""

    def __init__(self) -> None:
        self._tasks: dict[str, SubtitleTask] = {}
        self._lock = threading.Lock()

    def store(self, task: SubtitleTask) -> None:
        """Register ``task`` under its id, replacing any earlier entry."""
        with self._lock:
            self._tasks[task.task_id] = task

    def get(self, task_id: str) -> Optional[SubtitleTask]:
        """Return the task with ``task_id``, or None."""
        with self._lock:
            return self._tasks.get(task_id)

    def __contains__(self, task_id: object) -> bool:
        with self._lock:
            return task_id in self._tasks

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)