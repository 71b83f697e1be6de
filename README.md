# subtitlekit

subtitlekit is a library that turns speech in audio into subtitles. It can produce
subtitles in the spoken language, in a target language, or in both at once, and it can
burn them into a video. It runs `ffmpeg`, `ffprobe` and local whisper programs as
subprocesses. It talks to an OpenAI-compatible chat API over HTTP for translation.

## What it covers

- `subtitlekit.subtitler.split_audio` cuts a task's audio into segments with ffmpeg.
- `subtitlekit.transcribers` transcribes with word timestamps. It has
  `FasterWhisperTranscriber`, `WhisperCppTranscriber` and `WhisperKitTranscriber`. Each one
  runs its command-line program and reads the JSON the program writes beside the audio file.
  `parse_faster_whisper`, `parse_whispercpp` and `parse_whisperkit` turn such JSON into a
  `TranscriptionData`.
- `subtitlekit.chat.OpenAIChat` sends a prompt to a `/chat/completions` endpoint. It reads the
  streamed answer. The default model is `gpt-4o-mini-2024-07-18`.
- `subtitlekit.subtitler.Subtitler` asks the model to split each transcript into sentences and
  translate them. `parse_translation` checks the model's answer. The `Subtitler` then lines
  each sentence up with the transcribed words (`subtitlekit.alignment`) and writes bilingual,
  short-line and mixed SRT files per segment. Last, it merges the segment files.
- `subtitlekit.subtitler.split_srt` splits the bilingual SRT into one-language SRT files and
  plain-text transcripts. It records them in `StepParam.subtitle_infos`.
- `subtitlekit.embed` converts SRT to styled ASS (`srt_to_ass`). It burns the ASS into a
  horizontal or vertical video (`embed_subtitles`, `embed_for_task`). Before a vertical
  version can be made, a landscape video is padded to 720x1280 with two titles
  (`convert_to_vertical`).

## Installation

```
pip install subtitlekit
```

`ffmpeg` and `ffprobe` must be on your `PATH`, or you can set their locations in
`subtitlekit.models.ToolPaths`. Each local transcriber needs its own program. The program
names default to `faster-whisper`, `whisper-cli` and `whisperkit-cli`; you can change them
with the `executable` field. Each transcriber also needs its model files under `./models/`.

## Example

```python
import os

from subtitlekit.chat import OpenAIChat
from subtitlekit.models import AppSettings, StepParam, SubtitleResultType, ToolPaths
from subtitlekit.subtitler import Subtitler
from subtitlekit.transcribers import FasterWhisperTranscriber

os.makedirs("tasks/demo/output", exist_ok=True)  # split_srt writes transcripts here

tools = ToolPaths()
chat = OpenAIChat(base_url="", api_key="placeholder", proxy="", model="")
transcriber = FasterWhisperTranscriber("large-v2")
subtitler = Subtitler(transcriber, chat, AppSettings(), tools)

param = StepParam(
    task_id="demo",
    task_base_path="tasks/demo",
    audio_file_path="tasks/demo/origin_audio.mp3",
    origin_language="en",
    target_language="zh_cn",
    user_ui_language="en",
    subtitle_result_type=SubtitleResultType.BILINGUAL_TRANSLATION_ON_TOP,
)
subtitler.audio_to_subtitle(param)
for info in param.subtitle_infos:
    print(info.name, info.path)
```

The names of the subtitle files are set only when `user_ui_language` is `"en"` or `"zh_cn"`.

`AppSettings` holds these settings:

- the segment length in minutes (`segment_duration`, default 5);
- how many transcriptions and translations run in parallel;
- how many attempts each one gets.

Progress is written to `param.task.process_pct`.

## Other helpers

- `subtitlekit.srtfiles.merge_srt_files` joins SRT files and numbers the blocks again.
  `replace_file_content` rewrites words throughout a file.
- `subtitlekit.embed.video_resolution` reports a video's width and height, using ffprobe.
- `subtitlekit.languages.language_name` gives the native name of a `LanguageCode`.
- `subtitlekit.models.TaskRegistry` keeps tasks in memory by id. It is thread-safe.
- `subtitlekit.textutil` holds several small helpers:
  - `youtube_id` and `bilibili_video_id` extract video ids from links;
  - `format_srt_time` formats a time for SRT;
  - `download_file` downloads a file and shows its progress.

## What it does not do

- There is no command-line program and no web server or HTTP API for submitting tasks.
- It does not download audio or video from video sites. You supply the audio file, and the
  video file if you want subtitles embedded.
- It does not generate dubbed speech from the subtitles.
- Tasks live only in memory in a `TaskRegistry`; nothing is stored between runs.

## Tests

```
pip install -e ".[test]"
pytest
```