"""Transcription, translation, timestamp alignment and embedding of subtitles."""

__version__ = "0.1.0"