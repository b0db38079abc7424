"""Transcription modules for audio-to-text."""

from .openai_stt import SUPPORTED_FORMATS, TranscriptionError, is_audio_file, transcribe_audio

__all__ = ["SUPPORTED_FORMATS", "TranscriptionError", "is_audio_file", "transcribe_audio"]
