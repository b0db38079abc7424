"""OpenAI speech-to-text transcription of meeting recordings."""

import logging
from pathlib import Path

from openai import OpenAI

from ..summarize.provider import ProviderError, call_with_retry, create_client

logger = logging.getLogger(__name__)

# Upload limit of the transcription endpoint
MAX_UPLOAD_MB = 25
MAX_UPLOAD_BYTES = MAX_UPLOAD_MB * 1024 * 1024

# Containers accepted by the transcription endpoint
SUPPORTED_FORMATS = {".mp3", ".mp4", ".mpeg", ".mpga", ".m4a", ".wav", ".webm"}


class TranscriptionError(Exception):
    """Raised when transcription fails."""


def is_audio_file(path: Path) -> bool:
    return Path(path).suffix.lower() in SUPPORTED_FORMATS


def _check_recording(recording: Path) -> int:
    """Validate a recording before upload. Returns its size in bytes."""
    if not recording.exists():
        raise FileNotFoundError(f"Audio file not found: {recording}")

    if not is_audio_file(recording):
        raise TranscriptionError(
            f"Unsupported audio format: {recording.suffix}. "
            f"Supported: {', '.join(sorted(SUPPORTED_FORMATS))}"
        )

    size = recording.stat().st_size
    if size > MAX_UPLOAD_BYTES:
        raise TranscriptionError(
            f"Audio file too large: {size / 1024 / 1024:.1f}MB > {MAX_UPLOAD_MB}MB limit. "
            "Record a shorter meeting or split the audio."
        )
    return size


def _upload(client: OpenAI, recording: Path, model: str, lang: str | None) -> str:
    # Reopened on every attempt so a retry uploads from the start
    with open(recording, "rb") as audio:
        request: dict = {"model": model, "file": audio}
        if lang and lang != "auto":
            request["language"] = lang
        return client.audio.transcriptions.create(**request).text


def transcribe_audio(
    audio_path: Path,
    client: OpenAI | None = None,
    model: str = "whisper-1",
    lang: str | None = None,
    max_retries: int = 3,
) -> str:
    """
    Transcribe a meeting recording.

    Args:
        audio_path: Path to audio file (m4a, mp3, wav, etc.)
        client: OpenAI client; built from OPENAI_API_KEY when omitted
        model: OpenAI STT model (whisper-1, gpt-4o-transcribe, gpt-4o-mini-transcribe)
        lang: Optional language hint (ISO-639-1 code like 'en', 'sv')
        max_retries: Attempts before giving up

    Raises:
        FileNotFoundError: Audio file doesn't exist
        TranscriptionError: Invalid recording, missing API key or failed request
    """
    recording = Path(audio_path)
    size = _check_recording(recording)

    try:
        if client is None:
            client = create_client()
        text = call_with_retry(
            lambda: _upload(client, recording, model, lang), max_retries, action="Transcription"
        )
    except ProviderError as e:
        raise TranscriptionError(str(e)) from e

    logger.info("Transcribed %s: %d bytes -> %d chars", recording.name, size, len(text))
    return text
