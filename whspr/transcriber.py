"""Hosted speech-to-text."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol

import httpx
import openai
from rich.console import Console

from .models import TRANSCRIPTION_MODELS, Config
from .retry import RETRY_ATTEMPTS, with_retry


class TranscriptionError(RuntimeError):
    """Raised when the audio could not be transcribed."""


class TranscriptionBackend(Protocol):
    """Common interface for transcription backends."""

    def transcribe(self, audio_path: Path, model: str, language: str) -> str:
        """Return the transcript text for ``audio_path``."""


class GroqWhisperBackend:
    """Whisper models served through Groq's OpenAI compatible API."""

    def __init__(self, client: openai.OpenAI) -> None:
        self._client = client

    def transcribe(self, audio_path: Path, model: str, language: str) -> str:
        with audio_path.open("rb") as fh:
            response = self._client.audio.transcriptions.create(
                file=(audio_path.name, fh),
                model=model,
                language=language,
                temperature=0.0,
            )
        return (response.text or "").strip()


def transcribe_audio(
    backend: TranscriptionBackend,
    audio_path: Path,
    config: Config,
    console: Optional[Console] = None,
) -> str:
    """Transcribe ``audio_path`` with the configured model, retrying network failures."""

    if config.transcription_model not in TRANSCRIPTION_MODELS:
        raise TranscriptionError(f"Unsupported transcription model: {config.transcription_model}")

    try:
        return with_retry(
            lambda: backend.transcribe(audio_path, config.transcription_model, config.language),
            RETRY_ATTEMPTS,
            "transcribe",
            retry_on=(openai.OpenAIError, httpx.HTTPError),
            verbose=config.verbose,
            console=console,
        )
    except (openai.OpenAIError, httpx.HTTPError) as exc:
        raise TranscriptionError(
            f"Transcription failed after {RETRY_ATTEMPTS} attempts: {exc}"
        ) from exc
