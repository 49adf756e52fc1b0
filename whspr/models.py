"""Dataclasses describing the objects passed through a whspr run."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import List, Optional

TRANSCRIPTION_MODELS = ("whisper-large-v3", "whisper-large-v3-turbo")

DEFAULT_SYSTEM_PROMPT = (
    "Your task is to clean up/fix transcribed text generated from mic input by the user "
    "according to the user's own prompt, this prompt may contain custom vocabulary, "
    "instructions, etc. Please return the user's transcription with the fixes made "
    '(e.g. the AI might hear "PostgreSQL" as "post crest QL" you need to use your own '
    "reasoning to fix these mistakes in the transcription)"
)


@dataclass(frozen=True, slots=True)
class Config:
    """Resolved settings for a single run."""

    transcription_model: str = "whisper-large-v3-turbo"
    language: str = "en"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    custom_prompt_prefix: str = "Here's my custom user prompt:"
    transcription_prefix: str = "Here's my raw transcription output that I need you to edit:"
    suffix: str = ""
    verbose: bool = False
    correction_model: str = "openai/gpt-oss-120b"
    api_timeout: float = 60.0

    def with_verbose(self, verbose: bool) -> "Config":
        if not verbose or self.verbose:
            return self
        return replace(self, verbose=True)


@dataclass(frozen=True, slots=True)
class Recording:
    """A captured audio file owned by the pipeline."""

    path: Path
    duration_seconds: float
    started_at: datetime


@dataclass(frozen=True, slots=True)
class CustomVocabulary:
    """User vocabulary assembled from the global and project documents."""

    text: Optional[str] = None
    sources: List[str] = field(default_factory=list)


@dataclass(slots=True)
class PipelineResult:
    text: str
    word_count: int
    char_count: int
    audio_seconds: float
    processing_seconds: float
