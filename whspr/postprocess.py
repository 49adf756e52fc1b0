"""Language model correction of raw transcripts."""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

import httpx
import openai
from pydantic import BaseModel, ConfigDict, ValidationError
from rich.console import Console

from .models import Config
from .retry import RETRY_ATTEMPTS, with_retry

FENCE = "```"


class CorrectionSchemaError(RuntimeError):
    """Raised when the correction service answers with an unexpected shape."""


class PostprocessError(RuntimeError):
    """Raised when the transcript could not be corrected."""


class FixedTranscription(BaseModel):
    """The only response shape accepted from the correction service."""

    model_config = ConfigDict(strict=True, extra="forbid")

    fixed_transcription: str


class Corrector(Protocol):
    def correct(self, messages: List[Dict[str, str]]) -> FixedTranscription:
        """Send ``messages`` and return the validated correction."""


def build_user_message(raw_transcription: str, custom_vocabulary: Optional[str], config: Config) -> str:
    parts = []
    if custom_vocabulary is not None:
        parts.append(f"{config.custom_prompt_prefix}\n{FENCE}\n{custom_vocabulary}\n{FENCE}\n\n")
    parts.append(f"{config.transcription_prefix}\n{FENCE}\n{raw_transcription}\n{FENCE}")
    return "".join(parts).strip()


def build_messages(
    raw_transcription: str, custom_vocabulary: Optional[str], config: Config
) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": config.system_prompt},
        {"role": "user", "content": build_user_message(raw_transcription, custom_vocabulary, config)},
    ]


def parse_correction(content: Optional[str]) -> FixedTranscription:
    """Validate a raw response body against :class:`FixedTranscription`."""

    if not content:
        raise CorrectionSchemaError("Correction response was empty")
    try:
        return FixedTranscription.model_validate_json(content)
    except ValidationError as exc:
        raise CorrectionSchemaError(f"Correction response did not match schema: {exc}") from exc


class GroqCorrector:
    """Chat completion with a strict JSON schema response format."""

    def __init__(self, client: openai.OpenAI, model: str) -> None:
        self._client = client
        self._model = model

    def correct(self, messages: List[Dict[str, str]]) -> FixedTranscription:
        completion = self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": "fixed_transcription",
                    "strict": True,
                    "schema": FixedTranscription.model_json_schema(),
                },
            },
            temperature=0.0,
        )
        if not completion.choices:
            raise CorrectionSchemaError("Correction response contained no choices")
        return parse_correction(completion.choices[0].message.content)


def postprocess(
    corrector: Corrector,
    raw_transcription: str,
    custom_vocabulary: Optional[str],
    config: Config,
    console: Optional[Console] = None,
) -> str:
    """Return the corrected transcript, retrying network and schema failures."""

    messages = build_messages(raw_transcription, custom_vocabulary, config)
    retryable = (openai.OpenAIError, httpx.HTTPError, CorrectionSchemaError)
    try:
        result = with_retry(
            lambda: corrector.correct(messages),
            RETRY_ATTEMPTS,
            "postprocess",
            retry_on=retryable,
            verbose=config.verbose,
            console=console,
        )
    except retryable as exc:
        raise PostprocessError(f"Post-processing failed after {RETRY_ATTEMPTS} attempts: {exc}") from exc
    return result.fixed_transcription
