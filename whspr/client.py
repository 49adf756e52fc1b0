"""Construction of the API client shared by transcription and correction."""

from __future__ import annotations

import httpx
from openai import OpenAI

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


def create_client(api_key: str, timeout: float = 60.0, base_url: str = GROQ_BASE_URL) -> OpenAI:
    # retries are owned by whspr.retry, one attempt per call here
    return OpenAI(
        api_key=api_key,
        base_url=base_url,
        timeout=httpx.Timeout(timeout, connect=10.0),
        max_retries=0,
    )
