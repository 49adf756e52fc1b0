"""Settings loading and credential checks."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional

from .models import TRANSCRIPTION_MODELS, Config

logger = logging.getLogger(__name__)

WHSPR_DIR = Path.home() / ".whspr"
SETTINGS_PATH = WHSPR_DIR / "settings.json"
API_KEY_ENV = "GROQ_API_KEY"

# settings.json has always used camelCase keys
KEY_ALIASES = {
    "transcriptionModel": "transcription_model",
    "systemPrompt": "system_prompt",
    "customPromptPrefix": "custom_prompt_prefix",
    "transcriptionPrefix": "transcription_prefix",
    "correctionModel": "correction_model",
    "apiTimeout": "api_timeout",
}


class ConfigError(RuntimeError):
    """Raised when configuration cannot be resolved."""


class MissingCredentialError(ConfigError):
    """Raised when the transcription service key is not available."""


def load_config(path: Optional[Path] = None) -> Config:
    """Merge the settings file over the built-in defaults.

    A missing, unreadable or malformed file yields the defaults. Individual values
    of the wrong type fall back to their default rather than failing the run.
    """

    payload = _read_settings(path or SETTINGS_PATH)
    defaults = Config()
    known = {f.name for f in fields(Config)}
    values: Dict[str, Any] = {}

    for raw_key, value in payload.items():
        key = KEY_ALIASES.get(raw_key, raw_key)
        if key not in known:
            logger.debug("Ignoring unknown setting %s", raw_key)
            continue
        coerced = _coerce(key, value, getattr(defaults, key))
        if coerced is not None:
            values[key] = coerced

    return Config(**values)


def require_api_key(environ: Optional[Dict[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    key = (env.get(API_KEY_ENV) or "").strip()
    if not key:
        raise MissingCredentialError(f"{API_KEY_ENV} environment variable is not set")
    return key


def _read_settings(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("Ignoring unreadable settings file %s: %s", path, exc)
        return {}
    if not isinstance(payload, dict):
        logger.debug("Ignoring settings file %s: expected a JSON object", path)
        return {}
    return payload


def _coerce(key: str, value: Any, default: Any) -> Any:
    if value is None:
        return None
    if isinstance(default, bool):
        return value if isinstance(value, bool) else _reject(key, value)
    if isinstance(default, float):
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            return float(value)
        return _reject(key, value)
    if not isinstance(value, str):
        return _reject(key, value)
    if key == "transcription_model" and value not in TRANSCRIPTION_MODELS:
        return _reject(key, value)
    if key in {"language", "correction_model"} and not value.strip():
        return _reject(key, value)
    return value


def _reject(key: str, value: Any) -> None:
    logger.debug("Invalid value %r for setting %s; using default", value, key)
    return None
