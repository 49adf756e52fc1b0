"""Custom vocabulary documents used to steer the correction step."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from .config import WHSPR_DIR
from .models import CustomVocabulary

logger = logging.getLogger(__name__)

VOCABULARY_FILENAMES = ("WHSPR.md", "WHISPER.md")
SEPARATOR = "\n\n"


def load_custom_vocabulary(
    global_dir: Optional[Path] = None,
    project_dir: Optional[Path] = None,
) -> CustomVocabulary:
    """Combine the global and project vocabulary documents, global first."""

    global_dir = global_dir or WHSPR_DIR
    project_dir = project_dir or Path.cwd()

    parts: List[str] = []
    sources: List[str] = []
    for directory, label_prefix in ((global_dir, "~/.whspr/"), (project_dir, "./")):
        found = _read_first(directory)
        if found is None or not found[1]:
            continue
        name, content = found
        parts.append(content)
        sources.append(f"{label_prefix}{name}")

    if not parts:
        return CustomVocabulary()
    return CustomVocabulary(text=SEPARATOR.join(parts), sources=sources)


def _read_first(directory: Path) -> Optional[Tuple[str, str]]:
    for name in VOCABULARY_FILENAMES:
        path = directory / name
        if not path.is_file():
            continue
        try:
            return name, path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable vocabulary file %s: %s", path, exc)
            return None
    return None
