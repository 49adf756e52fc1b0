"""Local file handling for recordings that need to outlive a failed run."""

from __future__ import annotations

import shutil
import time
from pathlib import Path
from typing import Optional

from .config import WHSPR_DIR

RECORDINGS_DIR = WHSPR_DIR / "recordings"


class StorageError(RuntimeError):
    """Raised when a recording cannot be moved into the recovery directory."""


def preserve_recording(path: Path, directory: Optional[Path] = None) -> Path:
    """Move ``path`` into the recovery directory and return its new location."""

    directory = directory or RECORDINGS_DIR
    try:
        directory.mkdir(parents=True, exist_ok=True)
        destination = _unique_destination(directory, path.suffix)
        # temp files often live on a different filesystem than the home directory
        shutil.move(str(path), str(destination))
    except OSError as exc:
        raise StorageError(f"Failed to save recording {path}: {exc}") from exc
    return destination


def discard(path: Path) -> None:
    path.unlink(missing_ok=True)


def _unique_destination(directory: Path, suffix: str) -> Path:
    stem = f"recording-{int(time.time() * 1000)}"
    candidate = directory / f"{stem}{suffix}"
    counter = 1
    while candidate.exists():
        candidate = directory / f"{stem}-{counter}{suffix}"
        counter += 1
    return candidate
