"""WAV to MP3 conversion through ffmpeg."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class ConversionError(RuntimeError):
    """Raised when the raw recording cannot be encoded for upload."""

    def __init__(self, message: str, source: Path) -> None:
        super().__init__(message)
        self.source = source


def convert_to_mp3(wav_path: Path) -> Path:
    """Encode ``wav_path`` as MP3 next to it and remove the WAV on success."""

    ffmpeg = shutil.which("ffmpeg")
    if ffmpeg is None:
        raise ConversionError("ffmpeg is not installed or not on PATH", wav_path)

    mp3_path = wav_path.with_suffix(".mp3")
    command = [
        ffmpeg,
        "-y",
        "-loglevel",
        "error",
        "-i",
        str(wav_path),
        "-codec:a",
        "libmp3lame",
        "-qscale:a",
        "2",
        str(mp3_path),
    ]
    logger.debug("Running %s", " ".join(command))
    try:
        result = subprocess.run(command, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise ConversionError(f"Failed to run ffmpeg: {exc}", wav_path) from exc

    if result.returncode != 0:
        detail = (result.stderr or "").strip().splitlines()[-3:]
        mp3_path.unlink(missing_ok=True)
        raise ConversionError(
            f"ffmpeg exited with status {result.returncode}: {' '.join(detail) or 'no output'}",
            wav_path,
        )

    wav_path.unlink(missing_ok=True)
    return mp3_path
