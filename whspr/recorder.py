"""Microphone capture driven from the terminal."""

from __future__ import annotations

import logging
import os
import select
import sys
import tempfile
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Optional, TextIO

import numpy as np
from rich.console import Console
from rich.live import Live
from rich.text import Text

from .display import format_duration
from .models import Recording
from .waveform import LevelMeter

MAX_RECORDING_SECONDS = 15 * 60
STOP_KEYS = {"\r", "\n", " "}
ESC = "\x1b"
CANCEL_KEYS = {ESC, "q", "Q", "\x03"}
ESCAPE_SEQUENCE_WAIT = 0.05


class RecordingError(RuntimeError):
    """Raised when audio could not be captured."""


class RecordingCancelled(RuntimeError):
    """Raised when the user aborts a recording."""

    def __init__(self) -> None:
        super().__init__("cancelled")


class KeyReader:
    """Poll single key presses from stdin without waiting for Enter.

    When stdin is not a terminal, reads fall back to whole lines.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream or sys.stdin
        self._fd: Optional[int] = None
        self._saved: Any = None
        self._eof = False

    def __enter__(self) -> "KeyReader":
        try:
            import termios
            import tty
        except ImportError:  # pragma: no cover - non-POSIX platforms
            return self

        if self._stream.isatty():
            self._fd = self._stream.fileno()
            self._saved = termios.tcgetattr(self._fd)
            tty.setcbreak(self._fd)
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._fd is not None and self._saved is not None:
            import termios

            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)
        self._fd = None
        self._saved = None

    def read(self, timeout: float) -> Optional[str]:
        if self._eof:
            time.sleep(timeout)
            return None
        ready, _, _ = select.select([self._stream], [], [], timeout)
        if not ready:
            return None
        if self._fd is not None:
            return read_key(self._fd)
        line = self._stream.readline()
        if line == "":
            self._eof = True
            return None
        if line.startswith(ESC) and len(line.rstrip("\n")) > 1:
            return None
        return line[:1] or "\n"


def read_key(fd: int) -> Optional[str]:
    """Read one key press from ``fd``, swallowing terminal escape sequences.

    Arrow and function keys arrive as Esc followed by more bytes; those return
    ``None`` so only a lone Esc counts as a cancel.
    """

    data = os.read(fd, 1)
    if data == ESC.encode():
        ready, _, _ = select.select([fd], [], [], ESCAPE_SEQUENCE_WAIT)
        if ready:
            os.read(fd, 32)
            return None
    return data.decode(errors="ignore")


class AudioRecorder:
    """Stream audio from the default microphone into a temporary WAV file."""

    def __init__(
        self,
        samplerate: int = 16000,
        channels: int = 1,
        max_seconds: float = MAX_RECORDING_SECONDS,
        key_reader: Callable[[], KeyReader] = KeyReader,
        input_stream: Optional[Callable[..., Any]] = None,
    ) -> None:
        if input_stream is None:
            try:
                import sounddevice as sd  # type: ignore
            except Exception as exc:  # pragma: no cover - depends on PortAudio
                raise RecordingError(
                    "The `sounddevice` package and PortAudio are required for recording."
                ) from exc
            input_stream = sd.InputStream

        self._input_stream = input_stream
        self._samplerate = samplerate
        self._channels = channels
        self._max_seconds = max_seconds
        self._key_reader = key_reader

    def record(self, console: Console) -> Recording:
        """Record until a stop key, a cancel key or the duration ceiling."""

        frames: List[np.ndarray] = []
        meter = LevelMeter()

        def callback(indata, frame_count, time_info, status) -> None:
            if status:
                logging.debug("Recorder status: %s", status)
            chunk = indata.copy()
            frames.append(chunk)
            meter.update(chunk)

        try:
            stream = self._input_stream(
                samplerate=self._samplerate,
                channels=self._channels,
                dtype="float32",
                callback=callback,
            )
        except Exception as exc:
            raise RecordingError(f"Could not open the audio input device: {exc}") from exc

        started_at = datetime.now()
        start = time.monotonic()
        cancelled = False
        with stream, self._key_reader() as keys, Live(
            self._status_line(0.0, meter), console=console, refresh_per_second=10, transient=True
        ) as live:
            try:
                while True:
                    elapsed = time.monotonic() - start
                    if elapsed >= self._max_seconds:
                        logging.info("Maximum recording length reached")
                        break
                    key = keys.read(0.1)
                    if key in CANCEL_KEYS:
                        cancelled = True
                        break
                    if key in STOP_KEYS:
                        break
                    live.update(self._status_line(elapsed, meter))
            except KeyboardInterrupt:
                cancelled = True

        if cancelled:
            raise RecordingCancelled()
        if not frames:
            raise RecordingError("No audio was captured.")

        audio = np.concatenate(frames, axis=0)
        path = self._write(audio)
        return Recording(
            path=path,
            duration_seconds=len(audio) / self._samplerate,
            started_at=started_at,
        )

    def _write(self, audio: np.ndarray) -> Path:
        try:
            import soundfile as sf  # type: ignore
        except Exception as exc:  # pragma: no cover - depends on libsndfile
            raise RecordingError("The `soundfile` package is required to write audio files.") from exc

        fd, filename = tempfile.mkstemp(suffix=".wav", prefix="whspr-")
        os.close(fd)
        path = Path(filename)
        sf.write(path, audio, self._samplerate)
        return path

    def _status_line(self, elapsed: float, meter: LevelMeter) -> Text:
        line = Text()
        line.append("● ", style="bold red")
        line.append(f"Recording {format_duration(int(elapsed))} ", style="blue")
        line.append(meter.render(), style="cyan")
        line.append("  Enter to stop · Esc to cancel", style="dim")
        return line
