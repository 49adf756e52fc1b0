from __future__ import annotations

import logging
from collections import deque

import numpy as np

BARS = "▁▂▃▄▅▆▇█"


class LevelMeter:
    """Rolling input level rendered as a row of block glyphs."""

    def __init__(self, history_size: int = 24) -> None:
        self._history: deque[float] = deque(maxlen=history_size)
        self._max_amplitude = 0.1

    def update(self, audio_chunk: np.ndarray) -> None:
        try:
            if len(audio_chunk.shape) > 1:
                audio_chunk = audio_chunk.flatten()
            if audio_chunk.size == 0:
                return

            rms = float(np.sqrt(np.mean(audio_chunk.astype(np.float64) ** 2)))
            self._max_amplitude = max(self._max_amplitude, rms, 0.01)
            normalized = min(rms / self._max_amplitude, 1.0)
            self._history.append(normalized)
        except Exception as exc:
            logging.warning("Failed to update level meter: %s", exc)

    @property
    def levels(self) -> list[float]:
        return list(self._history)

    def render(self) -> str:
        # the audio callback appends from another thread
        levels = list(self._history)
        width = self._history.maxlen or 0
        glyphs = [BARS[min(int(level * len(BARS)), len(BARS) - 1)] for level in levels]
        padding = BARS[0] * (width - len(glyphs))
        return padding + "".join(glyphs)
