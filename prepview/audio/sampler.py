"""Loudness sampling on top of a frequency analyser."""

from __future__ import annotations

import threading
from typing import Iterator

import numpy as np


def average_loudness(frequency_data) -> float:
    """Mean of a byte frequency buffer (0-255)."""

    data = np.asarray(frequency_data, dtype=np.float32)
    if data.size == 0:
        return 0.0
    return float(data.mean())


class SignalSampler:
    """Lazy, non-restartable stream of loudness values, one per tick.

    The stream ends when :meth:`stop` is called or the analyser is closed.
    """

    def __init__(self, analyser, *, interval: float = 0.016) -> None:
        self.analyser = analyser
        self.interval = max(0.0, float(interval))
        self._stop = threading.Event()
        self._started = False

    def __iter__(self) -> Iterator[float]:
        if self._started:
            raise RuntimeError("SignalSampler cannot be restarted")
        self._started = True
        return self._generate()

    def _generate(self) -> Iterator[float]:
        while not self._stop.is_set() and not self.analyser.closed:
            yield average_loudness(self.analyser.byte_frequency_data())
            if self._stop.wait(self.interval):
                return

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()


__all__ = ["SignalSampler", "average_loudness"]
