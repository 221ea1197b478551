"""Byte frequency analysis of the live input, in the shape browsers expose it."""

from __future__ import annotations

import threading

import numpy as np

from ..config import CONFIG, ClientConfig


class AnalyserUnavailableError(Exception):
    """Frequency analysis cannot be attached to the current input."""


class FrequencyAnalyser:
    """Windowed FFT over the most recent ``fft_size`` samples, scaled to 0-255 bytes."""

    def __init__(
        self,
        fft_size: int = 256,
        *,
        smoothing: float = 0.8,
        min_db: float = -100.0,
        max_db: float = -30.0,
    ) -> None:
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 32, got {fft_size}")
        if max_db <= min_db:
            raise ValueError("max_db must be greater than min_db")
        self.fft_size = fft_size
        self.smoothing = max(0.0, min(float(smoothing), 1.0))
        self.min_db = min_db
        self.max_db = max_db
        self._window = np.blackman(fft_size).astype(np.float32)
        self._ring = np.zeros(fft_size, dtype=np.float32)
        self._previous = np.zeros(fft_size // 2, dtype=np.float32)
        self._lock = threading.Lock()
        self.closed = False

    @property
    def frequency_bin_count(self) -> int:
        return self.fft_size // 2

    def feed(self, block: np.ndarray) -> None:
        data = np.asarray(block)
        if data.ndim > 1:
            data = data[:, 0]
        if data.size == 0:
            return
        samples = data.astype(np.float32) / 32768.0
        with self._lock:
            if samples.size >= self.fft_size:
                self._ring = samples[-self.fft_size :].copy()
            else:
                self._ring = np.concatenate([self._ring[samples.size :], samples])

    def byte_frequency_data(self) -> np.ndarray:
        with self._lock:
            frame = self._ring.copy()
        spectrum = np.abs(np.fft.rfft(frame * self._window))[: self.frequency_bin_count] / self.fft_size
        smoothed = self.smoothing * self._previous + (1.0 - self.smoothing) * spectrum
        self._previous = smoothed.astype(np.float32)
        decibels = 20.0 * np.log10(np.maximum(smoothed, 1e-12))
        scaled = (decibels - self.min_db) * (255.0 / (self.max_db - self.min_db))
        return np.clip(scaled, 0, 255).astype(np.uint8)

    def close(self) -> None:
        self.closed = True


def create_analyser(microphone, config: ClientConfig = CONFIG) -> FrequencyAnalyser:
    """Attach an analyser to ``microphone`` or raise AnalyserUnavailableError."""

    if not config.enable_analyser:
        raise AnalyserUnavailableError("frequency analysis disabled by configuration")
    try:
        analyser = FrequencyAnalyser(
            config.fft_size,
            smoothing=config.analyser_smoothing,
            min_db=config.analyser_min_db,
            max_db=config.analyser_max_db,
        )
    except ValueError as exc:
        raise AnalyserUnavailableError(str(exc)) from exc
    microphone.subscribe(analyser.feed)
    return analyser


__all__ = ["AnalyserUnavailableError", "FrequencyAnalyser", "create_analyser"]
