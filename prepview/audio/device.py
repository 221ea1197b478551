"""Microphone acquisition through sounddevice."""

from __future__ import annotations

import threading
from typing import Callable, List, Optional

import numpy as np

from ..config import CONFIG, ClientConfig

BlockListener = Callable[[np.ndarray], None]


class DeviceAccessError(Exception):
    """Microphone permission was denied or the input device is unusable."""


class RecorderConstructionError(Exception):
    """The platform lacks the capture capability a recorder needs."""


def _try_import_sounddevice():
    try:
        import sounddevice as sd  # type: ignore

        return sd
    except Exception:
        return None


class Microphone:
    """One open input stream fanning int16 blocks out to its subscribers."""

    def __init__(
        self,
        sample_rate: int,
        channels: int = 1,
        *,
        device: str | int | None = None,
        blocksize: int = 0,
        sd_module=None,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.device = device
        self.blocksize = blocksize
        self._sd = sd_module if sd_module is not None else _try_import_sounddevice()
        self._stream = None
        self._listeners: List[BlockListener] = []
        self._lock = threading.Lock()
        self.on_ended: Optional[Callable[[str], None]] = None
        self.closed = False

    def open(self) -> "Microphone":
        if self._sd is None:
            raise RecorderConstructionError("Audio capture is not supported on this platform")
        try:
            self._stream = self._sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=self.blocksize,
                device=self.device,
                callback=self._callback,
                finished_callback=self._finished,
            )
            self._stream.start()
        except Exception as exc:
            self._stream = None
            self.closed = True
            raise DeviceAccessError(str(exc)) from exc
        return self

    def subscribe(self, listener: BlockListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: BlockListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        with self._lock:
            self._listeners.clear()
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()

    def _callback(self, indata, frames, time_info, status) -> None:  # noqa: ARG002
        block = np.array(indata, dtype=np.int16, copy=True).reshape(-1, self.channels)
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(block)

    def _finished(self) -> None:
        if self.closed:
            return
        if self.on_ended:
            self.on_ended("input stream ended")


def acquire_microphone(config: ClientConfig = CONFIG) -> Microphone:
    """Open the configured input device or raise DeviceAccessError."""

    device: str | int | None = config.input_device
    if isinstance(device, str) and device.isdigit():
        device = int(device)
    microphone = Microphone(config.sample_rate, config.channels, device=device)
    return microphone.open()


__all__ = [
    "DeviceAccessError",
    "Microphone",
    "RecorderConstructionError",
    "acquire_microphone",
]
