"""Segment recorder slicing microphone input into fixed-size chunks."""

from __future__ import annotations

import threading
from typing import Callable, List, Optional

import numpy as np

from ..services.logger import LogBuffer
from .types import AudioChunk, AudioSegment

INACTIVE = "inactive"
RECORDING = "recording"
STOPPING = "stopping"


class SegmentRecorder:
    """Accumulates chunks from a microphone until the buffer is taken.

    ``halt()`` is two-staged: slicing stops at once, but the trailing partial
    slice is only delivered with the next device block, which then fires
    ``on_stopped``, or on ``finalize()``, which does not.
    """

    def __init__(
        self,
        microphone,
        logger: LogBuffer,
        *,
        sample_rate: int,
        channels: int = 1,
        slice_ms: int = 500,
        on_stopped: Callable[[], None] | None = None,
        on_segment: Callable[[AudioSegment], None] | None = None,
    ) -> None:
        self.microphone = microphone
        self.logger = logger
        self.sample_rate = sample_rate
        self.channels = channels
        self.slice_frames = max(1, int(sample_rate * slice_ms / 1000))
        self.on_stopped = on_stopped
        self.on_segment = on_segment
        self._lock = threading.Lock()
        self._pending = np.zeros((0, channels), dtype=np.int16)
        self._chunks: List[AudioChunk] = []
        self.state = INACTIVE
        self.closed = False

    @property
    def is_recording(self) -> bool:
        return self.state == RECORDING

    @property
    def is_stopping(self) -> bool:
        return self.state == STOPPING

    @property
    def chunk_count(self) -> int:
        with self._lock:
            return len(self._chunks)

    @property
    def has_chunks(self) -> bool:
        return self.chunk_count > 0

    def start(self) -> None:
        if self.closed:
            return
        with self._lock:
            if self.state != INACTIVE:
                return
            self.state = RECORDING
            self._pending = np.zeros((0, self.channels), dtype=np.int16)
        self.microphone.subscribe(self._on_block)

    def halt(self) -> bool:
        """Stop slicing. Returns False when nothing was recording."""

        with self._lock:
            if self.state != RECORDING:
                return False
            self.state = STOPPING
        return True

    def finalize(self) -> None:
        """Complete a pending halt without waiting for another device block.

        The caller finishes the flush itself, so ``on_stopped`` is not fired.
        """

        with self._lock:
            if self.state != STOPPING:
                return
            self._store_trailing()
            self.state = INACTIVE
        self.microphone.unsubscribe(self._on_block)

    def take_segment(self) -> AudioSegment:
        with self._lock:
            chunks, self._chunks = self._chunks, []
        return AudioSegment(self.sample_rate, self.channels, chunks)

    def trim(self, keep_last: int = 1) -> int:
        with self._lock:
            excess = len(self._chunks) - max(0, keep_last)
            if excess <= 0:
                return 0
            del self._chunks[:excess]
        return excess

    def flush(self, *, restart: bool = False) -> Optional[AudioSegment]:
        """Stop, hand the accumulated segment to ``on_segment`` and optionally restart."""

        if self.closed:
            return None
        if self.halt() or self.state == STOPPING:
            self.finalize()
        segment = self.take_segment()
        if not segment.is_empty and self.on_segment:
            self.on_segment(segment)
        if restart:
            self.start()
        return None if segment.is_empty else segment

    def release(self) -> None:
        if self.closed:
            return
        self.closed = True
        with self._lock:
            self.state = INACTIVE
        self.microphone.unsubscribe(self._on_block)
        self.microphone.close()
        self.logger.add("Microphone released")

    def stop(self) -> Optional[AudioSegment]:
        """Final flush, then release the device for good."""

        segment = self.flush(restart=False)
        self.release()
        return segment

    def _on_block(self, block: np.ndarray) -> None:
        finished = False
        with self._lock:
            if self.state == INACTIVE:
                return
            data = np.asarray(block, dtype=np.int16).reshape(-1, self.channels)
            self._pending = np.concatenate([self._pending, data])
            if self.state == RECORDING:
                self._store_full_slices()
            else:
                self._store_trailing()
                self.state = INACTIVE
                finished = True
        if finished:
            self._after_halt()

    def _store_full_slices(self) -> None:
        while len(self._pending) >= self.slice_frames:
            piece = self._pending[: self.slice_frames]
            self._pending = self._pending[self.slice_frames :]
            self._store(piece)

    def _store_trailing(self) -> None:
        self._store_full_slices()
        if len(self._pending):
            self._store(self._pending)
        self._pending = np.zeros((0, self.channels), dtype=np.int16)

    def _store(self, piece: np.ndarray) -> None:
        if not len(piece):
            return
        self._chunks.append(AudioChunk(piece.astype("<i2", copy=False).tobytes(), len(piece)))

    def _after_halt(self) -> None:
        self.microphone.unsubscribe(self._on_block)
        if self.on_stopped:
            self.on_stopped()


__all__ = ["SegmentRecorder"]
