"""Dataclasses and state enums shared across the capture pipeline."""

from __future__ import annotations

import base64
import io
from dataclasses import dataclass, field
from enum import Enum
from typing import List

import numpy as np
import soundfile as sf


class AutoMode(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"


class ManualMode(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PROCESSING = "processing"


class SegmenterState(str, Enum):
    SPEAKING = "speaking"
    SILENCE_TIMER_ARMED = "silence_timer_armed"
    FLUSHING = "flushing"


@dataclass(slots=True, frozen=True)
class AudioChunk:
    """One fixed-size slice of little-endian int16 PCM."""

    data: bytes
    frames: int


@dataclass(slots=True)
class AudioSegment:
    """Chunks captured between two silence boundaries (or one manual start/stop)."""

    sample_rate: int
    channels: int = 1
    chunks: List[AudioChunk] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.chunks

    @property
    def frames(self) -> int:
        return sum(chunk.frames for chunk in self.chunks)

    @property
    def duration(self) -> float:
        return self.frames / float(self.sample_rate)

    @property
    def mime_type(self) -> str:
        return "audio/flac"

    def pcm(self) -> np.ndarray:
        raw = b"".join(chunk.data for chunk in self.chunks)
        samples = np.frombuffer(raw, dtype="<i2")
        if self.channels > 1:
            return samples.reshape(-1, self.channels)
        return samples

    def encode(self) -> bytes:
        buffer = io.BytesIO()
        sf.write(buffer, self.pcm(), self.sample_rate, format="FLAC", subtype="PCM_16")
        return buffer.getvalue()

    def to_base64(self) -> str:
        return base64.b64encode(self.encode()).decode("ascii")
