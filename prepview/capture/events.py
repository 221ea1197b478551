"""Discrete inputs consumed by the auto-listen controller loop.

Every event carries the generation of the session that produced it so a
late event from a torn-down session is dropped instead of acting on
released resources.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class LoudnessSample:
    """Average byte loudness (0-255) read by the sampler."""

    generation: int
    level: float


@dataclass(slots=True, frozen=True)
class RecorderStopped:
    """The recorder delivered its final chunk after a halt."""

    generation: int


@dataclass(slots=True, frozen=True)
class DeviceLost:
    generation: int
    reason: str


@dataclass(slots=True, frozen=True)
class StopRequested:
    generation: int


CaptureEvent = LoudnessSample | RecorderStopped | DeviceLost | StopRequested
