"""One open microphone acquisition and everything derived from it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..audio.analyser import FrequencyAnalyser
from ..audio.recorder import SegmentRecorder
from ..audio.sampler import SignalSampler


@dataclass(eq=False)
class CaptureSession:
    """Owns the device handle, the recorder, the analysis graph and the timer deadlines.

    Only the controller that created a session touches it; deadlines are
    absolute clock values and ``None`` means the timer is not armed.
    """

    generation: int
    microphone: object
    recorder: SegmentRecorder
    analyser: Optional[FrequencyAnalyser] = None
    sampler: Optional[SignalSampler] = None
    listening: bool = True
    awaiting_speech: bool = False
    silence_deadline: Optional[float] = None
    settle_deadline: Optional[float] = None
    fallback_deadline: Optional[float] = None
    closed: bool = False

    @property
    def fallback(self) -> bool:
        return self.analyser is None

    @property
    def alive(self) -> bool:
        return not self.closed

    def next_deadline(self) -> Optional[float]:
        pending = [
            value
            for value in (self.silence_deadline, self.settle_deadline, self.fallback_deadline)
            if value is not None
        ]
        return min(pending) if pending else None

    def cancel_timers(self) -> None:
        self.silence_deadline = None
        self.settle_deadline = None
        self.fallback_deadline = None

    def release(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.listening = False
        self.cancel_timers()
        if self.sampler is not None:
            self.sampler.stop()
        if self.analyser is not None:
            self.microphone.unsubscribe(self.analyser.feed)
            self.analyser.close()
        self.recorder.release()
