"""Silence-aware segmentation: decides when a spoken question has ended."""

from __future__ import annotations

from typing import Callable

from ..config import CONFIG, ClientConfig
from ..services.logger import LogBuffer
from .types import AudioSegment, SegmenterState


class AutoSegmenter:
    """State machine driving flush-and-restart of a session's recorder.

    One call per input (sample, recorder stop, timer check); each call causes
    at most one transition. Timers are deadlines stored on the session and
    are only honoured while that session is alive.
    """

    def __init__(
        self,
        handoff: Callable[[AudioSegment], None],
        logger: LogBuffer,
        config: ClientConfig = CONFIG,
    ) -> None:
        self.handoff = handoff
        self.logger = logger
        self.threshold = config.silence_threshold
        self.silence_window = config.silence_window
        self.settle_delay = config.settle_delay
        self.fallback_interval = config.fallback_interval
        self.preroll_chunks = config.preroll_chunks
        self.state = SegmenterState.SPEAKING
        self.flush_count = 0

    def begin(self, session, now: float) -> None:
        self.state = SegmenterState.SPEAKING
        session.cancel_timers()
        session.awaiting_speech = False
        if session.fallback:
            session.fallback_deadline = now + self.fallback_interval

    def on_sample(self, session, level: float, now: float) -> None:
        if not session.alive or self.state is SegmenterState.FLUSHING:
            return
        if level > self.threshold:
            session.awaiting_speech = False
            session.silence_deadline = None
            self.state = SegmenterState.SPEAKING
            return
        if session.awaiting_speech:
            # Previous question already flushed; keep only pre-roll until speech resumes.
            session.recorder.trim(self.preroll_chunks)
            return
        if session.silence_deadline is None and session.recorder.has_chunks:
            session.silence_deadline = now + self.silence_window
            self.state = SegmenterState.SILENCE_TIMER_ARMED

    def on_recorder_stopped(self, session, now: float) -> None:
        if not session.alive or self.state is not SegmenterState.FLUSHING or session.settle_deadline is None:
            return
        # Only the halt still in progress may complete the flush.
        if session.recorder.is_stopping:
            return
        self._complete_flush(session)

    def on_timers(self, session, now: float) -> None:
        if not session.alive:
            return
        if session.settle_deadline is not None:
            if now >= session.settle_deadline:
                session.recorder.finalize()
                self._complete_flush(session)
            return
        if session.silence_deadline is not None and now >= session.silence_deadline:
            session.silence_deadline = None
            session.awaiting_speech = True
            self.logger.add("Silence detected; processing question")
            self._begin_flush(session, now)
            return
        if session.fallback_deadline is not None and now >= session.fallback_deadline:
            session.fallback_deadline = now + self.fallback_interval
            if session.recorder.has_chunks:
                self._begin_flush(session, now)

    def shutdown(self, session, now: float) -> None:
        """Cancel pending timers and start the final flush of the session."""

        session.listening = False
        session.silence_deadline = None
        session.fallback_deadline = None
        if self.state is not SegmenterState.FLUSHING:
            self._begin_flush(session, now)

    @property
    def flushing(self) -> bool:
        return self.state is SegmenterState.FLUSHING

    def _begin_flush(self, session, now: float) -> None:
        self.state = SegmenterState.FLUSHING
        if session.recorder.halt():
            session.settle_deadline = now + self.settle_delay
        else:
            self._complete_flush(session)

    def _complete_flush(self, session) -> None:
        session.settle_deadline = None
        segment = session.recorder.take_segment()
        if not segment.is_empty:
            self.flush_count += 1
            self.logger.add(f"Segment ready ({len(segment.chunks)} chunks, {segment.duration:.1f}s)")
            self.handoff(segment)
        if session.listening:
            session.recorder.start()
        self.state = SegmenterState.SPEAKING


__all__ = ["AutoSegmenter"]
