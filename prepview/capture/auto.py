"""Continuous listen-and-segment controller (auto mode)."""

from __future__ import annotations

import queue
import threading
import time
from typing import Callable, Optional

from ..audio.analyser import AnalyserUnavailableError, create_analyser
from ..audio.device import DeviceAccessError, RecorderConstructionError, acquire_microphone
from ..audio.recorder import SegmentRecorder
from ..audio.sampler import SignalSampler
from ..audio.segmenter import AutoSegmenter
from ..audio.types import AudioSegment, AutoMode
from ..config import CONFIG, ClientConfig
from ..services.logger import LogBuffer
from .events import CaptureEvent, DeviceLost, LoudnessSample, RecorderStopped, StopRequested
from .session import CaptureSession

IDLE_WAIT = 0.25


class AutoListenController:
    """Owns at most one CaptureSession and serialises every input through one queue.

    With ``background=True`` a loop thread drains the queue and a sampler
    thread feeds loudness samples. Without it, callers drive the machine
    through :meth:`pump`, which is what the tests do with a manual clock.
    """

    def __init__(
        self,
        handoff: Callable[[AudioSegment], None],
        logger: LogBuffer,
        *,
        config: ClientConfig = CONFIG,
        device_factory: Optional[Callable[[], object]] = None,
        recorder_factory: Optional[Callable[[object], SegmentRecorder]] = None,
        analyser_factory: Optional[Callable[[object], object]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.logger = logger
        self.config = config
        self.clock = clock
        self._device_factory = device_factory or (lambda: acquire_microphone(config))
        self._recorder_factory = recorder_factory or self._default_recorder
        self._analyser_factory = analyser_factory or (lambda microphone: create_analyser(microphone, config))
        self.segmenter = AutoSegmenter(handoff, logger, config)
        self._events: "queue.Queue[CaptureEvent]" = queue.Queue()
        self._session: Optional[CaptureSession] = None
        self._generation = 0
        self._loop_thread: threading.Thread | None = None
        self._sampler_thread: threading.Thread | None = None

    @property
    def mode(self) -> AutoMode:
        session = self._session
        if session is None:
            return AutoMode.IDLE
        if self.segmenter.flushing or not session.listening:
            return AutoMode.PROCESSING
        return AutoMode.LISTENING

    @property
    def session(self) -> Optional[CaptureSession]:
        return self._session

    def start_auto_listening(self, *, background: bool = True) -> bool:
        if self._session is not None:
            return False
        try:
            microphone = self._device_factory()
        except DeviceAccessError as exc:
            self.logger.warn(f"Failed to access your microphone. Please check permissions. ({exc})")
            return False
        except RecorderConstructionError as exc:
            self.logger.warn(f"Recording is not supported here: {exc}")
            return False
        try:
            recorder = self._recorder_factory(microphone)
        except RecorderConstructionError as exc:
            microphone.close()
            self.logger.warn(f"Recording is not supported here: {exc}")
            return False
        try:
            analyser = self._analyser_factory(microphone)
        except AnalyserUnavailableError as exc:
            analyser = None
            self.logger.add(f"Sound level analysis unavailable ({exc}); flushing on a fixed interval")

        self._generation += 1
        generation = self._generation
        session = CaptureSession(generation=generation, microphone=microphone, recorder=recorder, analyser=analyser)
        recorder.on_stopped = lambda: self.post(RecorderStopped(generation))
        microphone.on_ended = lambda reason: self.post(DeviceLost(generation, reason))
        if analyser is not None:
            session.sampler = SignalSampler(analyser, interval=self.config.sample_interval)

        recorder.start()
        self.segmenter.begin(session, self.clock())
        self._session = session
        self.logger.add("Listening for questions")
        if background:
            self._loop_thread = threading.Thread(target=self._run, daemon=True)
            self._loop_thread.start()
            if session.sampler is not None:
                self._sampler_thread = threading.Thread(
                    target=self._sample, args=(session.sampler, generation), daemon=True
                )
                self._sampler_thread.start()
        return True

    def stop_auto_listening(self) -> None:
        """Final flush and teardown; safe to call repeatedly or before a session exists."""

        session = self._session
        if session is None:
            return
        self.post(StopRequested(session.generation))
        thread = self._loop_thread
        if thread is not None and thread.is_alive():
            if thread is not threading.current_thread():
                thread.join(timeout=self.config.settle_delay + 2.0)
            return
        self.pump()

    def post(self, event: CaptureEvent) -> None:
        self._events.put(event)

    def feed_level(self, level: float) -> None:
        session = self._session
        if session is not None:
            self.post(LoudnessSample(session.generation, level))

    def pump(self) -> None:
        """Dispatch every queued event, then fire due timers."""

        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                break
            self._step(event)
        self._step(None)

    def _run(self) -> None:
        while self._session is not None:
            try:
                event = self._events.get(timeout=self._wait_timeout())
            except queue.Empty:
                event = None
            self._step(event)

    def _sample(self, sampler: SignalSampler, generation: int) -> None:
        for level in sampler:
            self.post(LoudnessSample(generation, level))

    def _wait_timeout(self) -> float:
        session = self._session
        deadline = session.next_deadline() if session is not None else None
        if deadline is None:
            return IDLE_WAIT
        return max(0.0, min(IDLE_WAIT, deadline - self.clock()))

    def _step(self, event: CaptureEvent | None) -> None:
        session = self._session
        if session is None:
            return
        now = self.clock()
        if event is not None and event.generation == session.generation:
            self._dispatch(session, event, now)
        self.segmenter.on_timers(session, now)
        if not session.listening and not self.segmenter.flushing:
            session.release()
            self._session = None
            self.logger.add("Stopped listening")

    def _dispatch(self, session: CaptureSession, event: CaptureEvent, now: float) -> None:
        if isinstance(event, LoudnessSample):
            self.segmenter.on_sample(session, event.level, now)
        elif isinstance(event, RecorderStopped):
            self.segmenter.on_recorder_stopped(session, now)
        elif isinstance(event, DeviceLost):
            if session.listening:
                self.logger.warn(f"Microphone disconnected ({event.reason}); listening stopped")
                self.segmenter.shutdown(session, now)
        elif isinstance(event, StopRequested):
            if session.listening:
                self.segmenter.shutdown(session, now)

    def _default_recorder(self, microphone) -> SegmentRecorder:
        return SegmentRecorder(
            microphone,
            self.logger,
            sample_rate=self.config.sample_rate,
            channels=self.config.channels,
            slice_ms=self.config.slice_ms,
        )


__all__ = ["AutoListenController"]
