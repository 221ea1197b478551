"""Background worker that turns handed-off segments into question text."""

from __future__ import annotations

import queue
import threading
from typing import Callable, Optional

from ..audio.types import AudioSegment
from .logger import LogBuffer
from .network import TranscriptionError, TranscriptionGateway

NO_SPEECH = "No speech detected. Please speak more clearly."
FAILED = "Failed to process audio. Please try again."


class TranscriptionWorker:
    def __init__(
        self,
        gateway: TranscriptionGateway,
        logger: LogBuffer,
        on_transcript: Callable[[str], None],
    ) -> None:
        self.gateway = gateway
        self.logger = logger
        self.on_transcript = on_transcript
        self._queue: "queue.Queue[AudioSegment]" = queue.Queue()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.busy = False

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=2)

    def submit(self, segment: AudioSegment) -> None:
        self._queue.put(segment)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def drain(self) -> int:
        """Process queued segments on the calling thread."""

        handled = 0
        while True:
            try:
                segment = self._queue.get_nowait()
            except queue.Empty:
                return handled
            self.process(segment)
            handled += 1

    def process(self, segment: AudioSegment) -> Optional[str]:
        self.busy = True
        try:
            text = self.gateway.transcribe(segment)
        except TranscriptionError as exc:
            self.logger.warn(f"{FAILED} ({exc})")
            return None
        finally:
            self.busy = False
        if not text.strip():
            self.logger.add(NO_SPEECH)
            return None
        self.logger.add(f"Question: {text}")
        try:
            self.on_transcript(text)
        except Exception as exc:
            self.logger.warn(f"Question handling failed: {exc}")
        return text

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                segment = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue
            self.process(segment)


__all__ = ["FAILED", "NO_SPEECH", "TranscriptionWorker"]
