"""Push-to-talk capture: one segment per start/stop pair."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from ..audio.device import DeviceAccessError, RecorderConstructionError, acquire_microphone
from ..audio.recorder import SegmentRecorder
from ..audio.types import AudioSegment, ManualMode
from ..config import CONFIG, ClientConfig
from ..services.logger import LogBuffer


class ManualCaptureController:
    def __init__(
        self,
        process: Callable[[AudioSegment], object],
        logger: LogBuffer,
        *,
        config: ClientConfig = CONFIG,
        device_factory: Optional[Callable[[], object]] = None,
        recorder_factory: Optional[Callable[[object], SegmentRecorder]] = None,
    ) -> None:
        self.process = process
        self.logger = logger
        self.config = config
        self._device_factory = device_factory or (lambda: acquire_microphone(config))
        self._recorder_factory = recorder_factory or self._default_recorder
        self._recorder: SegmentRecorder | None = None
        self._lock = threading.Lock()
        self.mode = ManualMode.IDLE

    def start_manual_recording(self) -> bool:
        with self._lock:
            if self.mode is not ManualMode.IDLE:
                return False
            self.mode = ManualMode.RECORDING
        try:
            microphone = self._device_factory()
        except DeviceAccessError as exc:
            return self._abort(f"Failed to access your microphone. Please check permissions. ({exc})")
        except RecorderConstructionError as exc:
            return self._abort(f"Recording is not supported here: {exc}")
        try:
            recorder = self._recorder_factory(microphone)
            recorder.start()
        except RecorderConstructionError as exc:
            microphone.close()
            return self._abort(f"Recording is not supported here: {exc}")
        microphone.on_ended = self._device_lost
        self._recorder = recorder
        self.logger.add("Recording question")
        return True

    def stop_manual_recording(self) -> Optional[AudioSegment]:
        with self._lock:
            if self.mode is not ManualMode.RECORDING or self._recorder is None:
                return None
            self.mode = ManualMode.PROCESSING
            recorder, self._recorder = self._recorder, None
        try:
            segment = recorder.stop()
            if segment is None:
                self.logger.add("Nothing was recorded")
                return None
            self.process(segment)
            return segment
        finally:
            self.mode = ManualMode.IDLE

    def _abort(self, message: str) -> bool:
        self.logger.warn(message)
        self.mode = ManualMode.IDLE
        return False

    def _device_lost(self, reason: str) -> None:
        if self.mode is ManualMode.RECORDING:
            self.logger.warn(f"Microphone disconnected ({reason}); stop recording to keep what was captured")

    def _default_recorder(self, microphone) -> SegmentRecorder:
        return SegmentRecorder(
            microphone,
            self.logger,
            sample_rate=self.config.sample_rate,
            channels=self.config.channels,
            slice_ms=self.config.slice_ms,
        )


__all__ = ["ManualCaptureController"]
