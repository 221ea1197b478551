import pytest

from conftest import tone
from prepview.audio.device import DeviceAccessError, RecorderConstructionError
from prepview.audio.types import ManualMode
from prepview.capture.manual import ManualCaptureController


def _controller(capture_config, microphone, log_buffer, processed, **kwargs):
    return ManualCaptureController(
        processed.append,
        log_buffer,
        config=capture_config,
        device_factory=lambda: microphone,
        **kwargs,
    )


def test_start_stop_produces_one_segment(capture_config, microphone, log_buffer):
    processed = []
    controller = _controller(capture_config, microphone, log_buffer, processed)

    assert controller.start_manual_recording()
    assert controller.mode is ManualMode.RECORDING
    microphone.push(tone(1250))

    segment = controller.stop_manual_recording()

    assert processed == [segment]
    assert segment.frames == 1250
    assert [chunk.frames for chunk in segment.chunks] == [500, 500, 250]
    assert controller.mode is ManualMode.IDLE
    assert microphone.closed
    assert log_buffer.contains("Microphone released")


def test_stop_with_nothing_recorded_skips_processing(capture_config, microphone, log_buffer):
    processed = []
    controller = _controller(capture_config, microphone, log_buffer, processed)
    controller.start_manual_recording()

    assert controller.stop_manual_recording() is None
    assert processed == []
    assert controller.mode is ManualMode.IDLE
    assert log_buffer.contains("Nothing was recorded")


def test_stop_when_idle_is_noop(capture_config, microphone, log_buffer):
    processed = []
    controller = _controller(capture_config, microphone, log_buffer, processed)
    assert controller.stop_manual_recording() is None
    assert processed == []


def test_second_start_is_ignored(capture_config, microphone, log_buffer):
    controller = _controller(capture_config, microphone, log_buffer, [])
    assert controller.start_manual_recording()
    assert not controller.start_manual_recording()


def test_permission_denied_returns_to_idle(capture_config, log_buffer):
    def denied():
        raise DeviceAccessError("NotAllowedError")

    controller = ManualCaptureController([].append, log_buffer, config=capture_config, device_factory=denied)
    assert controller.start_manual_recording() is False
    assert controller.mode is ManualMode.IDLE
    assert log_buffer.contains("Please check permissions")


def test_recorder_construction_failure_closes_device(capture_config, microphone, log_buffer):
    def broken(_microphone):
        raise RecorderConstructionError("no encoder")

    controller = _controller(capture_config, microphone, log_buffer, [], recorder_factory=broken)
    assert controller.start_manual_recording() is False
    assert microphone.closed
    assert controller.mode is ManualMode.IDLE


def test_processing_failure_still_returns_to_idle(capture_config, microphone, log_buffer):
    def explode(_segment):
        raise RuntimeError("boom")

    controller = ManualCaptureController(
        explode, log_buffer, config=capture_config, device_factory=lambda: microphone
    )
    controller.start_manual_recording()
    microphone.push(tone(500))

    with pytest.raises(RuntimeError):
        controller.stop_manual_recording()
    assert controller.mode is ManualMode.IDLE


def test_device_loss_keeps_captured_audio(capture_config, microphone, log_buffer):
    processed = []
    controller = _controller(capture_config, microphone, log_buffer, processed)
    controller.start_manual_recording()
    microphone.push(tone(600))
    microphone.end()

    assert log_buffer.contains("Microphone disconnected")
    segment = controller.stop_manual_recording()
    assert segment.frames == 600
