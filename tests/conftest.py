"""Pytest configuration helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


def _ensure_repo_on_path() -> None:
    """Allow tests to import from repo modules without setting PYTHONPATH."""
    repo_root = Path(__file__).resolve().parents[1]
    path_str = str(repo_root)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


_ensure_repo_on_path()

from prepview.config import ClientConfig  # noqa: E402
from prepview.services.logger import LogBuffer  # noqa: E402


class ManualClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMicrophone:
    """Stands in for an open input stream; tests push blocks by hand."""

    def __init__(self) -> None:
        self.listeners = []
        self.closed = False
        self.on_ended = None

    def subscribe(self, listener) -> None:
        if listener not in self.listeners:
            self.listeners.append(listener)

    def unsubscribe(self, listener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def push(self, block: np.ndarray) -> None:
        for listener in list(self.listeners):
            listener(block)

    def end(self, reason: str = "device unplugged") -> None:
        if self.on_ended:
            self.on_ended(reason)

    def close(self) -> None:
        self.closed = True
        self.listeners.clear()


def tone(frames: int, amplitude: int = 8000) -> np.ndarray:
    t = np.arange(frames)
    return (np.sin(2 * np.pi * t / 20) * amplitude).astype(np.int16).reshape(-1, 1)


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def microphone() -> FakeMicrophone:
    return FakeMicrophone()


@pytest.fixture()
def log_buffer() -> LogBuffer:
    return LogBuffer(limit=100)


@pytest.fixture()
def capture_config(tmp_path) -> ClientConfig:
    # 1 kHz keeps blocks small: one 500 ms chunk is 500 frames.
    return ClientConfig(
        data_dir=tmp_path,
        sample_rate=1000,
        channels=1,
        slice_ms=500,
        silence_threshold=20.0,
        silence_window_ms=1500,
        settle_delay_ms=500,
        fallback_flush_ms=5000,
        enable_analyser=True,
    )


def make_pdf(text: str) -> bytes:
    """Single-page PDF showing ``text`` in Helvetica."""

    content = f"BT /F1 24 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    return bytes(out)
