"""Client constants resolved from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes"}


@dataclass(slots=True, frozen=True)
class ClientConfig:
    server_url: str = field(default_factory=lambda: os.getenv("PREPVIEW_SERVER_URL", "http://127.0.0.1:8000"))
    data_dir: Path = field(default_factory=lambda: Path(os.getenv("PREPVIEW_DATA_DIR", "~/.prepview")).expanduser())
    sample_rate: int = field(default_factory=lambda: _env_int("PREPVIEW_SAMPLE_RATE", 16000))
    channels: int = field(default_factory=lambda: _env_int("PREPVIEW_CHANNELS", 1))
    input_device: str | None = field(default_factory=lambda: os.getenv("PREPVIEW_INPUT_DEVICE"))
    slice_ms: int = field(default_factory=lambda: _env_int("PREPVIEW_SLICE_MS", 500))
    sample_interval_ms: int = field(default_factory=lambda: _env_int("PREPVIEW_SAMPLE_INTERVAL_MS", 16))
    silence_threshold: float = field(default_factory=lambda: _env_float("PREPVIEW_SILENCE_THRESHOLD", 20.0))
    silence_window_ms: int = field(default_factory=lambda: _env_int("PREPVIEW_SILENCE_WINDOW_MS", 1500))
    settle_delay_ms: int = field(default_factory=lambda: _env_int("PREPVIEW_SETTLE_DELAY_MS", 500))
    fallback_flush_ms: int = field(default_factory=lambda: _env_int("PREPVIEW_FALLBACK_FLUSH_MS", 5000))
    preroll_chunks: int = field(default_factory=lambda: _env_int("PREPVIEW_PREROLL_CHUNKS", 1))
    enable_analyser: bool = field(default_factory=lambda: _env_flag("PREPVIEW_ENABLE_ANALYSER", True))
    fft_size: int = field(default_factory=lambda: _env_int("PREPVIEW_FFT_SIZE", 256))
    analyser_smoothing: float = 0.8
    analyser_min_db: float = -100.0
    analyser_max_db: float = -30.0
    http_timeout: float = field(default_factory=lambda: _env_float("PREPVIEW_HTTP_TIMEOUT", 30.0))
    http_retries: int = field(default_factory=lambda: _env_int("PREPVIEW_HTTP_RETRIES", 1))
    history_limit: int = field(default_factory=lambda: _env_int("PREPVIEW_HISTORY_LIMIT", 6))
    log_limit: int = 200

    @property
    def silence_window(self) -> float:
        return self.silence_window_ms / 1000.0

    @property
    def settle_delay(self) -> float:
        return self.settle_delay_ms / 1000.0

    @property
    def fallback_interval(self) -> float:
        return self.fallback_flush_ms / 1000.0

    @property
    def sample_interval(self) -> float:
        return self.sample_interval_ms / 1000.0

    @property
    def context_path(self) -> Path:
        return self.data_dir / "context.json"


CONFIG = ClientConfig()
