"""Bounded, user-visible activity log mirrored to the stdlib logger."""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime
from typing import Callable, Deque, List, Optional

LOGGER = logging.getLogger("prepview")


class LogBuffer:
    """Keeps the most recent notices so a front end can render them."""

    def __init__(self, limit: int = 200, listener: Optional[Callable[[str], None]] = None) -> None:
        self._lines: Deque[str] = deque(maxlen=max(1, limit))
        self._lock = threading.Lock()
        self.listener = listener

    def add(self, message: str, *, level: int = logging.INFO) -> None:
        line = f"[{datetime.now().strftime('%H:%M:%S')}] {message}"
        with self._lock:
            self._lines.append(line)
        LOGGER.log(level, message)
        if self.listener:
            self.listener(line)

    def warn(self, message: str) -> None:
        self.add(message, level=logging.WARNING)

    def get(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    def contains(self, fragment: str) -> bool:
        return any(fragment in line for line in self.get())

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()


__all__ = ["LogBuffer"]
