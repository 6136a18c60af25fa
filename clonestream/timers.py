"""Lightweight wall-clock timers keyed by file name."""

from __future__ import annotations

import threading
import time
from typing import Dict


class Timers:
    """Records labelled durations in nanoseconds per key."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started: Dict[str, Dict[str, int]] = {}
        self._durations: Dict[str, Dict[str, int]] = {}

    def start_timer(self, key: str, label: str) -> None:
        with self._lock:
            self._started.setdefault(key, {})[label] = time.perf_counter_ns()

    def end_timer(self, key: str, label: str) -> None:
        now = time.perf_counter_ns()
        with self._lock:
            started = self._started.get(key, {}).pop(label, None)
            if started is None:
                return
            self._durations.setdefault(key, {})[label] = now - started

    def get_timers(self, key: str) -> Dict[str, int]:
        with self._lock:
            return dict(self._durations.get(key, {}))

    def discard(self, key: str) -> None:
        with self._lock:
            self._started.pop(key, None)
            self._durations.pop(key, None)


__all__ = ["Timers"]
