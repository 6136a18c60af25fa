"""Timing history and corpus count sampling for the ingestion service."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Deque, Dict, List, Mapping, Optional

from .logging import get_logger, log_exception
from .stores import CloneStore, FileStore

DEFAULT_MAX_SAMPLES = 5000


@dataclass
class TimingSample:
    """Processing time for one accepted file."""

    name: str
    loc: int
    total_us: float
    match_us: float
    us_per_loc: float


class StatsHistory:
    """Bounded history of per-file timing samples."""

    def __init__(self, max_samples: int = DEFAULT_MAX_SAMPLES) -> None:
        self._lock = threading.Lock()
        self._samples: Deque[TimingSample] = deque(maxlen=max_samples)

    def record(self, name: str, loc: int, timers: Mapping[str, int]) -> Optional[TimingSample]:
        """Append a sample built from ``total`` and ``match`` timers, in nanoseconds."""
        if "total" not in timers or "match" not in timers:
            return None
        total_us = timers["total"] / 1000
        match_us = timers["match"] / 1000
        sample = TimingSample(
            name=name,
            loc=loc,
            total_us=total_us,
            match_us=match_us,
            us_per_loc=match_us / loc if loc else 0.0,
        )
        with self._lock:
            self._samples.append(sample)
        return sample

    def samples(self, limit: int | None = None) -> List[TimingSample]:
        with self._lock:
            samples = list(self._samples)
        return samples[-limit:] if limit else samples

    def averages(self) -> Dict[str, float]:
        samples = self.samples()
        if not samples:
            return {"total_us": 0.0, "match_us": 0.0, "us_per_loc": 0.0}
        count = len(samples)
        return {
            "total_us": sum(s.total_us for s in samples) / count,
            "match_us": sum(s.match_us for s in samples) / count,
            "us_per_loc": sum(s.us_per_loc for s in samples) / count,
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)


@dataclass
class CorpusSample:
    """Corpus counts at a point in time."""

    ts: str
    files: int
    clones: int


class CorpusMonitor:
    """Polls the stores for counts, on demand or from a daemon thread."""

    def __init__(
        self,
        file_store: FileStore,
        clone_store: CloneStore,
        *,
        max_samples: int = DEFAULT_MAX_SAMPLES,
    ) -> None:
        self.file_store = file_store
        self.clone_store = clone_store
        self.logger = get_logger("monitor")
        self._lock = threading.Lock()
        self._samples: Deque[CorpusSample] = deque(maxlen=max_samples)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def sample_once(self) -> CorpusSample:
        sample = CorpusSample(
            ts=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            files=self.file_store.number_of_files,
            clones=self.clone_store.number_of_clones,
        )
        with self._lock:
            self._samples.append(sample)
        self.logger.debug("files=%d clones=%d", sample.files, sample.clones)
        return sample

    def samples(self) -> List[Dict[str, object]]:
        with self._lock:
            return [asdict(sample) for sample in self._samples]

    def start(self, interval: float) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()

        def _worker() -> None:
            while True:
                try:
                    self.sample_once()
                except Exception as exc:  # pragma: no cover - background guard
                    log_exception(self.logger, "Corpus sampling failed", exc)
                if self._stop.wait(interval):
                    return

        thread = threading.Thread(target=_worker, name="clonestream-monitor", daemon=True)
        self._thread = thread
        thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None


__all__ = ["CorpusMonitor", "CorpusSample", "StatsHistory", "TimingSample"]
