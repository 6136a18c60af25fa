"""Ingestion boundary: feeds named files to the pipeline and tracks results."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from .config import DetectorConfig
from .logging import get_logger, log_exception
from .pipeline import Pipeline, Rejected
from .stats import CorpusMonitor, StatsHistory
from .stores import CloneStore, FileStore, StorageFailure, create_stores
from .timers import Timers


@dataclass
class IngestResult:
    """Per-file result reported back to callers of the ingestion boundary."""

    name: str
    status: str
    reason: Optional[str] = None
    clones: int = 0


@dataclass
class IngestSummary:
    """Aggregate of several ingestion results."""

    results: List[IngestResult] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for result in self.results if result.status == status)


class CloneDetector:
    """Wires stores, pipeline, timers and statistics for one process."""

    def __init__(
        self,
        file_store: FileStore,
        clone_store: CloneStore,
        *,
        chunk_size: int,
        extensions: Iterable[str],
        stats_frequency: int = 100,
        max_samples: int = 5000,
    ) -> None:
        self.file_store = file_store
        self.clone_store = clone_store
        self.timers = Timers()
        self.pipeline = Pipeline(
            file_store,
            clone_store,
            chunk_size=chunk_size,
            extensions=list(extensions),
            timers=self.timers,
        )
        self.stats = StatsHistory(max_samples)
        self.monitor = CorpusMonitor(file_store, clone_store, max_samples=max_samples)
        self.stats_frequency = stats_frequency
        self.last_file: Optional[str] = None
        self.logger = get_logger("ingest")

    @classmethod
    def from_config(cls, config: DetectorConfig) -> "CloneDetector":
        file_store, clone_store = create_stores(config)
        return cls(
            file_store,
            clone_store,
            chunk_size=config.chunk_size,
            extensions=config.extensions,
            stats_frequency=config.service.stats_frequency,
            max_samples=config.service.max_samples,
        )

    def ingest(self, name: str, contents: str) -> IngestResult:
        """Run one file through the pipeline; storage failures affect only this file."""
        try:
            outcome = self.pipeline.process(name, contents)
        except StorageFailure as exc:
            log_exception(self.logger, f"Storing {name} failed", exc)
            self.timers.discard(name)
            return IngestResult(name=name, status="failed", reason=str(exc))

        if isinstance(outcome, Rejected):
            return IngestResult(name=name, status=outcome.status, reason=outcome.reason.value)

        self.stats.record(name, outcome.record.loc, self.timers.get_timers(name))
        if self.last_file is not None and self.last_file != name:
            self.timers.discard(self.last_file)
        self.last_file = name
        self._maybe_log_statistics(name)
        return IngestResult(name=name, status=outcome.status, clones=len(outcome.clones))

    def ingest_paths(self, paths: Iterable[Path]) -> IngestSummary:
        summary = IngestSummary()
        for path, name in _iter_source_files(paths):
            try:
                contents = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.warning("Skipping unreadable file %s: %s", path, exc)
                summary.results.append(IngestResult(name=name, status="failed", reason=str(exc)))
                continue
            summary.results.append(self.ingest(name, contents))
        return summary

    def statistics(self) -> str:
        return (
            f"Processed {self.file_store.number_of_files} files containing "
            f"{self.clone_store.number_of_clones} clones."
        )

    def last_timers(self) -> Dict[str, float]:
        """Timers of the last accepted file, in microseconds."""
        if self.last_file is None:
            return {}
        return {
            label: value / 1000
            for label, value in self.timers.get_timers(self.last_file).items()
        }

    def _maybe_log_statistics(self, name: str) -> None:
        processed = self.pipeline.number_of_processed_files
        if self.stats_frequency <= 0 or processed % self.stats_frequency != 0:
            return
        self.logger.info(
            "Processed %d files and found %d clones.",
            processed,
            self.clone_store.number_of_clones,
        )
        timers = ", ".join(
            f"{label}: {value / 1000:.0f} us"
            for label, value in self.timers.get_timers(name).items()
        )
        self.logger.info("Timers for last file processed: %s", timers)


def _iter_source_files(paths: Iterable[Path]) -> Iterator[tuple[Path, str]]:
    for path in paths:
        if path.is_dir():
            for child in sorted(p for p in path.rglob("*") if p.is_file()):
                yield child, child.relative_to(path).as_posix()
        else:
            yield path, path.name


__all__ = ["CloneDetector", "IngestResult", "IngestSummary"]
