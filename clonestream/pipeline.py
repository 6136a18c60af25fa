"""Per-file clone detection pipeline: validate, transform, detect, persist."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .config import DEFAULT_EXTENSIONS, DetectorConfig
from .detection import DEFAULT_CHUNK_SIZE, Chunker, Expander, consolidate, generate_candidates, normalize
from .logging import get_logger, log_exception
from .models import Chunk, Clone, ContentLine, FileRecord
from .stores import CloneStore, FileStore, StorageFailure
from .timers import Timers


class RejectionReason(Enum):
    """Why a file was turned away before detection."""

    UNSUPPORTED_FILE_TYPE = "unsupported_file_type"
    ALREADY_PROCESSED = "already_processed"


@dataclass
class Accepted:
    """A file that was compared against the corpus and stored."""

    record: FileRecord
    clones: List[Clone] = field(default_factory=list)

    status = "accepted"


@dataclass
class Rejected:
    """A file dropped by validation; nothing was stored."""

    name: str
    reason: RejectionReason
    message: str

    status = "rejected"


Outcome = Union[Accepted, Rejected]


class Pipeline:
    """Runs one incoming file through detection against the stored corpus.

    The pipeline holds no per-file state, so one instance can serve several
    files concurrently. Each run compares against the corpus as listed when
    its detection step starts; files committed by concurrent runs after that
    point are not compared against.
    """

    def __init__(
        self,
        file_store: FileStore,
        clone_store: CloneStore,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        timers: Timers | None = None,
    ) -> None:
        self.file_store = file_store
        self.clone_store = clone_store
        self.chunker = Chunker(chunk_size)
        self.expander = Expander(chunk_size)
        self.extensions = tuple(extensions)
        self.timers = timers
        self.logger = get_logger("pipeline")
        self._chunk_cache: Dict[str, List[Chunk]] = {}
        self._cache_lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: DetectorConfig,
        file_store: FileStore,
        clone_store: CloneStore,
        *,
        timers: Timers | None = None,
    ) -> "Pipeline":
        return cls(
            file_store,
            clone_store,
            chunk_size=config.chunk_size,
            extensions=config.extensions,
            timers=timers,
        )

    @property
    def chunk_size(self) -> int:
        return self.chunker.chunk_size

    @property
    def number_of_processed_files(self) -> int:
        return self.file_store.number_of_files

    def process(self, name: str, contents: str) -> Outcome:
        """Detect clones for one file and persist it.

        Returns ``Rejected`` for validation failures. ``StorageFailure`` from
        either store propagates to the caller; clones merged for ``name`` are
        withdrawn first when the file itself cannot be stored.
        """
        rejection = self.validate(name)
        if rejection is not None:
            self.logger.info("%s", rejection.message)
            return rejection

        self._start_timer(name, "total")
        _, chunks = self.transform(contents)

        self._start_timer(name, "match")
        clones = self.match_detect(name, chunks)
        record = FileRecord(name=name, contents=contents)
        self.clone_store.store_clones(name, clones)
        self._end_timer(name, "match")

        try:
            self.file_store.store_file(record)
        except StorageFailure:
            self._discard_clones(name)
            raise
        self._end_timer(name, "total")
        self.logger.debug("Stored %s with %d clones", name, len(clones))
        return Accepted(record=record, clones=clones)

    def validate(self, name: str) -> Optional[Rejected]:
        if not name.endswith(self.extensions):
            return Rejected(
                name=name,
                reason=RejectionReason.UNSUPPORTED_FILE_TYPE,
                message=f"{name} is not a supported source file. Discarding.",
            )
        if self.file_store.is_file_processed(name):
            return Rejected(
                name=name,
                reason=RejectionReason.ALREADY_PROCESSED,
                message=f"{name} has already been processed.",
            )
        return None

    def transform(self, contents: str) -> Tuple[List[ContentLine], List[Chunk]]:
        lines = normalize(contents)
        return lines, self.chunker.chunk(lines)

    def match_detect(self, name: str, chunks: Sequence[Chunk]) -> List[Clone]:
        """Compare ``chunks`` of file ``name`` against every stored file."""
        corpus = self.file_store.get_all_files()
        clones: List[Clone] = []
        if not chunks:
            return clones
        for record in corpus:
            try:
                found = self._detect_against(record, name, chunks)
            except Exception as exc:  # pragma: no cover - defensive guard
                log_exception(self.logger, f"Comparing {name} against {record.name} failed", exc)
                continue
            if found:
                clones = consolidate(clones + found)
        return clones

    def _detect_against(
        self, record: FileRecord, name: str, chunks: Sequence[Chunk]
    ) -> List[Clone]:
        candidates = generate_candidates(record.name, self._corpus_chunks(record), name, chunks)
        if not candidates:
            return []
        found: List[Clone] = []
        for run in self.expander.expand(candidates):
            clone = run.to_clone()
            clone.original_code = record.span_text(clone.source_start, clone.source_end)
            found.append(clone)
        return consolidate(found)

    def _discard_clones(self, name: str) -> None:
        try:
            self.clone_store.discard_targets(name)
        except StorageFailure as exc:
            log_exception(self.logger, f"Could not withdraw clones found for {name}", exc)

    def _corpus_chunks(self, record: FileRecord) -> List[Chunk]:
        with self._cache_lock:
            cached = self._chunk_cache.get(record.name)
        if cached is not None:
            return cached
        _, chunks = self.transform(record.contents)
        with self._cache_lock:
            self._chunk_cache[record.name] = chunks
        return chunks

    def _start_timer(self, name: str, label: str) -> None:
        if self.timers is not None:
            self.timers.start_timer(name, label)

    def _end_timer(self, name: str, label: str) -> None:
        if self.timers is not None:
            self.timers.end_timer(name, label)


__all__ = ["Accepted", "Outcome", "Pipeline", "RejectionReason", "Rejected"]
