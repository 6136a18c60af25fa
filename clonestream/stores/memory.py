"""Thread-safe in-memory stores."""

from __future__ import annotations

import copy
import threading
from typing import Dict, List, Sequence, Tuple

from ..models import Clone, FileRecord
from .base import CloneStore, FileStore


class InMemoryFileStore(FileStore):
    """Keeps file records in insertion order behind a lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._files: Dict[str, FileRecord] = {}

    def is_file_processed(self, name: str) -> bool:
        with self._lock:
            return name in self._files

    def store_file(self, record: FileRecord) -> None:
        with self._lock:
            self._files.setdefault(record.name, record)

    def get_all_files(self) -> List[FileRecord]:
        with self._lock:
            return list(self._files.values())

    @property
    def number_of_files(self) -> int:
        with self._lock:
            return len(self._files)


class InMemoryCloneStore(CloneStore):
    """Accumulates clones by source span behind a lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._clones: Dict[Tuple[str, int, int], Clone] = {}

    def store_clones(self, name: str, clones: Sequence[Clone]) -> List[Clone]:
        with self._lock:
            _merge_into(self._clones, clones)
        return list(clones)

    def discard_targets(self, name: str) -> None:
        with self._lock:
            _discard_from(self._clones, name)

    @property
    def number_of_clones(self) -> int:
        with self._lock:
            return len(self._clones)

    @property
    def clones(self) -> List[Clone]:
        with self._lock:
            return [copy.deepcopy(clone) for clone in self._clones.values()]


def _merge_into(
    store: Dict[Tuple[str, int, int], Clone], clones: Sequence[Clone]
) -> None:
    for clone in clones:
        existing = store.get(clone.key)
        if existing is None:
            store[clone.key] = copy.deepcopy(clone)
        else:
            existing.merge(clone)


def _discard_from(store: Dict[Tuple[str, int, int], Clone], name: str) -> None:
    for key, clone in list(store.items()):
        clone.targets = {target for target in clone.targets if target.file != name}
        if not clone.targets:
            del store[key]


__all__ = ["InMemoryCloneStore", "InMemoryFileStore"]
