"""JSON-file backed stores that survive restarts."""

from __future__ import annotations

import copy
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, List, Sequence

from ..logging import get_logger
from ..models import Clone, FileRecord, clones_from_dicts
from .base import StorageFailure
from .memory import InMemoryCloneStore, InMemoryFileStore, _discard_from, _merge_into

_STORE_VERSION = 1

logger = get_logger("stores.json")


class JsonFileStore(InMemoryFileStore):
    """File store persisted to a JSON document after every write."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self._path = path
        entries = _load_entries(path, "files")
        for raw in entries:
            if not isinstance(raw, dict):
                continue
            name = raw.get("name")
            contents = raw.get("contents")
            if isinstance(name, str) and isinstance(contents, str):
                self._files.setdefault(name, FileRecord(name=name, contents=contents))

    def store_file(self, record: FileRecord) -> None:
        with self._lock:
            if record.name in self._files:
                return
            self._files[record.name] = record
            try:
                self._persist()
            except StorageFailure:
                del self._files[record.name]
                raise

    def _persist(self) -> None:
        entries = [
            {"name": record.name, "contents": record.contents}
            for record in self._files.values()
        ]
        _write_entries(self._path, "files", entries)


class JsonCloneStore(InMemoryCloneStore):
    """Clone store persisted to a JSON document after every merge."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self._path = path
        for clone in clones_from_dicts(_load_entries(path, "clones")):
            _merge_into(self._clones, [clone])

    def store_clones(self, name: str, clones: Sequence[Clone]) -> List[Clone]:
        with self._lock:
            previous = copy.deepcopy(self._clones)
            _merge_into(self._clones, clones)
            try:
                self._persist()
            except StorageFailure:
                self._clones = previous
                raise
        logger.debug("Merged %d clones from %s into %s", len(clones), name, self._path)
        return list(clones)

    def discard_targets(self, name: str) -> None:
        with self._lock:
            previous = copy.deepcopy(self._clones)
            _discard_from(self._clones, name)
            try:
                self._persist()
            except StorageFailure:
                self._clones = previous
                raise
        logger.debug("Discarded targets in %s from %s", name, self._path)

    def _persist(self) -> None:
        _write_entries(
            self._path, "clones", [clone.to_dict() for clone in self._clones.values()]
        )


def _load_entries(path: Path, kind: str) -> list:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return []
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable %s store %s: %s", kind, path, exc)
        return []
    if not isinstance(data, dict) or data.get("version") != _STORE_VERSION:
        logger.warning("Ignoring %s store %s with unexpected layout", kind, path)
        return []
    entries = data.get(kind)
    return entries if isinstance(entries, list) else []


def _write_entries(path: Path, kind: str, entries: list) -> None:
    payload: Dict[str, object] = {
        "version": _STORE_VERSION,
        "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        kind: entries,
    }
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    except OSError as exc:
        raise StorageFailure(f"Could not write {kind} store {path}: {exc}") from exc


__all__ = ["JsonCloneStore", "JsonFileStore"]
