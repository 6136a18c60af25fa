"""File and clone stores backing the detection pipeline."""

from __future__ import annotations

from typing import Tuple

from ..config import DetectorConfig
from .base import CloneStore, FileStore, StorageFailure
from .json_store import JsonCloneStore, JsonFileStore
from .memory import InMemoryCloneStore, InMemoryFileStore


def create_stores(config: DetectorConfig) -> Tuple[FileStore, CloneStore]:
    """Build the file and clone stores selected by ``config.store``."""
    if config.store.backend == "json":
        directory = config.store.path or (config.root / ".clonestream")
        return JsonFileStore(directory / "files.json"), JsonCloneStore(directory / "clones.json")
    return InMemoryFileStore(), InMemoryCloneStore()


__all__ = [
    "CloneStore",
    "FileStore",
    "InMemoryCloneStore",
    "InMemoryFileStore",
    "JsonCloneStore",
    "JsonFileStore",
    "StorageFailure",
    "create_stores",
]
