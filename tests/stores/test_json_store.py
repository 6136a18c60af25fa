"""Tests for the JSON-backed stores."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from clonestream.config import DetectorConfig, StoreConfig
from clonestream.models import Clone, CloneTarget, FileRecord
from clonestream.stores import (
    InMemoryCloneStore,
    InMemoryFileStore,
    JsonCloneStore,
    JsonFileStore,
    StorageFailure,
    create_stores,
)


def test_file_store_survives_reload(tmp_path: Path) -> None:
    path = tmp_path / "files.json"
    store = JsonFileStore(path)
    store.store_file(FileRecord("A.java", "a;\nb;"))

    reloaded = JsonFileStore(path)

    assert reloaded.filenames == ["A.java"]
    assert reloaded.get_all_files()[0].contents == "a;\nb;"


def test_clone_store_survives_reload_and_keeps_merging(tmp_path: Path) -> None:
    path = tmp_path / "clones.json"
    store = JsonCloneStore(path)
    store.store_clones(
        "B.java",
        [Clone("A.java", 1, 6, {CloneTarget("B.java", 1, 6)}, original_code="x\nx")],
    )

    reloaded = JsonCloneStore(path)
    reloaded.store_clones("C.java", [Clone("A.java", 1, 6, {CloneTarget("C.java", 2, 7)})])

    [clone] = JsonCloneStore(path).clones
    assert clone.targets == {CloneTarget("B.java", 1, 6), CloneTarget("C.java", 2, 7)}
    assert clone.original_code == "x\nx"


def test_corrupt_store_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "files.json"
    path.write_text("{not json", encoding="utf-8")

    assert JsonFileStore(path).number_of_files == 0


def test_store_with_foreign_version_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "clones.json"
    path.write_text(json.dumps({"version": 99, "clones": []}), encoding="utf-8")

    assert JsonCloneStore(path).number_of_clones == 0


def test_write_failure_raises_and_rolls_back(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = JsonFileStore(blocker / "files.json")

    with pytest.raises(StorageFailure):
        store.store_file(FileRecord("A.java", "a;"))
    assert not store.is_file_processed("A.java")

    clones = JsonCloneStore(blocker / "clones.json")
    with pytest.raises(StorageFailure):
        clones.store_clones("B.java", [Clone("A.java", 1, 5, {CloneTarget("B.java", 1, 5)})])
    assert clones.number_of_clones == 0


def test_create_stores_selects_backend(tmp_path: Path) -> None:
    memory_files, memory_clones = create_stores(DetectorConfig(root=tmp_path))
    assert isinstance(memory_files, InMemoryFileStore)
    assert isinstance(memory_clones, InMemoryCloneStore)

    config = DetectorConfig(root=tmp_path, store=StoreConfig(backend="json", path=tmp_path / "corpus"))
    json_files, json_clones = create_stores(config)
    assert isinstance(json_files, JsonFileStore)
    assert isinstance(json_clones, JsonCloneStore)

    json_files.store_file(FileRecord("A.java", "a;"))
    assert (tmp_path / "corpus" / "files.json").exists()


def test_discard_targets_is_persisted(tmp_path: Path) -> None:
    path = tmp_path / "clones.json"
    store = JsonCloneStore(path)
    store.store_clones("B.java", [Clone("A.java", 1, 6, {CloneTarget("B.java", 1, 6)})])

    store.discard_targets("B.java")

    assert store.number_of_clones == 0
    assert JsonCloneStore(path).number_of_clones == 0
