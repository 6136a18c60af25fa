"""Tests for the in-memory stores."""

from __future__ import annotations

import threading

from clonestream.models import Clone, CloneTarget, FileRecord
from clonestream.stores import InMemoryCloneStore, InMemoryFileStore


def test_file_store_keeps_insertion_order() -> None:
    store = InMemoryFileStore()
    store.store_file(FileRecord("B.java", "b"))
    store.store_file(FileRecord("A.java", "a"))

    assert store.filenames == ["B.java", "A.java"]
    assert store.number_of_files == 2
    assert store.is_file_processed("A.java")
    assert not store.is_file_processed("C.java")


def test_file_store_is_append_only() -> None:
    store = InMemoryFileStore()
    store.store_file(FileRecord("A.java", "first"))
    store.store_file(FileRecord("A.java", "second"))

    assert [record.contents for record in store.get_all_files()] == ["first"]


def test_clone_store_unions_targets_for_same_source_span() -> None:
    store = InMemoryCloneStore()
    store.store_clones("B.java", [Clone("A.java", 1, 6, {CloneTarget("B.java", 1, 6)})])
    store.store_clones("C.java", [Clone("A.java", 1, 6, {CloneTarget("C.java", 4, 9)})])
    store.store_clones("C.java", [Clone("A.java", 1, 6, {CloneTarget("C.java", 4, 9)})])

    assert store.number_of_clones == 1
    assert store.clones[0].targets == {CloneTarget("B.java", 1, 6), CloneTarget("C.java", 4, 9)}


def test_clone_store_returns_copies() -> None:
    store = InMemoryCloneStore()
    original = Clone("A.java", 1, 6, {CloneTarget("B.java", 1, 6)})
    store.store_clones("B.java", [original])

    original.add_target(CloneTarget("Z.java", 1, 6))
    store.clones[0].add_target(CloneTarget("Y.java", 1, 6))

    assert store.clones[0].targets == {CloneTarget("B.java", 1, 6)}


def test_concurrent_merges_lose_no_targets() -> None:
    store = InMemoryCloneStore()

    def _worker(index: int) -> None:
        for offset in range(20):
            target = CloneTarget(f"F{index}.java", offset + 1, offset + 5)
            store.store_clones(f"F{index}.java", [Clone("A.java", 1, 5, {target})])

    threads = [threading.Thread(target=_worker, args=(i,)) for i in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert store.number_of_clones == 1
    assert len(store.clones[0].targets) == 80


def test_discard_targets_drops_emptied_clones() -> None:
    store = InMemoryCloneStore()
    store.store_clones("B.java", [Clone("A.java", 1, 6, {CloneTarget("B.java", 1, 6)})])
    store.store_clones(
        "C.java",
        [
            Clone("A.java", 1, 6, {CloneTarget("C.java", 2, 7)}),
            Clone("A.java", 8, 12, {CloneTarget("C.java", 10, 14)}),
        ],
    )

    store.discard_targets("C.java")

    [clone] = store.clones
    assert clone.key == ("A.java", 1, 6)
    assert clone.targets == {CloneTarget("B.java", 1, 6)}
