"""Tests for clonestream.pipeline."""

from __future__ import annotations

from typing import List, Sequence

import pytest

from clonestream.models import Clone, CloneTarget, FileRecord
from clonestream.pipeline import Accepted, Pipeline, Rejected, RejectionReason
from clonestream.stores import InMemoryCloneStore, InMemoryFileStore, StorageFailure
from clonestream.timers import Timers

SIX_X = "\n".join(["x"] * 6)


def _java(*statements: str) -> str:
    return "\n".join(statements)


def test_end_to_end_single_maximal_clone(pipeline: Pipeline, clone_store: InMemoryCloneStore) -> None:
    assert isinstance(pipeline.process("A.java", SIX_X), Accepted)
    outcome = pipeline.process("B.java", SIX_X + "\nint unrelated = 1;\nreturn unrelated;")

    assert isinstance(outcome, Accepted)
    [clone] = clone_store.clones
    assert clone.key == ("A.java", 1, 6)
    assert clone.targets == {CloneTarget("B.java", 1, 6)}
    assert clone.original_code == SIX_X


def test_identical_files_produce_one_full_span_clone(
    pipeline: Pipeline, clone_store: InMemoryCloneStore
) -> None:
    contents = _java(*(f"call{i}();" for i in range(1, 9)))
    pipeline.process("A.java", contents)
    outcome = pipeline.process("B.java", contents)

    assert isinstance(outcome, Accepted)
    assert [c.key for c in outcome.clones] == [("A.java", 1, 8)]
    assert clone_store.clones[0].targets == {CloneTarget("B.java", 1, 8)}


def test_first_file_has_no_clones(pipeline: Pipeline, file_store: InMemoryFileStore) -> None:
    outcome = pipeline.process("A.java", SIX_X)

    assert isinstance(outcome, Accepted)
    assert outcome.clones == []
    assert file_store.filenames == ["A.java"]


def test_unsupported_extension_is_rejected(
    pipeline: Pipeline, file_store: InMemoryFileStore, clone_store: InMemoryCloneStore
) -> None:
    outcome = pipeline.process("notes.txt", SIX_X)

    assert isinstance(outcome, Rejected)
    assert outcome.reason is RejectionReason.UNSUPPORTED_FILE_TYPE
    assert file_store.number_of_files == 0
    assert clone_store.number_of_clones == 0


def test_duplicate_name_is_rejected_without_side_effects(
    pipeline: Pipeline, file_store: InMemoryFileStore, clone_store: InMemoryCloneStore
) -> None:
    pipeline.process("A.java", SIX_X)
    pipeline.process("B.java", SIX_X)
    files_before = file_store.number_of_files
    clones_before = clone_store.number_of_clones

    outcome = pipeline.process("B.java", SIX_X)

    assert isinstance(outcome, Rejected)
    assert outcome.reason is RejectionReason.ALREADY_PROCESSED
    assert outcome.status == "rejected"
    assert file_store.number_of_files == files_before
    assert clone_store.number_of_clones == clones_before


def test_clones_accumulate_targets_across_files(
    pipeline: Pipeline, clone_store: InMemoryCloneStore
) -> None:
    body = _java(*(f"step{i}();" for i in range(1, 7)))
    pipeline.process("A.java", body)
    pipeline.process("B.java", body)
    pipeline.process("C.java", "int header = 0;\n" + body)

    by_key = {clone.key: clone for clone in clone_store.clones}
    assert by_key[("A.java", 1, 6)].targets == {
        CloneTarget("B.java", 1, 6),
        CloneTarget("C.java", 2, 7),
    }
    assert by_key[("B.java", 1, 6)].targets == {CloneTarget("C.java", 2, 7)}


def test_one_source_span_found_twice_in_incoming_file(pipeline: Pipeline) -> None:
    body = _java(*(f"step{i}();" for i in range(1, 6)))
    pipeline.process("A.java", body)
    outcome = pipeline.process("B.java", body + "\nint sep;\n" + body)

    assert isinstance(outcome, Accepted)
    [clone] = outcome.clones
    assert clone.targets == {CloneTarget("B.java", 1, 5), CloneTarget("B.java", 7, 11)}


def test_short_files_contribute_no_clone_material(
    pipeline: Pipeline, clone_store: InMemoryCloneStore
) -> None:
    short = _java("a();", "b();", "c();", "d();")
    pipeline.process("A.java", short)
    pipeline.process("B.java", short)

    assert clone_store.number_of_clones == 0


def test_chunk_size_is_configurable(file_store, clone_store) -> None:
    pipeline = Pipeline(file_store, clone_store, chunk_size=3)
    short = _java("a();", "b();", "c();", "d();")
    pipeline.process("A.java", short)
    outcome = pipeline.process("B.java", short)

    assert isinstance(outcome, Accepted)
    assert [c.key for c in outcome.clones] == [("A.java", 1, 4)]


def test_timers_record_total_and_match(file_store, clone_store) -> None:
    timers = Timers()
    pipeline = Pipeline(file_store, clone_store, timers=timers)
    pipeline.process("A.java", SIX_X)

    recorded = timers.get_timers("A.java")
    assert set(recorded) == {"total", "match"}
    assert recorded["total"] >= recorded["match"] >= 0


class _FailingFileStore(InMemoryFileStore):
    def store_file(self, record: FileRecord) -> None:
        raise StorageFailure("disk full")


class _RecordingCloneStore(InMemoryCloneStore):
    def __init__(self) -> None:
        super().__init__()
        self.calls: List[str] = []

    def store_clones(self, name: str, clones: Sequence[Clone]) -> List[Clone]:
        self.calls.append(name)
        return super().store_clones(name, clones)


def test_file_store_failure_withdraws_clones_and_allows_retry() -> None:
    file_store = _FailingFileStore()
    clone_store = _RecordingCloneStore()
    InMemoryFileStore.store_file(file_store, FileRecord("A.java", SIX_X))
    clone_store.store_clones("C.java", [Clone("A.java", 1, 6, {CloneTarget("C.java", 1, 6)})])
    pipeline = Pipeline(file_store, clone_store)

    with pytest.raises(StorageFailure):
        pipeline.process("B.java", SIX_X)

    [clone] = clone_store.clones
    assert clone.targets == {CloneTarget("C.java", 1, 6)}
    assert not file_store.is_file_processed("B.java")

    with pytest.raises(StorageFailure):
        pipeline.process("B.java", SIX_X)
    assert clone_store.calls == ["C.java", "B.java", "B.java"]
    assert clone_store.clones[0].targets == {CloneTarget("C.java", 1, 6)}


def test_file_store_failure_leaves_no_clones_behind() -> None:
    file_store = _FailingFileStore()
    clone_store = InMemoryCloneStore()
    InMemoryFileStore.store_file(file_store, FileRecord("A.java", SIX_X))

    with pytest.raises(StorageFailure):
        Pipeline(file_store, clone_store).process("B.java", SIX_X)

    assert clone_store.number_of_clones == 0
    assert file_store.filenames == ["A.java"]


def test_rejection_keeps_timers_of_stored_file(file_store, clone_store) -> None:
    timers = Timers()
    pipeline = Pipeline(file_store, clone_store, timers=timers)
    pipeline.process("A.java", SIX_X)
    recorded = timers.get_timers("A.java")

    assert isinstance(pipeline.process("A.java", SIX_X), Rejected)
    assert isinstance(pipeline.process("A.txt", SIX_X), Rejected)

    assert timers.get_timers("A.java") == recorded
    assert timers.get_timers("A.txt") == {}


def test_detection_uses_corpus_snapshot(file_store, clone_store) -> None:
    pipeline = Pipeline(file_store, clone_store)
    pipeline.process("A.java", SIX_X)
    snapshot_calls: List[int] = []
    original = file_store.get_all_files

    def _get_all_files():
        files = original()
        snapshot_calls.append(len(files))
        return files

    file_store.get_all_files = _get_all_files  # type: ignore[method-assign]
    pipeline.process("B.java", SIX_X)

    assert snapshot_calls == [1]
