"""Tests for clone consolidation by source span."""

from __future__ import annotations

from clonestream.detection import consolidate
from clonestream.models import Clone, CloneTarget


def _clone(start: int, end: int, *targets: CloneTarget, source: str = "A.java") -> Clone:
    return Clone(source_file=source, source_start=start, source_end=end, targets=set(targets))


def test_clones_with_same_source_span_are_merged() -> None:
    t1 = CloneTarget("B.java", 1, 6)
    t2 = CloneTarget("B.java", 20, 25)
    merged = consolidate([_clone(1, 6, t1), _clone(1, 6, t2), _clone(1, 6, t1)])

    assert len(merged) == 1
    assert merged[0].targets == {t1, t2}
    assert merged[0].sorted_targets() == [t1, t2]


def test_distinct_source_spans_stay_separate() -> None:
    target = CloneTarget("B.java", 1, 5)
    merged = consolidate(
        [_clone(1, 5, target), _clone(2, 6, target), _clone(1, 5, target, source="C.java")]
    )

    assert [clone.key for clone in merged] == [
        ("A.java", 1, 5),
        ("A.java", 2, 6),
        ("C.java", 1, 5),
    ]


def test_consolidate_leaves_inputs_untouched() -> None:
    first = _clone(1, 5, CloneTarget("B.java", 1, 5))
    second = _clone(1, 5, CloneTarget("C.java", 3, 7))
    consolidate([first, second])

    assert len(first.targets) == 1
    assert len(second.targets) == 1


def test_consolidate_empty() -> None:
    assert consolidate([]) == []
