"""Merge adjacent sliding-window candidates into maximal clone spans."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import astuple, replace
from typing import Dict, Iterable, List, Tuple

from ..models import CloneCandidate


class Expander:
    """Collapses runs of overlapping windows into one candidate per run.

    A candidate extends a run when its window starts exactly one content line
    after the run's last window started, in lock-step on source and target.
    Runs are tracked per diagonal, so interleaved matches of one source span
    at several target offsets still expand independently. Runs covered on
    both sides by a longer run, as happens with repeated lines, are dropped.
    """

    def __init__(self, chunk_size: int) -> None:
        self.chunk_size = chunk_size

    def expand(self, candidates: Iterable[CloneCandidate]) -> List[CloneCandidate]:
        groups: Dict[Tuple[str, str], List[CloneCandidate]] = defaultdict(list)
        for candidate in candidates:
            groups[(candidate.source_file, candidate.target_file)].append(candidate)

        expanded: List[CloneCandidate] = []
        for key in sorted(groups):
            expanded.extend(self._expand_group(groups[key]))
        return expanded

    def _expand_group(self, candidates: List[CloneCandidate]) -> List[CloneCandidate]:
        ordered = sorted(candidates, key=lambda c: (c.source_first, c.target_first))
        runs: List[CloneCandidate] = []
        open_runs: Dict[Tuple[int, int], CloneCandidate] = {}
        seen: set[tuple] = set()

        for candidate in ordered:
            identity = astuple(candidate)
            if identity in seen:
                continue
            seen.add(identity)

            current = open_runs.pop((candidate.source_first, candidate.target_first), None)
            if current is None or not current.maybe_expand_with(candidate, self.chunk_size):
                current = replace(candidate)
                runs.append(current)
            open_runs[self._next_window(current)] = current

        runs.sort(key=lambda c: (c.source_start, c.target_start))
        return [run for run in runs if not any(_contains(other, run) for other in runs)]

    def _next_window(self, run: CloneCandidate) -> Tuple[int, int]:
        return (
            run.source_last - self.chunk_size + 2,
            run.target_last - self.chunk_size + 2,
        )


def _span(run: CloneCandidate) -> Tuple[int, int, int, int]:
    return (run.source_first, run.source_last, run.target_first, run.target_last)


def _contains(outer: CloneCandidate, inner: CloneCandidate) -> bool:
    """Return True when ``outer`` strictly covers ``inner`` on both sides."""
    if _span(outer) == _span(inner):
        return False
    return (
        outer.source_first <= inner.source_first
        and inner.source_last <= outer.source_last
        and outer.target_first <= inner.target_first
        and inner.target_last <= outer.target_last
    )


__all__ = ["Expander"]
