"""Deduplicate clones by source span."""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from ..models import Clone


def consolidate(clones: Iterable[Clone]) -> List[Clone]:
    """Return one clone per source span with the union of all targets.

    Input clones are not mutated. Output keeps first-seen order.
    """
    merged: Dict[Tuple[str, int, int], Clone] = {}
    for clone in clones:
        existing = merged.get(clone.key)
        if existing is None:
            merged[clone.key] = Clone(
                source_file=clone.source_file,
                source_start=clone.source_start,
                source_end=clone.source_end,
                targets=set(clone.targets),
                original_code=clone.original_code,
            )
        else:
            existing.merge(clone)
    return list(merged.values())


__all__ = ["consolidate"]
