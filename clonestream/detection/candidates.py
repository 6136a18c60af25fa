"""Exact chunk matching between a corpus file and an incoming file."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

from ..logging import get_logger
from ..models import Chunk, CloneCandidate, CloneConstructionError

logger = get_logger("detection.candidates")


def generate_candidates(
    source_file: str,
    source_chunks: Sequence[Chunk],
    target_file: str,
    target_chunks: Sequence[Chunk],
) -> List[CloneCandidate]:
    """Emit one candidate for every pair of chunks with equal text.

    ``source_*`` describes the corpus file and ``target_*`` the incoming one.
    Chunks are bucketed by their text so only equal pairs are visited, which
    yields exactly the pairs an all-pairs comparison would. Candidates that
    cannot be constructed are logged and skipped.
    """
    buckets: Dict[Tuple[str, ...], List[Chunk]] = defaultdict(list)
    for chunk in source_chunks:
        buckets[chunk.texts].append(chunk)

    candidates: List[CloneCandidate] = []
    skipped = 0
    for target in target_chunks:
        for source in buckets.get(target.texts, ()):
            try:
                candidates.append(
                    CloneCandidate.from_chunks(source_file, source, target_file, target)
                )
            except CloneConstructionError as exc:
                skipped += 1
                logger.warning("Skipping clone candidate: %s", exc)
    if skipped:
        logger.debug(
            "Skipped %d of %d candidates for %s -> %s",
            skipped,
            skipped + len(candidates),
            source_file,
            target_file,
        )
    return candidates


__all__ = ["generate_candidates"]
