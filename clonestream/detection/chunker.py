"""Sliding-window chunking over content lines."""

from __future__ import annotations

from typing import List, Sequence

from ..models import Chunk, ContentLine

DEFAULT_CHUNK_SIZE = 5


class Chunker:
    """Slides a fixed-size window over content lines one line at a time."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.chunk_size = chunk_size

    def chunk(self, lines: Sequence[ContentLine]) -> List[Chunk]:
        """Return ``max(0, len(lines) - chunk_size + 1)`` chunks in order."""
        size = self.chunk_size
        return [Chunk(tuple(lines[i : i + size])) for i in range(len(lines) - size + 1)]


__all__ = ["Chunker", "DEFAULT_CHUNK_SIZE"]
