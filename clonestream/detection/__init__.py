"""Clone detection stages: normalize, chunk, match, expand, consolidate."""

from .candidates import generate_candidates
from .chunker import DEFAULT_CHUNK_SIZE, Chunker
from .consolidator import consolidate
from .expander import Expander
from .normalizer import normalize

__all__ = [
    "Chunker",
    "DEFAULT_CHUNK_SIZE",
    "Expander",
    "consolidate",
    "generate_candidates",
    "normalize",
]
