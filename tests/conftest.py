from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from clonestream.pipeline import Pipeline
from clonestream.stores import InMemoryCloneStore, InMemoryFileStore
from tests._fixtures.source_builder import SourceBuilder


@pytest.fixture(autouse=True)
def _reset_clonestream_logger() -> Iterator[None]:
    """Undo handler changes made by configure_logging so caplog sees records."""
    yield
    logger = logging.getLogger("clonestream")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def source_builder(tmp_path: Path) -> SourceBuilder:
    """Provide a reusable source tree builder rooted at the pytest tmp_path."""
    return SourceBuilder(tmp_path)


@pytest.fixture
def file_store() -> InMemoryFileStore:
    return InMemoryFileStore()


@pytest.fixture
def clone_store() -> InMemoryCloneStore:
    return InMemoryCloneStore()


@pytest.fixture
def pipeline(file_store: InMemoryFileStore, clone_store: InMemoryCloneStore) -> Pipeline:
    return Pipeline(file_store, clone_store, chunk_size=5, extensions=[".java"])
