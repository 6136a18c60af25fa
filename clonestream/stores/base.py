"""Abstract file and clone store contracts consumed by the pipeline."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from ..models import Clone, FileRecord


class StorageFailure(RuntimeError):
    """Raised when a store cannot read or write its backing storage."""


class FileStore(ABC):
    """Append-only collection of ingested files."""

    @abstractmethod
    def is_file_processed(self, name: str) -> bool:
        """Return True when a file with ``name`` is already in the corpus."""

    @abstractmethod
    def store_file(self, record: FileRecord) -> None:
        """Add ``record`` to the corpus."""

    @abstractmethod
    def get_all_files(self) -> List[FileRecord]:
        """Return every stored file in insertion order."""

    @property
    @abstractmethod
    def number_of_files(self) -> int:
        """Number of files in the corpus."""

    @property
    def filenames(self) -> List[str]:
        return [record.name for record in self.get_all_files()]


class CloneStore(ABC):
    """Corpus-wide set of clones keyed by source span."""

    @abstractmethod
    def store_clones(self, name: str, clones: Sequence[Clone]) -> List[Clone]:
        """Merge ``clones`` found for file ``name`` into the store.

        Clones sharing a source span with an existing record have their
        targets unioned into it. Returns the clones that were passed in.
        """

    @abstractmethod
    def discard_targets(self, name: str) -> None:
        """Remove every target in file ``name``, dropping clones left without targets."""

    @property
    @abstractmethod
    def number_of_clones(self) -> int:
        """Number of distinct source spans stored."""

    @property
    @abstractmethod
    def clones(self) -> List[Clone]:
        """Return the stored clones in first-seen order."""


__all__ = ["CloneStore", "FileStore", "StorageFailure"]
