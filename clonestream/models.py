"""Core data models shared across clonestream components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Set, Tuple


class CloneConstructionError(ValueError):
    """Raised when a clone candidate cannot be built from the given chunks."""


@dataclass(frozen=True)
class ContentLine:
    """A comment- and blank-stripped source line.

    ``line_number`` is 1-based and refers to the original file, while
    ``position`` is the 1-based index within the content-line sequence.
    """

    line_number: int
    text: str
    position: int = 0

    def has_content(self) -> bool:
        return bool(self.text)


@dataclass(frozen=True)
class Chunk:
    """Fixed-size window of consecutive content lines from one file."""

    lines: Tuple[ContentLine, ...]

    @property
    def texts(self) -> Tuple[str, ...]:
        return tuple(line.text for line in self.lines)

    @property
    def start_line(self) -> int:
        return self.lines[0].line_number

    @property
    def end_line(self) -> int:
        return self.lines[-1].line_number

    @property
    def start_position(self) -> int:
        return self.lines[0].position

    @property
    def end_position(self) -> int:
        return self.lines[-1].position

    def __len__(self) -> int:
        return len(self.lines)

    def matches(self, other: "Chunk") -> bool:
        """Return True when both chunks carry the same text sequence."""
        return self.texts == other.texts


@dataclass
class CloneCandidate:
    """One exact chunk-to-chunk match, or a run of them after expansion."""

    source_file: str
    source_start: int
    source_end: int
    target_file: str
    target_start: int
    target_end: int
    source_first: int = 0
    source_last: int = 0
    target_first: int = 0
    target_last: int = 0

    @classmethod
    def from_chunks(
        cls, source_file: str, source: Chunk, target_file: str, target: Chunk
    ) -> "CloneCandidate":
        if not source.lines or not target.lines:
            raise CloneConstructionError(
                f"Empty chunk while matching {source_file} against {target_file}"
            )
        if len(source) != len(target):
            raise CloneConstructionError(
                f"Chunk length mismatch ({len(source)} != {len(target)}) "
                f"between {source_file} and {target_file}"
            )
        return cls(
            source_file=source_file,
            source_start=source.start_line,
            source_end=source.end_line,
            target_file=target_file,
            target_start=target.start_line,
            target_end=target.end_line,
            source_first=source.start_position,
            source_last=source.end_position,
            target_first=target.start_position,
            target_last=target.end_position,
        )

    def is_next(self, other: "CloneCandidate", chunk_size: int) -> bool:
        """Return True when ``other`` is this run's window shifted by one content line."""
        return (
            other.source_first == self.source_last - chunk_size + 2
            and other.target_first == self.target_last - chunk_size + 2
        )

    def maybe_expand_with(self, other: "CloneCandidate", chunk_size: int) -> bool:
        if not self.is_next(other, chunk_size):
            return False
        self.source_end = max(self.source_end, other.source_end)
        self.target_end = max(self.target_end, other.target_end)
        self.source_last = max(self.source_last, other.source_last)
        self.target_last = max(self.target_last, other.target_last)
        return True

    def to_clone(self) -> "Clone":
        return Clone(
            source_file=self.source_file,
            source_start=self.source_start,
            source_end=self.source_end,
            targets={CloneTarget(self.target_file, self.target_start, self.target_end)},
        )


@dataclass(frozen=True, order=True)
class CloneTarget:
    """One occurrence of a clone outside its source span."""

    file: str
    start_line: int
    end_line: int


@dataclass
class Clone:
    """A maximal source span together with every place it was found."""

    source_file: str
    source_start: int
    source_end: int
    targets: Set[CloneTarget] = field(default_factory=set)
    original_code: str = ""

    @property
    def key(self) -> Tuple[str, int, int]:
        return (self.source_file, self.source_start, self.source_end)

    def add_target(self, target: CloneTarget) -> None:
        self.targets.add(target)

    def merge(self, other: "Clone") -> None:
        """Union the targets of ``other`` into this clone; both must share a source span."""
        if other.key != self.key:
            raise ValueError(f"Cannot merge clone {other.key} into {self.key}")
        self.targets.update(other.targets)
        if not self.original_code and other.original_code:
            self.original_code = other.original_code

    def sorted_targets(self) -> List[CloneTarget]:
        return sorted(self.targets)

    def to_dict(self) -> Dict[str, object]:
        return {
            "source_name": self.source_file,
            "source_start": self.source_start,
            "source_end": self.source_end,
            "targets": [
                {"name": t.file, "start_line": t.start_line, "end_line": t.end_line}
                for t in self.sorted_targets()
            ],
            "original_code": self.original_code,
        }


@dataclass(frozen=True)
class FileRecord:
    """Persisted, pruned view of an ingested file."""

    name: str
    contents: str

    @property
    def loc(self) -> int:
        return self.contents.count("\n") + 1

    def span_text(self, start_line: int, end_line: int) -> str:
        lines = self.contents.split("\n")
        return "\n".join(lines[start_line - 1 : end_line])


def clones_from_dicts(payloads: Iterable[object]) -> List[Clone]:
    """Rebuild clones from ``Clone.to_dict`` payloads, skipping malformed entries."""
    clones: List[Clone] = []
    for payload in payloads:
        clone = _clone_from_dict(payload)
        if clone is not None:
            clones.append(clone)
    return clones


def _clone_from_dict(payload: object) -> Clone | None:
    if not isinstance(payload, dict):
        return None
    name = payload.get("source_name")
    start = payload.get("source_start")
    end = payload.get("source_end")
    if not isinstance(name, str) or not isinstance(start, int) or not isinstance(end, int):
        return None
    targets: Set[CloneTarget] = set()
    raw_targets = payload.get("targets")
    if isinstance(raw_targets, Sequence):
        for raw in raw_targets:
            if not isinstance(raw, dict):
                continue
            t_name = raw.get("name")
            t_start = raw.get("start_line")
            t_end = raw.get("end_line")
            if isinstance(t_name, str) and isinstance(t_start, int) and isinstance(t_end, int):
                targets.add(CloneTarget(t_name, t_start, t_end))
    code = payload.get("original_code")
    return Clone(
        source_file=name,
        source_start=start,
        source_end=end,
        targets=targets,
        original_code=code if isinstance(code, str) else "",
    )
