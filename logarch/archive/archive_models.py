"""
Data models for the archive pipeline.

This module contains the data classes and enums shared by the resolver,
selector, archiver, sweeper and run accountant.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, Tuple


COMPRESSED_EXTENSION = ".bz2"
TEMP_SUFFIX = ".tmp"


class ArchiveMode(Enum):
    """Execution mode threaded through every mutating step."""
    REAL = "real"
    SIMULATE = "simulate"

    @property
    def is_simulated(self) -> bool:
        return self is ArchiveMode.SIMULATE

    @classmethod
    def from_flag(cls, dry_run: bool) -> "ArchiveMode":
        return cls.SIMULATE if dry_run else cls.REAL


class SegmentKind(Enum):
    """Kinds of segments in a source pattern."""
    LITERAL = "literal"
    YEAR = "YYYY"
    MONTH = "MM"
    DAY = "DD"


@dataclass(frozen=True)
class PatternSegment:
    """One literal run or date placeholder of a source pattern."""
    kind: SegmentKind
    text: str = ""


@dataclass(frozen=True)
class SourceFile:
    """A discovered file in the source tree."""
    path: Path
    size_bytes: int
    mtime: float


@dataclass
class ArchiveResult:
    """Outcome of archiving a single source file."""
    source: Path
    artifact: Path
    success: bool
    bytes_before: int = 0
    bytes_after: int = 0
    estimated: bool = False
    reason: Optional[str] = None

    @property
    def compression_ratio(self) -> int:
        return compression_ratio(self.bytes_before, self.bytes_after)


@dataclass
class SweepResult:
    """Outcome of a retention sweep over the source tree."""
    deleted: int = 0
    failed: int = 0
    skipped: int = 0
    directories_removed: int = 0
    simulated: bool = False


@dataclass
class RunStats:
    """Counters accumulated over a single invocation."""
    started_at: datetime
    finished_at: Optional[datetime] = None
    files_processed: int = 0
    files_failed: int = 0
    total_bytes_before: int = 0
    total_bytes_after: int = 0
    sizes_estimated: bool = False
    files_deleted: int = 0
    delete_failures: int = 0
    deletions_skipped: int = 0
    directories_removed: int = 0

    @property
    def duration_seconds(self) -> float:
        end = self.finished_at or datetime.now()
        return max((end - self.started_at).total_seconds(), 0.0)


@dataclass
class RunReport:
    """Rendered view of a finished run."""
    simulated: bool
    configuration: Dict[str, Any]
    files_processed: int
    files_failed: int
    total_bytes_before: int
    total_bytes_after: int
    compression_ratio: Optional[int]
    duration_seconds: float
    sizes_estimated: bool
    files_deleted: int = 0
    delete_failures: int = 0
    deletions_skipped: int = 0
    directories_removed: int = 0
    finished_at: Optional[datetime] = None
    extra: Dict[str, Any] = field(default_factory=dict)


def compression_ratio(bytes_before: int, bytes_after: int) -> int:
    """Integer percentage saved by compression, 0 for empty input."""
    if bytes_before <= 0:
        return 0
    return (bytes_before - bytes_after) * 100 // bytes_before


def split_segments(segments: Tuple[PatternSegment, ...]) -> Tuple[str, ...]:
    """Return the raw text of each segment, placeholders in brace form."""
    return tuple(
        seg.text if seg.kind is SegmentKind.LITERAL else "{%s}" % seg.kind.value
        for seg in segments
    )
