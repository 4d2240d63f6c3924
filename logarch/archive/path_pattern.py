"""
Source pattern parsing and destination path mapping.

Patterns such as ``{YYYY}/{MM}/{DD}/*.log`` are parsed into an ordered list
of literal and placeholder segments. A template can be resolved for a single
calendar day or widened into a discovery glob that spans every partition.
"""

import fnmatch
import os
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Tuple, Union

from .archive_models import (
    COMPRESSED_EXTENSION,
    PatternSegment,
    SegmentKind,
    split_segments,
)
from .errors import PatternError

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z]+)\}")

_PLACEHOLDERS = {
    "YYYY": SegmentKind.YEAR,
    "MM": SegmentKind.MONTH,
    "DD": SegmentKind.DAY,
}


@dataclass(frozen=True)
class PatternTemplate:
    """Immutable parsed form of a source pattern."""
    segments: Tuple[PatternSegment, ...]

    @classmethod
    def parse(cls, text: str) -> "PatternTemplate":
        """
        Parse a pattern string into segments.

        Args:
            text: Pattern with optional {YYYY}, {MM} and {DD} placeholders.

        Returns:
            Parsed template. A pattern without placeholders is a literal.

        Raises:
            PatternError: If the pattern is empty or names an unknown placeholder.
        """
        if not text:
            raise PatternError("Source pattern must not be empty")

        segments = []
        position = 0
        for match in _PLACEHOLDER_RE.finditer(text):
            name = match.group(1)
            if name not in _PLACEHOLDERS:
                raise PatternError(
                    f"Unknown placeholder {{{name}}} in pattern {text!r}; "
                    f"expected one of {', '.join('{%s}' % p for p in _PLACEHOLDERS)}"
                )
            if match.start() > position:
                segments.append(PatternSegment(SegmentKind.LITERAL, text[position:match.start()]))
            segments.append(PatternSegment(_PLACEHOLDERS[name]))
            position = match.end()

        if position < len(text):
            segments.append(PatternSegment(SegmentKind.LITERAL, text[position:]))

        return cls(tuple(segments))

    @property
    def has_placeholders(self) -> bool:
        return any(seg.kind is not SegmentKind.LITERAL for seg in self.segments)

    def __str__(self) -> str:
        return "".join(split_segments(self.segments))


def resolve(template: PatternTemplate, reference_date: date) -> str:
    """Substitute the date of ``reference_date`` into every placeholder."""
    values = {
        SegmentKind.YEAR: f"{reference_date.year:04d}",
        SegmentKind.MONTH: f"{reference_date.month:02d}",
        SegmentKind.DAY: f"{reference_date.day:02d}",
    }
    return "".join(
        seg.text if seg.kind is SegmentKind.LITERAL else values[seg.kind]
        for seg in template.segments
    )


def discovery_glob(template: PatternTemplate) -> str:
    """Widen every placeholder to a wildcard so all partitions match at once."""
    return "".join(
        seg.text if seg.kind is SegmentKind.LITERAL else "*"
        for seg in template.segments
    )


def matches(relative_path: str, glob: str) -> bool:
    """
    Check a root-relative path against a discovery glob.

    Matching is done component by component so that ``*`` never crosses a
    directory separator.
    """
    path_parts = relative_path.split("/")
    glob_parts = glob.strip("/").split("/")
    if len(path_parts) != len(glob_parts):
        return False
    return all(
        fnmatch.fnmatchcase(part, pattern)
        for part, pattern in zip(path_parts, glob_parts)
    )


def destination_for(src_root: Union[str, Path], dst_root: Union[str, Path],
                    source_file: Union[str, Path]) -> Path:
    """
    Map a source file to its archive artifact path.

    The source root is mirrored under the destination root with its leading
    separator stripped, and the compressed extension is appended to the
    original file name rather than replacing its extension.

    Args:
        src_root: Root of the scanned source tree.
        dst_root: Root of the archive tree.
        source_file: Absolute path of a file under ``src_root``.

    Returns:
        Path of the compressed artifact.
    """
    src_root = normalize_root(src_root)
    dst_root = normalize_root(dst_root)
    relative = os.path.relpath(os.fspath(source_file), src_root)
    if relative == os.pardir or relative.startswith(os.pardir + os.sep):
        raise ValueError(f"{source_file} is not under source root {src_root}")

    mirrored_root = src_root.lstrip(os.sep)
    return Path(dst_root, mirrored_root, relative + COMPRESSED_EXTENSION)


def normalize_root(path: Union[str, Path]) -> str:
    """Absolute form of ``path`` without a trailing separator."""
    text = os.path.abspath(os.fspath(path))
    if len(text) > 1:
        text = text.rstrip(os.sep)
    return text
