"""
Age-based selection of source files.

Retention decisions use whole-day file ages computed from modification
times, the same granularity ``find -mtime`` reports. The clock and the age
function are injectable so tests can use synthetic timestamps.
"""

import logging
import os
import stat as stat_module
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union

from .archive_models import SourceFile
from .errors import ValidationError
from .path_pattern import matches, normalize_root

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400

Clock = Callable[[], float]
AgeFunction = Callable[[float, float], int]


def whole_day_age(mtime: float, now: float) -> int:
    """Number of complete 24 hour periods between ``mtime`` and ``now``."""
    return int((now - mtime) // SECONDS_PER_DAY)


@dataclass(frozen=True)
class AgePredicate:
    """
    Predicate over whole-day file age.

    ``min_age_exclusive`` of None accepts every file; otherwise a file is
    accepted when its age is strictly greater than the bound.
    """
    retention_days: int
    min_age_exclusive: Optional[int]

    def __call__(self, age_days: int) -> bool:
        if self.min_age_exclusive is None:
            return True
        return age_days > self.min_age_exclusive

    def describe(self) -> str:
        if self.min_age_exclusive is None:
            return "all files"
        return f"files older than {self.min_age_exclusive} whole day(s)"


def cutoff(retention_days: int) -> AgePredicate:
    """
    Build the retention predicate for ``retention_days``.

    0 archives everything, 1 archives yesterday and older, and N > 1
    archives files older than N-1 whole days.
    """
    if retention_days < 0:
        raise ValidationError(f"Retention must be zero or positive, got {retention_days}")

    if retention_days == 0:
        return AgePredicate(retention_days, None)
    elif retention_days == 1:
        return AgePredicate(retention_days, 0)
    else:
        return AgePredicate(retention_days, retention_days - 1)


class AgeSelector:
    """Enumerates source files whose age satisfies a retention predicate."""

    def __init__(self, clock: Optional[Clock] = None, age_function: Optional[AgeFunction] = None):
        self.clock = clock or time.time
        self.age_function = age_function or whole_day_age

    def age_of(self, mtime: float, now: Optional[float] = None) -> int:
        return self.age_function(mtime, self.clock() if now is None else now)

    def eligible_files(self, src_root: Union[str, Path], glob: str,
                       predicate: AgePredicate) -> List[SourceFile]:
        """
        Walk ``src_root`` and return regular files matching ``glob`` and ``predicate``.

        Args:
            src_root: Root of the source tree.
            glob: Root-relative discovery glob.
            predicate: Retention predicate over whole-day age.

        Returns:
            Eligible files in walk order. No ordering is guaranteed.
        """
        root = normalize_root(src_root)
        now = self.clock()
        eligible = []

        for dirpath, _dirnames, filenames in os.walk(root):
            for name in filenames:
                full_path = os.path.join(dirpath, name)
                relative = os.path.relpath(full_path, root).replace(os.sep, "/")
                if not matches(relative, glob):
                    continue

                try:
                    stat = os.lstat(full_path)
                except FileNotFoundError:
                    # removed between listing and stat
                    continue
                if not stat_module.S_ISREG(stat.st_mode):
                    continue

                age = self.age_of(stat.st_mtime, now)
                if predicate(age):
                    eligible.append(SourceFile(Path(full_path), stat.st_size, stat.st_mtime))
                else:
                    logger.debug(f"Not eligible ({age} day(s) old): {full_path}")

        return eligible
