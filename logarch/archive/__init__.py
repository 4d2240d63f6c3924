"""
Archive pipeline for time-partitioned log trees.

Discovery by age, atomic compression into the archive tree, retention-gated
deletion of originals and run reporting.
"""

from .archive_config import ArchiveConfigManager, ArchiveSettings
from .archive_manager import ArchiveManager, create_archive_manager
from .archive_models import ArchiveMode, ArchiveResult, RunReport, SweepResult
from .errors import (
    ArchiverEnvironmentError,
    ArchiverError,
    ConsistencyWarning,
    PatternError,
    ValidationError,
)

__all__ = [
    'ArchiveConfigManager',
    'ArchiveSettings',
    'ArchiveManager',
    'create_archive_manager',
    'ArchiveMode',
    'ArchiveResult',
    'RunReport',
    'SweepResult',
    'ArchiverError',
    'ArchiverEnvironmentError',
    'ConsistencyWarning',
    'PatternError',
    'ValidationError',
]
