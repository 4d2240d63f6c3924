"""
Configuration management for the archive pipeline.

Settings come from three layers: built-in defaults, an optional YAML file
with an ``archive`` mapping, and command-line flags. Later layers win.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ValidationError as PydanticValidationError, field_validator

from .errors import ValidationError

logger = logging.getLogger(__name__)

CRON_SCHEDULES = ("hourly", "daily", "weekly")

DEFAULT_RETENTION_DAYS = 5
DEFAULT_LOG_RETENTION_DAYS = 5
DEFAULT_COMPRESS_LEVEL = 9


class ArchiveSettings(BaseModel):
    """Validated settings for one archive run."""
    src_path: str
    src_pattern: str
    dst_path: str
    retention_days: int = DEFAULT_RETENTION_DAYS
    compress_level: int = DEFAULT_COMPRESS_LEVEL
    dry_run: bool = False
    log_path: Optional[str] = None
    no_log: bool = False
    verbose: bool = False
    log_retention_days: int = DEFAULT_LOG_RETENTION_DAYS
    cron_schedule: Optional[str] = None
    metrics_path: Optional[str] = None

    @field_validator('src_path', 'dst_path')
    @classmethod
    def _strip_trailing_separator(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("path must not be empty")
        if len(value) > 1:
            value = value.rstrip(os.sep) or os.sep
        return value

    @field_validator('src_pattern')
    @classmethod
    def _pattern_not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("pattern must not be empty")
        return value

    @field_validator('compress_level')
    @classmethod
    def _compress_level_range(cls, value: int) -> int:
        if not 1 <= value <= 9:
            raise ValueError("Compression level must be between 1 and 9")
        return value

    @field_validator('retention_days', 'log_retention_days')
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("retention must be zero or positive")
        return value

    @field_validator('cron_schedule')
    @classmethod
    def _known_schedule(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in CRON_SCHEDULES:
            raise ValueError("Cron schedule must be hourly, daily, or weekly")
        return value

    @property
    def mode_label(self) -> str:
        return "dry-run" if self.dry_run else "real"

    def summary(self) -> Dict[str, Any]:
        """Configuration echo used in the run report."""
        return {
            'src_path': self.src_path,
            'src_pattern': self.src_pattern,
            'dst_path': self.dst_path,
            'retention_days': self.retention_days,
            'log_retention_days': self.log_retention_days,
            'compress_level': self.compress_level,
            'dry_run': self.dry_run,
        }


class ArchiveConfigManager:
    """Loads archive defaults from YAML and merges command-line overrides."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self.file_settings = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load the ``archive`` mapping from the YAML file, if any."""
        if self.config_path is None:
            return {}

        if not self.config_path.exists():
            logger.warning(f"Config file not found at {self.config_path}. Using defaults.")
            return {}

        try:
            with open(self.config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ValidationError(f"Failed to load config {self.config_path}: {e}")

        if not isinstance(config_data, dict):
            raise ValidationError(f"Config {self.config_path} must contain a mapping")

        archive_section = config_data.get('archive', {}) or {}
        if not isinstance(archive_section, dict):
            raise ValidationError(f"'archive' section of {self.config_path} must be a mapping")

        unknown = set(archive_section) - set(ArchiveSettings.model_fields)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")

        return {k: v for k, v in archive_section.items() if k in ArchiveSettings.model_fields}

    def build_settings(self, overrides: Optional[Dict[str, Any]] = None) -> ArchiveSettings:
        """
        Merge file settings with overrides and validate the result.

        Args:
            overrides: Values from the command line. ``None`` values are ignored.

        Returns:
            Validated ArchiveSettings.

        Raises:
            ValidationError: If a required value is missing or invalid.
        """
        merged = dict(self.file_settings)
        for key, value in (overrides or {}).items():
            if value is not None:
                merged[key] = value

        missing = [name for name in ('src_path', 'src_pattern', 'dst_path') if not merged.get(name)]
        if missing:
            raise ValidationError(
                "; ".join(f"--{name.replace('_', '-')} is required" for name in missing)
            )

        try:
            return ArchiveSettings(**merged)
        except PydanticValidationError as e:
            messages = [
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise ValidationError("; ".join(messages))


def validate_paths(settings: ArchiveSettings) -> None:
    """
    Check the source root and make sure the destination root exists.

    The destination is not created in dry-run mode.

    Raises:
        ValidationError: If the source is not a directory or the destination
            cannot be created.
    """
    src = Path(settings.src_path)
    if not src.exists():
        raise ValidationError(f"Source path does not exist: {settings.src_path}")
    if not src.is_dir():
        raise ValidationError(f"Source path is not a directory: {settings.src_path}")

    dst = Path(settings.dst_path)
    if dst.exists():
        if not dst.is_dir():
            raise ValidationError(f"Destination path is not a directory: {settings.dst_path}")
        return

    if settings.dry_run:
        logger.info(f"[DRY-RUN] Would create destination directory: {settings.dst_path}")
        return

    logger.info(f"Creating destination directory: {settings.dst_path}")
    try:
        dst.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ValidationError(f"Failed to create destination directory: {settings.dst_path} ({e})")
