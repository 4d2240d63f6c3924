"""
Logging setup and run-log housekeeping for the archive pipeline.

Each run may write its own log file named ``logs-archiver-YYYYmmdd-HHMMSS.log``.
Older run logs next to the current one are pruned after the retention window.
"""

import glob
import logging
import os
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union

from .archive_models import ArchiveMode
from .errors import ValidationError

logger = logging.getLogger(__name__)

LOGGER_NAME = "logarch"
LOG_FILE_PREFIX = "logs-archiver-"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SECONDS_PER_DAY = 86400


def default_log_path(log_dir: Union[str, Path], now: Optional[datetime] = None) -> Path:
    """Timestamped run-log path inside ``log_dir``."""
    now = now or datetime.now()
    return Path(log_dir) / f"{LOG_FILE_PREFIX}{now.strftime('%Y%m%d-%H%M%S')}.log"


def setup_logging(verbose: bool = False, log_path: Optional[Union[str, Path]] = None,
                  no_log: bool = False) -> logging.Logger:
    """
    Set up logging for a run.

    Args:
        verbose: Emit DEBUG records when True.
        log_path: Run-log file. Ignored when ``no_log`` is set.
        no_log: Console output only, no log file.

    Returns:
        The package logger.
    """
    level = logging.DEBUG if verbose else logging.INFO
    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(level)

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    package_logger.addHandler(console)

    if log_path and not no_log:
        try:
            Path(log_path).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
        except OSError as e:
            raise ValidationError(f"Cannot open log file {log_path}: {e}")
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    return package_logger


def prune_run_logs(log_path: Optional[Union[str, Path]], retention_days: int,
                   mode: ArchiveMode = ArchiveMode.REAL,
                   clock: Optional[Callable[[], float]] = None) -> List[Path]:
    """
    Delete run logs older than ``retention_days`` next to ``log_path``.

    The current run log is never deleted. Files are considered old when
    their whole-day age is strictly greater than the retention.

    Returns:
        Paths that were deleted, or would be deleted in simulate mode.
    """
    if not log_path:
        return []

    current = Path(log_path).resolve()
    log_dir = current.parent
    now = (clock or time.time)()
    pruned = []

    logger.debug(f"Cleaning up script logs older than {retention_days} days from {log_dir}")

    for candidate in sorted(glob.glob(str(log_dir / f"{LOG_FILE_PREFIX}*.log"))):
        path = Path(candidate)
        if path.resolve() == current or not path.is_file():
            continue
        try:
            age_days = int((now - path.stat().st_mtime) // SECONDS_PER_DAY)
        except FileNotFoundError:
            continue
        if age_days <= retention_days:
            continue

        if mode.is_simulated:
            logger.debug(f"[DRY-RUN] Would delete old log: {path.name}")
            pruned.append(path)
            continue

        try:
            os.remove(path)
        except OSError as e:
            logger.warning(f"Failed to delete old log {path.name}: {e}")
            continue
        logger.debug(f"Deleted old log: {path.name}")
        pruned.append(path)

    if pruned:
        if mode.is_simulated:
            logger.info(f"[DRY-RUN] Would delete {len(pruned)} old script log files")
        else:
            logger.info(f"Deleted {len(pruned)} old script log files")
    return pruned
