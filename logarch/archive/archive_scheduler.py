"""
Cron registration for recurring archive runs.

Writes a file into ``/etc/cron.d`` that re-invokes the archiver with the
same source, pattern, destination and retention settings. Each scheduled
run creates its own timestamped log, so ``--log-path`` is never carried over.
"""

import logging
import os
import shlex
import shutil
import subprocess
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from .archive_config import (
    ArchiveSettings,
    DEFAULT_COMPRESS_LEVEL,
    DEFAULT_LOG_RETENTION_DAYS,
)
from .archive_models import ArchiveMode
from .errors import ArchiverEnvironmentError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CRON_DIR = "/etc/cron.d"
CRON_LOG_PATH = "/var/log/logs-archiver-cron.log"

CRON_PATTERNS = {
    'hourly': "0 * * * *",
    'daily': "0 2 * * *",
    'weekly': "0 2 * * 0",
}


@dataclass
class CronEntry:
    """A rendered cron.d file."""
    path: Path
    schedule: str
    pattern: str
    command: str
    content: str


class CronRegistrar:
    """Creates or updates the cron.d entry for an archive configuration."""

    def __init__(self, cron_dir: Union[str, Path] = DEFAULT_CRON_DIR,
                 command_prefix: Optional[List[str]] = None,
                 mode: ArchiveMode = ArchiveMode.REAL):
        self.cron_dir = Path(cron_dir)
        self.command_prefix = command_prefix or [sys.executable, "-m", "logarch.archive.archive_cli"]
        self.mode = mode

    @staticmethod
    def cron_name(src_path: str) -> str:
        """``logs-archiver-var-syslog`` for ``/var/syslog``."""
        return "logs-archiver-" + src_path.replace("/", "-").strip("-")

    def build_command(self, settings: ArchiveSettings) -> str:
        args = list(self.command_prefix) + [
            "--src-path", settings.src_path,
            "--src-pattern", settings.src_pattern,
            "--dst-path", settings.dst_path,
            "--retention", str(settings.retention_days),
        ]
        if settings.log_retention_days != DEFAULT_LOG_RETENTION_DAYS:
            args += ["--log-retention", str(settings.log_retention_days)]
        if settings.compress_level != DEFAULT_COMPRESS_LEVEL:
            args += ["--compress-level", str(settings.compress_level)]
        return " ".join(shlex.quote(arg) for arg in args)

    def render(self, settings: ArchiveSettings, now: Optional[datetime] = None) -> CronEntry:
        """Render the cron.d file for ``settings`` without writing it."""
        schedule = settings.cron_schedule
        if schedule not in CRON_PATTERNS:
            raise ValidationError("Cron schedule must be hourly, daily, or weekly")

        now = now or datetime.now()
        pattern = CRON_PATTERNS[schedule]
        command = self.build_command(settings)
        content = "\n".join([
            "# Cron job for logs-archiver",
            f"# Generated: {now.strftime('%Y-%m-%d %H:%M:%S')}",
            f"# Schedule: {schedule}",
            f"# Source: {settings.src_path}",
            f"# Pattern: {settings.src_pattern}",
            f"# Destination: {settings.dst_path}",
            "",
            "SHELL=/bin/bash",
            "PATH=/usr/local/sbin:/usr/local/bin:/sbin:/bin:/usr/sbin:/usr/bin",
            "",
            f"{pattern} root {command} >> {CRON_LOG_PATH} 2>&1",
            "",
        ])
        return CronEntry(
            path=self.cron_dir / self.cron_name(settings.src_path),
            schedule=schedule,
            pattern=pattern,
            command=command,
            content=content,
        )

    def check_environment(self):
        """Raise if the cron directory cannot be written."""
        if not self.cron_dir.is_dir():
            raise ArchiverEnvironmentError(f"Cron directory not found: {self.cron_dir}")
        if not os.access(self.cron_dir, os.W_OK):
            raise ArchiverEnvironmentError(
                f"Cron setup requires write access to {self.cron_dir}. Run with sudo."
            )

    def register(self, settings: ArchiveSettings) -> Optional[CronEntry]:
        """
        Create or update the cron.d file for ``settings``.

        Returns:
            The rendered entry, or None when no schedule is configured.
        """
        if not settings.cron_schedule:
            return None

        entry = self.render(settings)
        if self.mode.is_simulated:
            logger.info(f"[DRY-RUN] Would create cron job: {entry.path} ({entry.schedule})")
            return entry

        self.check_environment()
        logger.info(f"Creating cron job: {entry.path}")
        temp_path = entry.path.with_name(f".{entry.path.name}.tmp")
        temp_path.write_text(entry.content)
        os.chmod(temp_path, 0o644)
        os.replace(temp_path, entry.path)

        logger.info(f"SUCCESS Cron job created: {entry.path} ({entry.schedule})")
        logger.info(f"Cron will run: {entry.pattern}")
        self._reload_cron()
        return entry

    def _reload_cron(self):
        systemctl = shutil.which("systemctl")
        if not systemctl:
            return
        for service in ("cron", "crond"):
            completed = subprocess.run([systemctl, "reload", service],
                                       stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
            if completed.returncode == 0:
                logger.debug(f"Reloaded {service} service")
                return
        logger.debug("Could not reload cron service; changes apply on next cron scan")
