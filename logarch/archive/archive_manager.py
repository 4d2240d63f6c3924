"""
Main archive manager - orchestrates the archive-and-retire pipeline.

Discovery, compression, retention sweep and reporting run here in sequence.
Only validation and environment problems abort a run; per-file problems are
counted and the run carries on.
"""

import bz2
import logging
from pathlib import Path
from typing import Optional

from .age_selector import AgeSelector, Clock, cutoff
from .archive_config import ArchiveSettings, validate_paths
from .archive_logging import prune_run_logs
from .archive_models import ArchiveMode, RunReport
from .archive_scheduler import CronRegistrar
from .archiver import Archiver
from .errors import ArchiverEnvironmentError
from .path_pattern import PatternTemplate, discovery_glob
from .retention_sweeper import RetentionSweeper
from .run_accountant import RunAccountant, render
from logarch.monitoring.archive_metrics import ArchiveMetricsExporter

logger = logging.getLogger(__name__)

VERSION_LABEL = "logs-archiver v1.4.2"


def check_environment(compress_level: int = 9):
    """
    Verify that bz2 compression works on this host.

    Raises:
        ArchiverEnvironmentError: If bz2 cannot compress and restore a probe.
    """
    probe = b"logarch environment probe\n"
    try:
        restored = bz2.decompress(bz2.compress(probe, compress_level))
    except (OSError, ValueError) as e:
        raise ArchiverEnvironmentError(f"bz2 compression is not usable: {e}")
    if restored != probe:
        raise ArchiverEnvironmentError("bz2 compression round-trip mismatch")
    logger.debug("All required tools are installed")


class ArchiveManager:
    """
    Runs the archive pipeline for one source/destination pair.

    The manager coordinates the age selector, archiver, retention sweeper,
    run accountant and the optional housekeeping steps (run-log pruning,
    cron registration and metrics export).
    """

    def __init__(self, settings: ArchiveSettings, clock: Optional[Clock] = None,
                 cron_registrar: Optional[CronRegistrar] = None,
                 metrics_exporter: Optional[ArchiveMetricsExporter] = None):
        self.settings = settings
        self.mode = ArchiveMode.from_flag(settings.dry_run)
        self.clock = clock
        self.selector = AgeSelector(clock=clock)
        self.archiver = Archiver(settings.src_path, settings.dst_path,
                                 settings.compress_level, self.mode)
        self.sweeper = RetentionSweeper(self.selector, self.mode)
        self.cron_registrar = cron_registrar or CronRegistrar(mode=self.mode)
        self.cron_registrar.mode = self.mode
        self.metrics_exporter = metrics_exporter

    def preflight(self):
        """Fatal checks that run before any file is touched."""
        check_environment(self.settings.compress_level)
        validate_paths(self.settings)
        if self.settings.cron_schedule and not self.mode.is_simulated:
            self.cron_registrar.check_environment()

    def run(self) -> RunReport:
        """
        Run discovery, archiving, retention sweep and reporting.

        Returns:
            RunReport for the finished run.

        Raises:
            ValidationError: On invalid parameters or paths.
            ArchiverEnvironmentError: When compression or cron setup is unavailable.
        """
        settings = self.settings
        logger.info(f"Starting {VERSION_LABEL}")
        if self.mode.is_simulated:
            logger.info("*** DRY-RUN MODE - No changes will be made ***")

        template = PatternTemplate.parse(settings.src_pattern)
        predicate = cutoff(settings.retention_days)
        self.preflight()

        accountant = RunAccountant(settings.summary(), simulated=self.mode.is_simulated)
        glob = discovery_glob(template)

        logger.info(f"Processing files from: {settings.src_path}")
        logger.info(f"Pattern: {settings.src_pattern}")
        logger.info(f"Destination: {settings.dst_path}")
        logger.debug(f"Selecting {predicate.describe()} matching {glob}")

        eligible = self.selector.eligible_files(settings.src_path, glob, predicate)
        pending_artifacts = []
        for source in eligible:
            result = accountant.record(self.archiver.archive(source))
            if result.success and result.estimated:
                pending_artifacts.append(result.artifact)

        if not eligible:
            logger.info(f"No files found older than {settings.retention_days} days")
        else:
            logger.info(f"Processed {len(eligible)} files")
            sweep = self.sweeper.sweep(settings.src_path, settings.dst_path, glob,
                                       predicate, pending_artifacts)
            accountant.record_sweep(sweep)

        report = accountant.summarize()
        for line in render(report):
            logger.info(line)

        prune_run_logs(settings.log_path if not settings.no_log else None,
                       settings.log_retention_days, self.mode, self.clock)
        self.cron_registrar.register(settings)
        if settings.metrics_path:
            self._export_metrics(report, settings.metrics_path)

        logger.info("Archive process completed")
        return report

    def _export_metrics(self, report: RunReport, path: str):
        if self.metrics_exporter is None:
            self.metrics_exporter = ArchiveMetricsExporter()
        if self.mode.is_simulated:
            logger.info(f"[DRY-RUN] Would write metrics to {path}")
            return
        self.metrics_exporter.export(report, Path(path))


def create_archive_manager(settings: ArchiveSettings, clock: Optional[Clock] = None) -> ArchiveManager:
    """Create a new ArchiveManager instance."""
    return ArchiveManager(settings, clock=clock)
