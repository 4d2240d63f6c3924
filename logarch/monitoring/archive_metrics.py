"""
Prometheus metrics for archive runs.

Run results are published as gauges in a private registry and written to a
file for the node_exporter textfile collector. A failed export is logged and
never fails the run.
"""

import time
from pathlib import Path
from typing import Optional, Union

import structlog
from prometheus_client import CollectorRegistry, Gauge, write_to_textfile

from logarch.archive.archive_models import RunReport

logger = structlog.get_logger(__name__)


class ArchiveMetricsExporter:
    """
    Publishes the outcome of an archive run as Prometheus gauges.

    Every gauge carries ``src_path`` and ``mode`` labels so several archive
    jobs can share one textfile directory.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        labels = ['src_path', 'mode']

        self.files_processed = Gauge(
            'logarch_files_processed',
            'Files archived in the last run',
            labels, registry=self.registry
        )
        self.files_failed = Gauge(
            'logarch_files_failed',
            'Files that failed to archive in the last run',
            labels, registry=self.registry
        )
        self.bytes_before = Gauge(
            'logarch_bytes_before',
            'Total source bytes considered in the last run',
            labels, registry=self.registry
        )
        self.bytes_after = Gauge(
            'logarch_bytes_after',
            'Total compressed bytes written in the last run',
            labels, registry=self.registry
        )
        self.files_deleted = Gauge(
            'logarch_files_deleted',
            'Source files removed by the retention sweep in the last run',
            labels, registry=self.registry
        )
        self.deletions_skipped = Gauge(
            'logarch_deletions_skipped',
            'Eligible source files kept because no archive artifact exists',
            labels, registry=self.registry
        )
        self.duration_seconds = Gauge(
            'logarch_run_duration_seconds',
            'Wall-clock duration of the last run',
            labels, registry=self.registry
        )
        self.last_run_timestamp = Gauge(
            'logarch_last_run_timestamp_seconds',
            'Unix time the last run finished',
            labels, registry=self.registry
        )
        self.sizes_estimated = Gauge(
            'logarch_sizes_estimated',
            '1 when byte figures of the last run are estimates',
            labels, registry=self.registry
        )

    def update(self, report: RunReport):
        """Set every gauge from ``report``."""
        labels = {
            'src_path': str(report.configuration.get('src_path', '')),
            'mode': 'dry_run' if report.simulated else 'real',
        }
        finished = report.finished_at.timestamp() if report.finished_at else time.time()

        self.files_processed.labels(**labels).set(report.files_processed)
        self.files_failed.labels(**labels).set(report.files_failed)
        self.bytes_before.labels(**labels).set(report.total_bytes_before)
        self.bytes_after.labels(**labels).set(report.total_bytes_after)
        self.files_deleted.labels(**labels).set(report.files_deleted)
        self.deletions_skipped.labels(**labels).set(report.deletions_skipped)
        self.duration_seconds.labels(**labels).set(report.duration_seconds)
        self.last_run_timestamp.labels(**labels).set(finished)
        self.sizes_estimated.labels(**labels).set(1 if report.sizes_estimated else 0)

    def export(self, report: RunReport, path: Union[str, Path]) -> bool:
        """
        Write the metrics of ``report`` to ``path``.

        Returns:
            True if the file was written.
        """
        self.update(report)
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            write_to_textfile(str(path), self.registry)
        except OSError as e:
            logger.error("Failed to write metrics textfile", path=str(path), error=str(e))
            return False

        logger.info("Metrics textfile written", path=str(path),
                    files_processed=report.files_processed,
                    files_failed=report.files_failed)
        return True
