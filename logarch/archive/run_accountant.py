"""
Run statistics and summary rendering for the archive pipeline.

The accountant owns a single RunStats accumulator for one invocation. Every
processing step hands its result back to the accountant, which folds it in;
nothing else holds counters.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .archive_models import (
    ArchiveResult,
    RunReport,
    RunStats,
    SweepResult,
    compression_ratio,
)


def format_bytes(num_bytes: int) -> str:
    """Human readable size with whole units, e.g. ``512B``, ``3KB``, ``1GB``."""
    if num_bytes < 1024:
        return f"{num_bytes}B"
    elif num_bytes < 1024 ** 2:
        return f"{num_bytes // 1024}KB"
    elif num_bytes < 1024 ** 3:
        return f"{num_bytes // 1024 ** 2}MB"
    else:
        return f"{num_bytes // 1024 ** 3}GB"


def format_duration(duration_seconds: float) -> str:
    """Format duration in a human-readable format."""
    if duration_seconds < 60:
        return f"{duration_seconds:.0f} seconds"
    elif duration_seconds < 3600:
        return f"{duration_seconds / 60:.1f} minutes"
    else:
        return f"{duration_seconds / 3600:.1f} hours"


class RunAccountant:
    """Accumulates per-file and sweep results into a run report."""

    def __init__(self, configuration: Dict[str, Any], simulated: bool = False,
                 now: Optional[Callable[[], datetime]] = None):
        self.configuration = dict(configuration)
        self.simulated = simulated
        self._now = now or datetime.now
        self.stats = RunStats(started_at=self._now())

    def record(self, result: ArchiveResult) -> ArchiveResult:
        """Fold one archive result into the run statistics."""
        self.stats.total_bytes_before += result.bytes_before
        if result.success:
            self.stats.files_processed += 1
            self.stats.total_bytes_after += result.bytes_after
            if result.estimated:
                self.stats.sizes_estimated = True
        else:
            self.stats.files_failed += 1
        return result

    def record_sweep(self, result: SweepResult) -> SweepResult:
        """Fold a sweep result into the run statistics."""
        self.stats.files_deleted += result.deleted
        self.stats.delete_failures += result.failed
        self.stats.deletions_skipped += result.skipped
        self.stats.directories_removed += result.directories_removed
        return result

    def finish(self) -> RunStats:
        if self.stats.finished_at is None:
            self.stats.finished_at = self._now()
        return self.stats

    def summarize(self) -> RunReport:
        """Build the run report. Closes the run if it is still open."""
        stats = self.finish()
        ratio = None
        if stats.total_bytes_before > 0:
            ratio = compression_ratio(stats.total_bytes_before, stats.total_bytes_after)

        return RunReport(
            simulated=self.simulated,
            configuration=dict(self.configuration),
            files_processed=stats.files_processed,
            files_failed=stats.files_failed,
            total_bytes_before=stats.total_bytes_before,
            total_bytes_after=stats.total_bytes_after,
            compression_ratio=ratio,
            duration_seconds=stats.duration_seconds,
            sizes_estimated=stats.sizes_estimated,
            files_deleted=stats.files_deleted,
            delete_failures=stats.delete_failures,
            deletions_skipped=stats.deletions_skipped,
            directories_removed=stats.directories_removed,
            finished_at=stats.finished_at,
        )


def render(report: RunReport) -> List[str]:
    """Render a run report as summary lines for the console and run log."""
    estimate = " (estimated)" if report.sizes_estimated else ""
    config = report.configuration

    lines = [
        "========== DRY-RUN SUMMARY ==========" if report.simulated
        else "========== Archive Summary ==========",
        "Parameters:",
        f"  Source Path: {config.get('src_path', '')}",
        f"  Source Pattern: {config.get('src_pattern', '')}",
        f"  Destination Path: {config.get('dst_path', '')}",
        f"  Retention: {config.get('retention_days', '')} days",
        f"  Log Retention: {config.get('log_retention_days', '')} days",
        f"  Compression Level: {config.get('compress_level', '')}",
        "",
        "Results:",
        f"  Files Processed: {report.files_processed}",
        f"  Files Failed: {report.files_failed}",
        f"  Total Size Before: {format_bytes(report.total_bytes_before)}",
        f"  Total Size After: {format_bytes(report.total_bytes_after)}{estimate}",
    ]
    if report.compression_ratio is not None:
        lines.append(f"  Compression Ratio: {report.compression_ratio}%{estimate}")
    lines.extend([
        f"  Files Deleted: {report.files_deleted}",
        f"  Delete Failures: {report.delete_failures}",
        f"  Skipped (not archived): {report.deletions_skipped}",
        f"  Directories Removed: {report.directories_removed}",
        f"  Execution Time: {format_duration(report.duration_seconds)}",
        "=====================================",
    ])
    return lines
