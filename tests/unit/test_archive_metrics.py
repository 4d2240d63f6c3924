"""
Unit tests for Prometheus export of archive runs.
"""

from datetime import datetime
from unittest.mock import patch

import pytest
from prometheus_client import CollectorRegistry

from logarch.archive.archive_models import RunReport
from logarch.monitoring.archive_metrics import ArchiveMetricsExporter


@pytest.fixture
def report():
    return RunReport(
        simulated=False,
        configuration={'src_path': '/var/syslog'},
        files_processed=12,
        files_failed=1,
        total_bytes_before=120000,
        total_bytes_after=12000,
        compression_ratio=90,
        duration_seconds=3.5,
        sizes_estimated=False,
        files_deleted=12,
        deletions_skipped=1,
        finished_at=datetime(2025, 8, 27, 2, 0, 0),
    )


@pytest.fixture
def exporter():
    return ArchiveMetricsExporter(CollectorRegistry())


LABELS = {'src_path': '/var/syslog', 'mode': 'real'}


class TestArchiveMetricsExporter:

    def test_update_sets_gauges(self, exporter, report):
        exporter.update(report)
        registry = exporter.registry

        assert registry.get_sample_value('logarch_files_processed', LABELS) == 12
        assert registry.get_sample_value('logarch_files_failed', LABELS) == 1
        assert registry.get_sample_value('logarch_bytes_before', LABELS) == 120000
        assert registry.get_sample_value('logarch_bytes_after', LABELS) == 12000
        assert registry.get_sample_value('logarch_files_deleted', LABELS) == 12
        assert registry.get_sample_value('logarch_deletions_skipped', LABELS) == 1
        assert registry.get_sample_value('logarch_run_duration_seconds', LABELS) == 3.5
        assert registry.get_sample_value('logarch_last_run_timestamp_seconds', LABELS) == \
            datetime(2025, 8, 27, 2, 0, 0).timestamp()
        assert registry.get_sample_value('logarch_sizes_estimated', LABELS) == 0

    def test_dry_run_uses_its_own_label(self, exporter, report):
        report.simulated = True
        report.sizes_estimated = True
        exporter.update(report)

        labels = dict(LABELS, mode='dry_run')
        assert exporter.registry.get_sample_value('logarch_sizes_estimated', labels) == 1
        assert exporter.registry.get_sample_value('logarch_files_processed', LABELS) is None

    def test_export_writes_textfile(self, exporter, report, tmp_path):
        path = tmp_path / "textfile" / "logarch.prom"

        assert exporter.export(report, path)

        text = path.read_text()
        assert 'logarch_files_processed{src_path="/var/syslog",mode="real"} 12.0' in text

    def test_export_failure_returns_false(self, exporter, report, tmp_path):
        with patch("logarch.monitoring.archive_metrics.write_to_textfile",
                   side_effect=PermissionError("denied")):
            assert not exporter.export(report, tmp_path / "logarch.prom")
