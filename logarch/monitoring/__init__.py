"""
Monitoring module for logarch.

Exports archive run results as Prometheus metrics for the node_exporter
textfile collector.
"""

from .archive_metrics import ArchiveMetricsExporter

__all__ = [
    'ArchiveMetricsExporter',
]
