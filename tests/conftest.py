"""
Shared fixtures for logarch tests.

Source trees are built under tmp_path with synthetic modification times
relative to a fixed clock, so age decisions do not depend on the wall clock.
"""

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# 2025-08-27 12:00:00 local time
NOW = datetime(2025, 8, 27, 12, 0, 0).timestamp()
DAY = 86400


def fixed_clock():
    return NOW


def write_log(path: Path, days_old: float, content: bytes = None) -> Path:
    """Create ``path`` with an mtime ``days_old`` days before NOW."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if content is None:
        line = f"{path.name} sample syslog line host=web01 status=ok\n".encode()
        content = line * 200
    path.write_bytes(content)
    mtime = NOW - days_old * DAY
    os.utime(path, (mtime, mtime))
    return path


def build_partitioned_tree(src_root: Path, days_ago, files_per_day: int = 4):
    """
    Create ``{YYYY}/{MM}/{DD}/app-N.log`` partitions for each age in ``days_ago``.

    Files get an extra hour of age so they sit well inside their day.

    Returns:
        Mapping of age in days to the created paths.
    """
    created = {}
    base = datetime.fromtimestamp(NOW)
    for age in days_ago:
        day = base - timedelta(days=age)
        partition = src_root / f"{day.year:04d}" / f"{day.month:02d}" / f"{day.day:02d}"
        created[age] = [
            write_log(partition / f"app-{n}.log", age + 1 / 24)
            for n in range(files_per_day)
        ]
    return created


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def src_root(tmp_path):
    root = tmp_path / "var" / "syslog"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def dst_root(tmp_path):
    root = tmp_path / "archives"
    root.mkdir()
    return root


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the CLI attaches so they do not leak between tests."""
    yield
    package_logger = logging.getLogger("logarch")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
