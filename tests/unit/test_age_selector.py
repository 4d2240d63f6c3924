"""
Unit tests for retention cutoffs and age-based file selection.
"""

import os
import unittest

import pytest

from conftest import DAY, NOW, fixed_clock, write_log
from logarch.archive.age_selector import AgeSelector, cutoff, whole_day_age
from logarch.archive.errors import ValidationError


class TestWholeDayAge(unittest.TestCase):
    """Test whole-day age arithmetic."""

    def test_same_day_is_zero(self):
        self.assertEqual(whole_day_age(NOW - 3600, NOW), 0)

    def test_partial_days_are_truncated(self):
        self.assertEqual(whole_day_age(NOW - DAY - 60, NOW), 1)
        self.assertEqual(whole_day_age(NOW - 2 * DAY + 60, NOW), 1)

    def test_exact_day_boundary(self):
        self.assertEqual(whole_day_age(NOW - 3 * DAY, NOW), 3)


class TestCutoff:
    """Test the retention predicate boundaries."""

    def test_zero_accepts_everything(self):
        predicate = cutoff(0)
        assert all(predicate(age) for age in (0, 1, 5, 400))

    def test_one_accepts_yesterday_not_today(self):
        predicate = cutoff(1)
        assert not predicate(0)
        assert predicate(1)

    @pytest.mark.parametrize("retention", [2, 5, 7, 30])
    def test_boundary_for_larger_retention(self, retention):
        predicate = cutoff(retention)
        assert not predicate(retention - 2)
        assert not predicate(retention - 1)
        assert predicate(retention)

    def test_retention_one_and_two_are_distinct(self):
        """Test that retention 1 is its own branch and not N-1 = 0 of the general rule."""
        assert cutoff(1).min_age_exclusive == 0
        assert cutoff(2).min_age_exclusive == 1
        assert cutoff(0).min_age_exclusive is None

    def test_negative_retention_is_rejected(self):
        with pytest.raises(ValidationError):
            cutoff(-1)

    def test_describe(self):
        assert cutoff(0).describe() == "all files"
        assert cutoff(7).describe() == "files older than 6 whole day(s)"


class TestAgeSelector:
    """Test enumeration of eligible source files."""

    def test_selects_only_matching_old_files(self, src_root):
        old = write_log(src_root / "2025" / "08" / "10" / "app.log", 17)
        write_log(src_root / "2025" / "08" / "26" / "app.log", 1)
        write_log(src_root / "2025" / "08" / "10" / "notes.txt", 17)
        write_log(src_root / "stray.log", 17)

        selector = AgeSelector(clock=fixed_clock)
        eligible = selector.eligible_files(src_root, "*/*/*/*.log", cutoff(7))

        assert [f.path for f in eligible] == [old]
        assert eligible[0].size_bytes == old.stat().st_size

    def test_boundary_files_on_disk(self, src_root):
        exactly_six = write_log(src_root / "a" / "six.log", 6 + 60 / DAY)
        exactly_seven = write_log(src_root / "a" / "seven.log", 7 + 60 / DAY)

        selector = AgeSelector(clock=fixed_clock)
        paths = {f.path for f in selector.eligible_files(src_root, "*/*.log", cutoff(7))}

        assert exactly_seven in paths
        assert exactly_six not in paths

    def test_retention_one_today_and_yesterday(self, src_root):
        today = write_log(src_root / "d" / "today.log", 0.1)
        yesterday = write_log(src_root / "d" / "yesterday.log", 1.1)

        selector = AgeSelector(clock=fixed_clock)
        paths = {f.path for f in selector.eligible_files(src_root, "*/*.log", cutoff(1))}

        assert paths == {yesterday}
        assert today not in paths

    def test_retention_zero_includes_future_timestamps(self, src_root):
        future = write_log(src_root / "d" / "future.log", -2)
        selector = AgeSelector(clock=fixed_clock)
        paths = {f.path for f in selector.eligible_files(src_root, "*/*.log", cutoff(0))}
        assert paths == {future}

    def test_injected_age_function(self, src_root):
        write_log(src_root / "d" / "a.log", 0)
        selector = AgeSelector(clock=fixed_clock, age_function=lambda mtime, now: 99)
        assert len(selector.eligible_files(src_root, "*/*.log", cutoff(30))) == 1

    def test_symlinks_are_not_selected(self, src_root, tmp_path):
        target = write_log(tmp_path / "elsewhere.log", 20)
        link_dir = src_root / "d"
        link_dir.mkdir()
        os.symlink(target, link_dir / "link.log")

        selector = AgeSelector(clock=fixed_clock)
        assert selector.eligible_files(src_root, "*/*.log", cutoff(0)) == []
