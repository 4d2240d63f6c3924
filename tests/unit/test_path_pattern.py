"""
Unit tests for source pattern parsing and destination mapping.
"""

import unittest
from datetime import date
from pathlib import Path

import pytest

from logarch.archive.archive_models import SegmentKind
from logarch.archive.errors import PatternError, ValidationError
from logarch.archive.path_pattern import (
    PatternTemplate,
    destination_for,
    discovery_glob,
    matches,
    resolve,
)


class TestPatternTemplate(unittest.TestCase):
    """Test parsing of placeholder patterns."""

    def test_parse_segments_in_order(self):
        """Test that literals and placeholders keep their order."""
        template = PatternTemplate.parse("{YYYY}/{MM}/{DD}/*.log")

        kinds = [seg.kind for seg in template.segments]
        self.assertEqual(kinds, [
            SegmentKind.YEAR, SegmentKind.LITERAL,
            SegmentKind.MONTH, SegmentKind.LITERAL,
            SegmentKind.DAY, SegmentKind.LITERAL,
        ])
        self.assertEqual(template.segments[-1].text, "/*.log")
        self.assertTrue(template.has_placeholders)

    def test_str_round_trips_pattern(self):
        """Test that the template renders back to its source text."""
        text = "host-a/{YYYY}-{MM}-{DD}.log"
        self.assertEqual(str(PatternTemplate.parse(text)), text)

    def test_pattern_without_placeholders_is_literal(self):
        """Test that a non-partitioned pattern is accepted."""
        template = PatternTemplate.parse("current/*.log")

        self.assertFalse(template.has_placeholders)
        self.assertEqual(discovery_glob(template), "current/*.log")
        self.assertEqual(resolve(template, date(2025, 1, 2)), "current/*.log")

    def test_unknown_placeholder_fails(self):
        """Test that an unknown placeholder is rejected instead of kept as text."""
        with self.assertRaises(PatternError) as ctx:
            PatternTemplate.parse("{YYYY}/{HH}/*.log")
        self.assertIn("{HH}", str(ctx.exception))

    def test_pattern_error_is_validation_error(self):
        """Test that pattern errors abort like other validation errors."""
        with self.assertRaises(ValidationError):
            PatternTemplate.parse("{yyyy}/*.log")

    def test_empty_pattern_fails(self):
        with self.assertRaises(PatternError):
            PatternTemplate.parse("")


class TestResolve:
    """Test resolution of templates against dates."""

    def test_resolve_pads_month_and_day(self):
        template = PatternTemplate.parse("{YYYY}/{MM}/{DD}/*.log")
        assert resolve(template, date(2025, 3, 7)) == "2025/03/07/*.log"

    def test_resolve_repeated_placeholders(self):
        template = PatternTemplate.parse("{YYYY}/{YYYY}{MM}{DD}.log")
        assert resolve(template, date(2024, 12, 31)) == "2024/20241231.log"

    def test_discovery_glob_widens_placeholders(self):
        template = PatternTemplate.parse("{YYYY}/{MM}/{DD}/*.log")
        assert discovery_glob(template) == "*/*/*/*.log"

    @pytest.mark.parametrize("relative, expected", [
        ("2025/08/20/app.log", True),
        ("2025/08/20/app.log.bz2", False),
        ("2025/08/app.log", False),
        ("2025/08/20/extra/app.log", False),
    ])
    def test_matches_component_wise(self, relative, expected):
        assert matches(relative, "*/*/*/*.log") is expected


class TestDestinationFor:
    """Test mapping of source files to archive artifact paths."""

    def test_mirrors_source_root_under_destination(self):
        artifact = destination_for("/var/syslog", "/archives", "/var/syslog/2025/08/20/app.log")
        assert artifact == Path("/archives/var/syslog/2025/08/20/app.log.bz2")

    def test_trailing_separators_are_ignored(self):
        artifact = destination_for("/var/syslog/", "/archives/", "/var/syslog/2025/08/20/app.log")
        assert artifact == Path("/archives/var/syslog/2025/08/20/app.log.bz2")

    def test_extension_is_appended_not_replaced(self):
        first = destination_for("/logs", "/arch", "/logs/app.log")
        second = destination_for("/logs", "/arch", "/logs/app.txt")
        assert first.name == "app.log.bz2"
        assert second.name == "app.txt.bz2"
        assert first != second

    def test_file_outside_root_is_rejected(self):
        with pytest.raises(ValueError):
            destination_for("/var/syslog", "/archives", "/var/other/app.log")
