"""
Error types for the archive pipeline.

Only ValidationError and ArchiverEnvironmentError are fatal. Per-file
problems are recorded in the run statistics instead of being raised.
"""


class ArchiverError(Exception):
    """Base class for archive pipeline errors."""


class ValidationError(ArchiverError):
    """A required parameter is missing or invalid."""


class PatternError(ValidationError):
    """A source pattern contains an unknown placeholder."""


class ArchiverEnvironmentError(ArchiverError):
    """A required capability of the host is not available."""


class ConsistencyWarning(UserWarning):
    """An eligible source file has no archived counterpart."""
