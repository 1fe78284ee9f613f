# src/sll/errors.py
from __future__ import annotations
from typing import List


class SoundCloudError(Exception):
    """Base exception for every failure of a likes-log run."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class ConfigError(SoundCloudError):
    """Missing or invalid configuration."""


class ResolutionError(SoundCloudError):
    """The client id or the numeric user id could not be determined."""


class TransportError(SoundCloudError):
    """Network failure or non-success HTTP status."""

    def __init__(self, message: str, status_code: int | None = None, url: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class SchemaValidationError(SoundCloudError):
    """A response does not match its expected schema."""

    def __init__(self, schema_id: str, violations: List[str]):
        super().__init__(", ".join(violations))
        self.schema_id = schema_id
        self.violations = list(violations)


class PaginationLimitError(SoundCloudError):
    """The server still offered a next page after ``max_pages`` pages."""


class DeadlineExceededError(SoundCloudError):
    """The run did not finish within the configured deadline."""


class ArchiveWriteError(SoundCloudError):
    """The likes log could not be written to the output path."""
