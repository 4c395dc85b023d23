"""
Exceptions raised by the tide forecast pipeline.

All of them abort the request that triggered them. A day with too little data
is not an error; it is reported as TideCategory.INSUFFICIENT_DATA instead.
"""
from typing import Optional


class TideDataError(Exception):
    """Base class for forecast pipeline failures."""


class SourceError(TideDataError):
    """The upstream sea-level source could not be reached or answered badly."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class MalformedInputError(TideDataError):
    """The source payload is missing a required field or has the wrong shape."""

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"Malformed tide payload: missing '{field}'")
        self.field = field


class EmptyResultError(TideDataError):
    """The payload was valid but produced no days."""
