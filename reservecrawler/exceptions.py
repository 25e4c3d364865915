"""
Error taxonomy for the reserve data pipeline.

Every error raised by the core derives from ReserveDataError so callers can
catch the whole family in one place.
"""

from typing import Optional


class ReserveDataError(Exception):
    """Base class for all reserve data errors."""


class ParseError(ReserveDataError):
    """A source field could not be converted (numeric, date or product code)."""

    def __init__(self, message: str, row: Optional[dict] = None):
        if row is not None:
            message = f"{message} (row: {row})"
        super().__init__(message)
        self.row = row


class SchemaError(ParseError):
    """A table is missing one of its required columns."""


class AlignmentError(ReserveDataError):
    """Windows of two time series do not correspond one to one."""


class InsufficientCapacityError(ReserveDataError):
    """The bid ladder cannot cover the called volume of a minute."""

    def __init__(self, message: str, minute=None, volume: Optional[float] = None,
                 available: Optional[float] = None):
        super().__init__(message)
        self.minute = minute
        self.volume = volume
        self.available = available


class DateRangeError(ReserveDataError, ValueError):
    """The requested date range violates the pipeline preconditions."""


class SourceUnavailableError(ReserveDataError):
    """A data portal failed to deliver the expected response."""
