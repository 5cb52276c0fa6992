"""Exception hierarchy for SeriesScope"""
from __future__ import annotations


class ExplorerError(Exception):
    """Base error for all SeriesScope exceptions."""


# ---- Fatal ingestion errors ----
class IngestionError(ExplorerError):
    """Terminal failure of one ingestion run.

    `message` is the single human-readable line shown to the user next to
    the retry action.
    """

    default_message = "Could not load data"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class SourceUnavailable(IngestionError):
    """Raised when the input could not be read at all."""

    default_message = "Load error: could not read source"


class EmptySource(IngestionError):
    """Raised when the input holds no data."""

    default_message = "CSV file is empty"


class MissingHeader(IngestionError):
    """Raised when the input has no usable header line."""

    default_message = "CSV file has no headers"


class RowParseFailure(IngestionError):
    """Raised when a body window cannot be split into fields."""

    default_message = "Parse error"


# ---- Validation errors ----
class InvalidSeries(ExplorerError):
    """Raised when a ChannelSeries is constructed with invalid arrays."""


class InvalidSettings(ExplorerError, ValueError):
    """Raised when ExplorerSettings receives an invalid option."""


# ---- Lookup errors (also behave like KeyError for dict-like APIs) ----
class ChannelNotFound(ExplorerError, KeyError):
    """Raised when a requested channel name is not a known column."""
