"""
Analytics Errors
================
Exceptions raised by the usage analytics engine.

All errors derive from ValueError so callers that already guard
bad input with ``except ValueError`` keep working.
"""


class AnalyticsError(ValueError):
    """Base class for all engine errors."""


class InsufficientDataError(AnalyticsError):
    """A stage received fewer data points than it needs."""

    def __init__(self, message: str, required: int = None, available: int = None):
        super().__init__(message)
        self.required = required
        self.available = available


class InsufficientHistoryError(InsufficientDataError):
    """Too little history to produce a meaningful forecast."""


class InvalidWindowError(AnalyticsError):
    """The requested date window or horizon is malformed or too large."""
