"""
errors.py — Error kinds raised by the analytics core.

All of them are recoverable by the caller: the HTTP layer turns them into
JSON error bodies and the frontend renders an empty or prompt state.
"""


class AnalyticsError(Exception):
    """Base class for every analytics failure."""

    kind = "analytics_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"error": self.kind, "detail": self.message}


class InvalidInput(AnalyticsError):
    """A value is outside its domain, e.g. a percentage of 104."""

    kind = "invalid_input"


class EmptyInput(AnalyticsError):
    """There are no records left to aggregate."""

    kind = "empty_input"


class InvalidSelection(AnalyticsError):
    """A year comparison was requested with fewer than 2 or more than 5 years."""

    kind = "invalid_selection"
