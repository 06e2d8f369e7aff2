"""Exceptions raised by the analytics engine."""


class AnalyticsError(Exception):
    """Raised when a report fails for a reason other than missing data."""

    pass
