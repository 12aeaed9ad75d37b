"""Relative date range calculation."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

from metrika.errors import InvalidRequestError
from metrika.models import DateRange


def utc_today() -> date:
    """Current calendar date in UTC."""
    return datetime.now(UTC).date()


def days_ago(days: int, today: date | None = None) -> DateRange:
    """Return the closed range ``[today - days, today]``.

    Args:
        days: Number of days to look back. Zero yields a single-day range.
        today: Reference date; defaults to :func:`utc_today`.

    Raises:
        InvalidRequestError: If *days* is negative or not an integer.
    """
    if isinstance(days, bool) or not isinstance(days, int):
        raise InvalidRequestError(f"days must be an integer, got {days!r}")
    if days < 0:
        raise InvalidRequestError(f"days must be >= 0, got {days}")

    end = today or utc_today()
    return DateRange(start=end - timedelta(days=days), end=end)
