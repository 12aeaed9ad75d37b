"""Exception types raised inside the report engine.

The client facade catches all of them at the call boundary and attaches
the instance to the returned :class:`~metrika.models.ReportResult`.
"""

from __future__ import annotations


class MetrikaError(Exception):
    """Base class for all metrika errors."""


class InvalidRequestError(MetrikaError, ValueError):
    """A date range or report parameter is outside its domain."""


class UnknownReportError(InvalidRequestError, KeyError):
    """No report is registered under the requested key."""

    def __init__(self, key: str, available: list[str] | None = None) -> None:
        self.key = key
        self.available = available or []
        super().__init__(f"Unknown report: '{key}'. Available: {self.available}")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class CacheUnavailableError(MetrikaError):
    """The cache backend could not be read or written."""


class FetchFailedError(MetrikaError):
    """The API call failed at the transport or decoding level."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class AdaptationMismatchError(MetrikaError):
    """A raw payload does not match the column contract of its adapter."""
