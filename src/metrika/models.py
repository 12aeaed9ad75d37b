"""Value types passed between the report engine's stages.

``ReportRequest`` describes what to ask for, ``RawResult`` wraps the
decoded API payload exactly as received (and as cached), and
``ReportResult`` is what every client call hands back: the request, the
wire query, the cache key, and either data or the error that prevented it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from types import MappingProxyType
from typing import Any

from metrika.errors import (
    AdaptationMismatchError,
    FetchFailedError,
    InvalidRequestError,
    MetrikaError,
)

logger = logging.getLogger(__name__)

QueryParameters = dict[str, str | int]


@dataclass(frozen=True)
class DateRange:
    """Closed calendar interval; both ends inclusive."""

    start: date
    end: date

    def __post_init__(self) -> None:
        # datetime bounds are truncated to their calendar date
        if isinstance(self.start, datetime):
            object.__setattr__(self, "start", self.start.date())
        if isinstance(self.end, datetime):
            object.__setattr__(self, "end", self.end.date())
        if not isinstance(self.start, date) or not isinstance(self.end, date):
            raise InvalidRequestError(
                f"Date range bounds must be dates, got {self.start!r} and {self.end!r}"
            )
        if self.start > self.end:
            raise InvalidRequestError(
                f"Invalid date range: start {self.start} is after end {self.end}"
            )

    def as_strings(self) -> tuple[str, str]:
        """Return ``(start, end)`` formatted as ``YYYY-MM-DD``."""
        return self.start.isoformat(), self.end.isoformat()


@dataclass(frozen=True)
class ReportRequest:
    """A fully resolved request for one catalog report."""

    report_key: str
    date_range: DateRange
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))


@dataclass(frozen=True)
class FetchError:
    """Typed failure returned by the fetch engine instead of raising."""

    message: str
    status_code: int | None = None

    def to_exception(self) -> FetchFailedError:
        return FetchFailedError(self.message, self.status_code)


@dataclass(frozen=True)
class RawResult:
    """Decoded Metrika ``stat/v1/data`` payload.

    The payload is kept exactly as received (and as cached); the properties
    below only read from it.
    """

    payload: dict[str, Any]

    @property
    def rows(self) -> list[dict[str, Any]]:
        return self.payload.get("data") or []

    @property
    def metric_names(self) -> list[str]:
        query = self.payload.get("query")
        if not isinstance(query, dict):
            return []
        return list(query.get("metrics") or [])

    @property
    def totals(self) -> list[Any]:
        return self.payload.get("totals") or []

    def to_dict(self) -> dict[str, Any]:
        return self.payload


@dataclass(frozen=True)
class ReportResult:
    """Outcome of a single report call.

    Attributes:
        report_key: Catalog key, or ``"raw"`` for arbitrary queries.
        query: Query parameters sent (or that would have been sent).
        cache_key: Key the payload is cached under; empty if the request
            could not be built.
        request: The resolved request; ``None`` for raw queries.
        raw: Payload from the cache or the API; ``None`` on failure.
        adapted: Output of the report's adapter, once :meth:`adapt` ran.
        error: The error that prevented producing data, if any.
        from_cache: Whether ``raw`` was served from the cache.
    """

    report_key: str
    query: QueryParameters = field(default_factory=dict)
    cache_key: str = ""
    request: ReportRequest | None = None
    raw: RawResult | None = None
    adapted: Any = None
    error: MetrikaError | None = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.raw is not None and self.error is None

    def adapt(self) -> ReportResult:
        """Return a copy with :attr:`adapted` filled by the report's adapter.

        A missing payload or an unregistered adapter leaves ``adapted`` as
        ``None``. A payload that breaks the adapter's column contract is
        logged and recorded in :attr:`error`.
        """
        from metrika.reports import adapt

        try:
            adapted = adapt(self.report_key, self.raw)
        except AdaptationMismatchError as exc:
            logger.error("Yandex Metrika: %s", exc)
            return replace(self, adapted=None, error=exc)
        return replace(self, adapted=adapted)

    def to_dict(self) -> dict[str, Any]:
        """Plain dict shape used by the output writer."""
        result: dict[str, Any] = {
            "report": self.report_key,
            "query": dict(self.query),
            "from_cache": self.from_cache,
        }
        if self.request is not None:
            result["date1"], result["date2"] = self.request.date_range.as_strings()
            result["parameters"] = dict(self.request.parameters)
        if self.raw is not None:
            result["raw"] = self.raw.to_dict()
        if self.adapted is not None:
            result["adapted"] = self.adapted
        if self.error is not None:
            result["error"] = str(self.error)
        return result
