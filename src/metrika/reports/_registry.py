"""Report registry with decorator-based registration.

Report modules register their query builders by decorating them with
``@register_report(ReportKey.X, ...)``. The adapter for the same report is
passed to the decorator, so a report and its adaptation always travel
together. The registry is populated at import time when
``_discover_reports()`` walks the package with ``pkgutil``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from metrika.models import DateRange, QueryParameters, RawResult

# Builder: (counter_id, date_range, **params) -> query parameters
QueryBuilder = Callable[..., QueryParameters]
Adapter = Callable[[RawResult], Any]


class ReportKey(StrEnum):
    """Built-in report catalog."""

    VISITS_VIEWS_USERS = "visits-views-users"
    TOP_PAGES_VIEWS = "top-pages-views"
    SOURCES_SUMMARY = "sources-summary"
    SOURCES_SEARCH_PHRASES = "sources-search-phrases"
    TECH_PLATFORMS = "tech-platforms"
    VISITS_USERS_SEARCH_ENGINE = "visits-users-search-engine"
    VISITS_VIEWS_PAGE_DEPTH = "visits-views-page-depth"
    GEO_COUNTRY = "geo-country"
    GEO_AREA = "geo-area"


# Lowest accepted value per known parameter
PARAMETER_MINIMUMS: dict[str, int] = {
    "max_results": 1,
    "pages": 0,
    "country_id": 1,
}


@dataclass(frozen=True)
class ReportDefinition:
    """A registered report: how to query it and how to adapt its payload."""

    key: str
    build_query: QueryBuilder
    adapter: Adapter | None = None
    defaults: Mapping[str, int] = field(default_factory=dict)
    default_days: int = 30
    description: str = ""


REPORT_REGISTRY: dict[str, ReportDefinition] = {}


def register_report(
    key: str,
    *,
    adapter: Adapter | None = None,
    defaults: Mapping[str, int] | None = None,
    default_days: int = 30,
    description: str = "",
) -> Callable[[QueryBuilder], QueryBuilder]:
    """Decorator that registers a report query builder by key.

    Usage::

        @register_report(ReportKey.TOP_PAGES_VIEWS, adapter=adapt_top_pages,
                         defaults={"max_results": 10})
        def build(counter_id, date_range, *, max_results):
            ...
    """
    key = str(key)

    def decorator(func: QueryBuilder) -> QueryBuilder:
        if key in REPORT_REGISTRY:
            raise ValueError(f"Duplicate report registration: '{key}'")
        unknown = set(defaults or {}) - set(PARAMETER_MINIMUMS)
        if unknown:
            raise ValueError(f"Report '{key}' declares unknown parameters: {sorted(unknown)}")
        REPORT_REGISTRY[key] = ReportDefinition(
            key=key,
            build_query=func,
            adapter=adapter,
            defaults=dict(defaults or {}),
            default_days=default_days,
            description=description or (func.__doc__ or "").strip().split("\n")[0],
        )
        return func

    return decorator


def base_query(counter_id: str, date_range: DateRange) -> QueryParameters:
    """Parameters shared by every catalog report."""
    date1, date2 = date_range.as_strings()
    return {"ids": counter_id, "date1": date1, "date2": date2}
