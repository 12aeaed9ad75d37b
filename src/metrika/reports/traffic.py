"""Attendance reports: daily visits/pageviews/users and visit depth."""

from __future__ import annotations

from typing import Any

from metrika.models import DateRange, QueryParameters, RawResult
from metrika.reports._columns import split_row
from metrika.reports._registry import ReportKey, base_query, register_report


def adapt_visits_views_users(raw: RawResult) -> dict[str, dict[str, Any]]:
    """Map each date to its visits, pageviews and users."""
    by_date: dict[str, dict[str, Any]] = {}
    for index, row in enumerate(raw.rows):
        (day,), (visits, pageviews, users) = split_row(
            ReportKey.VISITS_VIEWS_USERS, index, row, dimensions=1, metrics=3,
        )
        by_date[str(day)] = {"visits": visits, "pageviews": pageviews, "users": users}
    return by_date


@register_report(ReportKey.VISITS_VIEWS_USERS, adapter=adapt_visits_views_users)
def build_visits_views_users(counter_id: str, date_range: DateRange) -> QueryParameters:
    """Visits, pageviews and unique users per day."""
    return {
        **base_query(counter_id, date_range),
        "metrics": "ym:s:visits,ym:s:pageviews,ym:s:users",
        "dimensions": "ym:s:date",
        "sort": "ym:s:date",
    }


def adapt_visits_views_page_depth(raw: RawResult) -> list[dict[str, Any]]:
    records = []
    for index, row in enumerate(raw.rows):
        _, (visits,) = split_row(
            ReportKey.VISITS_VIEWS_PAGE_DEPTH, index, row, dimensions=0, metrics=1,
        )
        records.append({"visits": visits})
    return records


@register_report(
    ReportKey.VISITS_VIEWS_PAGE_DEPTH,
    adapter=adapt_visits_views_page_depth,
    defaults={"pages": 5},
)
def build_visits_views_page_depth(
    counter_id: str,
    date_range: DateRange,
    *,
    pages: int,
) -> QueryParameters:
    """Visits that viewed more than ``pages`` pages."""
    return {
        **base_query(counter_id, date_range),
        "metrics": "ym:s:visits",
        "filters": f"ym:s:pageViews>{pages}",
    }
