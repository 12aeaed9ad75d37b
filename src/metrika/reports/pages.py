"""Most viewed pages."""

from __future__ import annotations

from typing import Any

from metrika.models import DateRange, QueryParameters, RawResult
from metrika.reports._columns import split_row
from metrika.reports._registry import ReportKey, base_query, register_report


def adapt_top_pages_views(raw: RawResult) -> list[dict[str, Any]]:
    pages = []
    for index, row in enumerate(raw.rows):
        (url, title), (pageviews,) = split_row(
            ReportKey.TOP_PAGES_VIEWS, index, row, dimensions=2, metrics=1,
        )
        pages.append({"url": url, "title": title, "pageviews": pageviews})
    return pages


@register_report(
    ReportKey.TOP_PAGES_VIEWS,
    adapter=adapt_top_pages_views,
    defaults={"max_results": 10},
)
def build_top_pages_views(
    counter_id: str,
    date_range: DateRange,
    *,
    max_results: int,
) -> QueryParameters:
    """Most viewed pages, ``max_results`` of them."""
    return {
        **base_query(counter_id, date_range),
        "metrics": "ym:pv:pageviews",
        "dimensions": "ym:pv:URLPathFull,ym:pv:title",
        "sort": "-ym:pv:pageviews",
        "limit": max_results,
    }
