"""Traffic source reports.

``sources-summary`` and ``sources-search-phrases`` use server-side presets,
so their adapters name metrics from the response's ``query.metrics``.
"""

from __future__ import annotations

from typing import Any

from metrika.models import DateRange, QueryParameters, RawResult
from metrika.reports._columns import metric_columns, named_totals, split_row
from metrika.reports._registry import ReportKey, base_query, register_report


def _adapt_preset(
    report_key: str,
    raw: RawResult,
    dimension_fields: tuple[str, ...],
) -> dict[str, Any]:
    names = metric_columns(report_key, raw)
    data = []
    for index, row in enumerate(raw.rows):
        dims, values = split_row(
            report_key, index, row, dimensions=len(dimension_fields), metrics=len(names),
        )
        record: dict[str, Any] = dict(zip(dimension_fields, dims))
        record["metrics"] = dict(zip(names, values))
        data.append(record)
    return {"data": data, "totals": named_totals(report_key, raw, names)}


def adapt_sources_summary(raw: RawResult) -> dict[str, Any]:
    return _adapt_preset(ReportKey.SOURCES_SUMMARY, raw, ("traffic_source", "source_engine"))


def adapt_sources_search_phrases(raw: RawResult) -> dict[str, Any]:
    return _adapt_preset(
        ReportKey.SOURCES_SEARCH_PHRASES, raw, ("search_phrase", "search_engine"),
    )


@register_report(ReportKey.SOURCES_SUMMARY, adapter=adapt_sources_summary)
def build_sources_summary(counter_id: str, date_range: DateRange) -> QueryParameters:
    """The "Sources - Summary" report."""
    return {**base_query(counter_id, date_range), "preset": "sources_summary"}


@register_report(
    ReportKey.SOURCES_SEARCH_PHRASES,
    adapter=adapt_sources_search_phrases,
    defaults={"max_results": 10},
)
def build_sources_search_phrases(
    counter_id: str,
    date_range: DateRange,
    *,
    max_results: int,
) -> QueryParameters:
    """The "Sources - Search phrases" report."""
    return {
        **base_query(counter_id, date_range),
        "preset": "sources_search_phrases",
        "limit": max_results,
    }


def adapt_visits_users_search_engine(raw: RawResult) -> list[dict[str, Any]]:
    engines = []
    for index, row in enumerate(raw.rows):
        (engine,), (users,) = split_row(
            ReportKey.VISITS_USERS_SEARCH_ENGINE, index, row, dimensions=1, metrics=1,
        )
        engines.append({"search_engine": engine, "users": users})
    return engines


@register_report(
    ReportKey.VISITS_USERS_SEARCH_ENGINE,
    adapter=adapt_visits_users_search_engine,
    defaults={"max_results": 10},
)
def build_visits_users_search_engine(
    counter_id: str,
    date_range: DateRange,
    *,
    max_results: int,
) -> QueryParameters:
    """Users arriving from organic search, per search engine."""
    return {
        **base_query(counter_id, date_range),
        "metrics": "ym:s:users",
        "dimensions": "ym:s:searchEngine",
        "filters": "ym:s:trafficSource=='organic'",
        "limit": max_results,
    }
