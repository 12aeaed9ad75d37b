"""Technology reports."""

from __future__ import annotations

from typing import Any

from metrika.models import DateRange, QueryParameters, RawResult
from metrika.reports._columns import metric_columns, named_totals, split_row
from metrika.reports._registry import ReportKey, base_query, register_report


def adapt_tech_platforms(raw: RawResult) -> dict[str, Any]:
    names = metric_columns(ReportKey.TECH_PLATFORMS, raw)
    data = []
    for index, row in enumerate(raw.rows):
        (browser,), values = split_row(
            ReportKey.TECH_PLATFORMS, index, row, dimensions=1, metrics=len(names),
        )
        data.append({"browser": browser, "metrics": dict(zip(names, values))})
    return {"data": data, "totals": named_totals(ReportKey.TECH_PLATFORMS, raw, names)}


@register_report(
    ReportKey.TECH_PLATFORMS,
    adapter=adapt_tech_platforms,
    defaults={"max_results": 10},
)
def build_tech_platforms(
    counter_id: str,
    date_range: DateRange,
    *,
    max_results: int,
) -> QueryParameters:
    """The "Technology - Browsers" report."""
    return {
        **base_query(counter_id, date_range),
        "preset": "tech_platforms",
        "dimensions": "ym:s:browser",
        "limit": max_results,
    }
