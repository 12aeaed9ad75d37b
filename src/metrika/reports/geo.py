"""Geography reports.

Country ids follow Yandex's region tree (225 - Russia, 187 - Ukraine, ...).
"""

from __future__ import annotations

from typing import Any

from metrika.models import DateRange, QueryParameters, RawResult
from metrika.reports._columns import split_row
from metrika.reports._registry import ReportKey, base_query, register_report

RUSSIA_REGION_COUNTRY_ID = 225


def adapt_geo_country(raw: RawResult) -> list[dict[str, Any]]:
    regions = []
    for index, row in enumerate(raw.rows):
        (country, area), (visits,) = split_row(
            ReportKey.GEO_COUNTRY, index, row, dimensions=2, metrics=1,
        )
        regions.append({"country": country, "area": area, "visits": visits})
    return regions


@register_report(
    ReportKey.GEO_COUNTRY,
    adapter=adapt_geo_country,
    defaults={"max_results": 100},
    default_days=7,
)
def build_geo_country(
    counter_id: str,
    date_range: DateRange,
    *,
    max_results: int,
) -> QueryParameters:
    """Visits by country and region."""
    return {
        **base_query(counter_id, date_range),
        "dimensions": "ym:s:regionCountry,ym:s:regionArea",
        "metrics": "ym:s:visits",
        "sort": "-ym:s:visits",
        "limit": max_results,
    }


def adapt_geo_area(raw: RawResult) -> list[dict[str, Any]]:
    regions = []
    for index, row in enumerate(raw.rows):
        (area, city), (visits,) = split_row(
            ReportKey.GEO_AREA, index, row, dimensions=2, metrics=1,
        )
        regions.append({"area": area, "city": city, "visits": visits})
    return regions


@register_report(
    ReportKey.GEO_AREA,
    adapter=adapt_geo_area,
    defaults={"max_results": 100, "country_id": RUSSIA_REGION_COUNTRY_ID},
    default_days=7,
)
def build_geo_area(
    counter_id: str,
    date_range: DateRange,
    *,
    max_results: int,
    country_id: int,
) -> QueryParameters:
    """Visits by region and city within one country."""
    return {
        **base_query(counter_id, date_range),
        "dimensions": "ym:s:regionArea,ym:s:regionCity",
        "metrics": "ym:s:visits",
        "sort": "-ym:s:visits",
        "filters": f"ym:s:regionCountry=='{country_id}'",
        "limit": max_results,
    }
