"""Row helpers shared by the report adapters.

Every adapter declares how many dimensions and metrics a row must carry;
anything else is a data-contract violation, not something to paper over.
"""

from __future__ import annotations

from typing import Any

from metrika.errors import AdaptationMismatchError
from metrika.models import RawResult


def short_name(column: str) -> str:
    """``"ym:s:bounceRate"`` -> ``"bounceRate"``."""
    return column.rsplit(":", 1)[-1]


def split_row(
    report_key: str,
    index: int,
    row: Any,
    dimensions: int,
    metrics: int,
) -> tuple[list[Any], list[Any]]:
    """Return ``(dimension names, metric values)`` for one data row.

    Raises:
        AdaptationMismatchError: If the row does not carry exactly
            *dimensions* dimension entries and *metrics* metric values.
    """
    if not isinstance(row, dict):
        raise AdaptationMismatchError(f"{report_key}: row {index} is not an object")
    dims = row.get("dimensions")
    values = row.get("metrics")
    if not isinstance(dims, list) or not isinstance(values, list):
        raise AdaptationMismatchError(
            f"{report_key}: row {index} lacks 'dimensions'/'metrics' lists"
        )
    if len(dims) != dimensions or len(values) != metrics:
        raise AdaptationMismatchError(
            f"{report_key}: row {index} has {len(dims)} dimensions and "
            f"{len(values)} metrics, expected {dimensions} and {metrics}"
        )
    names = [d.get("name") if isinstance(d, dict) else d for d in dims]
    return names, values


def metric_columns(report_key: str, raw: RawResult) -> list[str]:
    """Metric names declared in the payload's ``query`` block.

    Preset reports choose their metrics server-side, so the response
    metadata is the only authority on what each value means.
    """
    names = raw.metric_names
    if not names and raw.rows:
        raise AdaptationMismatchError(f"{report_key}: payload has no metric metadata")
    for name in names:
        if not isinstance(name, str):
            raise AdaptationMismatchError(f"{report_key}: metric name {name!r} is not a string")
    return [short_name(name) for name in names]


def named_totals(report_key: str, raw: RawResult, names: list[str]) -> dict[str, Any]:
    totals = raw.totals
    if not totals:
        return {}
    if len(totals) != len(names):
        raise AdaptationMismatchError(
            f"{report_key}: {len(totals)} totals for {len(names)} metrics"
        )
    return dict(zip(names, totals))
