"""Report catalog for the Metrika client.

Resolves a report key plus arguments into a :class:`ReportRequest`, the
request into wire query parameters, and a raw payload into the report's
adapted shape.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from typing import Any

from metrika.errors import InvalidRequestError, UnknownReportError
from metrika.models import DateRange, QueryParameters, RawResult, ReportRequest
from metrika.reports._registry import (
    PARAMETER_MINIMUMS,
    REPORT_REGISTRY,
    ReportDefinition,
    ReportKey,
    register_report,
)

logger = logging.getLogger(__name__)

__all__ = [
    "REPORT_REGISTRY",
    "ReportDefinition",
    "ReportKey",
    "adapt",
    "build_query",
    "build_request",
    "get_report",
    "register_report",
]


def _discover_reports() -> None:
    """Auto-import all report modules so their @register_report decorators fire."""
    package_path = __path__  # type: ignore[name-defined]
    for module_info in pkgutil.iter_modules(package_path):
        if module_info.name.startswith("_"):
            continue
        try:
            importlib.import_module(f"metrika.reports.{module_info.name}")
        except Exception:
            logger.exception("Failed to import report module: %s", module_info.name)


# Populate the registry on first import
_discover_reports()


def get_report(key: str) -> ReportDefinition:
    """Look up a registered report.

    Raises:
        UnknownReportError: If *key* is not registered.
    """
    try:
        return REPORT_REGISTRY[str(key)]
    except KeyError:
        raise UnknownReportError(str(key), list(REPORT_REGISTRY)) from None


def _validate_parameter(key: str, name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRequestError(f"{key}: '{name}' must be an integer, got {value!r}")
    minimum = PARAMETER_MINIMUMS[name]
    if value < minimum:
        raise InvalidRequestError(f"{key}: '{name}' must be >= {minimum}, got {value}")
    return value


def build_request(key: str, date_range: DateRange, **params: Any) -> ReportRequest:
    """Resolve arguments for report *key* into a :class:`ReportRequest`.

    Omitted parameters take the report's defaults; ``None`` also means
    "use the default".

    Raises:
        UnknownReportError: If *key* is not registered.
        InvalidRequestError: If a parameter is unknown to the report or
            outside its domain.
    """
    definition = get_report(key)
    unknown = set(params) - set(definition.defaults)
    if unknown:
        raise InvalidRequestError(
            f"{definition.key}: unexpected parameters {sorted(unknown)}; "
            f"accepted: {sorted(definition.defaults)}"
        )

    resolved: dict[str, int] = {}
    for name in sorted(definition.defaults):
        value = params.get(name)
        if value is None:
            value = definition.defaults[name]
        resolved[name] = _validate_parameter(definition.key, name, value)

    return ReportRequest(report_key=definition.key, date_range=date_range, parameters=resolved)


def build_query(counter_id: str, request: ReportRequest) -> QueryParameters:
    """Build the wire query for a resolved request."""
    definition = get_report(request.report_key)
    return definition.build_query(counter_id, request.date_range, **request.parameters)


def adapt(key: str, raw: RawResult | None) -> Any:
    """Run the adapter registered for *key*.

    Returns ``None`` when *raw* is ``None`` or the key has no adapter.

    Raises:
        AdaptationMismatchError: If *raw* breaks the adapter's column contract.
    """
    if raw is None:
        return None
    definition = REPORT_REGISTRY.get(str(key))
    if definition is None or definition.adapter is None:
        return None
    return definition.adapter(raw)
