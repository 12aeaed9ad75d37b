"""Public client for the Metrika reporting API.

Every call resolves a report, derives its cache key, serves the payload
from the cache or fetches and stores it, and returns a
:class:`~metrika.models.ReportResult`. Calls never raise: failures come
back as a result with ``raw`` set to ``None`` and ``error`` populated.

Usage::

    async with MetrikaClient.from_config(load_config()) as client:
        result = (await client.get_visits_views_users(30)).adapt()
        print(result.adapted)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import date
from functools import partial
from typing import Any

from metrika.cache import CacheStore, DiskCacheStore, derive_key, get_or_fetch
from metrika.config import DEFAULT_BASE_URL, AppConfig, CacheConfig
from metrika.errors import InvalidRequestError, MetrikaError
from metrika.http import MetrikaTransport, fetch_report
from metrika.models import DateRange, FetchError, RawResult, ReportResult
from metrika.periods import days_ago, utc_today
from metrika.reports import ReportKey, build_query, build_request, get_report

logger = logging.getLogger(__name__)

RAW_REPORT_KEY = "raw"


class MetrikaClient:
    """Report client bound to one counter and token."""

    def __init__(
        self,
        counter_id: str,
        token: str,
        cache_ttl: int = 3600,
        *,
        store: CacheStore | None = None,
        transport: MetrikaTransport | None = None,
        clock: Callable[[], date] = utc_today,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30,
    ) -> None:
        self.counter_id = str(counter_id)
        self.cache_ttl = cache_ttl
        self.store = store if store is not None else DiskCacheStore(CacheConfig().directory)
        self._owns_transport = transport is None
        self._transport = transport or MetrikaTransport(token, base_url=base_url, timeout=timeout)
        self._clock = clock

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs: Any) -> MetrikaClient:
        """Build a client from loaded configuration."""
        kwargs.setdefault("store", DiskCacheStore(config.cache.directory))
        return cls(
            config.counter_id,
            config.token,
            config.cache.ttl,
            base_url=config.base_url,
            timeout=config.timeout,
            **kwargs,
        )

    async def aclose(self) -> None:
        if self._owns_transport:
            await self._transport.aclose()

    async def __aenter__(self) -> MetrikaClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # -- dispatch ---------------------------------------------------------

    async def report(self, key: str, days: int | None = None, **params: Any) -> ReportResult:
        """Run report *key* over the last *days* days (report default if None)."""
        try:
            definition = get_report(key)
            date_range = days_ago(
                definition.default_days if days is None else days, self._clock(),
            )
        except InvalidRequestError as exc:
            return self._rejected(str(key), exc)
        return await self.report_for_period(
            definition.key, date_range.start, date_range.end, **params,
        )

    async def report_for_period(
        self,
        key: str,
        start: date,
        end: date,
        **params: Any,
    ) -> ReportResult:
        """Run report *key* over ``[start, end]``."""
        try:
            request = build_request(key, DateRange(start, end), **params)
            query = build_query(self.counter_id, request)
        except InvalidRequestError as exc:
            return self._rejected(str(key), exc)

        cache_key = derive_key(
            self.counter_id, request.report_key, request.date_range, request.parameters,
        )
        result = await self._execute(request.report_key, query, cache_key)
        return replace(result, request=request)

    async def request(self, query: Mapping[str, str | int]) -> ReportResult:
        """Send an arbitrary query, bypassing the report catalog.

        Example::

            await client.request({
                "ids": "12345",
                "date1": "2024-06-01",
                "date2": "2024-06-15",
                "filters": "ym:s:pageViews>5",
                "metrics": "ym:s:visits",
            })
        """
        query = dict(query)
        cache_key = derive_key(self.counter_id, RAW_REPORT_KEY, None, query)
        return await self._execute(RAW_REPORT_KEY, query, cache_key)

    def _rejected(self, key: str, exc: InvalidRequestError) -> ReportResult:
        logger.error("Yandex Metrika: %s", exc)
        return ReportResult(report_key=key, error=exc)

    async def _execute(self, key: str, query: dict[str, Any], cache_key: str) -> ReportResult:
        try:
            lookup = await get_or_fetch(
                self.store, cache_key, self.cache_ttl, partial(fetch_report, self._transport, query),
            )
        except Exception as exc:
            logger.exception("Yandex Metrika: %s request failed", key)
            return ReportResult(
                report_key=key, query=query, cache_key=cache_key, error=MetrikaError(str(exc)),
            )

        value = lookup.value
        if isinstance(value, FetchError):
            return ReportResult(
                report_key=key, query=query, cache_key=cache_key, error=value.to_exception(),
            )
        return ReportResult(
            report_key=key,
            query=query,
            cache_key=cache_key,
            raw=RawResult(value) if value else None,
            from_cache=lookup.hit,
        )

    # -- catalog ----------------------------------------------------------

    async def get_visits_views_users(self, days: int | None = None) -> ReportResult:
        return await self.report(ReportKey.VISITS_VIEWS_USERS, days)

    async def get_visits_views_users_for_period(self, start: date, end: date) -> ReportResult:
        return await self.report_for_period(ReportKey.VISITS_VIEWS_USERS, start, end)

    async def get_top_page_views(
        self, days: int | None = None, max_results: int | None = None,
    ) -> ReportResult:
        return await self.report(ReportKey.TOP_PAGES_VIEWS, days, max_results=max_results)

    async def get_top_page_views_for_period(
        self, start: date, end: date, max_results: int | None = None,
    ) -> ReportResult:
        return await self.report_for_period(
            ReportKey.TOP_PAGES_VIEWS, start, end, max_results=max_results,
        )

    async def get_sources_summary(self, days: int | None = None) -> ReportResult:
        return await self.report(ReportKey.SOURCES_SUMMARY, days)

    async def get_sources_summary_for_period(self, start: date, end: date) -> ReportResult:
        return await self.report_for_period(ReportKey.SOURCES_SUMMARY, start, end)

    async def get_sources_search_phrases(
        self, days: int | None = None, max_results: int | None = None,
    ) -> ReportResult:
        return await self.report(ReportKey.SOURCES_SEARCH_PHRASES, days, max_results=max_results)

    async def get_sources_search_phrases_for_period(
        self, start: date, end: date, max_results: int | None = None,
    ) -> ReportResult:
        return await self.report_for_period(
            ReportKey.SOURCES_SEARCH_PHRASES, start, end, max_results=max_results,
        )

    async def get_tech_platforms(
        self, days: int | None = None, max_results: int | None = None,
    ) -> ReportResult:
        return await self.report(ReportKey.TECH_PLATFORMS, days, max_results=max_results)

    async def get_tech_platforms_for_period(
        self, start: date, end: date, max_results: int | None = None,
    ) -> ReportResult:
        return await self.report_for_period(
            ReportKey.TECH_PLATFORMS, start, end, max_results=max_results,
        )

    async def get_visits_users_search_engine(
        self, days: int | None = None, max_results: int | None = None,
    ) -> ReportResult:
        return await self.report(
            ReportKey.VISITS_USERS_SEARCH_ENGINE, days, max_results=max_results,
        )

    async def get_visits_users_search_engine_for_period(
        self, start: date, end: date, max_results: int | None = None,
    ) -> ReportResult:
        return await self.report_for_period(
            ReportKey.VISITS_USERS_SEARCH_ENGINE, start, end, max_results=max_results,
        )

    async def get_visits_views_page_depth(
        self, days: int | None = None, pages: int | None = None,
    ) -> ReportResult:
        return await self.report(ReportKey.VISITS_VIEWS_PAGE_DEPTH, days, pages=pages)

    async def get_visits_views_page_depth_for_period(
        self, start: date, end: date, pages: int | None = None,
    ) -> ReportResult:
        return await self.report_for_period(
            ReportKey.VISITS_VIEWS_PAGE_DEPTH, start, end, pages=pages,
        )

    async def get_geo_country(
        self, days: int | None = None, max_results: int | None = None,
    ) -> ReportResult:
        return await self.report(ReportKey.GEO_COUNTRY, days, max_results=max_results)

    async def get_geo_country_for_period(
        self, start: date, end: date, max_results: int | None = None,
    ) -> ReportResult:
        return await self.report_for_period(
            ReportKey.GEO_COUNTRY, start, end, max_results=max_results,
        )

    async def get_geo_area(
        self,
        days: int | None = None,
        max_results: int | None = None,
        country_id: int | None = None,
    ) -> ReportResult:
        return await self.report(
            ReportKey.GEO_AREA, days, max_results=max_results, country_id=country_id,
        )

    async def get_geo_area_for_period(
        self,
        start: date,
        end: date,
        max_results: int | None = None,
        country_id: int | None = None,
    ) -> ReportResult:
        return await self.report_for_period(
            ReportKey.GEO_AREA, start, end, max_results=max_results, country_id=country_id,
        )
