"""Shared test fixtures for metrika tests."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from metrika.cache import MemoryCacheStore
from metrika.client import MetrikaClient
from metrika.config import AppConfig, CacheConfig
from metrika.errors import CacheUnavailableError

FIXTURES_DIR = Path(__file__).parent / "fixtures"

BASE_URL = "https://api-metrika.yandex.net/stat/v1/data"
COUNTER_ID = "44147844"
TOKEN = "test-oauth-token"
TODAY = date(2024, 6, 15)


def _load_json_fixture(name: str) -> dict[str, Any]:
    """Load a JSON fixture file by name."""
    path = FIXTURES_DIR / name
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class RecordingStore(MemoryCacheStore):
    """Memory store that counts reads and writes."""

    def __init__(self) -> None:
        super().__init__()
        self.gets: list[str] = []
        self.sets: list[tuple[str, dict[str, Any], int]] = []

    def get(self, key: str) -> Any:
        self.gets.append(key)
        return super().get(key)

    def set(self, key: str, value: dict[str, Any], ttl: int) -> None:
        self.sets.append((key, value, ttl))
        super().set(key, value, ttl)


class BrokenStore:
    """Store whose backend is unreachable."""

    def __init__(self) -> None:
        self.set_calls = 0

    def get(self, key: str) -> Any:
        raise CacheUnavailableError("cache backend unreachable")

    def set(self, key: str, value: dict[str, Any], ttl: int) -> None:
        self.set_calls += 1


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def visits_views_users_response() -> dict[str, Any]:
    """Fixture: visits/pageviews/users by date."""
    return _load_json_fixture("visits_views_users_response.json")


@pytest.fixture
def top_pages_views_response() -> dict[str, Any]:
    """Fixture: most viewed pages."""
    return _load_json_fixture("top_pages_views_response.json")


@pytest.fixture
def sources_summary_response() -> dict[str, Any]:
    """Fixture: sources_summary preset."""
    return _load_json_fixture("sources_summary_response.json")


@pytest.fixture
def geo_area_response() -> dict[str, Any]:
    """Fixture: visits by region and city."""
    return _load_json_fixture("geo_area_response.json")


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def broken_store() -> BrokenStore:
    return BrokenStore()


@pytest.fixture
async def client(store: RecordingStore):
    """Client with a recording memory store and a fixed clock."""
    async with MetrikaClient(
        COUNTER_ID, TOKEN, cache_ttl=600, store=store, clock=lambda: TODAY,
    ) as c:
        yield c


@pytest.fixture
def dev_app_config(tmp_path: Path) -> AppConfig:
    """A dev AppConfig for testing."""
    return AppConfig(
        env="dev",
        counter_id=COUNTER_ID,
        token=TOKEN,
        base_url=BASE_URL,
        timeout=5,
        cache=CacheConfig(ttl=600, directory=str(tmp_path / "cache")),
    )


@pytest.fixture
def tmp_output_dir(tmp_path: Path) -> Path:
    """Temporary output directory for tests."""
    out = tmp_path / "metrika-data"
    out.mkdir(parents=True)
    return out

