"""Cache key derivation and cache-aside lookup.

Payloads are cached under ``<counter_id>_<sha256>`` keys where the digest
covers a canonical (key-sorted) JSON serialization of the report key, the
date range and the report parameters. The OAuth token never enters the key.

Two stores are provided: :class:`DiskCacheStore` (``diskcache``, shared
across processes) and :class:`MemoryCacheStore` (process-local).
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import diskcache

from metrika.errors import CacheUnavailableError
from metrika.models import DateRange, FetchError

logger = logging.getLogger(__name__)

MISS = object()

FetchFunc = Callable[[], Awaitable[dict[str, Any] | FetchError | None]]


class CacheStore(Protocol):
    """Key-value store with per-entry TTL."""

    def get(self, key: str) -> Any:
        """Return the stored value, or :data:`MISS`."""

    def set(self, key: str, value: dict[str, Any], ttl: int) -> None:
        """Store *value* for *ttl* seconds."""


def derive_key(
    counter_id: str,
    discriminator: str,
    date_range: DateRange | None,
    parameters: Mapping[str, Any],
) -> str:
    """Build a stable cache key for a request.

    Args:
        counter_id: Metrika counter id; used as a readable key prefix.
        discriminator: Report key, or ``"raw"`` for arbitrary queries.
        date_range: Requested range; ``None`` when the dates live in
            *parameters* (raw queries).
        parameters: Report parameters or raw query mapping.

    Returns:
        ``"<counter_id>_<64 hex chars>"``.
    """
    canonical = json.dumps(
        {
            "report": discriminator,
            "dates": list(date_range.as_strings()) if date_range else None,
            "params": dict(parameters),
        },
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
        default=str,
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    prefix = "".join(c for c in str(counter_id) if c.isalnum() or c in "-_")
    return f"{prefix}_{digest}"


class DiskCacheStore:
    """Persistent store backed by :class:`diskcache.Cache`.

    The cache directory is opened on first use so a misconfigured path is
    reported per call as :class:`CacheUnavailableError` rather than at
    construction time.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self._cache: diskcache.Cache | None = None

    def _open(self) -> diskcache.Cache:
        if self._cache is None:
            try:
                self._cache = diskcache.Cache(str(self.directory))
            except Exception as exc:
                raise CacheUnavailableError(
                    f"Cannot open cache directory {self.directory}: {exc}"
                ) from exc
        return self._cache

    def get(self, key: str) -> Any:
        cache = self._open()
        try:
            text = cache.get(key, default=None)
        except Exception as exc:
            raise CacheUnavailableError(f"Cache read failed for {key}: {exc}") from exc
        if text is None:
            return MISS
        try:
            return json.loads(text)
        except ValueError:
            logger.warning("Discarding undecodable cache entry %s", key)
            return MISS

    def set(self, key: str, value: dict[str, Any], ttl: int) -> None:
        cache = self._open()
        try:
            cache.set(key, json.dumps(value, ensure_ascii=False), expire=ttl)
        except Exception as exc:
            raise CacheUnavailableError(f"Cache write failed for {key}: {exc}") from exc

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()
            self._cache = None


class MemoryCacheStore:
    """Process-local store; entries expire by monotonic clock."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, str]] = {}

    def get(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return MISS
        expires_at, text = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return MISS
        return json.loads(text)

    def set(self, key: str, value: dict[str, Any], ttl: int) -> None:
        # Stored as JSON so hits hand back a fresh copy, same as the disk store
        self._entries[key] = (self._clock() + ttl, json.dumps(value))

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class CacheLookup:
    """Result of :func:`get_or_fetch`."""

    value: dict[str, Any] | FetchError | None
    hit: bool = False


async def get_or_fetch(
    store: CacheStore,
    key: str,
    ttl: int,
    fetch_fn: FetchFunc,
) -> CacheLookup:
    """Serve *key* from *store*, or fetch and fill it.

    * Hit: the stored payload is returned and *fetch_fn* is not called.
    * Miss: *fetch_fn* is awaited. A non-empty payload is written once with
      *ttl* and returned. A :class:`FetchError` or an empty payload is
      returned without writing, so the next call fetches again.
    * If the lookup itself fails the error is logged, the call proceeds as
      a miss and no write is attempted.
    """
    writable = True
    try:
        cached = store.get(key)
    except CacheUnavailableError as exc:
        logger.error("Yandex Metrika: %s", exc)
        cached = MISS
        writable = False

    if cached is not MISS:
        logger.debug("Cache hit for %s", key)
        return CacheLookup(value=cached, hit=True)

    logger.debug("Cache miss for %s", key)
    result = await fetch_fn()

    if isinstance(result, FetchError):
        return CacheLookup(value=result)
    if not result:
        return CacheLookup(value=None)

    if writable:
        try:
            store.set(key, result, ttl)
        except CacheUnavailableError as exc:
            logger.error("Yandex Metrika: %s", exc)
    return CacheLookup(value=result)
