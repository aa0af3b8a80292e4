"""In-process cache with per-category TTLs and in-flight request sharing."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from betbot.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheCategory(str, Enum):
    ODDS = "odds"
    STATS = "stats"
    PARSED_BET = "parsed_bet"
    MARKET_CONTEXT = "market_context"
    HISTORICAL_CONTEXT = "historical_context"
    COMPREHENSIVE_ANALYSIS = "comprehensive_analysis"


def default_ttls() -> dict[CacheCategory, float]:
    settings = get_settings()
    return {
        CacheCategory.ODDS: settings.odds_cache_ttl,
        CacheCategory.STATS: settings.stats_cache_ttl,
        CacheCategory.PARSED_BET: settings.parsed_bet_cache_ttl,
        CacheCategory.MARKET_CONTEXT: settings.market_context_cache_ttl,
        CacheCategory.HISTORICAL_CONTEXT: settings.historical_context_cache_ttl,
        CacheCategory.COMPREHENSIVE_ANALYSIS: settings.analysis_cache_ttl,
    }


@dataclass(slots=True)
class CacheEntry:
    value: Any
    category: CacheCategory
    stored_at: float

    def is_expired(self, now: float, ttl: float) -> bool:
        return now - self.stored_at > ttl


def cache_key(prefix: str, *parts: Any) -> str:
    """Build a stable key from arbitrary JSON-serialisable parts."""

    raw = json.dumps([str(p).strip().lower() if p is not None else None for p in parts])
    return f"{prefix}:{hashlib.sha256(raw.encode()).hexdigest()[:24]}"


def analysis_cache_key(text: str, sport: str | None, player: str | None) -> str:
    """Key for a full analysis; bet text, sport and player all participate."""

    return cache_key("analysis", " ".join(text.split()), sport, player)


class CacheStore:
    """Key/value store where every entry belongs to a TTL category.

    Expiry is lazy: an over-age entry is treated as a miss (and dropped) the
    next time it is read. ``max_entries`` of 0 means unbounded; otherwise the
    oldest insertion is evicted when the bound is exceeded.
    """

    def __init__(
        self,
        ttls: dict[CacheCategory, float] | None = None,
        *,
        max_entries: int | None = None,
        time_fn: Callable[[], float] | None = None,
    ) -> None:
        self.ttls = {**default_ttls(), **(ttls or {})}
        self.max_entries = get_settings().cache_max_entries if max_entries is None else max_entries
        self._time = time_fn or time.monotonic
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._inflight: dict[str, asyncio.Future[Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._time(), self.ttls[entry.category]):
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, category: CacheCategory | str) -> None:
        category = CacheCategory(category)
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(value=value, category=category, stored_at=self._time())
        if self.max_entries and len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Cache bound reached, evicted %s", evicted)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_fetch(
        self,
        key: str,
        category: CacheCategory | str,
        factory: Callable[[], Awaitable[T]],
        *,
        should_store: Callable[[T], bool] | None = None,
    ) -> T:
        """Return the cached value or run ``factory`` once for concurrent callers.

        Callers that miss while a fetch for the same key is running await that
        fetch instead of starting their own. Failures are not cached and are
        raised to every waiter. A value rejected by ``should_store`` is still
        shared with the waiters of that fetch but is not kept.
        """

        cached = self.get(key)
        if cached is not None:
            return cached
        pending = self._inflight.get(key)
        if pending is not None:
            return await asyncio.shield(pending)

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            value = await factory()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            future.exception()  # mark retrieved when nobody else is waiting
            raise
        else:
            if should_store is None or should_store(value):
                self.set(key, value, category)
            future.set_result(value)
            return value
        finally:
            self._inflight.pop(key, None)
