"""In-memory TTL cache in front of the price source client."""

import time
from collections import OrderedDict
from typing import Any, Callable, Protocol

from stock_aggregator.core.types import PricePoint

_MISSING = object()


class TTLCache:
    """Insertion-ordered cache with per-entry expiry and oldest-first eviction."""

    def __init__(
        self,
        default_ttl_s: float,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl_s = default_ttl_s
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def set(self, key: str, value: Any, ttl_s: float | None = None) -> None:
        ttl = self.default_ttl_s if ttl_s is None else ttl_s
        if key in self._entries:
            del self._entries[key]
        self._entries[key] = (self._clock() + ttl, value)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()


class PriceSource(Protocol):
    async def get_stocks(self) -> dict[str, str]: ...

    async def get_price_history(
        self, ticker: str, minutes: int | None = None
    ) -> list[PricePoint]: ...


def price_cache_key(ticker: str, minutes: int | None) -> str:
    return f"stock_price_{ticker}_{minutes or 'latest'}"


class CachedPriceSource:
    """Serve repeated listing and history requests from a TTL cache."""

    STOCKS_KEY = "stocks_list"

    def __init__(
        self,
        source: PriceSource,
        cache: TTLCache,
        stocks_ttl_s: float,
        price_ttl_s: float,
    ) -> None:
        self.source = source
        self.cache = cache
        self.stocks_ttl_s = stocks_ttl_s
        self.price_ttl_s = price_ttl_s

    async def get_stocks(self) -> dict[str, str]:
        cached = self.cache.get(self.STOCKS_KEY, _MISSING)
        if cached is not _MISSING:
            return dict(cached)
        stocks = await self.source.get_stocks()
        self.cache.set(self.STOCKS_KEY, dict(stocks), ttl_s=self.stocks_ttl_s)
        return stocks

    async def get_price_history(self, ticker: str, minutes: int | None = None) -> list[PricePoint]:
        key = price_cache_key(ticker, minutes)
        cached = self.cache.get(key, _MISSING)
        if cached is not _MISSING:
            return list(cached)
        points = await self.source.get_price_history(ticker, minutes)
        self.cache.set(key, tuple(points), ttl_s=self.price_ttl_s)
        return points
