"""Stock-data service: cache lookup, upstream fetch, normalization."""

from __future__ import annotations

import logging

from candle_feed.core.config import CandleFeedConfig
from candle_feed.core.exceptions import InvalidRequestError
from candle_feed.prices.cache import BarCache, make_cache_key
from candle_feed.prices.models import Bar
from candle_feed.prices.provider import ChartAdapter, ChartFetcher
from candle_feed.prices.yahoo import YahooChartAdapter, YahooChartClient

logger = logging.getLogger(__name__)


def qualify_symbol(symbol: str, exchange_suffix: str) -> str:
    """Map a bare ticker to its exchange-qualified form.

    >>> qualify_symbol(" reliance ", ".NS")
    'RELIANCE.NS'
    >>> qualify_symbol("TCS.NS", ".NS")
    'TCS.NS'
    """
    normalized = symbol.strip().upper()
    if exchange_suffix and not normalized.endswith(exchange_suffix.upper()):
        normalized = f"{normalized}{exchange_suffix.upper()}"
    return normalized


class StockDataService:
    """Returns normalized bars for (symbol, range, interval).

    Flow: validate → cache lookup → on a miss, fetch + adapt → cache → return.
    Only successful results are cached, including a genuinely empty series.
    Errors propagate to the caller as typed ``CandleFeedError`` subclasses
    and are never replaced by placeholder data.

    The cache is injected rather than owned so the composition root decides
    its lifetime and capacity.
    """

    def __init__(
        self,
        fetcher: ChartFetcher,
        adapter: ChartAdapter,
        cache: BarCache,
        exchange_suffix: str = ".NS",
        default_range: str = "2y",
        default_interval: str = "1d",
    ) -> None:
        self._fetcher = fetcher
        self._adapter = adapter
        self._cache = cache
        self._exchange_suffix = exchange_suffix
        self._default_range = default_range
        self._default_interval = default_interval

    @property
    def cache(self) -> BarCache:
        return self._cache

    async def get_bars(
        self,
        symbol: str | None,
        range_: str | None = None,
        interval: str | None = None,
    ) -> list[Bar]:
        """Fetch normalized bars, serving repeats from the cache.

        Raises
        ------
        InvalidRequestError
            ``symbol`` is missing or blank. No upstream call is made.
        NotFoundError, RateLimitError, UpstreamError
            Propagated from the fetcher or adapter.
        """
        if not symbol or not symbol.strip():
            raise InvalidRequestError(
                "Symbol is required", context={"parameter": "symbol"}
            )

        qualified = qualify_symbol(symbol, self._exchange_suffix)
        range_ = (range_ or "").strip() or self._default_range
        interval = (interval or "").strip() or self._default_interval
        key = make_cache_key(qualified, range_, interval)

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return list(cached)

        logger.debug("Cache miss for %s", key)
        raw = await self._fetcher.fetch_chart(qualified, range_, interval)
        bars = self._adapter.adapt(raw, qualified, interval)
        self._cache.put(key, bars)
        logger.info("Fetched %d bars for %s", len(bars), key)
        return list(bars)


def create_service(
    config: CandleFeedConfig,
    cache: BarCache | None = None,
) -> StockDataService:
    """Wire the Yahoo client, adapter and cache from configuration."""
    return StockDataService(
        fetcher=YahooChartClient.from_config(config.upstream),
        adapter=YahooChartAdapter(
            split_adjustment=config.prices.split_adjustment,
            trim_incomplete_candles=config.prices.trim_incomplete_candles,
        ),
        cache=cache if cache is not None else BarCache(capacity=config.cache.capacity),
        exchange_suffix=config.upstream.exchange_suffix,
        default_range=config.prices.default_range,
        default_interval=config.prices.default_interval,
    )
