"""Chart data retrieval and normalization.

Architecture
------------
    YahooChartClient → raw chart JSON → YahooChartAdapter → list[Bar]
                                                 ↑
    StockDataService ── BarCache (hit) ──────────┘ (miss → fetch + adapt)

Key abstractions:

- ``Bar``: Normalized OHLCV record handed to the chart renderer.
- ``ChartFetcher`` / ``ChartAdapter``: Protocols the service depends on.
- ``BarCache``: Bounded, insertion-ordered response cache.
- ``StockDataService``: Composes the three; built by ``create_service``.
"""

from candle_feed.prices.adjust import (
    RawBar,
    adjust_for_splits,
    backward_adjust,
    build_split_map,
    drop_incomplete_last_candle,
    forward_adjust,
    round_bar,
)
from candle_feed.prices.cache import BarCache, make_cache_key
from candle_feed.prices.models import Bar, PriceInterval, SplitAdjustment, SplitEvent
from candle_feed.prices.provider import ChartAdapter, ChartFetcher
from candle_feed.prices.service import StockDataService, create_service, qualify_symbol
from candle_feed.prices.yahoo import YahooChartAdapter, YahooChartClient, parse_splits

__all__ = [
    # Models
    "Bar",
    "PriceInterval",
    "SplitAdjustment",
    "SplitEvent",
    # Protocols
    "ChartAdapter",
    "ChartFetcher",
    # Normalization
    "RawBar",
    "adjust_for_splits",
    "backward_adjust",
    "build_split_map",
    "drop_incomplete_last_candle",
    "forward_adjust",
    "round_bar",
    # Yahoo Finance
    "YahooChartAdapter",
    "YahooChartClient",
    "parse_splits",
    # Cache and service
    "BarCache",
    "make_cache_key",
    "StockDataService",
    "create_service",
    "qualify_symbol",
]
