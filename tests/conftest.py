"""Shared pytest fixtures for candle-feed."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from candle_feed.core.config import CandleFeedConfig, UpstreamConfig
from candle_feed.prices.cache import BarCache
from candle_feed.prices.service import StockDataService
from candle_feed.prices.yahoo import YahooChartAdapter

TEST_BASE_URL = "https://chart.test"


def ts_for(day: date) -> int:
    """Unix timestamp for 03:45 UTC on ``day`` (a typical NSE bar stamp)."""
    return int(datetime(day.year, day.month, day.day, 3, 45, tzinfo=timezone.utc).timestamp())


def make_chart_result(
    days: list[date],
    opens: list,
    highs: list,
    lows: list,
    closes: list,
    volumes: list,
    adjcloses: list | None = None,
    splits: list[tuple[date, float, float]] | None = None,
) -> dict:
    """Build a Yahoo ``chart.result[0]`` object from parallel columns."""
    indicators: dict = {
        "quote": [
            {
                "open": opens,
                "high": highs,
                "low": lows,
                "close": closes,
                "volume": volumes,
            }
        ]
    }
    if adjcloses is not None:
        indicators["adjclose"] = [{"adjclose": adjcloses}]

    result: dict = {
        "meta": {"currency": "INR", "symbol": "ABC.NS", "exchangeName": "NSI"},
        "timestamp": [ts_for(d) for d in days],
        "indicators": indicators,
    }
    if splits:
        result["events"] = {
            "splits": {
                str(ts_for(d)): {
                    "date": ts_for(d),
                    "numerator": num,
                    "denominator": den,
                    "splitRatio": f"{num:g}:{den:g}",
                }
                for d, num, den in splits
            }
        }
    return result


def chart_envelope(result: dict | None) -> dict:
    """Wrap a result the way the chart endpoint does."""
    return {"chart": {"result": [result] if result is not None else [], "error": None}}


class FakeFetcher:
    """In-memory ChartFetcher that records every call."""

    def __init__(self, result: dict | None = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    async def fetch_chart(self, symbol: str, range_: str, interval: str) -> dict | None:
        self.calls.append((symbol, range_, interval))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def three_day_result() -> dict:
    """Three clean daily bars for ABC.NS, no splits."""
    return make_chart_result(
        days=[date(2024, 1, 15), date(2024, 1, 16), date(2024, 1, 17)],
        opens=[100.123, 101.5, 102.0],
        highs=[101.987, 102.5, 103.0],
        lows=[99.5, 100.5, 101.0],
        closes=[100.75, 102.0, 102.5],
        volumes=[1000, 2000, 3000],
        adjcloses=[100.5512, 101.9049, 102.4449],
    )


@pytest.fixture
def split_result() -> dict:
    """Flat-priced series with a 2-for-1 split on the second bar."""
    days = [date(2024, 1, 15), date(2024, 1, 16), date(2024, 1, 17)]
    return make_chart_result(
        days=days,
        opens=[100.0] * 3,
        highs=[100.0] * 3,
        lows=[100.0] * 3,
        closes=[100.0] * 3,
        volumes=[1000] * 3,
        adjcloses=[100.0] * 3,
        splits=[(days[1], 2, 1)],
    )


@pytest.fixture
def fake_fetcher(three_day_result) -> FakeFetcher:
    return FakeFetcher(result=three_day_result)


@pytest.fixture
def service(fake_fetcher) -> StockDataService:
    return StockDataService(
        fetcher=fake_fetcher,
        adapter=YahooChartAdapter(),
        cache=BarCache(capacity=10),
    )


@pytest.fixture
def test_config() -> CandleFeedConfig:
    return CandleFeedConfig(upstream=UpstreamConfig(base_url=TEST_BASE_URL, timeout=5))
