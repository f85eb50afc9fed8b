"""Yahoo Finance chart provider — direct HTTP implementation.

Uses the unauthenticated ``/v8/finance/chart/`` endpoint via httpx. The
endpoint is undocumented: it may change shape or start rejecting clients
that do not identify as a browser, which is why the User-Agent is
configurable.

The chart endpoint returns parallel per-index arrays (timestamps, OHLCV,
adjusted close) plus an ``events`` block with split and dividend records.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any

import httpx
from pydantic import ValidationError

from candle_feed.core.config import DEFAULT_USER_AGENT, UpstreamConfig
from candle_feed.core.exceptions import NotFoundError, RateLimitError, UpstreamError
from candle_feed.core.models import PriceInterval, SplitAdjustment
from candle_feed.prices.adjust import (
    RawBar,
    adjust_for_splits,
    build_split_map,
    drop_incomplete_last_candle,
    round_bar,
)
from candle_feed.prices.models import Bar, SplitEvent

logger = logging.getLogger(__name__)

_BASE_URL = "https://query1.finance.yahoo.com"
_CHART_PATH = "/v8/finance/chart"
_BODY_PREVIEW = 200
_NOT_FOUND_CODE = "Not Found"


def _utc_date(ts: Any) -> date:
    return datetime.fromtimestamp(int(ts), tz=timezone.utc).date()


def parse_splits(events: Any) -> list[SplitEvent]:
    """Parse ``events.splits`` into SplitEvents sorted by effective date.

    Yahoo keys split records by timestamp string; each record carries
    ``date``, ``numerator`` and ``denominator``. Records with missing or
    non-positive terms are skipped.
    """
    if not isinstance(events, Mapping):
        return []
    raw_splits = events.get("splits") or {}
    records = raw_splits.values() if isinstance(raw_splits, Mapping) else raw_splits

    splits: list[SplitEvent] = []
    for record in records:
        if not isinstance(record, Mapping):
            continue
        try:
            splits.append(
                SplitEvent(
                    effective_date=_utc_date(record["date"]),
                    numerator=record["numerator"],
                    denominator=record["denominator"],
                )
            )
        except (KeyError, TypeError, ValueError, OverflowError, ValidationError) as e:
            logger.warning("Skipping malformed split record %r: %s", record, e)
    return sorted(splits, key=lambda s: s.effective_date)


class YahooChartAdapter:
    """Transforms a Yahoo Finance ``chart.result[0]`` object into Bars.

    Periods with a missing, zero, negative or unparseable
    open/high/low/close/volume or timestamp are dropped one by one.
    The adjusted close replaces the raw close where Yahoo supplies one, so
    dividend effects follow the provider's own methodology. Splits are then
    applied according to ``split_adjustment`` and values rounded.

    Parameters
    ----------
    split_adjustment : SplitAdjustment
        Direction of the split adjustment. Default: FORWARD.
    trim_incomplete_candles : bool
        Drop a trailing weekly/monthly candle that is still forming.
    """

    def __init__(
        self,
        split_adjustment: SplitAdjustment = SplitAdjustment.FORWARD,
        trim_incomplete_candles: bool = True,
    ) -> None:
        self.split_adjustment = split_adjustment
        self.trim_incomplete_candles = trim_incomplete_candles

    def adapt(
        self,
        raw_data: Any,
        symbol: str,
        interval: str = PriceInterval.DAILY,
    ) -> list[Bar]:
        """Parse a chart result into an ascending, adjusted Bar list.

        Raises
        ------
        UpstreamError
            If the result does not have the chart payload shape.
        """
        if not isinstance(raw_data, Mapping):
            raise UpstreamError(
                "Chart result is not an object",
                context={"symbol": symbol},
            )

        timestamps = raw_data.get("timestamp") or []
        if not timestamps:
            return []
        if not isinstance(timestamps, list):
            raise UpstreamError(
                "Chart timestamps are not a list",
                context={"symbol": symbol},
            )

        raw_bars = self._collect(raw_data, timestamps, symbol)
        split_map = build_split_map(parse_splits(raw_data.get("events")))
        if split_map:
            logger.debug("Applying %d split(s) to %s", len(split_map), symbol)

        adjusted = adjust_for_splits(raw_bars, split_map, self.split_adjustment)
        bars = [round_bar(b) for b in adjusted]

        if self.trim_incomplete_candles:
            bars = drop_incomplete_last_candle(bars, interval)
        return bars

    def _collect(
        self,
        raw_data: Mapping[str, Any],
        timestamps: list[Any],
        symbol: str,
    ) -> list[RawBar]:
        indicators = raw_data.get("indicators")
        quotes = indicators.get("quote") if isinstance(indicators, Mapping) else None
        if not quotes or not isinstance(quotes, list) or not isinstance(quotes[0], Mapping):
            raise UpstreamError(
                "Chart payload is missing indicators.quote",
                context={"symbol": symbol},
            )
        quote = quotes[0]

        adjclose_data = indicators.get("adjclose") or [{}]
        adj_closes = (
            adjclose_data[0].get("adjclose") or []
            if isinstance(adjclose_data, list) and isinstance(adjclose_data[0], Mapping)
            else []
        )

        opens = quote.get("open") or []
        highs = quote.get("high") or []
        lows = quote.get("low") or []
        closes = quote.get("close") or []
        volumes = quote.get("volume") or []

        def at(values: list[Any], i: int) -> Any:
            return values[i] if i < len(values) else None

        bars: list[RawBar] = []
        last_day: date | None = None
        for i, ts in enumerate(timestamps):
            o, h, lo, c, v = (
                at(opens, i),
                at(highs, i),
                at(lows, i),
                at(closes, i),
                at(volumes, i),
            )
            # Partial bars are worse than absent bars for a chart
            if not all((o, h, lo, c, v)):
                logger.debug("Dropping incomplete bar %d for %s", i, symbol)
                continue

            ac = at(adj_closes, i)
            try:
                day = _utc_date(ts)
                raw = RawBar(
                    time=day,
                    open=float(o),
                    high=float(h),
                    low=float(lo),
                    close=float(ac) if ac else float(c),
                    volume=float(v),
                )
            except (TypeError, ValueError, OverflowError, OSError) as e:
                logger.debug("Dropping unparseable bar %d for %s: %s", i, symbol, e)
                continue

            values = (raw.open, raw.high, raw.low, raw.close, raw.volume)
            if not all(math.isfinite(x) and x > 0 for x in values):
                logger.debug("Dropping non-positive bar %d for %s", i, symbol)
                continue
            if last_day is not None and day <= last_day:
                logger.debug("Dropping repeated bar for %s on %s", symbol, day)
                continue

            bars.append(raw)
            last_day = day

        return bars


class YahooChartClient:
    """Fetches raw chart payloads from Yahoo Finance's chart API.

    Issues exactly one GET per call and classifies the outcome:

    - HTTP 404, an empty ``chart.result``, or a "Not Found" chart error
      raise NotFoundError.
    - HTTP 429 raises RateLimitError. Nothing is retried here.
    - Any other status, transport failure, timeout, or non-JSON body
      raises UpstreamError.

    Parameters
    ----------
    base_url : str
        Override base URL (useful for testing).
    user_agent : str
        Browser-like identification sent with every request.
    timeout : float
        HTTP request timeout in seconds. Default: 15.0.
    """

    def __init__(
        self,
        base_url: str = _BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 15.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._user_agent = user_agent
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: UpstreamConfig) -> YahooChartClient:
        return cls(
            base_url=config.base_url,
            user_agent=config.user_agent,
            timeout=config.timeout,
        )

    async def fetch_chart(self, symbol: str, range_: str, interval: str) -> dict:
        """Fetch the ``chart.result[0]`` object for an exchange-qualified symbol."""
        url = f"{self._base_url}{_CHART_PATH}/{symbol}"
        params = {
            "range": range_,
            "interval": interval,
            "events": "div,split",
            "includeAdjustedClose": "true",
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(
                    url,
                    params=params,
                    headers={"User-Agent": self._user_agent},
                )
        except httpx.TimeoutException as e:
            logger.error("Yahoo Finance timeout for %s: %s", symbol, e)
            raise UpstreamError(
                f"Timed out fetching chart for {symbol}",
                context={"symbol": symbol, "status_code": None, "response_body": None},
            ) from e
        except httpx.RequestError as e:
            logger.error("Yahoo Finance request error for %s: %s", symbol, e)
            raise UpstreamError(
                f"Request failed for {symbol}: {e}",
                context={"symbol": symbol, "status_code": None, "response_body": None},
            ) from e

        self._raise_for_status(resp, symbol)

        try:
            data = resp.json()
        except ValueError as e:
            logger.error("Yahoo Finance returned non-JSON body for %s", symbol)
            raise UpstreamError(
                f"Unparseable chart response for {symbol}",
                context={
                    "symbol": symbol,
                    "status_code": resp.status_code,
                    "response_body": resp.text[:_BODY_PREVIEW],
                },
            ) from e

        return self._extract_result(data, symbol)

    def _raise_for_status(self, resp: httpx.Response, symbol: str) -> None:
        status = resp.status_code
        if status == 404:
            logger.warning("Yahoo Finance has no chart for %s", symbol)
            raise NotFoundError(
                f"No data available for {symbol}",
                context={"symbol": symbol},
            )
        if status == 429:
            retry_after = resp.headers.get("Retry-After")
            logger.warning("Yahoo Finance rate limited request for %s", symbol)
            raise RateLimitError(
                f"Rate limited fetching {symbol}",
                context={
                    "symbol": symbol,
                    "retry_after": int(retry_after) if retry_after and retry_after.isdigit() else None,
                },
            )
        if not resp.is_success:
            logger.error(
                "Yahoo Finance HTTP error for %s: %s %s",
                symbol,
                status,
                resp.text[:_BODY_PREVIEW],
            )
            raise UpstreamError(
                f"Upstream returned HTTP {status} for {symbol}",
                context={
                    "symbol": symbol,
                    "status_code": status,
                    "response_body": resp.text[:_BODY_PREVIEW],
                },
            )

    def _extract_result(self, data: Any, symbol: str) -> dict:
        chart = data.get("chart") if isinstance(data, Mapping) else None
        if not isinstance(chart, Mapping):
            raise UpstreamError(
                f"Chart response for {symbol} has no 'chart' object",
                context={"symbol": symbol, "status_code": 200, "response_body": None},
            )

        err = chart.get("error")
        if err:
            code = err.get("code") if isinstance(err, Mapping) else str(err)
            description = err.get("description") if isinstance(err, Mapping) else None
            logger.error(
                "Yahoo Finance API error for %s: %s — %s", symbol, code, description
            )
            if code == _NOT_FOUND_CODE:
                raise NotFoundError(
                    f"No data available for {symbol}",
                    context={"symbol": symbol},
                )
            raise UpstreamError(
                f"Upstream error for {symbol}: {code}",
                context={"symbol": symbol, "status_code": 200, "response_body": description},
            )

        results = chart.get("result")
        if not results or not isinstance(results, list) or not results[0]:
            logger.warning("Yahoo Finance returned no results for %s", symbol)
            raise NotFoundError(
                f"No data available for {symbol}",
                context={"symbol": symbol},
            )

        return results[0]
