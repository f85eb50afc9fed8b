"""Pure normalization steps applied to a parsed bar series.

Nothing here touches the network or shared state: every function takes an
ascending bar sequence (and, for split adjustment, the split ratios) and
returns a new sequence.

Split adjustment conventions
----------------------------
FORWARD (default)
    Walk the bars oldest → newest with a running factor that starts at
    ``factor`` (1.0). When a bar's date reaches a split's effective date the
    factor is multiplied by that split's ratio. Each bar's prices are
    multiplied by the current factor and its volume divided by it. Bars
    before the first split are left as reported; after a 2-for-1 split
    prices double and volume halves.

BACKWARD
    Walk the bars newest → oldest with a running factor made of the ratios
    of every split dated after the bar. Prices are divided by the factor and
    volume multiplied by it. Bars on or after the last split are left as
    reported; before a 2-for-1 split prices halve and volume doubles.

The two series differ only by the constant product of all split ratios.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date

from candle_feed.core.models import PriceInterval, SplitAdjustment
from candle_feed.prices.models import Bar, SplitEvent

logger = logging.getLogger(__name__)

PRICE_DECIMALS = 2


@dataclass(frozen=True)
class RawBar:
    """An unrounded bar as read from the upstream arrays."""

    time: date
    open: float
    high: float
    low: float
    close: float
    volume: float

    def scaled(self, price_factor: float) -> RawBar:
        """Return a copy with prices × price_factor and volume ÷ price_factor."""
        return RawBar(
            time=self.time,
            open=self.open * price_factor,
            high=self.high * price_factor,
            low=self.low * price_factor,
            close=self.close * price_factor,
            volume=self.volume / price_factor,
        )


def build_split_map(splits: Iterable[SplitEvent]) -> dict[date, float]:
    """Map each split's effective date to its ratio.

    Two splits recorded on the same date compose multiplicatively.
    """
    split_map: dict[date, float] = {}
    for split in splits:
        split_map[split.effective_date] = (
            split_map.get(split.effective_date, 1.0) * split.ratio
        )
    return split_map


def forward_adjust(
    bars: Sequence[RawBar],
    split_map: Mapping[date, float],
    factor: float = 1.0,
) -> list[RawBar]:
    """Apply the cumulative forward adjustment (see module docstring)."""
    pending = sorted(split_map.items())
    adjusted: list[RawBar] = []
    cursor = 0
    for bar in bars:
        factor, cursor = _absorb_reached_splits(factor, pending, cursor, bar.time)
        adjusted.append(bar if factor == 1.0 else bar.scaled(factor))
    return adjusted


def backward_adjust(
    bars: Sequence[RawBar],
    split_map: Mapping[date, float],
    factor: float = 1.0,
) -> list[RawBar]:
    """Apply the backward adjustment (see module docstring)."""
    pending = sorted(split_map.items(), reverse=True)
    adjusted: list[RawBar] = []
    cursor = 0
    for bar in reversed(bars):
        factor, cursor = _absorb_later_splits(factor, pending, cursor, bar.time)
        adjusted.append(bar if factor == 1.0 else bar.scaled(1.0 / factor))
    adjusted.reverse()
    return adjusted


def adjust_for_splits(
    bars: Sequence[RawBar],
    split_map: Mapping[date, float],
    policy: SplitAdjustment = SplitAdjustment.FORWARD,
) -> list[RawBar]:
    """Dispatch to the configured adjustment direction."""
    if not split_map:
        return list(bars)
    if policy == SplitAdjustment.BACKWARD:
        return backward_adjust(bars, split_map)
    return forward_adjust(bars, split_map)


def _absorb_reached_splits(
    factor: float,
    pending: Sequence[tuple[date, float]],
    cursor: int,
    day: date,
) -> tuple[float, int]:
    """Fold in every ascending split dated on or before ``day``."""
    while cursor < len(pending) and pending[cursor][0] <= day:
        factor *= pending[cursor][1]
        cursor += 1
    return factor, cursor


def _absorb_later_splits(
    factor: float,
    pending: Sequence[tuple[date, float]],
    cursor: int,
    day: date,
) -> tuple[float, int]:
    """Fold in every descending split dated strictly after ``day``."""
    while cursor < len(pending) and pending[cursor][0] > day:
        factor *= pending[cursor][1]
        cursor += 1
    return factor, cursor


def round_bar(raw: RawBar) -> Bar:
    """Round prices to two decimals and volume to a whole share count."""
    return Bar(
        time=raw.time,
        open=round(raw.open, PRICE_DECIMALS),
        high=round(raw.high, PRICE_DECIMALS),
        low=round(raw.low, PRICE_DECIMALS),
        close=round(raw.close, PRICE_DECIMALS),
        volume=int(round(raw.volume)),
    )


def drop_incomplete_last_candle(bars: list[Bar], interval: str) -> list[Bar]:
    """Drop a trailing weekly/monthly candle that is still forming.

    Yahoo appends the live session as an extra bar that shares the week
    (or month) of the last completed candle. Daily series are returned
    unchanged.
    """
    if len(bars) < 2:
        return bars

    last, previous = bars[-1].time, bars[-2].time
    if interval == PriceInterval.WEEKLY:
        same_period = last.isocalendar()[:2] == previous.isocalendar()[:2]
    elif interval == PriceInterval.MONTHLY:
        same_period = (last.year, last.month) == (previous.year, previous.month)
    else:
        return bars

    if same_period:
        logger.debug("Dropping incomplete %s candle dated %s", interval, last)
        return bars[:-1]
    return bars
