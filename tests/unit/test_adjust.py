"""Tests for candle_feed.prices.adjust — split adjustment, rounding, trimming."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from candle_feed.core.models import SplitAdjustment
from candle_feed.prices.adjust import (
    RawBar,
    adjust_for_splits,
    backward_adjust,
    build_split_map,
    drop_incomplete_last_candle,
    forward_adjust,
    round_bar,
)
from candle_feed.prices.models import Bar, SplitEvent

START = date(2024, 1, 15)


def _raw_series(n: int, price: float = 100.0, volume: float = 1000.0) -> list[RawBar]:
    return [
        RawBar(
            time=START + timedelta(days=i),
            open=price,
            high=price,
            low=price,
            close=price,
            volume=volume,
        )
        for i in range(n)
    ]


def _bar(day: date) -> Bar:
    return Bar(time=day, open=1.0, high=1.0, low=1.0, close=1.0, volume=1)


def _closes(bars) -> list[float]:
    return [b.close for b in bars]


def _volumes(bars) -> list[float]:
    return [b.volume for b in bars]


class TestBuildSplitMap:
    def test_maps_date_to_ratio(self):
        splits = [
            SplitEvent(effective_date=date(2020, 8, 31), numerator=4, denominator=1),
            SplitEvent(effective_date=date(2014, 6, 9), numerator=7, denominator=1),
        ]
        assert build_split_map(splits) == {
            date(2020, 8, 31): 4.0,
            date(2014, 6, 9): 7.0,
        }

    def test_same_day_splits_compose(self):
        day = date(2024, 1, 16)
        splits = [
            SplitEvent(effective_date=day, numerator=2, denominator=1),
            SplitEvent(effective_date=day, numerator=3, denominator=1),
        ]
        assert build_split_map(splits) == {day: 6.0}

    def test_empty(self):
        assert build_split_map([]) == {}


class TestForwardAdjust:
    def test_two_for_one_scales_bars_from_split_date(self):
        bars = _raw_series(4)
        adjusted = forward_adjust(bars, {START + timedelta(days=2): 2.0})
        assert _closes(adjusted) == [100.0, 100.0, 200.0, 200.0]
        assert _volumes(adjusted) == [1000.0, 1000.0, 500.0, 500.0]

    def test_pre_split_bars_untouched(self):
        bars = _raw_series(4)
        adjusted = forward_adjust(bars, {START + timedelta(days=2): 2.0})
        assert adjusted[:2] == bars[:2]

    def test_all_prices_scaled(self):
        bar = RawBar(time=START, open=10.0, high=12.0, low=9.0, close=11.0, volume=600.0)
        (adjusted,) = forward_adjust([bar], {START: 3.0})
        assert (adjusted.open, adjusted.high, adjusted.low, adjusted.close) == (
            30.0,
            36.0,
            27.0,
            33.0,
        )
        assert adjusted.volume == 200.0

    def test_split_between_bars_applies_to_next_bar(self):
        # Split dated on a day without a bar (e.g. a weekend)
        bars = [
            RawBar(time=date(2024, 1, 19), open=100, high=100, low=100, close=100, volume=1000),
            RawBar(time=date(2024, 1, 22), open=100, high=100, low=100, close=100, volume=1000),
        ]
        adjusted = forward_adjust(bars, {date(2024, 1, 20): 2.0})
        assert _closes(adjusted) == [100.0, 200.0]

    def test_splits_are_cumulative(self):
        bars = _raw_series(4)
        split_map = {START + timedelta(days=1): 2.0, START + timedelta(days=3): 3.0}
        adjusted = forward_adjust(bars, split_map)
        assert _closes(adjusted) == pytest.approx([100.0, 200.0, 200.0, 600.0])
        assert _volumes(adjusted) == pytest.approx([1000.0, 500.0, 500.0, 1000.0 / 6])

    def test_initial_factor_is_threaded_through(self):
        adjusted = forward_adjust(_raw_series(2), {}, factor=2.0)
        assert _closes(adjusted) == [200.0, 200.0]

    def test_split_before_series_applies_to_all(self):
        adjusted = forward_adjust(_raw_series(2), {START - timedelta(days=30): 2.0})
        assert _closes(adjusted) == [200.0, 200.0]

    def test_input_not_mutated(self):
        bars = _raw_series(3)
        snapshot = list(bars)
        forward_adjust(bars, {START: 2.0})
        assert bars == snapshot


class TestBackwardAdjust:
    def test_two_for_one_halves_pre_split_bars(self):
        bars = _raw_series(4)
        adjusted = backward_adjust(bars, {START + timedelta(days=2): 2.0})
        assert _closes(adjusted) == [50.0, 50.0, 100.0, 100.0]
        assert _volumes(adjusted) == [2000.0, 2000.0, 1000.0, 1000.0]

    def test_post_split_bars_untouched(self):
        bars = _raw_series(4)
        adjusted = backward_adjust(bars, {START + timedelta(days=2): 2.0})
        assert adjusted[2:] == bars[2:]

    def test_splits_are_cumulative(self):
        bars = _raw_series(4)
        split_map = {START + timedelta(days=1): 2.0, START + timedelta(days=3): 3.0}
        adjusted = backward_adjust(bars, split_map)
        assert _closes(adjusted) == pytest.approx([100 / 6, 100 / 3, 100 / 3, 100.0])

    def test_keeps_ascending_order(self):
        bars = _raw_series(5)
        adjusted = backward_adjust(bars, {START + timedelta(days=2): 2.0})
        assert [b.time for b in adjusted] == [b.time for b in bars]

    def test_differs_from_forward_by_total_ratio(self):
        bars = _raw_series(6)
        split_map = {START + timedelta(days=1): 2.0, START + timedelta(days=4): 5.0}
        forward = forward_adjust(bars, split_map)
        backward = backward_adjust(bars, split_map)
        for f, b in zip(forward, backward):
            assert f.close == pytest.approx(b.close * 10.0)


class TestAdjustForSplits:
    def test_no_splits_returns_copy(self):
        bars = _raw_series(3)
        adjusted = adjust_for_splits(bars, {})
        assert adjusted == bars
        assert adjusted is not bars

    def test_default_policy_is_forward(self):
        bars = _raw_series(2)
        adjusted = adjust_for_splits(bars, {START + timedelta(days=1): 2.0})
        assert _closes(adjusted) == [100.0, 200.0]

    def test_backward_policy(self):
        bars = _raw_series(2)
        adjusted = adjust_for_splits(
            bars, {START + timedelta(days=1): 2.0}, SplitAdjustment.BACKWARD
        )
        assert _closes(adjusted) == [50.0, 100.0]


class TestRoundBar:
    def test_rounds_prices_to_two_decimals(self):
        bar = round_bar(
            RawBar(time=START, open=100.456, high=101.111, low=99.994, close=100.0, volume=1234.6)
        )
        assert (bar.open, bar.high, bar.low, bar.close) == (100.46, 101.11, 99.99, 100.0)

    def test_rounds_volume_to_int(self):
        bar = round_bar(RawBar(time=START, open=1, high=1, low=1, close=1, volume=1234.6))
        assert bar.volume == 1235
        assert isinstance(bar.volume, int)

    def test_returns_bar(self):
        assert isinstance(round_bar(_raw_series(1)[0]), Bar)


class TestDropIncompleteLastCandle:
    def test_weekly_same_week_dropped(self):
        bars = [_bar(date(2024, 1, 8)), _bar(date(2024, 1, 15)), _bar(date(2024, 1, 17))]
        assert [b.time for b in drop_incomplete_last_candle(bars, "1wk")] == [
            date(2024, 1, 8),
            date(2024, 1, 15),
        ]

    def test_weekly_distinct_weeks_kept(self):
        bars = [_bar(date(2024, 1, 8)), _bar(date(2024, 1, 15))]
        assert drop_incomplete_last_candle(bars, "1wk") == bars

    def test_monthly_same_month_dropped(self):
        bars = [_bar(date(2024, 1, 1)), _bar(date(2024, 2, 1)), _bar(date(2024, 2, 14))]
        assert len(drop_incomplete_last_candle(bars, "1mo")) == 2

    def test_monthly_same_month_other_year_kept(self):
        bars = [_bar(date(2023, 2, 1)), _bar(date(2024, 2, 1))]
        assert drop_incomplete_last_candle(bars, "1mo") == bars

    def test_daily_unchanged(self):
        bars = [_bar(date(2024, 1, 15)), _bar(date(2024, 1, 16))]
        assert drop_incomplete_last_candle(bars, "1d") == bars

    def test_short_series_unchanged(self):
        bars = [_bar(date(2024, 1, 15))]
        assert drop_incomplete_last_candle(bars, "1wk") == bars
