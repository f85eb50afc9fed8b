"""Shared enums used by configuration and the price pipeline."""

from __future__ import annotations

from enum import StrEnum


class PriceInterval(StrEnum):
    """Sampling intervals the chart UI requests."""

    DAILY = "1d"
    WEEKLY = "1wk"
    MONTHLY = "1mo"


class SplitAdjustment(StrEnum):
    """Direction in which split ratios are applied to a bar series.

    FORWARD keeps pre-split bars as reported and scales every bar on or
    after a split by the cumulative ratio. BACKWARD keeps post-split bars
    as reported and scales earlier bars down by the ratios still ahead.
    """

    FORWARD = "forward"
    BACKWARD = "backward"
