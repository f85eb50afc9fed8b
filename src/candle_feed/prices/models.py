"""Price data models for the chart normalization pipeline."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, field_validator

from candle_feed.core.models import PriceInterval, SplitAdjustment

__all__ = ["Bar", "PriceInterval", "SplitAdjustment", "SplitEvent"]


class Bar(BaseModel):
    """A single OHLCV bar — the record handed to the chart renderer.

    Prices are rounded to two decimals and volume is a whole share count
    by the time a Bar is built; see ``prices.adjust.round_bar``.
    """

    model_config = ConfigDict(frozen=True)

    time: date
    open: float
    high: float
    low: float
    close: float
    volume: int

    @field_validator("open", "high", "low", "close")
    @classmethod
    def price_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"price must be > 0, got {v}")
        return v

    @field_validator("volume")
    @classmethod
    def volume_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"volume must be >= 0, got {v}")
        return v


class SplitEvent(BaseModel):
    """A stock split parsed from the upstream ``events.splits`` block."""

    model_config = ConfigDict(frozen=True)

    effective_date: date
    numerator: float
    denominator: float

    @field_validator("numerator", "denominator")
    @classmethod
    def positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"split terms must be > 0, got {v}")
        return v

    @property
    def ratio(self) -> float:
        """Shares after the split per share before it (2-for-1 → 2.0)."""
        return self.numerator / self.denominator
