"""candle_feed.core — Foundation types, config, and exceptions."""

from candle_feed.core.config import (
    APIConfig,
    CacheConfig,
    CandleFeedConfig,
    PricesConfig,
    UpstreamConfig,
    load_config,
)
from candle_feed.core.exceptions import (
    CandleFeedError,
    ConfigError,
    InvalidRequestError,
    NotFoundError,
    RateLimitError,
    UpstreamError,
)
from candle_feed.core.models import PriceInterval, SplitAdjustment

__all__ = [
    # Enums
    "PriceInterval",
    "SplitAdjustment",
    # Config
    "CandleFeedConfig",
    "UpstreamConfig",
    "CacheConfig",
    "PricesConfig",
    "APIConfig",
    "load_config",
    # Exceptions
    "CandleFeedError",
    "ConfigError",
    "InvalidRequestError",
    "NotFoundError",
    "RateLimitError",
    "UpstreamError",
]
