"""candle-feed: split-adjusted OHLCV bars for charting front-ends."""

__version__ = "0.1.0"
