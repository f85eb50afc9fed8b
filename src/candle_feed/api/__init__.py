"""candle_feed.api — FastAPI surface consumed by the chart UI."""
