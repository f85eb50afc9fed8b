"""Custom exception hierarchy for candle-feed."""

from typing import Any


class CandleFeedError(Exception):
    """Base exception for all candle-feed errors.

    All exceptions carry an optional `context` dict for structured error
    metadata that can be logged or serialized without parsing the message.

    Subclasses declare the HTTP status they map to and a stable
    ``public_message`` safe to show to an end user.
    """

    status_code: int = 500
    public_message: str | None = None

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}

    @property
    def details(self) -> str:
        """User-facing text: the stable public message, else the message."""
        return self.public_message or str(self)


class ConfigError(CandleFeedError):
    """Invalid or missing configuration.

    Raised by load_config() during startup. Should be treated as fatal.

    Context keys:
        field: str — the config field that failed validation
        value: Any — the invalid value
    """


class InvalidRequestError(CandleFeedError):
    """Required parameter missing or method not allowed.

    Policy: never retried. No upstream call is made.

    Context keys:
        parameter: str — the missing or invalid parameter
    """

    status_code = 400


class NotFoundError(CandleFeedError):
    """Upstream has no data for the requested symbol.

    Raised for HTTP 404 and for a 200 response with an empty result set;
    both mean "no data available" and are reported the same way.

    Context keys:
        symbol: str — the exchange-qualified symbol
    """

    status_code = 404
    public_message = "Stock symbol not found"


class RateLimitError(CandleFeedError):
    """Upstream throttling detected (HTTP 429).

    Policy: not retried internally. Surfaced distinctly so the caller can
    back off before trying again.

    Context keys:
        symbol: str — the exchange-qualified symbol
        retry_after: int | None — seconds to wait, if the upstream sent it
    """

    status_code = 429
    public_message = "Too many requests. Please try again later."


class UpstreamError(CandleFeedError):
    """Any other transport failure, timeout, or unparseable payload.

    Context keys:
        symbol: str — the exchange-qualified symbol
        status_code: int | None — upstream HTTP status, if one was received
        response_body: str | None — truncated response for debugging
    """

    public_message = "Error fetching stock data"
