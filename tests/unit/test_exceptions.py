"""Tests for candle_feed.core.exceptions."""

import pytest

from candle_feed.core.exceptions import (
    CandleFeedError,
    ConfigError,
    InvalidRequestError,
    NotFoundError,
    RateLimitError,
    UpstreamError,
)


class TestExceptionHierarchy:
    """Verify the exception class hierarchy."""

    @pytest.mark.parametrize(
        "exc_type",
        [ConfigError, InvalidRequestError, NotFoundError, RateLimitError, UpstreamError],
    )
    def test_subclass_of_base(self, exc_type):
        assert issubclass(exc_type, CandleFeedError)

    def test_rate_limit_is_not_an_upstream_error(self):
        # Callers must be able to tell throttling apart from other failures
        assert not issubclass(RateLimitError, UpstreamError)
        assert not issubclass(NotFoundError, UpstreamError)


class TestStatusCodes:
    def test_invalid_request_is_400(self):
        assert InvalidRequestError.status_code == 400

    def test_not_found_is_404(self):
        assert NotFoundError.status_code == 404

    def test_rate_limited_is_429(self):
        assert RateLimitError.status_code == 429

    def test_upstream_is_500(self):
        assert UpstreamError.status_code == 500


class TestExceptionContext:
    """Verify context dict behavior."""

    def test_context_preserved(self):
        exc = UpstreamError(
            "HTTP 502",
            context={"symbol": "ABC.NS", "status_code": 502},
        )
        assert exc.context["symbol"] == "ABC.NS"
        assert exc.context["status_code"] == 502

    def test_default_context_is_empty_dict(self):
        exc = CandleFeedError("test error")
        assert exc.context == {}

    def test_context_none_becomes_empty_dict(self):
        exc = NotFoundError("gone", context=None)
        assert exc.context == {}

    def test_str_returns_message(self):
        exc = ConfigError("invalid field")
        assert str(exc) == "invalid field"

    def test_exception_can_be_caught_as_base(self):
        with pytest.raises(CandleFeedError):
            raise RateLimitError("too fast", context={"retry_after": 10})


class TestDetails:
    def test_stable_public_message(self):
        exc = NotFoundError("No data available for XYZ.NS")
        assert exc.details == "Stock symbol not found"

    def test_rate_limit_public_message(self):
        assert RateLimitError("x").details == "Too many requests. Please try again later."

    def test_upstream_public_message_hides_diagnostics(self):
        exc = UpstreamError("Upstream returned HTTP 503 for ABC.NS")
        assert exc.details == "Error fetching stock data"

    def test_invalid_request_uses_message(self):
        assert InvalidRequestError("Symbol is required").details == "Symbol is required"
