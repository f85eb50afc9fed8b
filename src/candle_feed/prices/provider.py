"""Fetcher and adapter protocols — the source-agnostic interface layer.

    Upstream → ChartFetcher → raw payload → ChartAdapter → list[Bar]

- **ChartFetcher** performs the single upstream call and classifies its
  failures into the typed errors of ``core.exceptions``.
- **ChartAdapter** turns the raw payload into normalized Bars. It is pure:
  no I/O and no state carried between calls.

``StockDataService`` depends only on these protocols, so tests can swap in
fakes without patching HTTP.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from candle_feed.prices.models import Bar


@runtime_checkable
class ChartFetcher(Protocol):
    """Retrieves one raw chart payload from the upstream provider."""

    async def fetch_chart(self, symbol: str, range_: str, interval: str) -> Any:
        """Fetch raw chart data for an exchange-qualified symbol.

        Raises
        ------
        NotFoundError
            The upstream has no data for the symbol.
        RateLimitError
            The upstream throttled the request.
        UpstreamError
            Any other transport or parse failure.
        """
        ...


@runtime_checkable
class ChartAdapter(Protocol):
    """Transforms a raw chart payload into an ascending Bar list."""

    def adapt(self, raw_data: Any, symbol: str, interval: str) -> list[Bar]: ...
