"""Click-based CLI for candle-feed.

Thin wrapper around library modules. Zero business logic — every operation
delegates to the prices service or the API factory.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os

import click
from rich.console import Console
from rich.table import Table

console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_async(coro):
    """Run an async coroutine from synchronous Click code."""
    return asyncio.run(coro)


def _load_config(ctx: click.Context):
    """Load config lazily, caching on first call."""
    if "config" not in ctx.obj:
        from candle_feed.core import load_config

        ctx.obj["config"] = load_config(config_path=ctx.obj.get("config_path"))
    return ctx.obj["config"]


def _bars_table(title: str, bars: list) -> Table:
    table = Table(title=title)
    table.add_column("Date", style="bold")
    for name in ("Open", "High", "Low", "Close"):
        table.add_column(name, justify="right")
    table.add_column("Volume", justify="right")
    for bar in bars:
        table.add_row(
            bar.time.isoformat(),
            f"{bar.open:.2f}",
            f"{bar.high:.2f}",
            f"{bar.low:.2f}",
            f"{bar.close:.2f}",
            f"{bar.volume:,}",
        )
    return table


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    envvar="CANDLE_FEED_CONFIG",
    default=None,
    help="Path to candle-feed.yml config file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
@click.version_option(package_name="candle-feed")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """candle-feed: split-adjusted OHLCV bars for charting."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["console"] = console
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# fetch
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("symbol")
@click.option("--range", "-r", "range_", default=None, help="Range token (e.g. 1y, 5y, max).")
@click.option("--interval", "-i", default=None, help="Interval token (1d, 1wk, 1mo).")
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="Print bars as a JSON array instead of a table.",
)
@click.pass_context
def fetch(
    ctx: click.Context,
    symbol: str,
    range_: str | None,
    interval: str | None,
    as_json: bool,
) -> None:
    """Fetch normalized bars for SYMBOL."""
    from candle_feed.core.exceptions import CandleFeedError
    from candle_feed.prices import create_service

    config = _load_config(ctx)
    service = create_service(config)

    try:
        bars = _run_async(service.get_bars(symbol, range_, interval))
    except CandleFeedError as exc:
        console.print(f"[red]{type(exc).__name__}: {exc.details}[/red]")
        if ctx.obj["verbose"] and exc.context:
            console.print(f"[dim]{exc.context}[/dim]")
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps([b.model_dump(mode="json") for b in bars], indent=2))
        return

    if not bars:
        console.print(f"[yellow]No bars returned for {symbol}.[/yellow]")
        return

    title = (
        f"{symbol.upper()} ({range_ or config.prices.default_range}, "
        f"{interval or config.prices.default_interval})"
    )
    console.print(_bars_table(title, bars))


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--host", default=None, help="Bind host (default from config).")
@click.option("--port", default=None, type=int, help="Bind port (default from config).")
@click.option("--reload", is_flag=True, default=False, help="Auto-reload on code changes.")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, reload: bool) -> None:
    """Start the REST API server."""
    try:
        import uvicorn
    except ImportError:
        console.print(
            "[red]uvicorn not installed. Install with: "
            "pip install candle-feed[/red]"
        )
        raise SystemExit(1)

    config = _load_config(ctx)
    host = host or config.api.host
    # The app factory runs in uvicorn and reloads config from the environment
    if ctx.obj.get("config_path"):
        os.environ["CANDLE_FEED_CONFIG"] = ctx.obj["config_path"]
    port = port or config.api.port

    console.print(f"Starting candle-feed API on [bold]{host}:{port}[/bold]")
    console.print(f"API docs: http://{host}:{port}/docs")

    uvicorn.run(
        "candle_feed.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


@cli.command("config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Print the resolved configuration as JSON."""
    config = _load_config(ctx)
    click.echo(json.dumps(config.model_dump(mode="json"), indent=2))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
