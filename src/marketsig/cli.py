"""Typer-based CLI for querying and signing market data requests."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from .di import AppContainer
    from .market.client import MarketDataClient
    from .market.models import RetrievalResult


def _load_settings(config_path: Optional[Path] = None):
    from .config import load_settings
    return load_settings(config_path)


def _build_container(settings, user_secret: Optional[str] = None) -> "AppContainer":
    from .di import build_container
    return build_container(settings, user_secret=user_secret)


def _configure_logging(log_settings=None):
    from .logging import configure_logging
    return configure_logging(log_settings)


app = typer.Typer(help="Signed market data client CLI")
console = Console()
logger = logging.getLogger(__name__)

ConfigOption = typer.Option(None, "--config", help="Path to config file")
UserSecretOption = typer.Option(None, "--user-secret", help="Sign with a user secret instead of the public one")


def run_cli(argv: list[str] | None = None) -> None:
    """Run CLI with optional argv parameter."""
    app(argv)


def _container(config: Optional[Path], user_secret: Optional[str]) -> "AppContainer":
    try:
        settings = _load_settings(config)
        _configure_logging(settings.log)
        logger.debug("settings=%s", settings.redacted())
        return _build_container(settings, user_secret)
    except ValueError as e:
        logger.error("Failed to initialize client: %s", e)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _fetch(
    config: Optional[Path],
    user_secret: Optional[str],
    call: Callable[["MarketDataClient"], Awaitable["RetrievalResult"]],
) -> "RetrievalResult":
    container = _container(config, user_secret)

    async def _run() -> "RetrievalResult":
        async with container.client as client:
            return await call(client)

    return asyncio.run(_run())


def _check(result: "RetrievalResult") -> None:
    if not result.signed:
        console.print("[yellow]Warning:[/yellow] request was sent unsigned")
    if not result.ok:
        console.print(f"[red]Error:[/red] {result.status.value}: {result.reason}")
        raise typer.Exit(1)


def _rows_table(title: str, rows: list[Any]) -> Table:
    table = Table(title=title)
    if not rows:
        table.add_column("(empty)")
        return table

    first = rows[0]
    if isinstance(first, dict):
        columns = list(first.keys())
        for column in columns:
            table.add_column(str(column))
        for row in rows:
            table.add_row(*(str(row.get(column, "")) for column in columns))
    elif isinstance(first, (list, tuple)):
        for index in range(len(first)):
            table.add_column(str(index))
        for row in rows:
            table.add_row(*(str(cell) for cell in row))
    else:
        table.add_column("value")
        for row in rows:
            table.add_row(str(row))
    return table


@app.command()
def kline(
    symbol: str = typer.Argument(..., help="Trading symbol, e.g. BTCUSDT"),
    interval: str = typer.Option("1h", help="Candle interval"),
    start: Optional[int] = typer.Option(None, "--from", help="Range start (ms since epoch)"),
    end: Optional[int] = typer.Option(None, "--to", help="Range end (ms since epoch)"),
    limit: int = typer.Option(500, help="Number of candles (max 1000)"),
    config: Optional[Path] = ConfigOption,
    user_secret: Optional[str] = UserSecretOption,
) -> None:
    """Fetch K-line history."""
    result = _fetch(
        config,
        user_secret,
        lambda client: client.fetch_kline_history(symbol, interval, start=start, end=end, limit=limit),
    )
    _check(result)
    console.print(_rows_table(f"{symbol.upper()} {interval} candles", result.value))


@app.command()
def ticker(
    symbol: str = typer.Argument(..., help="Trading symbol, e.g. BTCUSDT"),
    config: Optional[Path] = ConfigOption,
    user_secret: Optional[str] = UserSecretOption,
) -> None:
    """Fetch 24h ticker statistics."""
    result = _fetch(config, user_secret, lambda client: client.fetch_24h_ticker(symbol))
    _check(result)
    body = "\n".join(f"{key}: [bold]{value}[/bold]" for key, value in result.value.items())
    console.print(Panel.fit(body or "(empty)", title=f"{symbol.upper()} 24h"))


@app.command()
def depth(
    symbol: str = typer.Argument(..., help="Trading symbol, e.g. BTCUSDT"),
    limit: int = typer.Option(100, help="Levels per side (max 1000)"),
    config: Optional[Path] = ConfigOption,
    user_secret: Optional[str] = UserSecretOption,
) -> None:
    """Fetch order book depth."""
    result = _fetch(config, user_secret, lambda client: client.fetch_market_depth(symbol, limit=limit))
    _check(result)
    console.print(_rows_table("Asks", result.value.get("asks", [])))
    console.print(_rows_table("Bids", result.value.get("bids", [])))


@app.command()
def trades(
    symbol: str = typer.Argument(..., help="Trading symbol, e.g. BTCUSDT"),
    limit: int = typer.Option(20, help="Number of trades (max 100)"),
    config: Optional[Path] = ConfigOption,
    user_secret: Optional[str] = UserSecretOption,
) -> None:
    """Fetch recent trades."""
    result = _fetch(config, user_secret, lambda client: client.fetch_recent_trades(symbol, limit=limit))
    _check(result)
    console.print(_rows_table(f"{symbol.upper()} trades", result.value))


def _parse_pairs(pairs: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {pair!r}")
        params[key] = value
    return params


@app.command()
def sign(
    pairs: list[str] = typer.Argument(..., help="Parameters as key=value"),
    timestamp: Optional[int] = typer.Option(None, help="Fixed timestamp (ms); defaults to now"),
    config: Optional[Path] = ConfigOption,
    user_secret: Optional[str] = UserSecretOption,
) -> None:
    """Print the canonical string and signature for a parameter set."""
    from .signing.canonical import canonicalize, sign_params

    params = _parse_pairs(pairs)
    container = _container(config, user_secret)
    clock = (lambda: timestamp) if timestamp is not None else None
    signed = sign_params(params, container.credentials.current(), clock=clock)

    console.print(f"Canonical: {canonicalize({**signed.params, 'timestamp': signed.timestamp})}")
    console.print(f"Timestamp: {signed.timestamp}")
    console.print(f"Signature: [bold]{signed.signature or '(unsigned)'}[/bold]")
    if not signed.signed:
        raise typer.Exit(1)


@app.command()
def verify(
    payload: str = typer.Argument(..., help="JSON object as received"),
    signature: str = typer.Argument(..., help="Signature to check"),
    config: Optional[Path] = ConfigOption,
    user_secret: Optional[str] = UserSecretOption,
) -> None:
    """Verify a signed payload."""
    from .signing.verify import verify as verify_payload

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] payload is not valid JSON: {e}")
        raise typer.Exit(1)
    if not isinstance(data, dict):
        console.print("[red]Error:[/red] payload must be a JSON object")
        raise typer.Exit(1)

    container = _container(config, user_secret)
    if verify_payload(data, signature, container.credentials.current()):
        console.print("[green]✓ Signature valid[/green]")
    else:
        console.print("[red]✗ Signature invalid[/red]")
        raise typer.Exit(1)
