"""Click-based CLI entry point for the ``argus_terminal`` package."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import click

from argus_terminal.alerts import AlertBook, AlertCondition, AlertMonitor, Notifier
from argus_terminal.backtest import STRATEGY_INFO, run_backtest
from argus_terminal.config import BacktestConfig, StrategyId
from argus_terminal.core.decision import TradeDirection
from argus_terminal.core.market import INTERVALS
from argus_terminal.council import compute_decision
from argus_terminal.data import BinanceMarketData
from argus_terminal.errors import ArgusError, InsufficientDataError
from argus_terminal.indicators import indicator_summary
from argus_terminal.logging import configure_logging
from argus_terminal.paper import PaperTradingEngine
from argus_terminal.persistence import JsonKeyValueStore
from argus_terminal.preferences import update_watchlist
from argus_terminal.risk import compute_risk_levels

from .settings import ArgusSettings, get_settings

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

T = TypeVar("T")


@click.group(
    context_settings=CONTEXT_SETTINGS,
    help="Argus Terminal: crypto market analysis, backtesting and paper trading.",
)
def app() -> None:
    """CLI root group."""


def _resolve_settings() -> ArgusSettings:
    """Allow dependency injection from tests without global mutation."""
    return get_settings()


def _market_data(settings: ArgusSettings) -> BinanceMarketData:
    return BinanceMarketData(
        base_url=settings.binance_rest_url, timeout_seconds=settings.request_timeout_seconds
    )


def _run(factory: Callable[[BinanceMarketData], Awaitable[T]]) -> T:
    """Run ``factory`` against a market-data client, mapping domain errors to click errors."""
    settings = _resolve_settings()

    async def runner() -> T:
        async with _market_data(settings) as source:
            return await factory(source)

    try:
        return asyncio.run(runner())
    except ArgusError as exc:
        raise click.ClickException(exc.message) from exc


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _engine(source: BinanceMarketData, settings: ArgusSettings) -> PaperTradingEngine:
    store = JsonKeyValueStore(settings.resolved_state_dir)
    notifier = Notifier(store)
    notifier.load()
    return PaperTradingEngine(source, store, notifier)


symbol_argument = click.argument("symbol", callback=lambda _ctx, _param, value: value.upper())
interval_option = click.option(
    "--interval",
    "-i",
    default="4h",
    show_default=True,
    type=click.Choice(INTERVALS),
    help="Candle interval.",
)
limit_option = click.option(
    "--limit",
    "-l",
    default=200,
    show_default=True,
    type=click.IntRange(1, 1000),
    help="Number of candles to fetch.",
)


@app.command("analyze")
@symbol_argument
@interval_option
@limit_option
def analyze(symbol: str, interval: str, limit: int) -> None:
    """Show the Council decision and latest indicator readings for SYMBOL."""

    async def work(source: BinanceMarketData) -> dict[str, Any]:
        candles = await source.get_candles(symbol, interval, limit)
        if not candles:
            raise InsufficientDataError(
                f"No market data returned for {symbol} {interval}", required=1, available=0
            )
        decision = compute_decision(candles, symbol)
        return {
            "decision": decision.to_dict(),
            "indicators": indicator_summary(candles).to_dict(),
        }

    _echo_json(_run(work))


@app.command("risk")
@symbol_argument
@interval_option
@limit_option
@click.option("--entry", type=click.FloatRange(min=0, min_open=True), help="Entry price.")
@click.option(
    "--direction",
    type=click.Choice([d.value for d in TradeDirection]),
    default=TradeDirection.LONG.value,
    show_default=True,
)
@click.option("--atr-sl", default=2.0, show_default=True, type=float, help="ATR stop multiple.")
@click.option("--atr-tp", default=3.0, show_default=True, type=float, help="ATR target multiple.")
def risk(
    symbol: str,
    interval: str,
    limit: int,
    entry: float | None,
    direction: str,
    atr_sl: float,
    atr_tp: float,
) -> None:
    """Compute stop-loss and take-profit levels for SYMBOL (entry defaults to last price)."""

    async def work(source: BinanceMarketData) -> dict[str, Any]:
        candles = await source.get_candles(symbol, interval, limit)
        entry_price = entry
        if entry_price is None:
            entry_price = (await source.get_ticker(symbol)).price
        levels = compute_risk_levels(
            candles,
            entry_price,
            TradeDirection(direction),
            atr_multiplier_sl=atr_sl,
            atr_multiplier_tp=atr_tp,
        )
        return levels.to_dict()

    _echo_json(_run(work))


@app.command("strategies")
def strategies() -> None:
    """List the built-in backtest strategies."""
    for strategy_id, info in STRATEGY_INFO.items():
        click.echo(f"{strategy_id.value:<20} {info.name}: {info.description}")


@app.command("backtest")
@symbol_argument
@click.option(
    "--strategy",
    "-S",
    "strategy_name",
    default=StrategyId.ARGUS_COMPOSITE.value,
    show_default=True,
    type=click.Choice([s.value for s in StrategyId]),
)
@interval_option
@click.option("--limit", "-l", default=500, show_default=True, type=click.IntRange(1, 1000))
@click.option("--capital", default=10_000.0, show_default=True, type=float)
@click.option("--position-size", default=0.2, show_default=True, type=float)
@click.option("--stop-loss", default=0.05, show_default=True, type=float)
@click.option("--take-profit", default=0.15, show_default=True, type=float)
@click.option("--commission", default=0.001, show_default=True, type=float)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Optional path to write a JSON report including trades and the equity curve.",
)
def backtest(
    symbol: str,
    strategy_name: str,
    interval: str,
    limit: int,
    capital: float,
    position_size: float,
    stop_loss: float,
    take_profit: float,
    commission: float,
    output: Path | None,
) -> None:
    """Replay a strategy over historical candles for SYMBOL."""
    try:
        config = BacktestConfig(
            strategy=StrategyId(strategy_name),
            initial_capital=capital,
            position_size=position_size,
            stop_loss=stop_loss,
            take_profit=take_profit,
            commission=commission,
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc

    async def work(source: BinanceMarketData) -> Any:
        candles = await source.get_candles(symbol, interval, limit)
        return run_backtest(symbol, candles, config)

    result = _run(work)
    click.echo(
        f"{symbol} {strategy_name} | trades={result.total_trades} | "
        f"return={result.total_return_percent:.2f}% | "
        f"win_rate={result.win_rate:.1f}% | "
        f"max_drawdown={result.max_drawdown_percent:.2f}% | "
        f"sharpe={result.sharpe_ratio:.2f}"
    )
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(
            json.dumps(result.to_dict(include_series=True), indent=2, default=str),
            encoding="utf-8",
        )
        click.echo(f"Wrote backtest report to {output}")


@app.command("portfolio")
@click.option("--reset", is_flag=True, help="Discard the paper portfolio and start over.")
def portfolio(reset: bool) -> None:
    """Show the paper portfolio value, open positions and performance."""
    settings = _resolve_settings()

    async def work(source: BinanceMarketData) -> dict[str, Any]:
        engine = _engine(source, settings)
        await engine.initialize(settings.initial_balance)
        if reset:
            await engine.reset(settings.initial_balance)
        value = await engine.portfolio_value()
        return {
            "total_value": str(value.total_value),
            "cash": str(value.cash),
            "positions_value": str(value.positions_value),
            "pnl": str(value.pnl),
            "pnl_percent": f"{value.pnl_percent:.2f}",
            "positions": [
                {
                    "symbol": p.symbol,
                    "quantity": str(p.quantity),
                    "avg_cost": str(p.avg_cost),
                    "price": str(p.current_price),
                    "pnl_percent": f"{p.pnl_percent:.2f}",
                }
                for p in value.positions
            ],
            "performance": engine.get_performance_stats().to_dict(),
        }

    _echo_json(_run(work))


@app.command("buy")
@symbol_argument
@click.argument("amount", type=click.FloatRange(min=0, min_open=True))
@click.option("--stop-loss", type=float, help="Stop-loss price.")
@click.option("--take-profit", type=float, help="Take-profit price.")
@click.option("--scale-in", is_flag=True, help="Add to an existing position.")
def buy(
    symbol: str,
    amount: float,
    stop_loss: float | None,
    take_profit: float | None,
    scale_in: bool,
) -> None:
    """Spend AMOUNT of paper cash on SYMBOL at the current price."""
    settings = _resolve_settings()

    async def work(source: BinanceMarketData) -> Any:
        engine = _engine(source, settings)
        await engine.initialize(settings.initial_balance)
        trade = await engine.buy(
            symbol, amount, stop_loss=stop_loss, take_profit=take_profit, scale_in=scale_in
        )
        if trade is None:
            reason = engine.last_rejection.message if engine.last_rejection else "unknown"
            raise click.ClickException(f"Buy rejected: {reason}")
        return trade

    _echo_json(_run(work).to_dict())


@app.command("sell")
@symbol_argument
@click.argument("quantity", required=False, type=click.FloatRange(min=0, min_open=True))
def sell(symbol: str, quantity: float | None) -> None:
    """Sell QUANTITY (default: all) of the paper position in SYMBOL."""
    settings = _resolve_settings()

    async def work(source: BinanceMarketData) -> Any:
        engine = _engine(source, settings)
        await engine.initialize(settings.initial_balance)
        trade = await engine.sell(symbol, quantity)
        if trade is None:
            reason = engine.last_rejection.message if engine.last_rejection else "unknown"
            raise click.ClickException(f"Sell rejected: {reason}")
        return trade

    _echo_json(_run(work).to_dict())


@app.command("autopilot")
@click.option("--cycles", type=click.IntRange(1), help="Stop after this many scan cycles.")
@click.option("--max-positions", type=click.IntRange(1, 50), help="Override max open positions.")
@click.option("--min-confidence", type=click.FloatRange(0, 100), help="Override confidence gate.")
@click.option("--symbol", "-s", "symbols", multiple=True, help="Restrict the scan universe.")
def autopilot(
    cycles: int | None,
    max_positions: int | None,
    min_confidence: float | None,
    symbols: tuple[str, ...],
) -> None:
    """Run the AutoPilot scan loop against the paper portfolio."""
    settings = _resolve_settings()
    overrides: dict[str, Any] = {}
    if max_positions is not None:
        overrides["max_positions"] = max_positions
    if min_confidence is not None:
        overrides["min_confidence"] = min_confidence
    if symbols:
        overrides["symbols"] = list(symbols)

    async def work(source: BinanceMarketData) -> None:
        engine = _engine(source, settings)
        await engine.initialize(settings.initial_balance)
        if cycles is not None:
            if overrides:
                await engine.update_autopilot_config(**overrides)
            for _ in range(cycles):
                report = await engine.run_scan_cycle()
                _echo_json(report.to_dict())
            return
        await engine.start_autopilot(**overrides)
        click.echo("AutoPilot running; press Ctrl+C to stop.")
        try:
            while engine.is_autopilot_running:
                await asyncio.sleep(1)
        finally:
            await engine.stop_autopilot(wait=True)

    try:
        _run(work)
    except KeyboardInterrupt:
        click.echo("AutoPilot stopped.")


@app.command("alert")
@symbol_argument
@click.argument("condition", type=click.Choice([c.value for c in AlertCondition]))
@click.argument("target", type=click.FloatRange(min=0, min_open=True))
@click.option("--note", help="Free-text note shown when the alert fires.")
def alert(symbol: str, condition: str, target: float, note: str | None) -> None:
    """Create a price alert on SYMBOL that fires ABOVE or BELOW TARGET."""
    settings = _resolve_settings()
    store = JsonKeyValueStore(settings.resolved_state_dir)

    async def work(source: BinanceMarketData) -> Any:
        monitor = AlertMonitor(AlertBook(), source, Notifier(store), store)
        monitor.load()
        created = monitor.book.add(symbol, target, condition, note)
        fired = await monitor.check_once()
        return {"alert": created.to_dict(), "triggered": [a.id for a in fired]}

    _echo_json(_run(work))


@app.command("watchlist")
@click.option("--add", "-a", "add", multiple=True, help="Symbol to add.")
@click.option("--remove", "-r", "remove", multiple=True, help="Symbol to remove.")
def watchlist(add: tuple[str, ...], remove: tuple[str, ...]) -> None:
    """Show, and optionally edit, the saved watchlist."""
    settings = _resolve_settings()
    store = JsonKeyValueStore(settings.resolved_state_dir)
    try:
        preferences = update_watchlist(store, add, remove)
    except ArgusError as exc:
        raise click.ClickException(exc.message) from exc
    for symbol in preferences.watchlist:
        click.echo(symbol)


def main() -> None:
    """Entry point compatible with setuptools-style script loading."""
    settings = _resolve_settings()
    configure_logging(settings.log_level, json_output=settings.log_json, log_file=settings.log_file)
    app(prog_name="argus")


if __name__ == "__main__":  # pragma: no cover - manual execution convenience
    main()


__all__ = ["app", "main"]
