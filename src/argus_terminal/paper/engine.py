"""
Paper-trading session: portfolio ownership, manual trades and the AutoPilot loop.

``PaperTradingEngine`` is the single owner of a :class:`PaperPortfolio`.
Every mutation goes through an ``asyncio.Lock`` so manual trades and the
scheduled scan cannot interleave inside one buy or sell. After each
mutation the portfolio is persisted and listeners receive an immutable
:class:`PortfolioSnapshot`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from argus_terminal.alerts import Notifier, NotificationType
from argus_terminal.config import AutoPilotConfig
from argus_terminal.core.decision import Action, TradeDirection
from argus_terminal.council import MIN_CANDLES, compute_decision
from argus_terminal.data import MarketDataSource
from argus_terminal.errors import (
    ArgusError,
    ConfigurationError,
    CorruptionError,
    PersistenceError,
    TradeRejectedError,
    UpstreamFetchError,
    ValidationError,
)
from argus_terminal.logging import (
    correlation_context,
    get_logger,
    log_trade_event,
    symbol_context,
)
from argus_terminal.persistence import AUTOPILOT_CONFIG_KEY, PORTFOLIO_KEY, KeyValueStore
from argus_terminal.risk import compute_risk_levels
from argus_terminal.scheduling import ScheduledTask

from .codec import portfolio_from_dict, portfolio_to_dict
from .models import (
    ZERO,
    PaperPortfolio,
    PaperTrade,
    PerformanceStats,
    PortfolioSnapshot,
    PortfolioValue,
    Position,
    PositionValuation,
    ReconciliationResult,
    ScanReport,
)
from .portfolio import (
    HUNDRED,
    check_buy,
    check_sell,
    close_position,
    open_position,
    performance_stats,
    reconcile,
    to_decimal,
)

logger = get_logger(__name__, component="paper_trading")

DEFAULT_INITIAL_BALANCE = Decimal("10000")
SCAN_THROTTLE_SECONDS = 0.05

PortfolioListener = Callable[[PortfolioSnapshot], None]


def _base(symbol: str) -> str:
    return symbol.removesuffix("USDT")


class PaperTradingEngine:
    """
    Simulated trading account driven manually or by the AutoPilot.

    Usage:
        engine = PaperTradingEngine(BinanceMarketData(), JsonKeyValueStore("~/.argus"))
        await engine.initialize()
        await engine.buy("BTCUSDT", 1000, reason="Manual buy")
        await engine.start_autopilot(max_positions=3)

    Buy and sell return ``None`` when the trade is rejected; the reason is
    logged and kept in :attr:`last_rejection`.
    """

    def __init__(
        self,
        source: MarketDataSource,
        store: KeyValueStore | None = None,
        notifier: Notifier | None = None,
        *,
        config: AutoPilotConfig | None = None,
        throttle_seconds: float = SCAN_THROTTLE_SECONDS,
    ) -> None:
        self.source = source
        self.store = store
        self.notifier = notifier or Notifier()
        self.throttle_seconds = throttle_seconds
        self._config = config or AutoPilotConfig()
        self._portfolio: PaperPortfolio | None = None
        self._lock = asyncio.Lock()
        self._listeners: list[PortfolioListener] = []
        self._task: ScheduledTask | None = None
        self.last_rejection: ArgusError | None = None
        self.last_reconciliation: ReconciliationResult | None = None
        self.last_scan: ScanReport | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._portfolio is not None

    @property
    def config(self) -> AutoPilotConfig:
        return self._config

    @property
    def is_autopilot_running(self) -> bool:
        return self._task is not None and self._task.is_running

    async def initialize(
        self, initial_balance: Decimal | float | str = DEFAULT_INITIAL_BALANCE
    ) -> ReconciliationResult:
        """
        Load the saved portfolio and AutoPilot config, or start fresh.

        A loaded portfolio is reconciled against its trade history; any
        correction is logged and returned.
        """
        async with self._lock:
            self._config = self._load_config()
            portfolio = self._load_portfolio()
            if portfolio is None:
                portfolio = PaperPortfolio.new(to_decimal(initial_balance))
                self._portfolio = portfolio
                self._persist()
                result = ReconciliationResult(portfolio.balance, portfolio.balance, False)
                logger.info(
                    "Paper portfolio created", initial_balance=str(portfolio.initial_balance)
                )
            else:
                self._portfolio = portfolio
                result = reconcile(portfolio)
                if result.corrected:
                    logger.warning(
                        "Portfolio balance drift corrected",
                        operation="reconcile",
                        stored=str(result.stored_balance),
                        expected=str(result.expected_balance),
                        drift=str(result.difference),
                    )
                    self._persist()
                logger.info(
                    "Paper portfolio loaded",
                    balance=str(portfolio.balance),
                    positions=len(portfolio.positions),
                    trades=len(portfolio.trades),
                )
            self.last_reconciliation = result
        self._notify_listeners()
        return result

    async def reset(
        self, initial_balance: Decimal | float | str = DEFAULT_INITIAL_BALANCE
    ) -> PortfolioSnapshot:
        async with self._lock:
            self._portfolio = PaperPortfolio.new(to_decimal(initial_balance))
            self._persist()
            logger.info("Paper portfolio reset", initial_balance=str(initial_balance))
        self._notify_listeners()
        return self.get_snapshot()

    def _load_portfolio(self) -> PaperPortfolio | None:
        if self.store is None:
            return None
        try:
            payload = self.store.load(PORTFOLIO_KEY)
            return None if payload is None else portfolio_from_dict(payload)
        except CorruptionError as exc:
            logger.warning(
                "Saved portfolio unreadable, starting fresh", error=str(exc), key=PORTFOLIO_KEY
            )
            return None

    def _load_config(self) -> AutoPilotConfig:
        if self.store is None:
            return self._config
        try:
            payload = self.store.load(AUTOPILOT_CONFIG_KEY)
        except CorruptionError as exc:
            logger.warning("Saved AutoPilot config unreadable, using defaults", error=str(exc))
            return AutoPilotConfig()
        if not payload:
            return self._config
        try:
            return AutoPilotConfig().updated(**payload)
        except ValidationError as exc:
            logger.warning("Saved AutoPilot config invalid, using defaults", error=exc.message)
            return AutoPilotConfig()

    def _require_portfolio(self) -> PaperPortfolio:
        if self._portfolio is None:
            raise ConfigurationError("Paper portfolio not initialized; call initialize() first")
        return self._portfolio

    def _persist(self) -> None:
        if self.store is None or self._portfolio is None:
            return
        try:
            self.store.save(PORTFOLIO_KEY, portfolio_to_dict(self._portfolio))
        except PersistenceError as exc:
            logger.error("Failed to persist portfolio", error=str(exc), key=PORTFOLIO_KEY)

    def _persist_config(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save(AUTOPILOT_CONFIG_KEY, self._config.to_dict())
        except PersistenceError as exc:
            logger.error("Failed to persist AutoPilot config", error=str(exc))

    # ------------------------------------------------------------------
    # Observers and read models
    # ------------------------------------------------------------------

    def subscribe(self, listener: PortfolioListener) -> Callable[[], None]:
        """Register ``listener`` for snapshots after every change; returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify_listeners(self) -> None:
        if self._portfolio is None:
            return
        snapshot = PortfolioSnapshot.of(self._portfolio)
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:
                logger.error("Portfolio listener failed", error=str(exc))

    def get_snapshot(self) -> PortfolioSnapshot:
        return PortfolioSnapshot.of(self._require_portfolio())

    def get_performance_stats(self) -> PerformanceStats:
        return performance_stats(self._require_portfolio().trades)

    async def portfolio_value(self) -> PortfolioValue:
        """Mark open positions to the latest ticker; unpriceable positions count at cost."""
        portfolio = self._require_portfolio()
        valuations: list[PositionValuation] = []
        positions_value = ZERO
        for position in list(portfolio.positions.values()):
            price = position.avg_cost
            try:
                ticker = await self.source.get_ticker(position.symbol)
                price = to_decimal(ticker.price)
            except UpstreamFetchError as exc:
                logger.warning(
                    "Using cost basis for unpriced position",
                    symbol=position.symbol,
                    error=str(exc),
                )
            value = position.quantity * price
            cost = position.cost_basis
            pnl = value - cost
            positions_value += value
            valuations.append(
                PositionValuation(
                    symbol=position.symbol,
                    quantity=position.quantity,
                    avg_cost=position.avg_cost,
                    current_price=price,
                    current_value=value,
                    pnl=pnl,
                    pnl_percent=pnl / cost * HUNDRED if cost else ZERO,
                    stop_loss=position.stop_loss,
                    take_profit=position.take_profit,
                )
            )

        total = portfolio.balance + positions_value
        pnl = total - portfolio.initial_balance
        return PortfolioValue(
            total_value=total,
            cash=portfolio.balance,
            positions_value=positions_value,
            pnl=pnl,
            pnl_percent=pnl / portfolio.initial_balance * HUNDRED
            if portfolio.initial_balance
            else ZERO,
            positions=tuple(valuations),
        )

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    def _reject(self, exc: ArgusError, side: str, symbol: str) -> None:
        self.last_rejection = exc
        logger.info(
            "Trade rejected",
            operation="trade_rejected",
            side=side,
            symbol=symbol,
            error_code=exc.error_code,
            detail=exc.message,
        )

    async def buy(
        self,
        symbol: str,
        amount: Decimal | float | str,
        reason: str = "Manual buy",
        confidence: float = 0.0,
        stop_loss: Decimal | float | None = None,
        take_profit: Decimal | float | None = None,
        scale_in: bool = False,
    ) -> PaperTrade | None:
        """Spend ``amount`` of cash on ``symbol`` at the current ticker price."""
        return await self._buy(
            symbol.upper(),
            to_decimal(amount),
            reason,
            confidence,
            None if stop_loss is None else to_decimal(stop_loss),
            None if take_profit is None else to_decimal(take_profit),
            scale_in,
        )

    async def _buy(
        self,
        symbol: str,
        amount: Decimal,
        reason: str,
        confidence: float,
        stop_loss: Decimal | None,
        take_profit: Decimal | None,
        scale_in: bool = False,
        price: Decimal | None = None,
    ) -> PaperTrade | None:
        async with self._lock:
            portfolio = self._require_portfolio()
            try:
                check_buy(portfolio, symbol, amount, scale_in)
            except (TradeRejectedError, ValidationError) as exc:
                self._reject(exc, "buy", symbol)
                return None

            if price is None:
                try:
                    ticker = await self.source.get_ticker(symbol)
                except UpstreamFetchError as exc:
                    logger.warning("Buy aborted, price unavailable", symbol=symbol, error=str(exc))
                    self.last_rejection = exc
                    return None
                price = to_decimal(ticker.price)

            try:
                trade = open_position(
                    portfolio,
                    symbol,
                    amount,
                    price,
                    reason=reason,
                    confidence=confidence,
                    stop_loss=stop_loss,
                    take_profit=take_profit,
                    scale_in=scale_in,
                )
            except (TradeRejectedError, ValidationError) as exc:
                self._reject(exc, "buy", symbol)
                return None
            self._persist()

        log_trade_event(
            "BUY",
            symbol,
            logger=logger,
            quantity=str(trade.quantity),
            price=str(price),
            amount=str(amount),
            stop_loss=None if stop_loss is None else str(stop_loss),
            take_profit=None if take_profit is None else str(take_profit),
            reason=reason,
        )
        self._notify_listeners()
        return trade

    async def sell(
        self,
        symbol: str,
        quantity: Decimal | float | str | None = None,
        reason: str = "Manual sell",
    ) -> PaperTrade | None:
        """Sell ``quantity`` (default: the whole position) at the current ticker price."""
        return await self._sell(
            symbol.upper(), None if quantity is None else to_decimal(quantity), reason
        )

    async def _sell(
        self,
        symbol: str,
        quantity: Decimal | None,
        reason: str,
        price: Decimal | None = None,
    ) -> PaperTrade | None:
        async with self._lock:
            portfolio = self._require_portfolio()
            try:
                check_sell(portfolio, symbol, quantity)
            except (TradeRejectedError, ValidationError) as exc:
                self._reject(exc, "sell", symbol)
                return None

            if price is None:
                try:
                    ticker = await self.source.get_ticker(symbol)
                except UpstreamFetchError as exc:
                    logger.warning("Sell aborted, price unavailable", symbol=symbol, error=str(exc))
                    self.last_rejection = exc
                    return None
                price = to_decimal(ticker.price)

            try:
                trade = close_position(portfolio, symbol, price, quantity, reason=reason)
            except (TradeRejectedError, ValidationError) as exc:
                self._reject(exc, "sell", symbol)
                return None
            self._persist()

        log_trade_event(
            "SELL",
            symbol,
            logger=logger,
            quantity=str(trade.quantity),
            price=str(price),
            pnl=str(trade.pnl),
            pnl_percent=f"{trade.pnl_percent:.2f}",
            reason=reason,
        )
        self._notify_listeners()
        return trade

    # ------------------------------------------------------------------
    # AutoPilot
    # ------------------------------------------------------------------

    async def start_autopilot(
        self, config: AutoPilotConfig | None = None, **overrides: Any
    ) -> AutoPilotConfig:
        """Enable the AutoPilot and start scanning; the first cycle runs immediately."""
        if self._portfolio is None:
            await self.initialize()

        base = config or self._config
        self._config = base.updated(**{**overrides, "enabled": True})
        self._persist_config()

        if self.is_autopilot_running:
            logger.info("AutoPilot already running")
            return self._config

        self._task = ScheduledTask(
            "autopilot", self.run_scan_cycle, self._config.scan_interval_seconds
        )
        await self._task.start()
        logger.info(
            "AutoPilot started",
            scan_interval_seconds=self._config.scan_interval_seconds,
            max_positions=self._config.max_positions,
            position_size_percent=self._config.position_size_percent,
            dynamic_levels=self._config.use_dynamic_sl_tp,
            min_confidence=self._config.min_confidence,
        )
        return self._config

    async def stop_autopilot(self, wait: bool = False) -> None:
        """Stop scheduling scans; a cycle already running is allowed to finish."""
        self._config = self._config.updated(enabled=False)
        self._persist_config()
        if self._task is not None:
            await self._task.stop(wait=wait)
        logger.info("AutoPilot stopped")

    async def update_autopilot_config(self, **changes: Any) -> AutoPilotConfig:
        """
        Validate and apply ``changes``; the config is persisted on success.

        Raises:
            ValidationError: for unknown fields or out-of-range values; the
                current config is left unchanged.
        """
        self._config = self._config.updated(**changes)
        self._persist_config()
        logger.info("AutoPilot config updated", fields=sorted(changes))
        if self.is_autopilot_running and self._task is not None:
            await self._task.restart(self._config.scan_interval_seconds)
        return self._config

    def get_autopilot_status(self) -> dict[str, Any]:
        portfolio = self._portfolio
        return {
            "running": self.is_autopilot_running,
            "config": self._config.to_dict(),
            "portfolio": None
            if portfolio is None
            else {
                "balance": str(portfolio.balance),
                "positions": len(portfolio.positions),
                "trades": len(portfolio.trades),
            },
            "last_scan": None if self.last_scan is None else self.last_scan.to_dict(),
        }

    async def run_scan_cycle(self) -> ScanReport:
        """
        One AutoPilot pass: manage exits for held positions, then look for entries.

        Never raises; per-symbol failures are logged and listed in the report.
        """
        with correlation_context(operation="autopilot_scan"):
            return await self._scan()

    async def _scan(self) -> ScanReport:
        started = datetime.now(UTC)
        if self._portfolio is None:
            report = ScanReport(started, datetime.now(UTC), skipped="portfolio not initialized")
            self.last_scan = report
            return report

        config = self._config
        exits: list[PaperTrade] = []
        entries: list[PaperTrade] = []
        errors: list[tuple[str, str]] = []
        scanned: list[str] = []

        for position in list(self._portfolio.positions.values()):
            try:
                with symbol_context(position.symbol):
                    trade = await self._manage_position(position, config)
            except Exception as exc:
                logger.error("Position check failed", symbol=position.symbol, error=str(exc))
                errors.append((position.symbol, str(exc)))
                continue
            if trade is not None:
                exits.append(trade)

        if len(self._portfolio.positions) < config.max_positions:
            try:
                universe = list(config.symbols) or await self.source.get_tradable_symbols()
            except Exception as exc:
                logger.error("Symbol universe unavailable", error=str(exc))
                errors.append(("*", str(exc)))
                universe = []

            for symbol in universe:
                if symbol in self._portfolio.positions:
                    continue
                if len(self._portfolio.positions) >= config.max_positions:
                    break
                scanned.append(symbol)
                try:
                    with symbol_context(symbol):
                        trade = await self._consider_entry(symbol, config)
                except Exception as exc:
                    logger.error("Entry scan failed", symbol=symbol, error=str(exc))
                    errors.append((symbol, str(exc)))
                    trade = None
                if trade is not None:
                    entries.append(trade)
                await asyncio.sleep(self.throttle_seconds)

        report = ScanReport(
            started_at=started,
            finished_at=datetime.now(UTC),
            scanned=tuple(scanned),
            entries=tuple(entries),
            exits=tuple(exits),
            errors=tuple(errors),
        )
        self.last_scan = report
        logger.info(
            "AutoPilot scan complete",
            scanned=len(scanned),
            entries=len(entries),
            exits=len(exits),
            errors=len(errors),
            positions=len(self._portfolio.positions),
            max_positions=config.max_positions,
        )
        return report

    async def _manage_position(
        self, position: Position, config: AutoPilotConfig
    ) -> PaperTrade | None:
        symbol = position.symbol
        ticker = await self.source.get_ticker(symbol)
        price = to_decimal(ticker.price)
        pnl_percent = (price - position.avg_cost) / position.avg_cost * HUNDRED

        if (
            config.use_dynamic_sl_tp
            and position.stop_loss is not None
            and position.take_profit is not None
        ):
            if price <= position.stop_loss:
                trade = await self._sell(
                    symbol,
                    None,
                    f"Dynamic SL: ${position.stop_loss:.4f} ({pnl_percent:.2f}%)",
                    price=price,
                )
                if trade is not None:
                    self.notifier.notify(
                        NotificationType.TRADE,
                        f"Stop-Loss: {_base(symbol)}",
                        f"Dynamic stop-loss hit @ ${price:.4f}",
                        symbol=symbol,
                    )
                return trade
            if price >= position.take_profit:
                trade = await self._sell(
                    symbol,
                    None,
                    f"Dynamic TP: ${position.take_profit:.4f} ({pnl_percent:.2f}%)",
                    price=price,
                )
                if trade is not None:
                    self.notifier.notify(
                        NotificationType.TRADE,
                        f"Take-Profit: {_base(symbol)}",
                        f"Dynamic take-profit hit @ ${price:.4f}",
                        symbol=symbol,
                    )
                return trade
        else:
            if pnl_percent <= -to_decimal(config.stop_loss_percent):
                return await self._sell(
                    symbol, None, f"Stop-loss triggered at {pnl_percent:.2f}%", price=price
                )
            if pnl_percent >= to_decimal(config.take_profit_percent):
                return await self._sell(
                    symbol, None, f"Take-profit triggered at {pnl_percent:.2f}%", price=price
                )

        candles = await self.source.get_candles(symbol, config.candle_interval, config.candle_limit)
        if len(candles) <= MIN_CANDLES:
            return None
        decision = compute_decision(candles, symbol)
        if decision.final_action is not Action.SELL or decision.confidence < config.min_confidence:
            return None

        trade = await self._sell(symbol, None, decision.reason)
        if trade is not None:
            self.notifier.notify(
                NotificationType.SIGNAL,
                f"Sell signal: {_base(symbol)}",
                decision.reason,
                symbol=symbol,
            )
        return trade

    async def _consider_entry(self, symbol: str, config: AutoPilotConfig) -> PaperTrade | None:
        candles = await self.source.get_candles(symbol, config.candle_interval, config.candle_limit)
        if len(candles) < MIN_CANDLES:
            return None

        decision = compute_decision(candles, symbol)
        logger.debug(
            "AutoPilot candidate",
            symbol=symbol,
            action=decision.final_action.value,
            confidence=round(decision.confidence, 2),
            buy_votes=decision.buy_votes,
            sell_votes=decision.sell_votes,
        )
        if decision.final_action is not Action.BUY or decision.confidence < config.min_confidence:
            return None

        value = await self.portfolio_value()
        size = value.total_value * to_decimal(config.position_size_percent) / HUNDRED
        if size > self._require_portfolio().balance:
            logger.debug("AutoPilot entry skipped, not enough cash", symbol=symbol, size=str(size))
            return None

        ticker = await self.source.get_ticker(symbol)
        entry_price = ticker.price
        stop_loss: Decimal | None = None
        take_profit: Decimal | None = None
        if config.use_dynamic_sl_tp:
            levels = compute_risk_levels(
                candles,
                entry_price,
                TradeDirection.LONG,
                atr_multiplier_sl=config.atr_multiplier_sl,
                atr_multiplier_tp=config.atr_multiplier_tp,
            )
            stop_loss = to_decimal(levels.stop_loss)
            take_profit = to_decimal(levels.take_profit_2)
            logger.debug(
                "AutoPilot risk levels",
                symbol=symbol,
                stop_loss=levels.stop_loss,
                take_profit=levels.take_profit_2,
                risk_reward=round(levels.risk_reward_ratio, 2),
                method=levels.method.value,
            )

        trade = await self._buy(
            symbol,
            size,
            decision.reason,
            decision.confidence,
            stop_loss,
            take_profit,
            price=to_decimal(entry_price),
        )
        if trade is not None:
            self.notifier.notify(
                NotificationType.TRADE,
                f"Buy: {_base(symbol)}",
                f"{decision.reason} @ ${entry_price:.4f}",
                symbol=symbol,
            )
        return trade


__all__ = [
    "DEFAULT_INITIAL_BALANCE",
    "PaperTradingEngine",
    "PortfolioListener",
    "SCAN_THROTTLE_SECONDS",
]
