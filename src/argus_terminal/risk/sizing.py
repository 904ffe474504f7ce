"""Position sizing, trailing stops and Kelly allocation."""

from __future__ import annotations

from dataclasses import dataclass

from argus_terminal.core.decision import TradeDirection

MAX_POSITION_FRACTION = 0.10
MAX_RISK_ADJUSTED_FRACTION = 0.25


@dataclass(frozen=True)
class PositionSize:
    recommended_size: float
    max_size: float
    risk_amount: float
    portfolio_risk_percent: float


@dataclass(frozen=True)
class RiskAdjustedPosition:
    notional: float
    quantity: float
    risk_amount: float


@dataclass(frozen=True)
class KellySize:
    kelly_percent: float
    half_kelly: float
    quarter_kelly: float


def position_size(
    portfolio_value: float,
    entry_price: float,
    stop_loss: float,
    max_risk_percent: float = 2.0,
) -> PositionSize:
    """
    Units to buy so that hitting ``stop_loss`` costs ``max_risk_percent`` of the portfolio.

    The result never exceeds a 10% notional allocation. A zero stop distance
    yields the notional cap alone.
    """
    risk_amount = portfolio_value * max_risk_percent / 100
    max_size = portfolio_value * MAX_POSITION_FRACTION / entry_price if entry_price > 0 else 0.0
    risk_per_unit = abs(entry_price - stop_loss)
    recommended = risk_amount / risk_per_unit if risk_per_unit > 0 else max_size
    return PositionSize(
        recommended_size=min(recommended, max_size),
        max_size=max_size,
        risk_amount=risk_amount,
        portfolio_risk_percent=max_risk_percent,
    )


def risk_adjusted_position(
    portfolio_value: float,
    risk_per_trade: float,
    entry_price: float,
    stop_loss_price: float,
) -> RiskAdjustedPosition:
    """Notional such that the stop distance risks ``risk_per_trade`` percent, capped at 25%."""
    risk_amount = portfolio_value * risk_per_trade / 100
    if entry_price <= 0:
        return RiskAdjustedPosition(notional=0.0, quantity=0.0, risk_amount=risk_amount)
    stop_fraction = abs(entry_price - stop_loss_price) / entry_price
    if stop_fraction == 0:
        return RiskAdjustedPosition(notional=0.0, quantity=0.0, risk_amount=risk_amount)

    notional = min(risk_amount / stop_fraction, portfolio_value * MAX_RISK_ADJUSTED_FRACTION)
    return RiskAdjustedPosition(
        notional=notional,
        quantity=notional / entry_price,
        risk_amount=risk_amount,
    )


def trailing_stop(
    entry_price: float,
    current_price: float,
    extreme_price: float,
    atr_value: float,
    direction: TradeDirection = TradeDirection.LONG,
    multiplier: float = 2.5,
) -> float:
    """
    Trailing stop anchored on the most favourable price seen so far.

    Uses the tighter of ``multiplier`` ATRs and 5% from ``extreme_price``
    (the highest high for longs, lowest low for shorts). Once price is 2%
    in profit the stop is locked at breakeven or better.
    """
    if direction is TradeDirection.LONG:
        stop = max(extreme_price - atr_value * multiplier, extreme_price * 0.95)
        if current_price > entry_price * 1.02:
            stop = max(stop, entry_price)
        return stop

    stop = min(extreme_price + atr_value * multiplier, extreme_price * 1.05)
    if current_price < entry_price * 0.98:
        stop = min(stop, entry_price)
    return stop


def kelly_size(win_rate: float, avg_win_return: float, avg_loss_return: float) -> KellySize:
    """Kelly fraction ``(b*p - q) / b`` as a percentage, capped at 50%."""
    if win_rate <= 0 or avg_loss_return <= 0 or avg_win_return <= 0:
        return KellySize(0.0, 0.0, 0.0)

    payoff = avg_win_return / avg_loss_return
    kelly = (payoff * win_rate - (1 - win_rate)) / payoff
    kelly_percent = max(0.0, min(50.0, kelly * 100))
    return KellySize(
        kelly_percent=kelly_percent,
        half_kelly=kelly_percent / 2,
        quarter_kelly=kelly_percent / 4,
    )


__all__ = [
    "KellySize",
    "PositionSize",
    "RiskAdjustedPosition",
    "kelly_size",
    "position_size",
    "risk_adjusted_position",
    "trailing_stop",
]
