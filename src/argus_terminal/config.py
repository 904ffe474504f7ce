"""Validated configuration models for the AutoPilot, backtests and user preferences."""

from __future__ import annotations

from enum import Enum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from argus_terminal.core.market import INTERVALS
from argus_terminal.errors import ValidationError


class StrategyId(str, Enum):
    RSI_MEAN_REVERSION = "rsiMeanReversion"
    MACD_CROSSOVER = "macdCrossover"
    BOLLINGER_BREAKOUT = "bollingerBreakout"
    GOLDEN_CROSS = "goldenCross"
    TREND_FOLLOWING = "trendFollowing"
    ARGUS_COMPOSITE = "argusComposite"


def _normalise_symbols(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [part for part in value.split(",")]
    if not isinstance(value, (list, tuple)):
        raise PydanticCustomError(
            "symbols_invalid_type",
            "symbols must be a list or tuple, got {type}",
            {"type": type(value).__name__},
        )
    symbols: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise PydanticCustomError(
                "symbols_invalid_values",
                "symbols must contain only non-empty strings, got {value}",
                {"value": repr(item)},
            )
        symbol = item.strip().upper()
        if symbol not in symbols:
            symbols.append(symbol)
    return symbols


class _UpdatableModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    def updated(self, **changes: Any) -> Self:
        """Return a copy with ``changes`` applied after full validation.

        Raises:
            ValidationError: if any field is unknown or out of range; the
                current instance is left untouched.
        """
        try:
            return type(self).model_validate({**self.model_dump(), **changes})
        except PydanticValidationError as exc:
            first = exc.errors()[0] if exc.errors() else {}
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            raise ValidationError(
                f"Invalid {type(self).__name__} update: {first.get('msg', exc)}",
                field=field,
                value=first.get("input"),
                original_error=exc,
            ) from exc

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class AutoPilotConfig(_UpdatableModel):
    """Settings read by every AutoPilot scan cycle."""

    enabled: bool = False
    max_positions: int = Field(default=5, ge=1, le=50)
    position_size_percent: float = Field(default=10.0, gt=0, le=100)
    use_dynamic_sl_tp: bool = True
    stop_loss_percent: float = Field(default=5.0, gt=0, lt=100)
    take_profit_percent: float = Field(default=10.0, gt=0)
    atr_multiplier_sl: float = Field(default=2.0, gt=0, le=10)
    atr_multiplier_tp: float = Field(default=3.0, gt=0, le=20)
    symbols: list[str] = Field(default_factory=list)
    scan_interval_ms: int = Field(default=15_000, ge=1_000)
    min_confidence: float = Field(default=55.0, ge=0, le=100)
    candle_interval: str = "4h"
    candle_limit: int = Field(default=200, ge=50, le=1000)

    @field_validator("symbols", mode="before")
    @classmethod
    def validate_symbols(cls, value: Any) -> list[str]:
        return _normalise_symbols(value)

    @field_validator("candle_interval")
    @classmethod
    def validate_interval(cls, value: str) -> str:
        if value not in INTERVALS:
            raise PydanticCustomError(
                "interval_invalid",
                "candle_interval must be one of {allowed}, got {value}",
                {"allowed": ", ".join(INTERVALS), "value": value},
            )
        return value

    @property
    def scan_interval_seconds(self) -> float:
        return self.scan_interval_ms / 1000


class BacktestConfig(_UpdatableModel):
    """Backtest parameters; fractions are expressed as 0..1."""

    strategy: StrategyId = StrategyId.RSI_MEAN_REVERSION
    initial_capital: float = Field(default=10_000.0, gt=0)
    position_size: float = Field(default=0.2, gt=0, le=1)
    stop_loss: float = Field(default=0.05, gt=0, lt=1)
    take_profit: float = Field(default=0.15, gt=0)
    commission: float = Field(default=0.001, ge=0, lt=1)


class UserSettings(_UpdatableModel):
    """Watchlist and display preferences persisted between sessions."""

    watchlist: list[str] = Field(
        default_factory=lambda: ["BTCUSDT", "ETHUSDT", "SOLUSDT", "BNBUSDT", "XRPUSDT"]
    )
    default_interval: str = "4h"
    default_strategy: StrategyId = StrategyId.ARGUS_COMPOSITE
    notifications_enabled: bool = True

    @field_validator("watchlist", mode="before")
    @classmethod
    def validate_watchlist(cls, value: Any) -> list[str]:
        return _normalise_symbols(value)

    @model_validator(mode="after")
    def validate_default_interval(self) -> UserSettings:
        if self.default_interval not in INTERVALS:
            raise ValueError(
                f"default_interval must be one of {', '.join(INTERVALS)}, "
                f"got {self.default_interval}"
            )
        return self


__all__ = ["AutoPilotConfig", "BacktestConfig", "StrategyId", "UserSettings"]
