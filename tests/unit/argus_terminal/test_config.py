from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from argus_terminal.config import AutoPilotConfig, BacktestConfig, StrategyId, UserSettings
from argus_terminal.errors import ValidationError


class TestAutoPilotConfig:
    def test_defaults(self) -> None:
        config = AutoPilotConfig()

        assert config.enabled is False
        assert config.max_positions == 5
        assert config.position_size_percent == 10.0
        assert config.use_dynamic_sl_tp is True
        assert (config.stop_loss_percent, config.take_profit_percent) == (5.0, 10.0)
        assert config.min_confidence == 55.0
        assert config.scan_interval_seconds == 15.0
        assert config.candle_interval == "4h"
        assert config.symbols == []

    def test_symbols_are_normalised(self) -> None:
        config = AutoPilotConfig(symbols=" btcusdt, ETHUSDT ,btcusdt")

        assert config.symbols == ["BTCUSDT", "ETHUSDT"]

    def test_blank_symbol_rejected(self) -> None:
        with pytest.raises(PydanticValidationError, match="non-empty strings"):
            AutoPilotConfig(symbols=["BTCUSDT", " "])

    def test_unknown_interval_rejected(self) -> None:
        with pytest.raises(PydanticValidationError, match="candle_interval must be one of"):
            AutoPilotConfig(candle_interval="7m")

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            AutoPilotConfig(leverage=3)

    def test_updated_returns_validated_copy(self) -> None:
        original = AutoPilotConfig()

        changed = original.updated(max_positions=3, symbols=["solusdt"])

        assert changed.max_positions == 3
        assert changed.symbols == ["SOLUSDT"]
        assert original.max_positions == 5

    @pytest.mark.parametrize(
        ("changes", "field"),
        [
            ({"max_positions": 0}, "max_positions"),
            ({"position_size_percent": 150}, "position_size_percent"),
            ({"stop_loss_percent": 100}, "stop_loss_percent"),
            ({"scan_interval_ms": 10}, "scan_interval_ms"),
            ({"min_confidence": 101}, "min_confidence"),
        ],
    )
    def test_updated_raises_domain_error(self, changes: dict, field: str) -> None:
        with pytest.raises(ValidationError) as excinfo:
            AutoPilotConfig().updated(**changes)

        assert excinfo.value.context["field"] == field
        assert excinfo.value.error_code == "VALIDATION_ERROR"
        assert excinfo.value.recoverable is False

    def test_to_dict_round_trips(self) -> None:
        config = AutoPilotConfig(max_positions=2, symbols=["BTCUSDT"])

        assert AutoPilotConfig().updated(**config.to_dict()) == config

    def test_frozen(self) -> None:
        config = AutoPilotConfig()

        with pytest.raises(PydanticValidationError):
            config.max_positions = 9


class TestBacktestConfig:
    def test_defaults(self) -> None:
        config = BacktestConfig()

        assert config.initial_capital == 10_000.0
        assert config.position_size == 0.2
        assert config.stop_loss == 0.05
        assert config.take_profit == 0.15
        assert config.commission == 0.001

    @pytest.mark.parametrize(
        "changes",
        [
            {"position_size": 0},
            {"position_size": 1.5},
            {"stop_loss": 1.0},
            {"commission": -0.1},
            {"initial_capital": 0},
        ],
    )
    def test_bounds(self, changes: dict) -> None:
        with pytest.raises(PydanticValidationError):
            BacktestConfig(**changes)

    def test_strategy_accepts_wire_name(self) -> None:
        assert BacktestConfig(strategy="goldenCross").strategy is StrategyId.GOLDEN_CROSS


class TestUserSettings:
    def test_defaults(self) -> None:
        settings = UserSettings()

        assert settings.watchlist[0] == "BTCUSDT"
        assert settings.default_interval == "4h"
        assert settings.default_strategy is StrategyId.ARGUS_COMPOSITE

    def test_invalid_default_interval(self) -> None:
        with pytest.raises(ValidationError, match="default_interval must be one of"):
            UserSettings().updated(default_interval="2w")

    def test_watchlist_normalised(self) -> None:
        assert UserSettings(watchlist="sol,sol,btc").watchlist == ["SOL", "BTC"]
