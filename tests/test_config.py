"""
Configuration Testing Suite

Run with: pytest tests/test_config.py -v
"""

import dataclasses
import json
import pytest

from quantmind.config import (
    EngineConfig,
    StrategyType,
    StrategyParameters,
    StrategyConfigItem,
    RegimeConfig,
    DEFAULT_CONFIG,
    default_strategies,
    parse_strategy_toggle,
)


class TestDefaults:

    def test_parameter_defaults(self):
        p = StrategyParameters()
        assert (p.fast_period, p.slow_period) == (7, 25)
        assert (p.rsi_period, p.rsi_overbought, p.rsi_oversold) == (14, 70.0, 30.0)
        assert (p.bb_period, p.bb_std_dev) == (20, 2.0)
        assert (p.macd_fast, p.macd_slow, p.macd_signal) == (12, 26, 9)
        assert (p.martingale_price_drop, p.martingale_profit_target,
                p.martingale_volume_multiplier) == (1.5, 2.5, 1.0)
        assert p.arbitrage_reference == "BTC"

    def test_only_ma_crossover_enabled_by_default(self):
        strategies = default_strategies()
        assert [s.type for s in strategies] == list(StrategyType)
        assert [s.type for s in strategies if s.enabled] == [StrategyType.MA_CROSSOVER]
        assert all(s.weight == 5.0 for s in strategies)

    def test_default_config_is_valid(self):
        DEFAULT_CONFIG.validate()
        assert DEFAULT_CONFIG.window_size == 400
        assert DEFAULT_CONFIG.assets == ["BTC", "ETH", "BNB", "SOL", "DOGE"]

    def test_parameters_are_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            StrategyParameters().fast_period = 3


class TestStrategyToggles:

    def test_set_strategy_enables_and_reweights(self, config):
        config.set_strategy(StrategyType.RSI_REVERSION, enabled=True, weight=8)
        item = config.get_strategy(StrategyType.RSI_REVERSION)
        assert item.enabled and item.weight == 8.0
        assert len(config.enabled_strategies) == 2

    def test_set_strategy_keeps_weight_when_omitted(self, config):
        config.set_strategy(StrategyType.MA_CROSSOVER, enabled=False)
        item = config.get_strategy(StrategyType.MA_CROSSOVER)
        assert not item.enabled and item.weight == 5.0

    def test_snapshot_is_isolated(self, config):
        snapshot = config.snapshot()
        config.set_strategy(StrategyType.MACD_TREND, enabled=True)
        assert snapshot.get_strategy(StrategyType.MACD_TREND).enabled is False

    @pytest.mark.parametrize("text,expected", [
        ("RSI_REVERSION", (StrategyType.RSI_REVERSION, None)),
        ("arbitrage:7", (StrategyType.ARBITRAGE, 7.0)),
        (" macd_trend : 2.5", (StrategyType.MACD_TREND, 2.5)),
    ])
    def test_parse_toggle(self, text, expected):
        assert parse_strategy_toggle(text) == expected

    def test_parse_unknown_toggle(self):
        with pytest.raises(ValueError, match="Unknown strategy type"):
            parse_strategy_toggle("GRID:3")


class TestValidation:

    @pytest.mark.parametrize("params", [
        StrategyParameters(fast_period=30, slow_period=25),
        StrategyParameters(rsi_oversold=80.0),
        StrategyParameters(macd_fast=30),
        StrategyParameters(bb_period=0),
        StrategyParameters(bb_std_dev=-1.0),
        StrategyParameters(martingale_volume_multiplier=0.0),
        StrategyParameters(arbitrage_reference=""),
    ])
    def test_invalid_parameters(self, params):
        with pytest.raises(ValueError, match="Invalid engine configuration"):
            EngineConfig(params=params).validate()

    @pytest.mark.parametrize("weight", [0.5, 11.0])
    def test_weight_out_of_range(self, config, weight):
        config.set_strategy(StrategyType.MA_CROSSOVER, weight=weight)
        with pytest.raises(ValueError, match="weight"):
            config.validate()

    def test_duplicate_strategy(self, config):
        config.strategies.append(StrategyConfigItem(StrategyType.MA_CROSSOVER))
        with pytest.raises(ValueError, match="duplicate"):
            config.validate()

    def test_window_smaller_than_regime_history(self):
        with pytest.raises(ValueError, match="window_size"):
            EngineConfig(window_size=10).validate()


class TestPersistence:

    def test_save_and_load(self, tmp_path, config):
        config.set_strategy(StrategyType.ARBITRAGE, enabled=True, weight=9)
        config.params = StrategyParameters(fast_period=5, arbitrage_reference="ETH")
        config.regime = RegimeConfig(volatile_threshold=50.0)
        path = tmp_path / "nested" / "engine.json"

        config.save(str(path))
        loaded = EngineConfig.load(str(path))

        assert loaded.params == config.params
        assert loaded.regime == config.regime
        assert loaded.strategies == config.strategies
        assert loaded.to_dict() == config.to_dict()

    def test_json_uses_type_names(self, tmp_path, config):
        path = tmp_path / "engine.json"
        config.save(str(path))
        data = json.loads(path.read_text())
        assert data['strategies'][0] == {'type': 'MA_CROSSOVER', 'enabled': True, 'weight': 5.0}

    def test_partial_dict_keeps_defaults(self):
        config = EngineConfig.from_dict({'window_size': 200})
        assert config.window_size == 200
        assert config.params == StrategyParameters()

    def test_unknown_type_in_file(self):
        with pytest.raises(ValueError, match="Unknown strategy type"):
            EngineConfig.from_dict({'strategies': [{'type': 'GRID'}]})
