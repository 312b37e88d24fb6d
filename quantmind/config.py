"""
Configuration Management
========================
Configuration records for the signal engine.

One `EngineConfig` snapshot is handed to every evaluation. The records the
evaluators read (`StrategyParameters`, `StrategyConfigItem`, `RegimeConfig`)
are frozen so a snapshot cannot change underneath a running evaluation.
"""

from dataclasses import dataclass, field, asdict, replace
from typing import List, Dict, Optional, Tuple
from enum import Enum
import json
import os


class StrategyType(Enum):
    """Strategy families the engine can evaluate."""
    MA_CROSSOVER = "MA_CROSSOVER"
    RSI_REVERSION = "RSI_REVERSION"
    BOLLINGER_BREAKOUT = "BOLLINGER_BREAKOUT"
    MACD_TREND = "MACD_TREND"
    EMA_CROSSOVER = "EMA_CROSSOVER"
    MARTINGALE = "MARTINGALE"          # position-aware scale-in (DCA)
    ARBITRAGE = "ARBITRAGE"            # cross-asset correlation catch-up


MIN_STRATEGY_WEIGHT = 1.0
MAX_STRATEGY_WEIGHT = 10.0


@dataclass(frozen=True)
class StrategyParameters:
    """Periods and thresholds shared by all strategy evaluators."""
    # MA & EMA crossover
    fast_period: int = 7
    slow_period: int = 25

    # RSI
    rsi_period: int = 14
    rsi_overbought: float = 70.0
    rsi_oversold: float = 30.0

    # Bollinger
    bb_period: int = 20
    bb_std_dev: float = 2.0

    # MACD
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9

    # Martingale (percentages)
    martingale_price_drop: float = 1.5       # add a lot after a 1.5% drop
    martingale_profit_target: float = 2.5    # close all at 2.5% over average entry
    martingale_volume_multiplier: float = 1.0

    # Correlation arbitrage market leader
    arbitrage_reference: str = "BTC"


@dataclass(frozen=True)
class StrategyConfigItem:
    """One entry of the active strategy mix."""
    type: StrategyType
    enabled: bool = True
    weight: float = 5.0  # 1 - 10

    def to_dict(self) -> dict:
        return {'type': self.type.value, 'enabled': self.enabled, 'weight': self.weight}

    @classmethod
    def from_dict(cls, data: dict) -> 'StrategyConfigItem':
        try:
            strategy_type = StrategyType(data['type'])
        except ValueError:
            raise ValueError(f"Unknown strategy type: {data['type']!r}")
        return cls(
            type=strategy_type,
            enabled=bool(data.get('enabled', True)),
            weight=float(data.get('weight', 5.0))
        )


@dataclass(frozen=True)
class RegimeConfig:
    """
    Tuning constants for the market regime classifier.

    The scale factors were picked empirically for 1m crypto candles; they
    are not derived from anything.
    """
    min_history: int = 30
    return_window: int = 20
    short_period: int = 7
    long_period: int = 25

    # volatility score = std(returns) * sqrt(window) * volatility_scale
    volatility_scale: float = 5000.0
    # trend score = |short - long| / long * 100 * trend_scale
    trend_scale: float = 100.0
    score_cap: float = 100.0

    volatile_threshold: float = 60.0
    trending_threshold: float = 20.0
    strong_trend_threshold: float = 70.0


def default_strategies() -> List[StrategyConfigItem]:
    """One item per strategy type, weight 5, only MA crossover enabled."""
    return [
        StrategyConfigItem(
            type=strategy_type,
            enabled=strategy_type == StrategyType.MA_CROSSOVER,
            weight=5.0
        )
        for strategy_type in StrategyType
    ]


@dataclass
class EngineConfig:
    """Master engine configuration."""
    params: StrategyParameters = field(default_factory=StrategyParameters)
    strategies: List[StrategyConfigItem] = field(default_factory=default_strategies)
    regime: RegimeConfig = field(default_factory=RegimeConfig)

    # Candle history cap per asset
    window_size: int = 400

    assets: List[str] = field(default_factory=lambda: ["BTC", "ETH", "BNB", "SOL", "DOGE"])

    @property
    def enabled_strategies(self) -> List[StrategyConfigItem]:
        return [s for s in self.strategies if s.enabled]

    def get_strategy(self, strategy_type: StrategyType) -> Optional[StrategyConfigItem]:
        for item in self.strategies:
            if item.type == strategy_type:
                return item
        return None

    def set_strategy(self, strategy_type: StrategyType, enabled: bool = True,
                     weight: Optional[float] = None):
        """Enable/disable a strategy and optionally change its base weight."""
        updated = []
        found = False
        for item in self.strategies:
            if item.type == strategy_type:
                item = replace(item, enabled=enabled,
                               weight=item.weight if weight is None else float(weight))
                found = True
            updated.append(item)
        if not found:
            updated.append(StrategyConfigItem(
                type=strategy_type, enabled=enabled,
                weight=5.0 if weight is None else float(weight)
            ))
        self.strategies = updated

    def snapshot(self) -> 'EngineConfig':
        """Copy handed to an evaluation; later edits to self do not leak into it."""
        return EngineConfig(
            params=self.params,
            strategies=list(self.strategies),
            regime=self.regime,
            window_size=self.window_size,
            assets=list(self.assets)
        )

    def validate(self):
        """
        Raise ValueError on configuration bugs.

        Evaluation tolerates bad input by degrading to NEUTRAL, so this is
        where a broken configuration should be caught.
        """
        errors = self._collect_errors()
        if errors:
            raise ValueError("Invalid engine configuration: " + "; ".join(errors))

    def _collect_errors(self) -> List[str]:
        errors = []
        p = self.params

        seen = set()
        for item in self.strategies:
            if not isinstance(item.type, StrategyType):
                errors.append(f"unknown strategy type {item.type!r}")
                continue
            if item.type in seen:
                errors.append(f"duplicate strategy {item.type.value}")
            seen.add(item.type)
            if not MIN_STRATEGY_WEIGHT <= item.weight <= MAX_STRATEGY_WEIGHT:
                errors.append(
                    f"{item.type.value} weight {item.weight} outside "
                    f"[{MIN_STRATEGY_WEIGHT:g}, {MAX_STRATEGY_WEIGHT:g}]"
                )

        periods: Dict[str, int] = {
            'fast_period': p.fast_period,
            'slow_period': p.slow_period,
            'rsi_period': p.rsi_period,
            'bb_period': p.bb_period,
            'macd_fast': p.macd_fast,
            'macd_slow': p.macd_slow,
            'macd_signal': p.macd_signal,
        }
        for name, value in periods.items():
            if value < 1:
                errors.append(f"{name} must be positive, got {value}")

        if p.fast_period >= p.slow_period:
            errors.append("fast_period must be smaller than slow_period")
        if p.macd_fast >= p.macd_slow:
            errors.append("macd_fast must be smaller than macd_slow")
        if p.rsi_oversold >= p.rsi_overbought:
            errors.append("rsi_oversold must be below rsi_overbought")
        if p.bb_std_dev < 0:
            errors.append("bb_std_dev must be non-negative")
        if p.martingale_price_drop < 0 or p.martingale_profit_target < 0:
            errors.append("martingale percentages must be non-negative")
        if p.martingale_volume_multiplier <= 0:
            errors.append("martingale_volume_multiplier must be positive")
        if not p.arbitrage_reference:
            errors.append("arbitrage_reference must name an asset")

        if self.window_size < self.regime.min_history:
            errors.append(
                f"window_size {self.window_size} smaller than regime history "
                f"{self.regime.min_history}"
            )
        return errors

    def save(self, filepath: str):
        """Save configuration to JSON file."""
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: str) -> 'EngineConfig':
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return {
            'params': asdict(self.params),
            'strategies': [s.to_dict() for s in self.strategies],
            'regime': asdict(self.regime),
            'window_size': self.window_size,
            'assets': list(self.assets),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'EngineConfig':
        config = cls()
        if 'params' in data:
            config.params = StrategyParameters(**data['params'])
        if 'strategies' in data:
            config.strategies = [StrategyConfigItem.from_dict(s) for s in data['strategies']]
        if 'regime' in data:
            config.regime = RegimeConfig(**data['regime'])
        config.window_size = int(data.get('window_size', config.window_size))
        config.assets = list(data.get('assets', config.assets))
        return config


def parse_strategy_toggle(text: str) -> Tuple[StrategyType, Optional[float]]:
    """Parse 'RSI_REVERSION' or 'RSI_REVERSION:7' into (type, weight)."""
    name, _, weight = text.partition(':')
    try:
        strategy_type = StrategyType(name.strip().upper())
    except ValueError:
        raise ValueError(f"Unknown strategy type: {name!r}")
    return strategy_type, float(weight) if weight else None


# Default configuration instance
DEFAULT_CONFIG = EngineConfig()
