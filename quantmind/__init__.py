"""
QuantMind Composite Signal Engine
=================================

Signal engine for a crypto paper-trading dashboard. Every arriving candle
of an asset is turned into a single BUY / SELL / NEUTRAL decision with a
per-strategy breakdown.

STRATEGIES:
- MA crossover (slope gated), EMA crossover, MACD trend
- RSI reversion, Bollinger breakout
- Martingale scale-in (position-aware)
- Correlation arbitrage against a reference asset (cross-asset)

PIPELINE:
    ┌─────────┐
    │ CANDLES │  ← bounded per-asset history (upsert on timestamp)
    └────┬────┘
         ↓
    ┌──────────────┐
    │ INDICATORS   │  ← SMA, EMA, RSI, Bollinger, MACD
    └────┬─────────┘
         ↓
    ┌──────────────┐
    │ REGIME       │  ← trending up/down, ranging, volatile
    └────┬─────────┘
         ↓
    ┌──────────────┐
    │ STRATEGIES   │  ← one vote per enabled strategy
    └────┬─────────┘
         ↓
    ┌──────────────┐
    │ AUTO-TUNING  │  ← regime-adjusted weights
    └────┬─────────┘
         ↓
    ┌──────────────┐
    │ COMPOSITE    │  ← weighted vote, thresholded at +/-0.25
    └──────────────┘

USAGE:
    # Command line
    python -m quantmind.orchestrator --candles BTC=btc.csv --candles ETH=eth.csv \\
        --symbol ETH --enable ARBITRAGE:8 --enable RSI_REVERSION

    # Programmatic usage
    from quantmind import SignalEngine, EngineConfig, StrategyType

    config = EngineConfig()
    config.set_strategy(StrategyType.RSI_REVERSION, enabled=True, weight=7)

    engine = SignalEngine(config)
    result = engine.on_candle(candle, positions)
    print(result.signal, result.score, result.summary())

MODULES:
    - data: Candle records and bounded per-asset buffers
    - features: Technical indicators and return statistics
    - regime: Market regime classification
    - alpha: Strategy evaluators, weight tuning, composite aggregation
    - risk: Read-only position snapshots and reverse-signal exits
"""

from .config import (
    EngineConfig,
    StrategyType,
    StrategyParameters,
    StrategyConfigItem,
    RegimeConfig,
    DEFAULT_CONFIG
)
from .orchestrator import SignalEngine, main
from .data import Candle, CandleBuffer
from .features import TechnicalIndicators, StatisticalFeatures
from .regime import MarketRegimeDetector, MarketRegime, RegimeType
from .alpha import (
    SignalType,
    StrategyInsight,
    CompositeAnalysisResult,
    CompositeEngine,
    WeightTuner,
    evaluate_strategy,
    evaluate_composite
)
from .risk import Position, PositionSide, ExitDecision, check_exit

__version__ = "1.0.0"
__all__ = [
    # Main
    'SignalEngine',
    'main',

    # Config
    'EngineConfig',
    'StrategyType',
    'StrategyParameters',
    'StrategyConfigItem',
    'RegimeConfig',
    'DEFAULT_CONFIG',

    # Data
    'Candle',
    'CandleBuffer',

    # Features
    'TechnicalIndicators',
    'StatisticalFeatures',

    # Regime
    'MarketRegimeDetector',
    'MarketRegime',
    'RegimeType',

    # Alpha
    'SignalType',
    'StrategyInsight',
    'CompositeAnalysisResult',
    'CompositeEngine',
    'WeightTuner',
    'evaluate_strategy',
    'evaluate_composite',

    # Risk
    'Position',
    'PositionSide',
    'ExitDecision',
    'check_exit'
]
