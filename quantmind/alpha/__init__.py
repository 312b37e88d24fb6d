"""
Strategy Signals Module
=======================
"""
from .signals import (
    SignalType,
    StrategyOutcome,
    StrategyInsight,
    CompositeAnalysisResult
)
from .strategies import (
    StrategyContext,
    STRATEGY_REGISTRY,
    register_strategy,
    run_strategy,
    evaluate_strategy
)
from .weighting import WeightTuner, adjust_weight
from .composite import CompositeEngine, evaluate_composite

__all__ = [
    'SignalType',
    'StrategyOutcome',
    'StrategyInsight',
    'CompositeAnalysisResult',
    'StrategyContext',
    'STRATEGY_REGISTRY',
    'register_strategy',
    'run_strategy',
    'evaluate_strategy',
    'WeightTuner',
    'adjust_weight',
    'CompositeEngine',
    'evaluate_composite'
]
