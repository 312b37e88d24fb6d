"""
Signal Types
============
Result records produced by the strategy evaluators and the composite
aggregator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple, Union

from ..config import StrategyType
from ..regime.regime_detector import MarketRegime

MetricValue = Union[float, int, str]


class SignalType(Enum):
    """Trading signal types. The value is the strategy's vote."""
    BUY = 1
    NEUTRAL = 0
    SELL = -1

    @property
    def vote(self) -> int:
        return self.value


@dataclass(frozen=True)
class StrategyOutcome:
    """What a single evaluator returns: its signal plus display metrics."""
    signal: SignalType
    metrics: Tuple[Tuple[str, MetricValue], ...] = ()

    @classmethod
    def neutral(cls, *metrics: Tuple[str, MetricValue]) -> 'StrategyOutcome':
        return cls(SignalType.NEUTRAL, tuple(metrics))


@dataclass(frozen=True)
class StrategyInsight:
    """Per-strategy breakdown entry of a composite evaluation."""
    type: StrategyType
    signal: SignalType
    base_weight: float
    adjusted_weight: float
    raw_score: float
    metrics: List[Tuple[str, MetricValue]] = field(default_factory=list)
    tuning_action: str = ""

    @property
    def contribution(self) -> float:
        return self.raw_score * self.adjusted_weight

    def to_dict(self) -> dict:
        return {
            'type': self.type.value,
            'signal': self.signal.name,
            'base_weight': self.base_weight,
            'adjusted_weight': self.adjusted_weight,
            'raw_score': self.raw_score,
            'metrics': [{'label': label, 'value': value} for label, value in self.metrics],
            'tuning_action': self.tuning_action
        }


@dataclass(frozen=True)
class CompositeAnalysisResult:
    """Aggregated decision across all enabled strategies."""
    signal: SignalType
    score: float  # -1 to 1
    regime: MarketRegime
    insights: List[StrategyInsight] = field(default_factory=list)

    def summary(self) -> str:
        """Compact breakdown, e.g. 'MA:BUY, RSI:NEUTRAL'."""
        return ", ".join(
            f"{insight.type.value.split('_')[0]}:{insight.signal.name}"
            for insight in self.insights
        )

    def to_dict(self) -> dict:
        return {
            'signal': self.signal.name,
            'score': self.score,
            'regime': self.regime.to_dict(),
            'insights': [insight.to_dict() for insight in self.insights]
        }
