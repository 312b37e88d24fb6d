"""
Regime Weight Tuning
====================
Re-weights each strategy's vote for the current market regime.

Rules are multiplicative and applied in order, so they can compound:
1. Trend following (MA, EMA, MACD): x1.5 when trending, x0.5 when ranging
2. Mean reversion (RSI, Bollinger): x1.5 when ranging, x0.5 against a
   strong trend
3. Volatile regime: MA crossover is damped a further x0.7

Strategy types outside these groups keep their base weight untouched.
"""

from typing import FrozenSet, Tuple
import logging

from ..config import StrategyType
from ..regime.regime_detector import MarketRegime, RegimeType

logger = logging.getLogger(__name__)

TREND_FOLLOWING: FrozenSet[StrategyType] = frozenset({
    StrategyType.MA_CROSSOVER,
    StrategyType.EMA_CROSSOVER,
    StrategyType.MACD_TREND,
})

MEAN_REVERSION: FrozenSet[StrategyType] = frozenset({
    StrategyType.RSI_REVERSION,
    StrategyType.BOLLINGER_BREAKOUT,
})

BOOST = 1.5
CUT = 0.5
VOLATILE_DAMPING = 0.7
STRONG_TREND_SCORE = 70.0

NO_ADJUSTMENT = "No adjustment"


class WeightTuner:
    """Regime-conditioned weight adjustment for strategy votes."""

    def __init__(self, strong_trend_score: float = STRONG_TREND_SCORE):
        self.strong_trend_score = strong_trend_score

    def adjust(self, base_weight: float, strategy_type: StrategyType,
               regime: MarketRegime) -> Tuple[float, str]:
        """
        Compute the regime-adjusted weight of one strategy.

        Returns:
            (adjusted weight rounded to 2 decimals, description of the rules applied)
        """
        weight = base_weight
        actions = []

        if strategy_type in TREND_FOLLOWING:
            if regime.type.is_trending:
                weight *= BOOST
                actions.append(f"Trend regime boost x{BOOST}")
            elif regime.type == RegimeType.RANGING:
                weight *= CUT
                actions.append(f"Ranging market cut x{CUT}")

        if strategy_type in MEAN_REVERSION:
            if regime.type == RegimeType.RANGING:
                weight *= BOOST
                actions.append(f"Ranging market boost x{BOOST}")
            if regime.trend_strength > self.strong_trend_score:
                weight *= CUT
                actions.append(f"Strong trend cut x{CUT}")

        if regime.type == RegimeType.VOLATILE and strategy_type == StrategyType.MA_CROSSOVER:
            weight *= VOLATILE_DAMPING
            actions.append(f"Volatility damping x{VOLATILE_DAMPING}")

        if not actions:
            return base_weight, NO_ADJUSTMENT

        adjusted = round(weight, 2)
        action = "; ".join(actions)
        logger.debug(f"{strategy_type.value}: weight {base_weight} -> {adjusted} ({action})")
        return adjusted, action


def adjust_weight(base_weight: float, strategy_type: StrategyType,
                  regime: MarketRegime) -> Tuple[float, str]:
    """Module-level shortcut for `WeightTuner().adjust`."""
    return WeightTuner().adjust(base_weight, strategy_type, regime)
