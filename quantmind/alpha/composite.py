"""
Composite Signal Aggregation
============================
Runs every enabled strategy for one asset, re-weights the votes for the
current regime and combines them into one decision.

    score = sum(vote * adjusted_weight) / sum(adjusted_weight)

BUY above +0.25, SELL below -0.25, NEUTRAL otherwise. The score is 0 when
no weight is left to vote.
"""

from typing import List, Mapping, Optional, Sequence
import logging

from ..config import StrategyConfigItem, StrategyParameters, RegimeConfig
from ..data.market_data import Candle
from ..regime.regime_detector import MarketRegimeDetector
from ..risk.positions import Position
from .signals import SignalType, StrategyInsight, CompositeAnalysisResult
from .strategies import run_strategy
from .weighting import WeightTuner

logger = logging.getLogger(__name__)

BUY_THRESHOLD = 0.25
SELL_THRESHOLD = -0.25


class CompositeEngine:
    """
    Weighted-vote ensemble over the configured strategies.

    Holds only immutable settings, so one instance can serve every asset.
    """

    def __init__(self,
                 params: Optional[StrategyParameters] = None,
                 regime_config: Optional[RegimeConfig] = None,
                 tuner: Optional[WeightTuner] = None):
        self.params = params or StrategyParameters()
        self.detector = MarketRegimeDetector(regime_config)
        self.tuner = tuner or WeightTuner(self.detector.config.strong_trend_threshold)

    def evaluate(self,
                 strategy_configs: Sequence[StrategyConfigItem],
                 candles: Sequence[Candle],
                 open_positions: Sequence[Position] = (),
                 market_data: Optional[Mapping[str, Sequence[Candle]]] = None) -> CompositeAnalysisResult:
        """
        Evaluate all enabled strategies and combine them.

        Args:
            strategy_configs: Strategy list; disabled items are skipped
            candles: Time-ordered candles of the active asset
            open_positions: Snapshot of open positions
            market_data: Candles of every tracked asset

        Returns:
            CompositeAnalysisResult with the ordered per-strategy insights
        """
        regime = self.detector.detect_regime(candles)
        symbol = candles[-1].symbol if candles else None
        if not candles:
            logger.warning("Composite evaluation without candles; all strategies NEUTRAL")

        insights: List[StrategyInsight] = []
        score = 0.0
        total_weight = 0.0

        for item in strategy_configs:
            if not item.enabled:
                continue

            try:
                outcome = run_strategy(item.type, candles, open_positions,
                                       market_data, self.params, regime)
                signal, metrics = outcome.signal, list(outcome.metrics)
            except Exception as e:
                logger.warning(f"Error in {item.type.value} strategy for {symbol}: {e}")
                signal, metrics = SignalType.NEUTRAL, []

            weight, action = self.tuner.adjust(item.weight, item.type, regime)
            vote = signal.vote

            score += vote * weight
            total_weight += weight

            insights.append(StrategyInsight(
                type=item.type,
                signal=signal,
                base_weight=item.weight,
                adjusted_weight=weight,
                raw_score=float(vote),
                metrics=metrics,
                tuning_action=action
            ))

        final_score = score / total_weight if total_weight > 0 else 0.0
        # Clamp to [-1, 1]
        final_score = max(-1.0, min(1.0, final_score))

        if final_score > BUY_THRESHOLD:
            decision = SignalType.BUY
        elif final_score < SELL_THRESHOLD:
            decision = SignalType.SELL
        else:
            decision = SignalType.NEUTRAL

        result = CompositeAnalysisResult(
            signal=decision,
            score=final_score,
            regime=regime,
            insights=insights
        )

        if insights:
            logger.info(f"{symbol} composite {decision.name} (score {final_score:+.2f}, "
                        f"{regime.type.value}): {result.summary()}")
        return result


def evaluate_composite(strategy_configs: Sequence[StrategyConfigItem],
                       candles: Sequence[Candle],
                       open_positions: Sequence[Position] = (),
                       market_data: Optional[Mapping[str, Sequence[Candle]]] = None,
                       params: Optional[StrategyParameters] = None,
                       regime_config: Optional[RegimeConfig] = None) -> CompositeAnalysisResult:
    """Full pipeline for one asset: regime, strategies, tuning, aggregation."""
    engine = CompositeEngine(params, regime_config)
    return engine.evaluate(strategy_configs, candles, open_positions, market_data)
