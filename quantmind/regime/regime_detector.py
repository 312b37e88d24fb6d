"""
Market Regime Detection
=======================
Classifies the current market state of one asset so strategy weights can
be re-tuned for it.

Two scores drive the decision:
- volatility: std of the last 20 returns, scaled by sqrt(20), mapped to 0-100
- trend strength: gap between a short (7) and long (25) SMA as a percentage
  of the long SMA, mapped to 0-100

Precedence is volatility first, then trend, else ranging.
"""

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence
import logging

from ..config import RegimeConfig
from ..data.market_data import Candle, closes
from ..features.indicators import TechnicalIndicators, StatisticalFeatures

logger = logging.getLogger(__name__)


class RegimeType(Enum):
    """Market regime states."""
    TRENDING_UP = "TRENDING_UP"
    TRENDING_DOWN = "TRENDING_DOWN"
    RANGING = "RANGING"
    VOLATILE = "VOLATILE"

    @property
    def is_trending(self) -> bool:
        return self in (RegimeType.TRENDING_UP, RegimeType.TRENDING_DOWN)


REGIME_DESCRIPTIONS: Dict[RegimeType, str] = {
    RegimeType.TRENDING_UP: "Strong uptrend - trend-following strategies favoured",
    RegimeType.TRENDING_DOWN: "Strong downtrend - trend-following strategies favoured",
    RegimeType.RANGING: "Range-bound market - mean reversion strategies work best",
    RegimeType.VOLATILE: "High volatility - lagging indicators are unreliable",
}

INSUFFICIENT_DATA_DESCRIPTION = "Insufficient data - collecting candles"


@dataclass(frozen=True)
class MarketRegime:
    """Regime classification for one asset at one point in time."""
    type: RegimeType
    volatility: float       # 0 - 100
    trend_strength: float   # 0 - 100
    description: str

    def to_dict(self) -> dict:
        return {
            'type': self.type.value,
            'volatility': round(self.volatility, 2),
            'trend_strength': round(self.trend_strength, 2),
            'description': self.description
        }


class MarketRegimeDetector:
    """
    Rule-based regime detection.

    Holds only its tuning constants; every call recomputes from scratch.
    """

    def __init__(self, config: Optional[RegimeConfig] = None):
        self.config = config or RegimeConfig()

    def detect_regime(self, candles: Sequence[Candle]) -> MarketRegime:
        """Detect the current market regime from one asset's candles."""
        return self.classify(closes(candles))

    def classify(self, prices: Sequence[float]) -> MarketRegime:
        """Detect the current market regime from closing prices."""
        cfg = self.config
        if len(prices) < cfg.min_history:
            return MarketRegime(
                type=RegimeType.RANGING,
                volatility=0.0,
                trend_strength=0.0,
                description=INSUFFICIENT_DATA_DESCRIPTION
            )

        volatility = self._volatility_score(prices)
        short_ma = TechnicalIndicators.sma(prices, cfg.short_period)
        long_ma = TechnicalIndicators.sma(prices, cfg.long_period)
        trend = self._trend_score(short_ma, long_ma)

        if volatility > cfg.volatile_threshold:
            regime = RegimeType.VOLATILE
        elif trend > cfg.trending_threshold:
            regime = RegimeType.TRENDING_UP if short_ma > long_ma else RegimeType.TRENDING_DOWN
        else:
            regime = RegimeType.RANGING

        logger.debug(f"Regime {regime.value}: volatility={volatility:.1f} trend={trend:.1f}")

        return MarketRegime(
            type=regime,
            volatility=volatility,
            trend_strength=trend,
            description=REGIME_DESCRIPTIONS[regime]
        )

    def _volatility_score(self, prices: Sequence[float]) -> float:
        cfg = self.config
        vol = StatisticalFeatures.volatility(prices, cfg.return_window)
        scaled = vol * np.sqrt(cfg.return_window) * cfg.volatility_scale
        return float(min(scaled, cfg.score_cap))

    def _trend_score(self, short_ma: float, long_ma: float) -> float:
        cfg = self.config
        if long_ma == 0:
            return 0.0
        gap_pct = abs(short_ma - long_ma) / long_ma * 100
        return float(min(gap_pct * cfg.trend_scale, cfg.score_cap))
