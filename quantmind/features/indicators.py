"""
Feature Engineering Module
==========================
Technical indicators over a rolling candle window.

Every indicator is a pure function of its inputs and degrades to a fixed
"insufficient data" value on short history instead of raising:
0 for moving averages, 50 for RSI, zeroed Bollinger bands and MACD lines.
"""

import pandas as pd
import numpy as np
from dataclasses import dataclass
from typing import Sequence
import logging

from ..data.market_data import Candle, closes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BollingerBands:
    """Bollinger band levels (all zero when history is too short)."""
    upper: float = 0.0
    middle: float = 0.0
    lower: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.upper == 0 and self.middle == 0 and self.lower == 0

    @property
    def bandwidth(self) -> float:
        return (self.upper - self.lower) / self.middle if self.middle else 0.0

    def percent_b(self, price: float) -> float:
        """Where price sits relative to the bands (0 = lower, 1 = upper)."""
        width = self.upper - self.lower
        return (price - self.lower) / width if width else 0.5


@dataclass(frozen=True)
class MACDResult:
    """Latest and previous MACD / signal line values."""
    macd_line: float = 0.0
    signal_line: float = 0.0
    prev_macd_line: float = 0.0
    prev_signal_line: float = 0.0

    @property
    def histogram(self) -> float:
        return self.macd_line - self.signal_line

    @property
    def is_empty(self) -> bool:
        return self.macd_line == 0 and self.signal_line == 0


class TechnicalIndicators:
    """Technical analysis indicators."""

    @staticmethod
    def sma(data: Sequence[float], period: int) -> float:
        """Simple Moving Average of the last `period` values (0 if too short)."""
        values = np.asarray(data, dtype=float)
        if period < 1 or values.size < period:
            return 0.0
        return float(values[-period:].mean())

    @staticmethod
    def ema_series(data: Sequence[float], period: int) -> np.ndarray:
        """
        Exponential Moving Average, one value per input.

        Seeded with the first raw value rather than an SMA of the first
        `period` values, so early values lean on data[0]. The recurrence is
        ema[i] = data[i] * k + ema[i-1] * (1 - k) with k = 2 / (period + 1),
        which is exactly pandas' ewm(span=period, adjust=False).
        """
        values = np.asarray(data, dtype=float)
        if values.size == 0:
            return np.array([], dtype=float)
        return pd.Series(values).ewm(span=max(period, 1), adjust=False).mean().to_numpy()

    @staticmethod
    def std_dev(data: Sequence[float]) -> float:
        """Population standard deviation (divides by n)."""
        values = np.asarray(data, dtype=float)
        if values.size == 0:
            return 0.0
        return float(np.std(values))

    @staticmethod
    def rsi(candles: Sequence[Candle], period: int = 14) -> float:
        """
        Relative Strength Index over the last `period` close-to-close moves.

        Plain sums of gains and losses, no Wilder smoothing.
        """
        prices = np.asarray(closes(candles), dtype=float)
        if period < 1 or prices.size < period + 1:
            return 50.0

        deltas = np.diff(prices[-(period + 1):])
        gains = deltas[deltas > 0].sum()
        losses = -deltas[deltas < 0].sum()

        if losses == 0:
            return 100.0
        rs = gains / losses
        return float(100 - (100 / (1 + rs)))

    @staticmethod
    def bollinger_bands(candles: Sequence[Candle], period: int = 20,
                        std_dev_mult: float = 2.0) -> BollingerBands:
        """Bollinger Bands on closing prices."""
        prices = closes(candles)
        if period < 1 or len(prices) < period:
            return BollingerBands()

        middle = TechnicalIndicators.sma(prices, period)
        std = TechnicalIndicators.std_dev(prices[-period:])

        return BollingerBands(
            upper=middle + std * std_dev_mult,
            middle=middle,
            lower=middle - std * std_dev_mult
        )

    @staticmethod
    def macd(candles: Sequence[Candle], fast: int = 12, slow: int = 26,
             signal: int = 9) -> MACDResult:
        """Moving Average Convergence Divergence (needs slow + signal candles)."""
        prices = closes(candles)
        if len(prices) < slow + signal:
            return MACDResult()

        macd_series = (TechnicalIndicators.ema_series(prices, fast)
                       - TechnicalIndicators.ema_series(prices, slow))
        signal_series = TechnicalIndicators.ema_series(macd_series, signal)

        return MACDResult(
            macd_line=float(macd_series[-1]),
            signal_line=float(signal_series[-1]),
            prev_macd_line=float(macd_series[-2]),
            prev_signal_line=float(signal_series[-2])
        )


class StatisticalFeatures:
    """Return and volatility features."""

    @staticmethod
    def returns(prices: Sequence[float], window: int = 20) -> np.ndarray:
        """Last `window` one-period percentage returns (fewer if history is short)."""
        values = np.asarray(prices, dtype=float)
        if values.size < 2:
            return np.array([], dtype=float)
        start = max(1, values.size - window)
        return (values[start:] - values[start - 1:-1]) / values[start - 1:-1]

    @staticmethod
    def volatility(prices: Sequence[float], window: int = 20) -> float:
        """One-period volatility: population std of the last `window` returns."""
        rets = StatisticalFeatures.returns(prices, window)
        return TechnicalIndicators.std_dev(rets)

    @staticmethod
    def period_return(prices: Sequence[float], lookback: int) -> float:
        """Return over the last `lookback` bars (0 if history is too short)."""
        values = np.asarray(prices, dtype=float)
        if values.size < lookback + 1 or values[-1 - lookback] == 0:
            return 0.0
        return float((values[-1] - values[-1 - lookback]) / values[-1 - lookback])
