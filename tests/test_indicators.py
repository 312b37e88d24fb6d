"""
Indicator Testing Suite

Tests cover:
- SMA / EMA on constant and short series
- RSI bounds and degenerate cases
- Bollinger band ordering
- MACD history requirement
- Return and volatility statistics

Run with: pytest tests/test_indicators.py -v
"""

import numpy as np
import pytest

from quantmind.features.indicators import (
    TechnicalIndicators,
    StatisticalFeatures,
    BollingerBands,
)
from conftest import make_candles, geometric


# =============================================================================
# SECTION 1: Moving Averages
# =============================================================================

class TestMovingAverages:

    def test_sma_of_constant_series_is_constant(self):
        assert TechnicalIndicators.sma([42.0] * 10, 5) == pytest.approx(42.0)

    def test_sma_uses_last_period_values(self):
        assert TechnicalIndicators.sma([1, 2, 3, 4, 5], 2) == pytest.approx(4.5)

    def test_sma_returns_zero_when_history_short(self):
        assert TechnicalIndicators.sma([1.0, 2.0], 5) == 0.0

    def test_ema_series_length_matches_input(self):
        data = geometric(100.0, 0.01, 37)
        assert len(TechnicalIndicators.ema_series(data, 9)) == 37

    def test_ema_of_constant_series_is_constant_everywhere(self):
        series = TechnicalIndicators.ema_series([7.5] * 20, 5)
        assert np.allclose(series, 7.5)

    def test_ema_is_seeded_with_first_value(self):
        series = TechnicalIndicators.ema_series([10.0, 20.0, 30.0], 3)
        k = 2 / (3 + 1)
        assert series[0] == pytest.approx(10.0)
        assert series[1] == pytest.approx(20.0 * k + 10.0 * (1 - k))
        assert series[2] == pytest.approx(30.0 * k + series[1] * (1 - k))

    def test_ema_of_empty_input_is_empty(self):
        assert TechnicalIndicators.ema_series([], 5).size == 0


# =============================================================================
# SECTION 2: RSI
# =============================================================================

class TestRSI:

    def test_all_gains_is_100(self):
        candles = make_candles([100 + i for i in range(20)])
        assert TechnicalIndicators.rsi(candles, 14) == 100.0

    def test_flat_series_is_100(self):
        # no losses at all
        assert TechnicalIndicators.rsi(make_candles([50.0] * 20), 14) == 100.0

    def test_all_losses_is_0(self):
        candles = make_candles([100 - i for i in range(20)])
        assert TechnicalIndicators.rsi(candles, 14) == pytest.approx(0.0)

    def test_short_history_is_50(self):
        assert TechnicalIndicators.rsi(make_candles([1.0, 2.0, 3.0]), 14) == 50.0

    def test_plain_sums_over_last_period(self):
        # gains 1.0, losses 3.0 -> RS 1/3 -> RSI 25
        prices = [100.0, 100.5, 101.0] + [101.0 - 0.25 * i for i in range(1, 13)]
        assert TechnicalIndicators.rsi(make_candles(prices), 14) == pytest.approx(25.0)

    @pytest.mark.parametrize("seed", [1, 7, 42])
    def test_rsi_is_bounded(self, seed):
        rng = np.random.default_rng(seed)
        prices = list(100 + np.cumsum(rng.normal(0, 1, 80)))
        value = TechnicalIndicators.rsi(make_candles(prices), 14)
        assert 0.0 <= value <= 100.0


# =============================================================================
# SECTION 3: Bollinger Bands
# =============================================================================

class TestBollingerBands:

    def test_short_history_gives_empty_bands(self):
        bands = TechnicalIndicators.bollinger_bands(make_candles([1.0] * 5), 20, 2)
        assert bands == BollingerBands()
        assert bands.is_empty

    @pytest.mark.parametrize("mult", [0.0, 1.0, 2.0, 3.5])
    def test_bands_are_ordered(self, mult):
        rng = np.random.default_rng(3)
        prices = list(100 + np.cumsum(rng.normal(0, 1, 40)))
        bands = TechnicalIndicators.bollinger_bands(make_candles(prices), 20, mult)
        assert bands.upper >= bands.middle >= bands.lower

    def test_uses_population_std(self):
        prices = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]
        bands = TechnicalIndicators.bollinger_bands(make_candles(prices), 8, 1)
        # population std of this set is exactly 2
        assert bands.middle == pytest.approx(5.0)
        assert bands.upper == pytest.approx(7.0)
        assert bands.lower == pytest.approx(3.0)

    def test_percent_b(self):
        bands = BollingerBands(upper=110.0, middle=100.0, lower=90.0)
        assert bands.percent_b(90.0) == pytest.approx(0.0)
        assert bands.percent_b(110.0) == pytest.approx(1.0)
        assert bands.bandwidth == pytest.approx(0.2)


# =============================================================================
# SECTION 4: MACD
# =============================================================================

class TestMACD:

    def test_requires_slow_plus_signal_candles(self):
        candles = make_candles(geometric(100.0, 0.01, 34))
        assert TechnicalIndicators.macd(candles, 12, 26, 9).is_empty

    def test_rising_series_has_positive_macd(self):
        candles = make_candles(geometric(100.0, 0.01, 60))
        macd = TechnicalIndicators.macd(candles, 12, 26, 9)
        assert macd.macd_line > 0
        assert macd.histogram == pytest.approx(macd.macd_line - macd.signal_line)

    def test_constant_series_has_zero_lines(self):
        macd = TechnicalIndicators.macd(make_candles([100.0] * 50), 12, 26, 9)
        assert macd.macd_line == pytest.approx(0.0)
        assert macd.signal_line == pytest.approx(0.0)


# =============================================================================
# SECTION 5: Statistical Features
# =============================================================================

class TestStatisticalFeatures:

    def test_returns_window(self):
        rets = StatisticalFeatures.returns(geometric(100.0, 0.01, 50), 20)
        assert len(rets) == 20
        assert np.allclose(rets, 0.01)

    def test_returns_short_history(self):
        assert len(StatisticalFeatures.returns([100.0, 101.0, 102.0], 20)) == 2
        assert StatisticalFeatures.returns([100.0], 20).size == 0

    def test_volatility_of_constant_growth_is_zero(self):
        assert StatisticalFeatures.volatility(geometric(100.0, 0.02, 30)) == pytest.approx(0.0)

    def test_period_return(self):
        prices = [100.0, 100.0, 100.0, 100.0, 100.0, 101.0]
        assert StatisticalFeatures.period_return(prices, 5) == pytest.approx(0.01)

    def test_period_return_short_history_is_zero(self):
        assert StatisticalFeatures.period_return([100.0, 110.0], 5) == 0.0
