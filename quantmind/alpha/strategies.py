"""
Strategy Evaluators
===================
One pure evaluator per strategy type, registered in a dispatch table keyed
by `StrategyType`. All evaluators share the signature

    evaluator(ctx: StrategyContext) -> StrategyOutcome

and return NEUTRAL whenever their history requirements are not met.

Strategies:
- MA crossover: SMA golden/death cross gated by MA slope
- EMA crossover: plain EMA cross
- RSI reversion: oversold buy / overbought sell
- Bollinger breakout: close at or beyond a band
- MACD trend: MACD line crossing its signal line
- Martingale: position-aware scale-in with a basket profit target
- Arbitrage: laggard catch-up behind a reference asset (BTC by default)
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence
import logging

from ..config import StrategyType, StrategyParameters
from ..data.market_data import Candle, closes
from ..features.indicators import TechnicalIndicators, StatisticalFeatures
from ..regime.regime_detector import MarketRegime
from ..risk.positions import (
    Position,
    open_positions_for,
    average_entry_price,
    martingale_scale
)
from .signals import SignalType, StrategyOutcome

logger = logging.getLogger(__name__)

# MA crossover slope gate
MA_EXTRA_HISTORY = 5
MA_SLOPE_LOOKBACK = 3
MA_SLOPE_THRESHOLD = 0.00005     # fraction of price per bar

# Martingale entry is looser than pure RSI reversion
MARTINGALE_RSI_BUFFER = 10

# Correlation arbitrage
ARBITRAGE_MIN_HISTORY = 30
ARBITRAGE_VOL_WINDOW = 20
ARBITRAGE_LOOKBACK = 5
ARBITRAGE_MIN_MOVE = 0.0035      # 0.35% floor on the reference move
ARBITRAGE_VOL_MULTIPLIER = 1.5
ARBITRAGE_LIQUIDITY_RATIO = 0.4  # current volume vs trailing average
ARBITRAGE_LAG_RATIO = 0.5        # laggard participation ceiling


@dataclass(frozen=True)
class StrategyContext:
    """Read-only inputs for one evaluation of one asset."""
    candles: Sequence[Candle]
    params: StrategyParameters
    open_positions: Sequence[Position] = ()
    market_data: Mapping[str, Sequence[Candle]] = field(default_factory=dict)
    regime: Optional[MarketRegime] = None

    @property
    def symbol(self) -> Optional[str]:
        return self.candles[0].symbol if self.candles else None

    @property
    def closes(self) -> List[float]:
        return closes(self.candles)


Evaluator = Callable[[StrategyContext], StrategyOutcome]

STRATEGY_REGISTRY: Dict[StrategyType, Evaluator] = {}


def register_strategy(strategy_type: StrategyType):
    """Decorator adding an evaluator to the dispatch table."""
    def decorator(func: Evaluator) -> Evaluator:
        STRATEGY_REGISTRY[strategy_type] = func
        return func
    return decorator


def _r(value: float, digits: int = 4) -> float:
    return round(float(value), digits)


@register_strategy(StrategyType.MA_CROSSOVER)
def evaluate_ma_crossover(ctx: StrategyContext) -> StrategyOutcome:
    """SMA crossover that only fires when the averages are actually moving."""
    p = ctx.params
    prices = ctx.closes
    if len(prices) < p.slow_period + MA_EXTRA_HISTORY:
        return StrategyOutcome.neutral()

    sma = TechnicalIndicators.sma
    ma_fast = sma(prices, p.fast_period)
    ma_slow = sma(prices, p.slow_period)
    prev_fast = sma(prices[:-1], p.fast_period)
    prev_slow = sma(prices[:-1], p.slow_period)

    lookback = MA_SLOPE_LOOKBACK
    slope_fast = (ma_fast - sma(prices[:-lookback], p.fast_period)) / lookback
    slope_slow = (ma_slow - sma(prices[:-lookback], p.slow_period)) / lookback
    threshold = prices[-1] * MA_SLOPE_THRESHOLD

    metrics = (
        (f"MA{p.fast_period}", _r(ma_fast)),
        (f"MA{p.slow_period}", _r(ma_slow)),
        ("Fast slope", _r(slope_fast, 6)),
    )

    golden_cross = prev_fast <= prev_slow and ma_fast > ma_slow
    death_cross = prev_fast >= prev_slow and ma_fast < ma_slow

    if golden_cross and slope_fast > threshold and slope_slow > -threshold:
        return StrategyOutcome(SignalType.BUY, metrics)
    if death_cross and slope_fast < -threshold and slope_slow < threshold:
        return StrategyOutcome(SignalType.SELL, metrics)
    return StrategyOutcome(SignalType.NEUTRAL, metrics)


@register_strategy(StrategyType.EMA_CROSSOVER)
def evaluate_ema_crossover(ctx: StrategyContext) -> StrategyOutcome:
    p = ctx.params
    prices = ctx.closes
    if len(prices) < p.slow_period + 1:
        return StrategyOutcome.neutral()

    ema_fast = TechnicalIndicators.ema_series(prices, p.fast_period)
    ema_slow = TechnicalIndicators.ema_series(prices, p.slow_period)

    metrics = (
        (f"EMA{p.fast_period}", _r(ema_fast[-1])),
        (f"EMA{p.slow_period}", _r(ema_slow[-1])),
    )

    if ema_fast[-2] <= ema_slow[-2] and ema_fast[-1] > ema_slow[-1]:
        return StrategyOutcome(SignalType.BUY, metrics)
    if ema_fast[-2] >= ema_slow[-2] and ema_fast[-1] < ema_slow[-1]:
        return StrategyOutcome(SignalType.SELL, metrics)
    return StrategyOutcome(SignalType.NEUTRAL, metrics)


@register_strategy(StrategyType.RSI_REVERSION)
def evaluate_rsi_reversion(ctx: StrategyContext) -> StrategyOutcome:
    p = ctx.params
    if len(ctx.candles) < p.rsi_period + 1:
        return StrategyOutcome.neutral()

    rsi = TechnicalIndicators.rsi(ctx.candles, p.rsi_period)
    metrics = (
        (f"RSI{p.rsi_period}", _r(rsi, 2)),
        ("Band", f"{p.rsi_oversold:g}/{p.rsi_overbought:g}"),
    )

    if rsi < p.rsi_oversold:
        return StrategyOutcome(SignalType.BUY, metrics)
    if rsi > p.rsi_overbought:
        return StrategyOutcome(SignalType.SELL, metrics)
    return StrategyOutcome(SignalType.NEUTRAL, metrics)


@register_strategy(StrategyType.BOLLINGER_BREAKOUT)
def evaluate_bollinger_breakout(ctx: StrategyContext) -> StrategyOutcome:
    p = ctx.params
    bands = TechnicalIndicators.bollinger_bands(ctx.candles, p.bb_period, p.bb_std_dev)
    if bands.is_empty:
        return StrategyOutcome.neutral()

    price = ctx.candles[-1].close
    metrics = (
        ("Upper", _r(bands.upper)),
        ("Lower", _r(bands.lower)),
        ("%B", _r(bands.percent_b(price), 3)),
    )

    if price <= bands.lower:
        return StrategyOutcome(SignalType.BUY, metrics)
    if price >= bands.upper:
        return StrategyOutcome(SignalType.SELL, metrics)
    return StrategyOutcome(SignalType.NEUTRAL, metrics)


@register_strategy(StrategyType.MACD_TREND)
def evaluate_macd_trend(ctx: StrategyContext) -> StrategyOutcome:
    p = ctx.params
    macd = TechnicalIndicators.macd(ctx.candles, p.macd_fast, p.macd_slow, p.macd_signal)
    if macd.is_empty:
        return StrategyOutcome.neutral()

    metrics = (
        ("MACD", _r(macd.macd_line, 6)),
        ("Signal", _r(macd.signal_line, 6)),
        ("Hist", _r(macd.histogram, 6)),
    )

    if macd.prev_macd_line <= macd.prev_signal_line and macd.macd_line > macd.signal_line:
        return StrategyOutcome(SignalType.BUY, metrics)
    if macd.prev_macd_line >= macd.prev_signal_line and macd.macd_line < macd.signal_line:
        return StrategyOutcome(SignalType.SELL, metrics)
    return StrategyOutcome(SignalType.NEUTRAL, metrics)


@register_strategy(StrategyType.MARTINGALE)
def evaluate_martingale(ctx: StrategyContext) -> StrategyOutcome:
    """
    Scale into a losing position, close the whole stack at a profit.

    With nothing open, entry uses RSI < oversold + 10. With lots open, a
    drop of `martingale_price_drop`% below the most recent entry adds a lot
    (BUY); a gain of `martingale_profit_target`% over the quantity-weighted
    average entry closes everything (SELL).
    """
    p = ctx.params
    if not ctx.candles:
        return StrategyOutcome.neutral()

    lots = open_positions_for(ctx.open_positions, ctx.symbol)
    price = ctx.candles[-1].close

    if not lots:
        if len(ctx.candles) < p.rsi_period + 1:
            return StrategyOutcome.neutral(("Open lots", 0))
        rsi = TechnicalIndicators.rsi(ctx.candles, p.rsi_period)
        metrics = (("Open lots", 0), (f"RSI{p.rsi_period}", _r(rsi, 2)))
        if rsi < p.rsi_oversold + MARTINGALE_RSI_BUFFER:
            return StrategyOutcome(SignalType.BUY, metrics)
        return StrategyOutcome(SignalType.NEUTRAL, metrics)

    last_entry = lots[-1].entry_price
    change_from_last = (price - last_entry) / last_entry if last_entry > 0 else 0.0
    avg_entry = average_entry_price(lots)
    change_from_avg = (price - avg_entry) / avg_entry if avg_entry > 0 else 0.0

    metrics = (
        ("Open lots", len(lots)),
        ("Avg entry", _r(avg_entry)),
        ("From last %", _r(change_from_last * 100, 2)),
        ("Next lot x", _r(martingale_scale(p, len(lots)), 3)),
    )

    if change_from_last < -(p.martingale_price_drop / 100):
        return StrategyOutcome(SignalType.BUY, metrics)
    if change_from_avg > p.martingale_profit_target / 100:
        return StrategyOutcome(SignalType.SELL, metrics)
    return StrategyOutcome(SignalType.NEUTRAL, metrics)


@register_strategy(StrategyType.ARBITRAGE)
def evaluate_correlation_arbitrage(ctx: StrategyContext) -> StrategyOutcome:
    """
    Trade an asset that lags a significant move of the reference asset.

    The reference move must beat max(0.35%, 1.5 x its one-bar volatility
    scaled to the 5-bar lookback). Illiquid bars are skipped since their
    lag is not tradeable.
    """
    p = ctx.params
    reference = p.arbitrage_reference
    symbol = ctx.symbol

    ref_candles = ctx.market_data.get(reference)
    if not ref_candles or len(ref_candles) < ARBITRAGE_MIN_HISTORY or symbol is None:
        return StrategyOutcome.neutral()
    if symbol == reference:
        return StrategyOutcome.neutral()

    ref_prices = closes(ref_candles)
    ref_volatility = StatisticalFeatures.volatility(ref_prices, ARBITRAGE_VOL_WINDOW)

    volumes = [c.volume for c in ctx.candles[-ARBITRAGE_VOL_WINDOW:]]
    avg_volume = float(np.mean(volumes))
    current_volume = ctx.candles[-1].volume
    if current_volume < avg_volume * ARBITRAGE_LIQUIDITY_RATIO:
        return StrategyOutcome.neutral(("Vol ratio", _r(current_volume / avg_volume, 2)))

    prices = ctx.closes
    if len(prices) < ARBITRAGE_LOOKBACK + 1:
        return StrategyOutcome.neutral()

    ref_return = StatisticalFeatures.period_return(ref_prices, ARBITRAGE_LOOKBACK)
    asset_return = StatisticalFeatures.period_return(prices, ARBITRAGE_LOOKBACK)
    threshold = max(
        ARBITRAGE_MIN_MOVE,
        ARBITRAGE_VOL_MULTIPLIER * ref_volatility * np.sqrt(ARBITRAGE_LOOKBACK)
    )

    metrics = (
        (f"{reference} {ARBITRAGE_LOOKBACK}b %", _r(ref_return * 100, 3)),
        (f"Asset {ARBITRAGE_LOOKBACK}b %", _r(asset_return * 100, 3)),
        ("Threshold %", _r(threshold * 100, 3)),
    )

    if ref_return > threshold and asset_return < ref_return * ARBITRAGE_LAG_RATIO:
        return StrategyOutcome(SignalType.BUY, metrics)
    if ref_return < -threshold and asset_return > ref_return * ARBITRAGE_LAG_RATIO:
        return StrategyOutcome(SignalType.SELL, metrics)
    return StrategyOutcome(SignalType.NEUTRAL, metrics)


def run_strategy(strategy_type: StrategyType,
                 candles: Sequence[Candle],
                 open_positions: Sequence[Position] = (),
                 market_data: Optional[Mapping[str, Sequence[Candle]]] = None,
                 params: Optional[StrategyParameters] = None,
                 regime: Optional[MarketRegime] = None) -> StrategyOutcome:
    """Dispatch to the registered evaluator, returning signal and metrics."""
    evaluator = STRATEGY_REGISTRY.get(strategy_type)
    if evaluator is None:
        logger.warning(f"No evaluator registered for strategy {strategy_type!r}; returning NEUTRAL")
        return StrategyOutcome.neutral()
    if not candles:
        logger.warning(f"{strategy_type.value} evaluated without candles; returning NEUTRAL")
        return StrategyOutcome.neutral()

    ctx = StrategyContext(
        candles=candles,
        params=params or StrategyParameters(),
        open_positions=tuple(open_positions or ()),
        market_data=market_data or {},
        regime=regime
    )
    outcome = evaluator(ctx)
    logger.debug(f"{strategy_type.value} signal for {ctx.symbol}: {outcome.signal.name}")
    return outcome


def evaluate_strategy(strategy_type: StrategyType,
                      candles: Sequence[Candle],
                      open_positions: Sequence[Position] = (),
                      market_data: Optional[Mapping[str, Sequence[Candle]]] = None,
                      params: Optional[StrategyParameters] = None) -> SignalType:
    """
    Evaluate one strategy for the asset the candles belong to.

    Args:
        strategy_type: Which evaluator to run
        candles: Time-ordered candles of the active asset
        open_positions: Snapshot of open positions (Martingale reads these)
        market_data: Candles of every tracked asset (Arbitrage reads the reference)
        params: Strategy parameters; defaults if omitted

    Returns:
        BUY, SELL or NEUTRAL
    """
    return run_strategy(strategy_type, candles, open_positions, market_data, params).signal
