"""
Signal Engine Orchestrator
==========================
Wires the candle buffers, the regime detector, the strategy evaluators and
the composite aggregator together.

Flow per arriving candle:
1. Upsert the candle into its asset's buffer
2. Snapshot every buffer (the arbitrage strategy reads the reference asset)
3. Run the composite evaluation for that asset
4. Hand the result (and an exit check) back to the caller

The engine never writes to positions; the caller owns opening and closing.
"""

from typing import Dict, List, Optional, Sequence, Tuple
import json
import logging

from .config import EngineConfig, parse_strategy_toggle
from .data.market_data import Candle, CandleBuffer, load_candles_csv
from .alpha.composite import CompositeEngine
from .alpha.signals import CompositeAnalysisResult
from .risk.positions import Position, ExitDecision, check_exit

logger = logging.getLogger(__name__)


class SignalEngine:
    """
    Per-asset signal engine.

    Holds one bounded candle buffer per asset and an immutable configuration
    snapshot that is swapped (never edited) between evaluations.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        config = config or EngineConfig()
        config.validate()
        self.config = config.snapshot()
        self.buffers: Dict[str, CandleBuffer] = {}
        self._composite = self._build_composite()

        logger.info(f"Signal engine initialized with {len(self.config.enabled_strategies)} "
                    f"enabled strategies, window {self.config.window_size}")

    def _build_composite(self) -> CompositeEngine:
        return CompositeEngine(self.config.params, self.config.regime)

    def buffer(self, symbol: str) -> CandleBuffer:
        """Candle buffer for an asset, created on first use."""
        if symbol not in self.buffers:
            self.buffers[symbol] = CandleBuffer(symbol, self.config.window_size)
            logger.info(f"Tracking {symbol} (window {self.config.window_size})")
        return self.buffers[symbol]

    def load_history(self, symbol: str, candles: Sequence[Candle]) -> int:
        """Seed an asset's buffer with historical candles."""
        accepted = self.buffer(symbol).extend(candles)
        logger.info(f"Loaded {accepted} historical candles for {symbol}")
        return accepted

    def market_snapshot(self) -> Dict[str, Tuple[Candle, ...]]:
        """Immutable copy of every asset's history."""
        return {symbol: buf.snapshot() for symbol, buf in self.buffers.items()}

    def on_candle(self, candle: Candle,
                  positions: Sequence[Position] = ()) -> CompositeAnalysisResult:
        """Ingest one candle and evaluate its asset."""
        self.buffer(candle.symbol).update(candle)
        return self.analyze(candle.symbol, positions)

    def analyze(self, symbol: str,
                positions: Sequence[Position] = ()) -> CompositeAnalysisResult:
        """Evaluate the composite signal for an asset without ingesting."""
        market = self.market_snapshot()
        candles = market.get(symbol, ())
        return self._composite.evaluate(
            self.config.strategies,
            candles,
            tuple(positions),
            market
        )

    def check_exit(self, symbol: str, result: CompositeAnalysisResult,
                   positions: Sequence[Position]) -> ExitDecision:
        """Whether the open lots of an asset should be closed on this result."""
        return check_exit(positions, symbol, result.signal)

    def update_config(self, config: EngineConfig):
        """
        Swap in a new configuration.

        Raises ValueError (and keeps the old configuration) if invalid.
        """
        config.validate()
        snapshot = config.snapshot()

        if snapshot.window_size != self.config.window_size:
            for symbol, buf in list(self.buffers.items()):
                resized = CandleBuffer(symbol, snapshot.window_size)
                resized.extend(buf.snapshot())
                self.buffers[symbol] = resized

        self.config = snapshot
        self._composite = self._build_composite()
        enabled = ", ".join(s.type.value for s in snapshot.enabled_strategies) or "none"
        logger.info(f"Configuration updated; enabled strategies: {enabled}")

    def get_status(self) -> Dict:
        """Get engine status."""
        return {
            'assets': {symbol: len(buf) for symbol, buf in self.buffers.items()},
            'window_size': self.config.window_size,
            'enabled_strategies': [s.type.value for s in self.config.enabled_strategies],
            'weights': {s.type.value: s.weight for s in self.config.enabled_strategies}
        }


def _parse_candle_source(text: str) -> Tuple[str, str]:
    symbol, sep, path = text.partition('=')
    if not sep or not symbol or not path:
        raise ValueError(f"Expected SYMBOL=path.csv, got {text!r}")
    return symbol.strip().upper(), path.strip()


def format_result(symbol: str, result: CompositeAnalysisResult) -> str:
    """Human-readable breakdown of a composite result."""
    regime = result.regime
    lines = [
        "=" * 60,
        f"{symbol}: {result.signal.name} (score {result.score:+.2f})",
        f"Regime: {regime.type.value} (volatility {regime.volatility:.1f}, "
        f"trend {regime.trend_strength:.1f})",
        f"        {regime.description}",
        "=" * 60,
    ]
    if not result.insights:
        lines.append("No strategies enabled")
    for insight in result.insights:
        lines.append(
            f"{insight.type.value:<20} {insight.signal.name:<8} "
            f"weight {insight.base_weight:g} -> {insight.adjusted_weight:g}  "
            f"[{insight.tuning_action}]"
        )
        if insight.metrics:
            lines.append("    " + ", ".join(f"{label}={value}" for label, value in insight.metrics))
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None):
    """Main entry point: evaluate one asset from OHLCV CSV files."""
    import argparse

    parser = argparse.ArgumentParser(description='Composite Crypto Signal Engine')
    parser.add_argument('--candles', action='append', default=[], metavar='SYMBOL=PATH',
                        help='OHLCV CSV for an asset (repeatable)')
    parser.add_argument('--symbol', type=str, help='Asset to evaluate (default: first loaded)')
    parser.add_argument('--config', type=str, help='Path to config file')
    parser.add_argument('--enable', action='append', default=[], metavar='TYPE[:WEIGHT]',
                        help='Enable a strategy, optionally with a weight (repeatable)')
    parser.add_argument('--json', action='store_true', help='Print the result as JSON')

    args = parser.parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if not args.candles:
        parser.error("at least one --candles SYMBOL=path.csv is required")

    config = EngineConfig.load(args.config) if args.config else EngineConfig()

    try:
        for toggle in args.enable:
            strategy_type, weight = parse_strategy_toggle(toggle)
            config.set_strategy(strategy_type, enabled=True, weight=weight)
        sources = [_parse_candle_source(s) for s in args.candles]
        engine = SignalEngine(config)
    except ValueError as e:
        parser.error(str(e))

    for symbol, path in sources:
        engine.load_history(symbol, load_candles_csv(path, symbol))

    symbol = (args.symbol or sources[0][0]).upper()
    if symbol not in engine.buffers:
        parser.error(f"no candles loaded for {symbol}")

    result = engine.analyze(symbol)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(format_result(symbol, result))


if __name__ == "__main__":
    main()
