"""
Data Module
===========
Candle records and the bounded per-asset history the engine reads.

Candles arrive from the exchange stream (or the simulator) one at a time.
A still-forming candle is re-sent with the same timestamp until it closes,
so the buffer upserts on timestamp instead of blindly appending.
"""

import pandas as pd
from collections import deque
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)

OHLCV_COLUMNS = ['timestamp', 'open', 'high', 'low', 'close', 'volume']


@dataclass(frozen=True)
class Candle:
    """One OHLCV sample for one asset."""
    symbol: str
    timestamp: int  # epoch milliseconds
    open: float
    high: float
    low: float
    close: float
    volume: float
    is_final: bool = True

    def to_dict(self) -> dict:
        return {
            'symbol': self.symbol,
            'timestamp': self.timestamp,
            'open': self.open,
            'high': self.high,
            'low': self.low,
            'close': self.close,
            'volume': self.volume,
            'is_final': self.is_final
        }


def closes(candles: Sequence[Candle]) -> List[float]:
    """Closing prices of a candle sequence."""
    return [c.close for c in candles]


class CandleBuffer:
    """
    Bounded, time-ordered candle history for one asset.

    Oldest candles are evicted once `max_size` is exceeded.
    """

    def __init__(self, symbol: str, max_size: int = 400):
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.symbol = symbol
        self.max_size = max_size
        self._candles: deque = deque(maxlen=max_size)

    def __len__(self) -> int:
        return len(self._candles)

    @property
    def last(self):
        return self._candles[-1] if self._candles else None

    def update(self, candle: Candle) -> bool:
        """
        Upsert a candle.

        Returns True if the buffer changed. A candle older than the last
        stored one is dropped so timestamps stay non-decreasing.
        """
        if candle.symbol != self.symbol:
            raise ValueError(f"Candle for {candle.symbol} pushed into {self.symbol} buffer")

        last = self.last
        if last is not None:
            if candle.timestamp == last.timestamp:
                self._candles[-1] = candle
                return True
            if candle.timestamp < last.timestamp:
                logger.warning(
                    f"Ignoring out-of-order candle for {self.symbol}: "
                    f"{candle.timestamp} < {last.timestamp}"
                )
                return False

        self._candles.append(candle)
        return True

    def extend(self, candles: Iterable[Candle]) -> int:
        """Push many candles in order; returns how many were accepted."""
        return sum(1 for c in candles if self.update(c))

    def snapshot(self) -> Tuple[Candle, ...]:
        """Immutable copy handed to the engine."""
        return tuple(self._candles)

    def to_frame(self) -> pd.DataFrame:
        return candles_to_frame(self._candles)


def _epoch_ms(values) -> List[int]:
    """Epoch milliseconds from datetimes of any unit (ns, us, ms, s) or timezone."""
    index = pd.DatetimeIndex(values)
    epoch = pd.Timestamp(0, tz=index.tz)
    return [int(ms) for ms in (index - epoch) // pd.Timedelta(milliseconds=1)]


def candles_from_frame(df: pd.DataFrame, symbol: str) -> List[Candle]:
    """
    Build candles from an OHLCV DataFrame.

    Column names are matched case-insensitively. If there is no
    'timestamp' column a DatetimeIndex is used, else the row position.
    """
    frame = df.rename(columns={c: str(c).strip().lower() for c in df.columns})

    missing = [c for c in ['open', 'high', 'low', 'close'] if c not in frame.columns]
    if missing:
        raise ValueError(f"OHLCV frame for {symbol} missing columns: {missing}")

    if 'timestamp' in frame.columns:
        raw = frame['timestamp']
        if pd.api.types.is_datetime64_any_dtype(raw):
            timestamps = _epoch_ms(raw)
        else:
            timestamps = raw.astype('int64').tolist()
    elif isinstance(frame.index, pd.DatetimeIndex):
        timestamps = _epoch_ms(frame.index)
    else:
        timestamps = list(range(len(frame)))

    volume = frame['volume'] if 'volume' in frame.columns else pd.Series(0.0, index=frame.index)
    is_final = frame['is_final'] if 'is_final' in frame.columns else pd.Series(True, index=frame.index)

    return [
        Candle(
            symbol=symbol,
            timestamp=int(ts),
            open=float(o),
            high=float(h),
            low=float(l),
            close=float(c),
            volume=float(v),
            is_final=bool(f)
        )
        for ts, o, h, l, c, v, f in zip(
            timestamps, frame['open'], frame['high'], frame['low'],
            frame['close'], volume, is_final
        )
    ]


def candles_to_frame(candles: Iterable[Candle]) -> pd.DataFrame:
    """Candles as an OHLCV DataFrame (one row per candle)."""
    rows = [c.to_dict() for c in candles]
    if not rows:
        return pd.DataFrame(columns=['symbol'] + OHLCV_COLUMNS + ['is_final'])
    return pd.DataFrame(rows)


def load_candles_csv(filepath: str, symbol: str) -> List[Candle]:
    """Read an OHLCV CSV file into candles."""
    df = pd.read_csv(filepath)
    candles = candles_from_frame(df, symbol)
    logger.info(f"Loaded {len(candles)} candles for {symbol} from {filepath}")
    return candles
