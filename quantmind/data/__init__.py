"""
Data Module
===========
"""
from .market_data import (
    Candle,
    CandleBuffer,
    closes,
    candles_from_frame,
    candles_to_frame,
    load_candles_csv
)

__all__ = [
    'Candle',
    'CandleBuffer',
    'closes',
    'candles_from_frame',
    'candles_to_frame',
    'load_candles_csv'
]
