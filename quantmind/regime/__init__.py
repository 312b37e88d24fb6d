"""
Market Regime Module
====================
"""
from .regime_detector import (
    MarketRegimeDetector,
    MarketRegime,
    RegimeType,
    REGIME_DESCRIPTIONS
)

__all__ = [
    'MarketRegimeDetector',
    'MarketRegime',
    'RegimeType',
    'REGIME_DESCRIPTIONS'
]
