"""
Feature Engineering Module
==========================
"""
from .indicators import (
    TechnicalIndicators,
    StatisticalFeatures,
    BollingerBands,
    MACDResult
)

__all__ = [
    'TechnicalIndicators',
    'StatisticalFeatures',
    'BollingerBands',
    'MACDResult'
]
