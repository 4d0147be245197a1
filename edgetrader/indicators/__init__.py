"""
Technical Indicators Module

Provides EMA, RSI, MACD and Bollinger Bands over a close-price series.
"""
from .technical import (
    BollingerBands,
    MACDResult,
    bollinger_bands,
    ema,
    macd,
    rsi,
)

__all__ = [
    "BollingerBands",
    "MACDResult",
    "bollinger_bands",
    "ema",
    "macd",
    "rsi",
]
