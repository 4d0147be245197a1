"""
Technical Indicators

Pure functions over a price series. Every result is a pandas Series aligned
index-for-index with the input; positions inside an indicator's warmup
window are NaN.

Formulas:
- EMA: seeded with the SMA of the first `period` points, then
  v[i] = x[i] * k + v[i-1] * (1 - k) with k = 2 / (period + 1)
- RSI: Wilder smoothing of average gain / loss
- MACD: EMA(12) - EMA(26), signal line = EMA(9) of the defined MACD values
- Bollinger Bands: rolling mean +/- multiplier * population std dev
"""
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np
import pandas as pd


SeriesLike = Union[pd.Series, Sequence[float], np.ndarray]


@dataclass(frozen=True)
class MACDResult:
    """MACD line and its signal line."""
    macd: pd.Series
    signal: pd.Series

    @property
    def histogram(self) -> pd.Series:
        return self.macd - self.signal


@dataclass(frozen=True)
class BollingerBands:
    """Volatility envelope around a rolling mean."""
    upper: pd.Series
    middle: pd.Series
    lower: pd.Series


def _as_series(data: SeriesLike) -> pd.Series:
    if isinstance(data, pd.Series):
        return data.astype(float)
    return pd.Series(np.asarray(data, dtype=float))


def _check_period(period: int) -> None:
    if period <= 0:
        raise ValueError(f"period must be > 0, got {period}")


def ema(data: SeriesLike, period: int) -> pd.Series:
    """
    Exponential moving average.

    Args:
        data: Price series
        period: Smoothing period

    Returns:
        Series with the first `period - 1` entries undefined
    """
    _check_period(period)
    values = _as_series(data)
    arr = values.to_numpy(dtype=float)
    out = np.full(len(arr), np.nan)

    if len(arr) < period:
        return pd.Series(out, index=values.index)

    k = 2 / (period + 1)
    current = arr[:period].mean()
    out[period - 1] = current
    for i in range(period, len(arr)):
        current = arr[i] * k + current * (1 - k)
        out[i] = current

    return pd.Series(out, index=values.index)


def rsi(data: SeriesLike, period: int = 14) -> pd.Series:
    """
    Relative strength index with Wilder smoothing.

    The first value lands at index `period`, seeded from the average gain
    and loss of the first `period` differences.

    Args:
        data: Price series
        period: Lookback period

    Returns:
        Series in [0, 100]; 100 whenever the average loss is zero
    """
    _check_period(period)
    values = _as_series(data)
    arr = values.to_numpy(dtype=float)
    out = np.full(len(arr), np.nan)

    if len(arr) <= period:
        return pd.Series(out, index=values.index)

    diffs = np.diff(arr)
    avg_gain = np.clip(diffs[:period], 0, None).sum() / period
    avg_loss = np.clip(-diffs[:period], 0, None).sum() / period
    out[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, len(arr)):
        diff = diffs[i - 1]
        avg_gain = (avg_gain * (period - 1) + max(diff, 0.0)) / period
        avg_loss = (avg_loss * (period - 1) + max(-diff, 0.0)) / period
        out[i] = _rsi_value(avg_gain, avg_loss)

    return pd.Series(out, index=values.index)


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    return 100 - 100 / (1 + avg_gain / avg_loss)


def macd(
    data: SeriesLike,
    fast: int = 12,
    slow: int = 26,
    signal_period: int = 9
) -> MACDResult:
    """
    Moving average convergence / divergence.

    Args:
        data: Price series
        fast: Fast EMA period
        slow: Slow EMA period
        signal_period: EMA period of the signal line

    Returns:
        MACDResult with both lines in the input's index space
    """
    values = _as_series(data)
    line = ema(values, fast) - ema(values, slow)

    defined = line.dropna()
    signal = pd.Series(np.nan, index=values.index)
    if len(defined) > 0:
        smoothed = ema(defined.reset_index(drop=True), signal_period)
        signal.loc[defined.index] = smoothed.to_numpy()

    return MACDResult(macd=line, signal=signal)


def bollinger_bands(
    data: SeriesLike,
    period: int = 20,
    std_dev: float = 2.0
) -> BollingerBands:
    """
    Bollinger Bands over a trailing window.

    Args:
        data: Price series
        period: Rolling window length
        std_dev: Band width in population standard deviations

    Returns:
        BollingerBands, undefined for the first `period - 1` entries
    """
    _check_period(period)
    values = _as_series(data)
    window = values.rolling(window=period, min_periods=period)
    middle = window.mean()
    deviation = window.std(ddof=0)

    return BollingerBands(
        upper=middle + std_dev * deviation,
        middle=middle,
        lower=middle - std_dev * deviation,
    )
