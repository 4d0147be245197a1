"""
Rule-Based Signal Scorer

Turns indicator readings on the latest two bars into a BUY / SELL / WAIT
decision. Buy and sell evidence accumulate independently:

- RSI oversold (+3) / rising from low (+2), mirrored for sell
- EMA9 crossing EMA21 (+3), plus one trend point to the side EMA9 is on
- MACD crossing its signal line (+3); MACD positive and above signal (+1 buy)
- Close outside a Bollinger band (+2)
- Volume spike while buy leads (+1 buy)

A side wins only with a strict lead and at least `min_score` points.
"""
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

import pandas as pd

from ..config import ScoringConfig
from ..errors import InsufficientData
from ..indicators import bollinger_bands, ema, macd, rsi

logger = logging.getLogger(__name__)


class SignalAction(Enum):
    """Discrete trading decision."""
    BUY = "BUY"
    SELL = "SELL"
    WAIT = "WAIT"


class Polarity(Enum):
    """Which side a reason argues for."""
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class Reason:
    """One piece of evidence behind a signal."""
    polarity: Polarity
    text: str


@dataclass(frozen=True)
class Signal:
    """Result of a scoring pass."""
    action: SignalAction
    confidence: int
    reasons: tuple[Reason, ...] = ()
    buy_score: int = 0
    sell_score: int = 0

    @classmethod
    def wait(cls, reasons: Sequence[Reason] = (), buy_score: int = 0, sell_score: int = 0) -> "Signal":
        return cls(
            action=SignalAction.WAIT,
            confidence=0,
            reasons=tuple(reasons),
            buy_score=buy_score,
            sell_score=sell_score,
        )


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Indicator values on the current and previous bar."""
    price: float
    rsi: float
    prev_rsi: float
    ema_fast: float
    prev_ema_fast: float
    ema_slow: float
    prev_ema_slow: float
    macd: float
    prev_macd: float
    macd_signal: float
    prev_macd_signal: float
    bb_upper: float
    bb_lower: float
    volume: float
    avg_volume: float

    @property
    def macd_defined(self) -> bool:
        return not any(
            math.isnan(v)
            for v in (self.macd, self.prev_macd, self.macd_signal, self.prev_macd_signal)
        )


@dataclass
class _Tally:
    buy: int = 0
    sell: int = 0
    reasons: list[Reason] = field(default_factory=list)

    def add_buy(self, points: int, text: str) -> None:
        self.buy += points
        self.reasons.append(Reason(Polarity.BUY, text))

    def add_sell(self, points: int, text: str) -> None:
        self.sell += points
        self.reasons.append(Reason(Polarity.SELL, text))


class SignalScorer:
    """
    Scores the latest bar of a close/volume series.

    Usage:
        scorer = SignalScorer()
        signal = scorer.score(closes, volumes)
        if signal.action == SignalAction.BUY:
            ...
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    def snapshot(self, closes: Sequence[float], volumes: Sequence[float]) -> IndicatorSnapshot:
        """
        Compute every indicator on the full series and read the last two bars.

        Raises:
            InsufficientData: fewer closes than the warmup requires
        """
        cfg = self.config
        if len(closes) < cfg.min_bars:
            raise InsufficientData(cfg.min_bars, len(closes))

        close_series = pd.Series(closes, dtype=float)
        volume_series = pd.Series(volumes, dtype=float)

        rsi_series = rsi(close_series, cfg.rsi_period)
        fast = ema(close_series, cfg.ema_fast)
        slow = ema(close_series, cfg.ema_slow)
        macd_result = macd(close_series)
        bands = bollinger_bands(close_series, cfg.bb_period, cfg.bb_std_dev)

        n = len(close_series) - 1
        return IndicatorSnapshot(
            price=float(close_series.iloc[n]),
            rsi=float(rsi_series.iloc[n]),
            prev_rsi=float(rsi_series.iloc[n - 1]),
            ema_fast=float(fast.iloc[n]),
            prev_ema_fast=float(fast.iloc[n - 1]),
            ema_slow=float(slow.iloc[n]),
            prev_ema_slow=float(slow.iloc[n - 1]),
            macd=float(macd_result.macd.iloc[n]),
            prev_macd=float(macd_result.macd.iloc[n - 1]),
            macd_signal=float(macd_result.signal.iloc[n]),
            prev_macd_signal=float(macd_result.signal.iloc[n - 1]),
            bb_upper=float(bands.upper.iloc[n]),
            bb_lower=float(bands.lower.iloc[n]),
            volume=float(volume_series.iloc[n]),
            avg_volume=float(volume_series.iloc[-cfg.volume_window:].mean()),
        )

    def score(self, closes: Sequence[float], volumes: Sequence[float]) -> Signal:
        """
        Produce a signal for the latest bar.

        Args:
            closes: Close prices, most recent last
            volumes: Volumes aligned with closes

        Returns:
            Signal; WAIT with no reasons when there is not enough data
        """
        try:
            snap = self.snapshot(closes, volumes)
        except InsufficientData as e:
            logger.debug(f"Not scoring: {e}")
            return Signal.wait()

        return self.evaluate(snap)

    def evaluate(self, snap: IndicatorSnapshot) -> Signal:
        """Apply the scoring rules to an indicator snapshot."""
        cfg = self.config
        tally = _Tally()

        # RSI
        if snap.rsi < cfg.rsi_oversold:
            tally.add_buy(3, f"RSI oversold ({snap.rsi:.1f})")
        elif snap.rsi < cfg.rsi_low and snap.prev_rsi < snap.rsi:
            tally.add_buy(2, f"RSI rising from low ({snap.rsi:.1f})")
        if snap.rsi > cfg.rsi_overbought:
            tally.add_sell(3, f"RSI overbought ({snap.rsi:.1f})")
        elif snap.rsi > cfg.rsi_high and snap.prev_rsi > snap.rsi:
            tally.add_sell(2, f"RSI falling from high ({snap.rsi:.1f})")

        # EMA crossover, plus exactly one trend point
        if snap.prev_ema_fast < snap.prev_ema_slow and snap.ema_fast > snap.ema_slow:
            tally.add_buy(3, "EMA9 crossed above EMA21")
        if snap.prev_ema_fast > snap.prev_ema_slow and snap.ema_fast < snap.ema_slow:
            tally.add_sell(3, "EMA9 crossed below EMA21")
        if snap.ema_fast > snap.ema_slow:
            tally.add_buy(1, "Uptrend (EMA9 > EMA21)")
        else:
            tally.add_sell(1, "Downtrend (EMA9 < EMA21)")

        # MACD
        if snap.macd_defined:
            if snap.prev_macd < snap.prev_macd_signal and snap.macd > snap.macd_signal:
                tally.add_buy(3, "MACD bullish crossover")
            if snap.prev_macd > snap.prev_macd_signal and snap.macd < snap.macd_signal:
                tally.add_sell(3, "MACD bearish crossover")
            if snap.macd > 0 and snap.macd > snap.macd_signal:
                tally.add_buy(1, "MACD positive momentum")

        # Bollinger Bands (NaN comparisons are False)
        if snap.price < snap.bb_lower:
            tally.add_buy(2, "Price below BB lower band")
        if snap.price > snap.bb_upper:
            tally.add_sell(2, "Price above BB upper band")

        # Volume confirmation
        if snap.volume > snap.avg_volume * cfg.volume_spike and tally.buy > tally.sell:
            tally.add_buy(1, "High volume confirms move")

        return self._decide(tally)

    def _decide(self, tally: _Tally) -> Signal:
        cfg = self.config
        total = tally.buy + tally.sell
        if total == 0:
            return Signal.wait(tally.reasons)

        if tally.buy > tally.sell and tally.buy >= cfg.min_score:
            action, lead = SignalAction.BUY, tally.buy
        elif tally.sell > tally.buy and tally.sell >= cfg.min_score:
            action, lead = SignalAction.SELL, tally.sell
        else:
            return Signal.wait(tally.reasons, tally.buy, tally.sell)

        # half-up rounding
        confidence = max(0, min(math.floor(lead / total * 100 + 0.5), cfg.max_confidence))
        return Signal(
            action=action,
            confidence=confidence,
            reasons=tuple(tally.reasons),
            buy_score=tally.buy,
            sell_score=tally.sell,
        )
