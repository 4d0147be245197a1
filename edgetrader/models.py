"""
Shared data models for both strategies.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class TradeSide(Enum):
    """Spot trade direction."""
    BUY = "BUY"
    SELL = "SELL"


class OrderType(Enum):
    """Prediction market order type."""
    LIMIT = "limit"
    MARKET = "market"


@dataclass(frozen=True)
class Candle:
    """One OHLCV bar."""
    timestamp: float
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass
class Position:
    """The single open spot position."""
    entry_price: float
    size: float
    opened_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def unrealized_pnl(self, price: float) -> float:
        return self.size * (price - self.entry_price)

    def pnl_percent(self, price: float) -> float:
        return (price - self.entry_price) / self.entry_price


@dataclass(frozen=True)
class TradeRecord:
    """A filled spot trade."""
    type: TradeSide
    price: float
    amount: float
    reason: str
    pnl: Optional[float] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class MarketQuote:
    """Open prediction market as quoted by the exchange (prices in cents)."""
    ticker: str
    title: str
    yes_ask: int
    no_ask: int
    volume: int
    close_time: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: dict) -> "MarketQuote":
        """Build from a Kalshi market object; missing prices default to 50."""
        close_time = None
        raw_close = data.get("close_time")
        if raw_close:
            try:
                close_time = datetime.fromisoformat(raw_close.replace("Z", "+00:00"))
            except (AttributeError, TypeError, ValueError):
                close_time = None
            if close_time is not None and close_time.tzinfo is None:
                close_time = close_time.replace(tzinfo=timezone.utc)

        return cls(
            ticker=data.get("ticker") or "",
            title=data.get("title") or "",
            yes_ask=int(data.get("yes_ask") or 50),
            no_ask=int(data.get("no_ask") or 50),
            volume=int(data.get("volume") or 0),
            close_time=close_time,
        )

    def hours_left(self, now: Optional[datetime] = None) -> float:
        if self.close_time is None:
            return 999.0
        now = now or datetime.now(timezone.utc)
        return (self.close_time - now).total_seconds() / 3600


@dataclass(frozen=True)
class ScoredMarket:
    """A market quote with its ranking score."""
    quote: MarketQuote
    score: int
    hours_left: float

    @property
    def ticker(self) -> str:
        return self.quote.ticker

    @property
    def time_label(self) -> str:
        """Human time remaining: hours under a day, days otherwise."""
        if self.hours_left < 24:
            return f"{math.floor(self.hours_left + 0.5)}h"
        return f"{math.floor(self.hours_left / 24 + 0.5)}d"


@dataclass(frozen=True)
class Order:
    """An order as submitted to the exchange."""
    ticker: str
    side: str  # "yes" or "no"
    type: OrderType
    count: int
    client_id: str
    price: Optional[int] = None  # cents, limit orders only

    def to_payload(self) -> dict:
        body = {
            "ticker": self.ticker,
            "client_order_id": self.client_id,
            "type": self.type.value,
            "action": "buy",
            "side": self.side,
            "count": self.count,
        }
        if self.type == OrderType.LIMIT and self.price is not None:
            body[f"{self.side}_price"] = self.price
        return body


@dataclass(frozen=True)
class PlacedTrade:
    """A prediction market bet that reached the exchange."""
    ticker: str
    side: str
    contracts: int
    cost: float
    edge: int
    confidence: float
    strategy: str
    order_type: OrderType
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
