"""
Spot Position Manager

Single-position paper trading state machine (FLAT / LONG).

Every price update is evaluated in a fixed order:
1. LONG and down `stop_loss_pct` or more   -> exit ("stop loss")
2. LONG and up `take_profit_pct` or more   -> exit ("take profit")
3. FLAT, BUY signal, cash above the floor  -> enter with `allocation` of cash
4. LONG and SELL signal                    -> exit ("signal sell")

At most one transition happens per update, so a position cannot stop out
and re-enter on the same tick. Exits always close the whole position.
"""
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..config import StrategyConfig
from ..models import Position, TradeRecord, TradeSide
from ..signals import Signal, SignalAction
from ..utils.logger import TradeLogger

trade_logger = TradeLogger()


class PositionState(Enum):
    FLAT = "flat"
    LONG = "long"


class ExitReason(Enum):
    """Why a position was closed."""
    STOP_LOSS = "stop loss"
    TAKE_PROFIT = "take profit"
    SIGNAL_SELL = "signal sell"


@dataclass
class SpotSession:
    """
    Mutable trading state for one spot strategy run.

    Owned by a single trader and only touched from inside its cycle.
    """
    starting_cash: float
    cash: float
    position: Optional[Position] = None
    realized_pnl: float = 0.0
    trades: deque = field(default_factory=lambda: deque(maxlen=20))
    last_price: Optional[float] = None

    @classmethod
    def create(cls, starting_cash: float, max_trade_history: int = 20) -> "SpotSession":
        return cls(
            starting_cash=starting_cash,
            cash=starting_cash,
            trades=deque(maxlen=max_trade_history),
        )

    @property
    def state(self) -> PositionState:
        return PositionState.LONG if self.position else PositionState.FLAT

    def portfolio_value(self, price: Optional[float] = None) -> float:
        price = price if price is not None else (self.last_price or 0.0)
        held = self.position.size * price if self.position else 0.0
        return self.cash + held

    def total_return_pct(self, price: Optional[float] = None) -> float:
        if self.starting_cash <= 0:
            return 0.0
        return (self.portfolio_value(price) - self.starting_cash) / self.starting_cash * 100

    def unrealized_pnl(self, price: Optional[float] = None) -> Optional[float]:
        price = price if price is not None else self.last_price
        if not self.position or price is None:
            return None
        return self.position.unrealized_pnl(price)

    def recent_trades(self) -> list[TradeRecord]:
        """Newest first."""
        return list(self.trades)


class PositionManager:
    """
    Applies stop loss / take profit rules ahead of signals.

    Usage:
        manager = PositionManager(StrategyConfig())
        session = SpotSession.create(500.0)
        trade = manager.on_price(session, signal, price)
    """

    def __init__(self, config: Optional[StrategyConfig] = None):
        self.config = config or StrategyConfig()

    def on_price(self, session: SpotSession, signal: Signal, price: float) -> Optional[TradeRecord]:
        """
        Evaluate one price update.

        Args:
            session: Session to mutate
            signal: Latest scorer output
            price: Current price

        Returns:
            The trade made on this update, if any
        """
        if price <= 0:
            raise ValueError(f"price must be positive, got {price}")

        session.last_price = price
        cfg = self.config
        position = session.position

        if position is not None:
            change = position.pnl_percent(price)
            if change <= -cfg.stop_loss_pct:
                return self._exit(session, price, ExitReason.STOP_LOSS)
            if change >= cfg.take_profit_pct:
                return self._exit(session, price, ExitReason.TAKE_PROFIT)

        if signal.action == SignalAction.BUY and position is None and session.cash > cfg.min_cash:
            return self._enter(session, price, signal.confidence)

        if signal.action == SignalAction.SELL and position is not None:
            return self._exit(session, price, ExitReason.SIGNAL_SELL)

        return None

    def _enter(self, session: SpotSession, price: float, confidence: int) -> TradeRecord:
        cfg = self.config
        committed = session.cash * cfg.allocation
        size = committed * (1 - cfg.fee_rate) / price

        session.cash -= committed
        session.position = Position(entry_price=price, size=size)

        trade = TradeRecord(
            type=TradeSide.BUY,
            price=price,
            amount=size,
            reason=f"{confidence}% confidence",
        )
        session.trades.appendleft(trade)
        trade_logger.position_opened(price=price, size=size, confidence=confidence)
        return trade

    def _exit(self, session: SpotSession, price: float, reason: ExitReason) -> TradeRecord:
        position = session.position
        proceeds = position.size * price * (1 - self.config.fee_rate)
        pnl = proceeds - position.size * position.entry_price

        session.cash += proceeds
        session.realized_pnl += pnl
        session.position = None

        trade = TradeRecord(
            type=TradeSide.SELL,
            price=price,
            amount=position.size,
            reason=reason.value,
            pnl=pnl,
        )
        session.trades.appendleft(trade)
        trade_logger.position_closed(price=price, size=position.size, pnl=pnl, reason=reason.value)
        return trade
