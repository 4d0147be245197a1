"""
Error taxonomy shared by clients and traders.

Traders catch these at the cycle boundary; nothing here is allowed to
escape a periodic poll.
"""

from typing import Optional


class TradingError(Exception):
    """Base class for all edgetrader errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NetworkFailure(TradingError):
    """Fetch, transport or response parsing failure."""


class AuthFailure(TradingError):
    """Credentials could not be loaded or were rejected by the exchange."""


class KeyLoadError(AuthFailure):
    """No supported private-key container could be parsed."""

    def __init__(self, attempts: list[tuple[str, str]]):
        self.attempts = attempts
        tried = "; ".join(f"{name}: {error}" for name, error in attempts)
        super().__init__(
            "Could not load private key. Make sure you copied the full key "
            f"including the BEGIN/END lines ({tried})",
            details={"attempts": [name for name, _ in attempts]},
        )


class OrderRejected(TradingError):
    """The exchange refused an order."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message, details={"status": status})


class MalformedEstimate(TradingError):
    """An external estimate had no usable recommendation."""


class InsufficientData(TradingError):
    """Fewer candles than the indicator warmup requires."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Need at least {required} data points, got {available}",
            details={"required": required, "available": available},
        )
