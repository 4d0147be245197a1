"""
Structured logging for Edge Trader.
Supports JSON logging for log aggregation.
"""

import logging
import sys
from typing import Optional
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['timestamp'] = self.formatTime(record, self.datefmt)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    logger_name: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Whether to emit one JSON object per line
        logger_name: Optional specific logger name

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name or "edgetrader")
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        formatter = CustomJsonFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s'
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger with the given name."""
    return logging.getLogger(f"edgetrader.{name}")


class TradeLogger:
    """Specialized logger for trade-related events."""

    def __init__(self):
        self.logger = get_logger("trades")

    def position_opened(self, price: float, size: float, confidence: int):
        """Log a spot entry."""
        self.logger.info(
            "Position opened",
            extra={
                "event": "position_opened",
                "price": price,
                "size": size,
                "confidence": confidence
            }
        )

    def position_closed(self, price: float, size: float, pnl: float, reason: str):
        """Log a spot exit."""
        self.logger.info(
            "Position closed",
            extra={
                "event": "position_closed",
                "price": price,
                "size": size,
                "pnl": pnl,
                "reason": reason
            }
        )

    def order_placed(
        self,
        client_id: str,
        ticker: str,
        side: str,
        order_type: str,
        count: int,
        price: Optional[int]
    ):
        """Log when an order is accepted by the exchange."""
        self.logger.info(
            "Order placed",
            extra={
                "event": "order_placed",
                "client_id": client_id,
                "ticker": ticker,
                "side": side,
                "order_type": order_type,
                "count": count,
                "price": price
            }
        )

    def order_failed(
        self,
        ticker: str,
        order_type: str,
        reason: str,
        error: Optional[str] = None
    ):
        """Log when an order attempt fails."""
        self.logger.error(
            "Order failed",
            extra={
                "event": "order_failed",
                "ticker": ticker,
                "order_type": order_type,
                "reason": reason,
                "error": error
            }
        )

    def candidate_skipped(
        self,
        ticker: str,
        edge: int,
        confidence: float,
        reason: str
    ):
        """Log a shortlisted market that did not clear the trade gate."""
        self.logger.info(
            "Candidate skipped",
            extra={
                "event": "candidate_skipped",
                "ticker": ticker,
                "edge_cents": edge,
                "confidence": confidence,
                "reason": reason
            }
        )

    def scan_completed(
        self,
        analyzed: int,
        available: int,
        trades_placed: int,
        duration_ms: float
    ):
        """Log the end of a scan cycle."""
        self.logger.info(
            "Scan completed",
            extra={
                "event": "scan_completed",
                "markets_analyzed": analyzed,
                "markets_available": available,
                "trades_placed": trades_placed,
                "duration_ms": duration_ms
            }
        )
