# Utilities
from .logger import setup_logging, get_logger, TradeLogger
from .activity import ActivityLog, ActivityEntry

__all__ = ["setup_logging", "get_logger", "TradeLogger", "ActivityLog", "ActivityEntry"]
