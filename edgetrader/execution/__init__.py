# Order execution
from .executor import ExecutionResult, OrderExecutor

__all__ = ["ExecutionResult", "OrderExecutor"]
