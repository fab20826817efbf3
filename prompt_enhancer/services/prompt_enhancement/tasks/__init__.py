from .breakdown_adapter import TaskBreakdownAdapter, BreakdownResult

__all__ = ["TaskBreakdownAdapter", "BreakdownResult"]
