"""Operation execution package."""

from src.commands.executor import OperationExecutor, user_summary

__all__ = ["OperationExecutor", "user_summary"]
