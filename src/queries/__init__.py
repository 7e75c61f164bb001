"""Report execution package."""

from src.queries.executor import ReportExecutor

__all__ = ["ReportExecutor"]
