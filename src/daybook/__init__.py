"""Daybook - productivity analytics over tasks and tracked time."""

__version__ = "0.1.0"
__author__ = "Daybook Team"

from .domain import (
    Task,
    TaskStatus,
    Priority,
    TimeEntry,
)

__all__ = ["Task", "TaskStatus", "Priority", "TimeEntry", "__version__"]
