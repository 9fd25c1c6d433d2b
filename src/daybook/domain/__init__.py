"""Domain records read by Daybook analytics."""

from .task import Task, TaskStatus, Priority
from .time_entry import TimeEntry

__all__ = [
    "Task",
    "TaskStatus",
    "Priority",
    "TimeEntry",
]
