"""Daily activity aggregation.

Buckets tasks and time entries into one ``DailyActivity`` per calendar day
of a requested range. Every other analytics view is derived from these
buckets, so the attribution rules here are the ones the rest of the
package inherits:

- a task counts toward ``task_count`` on the day it was created, and toward
  ``completed_count`` on that same day if it is completed
- a completed task whose completion day (``completed_at``, else
  ``created_at``) differs from its creation day also counts toward
  ``completed_count`` on the completion day (the rolling snapshot turns
  this rule off so week totals count each task once)
- a time entry adds its duration to ``hours_spent`` on the day it started;
  running entries are measured up to ``now``
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Optional

from ..domain import TaskStatus
from ..utils.datetime import local_day
from .periods import DateRange

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600


@dataclass(frozen=True)
class DailyActivity:
    """Aggregated activity for a single calendar day"""
    date: date
    task_count: int = 0
    completed_count: int = 0
    hours_spent: float = 0.0

    @property
    def has_activity(self) -> bool:
        return bool(self.task_count or self.completed_count or self.hours_spent > 0)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'date': self.date.isoformat(),
            'taskCount': self.task_count,
            'completedCount': self.completed_count,
            'hoursSpent': self.hours_spent,
        }


@dataclass(frozen=True)
class CompletionStats:
    """Totals shown on the task completion card"""
    total_tasks: int
    completed_tasks: int
    completion_rate: int  # rounded percentage
    total_hours: float
    average_hours_per_task: float
    average_tasks_per_day: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_tasks': self.total_tasks,
            'completed_tasks': self.completed_tasks,
            'completion_rate': self.completion_rate,
            'total_hours': self.total_hours,
            'average_hours_per_task': self.average_hours_per_task,
            'average_tasks_per_day': self.average_tasks_per_day,
        }


def is_completed(task: Any) -> bool:
    """Whether a task record has status ``completed``.

    Accepts enum or plain-string statuses so records straight from a store
    work as well as ``Task`` instances.
    """
    status = getattr(task, 'status', None)
    if isinstance(status, TaskStatus):
        return status == TaskStatus.COMPLETED
    return status == TaskStatus.COMPLETED.value


def completion_day(task: Any, tz: tzinfo = timezone.utc) -> Optional[date]:
    """Day a completed task's completion is attributed to.

    ``completed_at`` wins when it holds a valid timestamp; otherwise the
    creation day stands in for it.
    """
    day = local_day(getattr(task, 'completed_at', None), tz)
    if day is None:
        day = local_day(getattr(task, 'created_at', None), tz)
    return day


def entry_hours(entry: Any, now: Optional[datetime], include_running: bool = True,
                tz: tzinfo = timezone.utc) -> Optional[float]:
    """Duration of a time entry in hours, or None if it should not count.

    Running entries are measured up to ``now`` unless ``include_running`` is
    False, in which case they are excluded.
    """
    if getattr(entry, 'end_time', None) is None and not include_running:
        return None
    seconds = entry.duration_seconds(now, tz)
    if seconds is None:
        return None
    return seconds / SECONDS_PER_HOUR


def aggregate_daily_activity(tasks: Iterable[Any], entries: Iterable[Any],
                             date_range: DateRange, now: datetime,
                             tz: tzinfo = timezone.utc,
                             attribute_completion_day: bool = True) -> List[DailyActivity]:
    """Build one bucket per day in ``date_range``, ascending.

    With ``attribute_completion_day`` False a completed task only counts on
    its creation day, so each task is counted as completed at most once.
    Inputs are only read. Records with missing or malformed timestamps
    contribute nothing.
    """
    created: Dict[date, int] = {day: 0 for day in date_range.days()}
    completed: Dict[date, int] = dict.fromkeys(created, 0)
    hours: Dict[date, float] = dict.fromkeys(created, 0.0)

    for task in tasks or []:
        created_day = local_day(getattr(task, 'created_at', None), tz)
        done = is_completed(task)

        if date_range.contains(created_day):
            created[created_day] += 1
            if done:
                completed[created_day] += 1

        if done and attribute_completion_day:
            day = completion_day(task, tz)
            # Same-day completions were already counted with the creation
            if date_range.contains(day) and day != created_day:
                completed[day] += 1

    for entry in entries or []:
        start_day = local_day(getattr(entry, 'start_time', None), tz)
        if not date_range.contains(start_day):
            continue
        duration = entry_hours(entry, now, tz=tz)
        if duration is None:
            logger.debug(f"Skipping time entry {getattr(entry, 'id', '?')} with malformed end time")
            continue
        hours[start_day] += duration

    return [
        DailyActivity(
            date=day,
            task_count=created[day],
            completed_count=completed[day],
            hours_spent=hours[day],
        )
        for day in created
    ]


def compute_completion_stats(daily_activities: List[DailyActivity]) -> CompletionStats:
    """Summarize a list of daily buckets for the completion card."""
    total_tasks = sum(day.task_count for day in daily_activities)
    completed_tasks = sum(day.completed_count for day in daily_activities)
    total_hours = sum(day.hours_spent for day in daily_activities)

    return CompletionStats(
        total_tasks=total_tasks,
        completed_tasks=completed_tasks,
        completion_rate=round(completed_tasks / total_tasks * 100) if total_tasks else 0,
        total_hours=total_hours,
        average_hours_per_task=round(total_hours / total_tasks, 1) if total_tasks else 0.0,
        average_tasks_per_day=round(total_tasks / len(daily_activities), 1) if daily_activities else 0.0,
    )
