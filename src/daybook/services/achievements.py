"""Superlative facts over a period: most time spent, most completions."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..utils.datetime import local_day
from .activity import completion_day, entry_hours, is_completed
from .periods import DateRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskAchievement:
    """Winner of an achievement query.

    Only one of ``hours`` and ``count`` is meaningful, depending on which
    query produced it; the other is zero.
    """
    task_name: str
    hours: float = 0.0
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'taskName': self.task_name,
            'hours': self.hours,
            'count': self.count,
        }


@dataclass(frozen=True)
class AchievementOfDay:
    """Task created today with the most time tracked today"""
    kind: str
    task_id: str
    task_title: str
    value: float  # hours

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'taskId': self.task_id,
            'taskTitle': self.task_title,
            'value': self.value,
        }


MOST_TIME_SPENT = "most_time_spent"


def _strict_max(totals: Dict[Any, float]):
    """Key with the strictly largest positive value; ties keep the first seen."""
    best_key, best_value = None, 0
    for key, value in totals.items():
        if value > best_value:
            best_key, best_value = key, value
    return best_key, best_value


def find_most_time_spent_task(entries: Iterable[Any], date_range: DateRange,
                              lookup_task: Callable[[str], Optional[Any]],
                              tz: tzinfo = timezone.utc) -> Optional[TaskAchievement]:
    """Task with the most closed-entry time started within the range.

    Running entries are left out here. The winner's title comes from
    ``lookup_task`` (usually ``TaskRepository.get_task``). Returns None when
    nothing qualifies or the winning task id no longer resolves to a task.
    """
    per_task: Dict[str, float] = {}
    for entry in entries or []:
        task_id = getattr(entry, 'task_id', None)
        if not task_id:
            continue
        if not date_range.contains(local_day(getattr(entry, 'start_time', None), tz)):
            continue
        hours = entry_hours(entry, now=None, include_running=False, tz=tz)
        if hours is None:
            continue
        per_task[task_id] = per_task.get(task_id, 0.0) + hours

    task_id, hours = _strict_max(per_task)
    if task_id is None:
        return None

    task = lookup_task(task_id)
    if task is None:
        logger.debug(f"Most tracked task {task_id} is no longer in the task store")
        return None

    return TaskAchievement(task_name=task.title, hours=hours, count=0)


def find_most_completed_task(tasks: Iterable[Any], date_range: DateRange,
                             tz: tzinfo = timezone.utc) -> Optional[TaskAchievement]:
    """Task title completed most often within the range.

    Tasks are grouped by title, not id, so recurring tasks created under the
    same name add up.
    """
    per_title: Dict[str, int] = {}
    for task in tasks or []:
        if not is_completed(task):
            continue
        if not date_range.contains(completion_day(task, tz)):
            continue
        title = getattr(task, 'title', '')
        per_title[title] = per_title.get(title, 0) + 1

    title, count = _strict_max(per_title)
    if title is None:
        return None
    return TaskAchievement(task_name=title, hours=0.0, count=count)


def find_achievement_of_day(tasks: Iterable[Any], entries: Iterable[Any],
                            today: date, now: datetime,
                            tz: tzinfo = timezone.utc) -> Optional[AchievementOfDay]:
    """Among tasks created today, the one with most time tracked today.

    Running entries count up to ``now``.
    """
    todays_entries: List[Any] = [
        entry for entry in entries or []
        if local_day(getattr(entry, 'start_time', None), tz) == today
    ]

    best: Optional[AchievementOfDay] = None
    for task in tasks or []:
        if local_day(getattr(task, 'created_at', None), tz) != today:
            continue
        hours = 0.0
        for entry in todays_entries:
            if getattr(entry, 'task_id', None) != task.id:
                continue
            duration = entry_hours(entry, now, tz=tz)
            if duration is not None:
                hours += duration
        if hours > (best.value if best else 0):
            best = AchievementOfDay(
                kind=MOST_TIME_SPENT,
                task_id=task.id,
                task_title=task.title,
                value=hours,
            )
    return best
