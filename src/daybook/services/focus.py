"""Focus scoring.

Two formulas are in use for "focus score" and they are kept apart on
purpose until product settles on one:

- ``compute_card_focus_score`` drives the focus card. It blends completion
  rate (30 points), consistency (40) and average daily hours (30).
- ``compute_period_focus_score`` backs the period-scoped score. It averages
  the completion rate with a bell curve over average time per task.

The consistency component counts every bucket handed in, whether or not
the day saw any activity. Since buckets exist for every day of the range,
that component is close to constant for a given range length.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Set

from ..utils.datetime import local_day
from .activity import DailyActivity, entry_hours, is_completed
from .periods import DateRange

logger = logging.getLogger(__name__)

COMPLETION_WEIGHT = 30
CONSISTENCY_WEIGHT = 40
PRODUCTIVITY_WEIGHT = 30

# Optimal focused hours per day for full productivity marks
OPTIMAL_HOURS_LOW = 4
OPTIMAL_HOURS_HIGH = 6
OVERWORK_PENALTY_PER_HOUR = 5

MS_PER_SECOND = 1000

EMPTY_MESSAGE = "Start tracking your productivity to see your focus score"
ERROR_MESSAGE = "Unable to calculate focus score. Please try again later."


@dataclass(frozen=True)
class FocusScore:
    """Focus card score and feedback"""
    score: int  # 0-100
    message: str

    @property
    def color(self) -> str:
        return score_color(self.score)

    def to_dict(self) -> Dict[str, Any]:
        return {'score': self.score, 'message': self.message, 'color': self.color}


def focus_message(score: int) -> str:
    """Qualitative feedback for a card focus score."""
    if score >= 85:
        return "Exceptional focus! You're in the productivity zone."
    elif score >= 70:
        return "Great focus habits forming. Keep it up!"
    elif score >= 50:
        return "Good progress. Try to improve consistency."
    return "Building focus takes time. Set small, achievable goals."


def score_color(score: int) -> str:
    if score >= 85:
        return "green"
    elif score >= 70:
        return "teal"
    elif score >= 50:
        return "yellow"
    return "red"


def completion_component(total_tasks: int, completed_tasks: int) -> float:
    if total_tasks <= 0:
        return 0.0
    return min(completed_tasks / total_tasks * COMPLETION_WEIGHT, COMPLETION_WEIGHT)


def consistency_component(days_active: int, consistency_days: int = 30) -> float:
    return min(days_active / consistency_days * CONSISTENCY_WEIGHT, CONSISTENCY_WEIGHT)


def productivity_component(avg_hours_per_day: float) -> float:
    """Bell-shaped score over average focused hours per day.

    Full marks between 4 and 6 hours, a linear ramp below, and a penalty of
    5 points per hour above.
    """
    if avg_hours_per_day <= 0:
        return 0.0
    if avg_hours_per_day < OPTIMAL_HOURS_LOW:
        return avg_hours_per_day / OPTIMAL_HOURS_LOW * PRODUCTIVITY_WEIGHT
    if avg_hours_per_day <= OPTIMAL_HOURS_HIGH:
        return float(PRODUCTIVITY_WEIGHT)
    overwork = avg_hours_per_day - OPTIMAL_HOURS_HIGH
    return max(PRODUCTIVITY_WEIGHT - overwork * OVERWORK_PENALTY_PER_HOUR, 0.0)


def compute_card_focus_score(daily_activities: List[DailyActivity],
                             consistency_days: int = 30) -> FocusScore:
    """Three-component focus score shown on the focus card."""
    if not daily_activities:
        logger.debug("No daily activity to score")
        return FocusScore(score=0, message=EMPTY_MESSAGE)

    total_tasks = sum(day.task_count or 0 for day in daily_activities)
    completed_tasks = sum(day.completed_count or 0 for day in daily_activities)
    # Bucket presence, not activity
    days_active = len(daily_activities)
    avg_hours = sum(day.hours_spent or 0 for day in daily_activities) / days_active

    total = (
        completion_component(total_tasks, completed_tasks)
        + consistency_component(days_active, consistency_days)
        + productivity_component(avg_hours)
    )
    score = int(round(total))
    return FocusScore(score=score, message=focus_message(score))


def task_completion_rate(tasks: Iterable[Any], date_range: DateRange,
                         tz: tzinfo = timezone.utc) -> float:
    """Percentage of tasks created in the range that are completed."""
    in_range = [
        task for task in tasks or []
        if date_range.contains(local_day(getattr(task, 'created_at', None), tz))
    ]
    if not in_range:
        return 0.0
    done = sum(1 for task in in_range if is_completed(task))
    return done / len(in_range) * 100


def average_time_per_task(entries: Iterable[Any], date_range: DateRange,
                          now: datetime, tz: tzinfo = timezone.utc) -> float:
    """Average milliseconds tracked per distinct task in the range.

    Entries are picked by start day; running entries count up to ``now``.
    """
    total_ms = 0.0
    task_ids: Set[Any] = set()
    for entry in entries or []:
        if not date_range.contains(local_day(getattr(entry, 'start_time', None), tz)):
            continue
        hours = entry_hours(entry, now, tz=tz)
        if hours is None:
            continue
        task_ids.add(getattr(entry, 'task_id', None))
        total_ms += hours * 3600 * MS_PER_SECOND

    if not task_ids:
        return 0.0
    return total_ms / len(task_ids)


def compute_period_focus_score(completion_rate: float, average_ms_per_task: float,
                               optimal_ms: float = 30 * 60 * MS_PER_SECOND) -> int:
    """Period-scoped focus score.

    Averages the completion rate with a time score that peaks when the
    average time per task hits ``optimal_ms`` and falls off either side.
    """
    if average_ms_per_task <= 0:
        time_score = 0.0
    else:
        spread = (average_ms_per_task - optimal_ms) / optimal_ms
        time_score = min(100.0, 100 * math.exp(-spread ** 2))
    return int(round((completion_rate + time_score) / 2))
