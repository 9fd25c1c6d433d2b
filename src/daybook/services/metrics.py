"""Week-over-week productivity metrics from the rolling snapshot."""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List

from .activity import DailyActivity, is_completed

WEEK_DAYS = 7


@dataclass(frozen=True)
class ProductivityMetric:
    """A headline number with its change from the previous period"""
    label: str
    value: float
    change: int  # percentage points vs. previous period

    def to_dict(self) -> Dict[str, Any]:
        return {'label': self.label, 'value': self.value, 'change': self.change}


@dataclass(frozen=True)
class ProductivityMetrics:
    tasks_completed: ProductivityMetric
    time_tracked: ProductivityMetric
    focus_score: ProductivityMetric

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tasksCompleted': self.tasks_completed.to_dict(),
            'timeTracked': self.time_tracked.to_dict(),
            'focusScore': self.focus_score.to_dict(),
        }


def empty_metrics() -> ProductivityMetrics:
    return ProductivityMetrics(
        tasks_completed=ProductivityMetric('Tasks Completed', 0, 0),
        time_tracked=ProductivityMetric('Time Tracked (hrs)', 0, 0),
        focus_score=ProductivityMetric('Focus Score', 0, 0),
    )


def percentage_change(current: float, previous: float) -> int:
    """Rounded percentage change from ``previous`` to ``current``.

    A move away from zero counts as 100; zero to zero is no change.
    """
    if previous == 0:
        return 100 if current else 0
    return int(round((current - previous) / previous * 100))


def window_totals(daily_activity: List[DailyActivity], start: date, end: date):
    """Completed tasks and tracked hours for days in [start, end]."""
    days = [day for day in daily_activity if start <= day.date <= end]
    return (
        sum(day.completed_count for day in days),
        sum(day.hours_spent for day in days),
    )


def snapshot_focus_score(daily_activity: List[DailyActivity], all_tasks: Iterable[Any]) -> int:
    """Average of the all-time completion rate and tracked-day consistency.

    Completion rate is taken over every task in the store, not just the
    snapshot window; consistency is the share of snapshot days with any
    tracked time.
    """
    tasks = list(all_tasks or [])
    completion_rate = (
        sum(1 for task in tasks if is_completed(task)) / len(tasks) * 100 if tasks else 0.0
    )
    tracked_consistency = (
        sum(1 for day in daily_activity if day.hours_spent > 0) / len(daily_activity) * 100
        if daily_activity else 0.0
    )
    return int(round((completion_rate + tracked_consistency) / 2))


def compute_productivity_metrics(daily_activity: List[DailyActivity], all_tasks: Iterable[Any],
                                 today: date, focus_baseline: int = 50) -> ProductivityMetrics:
    """This week's totals against the seven days before them.

    "This week" is the seven days ending today; the previous window is the
    seven days before that.
    """
    this_start = today - timedelta(days=WEEK_DAYS - 1)
    prev_end = this_start - timedelta(days=1)
    prev_start = prev_end - timedelta(days=WEEK_DAYS - 1)

    completed_now, hours_now = window_totals(daily_activity, this_start, today)
    completed_prev, hours_prev = window_totals(daily_activity, prev_start, prev_end)
    focus = snapshot_focus_score(daily_activity, all_tasks)

    return ProductivityMetrics(
        tasks_completed=ProductivityMetric(
            label='Tasks Completed',
            value=completed_now,
            change=percentage_change(completed_now, completed_prev),
        ),
        time_tracked=ProductivityMetric(
            label='Time Tracked (hrs)',
            value=round(hours_now),
            change=percentage_change(hours_now, hours_prev),
        ),
        focus_score=ProductivityMetric(
            label='Focus Score',
            value=focus,
            change=focus - focus_baseline,
        ),
    )
