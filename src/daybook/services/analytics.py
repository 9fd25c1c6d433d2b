"""Analytics service: the public boundary of the analytics core.

``AnalyticsService`` reads tasks and time entries through injected
repositories and offers two tiers:

- a snapshot tier. ``recalculate_snapshot()`` recomputes a rolling window
  (90 days by default) with this-week metrics and the achievement of the
  day, then swaps a new immutable ``AnalyticsSnapshot`` in under a lock.
  Readers of ``snapshot`` see either the old or the new result, never a
  half-built one, and see stale data until someone recalculates.
- a query tier. ``get_daily_activities()``, ``get_heatmap_data()`` and the
  other getters recompute from the repositories on every call and cache
  nothing.

No exception leaves a public method. Failures are logged and the method
returns its documented fallback (empty list, None or zero).
"""

import functools
import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..config import ConfigModel, get_config
from ..domain import Task, TimeEntry
from ..storage import TaskRepository, TimeEntryRepository
from ..utils.datetime import now_utc, to_date, to_iso_string
from .achievements import (
    AchievementOfDay,
    TaskAchievement,
    find_achievement_of_day,
    find_most_completed_task,
    find_most_time_spent_task,
)
from .activity import (
    CompletionStats,
    DailyActivity,
    aggregate_daily_activity,
    compute_completion_stats,
)
from .focus import (
    ERROR_MESSAGE,
    MS_PER_SECOND,
    FocusScore,
    average_time_per_task,
    compute_card_focus_score,
    compute_period_focus_score,
    task_completion_rate,
)
from .heatmap import HeatmapData, project_heatmap, project_snapshot_heatmap
from .metrics import ProductivityMetrics, compute_productivity_metrics, empty_metrics
from .periods import DateRange, Period, resolve_range, trailing_range

logger = logging.getLogger(__name__)

PeriodArg = Union[Period, str, None]
DateArg = Union[date, datetime, str, None]


def fallback_on_error(default: Any):
    """Return ``default`` (or ``default()`` if callable) when the call fails.

    The exception is logged with its traceback and never propagates.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception:
                logger.exception(f"Error in {func.__name__}; returning fallback")
                return default() if callable(default) else default
        return wrapper
    return decorator


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Result of the last rolling-window recalculation"""
    daily_activity: Tuple[DailyActivity, ...] = ()
    heatmap_data: Tuple[HeatmapData, ...] = ()
    today: Optional[DailyActivity] = None
    metrics: ProductivityMetrics = field(default_factory=empty_metrics)
    achievement_of_day: Optional[AchievementOfDay] = None
    calculated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'dailyActivity': [day.to_dict() for day in self.daily_activity],
            'heatmapData': [cell.to_dict() for cell in self.heatmap_data],
            'today': self.today.to_dict() if self.today else None,
            'productivityMetrics': self.metrics.to_dict(),
            'achievementOfDay': self.achievement_of_day.to_dict() if self.achievement_of_day else None,
            'calculatedAt': to_iso_string(self.calculated_at),
        }


class AnalyticsService:
    """Derives activity, heatmap, focus and achievement data on demand"""

    def __init__(self, task_repository: Optional[TaskRepository],
                 time_entry_repository: Optional[TimeEntryRepository],
                 config: Optional[ConfigModel] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.task_repository = task_repository
        self.time_entry_repository = time_entry_repository
        self.config = config or get_config()
        self.clock = clock or now_utc
        self.tz = self.config.tz
        self._lock = threading.Lock()
        self._snapshot = AnalyticsSnapshot()

    # Inputs

    def _tasks(self) -> List[Task]:
        if self.task_repository is None:
            return []
        return list(self.task_repository.list_tasks() or [])

    def _entries(self) -> List[TimeEntry]:
        if self.time_entry_repository is None:
            return []
        return list(self.time_entry_repository.list_time_entries() or [])

    def _lookup_task(self, task_id: str) -> Optional[Task]:
        if self.task_repository is None:
            return None
        return self.task_repository.get_task(task_id)

    def _now(self) -> datetime:
        return self.clock()

    def today(self) -> date:
        return self._now().astimezone(self.tz).date()

    def _range(self, period: PeriodArg, reference_date: DateArg) -> DateRange:
        reference = to_date(reference_date, self.tz) if reference_date is not None else None
        if reference is None:
            if reference_date is not None:
                logger.warning(f"Unusable reference date {reference_date!r}; using today")
            reference = self.today()
        return resolve_range(period, reference)

    # Snapshot tier

    @property
    def snapshot(self) -> AnalyticsSnapshot:
        """Last recalculated snapshot (empty until the first recalculation)."""
        with self._lock:
            return self._snapshot

    def recalculate_snapshot(self) -> None:
        """Recompute the rolling window and publish it as the new snapshot."""
        try:
            snapshot = self._build_snapshot()
        except Exception:
            logger.exception("Error recalculating analytics snapshot; publishing empty state")
            snapshot = AnalyticsSnapshot(calculated_at=self._safe_now())

        with self._lock:
            self._snapshot = snapshot

    calculate_analytics = recalculate_snapshot

    def _safe_now(self) -> Optional[datetime]:
        try:
            return self._now()
        except Exception:
            return None

    def _build_snapshot(self) -> AnalyticsSnapshot:
        now = self._now()
        today = now.astimezone(self.tz).date()
        tasks = self._tasks()
        entries = self._entries()

        window = trailing_range(today, self.config.snapshot_days)
        daily = aggregate_daily_activity(
            tasks, entries, window, now, self.tz, attribute_completion_day=False
        )
        metrics = compute_productivity_metrics(
            daily, tasks, today, self.config.focus_score_baseline
        )
        achievement = find_achievement_of_day(tasks, entries, today, now, self.tz)

        logger.info(
            f"Recalculated analytics over {len(daily)} days "
            f"({len(tasks)} tasks, {len(entries)} time entries)"
        )
        return AnalyticsSnapshot(
            daily_activity=tuple(daily),
            heatmap_data=tuple(project_snapshot_heatmap(daily)),
            today=daily[-1] if daily else None,
            metrics=metrics,
            achievement_of_day=achievement,
            calculated_at=now,
        )

    # Query tier

    @fallback_on_error(list)
    def get_daily_activities(self, period: PeriodArg = Period.WEEK,
                             reference_date: DateArg = None) -> List[DailyActivity]:
        """One bucket per calendar day of the period containing the date."""
        date_range = self._range(period, reference_date)
        return aggregate_daily_activity(
            self._tasks(), self._entries(), date_range, self._now(), self.tz
        )

    @fallback_on_error(list)
    def get_heatmap_data(self, period: PeriodArg = Period.YEAR,
                         reference_date: DateArg = None) -> List[HeatmapData]:
        """Intensity per day of the period (see ``heatmap`` for the scale)."""
        activities = self.get_daily_activities(period, reference_date)
        heatmap = project_heatmap(activities)
        logger.debug(
            f"Heatmap for {period}: {sum(1 for cell in heatmap if cell.count)} "
            f"of {len(heatmap)} days with contributions"
        )
        return heatmap

    @fallback_on_error(None)
    def get_most_time_spent_task(self, period: PeriodArg = Period.WEEK,
                                 reference_date: DateArg = None) -> Optional[TaskAchievement]:
        return find_most_time_spent_task(
            self._entries(), self._range(period, reference_date), self._lookup_task, self.tz
        )

    @fallback_on_error(None)
    def get_most_completed_task(self, period: PeriodArg = Period.WEEK,
                                reference_date: DateArg = None) -> Optional[TaskAchievement]:
        return find_most_completed_task(
            self._tasks(), self._range(period, reference_date), self.tz
        )

    @fallback_on_error(0.0)
    def get_task_completion_rate(self, period: PeriodArg = Period.WEEK,
                                 reference_date: DateArg = None) -> float:
        """Percentage (0-100) of tasks created in the period that are done."""
        return task_completion_rate(self._tasks(), self._range(period, reference_date), self.tz)

    @fallback_on_error(0.0)
    def get_average_time_per_task(self, period: PeriodArg = Period.WEEK,
                                  reference_date: DateArg = None) -> float:
        """Average milliseconds tracked per task worked on in the period."""
        return average_time_per_task(
            self._entries(), self._range(period, reference_date), self._now(), self.tz
        )

    @fallback_on_error(0)
    def get_focus_score(self, period: PeriodArg = Period.WEEK,
                        reference_date: DateArg = None) -> int:
        """Period-scoped focus score (0-100)."""
        optimal_ms = self.config.optimal_task_minutes * 60 * MS_PER_SECOND
        return compute_period_focus_score(
            self.get_task_completion_rate(period, reference_date),
            self.get_average_time_per_task(period, reference_date),
            optimal_ms,
        )

    @fallback_on_error(lambda: FocusScore(score=0, message=ERROR_MESSAGE))
    def card_focus_score(self, daily_activities: Optional[List[DailyActivity]]) -> FocusScore:
        """Focus card score for a list of daily buckets."""
        return compute_card_focus_score(list(daily_activities or []), self.config.consistency_days)

    @fallback_on_error(lambda: compute_completion_stats([]))
    def get_completion_stats(self, period: PeriodArg = Period.WEEK,
                             reference_date: DateArg = None) -> CompletionStats:
        return compute_completion_stats(self.get_daily_activities(period, reference_date))
