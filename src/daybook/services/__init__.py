"""Analytics services for Daybook."""

from .periods import Period, DateRange, resolve_range
from .activity import DailyActivity, CompletionStats, aggregate_daily_activity
from .heatmap import HeatmapData, project_heatmap, project_snapshot_heatmap
from .achievements import (
    TaskAchievement,
    AchievementOfDay,
    find_most_time_spent_task,
    find_most_completed_task,
)
from .focus import FocusScore, compute_card_focus_score, compute_period_focus_score
from .metrics import ProductivityMetric, ProductivityMetrics, percentage_change
from .analytics import AnalyticsService, AnalyticsSnapshot

__all__ = [
    "Period",
    "DateRange",
    "resolve_range",
    "DailyActivity",
    "CompletionStats",
    "aggregate_daily_activity",
    "HeatmapData",
    "project_heatmap",
    "project_snapshot_heatmap",
    "TaskAchievement",
    "AchievementOfDay",
    "find_most_time_spent_task",
    "find_most_completed_task",
    "FocusScore",
    "compute_card_focus_score",
    "compute_period_focus_score",
    "ProductivityMetric",
    "ProductivityMetrics",
    "percentage_change",
    "AnalyticsService",
    "AnalyticsSnapshot",
]
