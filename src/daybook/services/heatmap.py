"""Contribution heatmap projection.

Heatmap cells carry an *intensity* score, not a count of events. Legends
should describe the scale as intensity. Two projections exist:

- ``project_heatmap`` (period queries): ``max(completed * 2, created)``,
  weighting completions double so finished work dominates
- ``project_snapshot_heatmap`` (rolling snapshot): ``completed +
  floor(hours)``

They disagree for the same day. Both are kept until the product decides
which one the calendar grid should show.
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List

from .activity import DailyActivity

# Upper bounds of legend levels 0..3; anything above the last is level 4
INTENSITY_THRESHOLDS = (0, 2, 5, 10)


@dataclass(frozen=True)
class HeatmapData:
    """Intensity of a single heatmap cell"""
    date: date
    count: int

    @property
    def level(self) -> int:
        return intensity_level(self.count)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'count': self.count,
            'level': self.level,
        }


def intensity_level(count: int) -> int:
    """Map an intensity score to a 0-4 legend bucket."""
    for level, upper in enumerate(INTENSITY_THRESHOLDS):
        if count <= upper:
            return level
    return len(INTENSITY_THRESHOLDS)


def project_heatmap(daily_activities: List[DailyActivity]) -> List[HeatmapData]:
    """Intensity per day for period-scoped heatmaps."""
    return [
        HeatmapData(date=day.date, count=max(day.completed_count * 2, day.task_count))
        for day in daily_activities
    ]


def project_snapshot_heatmap(daily_activities: List[DailyActivity]) -> List[HeatmapData]:
    """Intensity per day for the rolling snapshot."""
    return [
        HeatmapData(date=day.date, count=day.completed_count + math.floor(day.hours_spent))
        for day in daily_activities
    ]
