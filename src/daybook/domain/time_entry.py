"""Tracked time interval as supplied by the time-entry store."""

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Optional

from ..utils.datetime import coerce_datetime, ensure_aware, now_utc, parse_timestamp


@dataclass
class TimeEntry:
    """Individual time tracking entry"""
    id: str
    start_time: Optional[datetime]
    end_time: Optional[datetime] = None
    task_id: Optional[str] = None

    def duration_seconds(self, now: Optional[datetime] = None,
                         tz: tzinfo = timezone.utc) -> Optional[float]:
        """Elapsed seconds, measuring a running entry up to ``now``.

        Naive timestamps are read as wall-clock time in ``tz``. Returns None
        when the start is missing or either timestamp is malformed. Negative
        intervals are clamped to zero.
        """
        start = coerce_datetime(self.start_time, tz)
        if start is None:
            return None
        if self.end_time is None:
            end = ensure_aware(now) if now else now_utc()
        else:
            end = coerce_datetime(self.end_time, tz)
            if end is None:
                return None
        return max((end - start).total_seconds(), 0.0)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'id': self.id,
            'taskId': self.task_id,
            'startTime': self.start_time.isoformat() if isinstance(self.start_time, datetime) else self.start_time,
            'endTime': self.end_time.isoformat() if isinstance(self.end_time, datetime) else self.end_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TimeEntry':
        """Create from dictionary"""
        start = data.get('startTime', data.get('start_time'))
        end = data.get('endTime', data.get('end_time'))
        task_id = data.get('taskId', data.get('task_id'))
        return cls(
            id=str(data.get('id', '')),
            task_id=str(task_id) if task_id is not None else None,
            start_time=parse_timestamp(start) or start,
            end_time=parse_timestamp(end) or end,
        )
