"""Task record as supplied by the task store."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..utils.datetime import parse_timestamp


class Priority(Enum):
    """Task priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(Enum):
    """Task status states."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class Task:
    """A task owned by the task store.

    Analytics only ever reads these. ``created_at`` and ``completed_at`` are
    left as supplied when they are not datetimes so that a malformed value
    can be skipped at aggregation time rather than rejected here. Naive
    datetimes are kept naive; they are local wall-clock times.
    """

    id: str
    title: str
    status: Union[TaskStatus, str] = TaskStatus.TODO
    priority: Priority = Priority.MEDIUM
    description: str = ""
    category_id: Optional[str] = None
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __post_init__(self):
        """Normalize enum fields."""
        if isinstance(self.status, str):
            try:
                self.status = TaskStatus(self.status)
            except ValueError:
                # Unknown statuses stay raw; they never count as completed
                pass
        if isinstance(self.priority, str):
            try:
                self.priority = Priority(self.priority)
            except ValueError:
                self.priority = Priority.MEDIUM

    def to_dict(self) -> Dict[str, Any]:
        """Convert the task to a snapshot dictionary."""
        status = self.status.value if isinstance(self.status, TaskStatus) else self.status
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": status,
            "priority": self.priority.value,
            "categoryId": self.category_id,
            "dueDate": _iso(self.due_date),
            "createdAt": _iso(self.created_at),
            "completedAt": _iso(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Create a task from a snapshot dictionary.

        Both camelCase keys (as exported by the desktop app) and snake_case
        keys are accepted.
        """
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title", ""),
            description=data.get("description") or "",
            status=data.get("status", TaskStatus.TODO.value),
            priority=data.get("priority", Priority.MEDIUM.value),
            category_id=_pick(data, "categoryId", "category_id"),
            due_date=parse_timestamp(_pick(data, "dueDate", "due_date")),
            created_at=_raw_timestamp(_pick(data, "createdAt", "created_at")),
            completed_at=_raw_timestamp(_pick(data, "completedAt", "completed_at")),
        )


def _pick(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _raw_timestamp(value: Any) -> Any:
    """Parse a timestamp if possible, otherwise keep the raw value."""
    parsed = parse_timestamp(value)
    return parsed if parsed is not None else value


def _iso(value: Any) -> Optional[str]:
    if isinstance(value, datetime):
        return value.isoformat()
    return value
