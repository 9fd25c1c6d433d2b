"""Read-only repositories over the task and time-entry stores.

The analytics core never talks to a store directly. It is handed a
``TaskRepository`` and a ``TimeEntryRepository`` and reads a full snapshot
of each collection on every call; filtering always happens client-side.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .domain import Task, TimeEntry

logger = logging.getLogger(__name__)


class DaybookError(Exception):
    """Base error for Daybook."""


class SnapshotLoadError(DaybookError):
    """A snapshot file could not be read or parsed."""


class TaskRepository(ABC):
    """Read access to the task store."""

    @abstractmethod
    def list_tasks(self) -> List[Task]:
        """Return every task currently in the store."""

    def get_task(self, task_id: str) -> Optional[Task]:
        """Look up a task by id; None when it no longer exists."""
        for task in self.list_tasks() or []:
            if task.id == task_id:
                return task
        return None


class TimeEntryRepository(ABC):
    """Read access to the time-entry store."""

    @abstractmethod
    def list_time_entries(self) -> List[TimeEntry]:
        """Return every tracked interval currently in the store."""


class InMemoryTaskRepository(TaskRepository):
    """Task repository backed by a list held in process memory."""

    def __init__(self, tasks: Optional[Iterable[Task]] = None):
        self._tasks = list(tasks or [])

    def list_tasks(self) -> List[Task]:
        # Hand out a copy so callers cannot reorder or shrink the store
        return list(self._tasks)

    def add(self, task: Task) -> None:
        self._tasks.append(task)


class InMemoryTimeEntryRepository(TimeEntryRepository):
    """Time-entry repository backed by a list held in process memory."""

    def __init__(self, entries: Optional[Iterable[TimeEntry]] = None):
        self._entries = list(entries or [])

    def list_time_entries(self) -> List[TimeEntry]:
        return list(self._entries)

    def add(self, entry: TimeEntry) -> None:
        self._entries.append(entry)


def parse_snapshot(data: Dict[str, Any]) -> Tuple[List[Task], List[TimeEntry]]:
    """Build task and time-entry records from a snapshot document.

    Individual records that are not mappings are skipped with a warning so
    one bad row does not hide the rest of the data.
    """
    if not isinstance(data, dict):
        raise SnapshotLoadError("Snapshot root must be a JSON object")

    tasks: List[Task] = []
    for raw in data.get("tasks") or []:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping malformed task record: {raw!r}")
            continue
        tasks.append(Task.from_dict(raw))

    entries: List[TimeEntry] = []
    for raw in data.get("timeEntries", data.get("time_entries")) or []:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping malformed time entry: {raw!r}")
            continue
        entries.append(TimeEntry.from_dict(raw))

    return tasks, entries


def load_snapshot(path: Path) -> Tuple[InMemoryTaskRepository, InMemoryTimeEntryRepository]:
    """Load a JSON snapshot file into in-memory repositories.

    Raises:
        SnapshotLoadError: If the file is missing or is not valid JSON.
    """
    path = Path(path)
    if not path.exists():
        raise SnapshotLoadError(f"Snapshot file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise SnapshotLoadError(f"Could not read snapshot {path}: {e}") from e

    tasks, entries = parse_snapshot(data)
    logger.debug(f"Loaded {len(tasks)} tasks and {len(entries)} time entries from {path}")
    return InMemoryTaskRepository(tasks), InMemoryTimeEntryRepository(entries)


def save_snapshot(path: Path, tasks: Iterable[Task], entries: Iterable[TimeEntry]) -> None:
    """Write tasks and time entries to a JSON snapshot file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "tasks": [task.to_dict() for task in tasks],
        "timeEntries": [entry.to_dict() for entry in entries],
    }
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, default=str)
