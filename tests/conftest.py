"""Pytest configuration and shared fixtures."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from daybook.config import Config, ConfigModel  # noqa: E402
from daybook.domain import Task, TaskStatus, TimeEntry  # noqa: E402
from daybook.storage import InMemoryTaskRepository, InMemoryTimeEntryRepository  # noqa: E402


class FakeClock:
    """Callable clock whose time only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_task(task_id, title=None, created=None, completed=None, status=TaskStatus.TODO):
    return Task(
        id=task_id,
        title=title or f"Task {task_id}",
        status=status,
        created_at=created,
        completed_at=completed,
    )


def make_entry(entry_id, task_id, start, end=None):
    return TimeEntry(id=entry_id, task_id=task_id, start_time=start, end_time=end)


@pytest.fixture
def clock():
    """Wednesday 2024-03-13, noon UTC."""
    return FakeClock(utc(2024, 3, 13, 12, 0))


@pytest.fixture
def config(tmp_path):
    return ConfigModel(data_dir=str(tmp_path))


@pytest.fixture(autouse=True)
def reset_config_singleton():
    Config._instance = None
    yield
    Config._instance = None


@pytest.fixture
def repositories():
    return InMemoryTaskRepository(), InMemoryTimeEntryRepository()
