"""Tests for the AnalyticsService boundary and snapshot tier."""

from datetime import date, datetime, timedelta

import pytest

from daybook.config import ConfigModel
from daybook.domain import TaskStatus
from daybook.services.analytics import AnalyticsService, AnalyticsSnapshot
from daybook.services.focus import ERROR_MESSAGE
from daybook.services.periods import Period
from daybook.storage import (
    InMemoryTaskRepository,
    InMemoryTimeEntryRepository,
    TaskRepository,
    TimeEntryRepository,
    parse_snapshot,
)

from conftest import make_entry, make_task, utc


class BrokenTaskRepository(TaskRepository):
    def list_tasks(self):
        raise RuntimeError("store unavailable")


class NoneTimeEntryRepository(TimeEntryRepository):
    def list_time_entries(self):
        return None


@pytest.fixture
def sample_data():
    tasks = [
        make_task("a", "Write report", created=utc(2024, 3, 11, 9), completed=utc(2024, 3, 12, 15),
                  status=TaskStatus.COMPLETED),
        make_task("b", "Review PRs", created=utc(2024, 3, 12, 9)),
        make_task("c", "Standup", created=utc(2024, 3, 13, 9), completed=utc(2024, 3, 13, 9, 15),
                  status=TaskStatus.COMPLETED),
    ]
    entries = [
        make_entry("1", "a", utc(2024, 3, 11, 10), utc(2024, 3, 11, 13)),
        make_entry("2", "a", utc(2024, 3, 12, 10), utc(2024, 3, 12, 10, 30)),
        make_entry("3", "b", utc(2024, 3, 12, 14), utc(2024, 3, 12, 16)),
        make_entry("4", "c", utc(2024, 3, 13, 11)),  # running since 11:00
    ]
    return tasks, entries


@pytest.fixture
def service(sample_data, config, clock):
    tasks, entries = sample_data
    return AnalyticsService(
        InMemoryTaskRepository(tasks),
        InMemoryTimeEntryRepository(entries),
        config=config,
        clock=clock,
    )


class TestQueryTier:
    """Always-fresh getters"""

    def test_daily_activities_for_week(self, service):
        activities = service.get_daily_activities(Period.WEEK, date(2024, 3, 13))
        assert len(activities) == 7
        days = {day.date: day for day in activities}
        assert days[date(2024, 3, 11)].task_count == 1
        assert days[date(2024, 3, 11)].hours_spent == pytest.approx(3.0)
        assert days[date(2024, 3, 12)].completed_count == 1
        assert days[date(2024, 3, 12)].hours_spent == pytest.approx(2.5)
        assert days[date(2024, 3, 13)].hours_spent == pytest.approx(1.0)

    def test_reference_date_defaults_to_today(self, service):
        activities = service.get_daily_activities("week")
        assert activities[0].date == date(2024, 3, 11)
        assert activities[-1].date == date(2024, 3, 17)

    def test_string_reference_date(self, service):
        assert service.get_daily_activities("month", "2024-02-10")[-1].date == date(2024, 2, 29)

    def test_unknown_period_uses_trailing_window(self, service):
        activities = service.get_daily_activities("decade", date(2024, 3, 13))
        assert len(activities) == 8
        assert activities[0].date == date(2024, 3, 6)

    def test_getters_are_idempotent(self, service):
        first = service.get_heatmap_data("week", date(2024, 3, 13))
        second = service.get_heatmap_data("week", date(2024, 3, 13))
        assert first == second
        assert service.get_most_completed_task("week", date(2024, 3, 13)) == \
            service.get_most_completed_task("week", date(2024, 3, 13))

    def test_running_entry_grows_between_calls(self, service, clock):
        before = service.get_daily_activities("day", date(2024, 3, 13))[0].hours_spent
        clock.advance(minutes=45)
        after = service.get_daily_activities("day", date(2024, 3, 13))[0].hours_spent
        assert after - before == pytest.approx(0.75)

    def test_heatmap(self, service):
        cells = {cell.date: cell.count for cell in service.get_heatmap_data("week", date(2024, 3, 13))}
        assert cells[date(2024, 3, 11)] == 2  # created + completed later counts there too
        assert cells[date(2024, 3, 12)] == 2
        assert cells[date(2024, 3, 13)] == 2

    def test_achievements(self, service):
        most_time = service.get_most_time_spent_task("week", date(2024, 3, 13))
        assert most_time.task_name == "Write report"
        assert most_time.hours == pytest.approx(3.5)
        most_completed = service.get_most_completed_task("week", date(2024, 3, 13))
        assert most_completed.count == 1
        assert most_completed.task_name == "Write report"

    def test_most_time_spent_resolves_through_repository(self, sample_data, config, clock):
        tasks, entries = sample_data

        class LookupOnlyRepository(TaskRepository):
            def list_tasks(self):
                return []

            def get_task(self, task_id):
                return next((task for task in tasks if task.id == task_id), None)

        service = AnalyticsService(LookupOnlyRepository(), InMemoryTimeEntryRepository(entries),
                                   config=config, clock=clock)
        assert service.get_most_time_spent_task("week", date(2024, 3, 13)).task_name == "Write report"

    def test_completion_rate_and_average_time(self, service):
        assert service.get_task_completion_rate("week", date(2024, 3, 13)) == pytest.approx(200 / 3)
        # a: 3.5h, b: 2h, c: 1h running
        assert service.get_average_time_per_task("week", date(2024, 3, 13)) == pytest.approx(6.5 / 3 * 3600 * 1000)

    def test_period_focus_score_in_bounds(self, service):
        score = service.get_focus_score("week", date(2024, 3, 13))
        assert isinstance(score, int)
        assert 0 <= score <= 100

    def test_card_focus_score_and_stats(self, service):
        activities = service.get_daily_activities("week", date(2024, 3, 13))
        focus = service.card_focus_score(activities)
        assert 0 <= focus.score <= 100
        stats = service.get_completion_stats("week", date(2024, 3, 13))
        assert stats.total_tasks == 3
        assert stats.completed_tasks == 3

    def test_card_focus_score_with_no_input(self, service):
        assert service.card_focus_score(None).score == 0

    def test_repositories_are_not_mutated(self, service, sample_data):
        tasks, entries = sample_data
        snapshot = (list(tasks), list(entries))
        service.get_daily_activities("year", date(2024, 3, 13))
        service.recalculate_snapshot()
        assert (tasks, entries) == snapshot


class TestErrorFallbacks:
    """No exception crosses the public boundary"""

    @pytest.fixture
    def broken(self, config, clock):
        return AnalyticsService(BrokenTaskRepository(), InMemoryTimeEntryRepository(), config=config, clock=clock)

    def test_fallback_values(self, broken):
        assert broken.get_daily_activities("week", date(2024, 3, 13)) == []
        assert broken.get_heatmap_data("week", date(2024, 3, 13)) == []
        assert broken.get_most_time_spent_task("week", date(2024, 3, 13)) is None
        assert broken.get_most_completed_task("week", date(2024, 3, 13)) is None
        assert broken.get_task_completion_rate("week", date(2024, 3, 13)) == 0
        assert broken.get_focus_score("week", date(2024, 3, 13)) == 0

    def test_failure_is_logged(self, broken, caplog):
        broken.get_most_completed_task("week", date(2024, 3, 13))
        assert "get_most_completed_task" in caplog.text

    def test_failed_recalculation_publishes_empty_snapshot(self, broken):
        broken.recalculate_snapshot()
        assert broken.snapshot.daily_activity == ()
        assert broken.snapshot.metrics.focus_score.value == 0

    def test_card_focus_fallback_message(self, service):
        assert service.card_focus_score([object()]).message == ERROR_MESSAGE

    def test_missing_collections_count_as_empty(self, config, clock):
        service = AnalyticsService(None, NoneTimeEntryRepository(), config=config, clock=clock)
        activities = service.get_daily_activities("week", date(2024, 3, 13))
        assert len(activities) == 7
        assert all(not day.has_activity for day in activities)

    def test_unusable_reference_date_falls_back_to_today(self, service):
        activities = service.get_daily_activities("day", "yesterday-ish")
        assert activities[0].date == date(2024, 3, 13)


class TestSnapshotTier:
    """Explicitly recalculated rolling window"""

    def test_empty_before_first_recalculation(self, service):
        assert service.snapshot == AnalyticsSnapshot()
        assert service.snapshot.metrics.tasks_completed.value == 0

    def test_recalculate(self, service):
        service.recalculate_snapshot()
        snapshot = service.snapshot

        assert len(snapshot.daily_activity) == 90
        assert snapshot.daily_activity[-1].date == date(2024, 3, 13)
        assert snapshot.daily_activity[0].date == date(2024, 3, 13) - timedelta(days=89)
        assert len(snapshot.heatmap_data) == 90
        assert snapshot.today.date == date(2024, 3, 13)
        # a (completed the day after creation) and c each count once
        assert snapshot.metrics.tasks_completed.value == 2
        assert snapshot.metrics.tasks_completed.change == 100
        assert snapshot.metrics.time_tracked.value == 6
        assert snapshot.calculated_at == utc(2024, 3, 13, 12, 0)

    def test_task_completed_later_counts_once(self, config, clock):
        tasks = [make_task("a", created=utc(2024, 3, 10, 9), completed=utc(2024, 3, 12, 15),
                           status=TaskStatus.COMPLETED)]
        service = AnalyticsService(InMemoryTaskRepository(tasks), InMemoryTimeEntryRepository(),
                                   config=config, clock=clock)
        service.recalculate_snapshot()
        snapshot = service.snapshot

        assert snapshot.metrics.tasks_completed.value == 1
        days = {day.date: day.completed_count for day in snapshot.daily_activity}
        assert days[date(2024, 3, 10)] == 1
        assert days[date(2024, 3, 12)] == 0
        cells = {cell.date: cell.count for cell in snapshot.heatmap_data}
        assert cells[date(2024, 3, 12)] == 0

    def test_snapshot_heatmap_uses_whole_hours(self, service):
        service.recalculate_snapshot()
        cells = {cell.date: cell.count for cell in service.snapshot.heatmap_data}
        # one completion plus three tracked hours on Monday
        assert cells[date(2024, 3, 11)] == 4

    def test_snapshot_focus_score(self, service):
        service.recalculate_snapshot()
        focus = service.snapshot.metrics.focus_score
        # 2 of 3 tasks completed, 3 of 90 days tracked
        assert focus.value == 35
        assert focus.change == focus.value - 50

    def test_achievement_of_day(self, service):
        service.recalculate_snapshot()
        achievement = service.snapshot.achievement_of_day
        assert achievement.task_id == "c"
        assert achievement.value == pytest.approx(1.0)

    def test_snapshot_is_stale_until_recalculated(self, service, clock, sample_data):
        service.calculate_analytics()
        first = service.snapshot
        service.task_repository.add(make_task("d", created=utc(2024, 3, 13, 10)))
        assert service.snapshot is first
        service.recalculate_snapshot()
        assert service.snapshot is not first
        assert service.snapshot.today.task_count == first.today.task_count + 1

    def test_snapshot_window_follows_config(self, sample_data, config, clock):
        config.snapshot_days = 14
        tasks, entries = sample_data
        service = AnalyticsService(InMemoryTaskRepository(tasks), InMemoryTimeEntryRepository(entries),
                                   config=config, clock=clock)
        service.recalculate_snapshot()
        assert len(service.snapshot.daily_activity) == 14

    def test_serializes(self, service):
        service.recalculate_snapshot()
        data = service.snapshot.to_dict()
        assert data['productivityMetrics']['tasksCompleted']['label'] == 'Tasks Completed'
        assert data['achievementOfDay']['taskTitle'] == 'Standup'
        assert data['dailyActivity'][-1]['date'] == '2024-03-13'


class TestLocalTimestamps:
    """Naive and date-only timestamps are wall-clock time in the configured zone"""

    @pytest.fixture
    def eastern_config(self, tmp_path):
        return ConfigModel(data_dir=str(tmp_path), timezone="America/New_York")

    def test_naive_midnight_stays_on_its_day(self, eastern_config, clock):
        tasks = [make_task("a", created=datetime(2024, 3, 12, 0, 0))]
        service = AnalyticsService(InMemoryTaskRepository(tasks), InMemoryTimeEntryRepository(),
                                   config=eastern_config, clock=clock)
        days = {day.date: day.task_count for day in service.get_daily_activities("week", date(2024, 3, 13))}
        assert days[date(2024, 3, 12)] == 1
        assert days[date(2024, 3, 11)] == 0

    def test_date_only_string_stays_on_its_day(self, eastern_config, clock):
        tasks, _ = parse_snapshot({"tasks": [{"id": "a", "title": "x", "createdAt": "2024-03-12"}]})
        service = AnalyticsService(InMemoryTaskRepository(tasks), InMemoryTimeEntryRepository(),
                                   config=eastern_config, clock=clock)
        days = {day.date: day.task_count for day in service.get_daily_activities("week", date(2024, 3, 13))}
        assert days[date(2024, 3, 12)] == 1
        assert days[date(2024, 3, 11)] == 0

    def test_aware_timestamps_are_converted(self, eastern_config, clock):
        # 02:00 UTC on the 12th is still the evening of the 11th in New York
        tasks = [make_task("a", created=utc(2024, 3, 12, 2, 0))]
        service = AnalyticsService(InMemoryTaskRepository(tasks), InMemoryTimeEntryRepository(),
                                   config=eastern_config, clock=clock)
        days = {day.date: day.task_count for day in service.get_daily_activities("week", date(2024, 3, 13))}
        assert days[date(2024, 3, 11)] == 1

    def test_naive_entry_hours_use_local_clock(self, eastern_config, clock):
        # clock is 12:00 UTC, i.e. 08:00 in New York
        entries = [make_entry("1", "a", datetime(2024, 3, 13, 7, 0))]
        service = AnalyticsService(InMemoryTaskRepository(), InMemoryTimeEntryRepository(entries),
                                   config=eastern_config, clock=clock)
        assert service.get_daily_activities("day", date(2024, 3, 13))[0].hours_spent == pytest.approx(1.0)
