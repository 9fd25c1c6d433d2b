"""CLI Analytics Commands for Daybook.

Every command reads a JSON snapshot of the task and time-entry stores,
builds an ``AnalyticsService`` over it and prints the result as a table or
as JSON.
"""

import json
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
import tabulate

from ..config import get_config
from ..services.analytics import AnalyticsService
from ..services.periods import Period
from ..storage import SnapshotLoadError, load_snapshot

PERIOD_CHOICES = [p.value for p in Period]


def get_service(data_path: Optional[str]) -> AnalyticsService:
    """Build an analytics service over a snapshot file."""
    config = get_config()
    path = Path(data_path) if data_path else config.get_snapshot_path()
    tasks, entries = load_snapshot(path)
    return AnalyticsService(tasks, entries, config=config)


# Console formatting helpers
def format_metric(value: float, unit: str = "", format_spec: str = ".1f") -> str:
    """Format a metric value with proper units"""
    formatted = f"{value:{format_spec}}"
    return f"{formatted}{unit}" if unit else formatted


def format_day(day: date, date_format: str) -> str:
    """Render a bucket date with the configured format"""
    try:
        return day.strftime(date_format)
    except (TypeError, ValueError):
        return day.isoformat()


def format_change(change: int) -> str:
    return f"+{change}%" if change > 0 else f"{change}%"


def format_table(data: List[Dict], headers: Optional[List[str]] = None,
                 tablefmt: str = "simple") -> str:
    """Format data as a table"""
    if not data:
        return "No data available"

    if headers is None:
        headers = "keys"

    return tabulate.tabulate(data, headers=headers, tablefmt=tablefmt)


def print_section(title: str, content: str = ""):
    """Print a formatted section"""
    click.echo(f"\n{title}")
    click.echo("-" * len(title))
    if content:
        click.echo(content)


def emit(payload: Any, output_format: str, text: str):
    if output_format == 'json':
        click.echo(json.dumps(payload, indent=2, default=str))
    else:
        click.echo(text)


def common_options(func):
    """--period, --date, --format and --data shared by query commands."""
    func = click.option('--data', '-d', 'data_path', type=click.Path(dir_okay=False),
                        help='Snapshot JSON file (defaults to <data_dir>/snapshot.json)')(func)
    func = click.option('--format', '-f', 'output_format', type=click.Choice(['text', 'json']),
                        default='text', help='Output format')(func)
    func = click.option('--date', 'reference_date', type=click.DateTime(formats=['%Y-%m-%d']),
                        default=None, help='Reference date (defaults to today)')(func)
    func = click.option('--period', '-p', type=click.Choice(PERIOD_CHOICES),
                        default='week', help='Aggregation period')(func)
    return func


def _reference(reference_date: Optional[datetime]):
    return reference_date.date() if reference_date else None


def _load_or_exit(data_path: Optional[str]) -> AnalyticsService:
    try:
        return get_service(data_path)
    except SnapshotLoadError as e:
        click.echo(f"Error loading data: {e}", err=True)
        sys.exit(1)


@click.group(name='analytics')
def analytics_cli():
    """Analytics and reporting commands"""
    pass


@analytics_cli.command(name='activity')
@common_options
def activity_command(period, reference_date, output_format, data_path):
    """Show tasks created, completed and hours tracked per day"""
    service = _load_or_exit(data_path)
    activities = service.get_daily_activities(period, _reference(reference_date))

    rows = [
        {
            'Date': format_day(day.date, service.config.date_format),
            'Created': day.task_count,
            'Completed': day.completed_count,
            'Hours': format_metric(day.hours_spent),
        }
        for day in activities
    ]
    emit([day.to_dict() for day in activities], output_format, format_table(rows))


@analytics_cli.command(name='heatmap')
@common_options
def heatmap_command(period, reference_date, output_format, data_path):
    """Show daily contribution intensity"""
    service = _load_or_exit(data_path)
    heatmap = service.get_heatmap_data(period, _reference(reference_date))

    rows = [
        {
            'Date': format_day(cell.date, service.config.date_format),
            'Intensity': cell.count,
            'Level': '#' * cell.level,
        }
        for cell in heatmap
    ]
    text = format_table(rows)
    text += "\n\nIntensity weighs completions double; it is not a count of events."
    emit([cell.to_dict() for cell in heatmap], output_format, text)


@analytics_cli.command(name='achievements')
@common_options
def achievements_command(period, reference_date, output_format, data_path):
    """Show the most tracked and most completed tasks"""
    service = _load_or_exit(data_path)
    reference = _reference(reference_date)
    most_time = service.get_most_time_spent_task(period, reference)
    most_completed = service.get_most_completed_task(period, reference)

    payload = {
        'mostTimeSpent': most_time.to_dict() if most_time else None,
        'mostCompleted': most_completed.to_dict() if most_completed else None,
    }
    rows = [
        {
            'Achievement': 'Most time spent',
            'Task': most_time.task_name if most_time else '-',
            'Value': format_metric(most_time.hours, 'h') if most_time else '-',
        },
        {
            'Achievement': 'Most completed',
            'Task': most_completed.task_name if most_completed else '-',
            'Value': f"{most_completed.count}x" if most_completed else '-',
        },
    ]
    emit(payload, output_format, format_table(rows))


@analytics_cli.command(name='focus')
@common_options
def focus_command(period, reference_date, output_format, data_path):
    """Show focus scores and completion statistics"""
    service = _load_or_exit(data_path)
    reference = _reference(reference_date)
    activities = service.get_daily_activities(period, reference)
    card = service.card_focus_score(activities)
    stats = service.get_completion_stats(period, reference)
    period_score = service.get_focus_score(period, reference)
    avg_ms = service.get_average_time_per_task(period, reference)

    payload = {
        'focus': card.to_dict(),
        'periodFocusScore': period_score,
        'completionRate': service.get_task_completion_rate(period, reference),
        'averageTimePerTaskMs': avg_ms,
        'stats': stats.to_dict(),
    }
    rows = [
        {'Metric': 'Focus Score', 'Value': f"{card.score}/100"},
        {'Metric': 'Period Focus Score', 'Value': f"{period_score}/100"},
        {'Metric': 'Completion Rate', 'Value': f"{stats.completion_rate}%"},
        {'Metric': 'Tasks Completed', 'Value': f"{stats.completed_tasks}/{stats.total_tasks}"},
        {'Metric': 'Hours Tracked', 'Value': format_metric(stats.total_hours, 'h')},
        {'Metric': 'Avg Time per Task', 'Value': format_metric(avg_ms / 60000, 'm')},
        {'Metric': 'Avg Tasks per Day', 'Value': format_metric(stats.average_tasks_per_day)},
    ]
    emit(payload, output_format, f"{format_table(rows)}\n\n{card.message}")


@analytics_cli.command(name='metrics')
@click.option('--format', '-f', 'output_format', type=click.Choice(['text', 'json']),
              default='text', help='Output format')
@click.option('--data', '-d', 'data_path', type=click.Path(dir_okay=False),
              help='Snapshot JSON file (defaults to <data_dir>/snapshot.json)')
def metrics_command(output_format, data_path):
    """Recalculate the rolling snapshot and show this week's metrics"""
    service = _load_or_exit(data_path)
    service.recalculate_snapshot()
    snapshot = service.snapshot

    metrics = snapshot.metrics
    rows = [
        {'Metric': m.label, 'Value': m.value, 'Change': format_change(m.change)}
        for m in (metrics.tasks_completed, metrics.time_tracked, metrics.focus_score)
    ]
    text = format_table(rows)
    achievement = snapshot.achievement_of_day
    if achievement:
        text += f"\n\nAchievement of the day: {achievement.task_title} ({format_metric(achievement.value, 'h')})"
    emit(snapshot.to_dict(), output_format, text)


@analytics_cli.command(name='overview')
@common_options
@click.pass_context
def overview_command(ctx, period, reference_date, output_format, data_path):
    """Show activity totals, focus and achievements together"""
    if output_format == 'json':
        service = _load_or_exit(data_path)
        reference = _reference(reference_date)
        activities = service.get_daily_activities(period, reference)
        most_time = service.get_most_time_spent_task(period, reference)
        most_completed = service.get_most_completed_task(period, reference)
        payload = {
            'period': period,
            'stats': service.get_completion_stats(period, reference).to_dict(),
            'focus': service.card_focus_score(activities).to_dict(),
            'mostTimeSpent': most_time.to_dict() if most_time else None,
            'mostCompleted': most_completed.to_dict() if most_completed else None,
        }
        emit(payload, output_format, "")
        return

    print_section(f"Focus ({period})")
    ctx.invoke(focus_command, period=period, reference_date=reference_date,
               output_format=output_format, data_path=data_path)
    print_section("Achievements")
    ctx.invoke(achievements_command, period=period, reference_date=reference_date,
               output_format=output_format, data_path=data_path)
