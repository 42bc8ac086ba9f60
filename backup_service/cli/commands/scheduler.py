"""Scheduler commands.

- Run the recurring backup in the foreground
- Show upcoming backup times
"""

from __future__ import annotations

import sys

import click
from pydantic import ValidationError

from backup_service.cli.utils import coro, error, header, info, success
from backup_service.core.exceptions import ConfigError
from backup_service.core.settings import get_backup_settings, load_settings
from backup_service.tasks.scheduler import next_run_times, run_scheduler


@click.group(name="scheduler")
def scheduler() -> None:
    """Scheduled backup commands."""


@scheduler.command(name="start")
@click.option(
    "--run-now",
    is_flag=True,
    default=False,
    help="Also run one backup immediately after starting",
)
@coro
async def start(run_now: bool) -> None:
    """Run the backup scheduler until interrupted (SIGINT/SIGTERM)."""
    try:
        settings = load_settings()
    except ConfigError as e:
        error(e.message)
        sys.exit(2)

    info(f"Backup schedule: {settings.backup.schedule}")
    try:
        await run_scheduler(settings, run_now=run_now)
    except ConfigError as e:
        error(e.message)
        sys.exit(2)
    success("Scheduler stopped")


@scheduler.command(name="next")
@click.option(
    "--count",
    type=click.IntRange(1, 100),
    default=5,
    show_default=True,
    help="Number of upcoming runs to show",
)
def next_runs(count: int) -> None:
    """Show when the next backups will run."""
    try:
        backup_settings = get_backup_settings()
        times = next_run_times(
            backup_settings.schedule,
            backup_settings.get_timezone(),
            count=count,
        )
    except (ConfigError, ValidationError) as e:
        error(f"Invalid schedule: {e}")
        sys.exit(2)

    header(f"Schedule: {backup_settings.schedule}")
    if not times:
        info("The schedule never fires")
        return
    for fire_time in times:
        click.echo(f"  {fire_time.isoformat()}")
