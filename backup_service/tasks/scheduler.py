"""APScheduler integration for the recurring backup.

The process owns one AsyncIOScheduler with a single cron job that calls
``BackupOrchestrator.run``. Coroutine jobs are dispatched as separate asyncio
tasks, so a slow dump or upload never delays the scheduler's own timer.

Overlapping runs: the job is registered with ``max_instances`` taken from
``BACKUP_MAX_CONCURRENT_RUNS`` (default 1). When a firing arrives while that
many runs are still executing, APScheduler skips it and logs a warning; the
orchestrator itself has no guard.

The immediate run queued by ``--run-now`` or ``BACKUP_RUN_ON_START`` is a
separate job (``backup_now``) with its own instance count, so ``max_instances``
does not keep it from overlapping a cron firing. Both runs would then write
the same same-day archive.

Run the scheduler in the foreground:
    backup-service scheduler start
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from datetime import datetime, timedelta, tzinfo
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from backup_service.backup.pipeline import BackupOrchestrator
from backup_service.core.exceptions import ConfigError

if TYPE_CHECKING:
    from backup_service.backup.models import PipelineOutcome
    from backup_service.core.settings import Settings

logger = logging.getLogger(__name__)

BACKUP_JOB_ID = "database_backup"
IMMEDIATE_JOB_ID = "backup_now"


def build_cron_trigger(expression: str, timezone: tzinfo | None = None) -> CronTrigger:
    """Build a CronTrigger from a crontab expression.

    Five fields are ``minute hour day month day_of_week``; six fields add a
    leading ``second`` field.

    Raises:
        ConfigError: If the expression has the wrong number of fields or a
            field cannot be parsed.
    """
    fields = expression.split()
    try:
        if len(fields) == 5:
            return CronTrigger.from_crontab(" ".join(fields), timezone=timezone)
        if len(fields) == 6:
            second, minute, hour, day, month, day_of_week = fields
            return CronTrigger(
                second=second,
                minute=minute,
                hour=hour,
                day=day,
                month=month,
                day_of_week=day_of_week,
                timezone=timezone,
            )
    except ValueError as e:
        raise ConfigError(f"Invalid cron expression {expression!r}: {e}") from e
    raise ConfigError(
        f"Invalid cron expression {expression!r}: expected 5 or 6 fields, got {len(fields)}"
    )


def next_run_times(
    expression: str,
    timezone: tzinfo | None = None,
    count: int = 5,
    start: datetime | None = None,
) -> list[datetime]:
    """List the next ``count`` firing times of a cron expression."""
    trigger = build_cron_trigger(expression, timezone)
    now = (start or datetime.now()).astimezone(trigger.timezone)
    times: list[datetime] = []
    previous: datetime | None = None
    for _ in range(count):
        fire_time = trigger.get_next_fire_time(previous, now)
        if fire_time is None:
            break
        times.append(fire_time)
        previous = fire_time
        now = fire_time + timedelta(microseconds=1)
    return times


# =============================================================================
# Job functions
# =============================================================================


async def _scheduled_backup(orchestrator: BackupOrchestrator) -> PipelineOutcome:
    logger.info("Starting scheduled backup process...")
    return await orchestrator.run()


async def _immediate_backup(orchestrator: BackupOrchestrator) -> PipelineOutcome:
    logger.info("Starting immediate backup process...")
    return await orchestrator.run()


# =============================================================================
# Scheduler management
# =============================================================================


def create_scheduler(
    settings: Settings,
    orchestrator: BackupOrchestrator | None = None,
) -> AsyncIOScheduler:
    """Create a scheduler with the recurring backup job registered.

    Raises:
        ConfigError: If the schedule expression is invalid.
    """
    orchestrator = orchestrator or BackupOrchestrator(settings)
    backup_settings = settings.backup

    scheduler = AsyncIOScheduler(
        job_defaults={
            "coalesce": True,  # Combine multiple pending executions into one
            "max_instances": backup_settings.max_concurrent_runs,
            "misfire_grace_time": backup_settings.misfire_grace_time,
        },
    )

    scheduler.add_job(
        func=_scheduled_backup,
        trigger=build_cron_trigger(backup_settings.schedule, backup_settings.get_timezone()),
        args=(orchestrator,),
        id=BACKUP_JOB_ID,
        name="Daily database backup",
        replace_existing=True,
    )
    logger.info(
        "Scheduled database backup",
        extra={
            "schedule": backup_settings.schedule,
            "timezone": backup_settings.schedule_timezone or "local",
            "max_instances": backup_settings.max_concurrent_runs,
        },
    )
    return scheduler


def trigger_now(scheduler: AsyncIOScheduler, orchestrator: BackupOrchestrator) -> None:
    """Queue a one-off backup run for immediate execution."""
    scheduler.add_job(
        func=_immediate_backup,
        args=(orchestrator,),
        id=IMMEDIATE_JOB_ID,
        name="Immediate database backup",
        replace_existing=True,
    )


async def run_scheduler(
    settings: Settings,
    *,
    orchestrator: BackupOrchestrator | None = None,
    run_now: bool = False,
    stop_event: asyncio.Event | None = None,
    install_signal_handlers: bool = True,
) -> None:
    """Run the backup scheduler until ``stop_event`` is set.

    SIGINT and SIGTERM set the stop event when signal handlers are installed.
    Otherwise the loop runs for the lifetime of the process.
    """
    orchestrator = orchestrator or BackupOrchestrator(settings)
    scheduler = create_scheduler(settings, orchestrator)
    stop_event = stop_event or asyncio.Event()

    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    if install_signal_handlers:
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
                loop.add_signal_handler(sig, stop_event.set)
                installed.append(sig)

    logger.info("Starting APScheduler")
    scheduler.start()
    job = scheduler.get_job(BACKUP_JOB_ID)
    if job is not None and job.next_run_time is not None:
        logger.info("Next backup at %s", job.next_run_time.isoformat())

    if run_now or settings.backup.run_on_start:
        trigger_now(scheduler, orchestrator)

    try:
        await stop_event.wait()
    finally:
        logger.info("Stopping APScheduler")
        scheduler.shutdown(wait=False)
        for sig in installed:
            loop.remove_signal_handler(sig)
        logger.info("APScheduler stopped")
