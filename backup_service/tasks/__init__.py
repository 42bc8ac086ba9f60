"""Scheduled execution of the backup pipeline."""

from __future__ import annotations

from backup_service.tasks.scheduler import (
    BACKUP_JOB_ID,
    build_cron_trigger,
    create_scheduler,
    next_run_times,
    run_scheduler,
    trigger_now,
)

__all__ = [
    "BACKUP_JOB_ID",
    "build_cron_trigger",
    "create_scheduler",
    "next_run_times",
    "run_scheduler",
    "trigger_now",
]
