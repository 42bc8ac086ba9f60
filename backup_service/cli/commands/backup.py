"""Manual backup trigger.

Runs the same pipeline the scheduler runs, once, in the foreground:

    backup-service run
"""

from __future__ import annotations

import sys

import click

from backup_service.backup.pipeline import BackupOrchestrator
from backup_service.cli.utils import coro, error, info, success, warning
from backup_service.core.exceptions import ConfigError
from backup_service.core.settings import load_settings

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


@click.command(name="run")
@coro
async def run_backup() -> None:
    """Run one backup now: dump, upload, then delete the local copy.

    Exits 0 when the archive reached object storage (even if the local copy
    could not be removed), 1 when the dump or upload failed, and 2 when the
    configuration is incomplete.
    """
    try:
        settings = load_settings()
    except ConfigError as e:
        error(e.message)
        sys.exit(EXIT_CONFIG)

    info("Starting backup process...")
    outcome = await BackupOrchestrator(settings).run()

    if outcome.succeeded:
        if outcome.location is not None:
            success(f"Backup stored at {outcome.location.url}")
        else:
            success("Backup process completed successfully")
        return

    if outcome.backup_stored:
        warning(f"Backup stored, but local cleanup failed: {outcome.error}")
        return

    error(f"Backup failed at stage {outcome.stage}: {outcome.error}")
    sys.exit(EXIT_FAILED)
