"""Backup orchestrator.

Runs the pipeline ``dump -> upload -> cleanup`` as an ordered list of stages
executed by a single loop that stops at the first failure:

    Idle -> Dumping -> Uploading -> CleaningUp -> Done(success)
              |            |             |
              +------------+-------------+----> Done(failure: stage, cause)

A dump failure means no upload is attempted. An upload failure means no
cleanup is attempted, so the local archive stays in place for manual
recovery. ``run()`` always returns an outcome; stage errors never escape it,
so the scheduler keeps firing after a failed run.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from backup_service.backup.cleanup import delete_local_backup
from backup_service.backup.dump import run_mongodump
from backup_service.backup.filename import artifact_for, remote_key
from backup_service.backup.models import (
    BackupRun,
    PipelineOutcome,
    RunState,
    Stage,
    UploadLocation,
)
from backup_service.core.exceptions import ConfigError
from backup_service.infra.logging.context import remove_from_log_context, set_log_context

if TYPE_CHECKING:
    from backup_service.core.settings import Settings

logger = logging.getLogger(__name__)

DumpFn = Callable[[Path], Awaitable[Path]]
UploadFn = Callable[[Path, str], Awaitable[UploadLocation]]
CleanupFn = Callable[[Path], Awaitable[None]]
StageHandler = Callable[[BackupRun], Awaitable[None]]


class BackupOrchestrator:
    """Sequences one backup run at a time through the three stages.

    The stage callables default to the real implementations bound to
    ``settings``; tests and alternative deployments may inject their own.

    Example:
        orchestrator = BackupOrchestrator(get_settings().require_complete())
        outcome = await orchestrator.run()
        if not outcome.backup_stored:
            ...
    """

    def __init__(
        self,
        settings: Settings,
        *,
        dump: DumpFn | None = None,
        upload: UploadFn | None = None,
        cleanup: CleanupFn | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings
        self._dump = dump or self._default_dump
        self._upload = upload or self._default_upload
        self._cleanup = cleanup or delete_local_backup
        self._clock = clock or datetime.now

    async def _default_dump(self, path: Path) -> Path:
        return await run_mongodump(self.settings.mongo, path)

    async def _default_upload(self, path: Path, key: str) -> UploadLocation:
        from backup_service.infra.storage.s3 import S3Client

        return await S3Client(self.settings.storage).upload_file(path, key)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _run_dump(self, run: BackupRun) -> None:
        await self._dump(run.artifact.path)

    async def _run_upload(self, run: BackupRun) -> None:
        key = remote_key(self.settings.storage.path, run.artifact.filename)
        run.location = await self._upload(run.artifact.path, key)

    async def _run_cleanup(self, run: BackupRun) -> None:
        await self._cleanup(run.artifact.path)

    def stages(self) -> list[tuple[Stage, RunState, StageHandler]]:
        """Ordered pipeline: each entry is (stage, state while running, handler)."""
        return [
            (Stage.DUMP, RunState.DUMPING, self._run_dump),
            (Stage.UPLOAD, RunState.UPLOADING, self._run_upload),
            (Stage.CLEANUP, RunState.CLEANING_UP, self._run_cleanup),
        ]

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def new_run(self) -> BackupRun:
        """Create a fresh run for the current time.

        Raises:
            ConfigError: If no local backup directory is configured.
        """
        local_dir = self.settings.backup.local_dir
        if local_dir is None:
            raise ConfigError("BACKUP_DIR is not set", missing=["BACKUP_DIR"])
        now = self._clock()
        return BackupRun(artifact=artifact_for(local_dir, now), started_at=now)

    async def run(self) -> PipelineOutcome:
        """Execute one independent backup run and report its outcome."""
        try:
            run = self.new_run()
        except ConfigError as e:
            logger.error("Backup process failed: %s", e.message)
            return PipelineOutcome.failure(Stage.DUMP, e)

        set_log_context(run_id=run.run_id)
        try:
            logger.info(
                "Starting backup process",
                extra={"artifact": str(run.artifact.path)},
            )
            run.outcome = await self._execute(run)
            self._report(run)
            return run.outcome
        finally:
            remove_from_log_context("run_id")

    async def _execute(self, run: BackupRun) -> PipelineOutcome:
        for stage, state, handler in self.stages():
            run.state = state
            logger.debug("Entering stage %s", stage)
            try:
                await handler(run)
            except Exception as e:
                run.state = RunState.DONE
                return PipelineOutcome.failure(stage, e, location=run.location)

        run.state = RunState.DONE
        return PipelineOutcome.success(location=run.location)

    def _report(self, run: BackupRun) -> None:
        outcome = run.outcome
        extra = {
            "artifact": str(run.artifact.path),
            "duration_s": round((self._clock() - run.started_at).total_seconds(), 3),
        }
        if outcome.location is not None:
            extra["location"] = outcome.location.url

        if outcome.succeeded:
            logger.info("Backup process completed successfully.", extra=extra)
        elif outcome.stage is Stage.CLEANUP:
            logger.warning(
                "Backup uploaded but the local copy could not be removed: %s",
                outcome.error,
                extra=extra,
            )
        else:
            logger.error(
                "Backup process failed at stage %s: %s",
                outcome.stage,
                outcome.error,
                exc_info=outcome.error,
                extra=extra,
            )
