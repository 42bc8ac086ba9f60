"""Per-run values of the backup pipeline.

Nothing here is persisted: a BackupRun lives for one execution of the
pipeline and its PipelineOutcome is logged once and dropped.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from pathlib import Path


class Stage(StrEnum):
    """A discrete step of the pipeline."""

    DUMP = "dump"
    UPLOAD = "upload"
    CLEANUP = "cleanup"


class RunState(StrEnum):
    """Where a run currently is in the pipeline."""

    IDLE = "idle"
    DUMPING = "dumping"
    UPLOADING = "uploading"
    CLEANING_UP = "cleaning_up"
    DONE = "done"


class OutcomeStatus(StrEnum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ArtifactDescriptor:
    """Local path of a dump archive."""

    path: Path

    @property
    def filename(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class UploadLocation:
    """Where an artifact ended up in object storage."""

    bucket: str
    key: str
    url: str

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


@dataclass(frozen=True, slots=True)
class PipelineOutcome:
    """Terminal result of a run.

    A failure is tagged with the stage that raised and carries the exception.
    A cleanup failure still means the backup reached remote storage, which
    ``backup_stored`` reports.
    """

    status: OutcomeStatus
    stage: Stage | None = None
    error: BaseException | None = None
    location: UploadLocation | None = None

    @classmethod
    def pending(cls) -> PipelineOutcome:
        return cls(status=OutcomeStatus.PENDING)

    @classmethod
    def success(cls, location: UploadLocation | None = None) -> PipelineOutcome:
        return cls(status=OutcomeStatus.SUCCEEDED, location=location)

    @classmethod
    def failure(
        cls,
        stage: Stage,
        error: BaseException,
        location: UploadLocation | None = None,
    ) -> PipelineOutcome:
        return cls(status=OutcomeStatus.FAILED, stage=stage, error=error, location=location)

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED

    @property
    def backup_stored(self) -> bool:
        """True when the artifact was uploaded, whatever happened afterwards."""
        return self.succeeded or (self.failed and self.stage is Stage.CLEANUP)

    def describe(self) -> str:
        if self.succeeded:
            return "succeeded"
        if self.failed:
            return f"failed at {self.stage}: {self.error}"
        return "pending"


@dataclass(slots=True)
class BackupRun:
    """One execution of the pipeline, owned by the orchestrator."""

    artifact: ArtifactDescriptor
    started_at: datetime
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: RunState = RunState.IDLE
    location: UploadLocation | None = None
    outcome: PipelineOutcome = field(default_factory=PipelineOutcome.pending)
