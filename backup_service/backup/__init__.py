"""Backup pipeline: dump, upload and local cleanup of MongoDB archives.

Example:
    from backup_service.backup import BackupOrchestrator
    from backup_service.core.settings import get_settings

    outcome = await BackupOrchestrator(get_settings().require_complete()).run()
"""

from __future__ import annotations

from backup_service.backup.filename import artifact_for, backup_filename, remote_key
from backup_service.backup.models import (
    ArtifactDescriptor,
    BackupRun,
    OutcomeStatus,
    PipelineOutcome,
    RunState,
    Stage,
    UploadLocation,
)
from backup_service.backup.pipeline import BackupOrchestrator

__all__ = [
    "ArtifactDescriptor",
    "BackupOrchestrator",
    "BackupRun",
    "OutcomeStatus",
    "PipelineOutcome",
    "RunState",
    "Stage",
    "UploadLocation",
    "artifact_for",
    "backup_filename",
    "remote_key",
]
