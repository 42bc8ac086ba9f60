"""Artifact naming.

One artifact per calendar day: ``backup-YYYY-MM-DD.gz`` in the process-local
timezone. A second run on the same day reuses the name and overwrites both
the local file and the remote object.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from backup_service.backup.models import ArtifactDescriptor

FILENAME_PREFIX = "backup-"
FILENAME_SUFFIX = ".gz"


def backup_filename(now: datetime | None = None) -> str:
    """Return the artifact filename for the calendar date of ``now``.

    Args:
        now: Point in time to name the artifact after. Defaults to the
            current local time.

    Returns:
        Filename like "backup-2024-03-05.gz".
    """
    when = now if now is not None else datetime.now()
    return f"{FILENAME_PREFIX}{when.year:04d}-{when.month:02d}-{when.day:02d}{FILENAME_SUFFIX}"


def artifact_for(directory: Path | str, now: datetime | None = None) -> ArtifactDescriptor:
    """Get the local artifact descriptor for ``now`` under ``directory``."""
    return ArtifactDescriptor(path=Path(directory) / backup_filename(now))


def remote_key(prefix: str | None, filename: str) -> str:
    """Compose the object key for an artifact.

    Args:
        prefix: Destination key prefix; trailing slashes are ignored.
        filename: Artifact basename.

    Returns:
        Key like "mongo/daily/backup-2024-03-05.gz", or the bare filename
        when the prefix is empty.
    """
    cleaned = (prefix or "").strip().rstrip("/")
    if not cleaned:
        return filename
    return f"{cleaned}/{filename}"
