"""Custom exception classes for the backup service.

Every stage of the backup pipeline raises a subclass of
:class:`BackupServiceError`. The orchestrator catches them at its boundary
and turns them into a failed outcome tagged with the stage.

Example:
    ```python
    from backup_service.core.exceptions import DumpError

    try:
        await run_mongodump(settings, path)
    except DumpError as e:
        logger.error(f"Dump failed: {e.message}", extra=e.metadata)
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


class BackupServiceError(Exception):
    """Base exception for all backup service errors.

    Attributes:
        message: Human-readable error message.
        code: Error code identifier for programmatic error handling.
        metadata: Additional context-specific information about the error.
    """

    def __init__(
        self,
        message: str,
        code: str = "BACKUP_SERVICE_ERROR",
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Initialize backup service error.

        Args:
            message: Human-readable error message.
            code: Error code for programmatic handling.
            metadata: Additional error context.
        """
        self.message = message
        self.code = code
        self.metadata = metadata or {}
        super().__init__(message)


class ConfigError(BackupServiceError):
    """Missing or invalid required setting."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        self.missing = list(missing or [])
        super().__init__(
            message=message,
            code="CONFIG_ERROR",
            metadata={"missing": self.missing} if self.missing else None,
        )


class DumpError(BackupServiceError):
    """The dump subprocess could not be spawned or exited non-zero.

    Attributes:
        command: Command line that was executed, with the password redacted.
        returncode: Process exit status, or None when the process never started.
        stderr: Decoded standard error of the process.
        stdout: Decoded standard output of the process.
    """

    def __init__(
        self,
        message: str,
        command: str,
        returncode: int | None = None,
        stderr: str = "",
        stdout: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        super().__init__(
            message=message,
            code="DUMP_FAILED",
            metadata={
                "command": command,
                "returncode": returncode,
                "stderr": stderr,
                "stdout": stdout,
            },
        )


class FileReadError(BackupServiceError):
    """The local artifact could not be opened or read for upload."""

    def __init__(self, message: str, path: Path) -> None:
        self.path = path
        super().__init__(
            message=message,
            code="FILE_READ_FAILED",
            metadata={"path": str(path)},
        )


class UploadError(BackupServiceError):
    """Transport, authentication or server failure during upload."""

    def __init__(self, message: str, bucket: str, key: str) -> None:
        self.bucket = bucket
        self.key = key
        super().__init__(
            message=message,
            code="UPLOAD_FAILED",
            metadata={"bucket": bucket, "key": key},
        )


class CleanupError(BackupServiceError):
    """The local artifact could not be deleted after a successful upload."""

    def __init__(self, message: str, path: Path) -> None:
        self.path = path
        super().__init__(
            message=message,
            code="CLEANUP_FAILED",
            metadata={"path": str(path)},
        )
