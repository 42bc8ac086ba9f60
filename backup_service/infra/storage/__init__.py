"""S3-compatible object storage for backup artifacts."""

from __future__ import annotations

from backup_service.infra.storage.s3 import S3Client

__all__ = ["S3Client"]
