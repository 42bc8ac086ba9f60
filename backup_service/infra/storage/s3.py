"""S3-compatible object storage client.

Uploads backup artifacts to S3-compatible storage (Storj gateway, MinIO,
AWS S3). Requests use path-style addressing and SigV4 signing, which is what
non-AWS gateways expect.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from backup_service.backup.models import UploadLocation
from backup_service.core.exceptions import ConfigError, FileReadError, UploadError

if TYPE_CHECKING:
    from pathlib import Path

    from backup_service.core.settings.storage import StorageSettings

logger = logging.getLogger(__name__)


class S3Client:
    """Async S3-compatible storage client.

    Example:
        from backup_service.core.settings import get_storage_settings

        client = S3Client(get_storage_settings())
        location = await client.upload_file(
            local_path=Path("/tmp/backups/backup-2024-03-05.gz"),
            key="mongo/backup-2024-03-05.gz",
        )
        print(location.url)
    """

    def __init__(self, settings: StorageSettings, session: Any = None) -> None:
        """Initialize S3 client with settings.

        Args:
            settings: Storage settings with endpoint, bucket and credentials.
            session: Optional aioboto3 session, mainly for tests.

        Raises:
            ConfigError: If the destination or credentials are not configured.
        """
        missing = settings.missing_fields()
        if missing:
            raise ConfigError(
                f"Object storage is not configured, missing: {', '.join(missing)}",
                missing=missing,
            )

        self.settings = settings
        self._session = session or aioboto3.Session()

    def _get_client_config(self) -> dict[str, Any]:
        """Get client keyword arguments for the session."""
        access_key = self.settings.access_key
        secret_key = self.settings.secret_key
        return {
            "endpoint_url": self.settings.endpoint,
            "aws_access_key_id": access_key.get_secret_value() if access_key else None,
            "aws_secret_access_key": secret_key.get_secret_value() if secret_key else None,
            "region_name": self.settings.region,
            "config": Config(
                signature_version="s3v4",
                s3={"addressing_style": "path"},
            ),
        }

    async def upload_file(self, local_path: Path, key: str) -> UploadLocation:
        """Stream a local file to the configured bucket.

        The file is handed to the managed transfer as an open binary stream,
        which uploads it in parts; it is never read into memory as a whole.

        Args:
            local_path: Path of the artifact to upload.
            key: Destination object key.

        Returns:
            Location of the stored object.

        Raises:
            FileReadError: If the local file cannot be opened or read.
            UploadError: If the transfer fails (transport, auth, server).
        """
        bucket = str(self.settings.bucket)
        extra_args = {"ContentType": "application/gzip"} if local_path.suffix == ".gz" else {}

        logger.info("Uploading backup as: %s", key, extra={"bucket": bucket})

        try:
            stream = open(local_path, "rb")  # noqa: SIM115
        except OSError as e:
            logger.error("File error", extra={"path": str(local_path), "error": str(e)})
            raise FileReadError(f"Cannot read {local_path}: {e}", path=local_path) from e

        try:
            with stream:
                async with self._session.client("s3", **self._get_client_config()) as s3:
                    await s3.upload_fileobj(
                        stream,
                        bucket,
                        key,
                        ExtraArgs=extra_args or None,
                    )
        except (ClientError, BotoCoreError) as e:
            logger.error("Upload error", extra={"key": key, "error": str(e)})
            raise UploadError(
                f"Failed to upload {local_path} to {bucket}/{key}: {e}",
                bucket=bucket,
                key=key,
            ) from e
        except OSError as e:
            # Raised by the stream while the transfer reads parts
            logger.error("File error", extra={"path": str(local_path), "error": str(e)})
            raise FileReadError(f"Cannot read {local_path}: {e}", path=local_path) from e

        location = UploadLocation(
            bucket=bucket,
            key=key,
            url=self.settings.get_object_url(key),
        )
        logger.info("Upload successful: %s", location.url, extra={"uri": location.uri})
        return location
