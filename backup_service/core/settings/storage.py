"""S3-compatible object storage settings (Storj gateway by default)."""

from __future__ import annotations

from typing import Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ._sanitizers import blank_to_none


class StorageSettings(BaseSettings):
    """Remote destination for backup artifacts.

    Environment variables use STORJ_ prefix.
    Example: STORJ_BUCKET="backups"
             STORJ_PATH="mongo/daily"
             STORJ_ENDPOINT="https://gateway.storjshare.io"

    Works with any S3-compatible provider; requests use path-style
    addressing and SigV4 signing.
    """

    bucket: str | None = Field(
        default=None,
        description="Bucket that receives backup artifacts",
    )
    path: str | None = Field(
        default=None,
        description="Key prefix for uploaded artifacts",
    )
    endpoint: str | None = Field(
        default=None,
        description="S3-compatible endpoint URL",
    )
    access_key: SecretStr | None = Field(
        default=None,
        description="Access key ID",
    )
    secret_key: SecretStr | None = Field(
        default=None,
        description="Secret access key",
    )
    region: str = Field(
        default="us-east-1",
        description="Region used for request signing",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORJ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @field_validator("bucket", "path", "endpoint", mode="before")
    @classmethod
    def _normalize_blank(cls, value: Any) -> Any:
        return blank_to_none(value)

    @property
    def is_configured(self) -> bool:
        """Check if the upload destination and credentials are set."""
        return not self.missing_fields()

    def missing_fields(self) -> list[str]:
        """Return the env var names of unset required fields."""
        missing = []
        if not self.bucket:
            missing.append("STORJ_BUCKET")
        if self.path is None:
            missing.append("STORJ_PATH")
        if not self.endpoint:
            missing.append("STORJ_ENDPOINT")
        if self.access_key is None or not self.access_key.get_secret_value():
            missing.append("STORJ_ACCESS_KEY")
        if self.secret_key is None or not self.secret_key.get_secret_value():
            missing.append("STORJ_SECRET_KEY")
        return missing

    def get_object_url(self, key: str) -> str:
        """Get the path-style URL of an object on the configured endpoint."""
        endpoint = (self.endpoint or "").rstrip("/")
        return f"{endpoint}/{self.bucket}/{key}"
