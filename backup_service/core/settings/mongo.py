"""MongoDB connection settings used by the dump producer."""

from __future__ import annotations

from typing import Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ._sanitizers import blank_to_none, sanitize_inline_numeric


class MongoSettings(BaseSettings):
    """Source database connection parameters.

    Environment variables use MONGO_ prefix.
    Example: MONGO_DB="app" MONGO_HOST="mongo.internal" MONGO_PORT=27017

    Every connection field except the authentication database and the
    mongodump binary path is required for a run; missing values are
    reported by ``missing_fields()`` before ``mongodump`` is ever spawned.
    """

    db: str | None = Field(
        default=None,
        description="Name of the database to dump",
    )
    host: str | None = Field(
        default=None,
        description="MongoDB host name or address",
    )
    port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        description="MongoDB port",
    )
    user: str | None = Field(
        default=None,
        description="Username for authentication",
    )
    password: SecretStr | None = Field(
        default=None,
        description="Password for authentication",
    )
    auth_db: str | None = Field(
        default=None,
        description="Authentication database (--authenticationDatabase)",
    )
    mongodump_path: str = Field(
        default="mongodump",
        description="Path to the mongodump binary",
    )

    model_config = SettingsConfigDict(
        env_prefix="MONGO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @field_validator("port", mode="before")
    @classmethod
    def _normalize_numeric(cls, value: Any) -> Any:
        """Allow numeric env vars with inline comments."""
        return sanitize_inline_numeric(value)

    @field_validator("db", "host", "user", "auth_db", mode="before")
    @classmethod
    def _normalize_blank(cls, value: Any) -> Any:
        return blank_to_none(value)

    @property
    def is_configured(self) -> bool:
        """Check if every required connection field is set."""
        return not self.missing_fields()

    def missing_fields(self) -> list[str]:
        """Return the env var names of unset required fields."""
        missing = []
        if not self.db:
            missing.append("MONGO_DB")
        if not self.host:
            missing.append("MONGO_HOST")
        if self.port is None:
            missing.append("MONGO_PORT")
        if not self.user:
            missing.append("MONGO_USER")
        if self.password is None or not self.password.get_secret_value():
            missing.append("MONGO_PASSWORD")
        return missing
