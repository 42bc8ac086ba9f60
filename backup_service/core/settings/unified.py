"""Unified settings composition.

``Settings`` is the explicit configuration object of the service. It is
built once at startup and handed to the orchestrator and the scheduler;
stage code never reads the environment itself.

Usage:
    from backup_service.core.settings import get_settings

    settings = get_settings().require_complete()
    print(settings.backup.local_dir)
    print(settings.mongo.host)

Each nested settings class still loads from its own environment prefix
(BACKUP_, MONGO_, STORJ_, LOG_).
"""

from __future__ import annotations

from functools import lru_cache
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from backup_service.core.exceptions import ConfigError

from .backup import BackupSettings
from .loader import (
    get_backup_settings,
    get_logging_settings,
    get_mongo_settings,
    get_storage_settings,
)
from .logs import LoggingSettings
from .mongo import MongoSettings
from .storage import StorageSettings


class Settings(BaseModel):
    """Unified settings composing all domain settings.

    Example:
        settings = Settings(backup=BackupSettings(local_dir=Path("/tmp/backups")))
        assert settings.backup.schedule == "0 2 * * *"
    """

    model_config = ConfigDict(frozen=True)

    backup: BackupSettings = Field(default_factory=get_backup_settings)
    mongo: MongoSettings = Field(default_factory=get_mongo_settings)
    storage: StorageSettings = Field(default_factory=get_storage_settings)
    logging: LoggingSettings = Field(default_factory=get_logging_settings)

    def missing_fields(self) -> list[str]:
        """Return env var names of every unset required setting."""
        return [
            *self.mongo.missing_fields(),
            *self.backup.missing_fields(),
            *self.storage.missing_fields(),
        ]

    def require_complete(self) -> Self:
        """Return self, or raise ConfigError naming all missing settings."""
        missing = self.missing_fields()
        if missing:
            raise ConfigError(
                f"Missing required settings: {', '.join(missing)}",
                missing=missing,
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get unified settings instance (cached)."""
    return Settings()


def load_settings() -> Settings:
    """Load settings for a run and verify nothing required is missing.

    Raises:
        ConfigError: If a value fails validation or a required one is unset.
    """
    try:
        settings = get_settings()
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
    return settings.require_complete()
