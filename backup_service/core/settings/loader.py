"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the
process.

Usage:
    from backup_service.core.settings.loader import get_backup_settings

    settings = get_backup_settings()  # First call: loads and validates
    settings = get_backup_settings()  # Subsequent calls: cached instance

Testing:
    Clear the caches to force a reload after changing the environment:
    clear_all_caches()
"""

from __future__ import annotations

from functools import lru_cache

from .backup import BackupSettings
from .logs import LoggingSettings
from .mongo import MongoSettings
from .storage import StorageSettings


@lru_cache(maxsize=1)
def get_backup_settings() -> BackupSettings:
    """Get cached backup and schedule settings."""
    return BackupSettings()


@lru_cache(maxsize=1)
def get_mongo_settings() -> MongoSettings:
    """Get cached MongoDB connection settings."""
    return MongoSettings()


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    """Get cached object storage settings."""
    return StorageSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings."""
    return LoggingSettings()


def clear_all_caches() -> None:
    """Clear all settings caches.

    Useful for testing or when you need to force reload settings.
    In production, prefer process restarts over cache clearing.
    """
    from .unified import get_settings

    get_backup_settings.cache_clear()
    get_mongo_settings.cache_clear()
    get_storage_settings.cache_clear()
    get_logging_settings.cache_clear()
    get_settings.cache_clear()
