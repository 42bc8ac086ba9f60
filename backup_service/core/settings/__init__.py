"""Modular Pydantic Settings v2 configuration.

Settings are split by domain, each with its own environment prefix:
- BACKUP_  local artifact directory and schedule
- MONGO_   source database connection
- STORJ_   S3-compatible upload destination
- LOG_     logging

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables
    3. .env file
"""

from __future__ import annotations

from .backup import BackupSettings
from .loader import (
    clear_all_caches,
    get_backup_settings,
    get_logging_settings,
    get_mongo_settings,
    get_storage_settings,
)
from .logs import LoggingSettings
from .mongo import MongoSettings
from .storage import StorageSettings
from .unified import Settings, get_settings, load_settings

__all__ = [
    "BackupSettings",
    "LoggingSettings",
    "MongoSettings",
    "Settings",
    "StorageSettings",
    "clear_all_caches",
    "get_backup_settings",
    "get_logging_settings",
    "get_mongo_settings",
    "get_settings",
    "get_storage_settings",
    "load_settings",
]
