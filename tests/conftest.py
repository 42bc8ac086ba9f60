"""Pytest configuration and shared fixtures.

Fixtures are organized by category:
    - Environment Fixtures: isolation from the developer's env and .env file
    - Settings Fixtures: fully populated settings objects
    - Pipeline Fixtures: recording fakes for the three pipeline stages
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import pytest

from backup_service.backup.models import UploadLocation
from backup_service.core.settings import (
    BackupSettings,
    LoggingSettings,
    MongoSettings,
    Settings,
    StorageSettings,
    clear_all_caches,
)
from backup_service.infra.logging.context import clear_log_context

ENV_PREFIXES = ("MONGO_", "BACKUP_", "STORJ_", "LOG_")


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Run every test without ambient configuration.

    Removes service env vars, moves into an empty directory so no ``.env``
    file is picked up, and resets cached settings and log context.
    """
    for name in list(os.environ):
        if name.upper().startswith(ENV_PREFIXES):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.chdir(tmp_path)
    clear_all_caches()
    clear_log_context()
    yield
    clear_all_caches()
    clear_log_context()


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def backup_dir(tmp_path: Path) -> Path:
    """Directory where test runs write their artifacts."""
    path = tmp_path / "backups"
    path.mkdir()
    return path


@pytest.fixture
def settings(backup_dir: Path) -> Settings:
    """Complete settings for a run, built without the environment."""
    return Settings(
        backup=BackupSettings(local_dir=backup_dir),
        mongo=MongoSettings(
            db="app",
            host="mongo.internal",
            port=27017,
            user="backup",
            password="s3cret",
        ),
        storage=StorageSettings(
            bucket="backups",
            path="mongo/daily",
            endpoint="https://gateway.example.test",
            access_key="AKIA",
            secret_key="SECRET",
        ),
        logging=LoggingSettings(),
    )


@pytest.fixture
def fixed_now() -> datetime:
    """A fixed local time used as the run clock."""
    return datetime(2024, 3, 5, 2, 0, 0)


# ============================================================================
# Pipeline Fixtures
# ============================================================================


class RecordingStages:
    """Fake dump/upload/cleanup callables that record their calls.

    Each stage can be told to fail by setting ``<stage>_error``. The dump
    writes a small file so cleanup has something to delete.
    """

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.dump_args: list[Path] = []
        self.upload_args: list[tuple[Path, str]] = []
        self.cleanup_args: list[Path] = []
        self.dump_error: BaseException | None = None
        self.upload_error: BaseException | None = None
        self.cleanup_error: BaseException | None = None

    async def dump(self, path: Path) -> Path:
        self.calls.append("dump")
        self.dump_args.append(path)
        if self.dump_error is not None:
            raise self.dump_error
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"\x1f\x8b archive")
        return path

    async def upload(self, path: Path, key: str) -> UploadLocation:
        self.calls.append("upload")
        self.upload_args.append((path, key))
        if self.upload_error is not None:
            raise self.upload_error
        return UploadLocation(
            bucket="backups",
            key=key,
            url=f"https://gateway.example.test/backups/{key}",
        )

    async def cleanup(self, path: Path) -> None:
        self.calls.append("cleanup")
        self.cleanup_args.append(path)
        if self.cleanup_error is not None:
            raise self.cleanup_error
        path.unlink()


@pytest.fixture
def stages() -> RecordingStages:
    """Recording fakes for the pipeline stages."""
    return RecordingStages()
