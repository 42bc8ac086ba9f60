"""Backup pipeline and scheduling settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ._sanitizers import blank_to_none, sanitize_inline_numeric


class BackupSettings(BaseSettings):
    """Local artifact storage and schedule settings.

    Environment variables use BACKUP_ prefix.
    Example: BACKUP_DIR="/var/backups/mongo"
             BACKUP_SCHEDULE="0 2 * * *"

    The schedule is a standard crontab expression (five fields, or six with
    a leading seconds field) evaluated in ``schedule_timezone``, or in the
    process-local zone when that is unset.
    """

    local_dir: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("BACKUP_DIR", "BACKUP_LOCAL_DIR"),
        description="Local directory where dump archives are written",
    )

    # Scheduling
    schedule: str = Field(
        default="0 2 * * *",
        description="Cron expression for the recurring backup",
    )
    schedule_timezone: str | None = Field(
        default=None,
        description="IANA timezone for the schedule (process-local if unset)",
    )
    max_concurrent_runs: int = Field(
        default=1,
        ge=1,
        le=10,
        description="How many runs may execute at once before firings are skipped",
    )
    misfire_grace_time: int = Field(
        default=300,
        ge=1,
        le=86400,
        description="Seconds a late firing is still allowed to start",
    )
    run_on_start: bool = Field(
        default=False,
        description="Run one backup immediately when the scheduler starts",
    )

    model_config = SettingsConfigDict(
        env_prefix="BACKUP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @field_validator("max_concurrent_runs", "misfire_grace_time", mode="before")
    @classmethod
    def _normalize_numeric(cls, value: Any) -> Any:
        """Allow numeric env vars with inline comments."""
        return sanitize_inline_numeric(value)

    @field_validator("schedule", mode="before")
    @classmethod
    def _validate_schedule(cls, value: Any) -> Any:
        """Reject expressions that are not five or six cron fields."""
        if isinstance(value, str):
            fields = value.split()
            if len(fields) not in (5, 6):
                raise ValueError(
                    f"Expected 5 or 6 cron fields, got {len(fields)}: {value!r}"
                )
            return " ".join(fields)
        return value

    @field_validator("schedule_timezone", mode="before")
    @classmethod
    def _validate_timezone(cls, value: Any) -> Any:
        value = blank_to_none(value)
        if value is None:
            return None
        try:
            ZoneInfo(str(value))
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value!r}") from e
        return value

    @property
    def is_configured(self) -> bool:
        """Check if the local backup directory is set."""
        return self.local_dir is not None

    def missing_fields(self) -> list[str]:
        """Return the env var names of unset required fields."""
        return [] if self.is_configured else ["BACKUP_DIR"]

    def get_timezone(self) -> ZoneInfo | None:
        """Get the schedule timezone, or None for process-local time."""
        if self.schedule_timezone is None:
            return None
        return ZoneInfo(self.schedule_timezone)
