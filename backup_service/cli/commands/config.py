"""Configuration management commands."""

from __future__ import annotations

import json
import sys

import click
from pydantic import SecretStr, ValidationError

from backup_service.cli.utils import error, header, info, success
from backup_service.core.settings import get_settings

MASK = "***"


def _secret(value: SecretStr | None, show: bool) -> str | None:
    if value is None:
        return None
    return value.get_secret_value() if show else MASK


@click.group(name="config")
def config() -> None:
    """Configuration management commands."""


@config.command()
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "table"]),
    default="table",
    help="Output format",
)
@click.option(
    "--show-secrets/--hide-secrets",
    default=False,
    help="Show sensitive values (passwords, keys)",
)
def show(output_format: str, show_secrets: bool) -> None:
    """Display current configuration settings."""
    try:
        settings = get_settings()
    except ValidationError as e:
        error(f"Failed to load configuration: {e}")
        sys.exit(1)

    config_dict: dict[str, dict[str, object]] = {
        "database": {
            "db": settings.mongo.db,
            "host": settings.mongo.host,
            "port": settings.mongo.port,
            "user": settings.mongo.user,
            "password": _secret(settings.mongo.password, show_secrets),
            "auth_db": settings.mongo.auth_db,
            "mongodump_path": settings.mongo.mongodump_path,
        },
        "backup": {
            "local_dir": settings.backup.local_dir,
            "schedule": settings.backup.schedule,
            "timezone": settings.backup.schedule_timezone or "local",
            "max_concurrent_runs": settings.backup.max_concurrent_runs,
            "misfire_grace_time": settings.backup.misfire_grace_time,
            "run_on_start": settings.backup.run_on_start,
        },
        "storage": {
            "bucket": settings.storage.bucket,
            "path": settings.storage.path,
            "endpoint": settings.storage.endpoint,
            "region": settings.storage.region,
            "access_key": _secret(settings.storage.access_key, show_secrets),
            "secret_key": _secret(settings.storage.secret_key, show_secrets),
        },
        "logging": {
            "level": settings.logging.level,
            "json_logs": settings.logging.json_logs,
            "file_path": settings.logging.effective_file_path,
        },
    }

    if output_format == "json":
        click.echo(json.dumps(config_dict, indent=2, default=str))
        return

    header("CONFIGURATION SETTINGS")
    for section, values in config_dict.items():
        click.echo(f"\n[{section.upper()}]")
        for key, value in values.items():
            click.echo(f"  {key:22} = {'' if value is None else value}")


@config.command()
def validate() -> None:
    """Check that every required setting is present and valid."""
    info("Validating configuration...")
    try:
        settings = get_settings()
    except ValidationError as e:
        error(f"Invalid configuration: {e}")
        sys.exit(1)

    missing = settings.missing_fields()
    if missing:
        for name in missing:
            error(f"{name} is not set")
        sys.exit(1)

    success("All required settings are present")
