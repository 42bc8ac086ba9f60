"""Dump producer: runs ``mongodump`` into a gzip archive.

The archive is written directly by mongodump (``--gzip --archive=<path>``),
so nothing passes through this process's memory.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
from typing import TYPE_CHECKING

from backup_service.core.exceptions import ConfigError, DumpError

if TYPE_CHECKING:
    from pathlib import Path

    from backup_service.core.settings.mongo import MongoSettings

logger = logging.getLogger(__name__)

REDACTED = "****"


def build_mongodump_command(settings: MongoSettings, output_path: Path) -> list[str]:
    """Build the mongodump argument vector.

    Raises:
        ConfigError: If a required connection setting is missing.
    """
    missing = settings.missing_fields()
    if missing:
        raise ConfigError(
            f"Cannot run mongodump, missing settings: {', '.join(missing)}",
            missing=missing,
        )

    password = settings.password.get_secret_value() if settings.password else ""
    cmd = [
        settings.mongodump_path,
        "--db",
        str(settings.db),
        "--host",
        str(settings.host),
        "--port",
        str(settings.port),
        "--username",
        str(settings.user),
        "--password",
        password,
    ]
    if settings.auth_db:
        cmd.extend(["--authenticationDatabase", settings.auth_db])
    cmd.extend(["--gzip", f"--archive={output_path}"])
    return cmd


def redact_command(cmd: list[str]) -> str:
    """Render a command for logs with the ``--password`` value masked."""
    shown = list(cmd)
    for idx, part in enumerate(shown[:-1]):
        if part == "--password":
            shown[idx + 1] = REDACTED
    return shlex.join(shown)


async def run_mongodump(settings: MongoSettings, output_path: Path) -> Path:
    """Execute mongodump asynchronously.

    Args:
        settings: Source database connection settings.
        output_path: Destination of the gzip archive.

    Returns:
        The archive path once mongodump exited with status 0 and wrote a
        non-empty archive.

    Raises:
        ConfigError: If connection settings are incomplete.
        DumpError: If mongodump cannot be started, exits non-zero, or
            leaves no archive behind.
    """
    cmd = build_mongodump_command(settings, output_path)
    display = redact_command(cmd)

    output_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info("Executing: %s", display, extra={"output_path": str(output_path)})

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.error("Could not start mongodump", extra={"error": str(e)})
        raise DumpError(
            f"Could not start mongodump: {e}",
            command=display,
            stderr=str(e),
        ) from e

    stdout, stderr = await proc.communicate()
    out_text = stdout.decode(errors="replace").strip() if stdout else ""
    err_text = stderr.decode(errors="replace").strip() if stderr else ""

    if proc.returncode != 0:
        detail = err_text or out_text or "no diagnostic output"
        logger.error(
            "mongodump failed",
            extra={"returncode": proc.returncode, "stderr": err_text},
        )
        raise DumpError(
            f"mongodump failed with code {proc.returncode}: {detail}",
            command=display,
            returncode=proc.returncode,
            stderr=err_text,
            stdout=out_text,
        )

    size_bytes = output_path.stat().st_size if output_path.exists() else 0
    if size_bytes == 0:
        logger.error(
            "mongodump produced no archive",
            extra={"output_path": str(output_path), "stderr": err_text},
        )
        raise DumpError(
            f"mongodump exited 0 but wrote no data to {output_path}",
            command=display,
            returncode=proc.returncode,
            stderr=err_text,
            stdout=out_text,
        )

    logger.info(
        "Backup file created at: %s",
        output_path,
        extra={"size_bytes": size_bytes},
    )
    return output_path
