"""Cleanup step: removes the local artifact once it is safely uploaded."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from backup_service.core.exceptions import CleanupError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


async def delete_local_backup(path: Path) -> None:
    """Delete the local backup file.

    The unlink runs in a worker thread so a slow filesystem never stalls the
    event loop the scheduler ticks on.

    Raises:
        CleanupError: If the file cannot be removed, including when it is
            already gone.
    """
    try:
        await asyncio.to_thread(path.unlink)
    except OSError as e:
        logger.error(
            "Error deleting local backup",
            extra={"path": str(path), "error": str(e)},
        )
        raise CleanupError(f"Could not delete local backup {path}: {e}", path=path) from e

    logger.info("Local backup deleted: %s", path)
