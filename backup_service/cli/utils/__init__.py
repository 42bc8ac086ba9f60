"""CLI utilities for running async operations and formatting output."""

from backup_service.cli.utils.async_runner import coro
from backup_service.cli.utils.formatters import (
    error,
    header,
    info,
    success,
    warning,
)

__all__ = [
    "coro",
    "error",
    "header",
    "info",
    "success",
    "warning",
]
