"""Logging infrastructure for the backup service.

Example:
    from backup_service.infra.logging import setup_logging, set_log_context

    setup_logging()
    set_log_context(run_id="3f2a...")
"""

from __future__ import annotations

from backup_service.infra.logging.color_formatter import ColoredConsoleFormatter
from backup_service.infra.logging.config import configure_logging, setup_logging, shutdown
from backup_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    remove_from_log_context,
    set_log_context,
)
from backup_service.infra.logging.formatters import JSONFormatter

__all__ = [
    "ColoredConsoleFormatter",
    "ContextInjectingFilter",
    "JSONFormatter",
    "clear_log_context",
    "configure_logging",
    "get_log_context",
    "remove_from_log_context",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
