"""Logging configuration setup.

Provides logging configuration using:
- dictConfig for the root logger and library logger levels
- QueueHandler + QueueListener so slow handlers never block the event loop
- ContextInjectingFilter for automatic run context propagation
- All handlers behind the root logger (child loggers propagate)
"""

from __future__ import annotations

import atexit
import logging
import logging.config
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import TYPE_CHECKING, Any

from backup_service.infra.logging.context import ContextInjectingFilter

_log_queue: Queue[logging.LogRecord] | None = None
_listener: QueueListener | None = None
_queue_handler: QueueHandler | None = None
_atexit_registered = False
logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

if TYPE_CHECKING:
    from backup_service.core.settings.logs import LoggingSettings


def shutdown() -> None:
    """Stop the QueueListener, flushing pending records.

    Registered with atexit on first configuration; safe to call repeatedly.
    """
    global _log_queue, _listener, _queue_handler

    if _listener is not None:
        # stop() enqueues a sentinel and joins the thread, draining the queue
        _listener.stop()
        _listener = None

    if _queue_handler is not None:
        logging.getLogger().removeHandler(_queue_handler)
        _queue_handler = None

    _log_queue = None


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    settings_obj = log_settings
    if settings_obj is None:
        from backup_service.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    log_config = settings_obj.to_logging_kwargs()
    if configure_kwargs:
        log_config = {**log_config, **configure_kwargs}

    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    console_level: str | None = None,
    file_level: str | None = None,
    file_path: str | Path | None = None,
    json_logs: bool = False,
    console_enabled: bool = True,
    include_context: bool = True,
    capture_warnings: bool = True,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    colorize: bool | None = None,
    service_name: str = "backup-service",
    **kwargs: Any,
) -> None:
    """Configure logging with dictConfig and the QueueHandler pattern.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        console_level: Console handler level. If None, uses log_level.
        file_level: File handler level. If None, uses log_level.
        file_path: Path to log file. None disables file logging.
        json_logs: Emit JSON Lines instead of human-readable lines.
        console_enabled: Enable console/stderr logging.
        include_context: Enable ContextInjectingFilter for run context.
        capture_warnings: Forward Python warnings to logging system.
        file_max_bytes: Maximum log file size before rotation.
        file_backup_count: Number of rotated log files to keep.
        colorize: Console colors. If None, auto-detect.
        service_name: Static ``service`` field in JSON records.
        **kwargs: Ignored extra settings.

    Example:
        from backup_service.core.settings import get_logging_settings
        configure_logging(**get_logging_settings().to_logging_kwargs())
    """
    if kwargs:
        logger.debug("Unused logging kwargs supplied: %s", ", ".join(sorted(kwargs.keys())))

    if capture_warnings:
        logging.captureWarnings(True)

    path = Path(file_path) if file_path else None
    if path:
        path.parent.mkdir(parents=True, exist_ok=True)

    logging_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        # Handlers are attached to the QueueListener, not to dictConfig
        "root": {
            "level": log_level.upper(),
            "handlers": [],
        },
        "loggers": {
            # boto's own debug output drowns the pipeline at DEBUG
            "botocore": {"level": "WARNING"},
            "aiobotocore": {"level": "WARNING"},
            "apscheduler": {"level": "INFO"},
        },
    }

    shutdown()
    logging.config.dictConfig(logging_config)

    _setup_queue_logging(
        console_enabled=console_enabled,
        file_path=path,
        console_level=console_level or log_level,
        file_level=file_level or log_level,
        file_max_bytes=file_max_bytes,
        file_backup_count=file_backup_count,
        json_logs=json_logs,
        colorize=colorize,
        service_name=service_name,
        include_context=include_context,
    )


def _build_formatter(
    json_logs: bool,
    service_name: str,
    colorize: bool | None,
    console: bool,
) -> logging.Formatter:
    from backup_service.infra.logging.color_formatter import ColoredConsoleFormatter
    from backup_service.infra.logging.formatters import JSONFormatter

    if json_logs:
        return JSONFormatter(
            fmt_keys={"level": "levelname", "logger": "name", "message": "message"},
            static={"service": service_name},
        )
    if console:
        return ColoredConsoleFormatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT, colorize=colorize)
    return ColoredConsoleFormatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT, colorize=False)


def _setup_queue_logging(
    console_enabled: bool,
    file_path: Path | None,
    console_level: str,
    file_level: str,
    file_max_bytes: int,
    file_backup_count: int,
    json_logs: bool,
    colorize: bool | None,
    service_name: str,
    include_context: bool = True,
) -> None:
    """Create handlers behind a QueueListener and attach a QueueHandler to root."""
    global _log_queue, _listener, _queue_handler, _atexit_registered

    _log_queue = Queue()
    handlers: list[logging.Handler] = []

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, console_level.upper()))
        console_handler.setFormatter(
            _build_formatter(json_logs, service_name, colorize, console=True)
        )
        handlers.append(console_handler)

    if file_path:
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=file_max_bytes,
            backupCount=file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(getattr(logging, file_level.upper()))
        file_handler.setFormatter(
            _build_formatter(json_logs, service_name, colorize, console=False)
        )
        handlers.append(file_handler)

    if handlers:
        _listener = QueueListener(_log_queue, *handlers, respect_handler_level=True)
        _listener.start()
        if not _atexit_registered:
            atexit.register(shutdown)
            _atexit_registered = True

    _queue_handler = QueueHandler(_log_queue)
    if include_context:
        # Handler-level so records propagated from child loggers are covered
        _queue_handler.addFilter(ContextInjectingFilter())
    logging.getLogger().addHandler(_queue_handler)
