"""
Logging setup for the gasketcheck command line.

Modules only create ``logging.getLogger(__name__)`` loggers; the CLI calls
``setup_logging`` once per process. Console output goes to stderr. A
rotating log file is opt-in (``[logging] enabled = true``) and is written to
a ``logs`` directory beside the config file unless ``[logging] directory``
points elsewhere.
"""

import logging
import logging.config
import os
import sys

from pathlib import Path
from typing import Any

from pydantic import ValidationError

from gasketcheck.config import LoggingSettings, get_config_path, load_logging_settings
from gasketcheck.constants import DEFAULT_LOG_FILE, LOG_DIR_NAME

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_logging_configured = False


def _load_settings() -> LoggingSettings:
    # Logging is not configured yet, so problems go straight to stderr
    try:
        return load_logging_settings()
    except (ValidationError, ValueError) as e:
        sys.stderr.write(f"WARNING: Ignoring invalid [logging] settings: {e}\n")
        return LoggingSettings()


def get_log_path(settings: LoggingSettings) -> Path:
    """
    Log file location for ``settings``, creating its directory.

    Raises:
        OSError: If the directory cannot be created
    """
    if settings.directory is not None:
        log_dir = settings.directory.expanduser()
    else:
        log_dir = get_config_path().parent / LOG_DIR_NAME
    os.makedirs(log_dir, mode=0o700, exist_ok=True)
    return log_dir / DEFAULT_LOG_FILE


def build_logging_config(
    verbose: bool = False,
    console_format: str | None = None,
    settings: LoggingSettings | None = None,
) -> dict[str, Any]:
    """
    Build the dictConfig dictionary.

    Args:
        verbose: Console at DEBUG instead of INFO
        console_format: Console format string (default ``LEVEL: message``)
        settings: Log file settings; read from the config file if None

    Returns:
        Dictionary for logging.config.dictConfig()
    """
    settings = settings or _load_settings()
    console_level = "DEBUG" if verbose else "INFO"

    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": console_level,
            "formatter": "console",
            "stream": "ext://sys.stderr",
        },
    }
    if settings.enabled:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": settings.level,
            "formatter": "file",
            "filename": str(get_log_path(settings)),
            "maxBytes": int(settings.max_size_mb * 1024 * 1024),
            "backupCount": settings.backup_count,
            "encoding": "utf-8",
        }

    # Root only needs to pass DEBUG records when some handler keeps them
    root_level = "DEBUG" if verbose or settings.enabled else console_level

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": console_format or CONSOLE_FORMAT},
            "file": {"format": FILE_FORMAT},
        },
        "handlers": handlers,
        "root": {"level": root_level, "handlers": list(handlers)},
    }


def setup_logging(*, verbose: bool = False, console_format: str | None = None) -> None:
    """
    Configure logging for the command line; later calls are ignored.

    Falls back to a plain stderr configuration if the log file cannot be
    opened.
    """
    global _logging_configured

    if _logging_configured:
        return

    try:
        logging.config.dictConfig(
            build_logging_config(verbose=verbose, console_format=console_format)
        )
    except (ValueError, OSError) as e:
        sys.stderr.write(f"WARNING: Failed to configure file logging: {e}\n")
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format=console_format or CONSOLE_FORMAT,
        )

    _logging_configured = True
