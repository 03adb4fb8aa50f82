"""
Logging for the directory cache.

loguru is configured once from ``Settings`` at import. Standard library
loggers of the HTTP stack (uvicorn, httpx, httpcore) are routed into it.
"""

import inspect
import logging
import sys
from pathlib import Path
from typing import Any

from loguru import logger as _logger

from ..settings import Settings, settings

LOG_FILE_NAME = "sso_directory.log"

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

INTERCEPTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "httpx")

# httpcore logs every connection event at DEBUG
NOISY_LOGGERS = {"httpcore": logging.INFO}


class InterceptHandler(logging.Handler):
    """Forward standard library records to loguru, keeping the caller's frame."""

    def emit(self, record: logging.LogRecord) -> None:
        level: str | int
        try:
            level = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        _logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _sinks(config: Settings) -> list[dict[str, Any]]:
    log_format = config.log_format or DEFAULT_FORMAT
    sinks: list[dict[str, Any]] = [
        {
            "sink": sys.stderr,
            "level": config.log_level,
            "format": log_format,
            "colorize": True,
            "backtrace": True,
            "diagnose": False,
        }
    ]

    if config.log_to_file:
        log_path = config.get_log_dir() / LOG_FILE_NAME
        log_path.parent.mkdir(parents=True, exist_ok=True)
        sinks.append(
            {
                "sink": str(log_path),
                "level": config.log_level,
                "format": log_format,
                "rotation": config.log_rotation,
                "retention": config.log_retention,
                "compression": "zip",
                "backtrace": True,
                "diagnose": False,
            }
        )

    return sinks


def setup_logging(config: Settings) -> Path | None:
    """Configure loguru sinks and stdlib interception from ``config``.

    Returns:
        Path of the log file, or None when only stderr is used
    """
    _logger.configure(handlers=_sinks(config))

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in INTERCEPTED_LOGGERS:
        logging.getLogger(name).handlers = [InterceptHandler()]
    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    if config.log_to_file:
        return config.get_log_dir() / LOG_FILE_NAME
    return None


setup_logging(settings)

logger = _logger
