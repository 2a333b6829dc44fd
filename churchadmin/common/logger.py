"""Logging infrastructure for Church Admin.

Configures the ``churchadmin`` logger tree once at startup. Modules log
through ``logging.getLogger(__name__)`` and inherit these handlers.

Account code handles bearer tokens and temporary passwords, so every
handler installed here masks them before a record is written.
"""

import logging
import logging.handlers
import os
import re
from typing import Optional

from churchadmin.core.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
MASK = "***"

_JWT = re.compile(r"eyJ[\w-]+\.[\w-]+\.[\w-]+")
_SECRET_FIELD = re.compile(r"((?:password|token|secret)\w*[\"']?\s*[:=]\s*[\"']?)([^\s\"',}]+)", re.IGNORECASE)


def redact(message: str) -> str:
    """Mask JWTs and ``password=...``/``token: ...`` style values."""
    message = _JWT.sub(MASK, message)
    return _SECRET_FIELD.sub(lambda m: m.group(1) + MASK, message)


class RedactingFilter(logging.Filter):
    """Rewrites each record's message with secrets masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact(record.getMessage())
        record.args = None
        return True


def setup_logger(
    name: str = "churchadmin",
    log_dir: Optional[str] = None,
    level: Optional[str] = None,
    file_logging: Optional[bool] = None,
    console_logging: bool = True,
    settings: Optional[Settings] = None,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """Set up a logger with console and optional rotating file handlers.

    Arguments left as None fall back to the ``log_*`` settings.

    Args:
        name: Logger name (the package root, so child loggers propagate)
        log_dir: Directory for the rotating log file
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        file_logging: Write ``<log_dir>/<name>.log`` as well as the console
        console_logging: Enable console logging
        settings: Settings to read defaults from
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup log files to keep

    Returns:
        Configured logger instance
    """
    settings = settings or get_settings()
    level = (level or settings.log_level).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = []

    if settings.log_to_file if file_logging is None else file_logging:
        log_dir = log_dir or settings.log_dir
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, f"{name}.log"),
            maxBytes=max_bytes,
            backupCount=backup_count,
        ))

    if console_logging:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(RedactingFilter())
        logger.addHandler(handler)

    return logger
