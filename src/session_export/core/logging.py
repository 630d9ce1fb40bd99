"""Loguru structured logging configuration.

Provides text logging on stderr, an opt-in JSON sink for records bound with
``json_output=True``, and an optional rotating log file.  Export components
bind job and tenant identifiers onto their log records via
:func:`job_logger` so a single job can be followed across the sync path,
the queue, and the worker runtime.
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"


def setup_logging(log_level: str = "INFO", log_dir: str | None = None) -> None:
    """Configure Loguru sinks.

    Args:
        log_level: Minimum log level to emit.
        log_dir: Optional directory for log files.  When set, a rotating
            file sink is added (rotated every 24 hours, retained 7 days).
    """
    level = log_level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=_LOG_FORMAT, serialize=False)
    logger.add(
        sys.stderr,
        level=level,
        serialize=True,
        filter=lambda record: record["extra"].get("json_output", False),
    )

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / "session-export.log",
            level=level,
            format=_LOG_FORMAT,
            rotation="24h",
            retention="7 days",
        )


def job_logger(job_id: str | None, tenant_id: str | None, **extra: Any) -> Any:
    """Return a logger with job and tenant identifiers bound as extras.

    Args:
        job_id: Export job ID (may be None for malformed queue messages).
        tenant_id: Owning tenant ID.
        **extra: Additional context to bind.

    Returns:
        A bound Loguru logger.
    """
    return logger.bind(job_id=job_id, tenant_id=tenant_id, **extra)
