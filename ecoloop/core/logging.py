# ecoloop/core/logging.py
import logging
import os
import sys
from typing import Any, Optional

from loguru import logger

from ecoloop.core.config import settings

# Third-party loggers routed through loguru
INTERCEPTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "sqlalchemy")

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level> | {extra}"
)

JSON_FORMAT = (
    '{{"time":"{time}","level":"{level}","message":{message!r},'
    '"name":"{name}","function":"{function}","line":{line},'
    '"extra":{extra}}}'
)


class InterceptHandler(logging.Handler):
    """Forwards stdlib ``logging`` records to loguru, keeping the caller's frame."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _add_file_sinks(directory: str, fmt: str, level: str) -> None:
    os.makedirs(directory, exist_ok=True)

    # Daily files; errors are kept apart and longer
    logger.add(
        os.path.join(directory, "ecoloop_{time:YYYY-MM-DD}.log"),
        format=fmt,
        level=level,
        filter=lambda record: record["level"].no < logging.ERROR,
        rotation="00:00",
        retention="7 days",
        compression="zip",
        enqueue=True,
    )
    logger.add(
        os.path.join(directory, "ecoloop_errors_{time:YYYY-MM-DD}.log"),
        format=fmt,
        level="ERROR",
        rotation="00:00",
        retention="30 days",
        compression="zip",
        enqueue=True,
    )


def setup_logging(
    *,
    json_logs: bool = False,
    log_file: bool = True,
    log_dir: Optional[str] = None,
    level: Optional[str] = None,
) -> None:
    """
    Replaces every sink: stdout always, plus the daily files when
    ``log_file`` is set. Safe to call again (tests do).
    """
    level = level or settings.LOG_LEVEL

    logging.root.handlers = []
    logging.root.setLevel(level)
    for name in INTERCEPTED_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    fmt = JSON_FORMAT if json_logs else TEXT_FORMAT

    logger.remove()
    logger.add(sys.stdout, format=fmt, level=level, backtrace=True, diagnose=False)

    if log_file:
        _add_file_sinks(log_dir or settings.LOG_DIR, fmt, level)


def get_logger(**binds: Any):
    """E.g. ``logger = get_logger(module="task_service")``."""
    return logger.bind(**binds)
