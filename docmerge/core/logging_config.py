"""Process logging setup.

Log records go to the console and to two files under ``settings.log_dir``:
- info.log: everything at INFO and above
- error.log: ERROR and above, for alerting
"""

import logging
import sys

from docmerge.core.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty third-party loggers capped at WARNING unless running at DEBUG.
NOISY_LOGGERS = ("multipart", "sqlalchemy.engine", "PIL", "docxtpl")


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=DATE_FORMAT))
    return handler


def setup_logging() -> logging.Logger:
    """Install the console, info.log and error.log handlers on the root logger.

    Calling it again replaces the handlers instead of stacking duplicates.

    Returns:
        The configured root logger.
    """
    settings = get_settings()
    level = logging.DEBUG if settings.log_level == "DEBUG" else logging.INFO

    settings.log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
        existing.close()

    root_logger.addHandler(
        _handler(logging.FileHandler(settings.log_dir / "info.log", encoding="utf-8"), logging.INFO, LOG_FORMAT)
    )
    root_logger.addHandler(
        _handler(logging.FileHandler(settings.log_dir / "error.log", encoding="utf-8"), logging.ERROR, LOG_FORMAT)
    )
    root_logger.addHandler(_handler(logging.StreamHandler(sys.stdout), level, CONSOLE_FORMAT))

    if level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
