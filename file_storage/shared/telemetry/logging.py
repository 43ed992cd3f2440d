"""Logging for the file_storage package.

Modules log through get_logger(__name__). setup_logging() is for hosts
that do not configure logging themselves: it attaches a stdout handler to
the package logger only, leaving the root logger to the application.
"""

import logging
import sys

from file_storage.core.config import Settings, get_settings

PACKAGE_LOGGER = "file_storage"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Storage SDKs that log every request at DEBUG/INFO.
NOISY_LOGGERS = ("botocore", "boto3", "s3transfer", "paramiko", "httpx", "httpcore", "PIL")


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """Configure the package logger and return it.

    Level is DEBUG when settings.debug is True, otherwise INFO. Calling it
    again replaces the handler instead of adding a second one. Third-party
    storage SDK loggers are capped at WARNING unless debugging.
    """
    s = settings or get_settings()
    level = logging.DEBUG if s.debug else logging.INFO
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_file_storage", False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._file_storage = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if s.debug else logging.WARNING)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name (usually __name__)."""
    return logging.getLogger(name)
