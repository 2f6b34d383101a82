# app/core/logger.py
"""
Application-wide logger
"""
import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _configure_logging() -> logging.Logger:
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel((settings.LOG_LEVEL or "INFO").upper())
    return logging.getLogger("eyls")


logger = _configure_logging()
