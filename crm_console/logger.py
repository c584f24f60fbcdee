"""Logging setup shared by the console and the library."""

from __future__ import annotations

import logging
import os

DEFAULT_LEVEL = os.getenv("CRM_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = DEFAULT_LEVEL) -> None:
    resolved = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    # basicConfig is a no-op once handlers exist; the level still applies.
    logging.getLogger().setLevel(resolved)


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name)
