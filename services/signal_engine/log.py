"""Logger setup shared by the services and scripts."""
from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Return ``name``'s logger with a stream handler attached once.  The level
    comes from ``level`` or ``SIGNAL_ENGINE_LOG_LEVEL`` (default INFO).
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        _h = logging.StreamHandler()
        _h.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(_h)
    logger.setLevel((level or os.getenv("SIGNAL_ENGINE_LOG_LEVEL", "INFO")).upper())
    return logger
