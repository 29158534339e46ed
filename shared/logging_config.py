"""
Logging setup shared by scripts and tests.
"""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure root logging once for the process.

    Args:
        level: Level name (DEBUG, INFO, ...). Defaults to settings.LOG_LEVEL.

    Returns:
        The package logger
    """
    if level is None:
        from .config import get_settings

        level = get_settings().LOG_LEVEL

    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
    return logging.getLogger("embeddings")
