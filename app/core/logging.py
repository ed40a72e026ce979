"""
Logging setup shared by the API process.
"""

import logging
import sys

from app.core.config import settings


def setup_logging(level: str | None = None) -> None:
    """
    Configure the root logger once at startup.

    Args:
        level: log level name, falls back to ``settings.LOG_LEVEL``
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
