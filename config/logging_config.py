"""
Logging configuration.

Usage:
    from config.logging_config import get_logger
    logger = get_logger(__name__)
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once with a console handler."""
    global _configured
    if _configured:
        return

    if level is None:
        from config.settings import settings
        level = settings.log_level

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Third-party clients are chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("weasyprint").setLevel(logging.ERROR)
    logging.getLogger("fontTools").setLevel(logging.ERROR)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a namespaced logger."""
    return logging.getLogger(name)
