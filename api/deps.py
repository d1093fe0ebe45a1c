"""
Shared state and dependency getters for API route modules.

Module-level singletons imported by route files.
"""

import time

from slowapi import Limiter
from slowapi.util import get_remote_address

from config.logging_config import get_logger
from config.settings import settings
from core.books.service import BookService, get_book_service

logger = get_logger(__name__)

# --- Singletons ---

start_time = time.time()

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit],
    enabled=settings.rate_limit_enabled,
)


def book_service() -> BookService:
    """FastAPI dependency; overridden in tests."""
    return get_book_service()
