"""
SQLite database shared by the user and book repositories.

Both tables live in one file so ``books.owner_id`` can reference
``users.id`` with foreign keys enforced.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

# Seconds a writer waits for a competing lock (counter bumps race each other)
BUSY_TIMEOUT_SECONDS = 30.0


class SQLiteDatabase:
    """
    Connection factory for the application database.

    Every ``connection()`` block gets its own sqlite3 connection, which
    makes the object safe to share between the event loop and the render
    worker threads. The block commits when it exits normally and rolls
    back when it raises.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._enable_wal()

    def _enable_wal(self):
        # journal_mode is stored in the file, one switch is enough
        conn = sqlite3.connect(str(self.path), timeout=BUSY_TIMEOUT_SECONDS)
        try:
            conn.execute("PRAGMA journal_mode=WAL")
        finally:
            conn.close()

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.path), timeout=BUSY_TIMEOUT_SECONDS)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


def get_database(path: Optional[Path] = None) -> SQLiteDatabase:
    """Database at ``path``, or at settings.database_path when omitted."""
    if path is None:
        from config.settings import settings
        path = settings.database_path
    return SQLiteDatabase(path)
