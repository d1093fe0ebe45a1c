"""
Application database.

Usage:
    from core.database import get_database

    db = get_database()
    with db.connection() as conn:
        row = conn.execute("SELECT * FROM books WHERE id = ?", (book_id,)).fetchone()
"""

from .sqlite import SQLiteDatabase, get_database, BUSY_TIMEOUT_SECONDS
