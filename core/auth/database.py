#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
User Database - SQLite-based user storage

Owns the ``users`` table. Books reference ``users.id``.
"""

import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from core.database import SQLiteDatabase, get_database

from .models import User, UserStatus

logger = logging.getLogger(__name__)


class UserDatabase:
    """SQLite-based user storage."""

    def __init__(self, database: Optional[SQLiteDatabase] = None):
        """Initialize user database."""
        self.database = database or get_database()
        self._init_database()

    def _init_database(self):
        """Initialize database schema."""
        with self.database.connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT UNIQUE NOT NULL,
                    name TEXT NOT NULL,
                    is_admin INTEGER NOT NULL DEFAULT 0,
                    status TEXT NOT NULL DEFAULT 'active',
                    created_at REAL NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_users_email ON users(email)")

    # ========================================================================
    # User CRUD Operations
    # ========================================================================

    def create_user(self, user: User) -> User:
        """Create a new user."""
        now = datetime.now().timestamp()

        with self.database.connection() as conn:
            cursor = conn.execute("""
                INSERT INTO users (email, name, is_admin, status, created_at)
                VALUES (?, ?, ?, ?, ?)
            """, (
                user.email.lower(),
                user.name,
                int(user.is_admin),
                user.status.value,
                now,
            ))
            user.id = cursor.lastrowid

        user.created_at = datetime.fromtimestamp(now)
        logger.info(f"Created user: {user.email} (id={user.id})")
        return user

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        with self.database.connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return self._row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        with self.database.connection() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?", (email.lower(),)
            ).fetchone()
        return self._row_to_user(row) if row else None

    def update_user(self, user: User) -> User:
        """Update mutable user details."""
        with self.database.connection() as conn:
            conn.execute("""
                UPDATE users SET name = ?, is_admin = ?, status = ?
                WHERE id = ?
            """, (user.name, int(user.is_admin), user.status.value, user.id))
        return user

    def list_users(self, limit: int = 100, offset: int = 0) -> List[User]:
        """List users, newest first."""
        with self.database.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM users ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()
        return [self._row_to_user(row) for row in rows]

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def _row_to_user(self, row: sqlite3.Row) -> User:
        """Convert database row to User model."""
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            is_admin=bool(row["is_admin"]),
            status=UserStatus(row["status"]),
            created_at=datetime.fromtimestamp(row["created_at"]),
        )


# Global instance
_user_db: Optional[UserDatabase] = None


def get_user_db() -> UserDatabase:
    """Get global user database instance."""
    global _user_db
    if _user_db is None:
        _user_db = UserDatabase()
    return _user_db
