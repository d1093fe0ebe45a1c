# ═══════════════════════════════════════════════════════════════════
# FILE: core/books/repository.py
# PURPOSE: SQLite CRUD for gift books; characters stored as JSON,
#          counters bumped with single-statement updates
# ═══════════════════════════════════════════════════════════════════

import json
import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from core.database import SQLiteDatabase, get_database

from .models import Book, CharacterInfo

logger = logging.getLogger(__name__)

BOOK_COLUMNS = (
    "owner_id", "name", "age", "gender", "language", "theme", "main_topic",
    "tone", "giver", "appearance", "characters", "content", "pdf_path",
    "pdf_ready", "is_public", "view_count", "download_count", "created_at",
)

# Columns an admin edit may touch
EDITABLE_COLUMNS = (
    "name", "age", "gender", "language", "theme", "main_topic", "tone",
    "giver", "appearance", "characters", "content", "is_public",
)


class BookRepository:
    """SQLite-based persistence for books."""

    def __init__(self, database: Optional[SQLiteDatabase] = None):
        self.database = database or get_database()
        self._init_db()

    def _init_db(self):
        """Create tables if not exist."""
        with self.database.connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS books (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner_id INTEGER REFERENCES users(id),
                    name TEXT NOT NULL,
                    age INTEGER NOT NULL,
                    gender TEXT,
                    language TEXT,
                    theme TEXT NOT NULL,
                    main_topic TEXT,
                    tone TEXT NOT NULL,
                    giver TEXT NOT NULL,
                    appearance TEXT,
                    characters TEXT NOT NULL DEFAULT '[]',
                    content TEXT,
                    pdf_path TEXT,
                    pdf_ready INTEGER NOT NULL DEFAULT 0,
                    is_public INTEGER NOT NULL DEFAULT 0,
                    view_count INTEGER NOT NULL DEFAULT 0,
                    download_count INTEGER NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_books_owner ON books(owner_id)")
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_books_public ON books(is_public, created_at DESC)"
            )

    # ========================================================================
    # Create / Read
    # ========================================================================

    def create(self, book: Book) -> Book:
        """Insert a new book row and return it with its id."""
        if book.owner_id is None:
            raise ValueError("A book must have an owner")

        values = self._to_row(book)
        placeholders = ", ".join("?" for _ in BOOK_COLUMNS)
        with self.database.connection() as conn:
            cursor = conn.execute(
                f"INSERT INTO books ({', '.join(BOOK_COLUMNS)}) VALUES ({placeholders})",
                tuple(values[col] for col in BOOK_COLUMNS),
            )
            book_id = cursor.lastrowid

        logger.info(f"Created book {book_id} for owner {book.owner_id}")
        return book.model_copy(update={"id": book_id})

    def get(self, book_id: int) -> Optional[Book]:
        with self.database.connection() as conn:
            row = conn.execute("SELECT * FROM books WHERE id = ?", (book_id,)).fetchone()
        return self._row_to_book(row) if row else None

    def list_by_owner(self, owner_id: int) -> List[Book]:
        """Books of one owner, newest first."""
        return self._query(
            "SELECT * FROM books WHERE owner_id = ? ORDER BY created_at DESC, id DESC",
            (owner_id,),
        )

    def list_public(self) -> List[Book]:
        """Public books, newest first."""
        return self._query(
            "SELECT * FROM books WHERE is_public = 1 ORDER BY created_at DESC, id DESC"
        )

    def list_all(self) -> List[Book]:
        return self._query("SELECT * FROM books ORDER BY created_at DESC, id DESC")

    def list_pending_renders(self) -> List[Book]:
        """Books that have content but no finished PDF."""
        return self._query(
            "SELECT * FROM books WHERE pdf_ready = 0 AND content IS NOT NULL "
            "ORDER BY created_at ASC, id ASC"
        )

    # ========================================================================
    # Updates
    # ========================================================================

    def mark_ready(self, book_id: int, pdf_path: str) -> bool:
        """Attach the artifact and flip the ready flag. Repeating is harmless."""
        with self.database.connection() as conn:
            cursor = conn.execute(
                "UPDATE books SET pdf_path = ?, pdf_ready = 1 WHERE id = ?",
                (pdf_path, book_id),
            )
            return cursor.rowcount > 0

    def reset_render(self, book_id: int) -> bool:
        """Back to not-ready with no artifact."""
        with self.database.connection() as conn:
            cursor = conn.execute(
                "UPDATE books SET pdf_path = NULL, pdf_ready = 0 WHERE id = ?",
                (book_id,),
            )
            return cursor.rowcount > 0

    def increment_views(self, book_id: int) -> bool:
        with self.database.connection() as conn:
            cursor = conn.execute(
                "UPDATE books SET view_count = view_count + 1 WHERE id = ?", (book_id,)
            )
            return cursor.rowcount > 0

    def increment_downloads(self, book_id: int) -> bool:
        with self.database.connection() as conn:
            cursor = conn.execute(
                "UPDATE books SET download_count = download_count + 1 WHERE id = ?", (book_id,)
            )
            return cursor.rowcount > 0

    def set_visibility(self, book_id: int, is_public: bool) -> bool:
        with self.database.connection() as conn:
            cursor = conn.execute(
                "UPDATE books SET is_public = ? WHERE id = ?", (int(is_public), book_id)
            )
            return cursor.rowcount > 0

    def update_fields(self, book: Book) -> Book:
        """Persist the editable columns of ``book``. Owner and counters are untouched."""
        values = self._to_row(book)
        assignments = ", ".join(f"{col} = ?" for col in EDITABLE_COLUMNS)
        with self.database.connection() as conn:
            conn.execute(
                f"UPDATE books SET {assignments} WHERE id = ?",
                tuple(values[col] for col in EDITABLE_COLUMNS) + (book.id,),
            )
        return book

    def delete(self, book_id: int) -> bool:
        with self.database.connection() as conn:
            cursor = conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
            return cursor.rowcount > 0

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def _query(self, sql: str, params: tuple = ()) -> List[Book]:
        with self.database.connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._row_to_book(row) for row in rows]

    def _to_row(self, book: Book) -> dict:
        return {
            "owner_id": book.owner_id,
            "name": book.name,
            "age": book.age,
            "gender": book.gender,
            "language": book.language,
            "theme": book.theme,
            "main_topic": book.main_topic,
            "tone": book.tone,
            "giver": book.giver,
            "appearance": book.appearance,
            "characters": json.dumps([c.model_dump() for c in book.characters]),
            "content": book.content,
            "pdf_path": book.pdf_path,
            "pdf_ready": int(book.pdf_ready),
            "is_public": int(book.is_public),
            "view_count": book.view_count,
            "download_count": book.download_count,
            "created_at": book.created_at.timestamp(),
        }

    def _row_to_book(self, row: sqlite3.Row) -> Book:
        """Convert database row to Book model."""
        try:
            characters = [CharacterInfo(**c) for c in json.loads(row["characters"] or "[]")]
        except (ValueError, TypeError) as e:
            logger.warning(f"Book {row['id']} has unreadable characters: {e}")
            characters = []

        return Book(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            age=row["age"],
            gender=row["gender"],
            language=row["language"],
            theme=row["theme"],
            main_topic=row["main_topic"],
            tone=row["tone"],
            giver=row["giver"],
            appearance=row["appearance"],
            characters=characters,
            content=row["content"],
            pdf_path=row["pdf_path"],
            pdf_ready=bool(row["pdf_ready"]),
            is_public=bool(row["is_public"]),
            view_count=row["view_count"],
            download_count=row["download_count"],
            created_at=datetime.fromtimestamp(row["created_at"]),
        )
