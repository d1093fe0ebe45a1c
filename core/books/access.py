"""
Book access policy.

Plain predicates over a Book and the caller's user id (None = anonymous).
A book without an owner is unreadable for everyone, public or not.
"""

from typing import Optional

from .exceptions import AccessDeniedError
from .models import Book


def can_read(book: Book, caller_id: Optional[int]) -> bool:
    if book.owner_id is None:
        return False
    if book.is_public:
        return True
    return caller_id is not None and caller_id == book.owner_id


def can_modify(book: Book, caller_id: Optional[int]) -> bool:
    """Visibility changes and other owner-only edits."""
    return book.owner_id is not None and caller_id is not None and caller_id == book.owner_id


def can_download(book: Book, caller_id: Optional[int]) -> bool:
    return can_read(book, caller_id) and book.pdf_ready


def ensure_can_read(book: Book, caller_id: Optional[int]) -> None:
    if not can_read(book, caller_id):
        raise AccessDeniedError("You don't have access to this book", book_id=book.id)


def ensure_owner(book: Book, caller_id: Optional[int]) -> None:
    if not can_modify(book, caller_id):
        raise AccessDeniedError("Only the owner can change this book", book_id=book.id)
