# ═══════════════════════════════════════════════════════════════════
# FILE: api/admin_router.py
# PURPOSE: Admin-only book management (list, edit, delete, re-render)
# ═══════════════════════════════════════════════════════════════════

import logging

from fastapi import APIRouter, Depends

from core.auth import User, require_admin
from core.books.exceptions import BookError
from core.books.models import BookResponse, BookUpdateRequest, PdfStatus
from core.books.service import BookService

from .book_router import to_http_error
from .deps import book_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/books", response_model=list[BookResponse])
async def list_books(
    admin: User = Depends(require_admin),
    service: BookService = Depends(book_service),
):
    return service.list_all()


@router.put("/books/{book_id}", response_model=BookResponse)
async def update_book(
    book_id: int,
    body: BookUpdateRequest,
    admin: User = Depends(require_admin),
    service: BookService = Depends(book_service),
):
    """Edit a book. Changing the story text or title re-renders the PDF."""
    try:
        return service.update_book(book_id, body)
    except BookError as e:
        raise to_http_error(e)


@router.delete("/books/{book_id}")
async def delete_book(
    book_id: int,
    admin: User = Depends(require_admin),
    service: BookService = Depends(book_service),
):
    try:
        service.delete_book(book_id)
    except BookError as e:
        raise to_http_error(e)
    logger.info(f"Admin {admin.email} deleted book {book_id}")
    return {"deleted": True}


@router.post("/books/{book_id}/rerender", response_model=PdfStatus, status_code=202)
async def rerender_book(
    book_id: int,
    admin: User = Depends(require_admin),
    service: BookService = Depends(book_service),
):
    """Render the PDF again, e.g. for a book stuck at not ready."""
    try:
        return service.rerender(book_id)
    except BookError as e:
        raise to_http_error(e)
