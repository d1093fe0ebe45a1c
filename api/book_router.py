# ═══════════════════════════════════════════════════════════════════
# FILE: api/book_router.py
# PURPOSE: REST endpoints for generating, reading and sharing books
# ═══════════════════════════════════════════════════════════════════

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse

from config.settings import settings
from core.auth import User, get_current_user, get_optional_user
from core.books.exceptions import AccessDeniedError, BookError, BookNotFoundError
from core.books.models import BookRequest, BookResponse, PdfStatus, VisibilityUpdate
from core.books.service import BookService

from .deps import book_service, limiter

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/book", tags=["Books"])


def to_http_error(e: BookError) -> HTTPException:
    """Map a domain error to its HTTP status."""
    if isinstance(e, BookNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, AccessDeniedError):
        return HTTPException(status_code=403, detail=str(e))
    logger.error(f"Unmapped book error: {e}", exc_info=True)
    return HTTPException(status_code=500, detail="Book operation failed")


def _caller_id(user: Optional[User]) -> Optional[int]:
    return user.id if user else None


# ─── CREATION ───────────────────────────────────────────────────

@router.post("/generate", response_model=BookResponse, status_code=201)
@limiter.limit(settings.book_create_rate_limit)
async def generate_book(
    request: Request,
    body: BookRequest,
    user: User = Depends(get_current_user),
    service: BookService = Depends(book_service),
):
    """
    Generate a personalized book.

    Returns as soon as the story is stored; the PDF is rendered in the
    background, poll ``/{id}/status`` for ``pdfReady``.
    """
    try:
        return await service.create_book(body, user.id)
    except BookError as e:
        raise to_http_error(e)


# ─── LISTINGS ───────────────────────────────────────────────────

@router.get("/history", response_model=list[BookResponse])
async def book_history(
    user: User = Depends(get_current_user),
    service: BookService = Depends(book_service),
):
    """Books created by the current user, newest first."""
    return service.list_for_owner(user.id)


@router.get("/discover", response_model=list[BookResponse])
async def discover_books(service: BookService = Depends(book_service)):
    """Public books, newest first."""
    return service.list_public()


# ─── SINGLE BOOK ────────────────────────────────────────────────

@router.get("/{book_id}", response_model=BookResponse)
async def get_book(
    book_id: int,
    user: Optional[User] = Depends(get_optional_user),
    service: BookService = Depends(book_service),
):
    try:
        return service.get_book(book_id, _caller_id(user))
    except BookError as e:
        raise to_http_error(e)


@router.get("/{book_id}/status", response_model=PdfStatus)
async def pdf_status(
    book_id: int,
    user: Optional[User] = Depends(get_optional_user),
    service: BookService = Depends(book_service),
):
    try:
        return service.get_pdf_status(book_id, _caller_id(user))
    except BookError as e:
        raise to_http_error(e)


@router.get("/{book_id}/pdf")
async def download_pdf(
    book_id: int,
    user: Optional[User] = Depends(get_optional_user),
    service: BookService = Depends(book_service),
):
    """Stream the rendered PDF (404 until the render has finished)."""
    try:
        path = service.get_pdf_file(book_id, _caller_id(user))
    except BookError as e:
        raise to_http_error(e)

    return FileResponse(
        path,
        media_type="application/pdf",
        filename=path.name,
        content_disposition_type="inline",
    )


@router.patch("/{book_id}/visibility", response_model=BookResponse)
async def update_visibility(
    book_id: int,
    body: VisibilityUpdate,
    user: User = Depends(get_current_user),
    service: BookService = Depends(book_service),
):
    """Make a book public or private. Owner only."""
    try:
        return service.set_visibility(book_id, user.id, body.is_public)
    except BookError as e:
        raise to_http_error(e)


# ─── COUNTERS ───────────────────────────────────────────────────

@router.post("/{book_id}/view")
async def count_view(book_id: int, service: BookService = Depends(book_service)):
    service.increment_view(book_id)
    return {"ok": True}


@router.post("/{book_id}/download")
async def count_download(book_id: int, service: BookService = Depends(book_service)):
    service.increment_download(book_id)
    return {"ok": True}
