"""
GiftBook - personalized children's books

Pipeline: BookRequest -> prompt -> story (or placeholder) -> book row -> PDF
"""

from .exceptions import (
    BookError,
    BookNotFoundError,
    AccessDeniedError,
    GenerationUnavailableError,
    RenderFailureError,
)
from .models import (
    CharacterInfo,
    BookRequest,
    BookUpdateRequest,
    VisibilityUpdate,
    Book,
    BookResponse,
    PdfStatus,
    RenderJob,
)
from .service import BookService, get_book_service

__all__ = [
    "BookError",
    "BookNotFoundError",
    "AccessDeniedError",
    "GenerationUnavailableError",
    "RenderFailureError",
    "CharacterInfo",
    "BookRequest",
    "BookUpdateRequest",
    "VisibilityUpdate",
    "Book",
    "BookResponse",
    "PdfStatus",
    "RenderJob",
    "BookService",
    "get_book_service",
]
