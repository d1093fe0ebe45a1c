# ═══════════════════════════════════════════════════════════════════
# FILE: core/books/models.py
# PURPOSE: Pydantic models for gift book requests, stored books,
#          API projections and the render hand-off
# ═══════════════════════════════════════════════════════════════════

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# Accept both ``mainTopic`` and ``main_topic`` on input, emit camelCase
CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)

OPTIONAL_TEXT_FIELDS = ("gender", "language", "main_topic", "appearance")


def _strip_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# ─────────────────────────────────────────────────────────────────
# REQUEST MODELS
# ─────────────────────────────────────────────────────────────────

class CharacterInfo(BaseModel):
    """A supporting character the story should feature."""
    model_config = CAMEL_CONFIG

    name: str = Field(..., max_length=200)
    type: Optional[str] = Field(None, max_length=100)          # Human / Animal / Object
    appearance: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = Field(None, max_length=1000)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Character name is required")
        return v

    @field_validator("type", "appearance", "description")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return _strip_optional(v)


class BookRequest(BaseModel):
    """Form submitted to generate a personalized book."""
    model_config = CAMEL_CONFIG

    name: str = Field(..., max_length=200)
    age: int = Field(..., ge=1, le=120)
    gender: Optional[str] = Field(None, max_length=50)
    language: Optional[str] = Field(None, max_length=50)
    theme: str = Field(..., max_length=200)
    main_topic: Optional[str] = Field(None, max_length=500)
    tone: str = Field(..., max_length=100)
    giver: str = Field(..., max_length=200)
    appearance: Optional[str] = Field(None, max_length=500)
    characters: list[CharacterInfo] = Field(default_factory=list)
    is_public: bool = False

    @field_validator("name", "theme", "tone", "giver")
    @classmethod
    def required_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("gender", "language", "main_topic", "appearance")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return _strip_optional(v)


class BookUpdateRequest(BaseModel):
    """Admin edit. Unset or blank fields leave the stored value alone."""
    model_config = CAMEL_CONFIG

    name: Optional[str] = Field(None, max_length=200)
    age: Optional[int] = Field(None, ge=1, le=120)
    gender: Optional[str] = Field(None, max_length=50)
    language: Optional[str] = Field(None, max_length=50)
    theme: Optional[str] = Field(None, max_length=200)
    main_topic: Optional[str] = Field(None, max_length=500)
    tone: Optional[str] = Field(None, max_length=100)
    giver: Optional[str] = Field(None, max_length=200)
    appearance: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = None
    characters: Optional[list[CharacterInfo]] = None
    is_public: Optional[bool] = None

    @field_validator("name", "theme", "tone", "giver", "content")
    @classmethod
    def blank_is_unset(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("gender", "language", "main_topic", "appearance")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return _strip_optional(v)

    def changes(self) -> dict:
        """
        Fields the admin actually supplied.

        Optional fields sent as blank are cleared; required fields sent as
        blank (or null) are dropped so the stored value survives.
        """
        supplied = self.model_dump(exclude_unset=True)
        return {
            key: value for key, value in supplied.items()
            if value is not None or key in OPTIONAL_TEXT_FIELDS
        }


class VisibilityUpdate(BaseModel):
    model_config = CAMEL_CONFIG

    is_public: bool


# ─────────────────────────────────────────────────────────────────
# STORED MODEL
# ─────────────────────────────────────────────────────────────────

class Book(BaseModel):
    """A persisted book row. ``owner_id`` is fixed at creation."""
    id: Optional[int] = None
    owner_id: Optional[int] = None

    name: str
    age: int
    gender: Optional[str] = None
    language: Optional[str] = None
    theme: str
    main_topic: Optional[str] = None
    tone: str
    giver: str
    appearance: Optional[str] = None
    characters: list[CharacterInfo] = Field(default_factory=list)

    content: Optional[str] = None
    pdf_path: Optional[str] = None
    pdf_ready: bool = False
    is_public: bool = False

    view_count: int = 0
    download_count: int = 0
    created_at: datetime = Field(default_factory=datetime.now)


# ─────────────────────────────────────────────────────────────────
# RESPONSE MODELS
# ─────────────────────────────────────────────────────────────────

class BookResponse(BaseModel):
    """Client-facing projection of a book, camelCase on the wire."""
    model_config = CAMEL_CONFIG

    book_id: int
    name: str
    age: int
    gender: Optional[str] = None
    language: Optional[str] = None
    theme: str
    main_topic: Optional[str] = None
    tone: str
    giver: str
    appearance: Optional[str] = None
    characters: list[CharacterInfo] = Field(default_factory=list)
    content: Optional[str] = None
    pdf_path: Optional[str] = None
    pdf_ready: bool = False
    is_public: bool = False
    author_id: int
    author_name: str
    view_count: int = 0
    download_count: int = 0
    created_at: datetime

    @classmethod
    def from_book(cls, book: Book, author_name: str) -> "BookResponse":
        if book.owner_id is None:
            raise ValueError(f"Book {book.id} has no owner")
        return cls(
            book_id=book.id,
            name=book.name,
            age=book.age,
            gender=book.gender,
            language=book.language,
            theme=book.theme,
            main_topic=book.main_topic,
            tone=book.tone,
            giver=book.giver,
            appearance=book.appearance,
            characters=book.characters,
            content=book.content,
            pdf_path=book.pdf_path,
            pdf_ready=book.pdf_ready,
            is_public=book.is_public,
            author_id=book.owner_id,
            author_name=author_name,
            view_count=book.view_count,
            download_count=book.download_count,
            created_at=book.created_at,
        )


class PdfStatus(BaseModel):
    model_config = CAMEL_CONFIG

    pdf_ready: bool
    pdf_path: str = ""


# ─────────────────────────────────────────────────────────────────
# RENDER HAND-OFF
# ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RenderJob:
    """Everything the renderer needs, copied out of the row at schedule time."""
    book_id: int
    content: str
    book_name: str
    language: Optional[str] = None
    # Bumped on every schedule; an older job's PDF is thrown away
    generation: int = 0
