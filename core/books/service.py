# ═══════════════════════════════════════════════════════════════════
# FILE: core/books/service.py
# PURPOSE: Book lifecycle: generate, persist not-ready, render PDF in
#          the background, flip to ready; counters, visibility, admin
# ═══════════════════════════════════════════════════════════════════

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import List, Optional

from core.auth.database import UserDatabase, get_user_db

from .access import ensure_can_read, ensure_owner
from .exceptions import (
    AccessDeniedError,
    BookNotFoundError,
    GenerationUnavailableError,
    RenderFailureError,
)
from .generation import StoryGenerationClient
from .models import (
    Book,
    BookRequest,
    BookResponse,
    BookUpdateRequest,
    PdfStatus,
    RenderJob,
)
from .prompts import build_prompt, frame_story, placeholder_story
from .renderer import StoryPdfRenderer
from .repository import BookRepository

logger = logging.getLogger(__name__)

# Edits to these fields invalidate the rendered PDF
RENDERED_FIELDS = {"content", "name", "language"}


class BookService:
    """
    Orchestrates the book lifecycle.

    Manages:
    - Creation (prompt -> generation or placeholder -> not-ready row)
    - PDF rendering as background tasks, one per book at a time
    - View/download counters and owner-controlled visibility
    - Admin edits, deletion and re-rendering
    """

    def __init__(
        self,
        repo: Optional[BookRepository] = None,
        user_db: Optional[UserDatabase] = None,
        generator: Optional[StoryGenerationClient] = None,
        renderer: Optional[StoryPdfRenderer] = None,
    ):
        from config.settings import settings

        self.repo = repo or BookRepository()
        self.user_db = user_db or get_user_db()
        self.generator = generator or StoryGenerationClient.from_settings(settings)
        self.renderer = renderer or StoryPdfRenderer(settings.pdf_output_dir)

        self._running_tasks: dict[int, asyncio.Task] = {}
        # Latest job generation per book, and jobs waiting for a running render
        self._generations: dict[int, int] = {}
        self._queued_jobs: dict[int, RenderJob] = {}

    # ─────────────────────────────────────────────────────────────
    # CREATION
    # ─────────────────────────────────────────────────────────────

    async def create_book(self, request: BookRequest, caller_id: int) -> BookResponse:
        """Generate a story, save it not-ready and schedule its PDF."""
        owner = self.user_db.get_user_by_id(caller_id)
        if owner is None:
            raise BookNotFoundError(f"User {caller_id} not found")

        logger.info(f"Generating book for '{request.name}' (owner {owner.id})")
        content = await self._generate_content(request)

        book = self.repo.create(Book(
            owner_id=owner.id,
            name=request.name,
            age=request.age,
            gender=request.gender,
            language=request.language,
            theme=request.theme,
            main_topic=request.main_topic,
            tone=request.tone,
            giver=request.giver,
            appearance=request.appearance,
            characters=request.characters,
            content=content,
            is_public=request.is_public,
        ))

        self.schedule_render(book)
        return BookResponse.from_book(book, owner.name)

    async def _generate_content(self, request: BookRequest) -> str:
        system, user = build_prompt(request)
        try:
            story = await self.generator.generate(system, user)
        except GenerationUnavailableError as e:
            logger.warning(f"Story generation unavailable, using placeholder: {e}")
            return placeholder_story(request)
        return frame_story(request, story)

    # ─────────────────────────────────────────────────────────────
    # RENDERING
    # ─────────────────────────────────────────────────────────────

    def schedule_render(self, book: Book, replace: bool = False) -> bool:
        """
        Start a background render for the book.

        With a render already running, nothing is scheduled unless
        ``replace`` is set: then the running job is superseded and the new
        one starts as soon as it finishes.
        """
        if not book.content:
            logger.warning(f"Book {book.id} has no content, not rendering")
            return False

        running = self._running_tasks.get(book.id)
        if running is not None and not running.done():
            if not replace:
                logger.info(f"Render already in progress for book {book.id}")
                return False
            self._queued_jobs[book.id] = self._new_job(book)
            logger.info(f"Render for book {book.id} queued behind the running one")
            return True

        self._start_render(self._new_job(book))
        return True

    def _new_job(self, book: Book) -> RenderJob:
        generation = self._generations.get(book.id, 0) + 1
        self._generations[book.id] = generation
        return RenderJob(
            book_id=book.id,
            content=book.content,
            book_name=book.name,
            language=book.language,
            generation=generation,
        )

    def _start_render(self, job: RenderJob):
        task = asyncio.create_task(self._run_render(job))
        self._running_tasks[job.book_id] = task
        task.add_done_callback(lambda t, book_id=job.book_id: self._forget_task(book_id, t))

    def _forget_task(self, book_id: int, task: asyncio.Task):
        if self._running_tasks.get(book_id) is task:
            del self._running_tasks[book_id]
        queued = self._queued_jobs.pop(book_id, None)
        if queued is not None and self._is_current(queued):
            self._start_render(queued)

    def _is_current(self, job: RenderJob) -> bool:
        return self._generations.get(job.book_id) == job.generation

    def _supersede(self, book_id: int):
        """Invalidate every scheduled job for the book."""
        self._generations[book_id] = self._generations.get(book_id, 0) + 1
        self._queued_jobs.pop(book_id, None)

    async def _run_render(self, job: RenderJob):
        """Background task: render PDF in a worker thread, then mark ready."""
        try:
            path = await asyncio.to_thread(
                self.renderer.render,
                job.content,
                job.book_id,
                job.book_name,
                job.language,
            )
            if not self._is_current(job):
                Path(path).unlink(missing_ok=True)
                logger.info(f"Discarded outdated render of book {job.book_id}")
                return
            self.mark_ready(job.book_id, path)
            logger.info(f"Book {job.book_id} is ready: {path}")
        except BookNotFoundError:
            logger.warning(f"Book {job.book_id} was deleted while rendering")
        except RenderFailureError as e:
            logger.error(f"Render failed, book stays not ready: {e}")
        except Exception as e:
            logger.error(f"Unexpected render error for book {job.book_id}: {e}", exc_info=True)

    def mark_ready(self, book_id: int, pdf_path) -> None:
        """
        Point the book at its artifact and flip it ready. Idempotent.

        Raises:
            RenderFailureError: artifact missing or empty
            BookNotFoundError: no such book
        """
        path = Path(pdf_path)
        if not path.is_file() or path.stat().st_size == 0:
            raise RenderFailureError(book_id, f"PDF missing or empty: {path}")

        if not self.repo.mark_ready(book_id, str(path)):
            path.unlink(missing_ok=True)
            raise BookNotFoundError(f"Book {book_id} not found", book_id=book_id)

    async def resume_pending_renders(self) -> int:
        """Reschedule renders for books left not ready (restart, failed render)."""
        scheduled = 0
        for book in self.repo.list_pending_renders():
            if self.schedule_render(book):
                logger.info(f"Resuming render for book {book.id}")
                scheduled += 1
        return scheduled

    async def wait_for_renders(self):
        """Wait for every in-flight render task to finish."""
        while self._running_tasks:
            await asyncio.gather(*list(self._running_tasks.values()), return_exceptions=True)

    # ─────────────────────────────────────────────────────────────
    # COUNTERS
    # ─────────────────────────────────────────────────────────────

    def increment_view(self, book_id: int):
        """Best effort: never raises."""
        try:
            if not self.repo.increment_views(book_id):
                logger.warning(f"View count not updated, book {book_id} not found")
        except sqlite3.Error as e:
            logger.error(f"Failed to increment view count for book {book_id}: {e}")

    def increment_download(self, book_id: int):
        """Best effort: never raises."""
        try:
            if not self.repo.increment_downloads(book_id):
                logger.warning(f"Download count not updated, book {book_id} not found")
        except sqlite3.Error as e:
            logger.error(f"Failed to increment download count for book {book_id}: {e}")

    # ─────────────────────────────────────────────────────────────
    # READS & OWNER OPERATIONS
    # ─────────────────────────────────────────────────────────────

    def get_book(self, book_id: int, caller_id: Optional[int]) -> BookResponse:
        """Read a book under the access policy and count the view."""
        book = self._get_or_404(book_id)
        ensure_can_read(book, caller_id)
        response = self._project(book)
        self.increment_view(book_id)
        return response

    def get_pdf_status(self, book_id: int, caller_id: Optional[int]) -> PdfStatus:
        book = self._get_or_404(book_id)
        ensure_can_read(book, caller_id)
        return PdfStatus(pdf_ready=book.pdf_ready, pdf_path=book.pdf_path or "")

    def get_pdf_file(self, book_id: int, caller_id: Optional[int]) -> Path:
        """Path of a ready PDF the caller may download; counts the download."""
        book = self._get_or_404(book_id)
        ensure_can_read(book, caller_id)

        if not book.pdf_ready or not book.pdf_path:
            raise BookNotFoundError(f"PDF for book {book_id} is not ready", book_id=book_id)

        path = Path(book.pdf_path)
        if not path.is_file():
            logger.error(f"Book {book_id} is ready but its PDF is missing: {path}")
            raise BookNotFoundError(f"PDF for book {book_id} not found", book_id=book_id)

        self.increment_download(book_id)
        return path

    def set_visibility(self, book_id: int, caller_id: int, is_public: bool) -> BookResponse:
        book = self._get_or_404(book_id)
        ensure_owner(book, caller_id)
        self.repo.set_visibility(book_id, is_public)
        logger.info(f"Book {book_id} is now {'public' if is_public else 'private'}")
        return self._project(book.model_copy(update={"is_public": is_public}))

    def list_for_owner(self, caller_id: int) -> List[BookResponse]:
        return self._project_many(self.repo.list_by_owner(caller_id))

    def list_public(self) -> List[BookResponse]:
        return self._project_many(self.repo.list_public())

    # ─────────────────────────────────────────────────────────────
    # ADMIN
    # ─────────────────────────────────────────────────────────────

    def list_all(self) -> List[BookResponse]:
        return self._project_many(self.repo.list_all())

    def update_book(self, book_id: int, update: BookUpdateRequest) -> BookResponse:
        """Apply an admin edit; content or title changes trigger a fresh render."""
        book = self._get_or_404(book_id)
        changes = update.changes()
        if not changes:
            return self._project(book)

        updated = Book.model_validate({**book.model_dump(), **changes})
        self.repo.update_fields(updated)
        logger.info(f"Book {book_id} updated by admin: {sorted(changes)}")

        if RENDERED_FIELDS & changes.keys():
            self._discard_artifact(book)
            self.repo.reset_render(book_id)
            updated = updated.model_copy(update={"pdf_ready": False, "pdf_path": None})
            self.schedule_render(updated, replace=True)

        return self._project(updated)

    def delete_book(self, book_id: int):
        book = self._get_or_404(book_id)
        self.repo.delete(book_id)
        self._supersede(book_id)
        self._discard_artifact(book)
        logger.info(f"Book {book_id} deleted")

    def rerender(self, book_id: int) -> PdfStatus:
        """Operator-triggered re-render, e.g. after a failed render."""
        book = self._get_or_404(book_id)
        self._discard_artifact(book)
        self.repo.reset_render(book_id)
        self.schedule_render(book, replace=True)
        return PdfStatus(pdf_ready=False, pdf_path="")

    # ─────────────────────────────────────────────────────────────
    # HELPERS
    # ─────────────────────────────────────────────────────────────

    def _get_or_404(self, book_id: int) -> Book:
        book = self.repo.get(book_id)
        if book is None:
            raise BookNotFoundError(f"Book {book_id} not found", book_id=book_id)
        return book

    def _project(self, book: Book) -> BookResponse:
        if book.owner_id is None:
            raise AccessDeniedError("Book has no owner", book_id=book.id)
        owner = self.user_db.get_user_by_id(book.owner_id)
        author_name = owner.name if owner else ""
        return BookResponse.from_book(book, author_name)

    def _project_many(self, books: List[Book]) -> List[BookResponse]:
        responses = []
        for book in books:
            if book.owner_id is None:
                logger.error(f"Skipping book {book.id}: owner linkage missing")
                continue
            responses.append(self._project(book))
        return responses

    def _discard_artifact(self, book: Book):
        if book.pdf_path:
            Path(book.pdf_path).unlink(missing_ok=True)


# Global instance
_book_service: Optional[BookService] = None


def get_book_service() -> BookService:
    """Get global book service instance."""
    global _book_service
    if _book_service is None:
        _book_service = BookService()
    return _book_service
