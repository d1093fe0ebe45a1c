"""
Unit tests for api/book_router.py and api/admin_router.py: HTTP mapping.

The service is a MagicMock; lifecycle behaviour is covered in test_book_service.py.
"""
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from api.deps import book_service
from api.main import app
from core.auth import User, get_current_user, get_optional_user
from core.books.exceptions import AccessDeniedError, BookNotFoundError
from core.books.models import BookResponse, PdfStatus

DAD = User(id=42, email="dad@example.com", name="Dad")
ADMIN = User(id=1, email="admin@example.com", name="Admin", is_admin=True)

VALID_FORM = {
    "name": "Mia", "age": 7, "theme": "space", "tone": "whimsical",
    "giver": "Dad", "isPublic": False,
}


def book_response(**overrides) -> BookResponse:
    data = dict(
        book_id=5, name="Mia", age=7, theme="space", tone="whimsical", giver="Dad",
        content="A Special Gift for Mia", author_id=42, author_name="Dad",
        created_at=datetime(2024, 5, 1, 12, 0, 0),
    )
    data.update(overrides)
    return BookResponse(**data)


@pytest.fixture
def service():
    svc = MagicMock()
    svc.create_book = AsyncMock(return_value=book_response())
    return svc


def make_client(service, user=DAD):
    app.dependency_overrides[book_service] = lambda: service
    app.dependency_overrides[get_optional_user] = lambda: user
    if user is not None:
        app.dependency_overrides[get_current_user] = lambda: user
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_overrides():
    yield
    app.dependency_overrides.clear()


class TestGenerate:

    def test_created_with_camel_case_body(self, service):
        resp = make_client(service).post("/api/book/generate", json=VALID_FORM)

        assert resp.status_code == 201
        data = resp.json()
        assert data["bookId"] == 5
        assert data["pdfReady"] is False
        assert data["authorName"] == "Dad"
        request, caller_id = service.create_book.await_args.args
        assert request.name == "Mia"
        assert caller_id == 42

    def test_validation_error_format(self, service):
        resp = make_client(service).post("/api/book/generate", json={**VALID_FORM, "age": 0})

        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] == "Validation failed"
        assert "age" in data["errors"]
        service.create_book.assert_not_called()

    def test_missing_required_fields(self, service):
        resp = make_client(service).post("/api/book/generate", json={"name": "Mia"})

        assert resp.status_code == 400
        errors = resp.json()["errors"]
        for field in ("age", "theme", "tone", "giver"):
            assert field in errors

    def test_requires_authentication(self, service):
        resp = make_client(service, user=None).post("/api/book/generate", json=VALID_FORM)
        assert resp.status_code == 401


class TestReads:

    def test_history(self, service):
        service.list_for_owner.return_value = [book_response()]
        resp = make_client(service).get("/api/book/history")
        assert resp.status_code == 200
        assert [b["bookId"] for b in resp.json()] == [5]
        service.list_for_owner.assert_called_once_with(42)

    def test_discover_anonymous(self, service):
        service.list_public.return_value = []
        resp = make_client(service, user=None).get("/api/book/discover")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_get_book(self, service):
        service.get_book.return_value = book_response(is_public=True)
        resp = make_client(service, user=None).get("/api/book/5")
        assert resp.status_code == 200
        assert resp.json()["isPublic"] is True
        service.get_book.assert_called_once_with(5, None)

    def test_get_book_forbidden(self, service):
        service.get_book.side_effect = AccessDeniedError("nope", book_id=5)
        resp = make_client(service).get("/api/book/5")
        assert resp.status_code == 403

    def test_get_book_not_found(self, service):
        service.get_book.side_effect = BookNotFoundError("Book 5 not found", book_id=5)
        resp = make_client(service).get("/api/book/5")
        assert resp.status_code == 404

    def test_status(self, service):
        service.get_pdf_status.return_value = PdfStatus(pdf_ready=False, pdf_path="")
        resp = make_client(service).get("/api/book/5/status")
        assert resp.status_code == 200
        assert resp.json() == {"pdfReady": False, "pdfPath": ""}

    def test_pdf_download(self, service, tmp_path):
        pdf = tmp_path / "book_5_1714564800000.pdf"
        pdf.write_bytes(b"%PDF-1.7 stub")
        service.get_pdf_file.return_value = pdf

        resp = make_client(service).get("/api/book/5/pdf")

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.headers["content-disposition"].startswith("inline")
        assert resp.content == b"%PDF-1.7 stub"

    def test_pdf_not_ready(self, service):
        service.get_pdf_file.side_effect = BookNotFoundError("PDF for book 5 is not ready")
        resp = make_client(service).get("/api/book/5/pdf")
        assert resp.status_code == 404


class TestOwnerActions:

    def test_visibility(self, service):
        service.set_visibility.return_value = book_response(is_public=True)
        resp = make_client(service).patch("/api/book/5/visibility", json={"isPublic": True})
        assert resp.status_code == 200
        service.set_visibility.assert_called_once_with(5, 42, True)

    def test_visibility_requires_flag(self, service):
        resp = make_client(service).patch("/api/book/5/visibility", json={})
        assert resp.status_code == 400
        service.set_visibility.assert_not_called()

    def test_visibility_not_owner(self, service):
        service.set_visibility.side_effect = AccessDeniedError("Only the owner can change this book")
        resp = make_client(service).patch("/api/book/5/visibility", json={"isPublic": True})
        assert resp.status_code == 403

    def test_counters(self, service):
        client = make_client(service, user=None)
        assert client.post("/api/book/5/view").status_code == 200
        assert client.post("/api/book/5/download").status_code == 200
        service.increment_view.assert_called_once_with(5)
        service.increment_download.assert_called_once_with(5)


class TestAdminRoutes:

    def test_non_admin_forbidden(self, service):
        resp = make_client(service, user=DAD).get("/api/admin/books")
        assert resp.status_code == 403

    def test_list_books(self, service):
        service.list_all.return_value = [book_response()]
        resp = make_client(service, user=ADMIN).get("/api/admin/books")
        assert resp.status_code == 200
        assert len(resp.json()) == 1

    def test_update_book(self, service):
        service.update_book.return_value = book_response(theme="ocean")
        resp = make_client(service, user=ADMIN).put("/api/admin/books/5", json={"theme": "ocean"})
        assert resp.status_code == 200
        assert resp.json()["theme"] == "ocean"

    def test_delete_missing_book(self, service):
        service.delete_book.side_effect = BookNotFoundError("Book 5 not found")
        resp = make_client(service, user=ADMIN).delete("/api/admin/books/5")
        assert resp.status_code == 404

    def test_rerender(self, service):
        service.rerender.return_value = PdfStatus(pdf_ready=False, pdf_path="")
        resp = make_client(service, user=ADMIN).post("/api/admin/books/5/rerender")
        assert resp.status_code == 202
        assert resp.json()["pdfReady"] is False


class TestHealth:

    def test_health(self):
        resp = TestClient(app).get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert resp.headers["x-content-type-options"] == "nosniff"
