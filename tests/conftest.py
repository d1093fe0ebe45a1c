"""
Shared test configuration.

Environment is set before any application module reads settings, so
tests never touch the real data/ or generated-pdfs/ directories.
"""

import os
import tempfile

_TEST_ROOT = tempfile.mkdtemp(prefix="giftbook-tests-")

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-unit-tests-0123456789")
os.environ.setdefault("DATABASE_DIR", os.path.join(_TEST_ROOT, "data"))
os.environ.setdefault("PDF_OUTPUT_DIR", os.path.join(_TEST_ROOT, "pdfs"))
os.environ.setdefault("LOGS_DIR", os.path.join(_TEST_ROOT, "logs"))
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ["OPENAI_API_KEY"] = ""

import pytest

from core.auth.database import UserDatabase
from core.auth.models import User
from core.books.repository import BookRepository
from core.database import SQLiteDatabase


@pytest.fixture
def database(tmp_path):
    """Fresh SQLite database per test."""
    return SQLiteDatabase(tmp_path / "giftbook.db")


@pytest.fixture
def user_db(database):
    return UserDatabase(database)


@pytest.fixture
def book_repo(database, user_db):
    return BookRepository(database)


@pytest.fixture
def owner(user_db):
    return user_db.create_user(User(email="parent@example.com", name="Sam Parent"))


@pytest.fixture
def stranger(user_db):
    return user_db.create_user(User(email="someone@example.com", name="Someone Else"))
