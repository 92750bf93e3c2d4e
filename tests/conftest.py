# tests/conftest.py
import datetime
import os
import sys

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add the src directory to the Python path to allow imports
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
src_path = os.path.join(project_root, 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from readingnook.db.session import Base
# Import all models to ensure they are registered with Base
import readingnook.models  # noqa: F401
from readingnook.core.security import ActorContext
from readingnook.models.book import Book
from readingnook.models.profile import Profile

# --- Test Database Setup ---
# In-memory SQLite; one engine per test so every test starts from empty tables.
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session_factory(db_engine):
    """Returns a SQLAlchemy session factory."""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(db_session_factory):
    """
    Session for one test. The CRUD functions commit and roll back on their own,
    so the test owns the whole (throwaway) database instead of a transaction.
    """
    session = db_session_factory()
    try:
        yield session
    finally:
        session.close()


# --- Shared data helpers ---
@pytest.fixture
def actor():
    return ActorContext(user_id="user-1", email="reader1@example.com", full_name="Kim Reader", nickname="책벌레")


@pytest.fixture
def other_actor():
    return ActorContext(user_id="user-2", email="reader2@example.com", full_name=None, nickname=None)


@pytest.fixture
def make_book(db_session):
    def _make_book(title="데미안", isbn=None, **fields):
        book = Book(title=title, isbn=isbn, **fields)
        db_session.add(book)
        db_session.commit()
        db_session.refresh(book)
        return book
    return _make_book


@pytest.fixture
def make_profile(db_session):
    def _make_profile(user_id, nickname):
        profile = Profile(id=user_id, nickname=nickname)
        db_session.add(profile)
        db_session.commit()
        return profile
    return _make_profile


@pytest.fixture
def today():
    return datetime.date.today()
