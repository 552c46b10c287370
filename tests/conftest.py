"""Pytest configuration for booklog tests."""
import base64
import json
import sys
from pathlib import Path

import pytest
import requests
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

from booklog.database import Base, configure_engine, get_db

# Import the entire models module to ensure all models are registered with Base.metadata
import booklog.models  # noqa: F401
from booklog.models import Book, Genre, User, UserBookAssociation, ReadingList, ReadingListBook, ReadStatus
from booklog.core.security import get_password_hash
from booklog.services import genres as genre_service
from booklog.main import app


@pytest.fixture(scope="function")
def engine():
    """
    Fresh in-memory SQLite database per test.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    test_engine = configure_engine(
        create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Session:
    """Database session with the default genres already seeded."""
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    genre_service.seed_default_genres(session)
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db: Session):
    """TestClient whose requests share the test session."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def genre_ids(db: Session) -> dict[str, int]:
    return {g.name: g.id for g in db.query(Genre).all()}


@pytest.fixture
def make_user(db: Session):
    def _make_user(username: str = "reader", password: str = "secret123", nickname: str = None) -> User:
        user = User(username=username, password_hash=get_password_hash(password), nickname=nickname)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def user(make_user) -> User:
    return make_user()


@pytest.fixture
def make_book(db: Session):
    def _make_book(title: str, author: str = "Some Author", genres: list[str] = (), **fields) -> Book:
        book = Book(title=title, author=author, **fields)
        book.genres = [db.query(Genre).filter(Genre.name == name).one() for name in genres]
        db.add(book)
        db.commit()
        db.refresh(book)
        return book

    return _make_book


@pytest.fixture
def mark_read(db: Session):
    def _mark_read(user: User, book: Book, rating: int = None) -> UserBookAssociation:
        association = UserBookAssociation(
            user_id=user.id,
            book_id=book.id,
            read_status=ReadStatus.READ,
            rating=rating,
        )
        db.add(association)
        db.commit()
        return association

    return _mark_read


@pytest.fixture
def make_reading_list(db: Session):
    def _make_reading_list(owner: User, name: str = "Summer", books: list[Book] = (), is_public: bool = False) -> ReadingList:
        reading_list = ReadingList(user_id=owner.id, name=name, is_public=is_public)
        db.add(reading_list)
        db.flush()
        for position, book in enumerate(books, start=1):
            db.add(ReadingListBook(reading_list_id=reading_list.id, book_id=book.id, position=position))
        db.commit()
        db.refresh(reading_list)
        return reading_list

    return _make_reading_list


def bearer_for(user_id: int) -> dict:
    token = base64.b64encode(json.dumps({"userId": user_id}).encode()).decode()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return bearer_for


class FakeResponse:
    """Stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, payload=None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON payload")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)
