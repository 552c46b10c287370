"""
Book catalog data access.

Every function takes the request's Session and lets database errors
propagate; handlers decide how to report them.
"""
import logging
import math
from datetime import datetime
from typing import Optional, Iterable

from sqlalchemy import or_, asc, desc, cast, String
from sqlalchemy.orm import Session, Query, selectinload

from booklog.models import Book, Genre

logger = logging.getLogger(__name__)

BOOK_FIELDS = (
    "title",
    "author",
    "year",
    "description",
    "isbn",
    "page_count",
    "language",
    "publisher",
    "cover_image_url",
    "publication_date",
    "user_id",
)

# Sort with allowlist to prevent SQL injection
SORT_COLUMNS = {
    "title": Book.title,
    "author": Book.author,
    "year": Book.year,
    "created_at": Book.created_at,
    "updated_at": Book.updated_at,
    "page_count": Book.page_count,
    "publication_date": Book.publication_date,
}
DEFAULT_SORT = "created_at"
DEFAULT_ORDER = "desc"


class UnknownGenreError(ValueError):
    """Raised when a book references genre ids that do not exist."""

    def __init__(self, missing_ids: list[int]):
        self.missing_ids = missing_ids
        super().__init__(f"Unknown genre id(s): {', '.join(str(i) for i in missing_ids)}")


def search_filter(search: str):
    """Case-insensitive substring match over the book's text columns and genre names."""
    term = f"%{search.strip()}%"
    return or_(
        Book.title.ilike(term),
        Book.author.ilike(term),
        cast(Book.year, String).ilike(term),
        Book.description.ilike(term),
        Book.isbn.ilike(term),
        Book.language.ilike(term),
        Book.publisher.ilike(term),
        Book.genres.any(Genre.name.ilike(term)),
    )


def order_clause(sort_columns: dict, sort_by: Optional[str], sort_order: Optional[str], default_sort: str, default_order: str):
    """Resolve user-supplied sort parameters against an allowlist, falling back silently."""
    column = sort_columns.get(sort_by or "", sort_columns[default_sort])
    order = (sort_order or "").lower()
    if order not in ("asc", "desc"):
        order = default_order
    sort_fn = desc if order == "desc" else asc
    return sort_fn(column)


def paginate(query: Query, page: int, limit: int) -> tuple[list, int, int]:
    """Return (items, total, total_pages) for a 1-based page."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    total_pages = math.ceil(total / limit) if limit else 0
    return items, total, total_pages


def _base_query(db: Session) -> Query:
    return db.query(Book).options(selectinload(Book.genres))


def get_all(db: Session) -> list[Book]:
    """Whole catalog, newest first. This order is the recommendation engine's catalog order."""
    return _base_query(db).order_by(Book.created_at.desc(), Book.id.desc()).all()


def get_by_id(db: Session, book_id: int) -> Optional[Book]:
    return _base_query(db).filter(Book.id == book_id).first()


def get_for_genre(db: Session, genre_id: int) -> list[Book]:
    return (
        _base_query(db)
        .filter(Book.genres.any(Genre.id == genre_id))
        .order_by(Book.title.asc())
        .all()
    )


def get_paginated(
    db: Session,
    page: int = 1,
    limit: int = 10,
    sort_by: Optional[str] = DEFAULT_SORT,
    sort_order: Optional[str] = DEFAULT_ORDER,
    search: Optional[str] = None,
) -> dict:
    query = _base_query(db)
    if search and search.strip():
        query = query.filter(search_filter(search))

    query = query.order_by(
        order_clause(SORT_COLUMNS, sort_by, sort_order, DEFAULT_SORT, DEFAULT_ORDER),
        Book.id.desc(),
    )
    books, total, total_pages = paginate(query, page, limit)
    return {"books": books, "total": total, "total_pages": total_pages}


def check_duplicate(db: Session, title: str, author: str, exclude_id: Optional[int] = None) -> Optional[Book]:
    """Exact (title, author) match, optionally ignoring one book id."""
    query = db.query(Book).filter(Book.title == title, Book.author == author)
    if exclude_id is not None:
        query = query.filter(Book.id != exclude_id)
    return query.first()


def _resolve_genres(db: Session, genre_ids: Iterable[int]) -> list[Genre]:
    ids = list(dict.fromkeys(genre_ids))
    if not ids:
        return []
    genres = db.query(Genre).filter(Genre.id.in_(ids)).all()
    found = {g.id for g in genres}
    missing = [i for i in ids if i not in found]
    if missing:
        raise UnknownGenreError(missing)
    by_id = {g.id: g for g in genres}
    return [by_id[i] for i in ids]


def create(db: Session, data: dict, genre_ids: Iterable[int]) -> Book:
    """
    Insert a book together with its genre links.

    The row and its links are committed together; if a genre id is unknown
    nothing is written.
    """
    genres = _resolve_genres(db, genre_ids)
    book = Book(**{k: v for k, v in data.items() if k in BOOK_FIELDS})
    book.genres = genres
    try:
        db.add(book)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(book)
    logger.info("Created book id=%s title=%r", book.id, book.title)
    return book


def update(db: Session, book_id: int, data: dict, genre_ids: Optional[Iterable[int]] = None) -> Optional[Book]:
    """
    Change only the supplied fields. When genre_ids is given the book's
    genre set is replaced in the same transaction.
    """
    book = get_by_id(db, book_id)
    if book is None:
        return None

    genres = _resolve_genres(db, genre_ids) if genre_ids is not None else None
    for field, value in data.items():
        if field in BOOK_FIELDS:
            setattr(book, field, value)
    if genres is not None:
        book.genres = genres
    book.updated_at = datetime.utcnow()
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(book)
    return book


def delete(db: Session, book_id: int) -> bool:
    book = db.query(Book).filter(Book.id == book_id).first()
    if book is None:
        return False
    db.delete(book)
    db.commit()
    logger.info("Deleted book id=%s", book_id)
    return True
