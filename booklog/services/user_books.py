"""
Per-user reading state (read status, rating, comments) for catalog books.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session, selectinload

from booklog.models import Book, UserBookAssociation, ReadStatus
from booklog.services.books import search_filter, order_clause, paginate

logger = logging.getLogger(__name__)

READ_SORT_COLUMNS = {
    "title": Book.title,
    "author": Book.author,
    "year": Book.year,
    "rating": UserBookAssociation.rating,
    "read_at": UserBookAssociation.updated_at,
    "created_at": Book.created_at,
}
READ_DEFAULT_SORT = "title"
READ_DEFAULT_ORDER = "asc"

UPDATABLE_FIELDS = ("read_status", "rating", "comments")


def get_by_user(db: Session, user_id: int) -> list[UserBookAssociation]:
    return (
        db.query(UserBookAssociation)
        .filter(UserBookAssociation.user_id == user_id)
        .order_by(UserBookAssociation.updated_at.desc(), UserBookAssociation.id.desc())
        .all()
    )


def get_by_user_and_book(db: Session, user_id: int, book_id: int) -> Optional[UserBookAssociation]:
    return (
        db.query(UserBookAssociation)
        .filter(
            UserBookAssociation.user_id == user_id,
            UserBookAssociation.book_id == book_id,
        )
        .first()
    )


def get_read_books(db: Session, user_id: int) -> list[Book]:
    """Books the user marked as read, most recently updated first."""
    return (
        db.query(Book)
        .options(selectinload(Book.genres))
        .join(UserBookAssociation, UserBookAssociation.book_id == Book.id)
        .filter(
            UserBookAssociation.user_id == user_id,
            UserBookAssociation.read_status == ReadStatus.READ,
        )
        .order_by(UserBookAssociation.updated_at.desc(), Book.id.desc())
        .all()
    )


def get_ratings(db: Session, user_id: int, book_ids: list[int]) -> dict[int, Optional[int]]:
    if not book_ids:
        return {}
    rows = (
        db.query(UserBookAssociation.book_id, UserBookAssociation.rating)
        .filter(
            UserBookAssociation.user_id == user_id,
            UserBookAssociation.book_id.in_(book_ids),
        )
        .all()
    )
    return {book_id: rating for book_id, rating in rows}


def upsert(
    db: Session,
    user_id: int,
    book_id: int,
    read_status: Optional[str] = None,
    rating: Optional[int] = None,
    comments: Optional[str] = None,
) -> UserBookAssociation:
    """
    Insert the association, or update the existing one.

    On update only the supplied (non-None) fields overwrite stored values.
    """
    association = get_by_user_and_book(db, user_id, book_id)
    if association is None:
        association = UserBookAssociation(
            user_id=user_id,
            book_id=book_id,
            read_status=read_status or ReadStatus.UNREAD,
            rating=rating,
            comments=comments,
        )
        db.add(association)
    else:
        _apply(association, read_status=read_status, rating=rating, comments=comments)
    db.commit()
    db.refresh(association)
    return association


def update(db: Session, user_id: int, book_id: int, **fields) -> Optional[UserBookAssociation]:
    association = get_by_user_and_book(db, user_id, book_id)
    if association is None:
        return None
    _apply(association, **fields)
    db.commit()
    db.refresh(association)
    return association


def _apply(association: UserBookAssociation, **fields) -> None:
    for field in UPDATABLE_FIELDS:
        value = fields.get(field)
        if value is not None:
            setattr(association, field, value)
    association.updated_at = datetime.utcnow()


def delete(db: Session, user_id: int, book_id: int) -> bool:
    association = get_by_user_and_book(db, user_id, book_id)
    if association is None:
        return False
    db.delete(association)
    db.commit()
    return True


def get_books_with_user_associations(db: Session, user_id: int, page: int = 1, limit: int = 10) -> dict:
    """
    Page through the whole catalog, pairing each book with this user's
    association (None when the user has not touched the book).
    """
    query = (
        db.query(Book, UserBookAssociation)
        .options(selectinload(Book.genres))
        .outerjoin(
            UserBookAssociation,
            and_(
                UserBookAssociation.book_id == Book.id,
                UserBookAssociation.user_id == user_id,
            ),
        )
        .order_by(Book.created_at.desc(), Book.id.desc())
    )
    rows, total, total_pages = paginate(query, page, limit)
    return {"books": rows, "total": total, "total_pages": total_pages}


def get_read_books_with_pagination(
    db: Session,
    user_id: int,
    page: int = 1,
    limit: int = 10,
    sort_by: Optional[str] = READ_DEFAULT_SORT,
    sort_order: Optional[str] = READ_DEFAULT_ORDER,
    search: Optional[str] = None,
) -> dict:
    query = (
        db.query(Book, UserBookAssociation)
        .options(selectinload(Book.genres))
        .join(UserBookAssociation, UserBookAssociation.book_id == Book.id)
        .filter(
            UserBookAssociation.user_id == user_id,
            UserBookAssociation.read_status == ReadStatus.READ,
        )
    )
    if search and search.strip():
        query = query.filter(search_filter(search))

    query = query.order_by(
        order_clause(READ_SORT_COLUMNS, sort_by, sort_order, READ_DEFAULT_SORT, READ_DEFAULT_ORDER),
        Book.id.asc(),
    )
    rows, total, total_pages = paginate(query, page, limit)
    return {"books": rows, "total": total, "total_pages": total_pages}
