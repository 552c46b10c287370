import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from booklog.models import ReadingList, ReadingListBook, Book

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "description", "is_public")


class DuplicateEntryError(Exception):
    """Raised when a book is added to a reading list that already contains it."""


def get_by_user(db: Session, user_id: int) -> list[ReadingList]:
    return (
        db.query(ReadingList)
        .filter(ReadingList.user_id == user_id)
        .order_by(ReadingList.updated_at.desc(), ReadingList.id.desc())
        .all()
    )


def get_public(db: Session) -> list[ReadingList]:
    return (
        db.query(ReadingList)
        .filter(ReadingList.is_public.is_(True))
        .order_by(ReadingList.updated_at.desc(), ReadingList.id.desc())
        .all()
    )


def get_by_id(db: Session, list_id: int) -> Optional[ReadingList]:
    return db.query(ReadingList).filter(ReadingList.id == list_id).first()


def get_by_id_with_books(db: Session, list_id: int) -> Optional[ReadingList]:
    """Load the list with its entries (ordered by position, then added_at) and their books."""
    return (
        db.query(ReadingList)
        .options(
            selectinload(ReadingList.entries)
            .selectinload(ReadingListBook.book)
            .selectinload(Book.genres)
        )
        .filter(ReadingList.id == list_id)
        .first()
    )


def create(
    db: Session,
    user_id: int,
    name: str,
    description: Optional[str] = None,
    is_public: bool = False,
) -> ReadingList:
    reading_list = ReadingList(
        user_id=user_id,
        name=name,
        description=description,
        is_public=bool(is_public),
    )
    db.add(reading_list)
    db.commit()
    db.refresh(reading_list)
    return reading_list


def update(db: Session, list_id: int, **fields) -> Optional[ReadingList]:
    """Change only the supplied (non-None) fields."""
    reading_list = get_by_id(db, list_id)
    if reading_list is None:
        return None
    for field in UPDATABLE_FIELDS:
        value = fields.get(field)
        if value is not None:
            setattr(reading_list, field, value)
    reading_list.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(reading_list)
    return reading_list


def delete(db: Session, list_id: int) -> bool:
    reading_list = get_by_id(db, list_id)
    if reading_list is None:
        return False
    db.delete(reading_list)
    db.commit()
    return True


def contains_book(db: Session, list_id: int, book_id: int) -> bool:
    query = db.query(ReadingListBook).filter(
        ReadingListBook.reading_list_id == list_id,
        ReadingListBook.book_id == book_id,
    )
    return db.query(query.exists()).scalar()


def add_book(
    db: Session,
    list_id: int,
    book_id: int,
    position: Optional[int] = None,
    notes: Optional[str] = None,
) -> ReadingListBook:
    """
    Append a book to a list. Without an explicit position the book goes
    after the current last entry.
    """
    if contains_book(db, list_id, book_id):
        raise DuplicateEntryError(f"Book {book_id} is already in reading list {list_id}")

    if position is None:
        current_max = (
            db.query(func.max(ReadingListBook.position))
            .filter(ReadingListBook.reading_list_id == list_id)
            .scalar()
        )
        position = (current_max or 0) + 1

    entry = ReadingListBook(
        reading_list_id=list_id,
        book_id=book_id,
        position=position,
        notes=notes,
    )
    db.add(entry)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateEntryError(f"Book {book_id} is already in reading list {list_id}") from e

    reading_list = db.query(ReadingList).filter(ReadingList.id == list_id).first()
    if reading_list is not None:
        reading_list.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(entry)
    return entry


def remove_book(db: Session, list_id: int, book_id: int) -> bool:
    entry = (
        db.query(ReadingListBook)
        .filter(
            ReadingListBook.reading_list_id == list_id,
            ReadingListBook.book_id == book_id,
        )
        .first()
    )
    if entry is None:
        return False
    db.delete(entry)
    db.commit()
    return True
