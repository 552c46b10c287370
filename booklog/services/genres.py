import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from booklog.models import Genre

logger = logging.getLogger(__name__)

DEFAULT_GENRES = [
    "Classic",
    "Dystopian",
    "Romance",
    "Fantasy",
    "Adventure",
    "Horror",
    "Science Fiction",
    "Satire",
    "Historical",
    "Philosophy",
    "Children",
    "Poetry",
    "Drama",
    "Mystery",
    "Nonfiction",
    "Fiction",
]


def get_all(db: Session) -> list[Genre]:
    return db.query(Genre).order_by(Genre.name.asc()).all()


def get_by_id(db: Session, genre_id: int) -> Optional[Genre]:
    return db.query(Genre).filter(Genre.id == genre_id).first()


def get_by_name(db: Session, name: str) -> Optional[Genre]:
    return db.query(Genre).filter(func.lower(Genre.name) == name.strip().lower()).first()


def check_duplicate(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Genre).filter(Genre.name == name)
    if exclude_id is not None:
        query = query.filter(Genre.id != exclude_id)
    return db.query(query.exists()).scalar()


def create(db: Session, name: str, description: Optional[str] = None) -> Genre:
    genre = Genre(name=name, description=description)
    db.add(genre)
    db.commit()
    db.refresh(genre)
    return genre


def update(db: Session, genre_id: int, name: str, description: Optional[str] = None) -> Optional[Genre]:
    genre = get_by_id(db, genre_id)
    if genre is None:
        return None
    genre.name = name
    genre.description = description
    db.commit()
    db.refresh(genre)
    return genre


def delete(db: Session, genre_id: int) -> bool:
    genre = get_by_id(db, genre_id)
    if genre is None:
        return False
    db.delete(genre)
    db.commit()
    return True


def seed_default_genres(db: Session) -> int:
    """Insert any missing default genres. Returns how many were created."""
    existing = {name for (name,) in db.query(Genre.name).all()}
    missing = [name for name in DEFAULT_GENRES if name not in existing]
    for name in missing:
        db.add(Genre(name=name))
    if missing:
        db.commit()
    return len(missing)
