"""
Seed the book catalog from one or more JSON files.

Usage examples:

  # Default: seed the bundled sample catalog
  python -m booklog.scripts.seed_books

  # Seed a specific file only
  python -m booklog.scripts.seed_books --file path/to/books.json

  # Also create a demo user and mark a few books as read for it
  python -m booklog.scripts.seed_books --demo-user admin --demo-password admin123
"""

import argparse
import json
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from booklog.database import Database
from booklog import models
from booklog.services import genres as genre_service
from booklog.services import user_books as user_book_service
from booklog.services import users as user_service

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_FILES = [
    BASE_DIR / "data" / "sample_books.json",
]

DEMO_READS = [
    (5, "Absolutely brilliant! One of my all-time favorites."),
    (4, "Great classic, really enjoyed the story."),
    (3, "Interesting but a bit heavy."),
    (5, "Beautiful romance, timeless story."),
    (4, "Captures teenage angst perfectly."),
]


def _load_books_from_file(path: Path) -> list[dict]:
    """Load a single JSON file of books, or return empty if file missing."""
    if not path.exists():
        logger.warning("[seed_books] File not found, skipping: %s", path)
        return []

    logger.info("[seed_books] Loading books from: %s", path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"Expected list of books in {path}, got {type(data)}")

    return data


def _collect_books(files: list[Path]) -> list[dict]:
    all_books: list[dict] = []
    for path in files:
        all_books.extend(_load_books_from_file(path))

    if not all_books:
        raise FileNotFoundError(
            "No books loaded. Checked files:\n"
            + "\n".join(str(p) for p in files)
        )
    return all_books


def _genres_for(db: Session, names: list[str]) -> list[models.Genre]:
    """Resolve genre names, creating any that don't exist yet."""
    genres = []
    for name in names or ["Fiction"]:
        genre = genre_service.get_by_name(db, name)
        if genre is None:
            genre = models.Genre(name=name.strip())
            db.add(genre)
            db.flush()
        genres.append(genre)
    return genres


def _book_fields(b: dict) -> dict:
    """Catalog columns carried by a raw book entry, without title/author."""
    year = b.get("year")
    return {
        "year": year,
        "description": b.get("description"),
        "isbn": b.get("isbn"),
        "page_count": b.get("page_count"),
        "language": b.get("language"),
        "publisher": b.get("publisher"),
        "cover_image_url": b.get("cover_image_url"),
        "publication_date": b.get("publication_date") or (f"{year}-01-01" if year else None),
    }


def seed_books(db: Session, raw_books: list[dict]) -> dict:
    """Idempotent upsert keyed on (title, author). Returns created/updated/skipped counts."""
    created = 0
    updated = 0
    skipped = 0

    for b in raw_books:
        title = (b.get("title") or "").strip()
        author = (b.get("author") or "").strip()

        if not title or not author:
            # Hard skip any garbage rows
            skipped += 1
            continue

        genres = _genres_for(db, b.get("genres") or [])
        fields = _book_fields(b)
        existing = (
            db.query(models.Book)
            .filter(models.Book.title == title, models.Book.author == author)
            .one_or_none()
        )

        if existing:
            # Only overwrite what the entry actually provides
            for column, value in fields.items():
                if value is not None:
                    setattr(existing, column, value)
            existing.genres = genres
            existing.updated_at = datetime.utcnow()
            updated += 1
            continue

        fields["language"] = fields["language"] or "English"
        book = models.Book(title=title, author=author, **fields)
        book.genres = genres
        db.add(book)
        # Sessions don't autoflush; a repeat later in the same run must find this row
        db.flush()
        created += 1

    db.commit()
    logger.info("[seed_books] Seed complete. Created=%d, Updated=%d, Skipped=%d", created, updated, skipped)
    return {"created": created, "updated": updated, "skipped": skipped}


def seed_demo_user(db: Session, username: str, password: str) -> Optional[models.User]:
    """Create the demo user (if missing) and mark the first few catalog books as read."""
    user = user_service.get_by_username(db, username)
    if user is None:
        user = user_service.create(db, username, password, nickname=username)

    books = db.query(models.Book).order_by(models.Book.id.asc()).limit(len(DEMO_READS)).all()
    for book, (rating, comments) in zip(books, DEMO_READS):
        user_book_service.upsert(
            db,
            user_id=user.id,
            book_id=book.id,
            read_status=models.ReadStatus.READ.value,
            rating=rating,
            comments=comments,
        )
    logger.info("[seed_books] Demo user %r has %d read books", username, len(books))
    return user


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    parser = argparse.ArgumentParser(description="Seed the book catalog from JSON files.")
    parser.add_argument(
        "--file",
        action="append",
        dest="files",
        help="Path to a JSON file of books (can be given multiple times).",
    )
    parser.add_argument("--database-url", help="Override DATABASE_URL for this run.")
    parser.add_argument("--demo-user", help="Create this user and mark sample books as read.")
    parser.add_argument("--demo-password", default="password123")
    args = parser.parse_args()

    files = [Path(f) for f in args.files] if args.files else DEFAULT_FILES

    database = Database(args.database_url)
    database.init_db()
    db = database.session()
    try:
        seed_books(db, _collect_books(files))
        if args.demo_user:
            seed_demo_user(db, args.demo_user, args.demo_password)
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    main()
