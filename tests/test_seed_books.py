from sqlalchemy.orm import Session

from booklog.models import Book, Genre, ReadStatus
from booklog.scripts.seed_books import DEFAULT_FILES, _collect_books, seed_books, seed_demo_user
from booklog.services import user_books as user_book_service

RAW_BOOKS = [
    {"title": "Emma", "author": "Jane Austen", "year": 1815, "genres": ["Romance", "Regency"]},
    {"title": "Dune", "author": "Frank Herbert", "year": 1965, "genres": ["Science Fiction"]},
    {"title": "", "author": "Nobody"},
]


def test_seed_books_creates_and_skips(db: Session):
    counts = seed_books(db, RAW_BOOKS)
    assert counts == {"created": 2, "updated": 0, "skipped": 1}

    emma = db.query(Book).filter(Book.title == "Emma").one()
    assert [g.name for g in emma.genres] == ["Romance", "Regency"]
    assert emma.publication_date == "1815-01-01"
    assert db.query(Genre).filter(Genre.name == "Regency").count() == 1


def test_seed_books_is_idempotent(db: Session):
    seed_books(db, RAW_BOOKS)
    counts = seed_books(db, RAW_BOOKS)
    assert counts == {"created": 0, "updated": 2, "skipped": 1}
    assert db.query(Book).count() == 2


def test_bundled_sample_catalog_loads(db: Session):
    books = _collect_books(DEFAULT_FILES)
    assert books
    seed_books(db, books)
    assert db.query(Book).count() == len({(b["title"], b["author"]) for b in books})


def test_seed_demo_user_marks_books_read(db: Session):
    seed_books(db, RAW_BOOKS)
    user = seed_demo_user(db, "demo", "demo-password")

    read = user_book_service.get_read_books(db, user.id)
    assert {b.title for b in read} == {"Emma", "Dune"}
    assert all(a.read_status == ReadStatus.READ for a in user_book_service.get_by_user(db, user.id))


def test_seed_books_repeated_entry_in_one_run(db: Session):
    counts = seed_books(db, [
        {"title": "Emma", "author": "Jane Austen", "year": 1815, "genres": ["Romance"]},
        {"title": "Emma", "author": "Jane Austen", "isbn": "9780141439587", "page_count": 474},
    ])
    assert counts == {"created": 1, "updated": 1, "skipped": 0}
    assert db.query(Book).count() == 1


def test_seed_books_update_fills_provided_fields(db: Session):
    seed_books(db, [{"title": "Dune", "author": "Frank Herbert", "year": 1965, "genres": ["Science Fiction"]}])
    seed_books(db, [{
        "title": "Dune",
        "author": "Frank Herbert",
        "genres": ["Science Fiction"],
        "isbn": "9780441172719",
        "page_count": 688,
        "publisher": "Ace",
        "cover_image_url": "https://images.example/dune.jpg",
    }])

    dune = db.query(Book).filter(Book.title == "Dune").one()
    assert dune.isbn == "9780441172719"
    assert dune.page_count == 688
    assert dune.publisher == "Ace"
    assert dune.cover_image_url == "https://images.example/dune.jpg"
    assert dune.year == 1965
    assert dune.publication_date == "1965-01-01"
    assert dune.language == "English"
