"""Book catalog endpoints and data-access behaviour."""
import pytest
from sqlalchemy.orm import Session

from booklog.models import Book
from booklog.services import books as book_service


def _payload(genre_ids, **overrides):
    body = {
        "title": "The Hobbit",
        "author": "J.R.R. Tolkien",
        "description": "There and back again.",
        "isbn": "978-0-547-92822-7",
        "page_count": 310,
        "language": "English",
        "publisher": "Allen & Unwin",
        "publication_date": "1937-09-21",
        "genres": [genre_ids["Fantasy"], genre_ids["Adventure"]],
    }
    body.update(overrides)
    return body


def test_create_then_get_round_trip(client, genre_ids):
    created = client.post("/api/books", json=_payload(genre_ids))
    assert created.status_code == 201
    book = created.json()
    assert book["title"] == "The Hobbit"
    assert book["year"] == 1937  # derived from publication_date
    assert {g["name"] for g in book["genres"]} == {"Fantasy", "Adventure"}

    fetched = client.get(f"/api/books/{book['id']}")
    assert fetched.status_code == 200
    data = fetched.json()
    for field in ("title", "author", "description", "isbn", "page_count", "language", "publisher", "publication_date"):
        assert data[field] == book[field]
    assert sorted(g["id"] for g in data["genres"]) == sorted(_payload(genre_ids)["genres"])


def test_create_requires_title_and_author(client, genre_ids):
    resp = client.post("/api/books", json=_payload(genre_ids, title="   "))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Title and author are required"


def test_create_with_empty_genres_is_rejected(client, db: Session, genre_ids):
    resp = client.post("/api/books", json=_payload(genre_ids, genres=[]))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "At least one genre is required"
    assert db.query(Book).count() == 0


def test_create_without_genres_field_is_rejected(client, genre_ids):
    body = _payload(genre_ids)
    del body["genres"]
    resp = client.post("/api/books", json=body)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "At least one genre is required"


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"isbn": "12345"}, "ISBN must be a valid 10 or 13 digit number"),
        ({"page_count": 0}, "Page count must be a positive number"),
        ({"page_count": "many"}, "Page count must be a positive number"),
        ({"publication_date": "21/09/1937"}, "Publication date must be in YYYY-MM-DD format"),
        ({"year": 999}, "Year must be a valid number between 1000 and current year + 10"),
    ],
)
def test_create_field_validation(client, genre_ids, overrides, message):
    resp = client.post("/api/books", json=_payload(genre_ids, **overrides))
    assert resp.status_code == 400
    assert resp.json()["detail"] == message


def test_isbn_with_dashes_and_spaces_is_accepted(client, genre_ids):
    resp = client.post("/api/books", json=_payload(genre_ids, isbn="0-547 92822-7"))
    assert resp.status_code == 201


def test_unknown_genre_writes_nothing(client, db: Session, genre_ids):
    resp = client.post("/api/books", json=_payload(genre_ids, genres=[genre_ids["Fantasy"], 9999]))
    assert resp.status_code == 400
    assert "9999" in resp.json()["detail"]
    assert db.query(Book).count() == 0


def test_duplicate_title_and_author_conflicts(client, genre_ids):
    first = client.post("/api/books", json=_payload(genre_ids)).json()

    resp = client.post("/api/books", json=_payload(genre_ids, description="Another edition"))
    assert resp.status_code == 409
    detail = resp.json()["detail"]
    assert detail["existingBook"] == {"id": first["id"], "title": "The Hobbit", "author": "J.R.R. Tolkien"}
    assert detail["error"] == 'A book with the title "The Hobbit" by "J.R.R. Tolkien" already exists.'


def test_get_unknown_book_is_404(client):
    resp = client.get("/api/books/424242")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Book not found"


def test_non_numeric_id_is_400(client):
    resp = client.get("/api/books/abc")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid book ID"


def test_update_changes_only_supplied_fields(client, genre_ids):
    book = client.post("/api/books", json=_payload(genre_ids)).json()

    resp = client.put(f"/api/books/{book['id']}", json={"publisher": "HarperCollins"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["publisher"] == "HarperCollins"
    assert data["title"] == book["title"]
    assert data["isbn"] == book["isbn"]
    assert {g["name"] for g in data["genres"]} == {"Fantasy", "Adventure"}


def test_update_replaces_genres(client, genre_ids):
    book = client.post("/api/books", json=_payload(genre_ids)).json()

    resp = client.put(f"/api/books/{book['id']}", json={"genres": [genre_ids["Classic"]]})
    assert resp.status_code == 200
    assert [g["name"] for g in resp.json()["genres"]] == ["Classic"]


def test_update_with_empty_genres_is_rejected(client, genre_ids):
    book = client.post("/api/books", json=_payload(genre_ids)).json()
    resp = client.put(f"/api/books/{book['id']}", json={"genres": []})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "At least one genre is required"


def test_update_duplicate_excludes_itself(client, genre_ids):
    hobbit = client.post("/api/books", json=_payload(genre_ids)).json()
    client.post("/api/books", json=_payload(genre_ids, title="The Silmarillion"))

    # Saving the same title/author on itself is fine
    same = client.put(f"/api/books/{hobbit['id']}", json={"title": "The Hobbit", "author": "J.R.R. Tolkien"})
    assert same.status_code == 200

    clash = client.put(f"/api/books/{hobbit['id']}", json={"title": "The Silmarillion"})
    assert clash.status_code == 409


def test_update_unknown_book_is_404(client):
    resp = client.put("/api/books/999", json={"publisher": "Nobody"})
    assert resp.status_code == 404


def test_delete_book(client, genre_ids):
    book = client.post("/api/books", json=_payload(genre_ids)).json()

    resp = client.delete(f"/api/books/{book['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Book deleted successfully"}
    assert client.get(f"/api/books/{book['id']}").status_code == 404
    assert client.delete(f"/api/books/{book['id']}").status_code == 404


def test_pagination_math(client, make_book):
    for i in range(23):
        make_book(f"Book {i:02d}", genres=["Fiction"])

    resp = client.get("/api/books", params={"page": 3, "limit": 10})
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 23
    assert data["totalPages"] == 3
    assert len(data["books"]) == 3


def test_default_listing_is_newest_first(client, make_book):
    make_book("Oldest", genres=["Fiction"])
    make_book("Middle", genres=["Fiction"])
    make_book("Newest", genres=["Fiction"])

    titles = [b["title"] for b in client.get("/api/books").json()["books"]]
    assert titles == ["Newest", "Middle", "Oldest"]


def test_invalid_sort_falls_back_to_default(client, make_book):
    make_book("Alpha", genres=["Fiction"])
    make_book("Beta", genres=["Fiction"])

    resp = client.get("/api/books", params={"sortBy": "password; DROP TABLE books", "sortOrder": "sideways"})
    assert resp.status_code == 200
    assert [b["title"] for b in resp.json()["books"]] == ["Beta", "Alpha"]


def test_sort_by_title_ascending(client, make_book):
    for title in ("Cherry", "apple", "Banana"):
        make_book(title, genres=["Fiction"])

    resp = client.get("/api/books", params={"sortBy": "title", "sortOrder": "asc"})
    titles = [b["title"] for b in resp.json()["books"]]
    assert titles == sorted(titles)


def test_invalid_pagination_is_rejected(client):
    resp = client.get("/api/books", params={"page": 0})
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Invalid pagination parameters")

    resp = client.get("/api/books", params={"limit": 101})
    assert resp.status_code == 400


def test_search_matches_columns_and_genres(db: Session, make_book):
    make_book("Dune", author="Frank Herbert", genres=["Science Fiction"], year=1965)
    make_book("Emma", author="Jane Austen", genres=["Romance"], publisher="John Murray")
    make_book("Dracula", author="Bram Stoker", genres=["Horror"], isbn="9780141439846")

    def titles(term):
        return {b.title for b in book_service.get_paginated(db, search=term)["books"]}

    assert titles("herbert") == {"Dune"}
    assert titles("1965") == {"Dune"}
    assert titles("MURRAY") == {"Emma"}
    assert titles("romance") == {"Emma"}
    assert titles("science") == {"Dune"}
    assert titles("978014") == {"Dracula"}
    assert titles("nothing-matches") == set()


def test_get_all_orders_catalog_newest_first(db: Session, make_book):
    first = make_book("First", genres=["Fiction"])
    second = make_book("Second", genres=["Fiction"])
    assert [b.id for b in book_service.get_all(db)] == [second.id, first.id]


def test_check_duplicate_is_exact(db: Session, make_book):
    book = make_book("Emma", author="Jane Austen", genres=["Romance"])
    assert book_service.check_duplicate(db, "Emma", "Jane Austen").id == book.id
    assert book_service.check_duplicate(db, "Emma", "Jane Austen", exclude_id=book.id) is None
    assert book_service.check_duplicate(db, "Emma", "J. Austen") is None
