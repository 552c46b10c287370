"""Per-user read status, rating and comments."""
from sqlalchemy.orm import Session

from booklog.models import ReadStatus
from booklog.services import user_books as user_book_service


def test_upsert_creates_association(client, user, make_book):
    book = make_book("Emma", genres=["Romance"])

    resp = client.post(
        "/api/user-books",
        json={"user_id": user.id, "book_id": book.id, "read_status": "reading", "rating": 4},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["user_id"] == user.id
    assert body["book_id"] == book.id
    assert body["read_status"] == "reading"
    assert body["rating"] == 4


def test_upsert_defaults_to_unread(client, user, make_book):
    book = make_book("Emma", genres=["Romance"])
    resp = client.post("/api/user-books", json={"user_id": user.id, "book_id": book.id})
    assert resp.status_code == 201
    assert resp.json()["read_status"] == "unread"


def test_upsert_keeps_fields_not_supplied(client, db: Session, user, make_book):
    book = make_book("Emma", genres=["Romance"])
    client.post(
        "/api/user-books",
        json={"user_id": user.id, "book_id": book.id, "read_status": "read", "rating": 5, "comments": "Lovely"},
    )

    resp = client.post("/api/user-books", json={"user_id": user.id, "book_id": book.id, "rating": 3})
    assert resp.status_code == 201
    body = resp.json()
    assert body["rating"] == 3
    assert body["read_status"] == "read"
    assert body["comments"] == "Lovely"
    assert len(user_book_service.get_by_user(db, user.id)) == 1


def test_upsert_requires_ids(client):
    resp = client.post("/api/user-books", json={"read_status": "read"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User ID and Book ID are required"


def test_upsert_unknown_user_or_book_is_404(client, user, make_book):
    book = make_book("Emma", genres=["Romance"])

    resp = client.post("/api/user-books", json={"user_id": 999, "book_id": book.id})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "User with ID 999 does not exist"

    resp = client.post("/api/user-books", json={"user_id": user.id, "book_id": 999})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Book with ID 999 does not exist"


def test_upsert_rejects_bad_status_and_rating(client, user, make_book):
    book = make_book("Emma", genres=["Romance"])

    resp = client.post("/api/user-books", json={"user_id": user.id, "book_id": book.id, "read_status": "finished"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Read status must be one of: unread, reading, read"

    resp = client.post("/api/user-books", json={"user_id": user.id, "book_id": book.id, "rating": 6})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Rating must be a number between 1 and 5"


def test_list_requires_user_id(client):
    resp = client.get("/api/user-books")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User ID is required"


def test_list_annotates_catalog_with_associations(client, user, make_book, mark_read):
    emma = make_book("Emma", genres=["Romance"])
    make_book("Dune", genres=["Science Fiction"])
    mark_read(user, emma, rating=5)

    resp = client.get("/api/user-books", params={"userId": user.id})
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 2
    by_title = {b["title"]: b for b in body["books"]}
    assert by_title["Emma"]["user_association"]["rating"] == 5
    assert by_title["Dune"]["user_association"] is None


def test_list_unknown_user_is_404(client):
    resp = client.get("/api/user-books", params={"userId": 42})
    assert resp.status_code == 404


def test_get_and_update_association(client, user, make_book, mark_read):
    book = make_book("Emma", genres=["Romance"])
    mark_read(user, book, rating=2)

    resp = client.get(f"/api/user-books/{book.id}", params={"userId": user.id})
    assert resp.status_code == 200
    assert resp.json()["rating"] == 2

    resp = client.put(f"/api/user-books/{book.id}", json={"user_id": user.id, "comments": "Better on reread"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["comments"] == "Better on reread"
    assert body["rating"] == 2


def test_update_missing_association_is_404(client, user):
    resp = client.put("/api/user-books/5", json={"user_id": user.id, "rating": 3})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Association not found"


def test_delete_association(client, user, make_book, mark_read):
    book = make_book("Emma", genres=["Romance"])
    mark_read(user, book)

    resp = client.delete(f"/api/user-books/{book.id}", params={"userId": user.id})
    assert resp.status_code == 200
    assert resp.json() == {"message": "Association deleted successfully"}
    assert client.get(f"/api/user-books/{book.id}", params={"userId": user.id}).status_code == 404


def test_read_books_uses_bearer_identity(client, make_user, make_book, mark_read, auth_headers):
    alice = make_user("alice")
    bob = make_user("bob")
    emma = make_book("Emma", genres=["Romance"])
    dune = make_book("Dune", genres=["Science Fiction"])
    mark_read(alice, emma, rating=4)
    mark_read(bob, dune)

    resp = client.get("/api/user-books/read", headers=auth_headers(bob.id))
    assert resp.status_code == 200
    assert [b["title"] for b in resp.json()["books"]] == ["Dune"]


def test_read_books_prefers_cookie(client, make_user, make_book, mark_read, auth_headers):
    alice = make_user("alice")
    bob = make_user("bob")
    mark_read(alice, make_book("Emma", genres=["Romance"]))
    mark_read(bob, make_book("Dune", genres=["Science Fiction"]))

    client.cookies.set("user-id", str(alice.id))
    resp = client.get("/api/user-books/read", headers=auth_headers(bob.id))
    assert [b["title"] for b in resp.json()["books"]] == ["Emma"]


def test_read_books_sorted_by_rating(client, user, make_book, mark_read, auth_headers):
    for title, rating in (("Emma", 3), ("Dune", 5), ("Dracula", 1)):
        mark_read(user, make_book(title, genres=["Classic"]), rating=rating)

    resp = client.get(
        "/api/user-books/read",
        params={"sortBy": "rating", "sortOrder": "desc"},
        headers=auth_headers(user.id),
    )
    assert [b["title"] for b in resp.json()["books"]] == ["Dune", "Emma", "Dracula"]


def test_read_books_excludes_other_statuses(db: Session, user, make_book, mark_read):
    mark_read(user, make_book("Emma", genres=["Romance"]))
    user_book_service.upsert(db, user.id, make_book("Dune", genres=["Science Fiction"]).id, read_status=ReadStatus.READING.value)

    assert [b.title for b in user_book_service.get_read_books(db, user.id)] == ["Emma"]


def test_get_ratings(db: Session, user, make_book, mark_read):
    emma = make_book("Emma", genres=["Romance"])
    dune = make_book("Dune", genres=["Science Fiction"])
    mark_read(user, emma, rating=4)
    mark_read(user, dune)

    assert user_book_service.get_ratings(db, user.id, [emma.id, dune.id]) == {emma.id: 4, dune.id: None}
    assert user_book_service.get_ratings(db, user.id, []) == {}


def test_read_books_unusable_paging_falls_back(client, user, make_book, mark_read, auth_headers):
    for title in ("Emma", "Dune"):
        mark_read(user, make_book(title, genres=["Classic"]))

    resp = client.get(
        "/api/user-books/read",
        params={"page": "invalid", "limit": "invalid", "sortBy": "invalid", "sortOrder": "invalid"},
        headers=auth_headers(user.id),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 2
    assert [b["title"] for b in body["books"]] == ["Dune", "Emma"]


def test_explicit_null_rating_is_rejected(client, user, make_book, mark_read):
    book = make_book("Emma", genres=["Romance"])
    mark_read(user, book, rating=4)

    resp = client.post("/api/user-books", json={"user_id": user.id, "book_id": book.id, "rating": None})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Rating must be a number between 1 and 5"

    resp = client.put(f"/api/user-books/{book.id}", json={"user_id": user.id, "rating": None})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Rating must be a number between 1 and 5"

    assert client.get(f"/api/user-books/{book.id}", params={"userId": user.id}).json()["rating"] == 4
