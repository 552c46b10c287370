from sqlalchemy.orm import Session

from booklog.models import Book, Genre
from booklog.services import genres as genre_service


def test_list_genres_is_alphabetical_and_seeded(client):
    resp = client.get("/api/genres")
    assert resp.status_code == 200
    names = [g["name"] for g in resp.json()["genres"]]
    assert names == sorted(names)
    assert set(genre_service.DEFAULT_GENRES) <= set(names)


def test_seed_default_genres_is_idempotent(db: Session):
    assert genre_service.seed_default_genres(db) == 0
    assert db.query(Genre).count() == len(genre_service.DEFAULT_GENRES)


def test_create_genre(client, db: Session):
    resp = client.post("/api/genres", json={"name": "  Memoir ", "description": "Life stories"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Genre created successfully"

    genre = db.query(Genre).filter(Genre.id == body["id"]).one()
    assert genre.name == "Memoir"
    assert genre.description == "Life stories"


def test_create_genre_requires_name(client):
    resp = client.post("/api/genres", json={"name": "   "})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Genre name is required"


def test_create_duplicate_genre_conflicts(client):
    resp = client.post("/api/genres", json={"name": "Fantasy"})
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Genre already exists"


def test_get_genre_with_books(client, genre_ids, make_book):
    make_book("The Hobbit", genres=["Fantasy"])
    make_book("Dune", genres=["Science Fiction"])
    make_book("A Wizard of Earthsea", genres=["Fantasy", "Children"])

    resp = client.get(f"/api/genres/{genre_ids['Fantasy']}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["genre"]["name"] == "Fantasy"
    assert [b["title"] for b in body["books"]] == ["A Wizard of Earthsea", "The Hobbit"]


def test_get_unknown_genre_is_404(client):
    resp = client.get("/api/genres/9999")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Genre not found"


def test_invalid_genre_id_is_400(client):
    resp = client.get("/api/genres/fantasy")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid genre ID"


def test_update_genre(client, db: Session, genre_ids):
    resp = client.put(f"/api/genres/{genre_ids['Satire']}", json={"name": "Humour", "description": "Funny"})
    assert resp.status_code == 200
    assert resp.json() == {"message": "Genre updated successfully"}
    assert genre_service.get_by_id(db, genre_ids["Satire"]).name == "Humour"


def test_update_genre_may_keep_its_own_name(client, genre_ids):
    resp = client.put(f"/api/genres/{genre_ids['Drama']}", json={"name": "Drama", "description": "Stage"})
    assert resp.status_code == 200


def test_update_genre_to_existing_name_conflicts(client, genre_ids):
    resp = client.put(f"/api/genres/{genre_ids['Drama']}", json={"name": "Poetry"})
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Genre name already exists"


def test_update_unknown_genre_is_404(client):
    resp = client.put("/api/genres/9999", json={"name": "Anything"})
    assert resp.status_code == 404


def test_delete_genre_unlinks_books(client, db: Session, genre_ids, make_book):
    book = make_book("Dracula", genres=["Horror", "Classic"])

    resp = client.delete(f"/api/genres/{genre_ids['Horror']}")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Genre deleted successfully"}

    db.expire_all()
    remaining = db.query(Book).filter(Book.id == book.id).one()
    assert [g.name for g in remaining.genres] == ["Classic"]
    assert client.delete(f"/api/genres/{genre_ids['Horror']}").status_code == 404
