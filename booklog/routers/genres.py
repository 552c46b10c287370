from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import logging

from booklog.database import get_db
from booklog.core import validation
from booklog.schemas.common import MessageResponse
from booklog.schemas.genre import (
    GenreListResponse,
    GenreCreate,
    GenreUpdate,
    GenreCreated,
    GenreDetailResponse,
)
from booklog.services import books as book_service
from booklog.services import genres as genre_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/genres", tags=["genres"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Genre not found")


def _require_name(name) -> str:
    name = validation.clean_str(name)
    if not name:
        raise validation.bad_request("Genre name is required")
    return name


@router.get("", response_model=GenreListResponse)
def list_genres(db: Session = Depends(get_db)):
    try:
        return {"genres": genre_service.get_all(db)}
    except Exception:
        logger.exception("Failed to fetch genres")
        # Clients iterate the list even on failure
        return JSONResponse(status_code=500, content={"genres": []})


@router.post("", response_model=GenreCreated, status_code=status.HTTP_201_CREATED)
def create_genre(payload: GenreCreate, db: Session = Depends(get_db)):
    name = _require_name(payload.name)
    try:
        if genre_service.check_duplicate(db, name):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Genre already exists")
        genre = genre_service.create(db, name, validation.clean_str(payload.description))
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to create genre %r", name)
        raise HTTPException(status_code=500, detail="Failed to create genre")
    return {"message": "Genre created successfully", "id": genre.id}


@router.get("/{genre_id}", response_model=GenreDetailResponse)
def get_genre(genre_id: int, db: Session = Depends(get_db)):
    try:
        genre = genre_service.get_by_id(db, genre_id)
        if not genre:
            raise _not_found()
        books = book_service.get_for_genre(db, genre_id)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to fetch genre %s", genre_id)
        raise HTTPException(status_code=500, detail="Failed to fetch genre")
    return {"genre": genre, "books": books}


@router.put("/{genre_id}", response_model=MessageResponse)
def update_genre(genre_id: int, payload: GenreUpdate, db: Session = Depends(get_db)):
    name = _require_name(payload.name)
    try:
        if not genre_service.get_by_id(db, genre_id):
            raise _not_found()
        if genre_service.check_duplicate(db, name, exclude_id=genre_id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Genre name already exists")
        genre_service.update(db, genre_id, name, validation.clean_str(payload.description))
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to update genre %s", genre_id)
        raise HTTPException(status_code=500, detail="Failed to update genre")
    return {"message": "Genre updated successfully"}


@router.delete("/{genre_id}", response_model=MessageResponse)
def delete_genre(genre_id: int, db: Session = Depends(get_db)):
    try:
        deleted = genre_service.delete(db, genre_id)
    except Exception:
        logger.exception("Failed to delete genre %s", genre_id)
        raise HTTPException(status_code=500, detail="Failed to delete genre")
    if not deleted:
        raise _not_found()
    return {"message": "Genre deleted successfully"}
