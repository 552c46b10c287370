from fastapi import APIRouter, Depends, Query, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from booklog.database import get_db
from booklog.core import validation
from booklog.core.auth import require_user_id
from booklog.models import ReadingList
from booklog.schemas.book import BookResponse
from booklog.schemas.common import MessageResponse
from booklog.schemas.reading_list import (
    ReadingListCreate,
    ReadingListUpdate,
    ReadingListBookCreate,
    ReadingListResponse,
    ReadingListBookItem,
    ReadingListDetail,
    ReadingListsEnvelope,
    ReadingListEnvelope,
    ReadingListDetailEnvelope,
    ReadingListBookEnvelope,
)
from booklog.services import books as book_service
from booklog.services import reading_lists as reading_list_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reading-lists", tags=["reading-lists"])

INTERNAL_ERROR = "Internal server error"


def _internal_error() -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


def _get_owned_list(db: Session, list_id: int, user_id: int) -> ReadingList:
    """Load a list the caller may modify: 404 when missing, 403 when owned by someone else."""
    reading_list = reading_list_service.get_by_id(db, list_id)
    if not reading_list:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reading list not found")
    if reading_list.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return reading_list


def _detail(reading_list: ReadingList) -> ReadingListDetail:
    books = [
        ReadingListBookItem(
            **BookResponse.model_validate(entry.book).model_dump(),
            position=entry.position,
            notes=entry.notes,
            added_at=entry.added_at,
        )
        for entry in reading_list.entries
    ]
    return ReadingListDetail(
        **ReadingListResponse.model_validate(reading_list).model_dump(),
        books=books,
    )


@router.get("", response_model=ReadingListsEnvelope)
def list_reading_lists(
    list_type: str = Query("user", alias="type", description="user or public"),
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    try:
        if list_type == "public":
            lists = reading_list_service.get_public(db)
        else:
            lists = reading_list_service.get_by_user(db, user_id)
    except Exception:
        logger.exception("Failed to fetch reading lists for user %s", user_id)
        raise _internal_error()
    return {"readingLists": lists}


@router.post("", response_model=ReadingListEnvelope, status_code=status.HTTP_201_CREATED)
def create_reading_list(
    payload: ReadingListCreate,
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    name = validation.clean_str(payload.name)
    if not name:
        raise validation.bad_request("Name is required")
    try:
        reading_list = reading_list_service.create(
            db,
            user_id=user_id,
            name=name,
            description=validation.clean_str(payload.description),
            is_public=bool(payload.is_public),
        )
    except Exception:
        logger.exception("Failed to create reading list for user %s", user_id)
        raise _internal_error()
    return {"readingList": reading_list}


@router.get("/{list_id}", response_model=ReadingListDetailEnvelope)
def get_reading_list(list_id: int, db: Session = Depends(get_db)):
    try:
        reading_list = reading_list_service.get_by_id_with_books(db, list_id)
        if not reading_list:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reading list not found")
        return {"readingList": _detail(reading_list)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to fetch reading list %s", list_id)
        raise _internal_error()


@router.put("/{list_id}", response_model=ReadingListEnvelope)
def update_reading_list(
    list_id: int,
    payload: ReadingListUpdate,
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    try:
        _get_owned_list(db, list_id, user_id)
        name = validation.clean_str(payload.name)
        if payload.name is not None and not name:
            raise validation.bad_request("Name is required")
        reading_list = reading_list_service.update(
            db,
            list_id,
            name=name,
            description=validation.clean_str(payload.description),
            is_public=payload.is_public,
        )
        if not reading_list:
            raise _internal_error()
        return {"readingList": reading_list}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to update reading list %s", list_id)
        raise _internal_error()


@router.delete("/{list_id}", response_model=MessageResponse)
def delete_reading_list(
    list_id: int,
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    try:
        _get_owned_list(db, list_id, user_id)
        if not reading_list_service.delete(db, list_id):
            raise _internal_error()
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to delete reading list %s", list_id)
        raise _internal_error()
    return {"message": "Reading list deleted successfully"}


@router.post("/{list_id}/books", response_model=ReadingListBookEnvelope, status_code=status.HTTP_201_CREATED)
def add_book_to_reading_list(
    list_id: int,
    payload: ReadingListBookCreate,
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    book_id = validation.validate_positive_id(payload.book_id, "Valid book ID is required")
    try:
        _get_owned_list(db, list_id, user_id)
        if not book_service.get_by_id(db, book_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
        entry = reading_list_service.add_book(
            db,
            list_id,
            book_id,
            position=payload.position,
            notes=validation.clean_str(payload.notes),
        )
    except HTTPException:
        raise
    except reading_list_service.DuplicateEntryError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Book is already in this reading list")
    except Exception:
        logger.exception("Failed to add book %s to reading list %s", book_id, list_id)
        raise _internal_error()
    return {"readingListBook": entry}


@router.delete("/{list_id}/books", response_model=MessageResponse)
def remove_book_from_reading_list(
    list_id: int,
    book_id: Optional[int] = Query(None),
    user_id: int = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    if book_id is None or book_id < 1:
        raise validation.bad_request("Valid book ID is required")
    try:
        _get_owned_list(db, list_id, user_id)
        if not reading_list_service.remove_book(db, list_id, book_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found in reading list")
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to remove book %s from reading list %s", book_id, list_id)
        raise _internal_error()
    return {"message": "Book removed from reading list successfully"}
