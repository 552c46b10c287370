"""
Per-user reading state: read status, rating and comments for catalog books.
"""
from fastapi import APIRouter, Depends, Query, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from booklog.database import get_db
from booklog.core import validation
from booklog.core.auth import get_current_user_id
from booklog.schemas.common import MessageResponse
from booklog.schemas.user_book import (
    UserBookCreate,
    UserBookUpdate,
    UserBookResponse,
    BookWithAssociation,
    BookWithAssociationListResponse,
)
from booklog.services import books as book_service
from booklog.services import user_books as user_book_service
from booklog.services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user-books", tags=["user-books"])


def _association_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Association not found")


def _require_user_id(user_id: Optional[int]) -> int:
    if user_id is None:
        raise validation.bad_request("User ID is required")
    if user_id < 1:
        raise validation.bad_request("Invalid user ID")
    return user_id


def _annotated_page(rows, total: int, total_pages: int) -> dict:
    books = []
    for book, association in rows:
        item = BookWithAssociation.model_validate(book)
        if association is not None:
            item.user_association = UserBookResponse.model_validate(association)
        books.append(item)
    return {"books": books, "total": total, "totalPages": total_pages}


@router.get("", response_model=BookWithAssociationListResponse)
def list_user_books(
    user_id: Optional[int] = Query(None, alias="userId"),
    page: int = Query(1),
    limit: int = Query(10),
    db: Session = Depends(get_db),
):
    """Catalog page where each book carries the user's association, if any."""
    user_id = _require_user_id(user_id)
    try:
        if not user_service.get_by_id(db, user_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"User with ID {user_id} does not exist",
            )
        validation.validate_pagination(page, limit)
        result = user_book_service.get_books_with_user_associations(db, user_id, page, limit)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to fetch user books for user %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to fetch user books")
    return _annotated_page(result["books"], result["total"], result["total_pages"])


@router.post("", response_model=UserBookResponse, status_code=status.HTTP_201_CREATED)
def upsert_user_book(payload: UserBookCreate, db: Session = Depends(get_db)):
    """Create the association, or update only the supplied fields of an existing one."""
    if not payload.user_id or not payload.book_id:
        raise validation.bad_request("User ID and Book ID are required")
    user_id = validation.validate_positive_id(payload.user_id, "User ID must be a valid positive number")
    book_id = validation.validate_positive_id(payload.book_id, "Book ID must be a valid positive number")

    try:
        if not user_service.get_by_id(db, user_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"User with ID {user_id} does not exist",
            )
        if not book_service.get_by_id(db, book_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Book with ID {book_id} does not exist",
            )
        read_status = validation.validate_read_status(payload.read_status)
        rating = validation.validate_rating(payload.rating, "rating" in payload.model_fields_set)

        return user_book_service.upsert(
            db,
            user_id=user_id,
            book_id=book_id,
            read_status=read_status,
            rating=rating,
            comments=payload.comments,
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to create user-book association user=%s book=%s", user_id, book_id)
        raise HTTPException(status_code=500, detail="Failed to create user-book association")


@router.get("/read", response_model=BookWithAssociationListResponse)
def list_read_books(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(user_book_service.READ_DEFAULT_SORT, alias="sortBy"),
    sort_order: Optional[str] = Query(user_book_service.READ_DEFAULT_ORDER, alias="sortOrder"),
    search: Optional[str] = Query(None),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Books the current user has marked as read. Unusable paging or sort values fall back to defaults."""
    page, limit = validation.lenient_pagination(page, limit)
    try:
        result = user_book_service.get_read_books_with_pagination(
            db, user_id, page, limit, sort_by, sort_order, search
        )
    except Exception:
        logger.exception("Failed to fetch read books for user %s", user_id)
        raise HTTPException(status_code=500, detail="Internal server error")
    return _annotated_page(result["books"], result["total"], result["total_pages"])


@router.get("/{book_id}", response_model=UserBookResponse)
def get_user_book(
    book_id: int,
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    user_id = _require_user_id(user_id)
    try:
        association = user_book_service.get_by_user_and_book(db, user_id, book_id)
    except Exception:
        logger.exception("Failed to fetch association user=%s book=%s", user_id, book_id)
        raise HTTPException(status_code=500, detail="Failed to fetch user-book association")
    if not association:
        raise _association_not_found()
    return association


@router.put("/{book_id}", response_model=UserBookResponse)
def update_user_book(book_id: int, payload: UserBookUpdate, db: Session = Depends(get_db)):
    if not payload.user_id:
        raise validation.bad_request("User ID is required")
    user_id = validation.validate_positive_id(payload.user_id, "User ID must be a valid positive number")
    read_status = validation.validate_read_status(payload.read_status)
    rating = validation.validate_rating(payload.rating, "rating" in payload.model_fields_set)

    try:
        association = user_book_service.update(
            db,
            user_id,
            book_id,
            read_status=read_status,
            rating=rating,
            comments=payload.comments,
        )
    except Exception:
        logger.exception("Failed to update association user=%s book=%s", user_id, book_id)
        raise HTTPException(status_code=500, detail="Failed to update user-book association")
    if not association:
        raise _association_not_found()
    return association


@router.delete("/{book_id}", response_model=MessageResponse)
def delete_user_book(
    book_id: int,
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    user_id = _require_user_id(user_id)
    try:
        deleted = user_book_service.delete(db, user_id, book_id)
    except Exception:
        logger.exception("Failed to delete association user=%s book=%s", user_id, book_id)
        raise HTTPException(status_code=500, detail="Failed to delete user-book association")
    if not deleted:
        raise _association_not_found()
    return {"message": "Association deleted successfully"}
