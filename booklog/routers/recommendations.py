from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
import logging
import requests

from booklog.database import get_db
from booklog.core import validation
from booklog.core.auth import get_current_user_id
from booklog.schemas.recommendation import (
    UserRecommendationsResponse,
    ReadingListRecommendationsResponse,
    GoogleBooksResponse,
    TasteDiveResponse,
)
from booklog.services import books as book_service
from booklog.services import google_books
from booklog.services import reading_lists as reading_list_service
from booklog.services import recommendation_engine
from booklog.services import tastedive
from booklog.services import user_books as user_book_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recommendations"])

RATE_LIMIT_ERROR = "Rate limit exceeded. Please try again later."


def _upstream_status(exc: Exception) -> Optional[int]:
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code
    return None


def _require_title(title: Optional[str]) -> str:
    if not title or not title.strip():
        raise validation.bad_request("Book title is required")
    return title.strip()


@router.get(
    "/recommendations",
    response_model=UserRecommendationsResponse,
    response_model_exclude_none=True,
)
def get_recommendations(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Recommendations from the books the current user has marked as read."""
    try:
        read_books = user_book_service.get_read_books(db, user_id)
        ratings = user_book_service.get_ratings(db, user_id, [b.id for b in read_books])
        catalog = book_service.get_all(db) if read_books else []
        return recommendation_engine.recommend_for_user(read_books, catalog, ratings.values())
    except Exception:
        logger.exception("Failed to generate recommendations for user %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to generate recommendations")


@router.get(
    "/recommendations/reading-list/{list_id}",
    response_model=ReadingListRecommendationsResponse,
    response_model_exclude_none=True,
)
def get_reading_list_recommendations(list_id: int, db: Session = Depends(get_db)):
    """Recommendations from the books already in a reading list."""
    try:
        reading_list = reading_list_service.get_by_id_with_books(db, list_id)
        if not reading_list:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reading list not found")
        list_books = [entry.book for entry in reading_list.entries]
        catalog = book_service.get_all(db) if list_books else []
        return recommendation_engine.recommend_for_reading_list(reading_list.name, list_books, catalog)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to generate recommendations for reading list %s", list_id)
        raise HTTPException(status_code=500, detail="Failed to generate recommendations")


@router.get(
    "/recommendations/google-books",
    response_model=GoogleBooksResponse,
    response_model_exclude_none=True,
)
def get_google_books_recommendations(
    title: Optional[str] = Query(None, description="Title of the book to find similar books for"),
    author: Optional[str] = Query(None),
    limit: int = Query(10, ge=1),
):
    title = _require_title(title)
    try:
        return google_books.get_recommendations(title, author, limit)
    except Exception as e:
        logger.exception("Error fetching Google Books recommendations for %r", title)
        upstream = _upstream_status(e)
        if upstream == 429:
            raise HTTPException(status_code=429, detail=RATE_LIMIT_ERROR)
        if upstream == 403:
            raise HTTPException(status_code=403, detail="Google Books API quota exceeded")
        raise HTTPException(status_code=500, detail="Failed to fetch recommendations from Google Books")


@router.get(
    "/recommendations/tastedive",
    response_model=TasteDiveResponse,
    response_model_exclude_none=True,
)
def get_tastedive_recommendations(
    title: Optional[str] = Query(None, description="Title of the book to find similar books for"),
    author: Optional[str] = Query(None),
    limit: int = Query(10, ge=1),
):
    title = _require_title(title)
    try:
        return tastedive.get_recommendations(title, author, limit)
    except Exception as e:
        logger.exception("Error fetching TasteDive recommendations for %r", title)
        upstream = _upstream_status(e)
        if upstream == 429:
            raise HTTPException(status_code=429, detail=RATE_LIMIT_ERROR)
        if upstream == 404:
            raise HTTPException(status_code=404, detail="No recommendations found for this book")
        raise HTTPException(status_code=500, detail="Failed to fetch recommendations from TasteDive")
