from fastapi import APIRouter, Depends, Query, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from booklog.database import get_db
from booklog.core import validation
from booklog.models import Book
from booklog.schemas.book import (
    BookResponse,
    BookListResponse,
    BookCreate,
    BookUpdate,
    DuplicateBook,
    ScrapeRequest,
    ScrapeResponse,
)
from booklog.schemas.common import MessageResponse
from booklog.services import books as book_service
from booklog.services import scraper

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/books", tags=["books"])

SCRAPE_EXTRACTION_ERROR = (
    "Could not extract book information from the provided URL. "
    "Please try a different URL or manually enter the book details."
)
SCRAPE_FAILURE_ERROR = "Failed to scrape book data. Please try again or manually enter the book details."


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")


def _duplicate_conflict(existing: Book) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "error": f'A book with the title "{existing.title}" by "{existing.author}" already exists.',
            "existingBook": DuplicateBook.model_validate(existing).model_dump(),
        },
    )


def _year_from_date(publication_date: Optional[str]) -> Optional[int]:
    if not publication_date:
        return None
    return int(publication_date[:4])


def _validated_fields(payload: BookCreate, fields_set: set) -> dict:
    """Validate and normalise the optional book fields present in the request."""
    data = {}
    if "isbn" in fields_set:
        data["isbn"] = validation.validate_isbn(payload.isbn)
    if "page_count" in fields_set:
        data["page_count"] = validation.validate_page_count(payload.page_count)
    if "publication_date" in fields_set:
        data["publication_date"] = validation.validate_publication_date(payload.publication_date)
    if "year" in fields_set:
        data["year"] = validation.validate_year(payload.year)
    for field in ("description", "language", "publisher", "cover_image_url"):
        if field in fields_set:
            data[field] = validation.clean_str(getattr(payload, field))
    return data


@router.get("", response_model=BookListResponse)
def get_books(
    page: int = Query(1, description="1-based page number"),
    limit: int = Query(10, description="Page size (1-100)"),
    search: Optional[str] = Query(None, description="Search title, author, year, description, ISBN, language, publisher or genre"),
    sort_by: Optional[str] = Query(book_service.DEFAULT_SORT, alias="sortBy"),
    sort_order: Optional[str] = Query(book_service.DEFAULT_ORDER, alias="sortOrder"),
    db: Session = Depends(get_db),
):
    """Get paginated list of books with optional search."""
    validation.validate_pagination(page, limit)
    try:
        result = book_service.get_paginated(db, page, limit, sort_by, sort_order, search)
    except Exception:
        logger.exception("Failed to fetch books", extra={"page": page, "limit": limit, "search": search})
        raise HTTPException(status_code=500, detail="Failed to fetch books")
    return {
        "books": result["books"],
        "total": result["total"],
        "totalPages": result["total_pages"],
    }


@router.post("", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
def create_book(payload: BookCreate, db: Session = Depends(get_db)):
    title, author = validation.require_title_and_author(payload.title, payload.author)
    genre_ids = validation.validate_genre_ids(payload.genres)
    data = _validated_fields(payload, payload.model_fields_set)
    data["title"] = title
    data["author"] = author
    if data.get("year") is None and data.get("publication_date"):
        data["year"] = _year_from_date(data["publication_date"])

    try:
        existing = book_service.check_duplicate(db, title, author)
        if existing:
            raise _duplicate_conflict(existing)
        return book_service.create(db, data, genre_ids)
    except HTTPException:
        raise
    except book_service.UnknownGenreError as e:
        raise validation.bad_request(str(e))
    except Exception:
        logger.exception("Failed to create book %r by %r", title, author)
        raise HTTPException(status_code=500, detail="Failed to create book")


@router.post("/scrape", response_model=ScrapeResponse)
def scrape_book(payload: ScrapeRequest):
    """Extract book details from a product page URL."""
    url = (payload.url or "").strip()
    if not url:
        raise validation.bad_request("URL is required")
    if not scraper.is_valid_url(url):
        raise validation.bad_request("Invalid URL format")

    try:
        book_data = scraper.scrape_book_data(url)
    except Exception:
        logger.exception("Failed to scrape %s", url)
        raise HTTPException(status_code=500, detail=SCRAPE_FAILURE_ERROR)

    if not book_data or (not book_data.get("title") and not book_data.get("author")):
        raise validation.bad_request(SCRAPE_EXTRACTION_ERROR)
    return {"bookData": book_data}


@router.get("/{book_id}", response_model=BookResponse)
def get_book(book_id: int, db: Session = Depends(get_db)):
    try:
        book = book_service.get_by_id(db, book_id)
    except Exception:
        logger.exception("Failed to fetch book %s", book_id)
        raise HTTPException(status_code=500, detail="Failed to fetch book")
    if not book:
        raise _not_found()
    return book


@router.put("/{book_id}", response_model=BookResponse)
def update_book(book_id: int, payload: BookUpdate, db: Session = Depends(get_db)):
    fields_set = payload.model_fields_set
    data = _validated_fields(payload, fields_set)

    genre_ids = None
    if "genres" in fields_set:
        genre_ids = validation.validate_genre_ids(payload.genres)

    for field in ("title", "author"):
        if field in fields_set:
            value = validation.clean_str(getattr(payload, field))
            if not value:
                raise validation.bad_request("Title and author are required")
            data[field] = value

    try:
        current = book_service.get_by_id(db, book_id)
        if not current:
            raise _not_found()

        new_title = data.get("title", current.title)
        new_author = data.get("author", current.author)
        if new_title != current.title or new_author != current.author:
            existing = book_service.check_duplicate(db, new_title, new_author, exclude_id=book_id)
            if existing:
                raise _duplicate_conflict(existing)

        book = book_service.update(db, book_id, data, genre_ids)
        if not book:
            raise _not_found()
        return book
    except HTTPException:
        raise
    except book_service.UnknownGenreError as e:
        raise validation.bad_request(str(e))
    except Exception:
        logger.exception("Failed to update book %s", book_id)
        raise HTTPException(status_code=500, detail="Failed to update book")


@router.delete("/{book_id}", response_model=MessageResponse)
def delete_book(book_id: int, db: Session = Depends(get_db)):
    try:
        deleted = book_service.delete(db, book_id)
    except Exception:
        logger.exception("Failed to delete book %s", book_id)
        raise HTTPException(status_code=500, detail="Failed to delete book")
    if not deleted:
        raise _not_found()
    return {"message": "Book deleted successfully"}
