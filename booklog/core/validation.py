"""
Request field checks shared by the routers.

Each helper raises HTTPException(400) with the message shown to the
client, or returns the normalised value.
"""
import re
from datetime import datetime
from typing import Any, Optional

from fastapi import HTTPException, status

from booklog.models import READ_STATUS_VALUES

ISBN_RE = re.compile(r"^(?:\d{10}|\d{13})$")
PUBLICATION_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MIN_YEAR = 1000
MAX_PAGE_LIMIT = 100

PAGINATION_ERROR = "Invalid pagination parameters. Page must be >= 1, limit must be between 1 and 100."


def bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _as_int(value: Any) -> Optional[int]:
    """Accept ints and integral floats; reject bools and everything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def clean_str(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip()


def require_title_and_author(title: Optional[str], author: Optional[str]) -> tuple[str, str]:
    title = clean_str(title)
    author = clean_str(author)
    if not title or not author:
        raise bad_request("Title and author are required")
    return title, author


def validate_genre_ids(genres: Optional[list]) -> list[int]:
    if not genres:
        raise bad_request("At least one genre is required")
    ids = []
    for value in genres:
        genre_id = _as_int(value)
        if genre_id is None or genre_id < 1:
            raise bad_request("Genre IDs must be positive integers")
        ids.append(genre_id)
    return ids


def validate_isbn(isbn: Optional[str]) -> Optional[str]:
    """ISBN-10 or ISBN-13 once dashes and spaces are removed; the trimmed input is kept."""
    if not isbn:
        return isbn
    if not ISBN_RE.match(re.sub(r"[-\s]", "", isbn)):
        raise bad_request("ISBN must be a valid 10 or 13 digit number")
    return isbn.strip()


def validate_page_count(page_count: Any) -> Optional[int]:
    if page_count is None:
        return None
    value = _as_int(page_count)
    if value is None or value < 1:
        raise bad_request("Page count must be a positive number")
    return value


def validate_publication_date(publication_date: Optional[str]) -> Optional[str]:
    if not publication_date:
        return publication_date
    publication_date = publication_date.strip()
    if not PUBLICATION_DATE_RE.match(publication_date):
        raise bad_request("Publication date must be in YYYY-MM-DD format")
    return publication_date


def validate_year(year: Any) -> Optional[int]:
    if year is None:
        return None
    value = _as_int(year)
    if value is None or value < MIN_YEAR or value > datetime.utcnow().year + 10:
        raise bad_request("Year must be a valid number between 1000 and current year + 10")
    return value


def validate_read_status(read_status: Optional[str]) -> Optional[str]:
    if read_status and read_status not in READ_STATUS_VALUES:
        raise bad_request(f"Read status must be one of: {', '.join(READ_STATUS_VALUES)}")
    return read_status or None


def validate_rating(rating: Any, supplied: bool = False) -> Optional[int]:
    """An omitted rating is left alone; a supplied one (null included) must be 1..5."""
    if rating is None and not supplied:
        return None
    value = _as_int(rating)
    if value is None or value < 1 or value > 5:
        raise bad_request("Rating must be a number between 1 and 5")
    return value


def validate_positive_id(value: Any, message: str) -> int:
    number = _as_int(value)
    if number is None or number < 1:
        raise bad_request(message)
    return number


def validate_pagination(page: int, limit: int) -> None:
    if page < 1 or limit < 1 or limit > MAX_PAGE_LIMIT:
        raise bad_request(PAGINATION_ERROR)


def lenient_pagination(page: Optional[str], limit: Optional[str], default_limit: int = 10) -> tuple[int, int]:
    """Parse page/limit query strings, substituting defaults for anything unusable."""
    def _parse(raw, default, maximum=None):
        try:
            value = int(raw)
        except (TypeError, ValueError):
            return default
        if value < 1 or (maximum is not None and value > maximum):
            return default
        return value

    return _parse(page, 1), _parse(limit, default_limit, MAX_PAGE_LIMIT)
