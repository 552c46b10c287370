from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime

from booklog.models import ReadStatus
from booklog.schemas.book import BookResponse


class UserBookCreate(BaseModel):
    user_id: Optional[Any] = None
    book_id: Optional[Any] = None
    read_status: Optional[str] = None
    rating: Optional[Any] = None
    comments: Optional[str] = None


class UserBookUpdate(BaseModel):
    user_id: Optional[Any] = None
    read_status: Optional[str] = None
    rating: Optional[Any] = None
    comments: Optional[str] = None


class UserBookResponse(BaseModel):
    id: int
    user_id: int
    book_id: int
    read_status: ReadStatus
    rating: Optional[int] = None
    comments: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BookWithAssociation(BookResponse):
    user_association: Optional[UserBookResponse] = None


class BookWithAssociationListResponse(BaseModel):
    books: list[BookWithAssociation]
    total: int
    total_pages: int = Field(alias="totalPages")

    class Config:
        populate_by_name = True
