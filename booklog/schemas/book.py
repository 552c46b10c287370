from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime


class GenreBrief(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class BookResponse(BaseModel):
    id: int
    title: str
    author: str
    year: Optional[int] = None
    description: Optional[str] = None
    isbn: Optional[str] = None
    page_count: Optional[int] = None
    language: Optional[str] = None
    publisher: Optional[str] = None
    cover_image_url: Optional[str] = None
    publication_date: Optional[str] = None
    user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    genres: list[GenreBrief] = []

    class Config:
        from_attributes = True


class BookListResponse(BaseModel):
    books: list[BookResponse]
    total: int
    total_pages: int = Field(alias="totalPages")

    class Config:
        populate_by_name = True


class BookCreate(BaseModel):
    # Loosely typed so the handler can answer with field-specific messages
    title: Optional[str] = None
    author: Optional[str] = None
    year: Optional[Any] = None
    description: Optional[str] = None
    isbn: Optional[str] = None
    page_count: Optional[Any] = None
    language: Optional[str] = None
    publisher: Optional[str] = None
    cover_image_url: Optional[str] = None
    publication_date: Optional[str] = None
    genres: Optional[list[Any]] = None


class BookUpdate(BookCreate):
    pass


class DuplicateBook(BaseModel):
    id: int
    title: str
    author: str

    class Config:
        from_attributes = True


class ScrapeRequest(BaseModel):
    url: Optional[str] = None


class ScrapedBook(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    year: Optional[int] = None
    description: Optional[str] = None
    isbn: Optional[str] = None
    page_count: Optional[int] = None
    language: Optional[str] = None
    publisher: Optional[str] = None
    cover_image_url: Optional[str] = None
    publication_date: Optional[str] = None
    genres: list[str] = []


class ScrapeResponse(BaseModel):
    book_data: ScrapedBook = Field(alias="bookData")

    class Config:
        populate_by_name = True
