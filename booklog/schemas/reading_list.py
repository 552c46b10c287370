from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime

from booklog.schemas.book import BookResponse


class ReadingListCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None


class ReadingListUpdate(ReadingListCreate):
    pass


class ReadingListBookCreate(BaseModel):
    book_id: Optional[Any] = None
    position: Optional[int] = None
    notes: Optional[str] = None


class ReadingListResponse(BaseModel):
    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    is_public: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReadingListBookItem(BookResponse):
    position: int
    notes: Optional[str] = None
    added_at: datetime


class ReadingListDetail(ReadingListResponse):
    books: list[ReadingListBookItem] = []


class ReadingListBookResponse(BaseModel):
    id: int
    reading_list_id: int
    book_id: int
    position: int
    notes: Optional[str] = None
    added_at: datetime

    class Config:
        from_attributes = True


class ReadingListsEnvelope(BaseModel):
    reading_lists: list[ReadingListResponse] = Field(alias="readingLists")

    class Config:
        populate_by_name = True


class ReadingListEnvelope(BaseModel):
    reading_list: ReadingListResponse = Field(alias="readingList")

    class Config:
        populate_by_name = True


class ReadingListDetailEnvelope(BaseModel):
    reading_list: ReadingListDetail = Field(alias="readingList")

    class Config:
        populate_by_name = True


class ReadingListBookEnvelope(BaseModel):
    reading_list_book: ReadingListBookResponse = Field(alias="readingListBook")

    class Config:
        populate_by_name = True
