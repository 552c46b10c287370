from pydantic import BaseModel
from typing import Optional

from booklog.schemas.book import GenreBrief, BookResponse


class GenreResponse(GenreBrief):
    pass


class GenreListResponse(BaseModel):
    genres: list[GenreResponse]


class GenreCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class GenreUpdate(GenreCreate):
    pass


class GenreCreated(BaseModel):
    message: str
    id: int


class GenreDetailResponse(BaseModel):
    genre: GenreResponse
    books: list[BookResponse]
