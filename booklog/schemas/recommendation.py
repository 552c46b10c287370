from pydantic import BaseModel, Field
from typing import Optional


class RecommendationItem(BaseModel):
    title: str
    author: Optional[str] = None
    reason: str
    genre: Optional[str] = None


class UserStats(BaseModel):
    total_books_read: int = Field(alias="totalBooksRead")
    average_rating: float = Field(alias="averageRating")
    top_genres: list[str] = Field(alias="topGenres")
    top_authors: list[str] = Field(alias="topAuthors")

    class Config:
        populate_by_name = True


class ListStats(BaseModel):
    total_books: int = Field(alias="totalBooks")
    top_genres: list[str] = Field(alias="topGenres")
    top_authors: list[str] = Field(alias="topAuthors")
    list_name: str = Field(alias="listName")

    class Config:
        populate_by_name = True


class UserRecommendationsResponse(BaseModel):
    recommendations: list[RecommendationItem]
    message: Optional[str] = None
    user_stats: Optional[UserStats] = Field(default=None, alias="userStats")

    class Config:
        populate_by_name = True


class ReadingListRecommendationsResponse(BaseModel):
    recommendations: list[RecommendationItem]
    message: Optional[str] = None
    list_stats: Optional[ListStats] = Field(default=None, alias="listStats")

    class Config:
        populate_by_name = True


class ExternalRecommendation(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    reason: str
    genre: Optional[str] = None
    type: str = "book"
    # Google Books
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    preview_link: Optional[str] = Field(default=None, alias="previewLink")
    published_date: Optional[str] = Field(default=None, alias="publishedDate")
    page_count: Optional[int] = Field(default=None, alias="pageCount")
    average_rating: Optional[float] = Field(default=None, alias="averageRating")
    ratings_count: Optional[int] = Field(default=None, alias="ratingsCount")
    # TasteDive
    w_teaser: Optional[str] = Field(default=None, alias="wTeaser")
    w_url: Optional[str] = Field(default=None, alias="wUrl")
    y_url: Optional[str] = Field(default=None, alias="yUrl")
    y_id: Optional[str] = Field(default=None, alias="yID")

    class Config:
        populate_by_name = True


class GoogleBooksResponse(BaseModel):
    recommendations: list[ExternalRecommendation]
    source: str
    search_strategies: list[str] = Field(alias="searchStrategies")
    total_found: int = Field(alias="totalFound")

    class Config:
        populate_by_name = True


class TasteDiveResponse(BaseModel):
    recommendations: list[ExternalRecommendation]
    source: Optional[str] = None
    original_query: Optional[str] = Field(default=None, alias="originalQuery")
    message: Optional[str] = None

    class Config:
        populate_by_name = True
