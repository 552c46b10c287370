"""
In-process recommendation heuristic.

Works on plain objects exposing ``id``, ``title``, ``author`` and
``genres`` (each with a ``name``), so it can run over ORM rows or test
doubles alike. Nothing here touches the database.

The algorithm is the same for a user's read books and for a reading
list's books; only the wording of the reasons and the stats differ:

1. Count genres and authors over the source books.
2. Keep the top 5 genres and top 3 authors (ties keep first-seen order).
3. Walk the catalog, minus the source books, in three passes:
   genre match, author match (only if fewer than 5 so far), then
   anything (only if fewer than 8 so far).
4. Never repeat a title (case-insensitive) and stop at 10.
"""
from typing import List, Dict, Any, Iterable, Optional, Sequence
from dataclasses import dataclass
import logging
import math

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 10
AUTHOR_PASS_THRESHOLD = 5
FILL_PASS_THRESHOLD = 8
TOP_GENRES = 5
TOP_AUTHORS = 3

NO_HISTORY_MESSAGE = (
    "No reading history found. Start reading some books to get personalized recommendations!"
)
EMPTY_LIST_MESSAGE = "No books in this reading list yet. Add some books to get recommendations!"


@dataclass(frozen=True)
class ReasonTemplates:
    """Wording used for each pass of the heuristic."""
    genre: str  # formatted with genres=", ".join(matches)
    author: str  # formatted with author=...
    fill: str


USER_REASONS = ReasonTemplates(
    genre="Similar to your interest in {genres}",
    author="By {author}, an author you enjoy",
    fill="Popular book you might enjoy",
)

READING_LIST_REASONS = ReasonTemplates(
    genre="Similar to the {genres} books in this list",
    author="By {author}, an author featured in this list",
    fill="Popular book that might fit this list",
)


def _genre_names(book) -> List[str]:
    return [g.name for g in (book.genres or [])]


def count_preferences(books: Iterable) -> tuple[Dict[str, int], Dict[str, int]]:
    """Return (genre -> count, author -> count), keys in first-seen order."""
    genre_counts: Dict[str, int] = {}
    author_counts: Dict[str, int] = {}
    for book in books:
        for name in _genre_names(book):
            genre_counts[name] = genre_counts.get(name, 0) + 1
        author_counts[book.author] = author_counts.get(book.author, 0) + 1
    return genre_counts, author_counts


def top_keys(counts: Dict[str, int], n: int) -> List[str]:
    # sorted() is stable, so equal counts keep insertion order
    return [key for key, _ in sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:n]]


def round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def average_rating(ratings: Iterable[Optional[int]]) -> float:
    """Mean of the positive ratings, rounded to one decimal; 0 when none are rated."""
    rated = [r for r in ratings if r and r > 0]
    if not rated:
        return 0
    return round_half_up(sum(rated) / len(rated), 1)


def build_recommendations(
    source_books: Sequence,
    catalog: Sequence,
    reasons: ReasonTemplates,
    top_genres: List[str],
    top_authors: List[str],
) -> List[Dict[str, Any]]:
    """Run the three passes over the catalog, skipping the source books."""
    source_ids = {b.id for b in source_books}
    candidates = [b for b in catalog if b.id not in source_ids]

    recommendations: List[Dict[str, Any]] = []
    seen_titles: set = set()

    def _add(book, reason: str, genre: Optional[str]) -> None:
        recommendations.append({
            "title": book.title,
            "author": book.author,
            "reason": reason,
            "genre": genre,
        })
        seen_titles.add(book.title.lower())

    # Pass 1: genre overlap with the preferred genres
    for book in candidates:
        if len(recommendations) >= MAX_RECOMMENDATIONS:
            break
        if book.title.lower() in seen_titles:
            continue
        matches = [g for g in _genre_names(book) if g in top_genres]
        if matches:
            _add(book, reasons.genre.format(genres=", ".join(matches)), matches[0])

    # Pass 2: preferred authors
    if len(recommendations) < AUTHOR_PASS_THRESHOLD:
        for book in candidates:
            if len(recommendations) >= MAX_RECOMMENDATIONS:
                break
            if book.title.lower() in seen_titles:
                continue
            if book.author in top_authors:
                names = _genre_names(book)
                _add(book, reasons.author.format(author=book.author), names[0] if names else None)

    # Pass 3: fill with whatever is left
    if len(recommendations) < FILL_PASS_THRESHOLD:
        for book in candidates:
            if len(recommendations) >= MAX_RECOMMENDATIONS:
                break
            if book.title.lower() in seen_titles:
                continue
            names = _genre_names(book)
            _add(book, reasons.fill, names[0] if names else None)

    return recommendations[:MAX_RECOMMENDATIONS]


def recommend_for_user(
    read_books: Sequence,
    catalog: Sequence,
    ratings: Optional[Iterable[Optional[int]]] = None,
) -> Dict[str, Any]:
    """
    Recommendations from a user's read books.

    Returns ``{"recommendations": [], "message": ...}`` when nothing has
    been read yet, otherwise the recommendations plus ``userStats``.
    """
    if not read_books:
        return {"recommendations": [], "message": NO_HISTORY_MESSAGE}

    genre_counts, author_counts = count_preferences(read_books)
    top_genres = top_keys(genre_counts, TOP_GENRES)
    top_authors = top_keys(author_counts, TOP_AUTHORS)

    recommendations = build_recommendations(read_books, catalog, USER_REASONS, top_genres, top_authors)
    logger.info(
        "Generated %d recommendations from %d read books (top genres=%s)",
        len(recommendations), len(read_books), top_genres,
    )
    return {
        "recommendations": recommendations,
        "userStats": {
            "totalBooksRead": len(read_books),
            "averageRating": average_rating(ratings or []),
            "topGenres": top_genres,
            "topAuthors": top_authors,
        },
    }


def recommend_for_reading_list(list_name: str, list_books: Sequence, catalog: Sequence) -> Dict[str, Any]:
    """Recommendations from the books already in a reading list."""
    if not list_books:
        return {"recommendations": [], "message": EMPTY_LIST_MESSAGE}

    genre_counts, author_counts = count_preferences(list_books)
    top_genres = top_keys(genre_counts, TOP_GENRES)
    top_authors = top_keys(author_counts, TOP_AUTHORS)

    recommendations = build_recommendations(list_books, catalog, READING_LIST_REASONS, top_genres, top_authors)
    return {
        "recommendations": recommendations,
        "listStats": {
            "totalBooks": len(list_books),
            "topGenres": top_genres,
            "topAuthors": top_authors,
            "listName": list_name,
        },
    }
