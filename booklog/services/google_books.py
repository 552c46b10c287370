"""
Similar-book suggestions from the public Google Books volumes API.

Three search strategies run one after another (same author, popular
subjects, broad fiction) until ``limit`` suggestions are collected.
A failing call is logged and skipped so one bad upstream response
never sinks the whole request.
"""
import logging
import math
from typing import Optional, List, Dict, Any

import requests

from booklog.core.config import settings
from booklog.utils.titles import clean_title

logger = logging.getLogger(__name__)

SOURCE_NAME = "Google Books"
SEARCH_STRATEGIES = ["author", "genre", "popular"]
GENRE_QUERIES = [
    "subject:fiction",
    "subject:literature",
    "subject:classic",
    "subject:adventure",
]
BROAD_QUERY = "subject:fiction"


def _search(query: str, max_results: int) -> List[Dict[str, Any]]:
    """One volumes search. Returns the raw items (possibly empty)."""
    params = {
        "q": query,
        "maxResults": max_results,
        "orderBy": "relevance",
        "printType": "books",
        "langRestrict": "en",
    }
    if settings.GOOGLE_BOOKS_API_KEY:
        params["key"] = settings.GOOGLE_BOOKS_API_KEY

    resp = requests.get(settings.GOOGLE_BOOKS_BASE_URL, params=params, timeout=settings.EXTERNAL_API_TIMEOUT)
    resp.raise_for_status()
    data = resp.json()
    return data.get("items") or []


def _safe_search(query: str, max_results: int) -> List[Dict[str, Any]]:
    try:
        return _search(query, max_results)
    except (requests.RequestException, ValueError) as e:
        logger.warning("Google Books search failed for %r: %s", query, e)
        return []


def _to_recommendation(item: Dict[str, Any], reason: str) -> Optional[Dict[str, Any]]:
    info = item.get("volumeInfo") or {}
    title = info.get("title")
    if not title:
        return None
    authors = info.get("authors") or []
    image_links = info.get("imageLinks") or {}
    categories = info.get("categories") or []
    return {
        "title": title,
        "author": ", ".join(authors) if authors else None,
        "reason": reason,
        "type": "book",
        "description": info.get("description"),
        "imageUrl": image_links.get("thumbnail") or image_links.get("smallThumbnail"),
        "previewLink": info.get("previewLink"),
        "publishedDate": info.get("publishedDate"),
        "pageCount": info.get("pageCount"),
        "averageRating": info.get("averageRating"),
        "ratingsCount": info.get("ratingsCount"),
        "genre": categories[0] if categories else None,
    }


def _item_title(item: Dict[str, Any]) -> str:
    return ((item.get("volumeInfo") or {}).get("title") or "").lower()


def _overlaps(item_title: str, original_title: str) -> bool:
    return original_title in item_title or item_title in original_title


def get_recommendations(title: str, author: Optional[str] = None, limit: int = 10) -> Dict[str, Any]:
    """
    Collect up to ``limit`` suggestions for books similar to ``title``.

    Returns the response payload:
    ``{"recommendations", "source", "searchStrategies", "totalFound"}``.
    """
    original_title = (clean_title(title) or title).lower()
    recommendations: List[Dict[str, Any]] = []

    # Strategy 1: other books by the same author
    if author:
        title_words = [w for w in original_title.split(" ") if len(w) > 3]
        kept = []
        for item in _safe_search(f'inauthor:"{author}"', 20):
            item_title = _item_title(item)
            if not item_title:
                continue
            if any(word in item_title for word in title_words):
                continue
            if _overlaps(item_title, original_title):
                continue
            rec = _to_recommendation(item, f"Another book by {author}")
            if rec:
                kept.append(rec)
        recommendations.extend(kept[: math.ceil(limit / 2)])

    # Strategy 2: popular books in broad subjects
    for genre_query in GENRE_QUERIES:
        if len(recommendations) >= limit:
            break
        subject = genre_query.replace("subject:", "")
        recommendations.extend(
            _collect(_safe_search(genre_query, 15), original_title, recommendations, f"Popular {subject} book", limit)
        )

    # Strategy 3: broader fiction search
    if len(recommendations) < limit:
        recommendations.extend(
            _collect(_safe_search(BROAD_QUERY, 20), original_title, recommendations, "Popular fiction book", limit)
        )

    logger.info("Google Books returned %d suggestions for %r", len(recommendations), title)
    return {
        "recommendations": recommendations[:limit],
        "source": SOURCE_NAME,
        "searchStrategies": SEARCH_STRATEGIES,
        "totalFound": len(recommendations),
    }


def _collect(
    items: List[Dict[str, Any]],
    original_title: str,
    already: List[Dict[str, Any]],
    reason: str,
    limit: int,
) -> List[Dict[str, Any]]:
    """Filter out the source title and titles already suggested, up to the remaining slots."""
    seen = {rec["title"].lower() for rec in already}
    kept = []
    for item in items:
        item_title = _item_title(item)
        if not item_title or item_title in seen:
            continue
        if _overlaps(item_title, original_title):
            continue
        rec = _to_recommendation(item, reason)
        if rec:
            kept.append(rec)
    return kept[: max(limit - len(already), 0)]
