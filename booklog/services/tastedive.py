import logging
from typing import Optional, Dict, Any

import requests

from booklog.core.config import settings
from booklog.utils.titles import clean_title

logger = logging.getLogger(__name__)

SOURCE_NAME = "TasteDive"
NO_RESULTS_MESSAGE = "No recommendations found from TasteDive"


def build_query(title: str, author: Optional[str] = None) -> str:
    """TasteDive matches best on "Title by Author"."""
    base = clean_title(title) or title.strip()
    return f"{base} by {author}" if author else base


def get_recommendations(title: str, author: Optional[str] = None, limit: int = 10) -> Dict[str, Any]:
    """
    Ask TasteDive for books similar to ``title``.

    HTTP errors from the upstream call propagate as ``requests.HTTPError``
    so the caller can map the upstream status.
    """
    query = build_query(title, author)
    params = {
        "q": query,
        "type": "book",
        "limit": limit,
    }
    if settings.TASTEDIVE_API_KEY:
        params["k"] = settings.TASTEDIVE_API_KEY

    resp = requests.get(settings.TASTEDIVE_BASE_URL, params=params, timeout=settings.EXTERNAL_API_TIMEOUT)
    resp.raise_for_status()
    data = resp.json() or {}

    similar = data.get("similar") or data.get("Similar") or {}
    results = similar.get("results") if isinstance(similar, dict) else None
    if results is None:
        results = similar.get("Results") if isinstance(similar, dict) else None
    if results is None:
        logger.info("TasteDive had no results block for %r", query)
        return {"recommendations": [], "message": NO_RESULTS_MESSAGE}

    recommendations = []
    for result in results:
        result_type = result.get("type") or result.get("Type")
        if result_type and result_type != "book":
            continue
        recommendations.append({
            "title": result.get("name") or result.get("Name"),
            "reason": f'Recommended based on "{title}"',
            "type": "book",
            "wTeaser": result.get("wTeaser"),
            "wUrl": result.get("wUrl"),
            "yUrl": result.get("yUrl"),
            "yID": result.get("yID"),
        })

    return {
        "recommendations": recommendations[:limit],
        "source": SOURCE_NAME,
        "originalQuery": query,
    }
