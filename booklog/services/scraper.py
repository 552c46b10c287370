"""
Best-effort extraction of book details from a public product page.

Goodreads and Amazon get their own selectors; every other site goes
through a generic set. Nothing extracted here is trusted: the caller
only shows it to the user as a pre-filled form.
"""
import logging
import re
from typing import Optional, Dict, Any
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

from booklog.core.config import settings

logger = logging.getLogger(__name__)

DESCRIPTION_MAX_LENGTH = 500
DEFAULT_LANGUAGE = "English"
DEFAULT_GENRES = ["Fiction"]

YEAR_RE = re.compile(r"(\d{4})")
ISBN_RE = re.compile(r"ISBN[^:]*:\s*(\d{13}|\d{10})")
PAGES_RE = re.compile(r"(\d+)\s*pages?", re.IGNORECASE)


def is_valid_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


# Small helpers that mirror jQuery-style accessors over BeautifulSoup.

def _all_text(soup: BeautifulSoup, selector: str) -> str:
    """Concatenated text of every match."""
    return "".join(el.get_text() for el in soup.select(selector)).strip()


def _first_text(soup: BeautifulSoup, selector: str) -> str:
    el = soup.select_one(selector)
    return el.get_text().strip() if el else ""


def _attr(soup: BeautifulSoup, selector: str, attr: str) -> Optional[str]:
    el = soup.select_one(selector)
    if el is None:
        return None
    value = el.get(attr)
    return value or None


def _parent_text(soup: BeautifulSoup, selector: str) -> str:
    return "".join(el.parent.get_text() for el in soup.select(selector) if el.parent).strip()


def _next_text(soup: BeautifulSoup, selector: str) -> str:
    parts = []
    for el in soup.select(selector):
        sibling = el.find_next_sibling()
        if sibling is not None:
            parts.append(sibling.get_text())
    return "".join(parts).strip()


def _first(*values):
    for value in values:
        if value:
            return value
    return None


def _match_int(pattern: re.Pattern, text: str) -> Optional[int]:
    match = pattern.search(text or "")
    return int(match.group(1)) if match else None


def _match_str(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text or "")
    return match.group(1) if match else None


def _extract_goodreads(soup: BeautifulSoup) -> Dict[str, Any]:
    pub_info = _first(
        _all_text(soup, 'p[data-testid="publicationInfo"]'),
        _all_text(soup, 'span[itemprop="datePublished"]'),
    )
    isbn_text = _first(
        _all_text(soup, 'p:-soup-contains("ISBN")'),
        _all_text(soup, 'span:-soup-contains("ISBN")'),
    )
    pages_text = _first(
        _all_text(soup, 'p:-soup-contains("pages")'),
        _all_text(soup, 'span:-soup-contains("pages")'),
    )
    return {
        "title": _first(
            _all_text(soup, 'h1[data-testid="bookTitle"]'),
            _all_text(soup, "h1.Text__title"),
            _first_text(soup, "h1"),
        ),
        "author": _first(
            _first_text(soup, 'a[data-testid="name"]'),
            _first_text(soup, "span.ContributorLinksList"),
            _first_text(soup, "a.contributor"),
        ),
        "description": _first(
            _first_text(soup, "span.Formatted"),
            _all_text(soup, 'div[data-testid="description"]'),
            _first_text(soup, 'div[class*="description"]'),
        ),
        "year": _match_int(YEAR_RE, pub_info),
        "isbn": _match_str(ISBN_RE, isbn_text),
        "page_count": _match_int(PAGES_RE, pages_text),
        "cover_image_url": _first(
            _attr(soup, 'img[data-testid="coverImage"]', "src"),
            _attr(soup, 'img[class*="ResponsiveImage"]', "src"),
        ),
        "publisher": _first(
            _all_text(soup, 'p:-soup-contains("Published by")').replace("Published by", "", 1).strip(),
            _all_text(soup, 'span[itemprop="publisher"]'),
        ),
    }


def _extract_amazon(soup: BeautifulSoup) -> Dict[str, Any]:
    pub_info = _first(
        _parent_text(soup, 'span:-soup-contains("Publication date")'),
        _all_text(soup, 'span[itemprop="datePublished"]'),
    )
    isbn_text = _first(
        _parent_text(soup, 'span:-soup-contains("ISBN")'),
        _next_text(soup, 'td:-soup-contains("ISBN")'),
    )
    pages_text = _first(
        _parent_text(soup, 'span:-soup-contains("pages")'),
        _next_text(soup, 'td:-soup-contains("pages")'),
    )
    return {
        "title": _first(
            _all_text(soup, "#productTitle"),
            _all_text(soup, 'h1[data-automation-id="title"]'),
            _first_text(soup, "h1"),
        ),
        "author": _first(
            _first_text(soup, 'a[data-automation-id="contributor"]'),
            _first_text(soup, 'a:-soup-contains("by")').replace("by", "", 1).strip(),
            _first_text(soup, 'span[itemprop="author"]'),
        ),
        "description": _first(
            _all_text(soup, "#bookDescription_feature_div"),
            _all_text(soup, 'div[data-feature-name="bookDescription"]'),
            _first_text(soup, 'div[class*="description"]'),
        ),
        "year": _match_int(YEAR_RE, pub_info),
        "isbn": _match_str(ISBN_RE, isbn_text),
        "page_count": _match_int(PAGES_RE, pages_text),
        "cover_image_url": _first(
            _attr(soup, "#landingImage", "src"),
            _attr(soup, "img[data-old-hires]", "src"),
        ),
        "publisher": _first(
            _parent_text(soup, 'span:-soup-contains("Publisher")').replace("Publisher", "", 1).strip(),
            _all_text(soup, 'span[itemprop="publisher"]'),
        ),
    }


def _extract_generic(soup: BeautifulSoup) -> Dict[str, Any]:
    year_text = _first(
        _all_text(soup, 'p:-soup-contains("Published")'),
        _all_text(soup, 'span[itemprop="datePublished"]'),
    )
    isbn_text = _first(
        _all_text(soup, 'p:-soup-contains("ISBN")'),
        _all_text(soup, 'span:-soup-contains("ISBN")'),
    )
    pages_text = _first(
        _all_text(soup, 'p:-soup-contains("pages")'),
        _all_text(soup, 'span:-soup-contains("pages")'),
    )
    return {
        "title": _first(
            _first_text(soup, "h1"),
            _all_text(soup, "title"),
        ),
        "author": _first(
            _first_text(soup, 'a[data-testid="name"]'),
            _first_text(soup, 'span[itemprop="author"]'),
            _first_text(soup, "a.contributor"),
            _first_text(soup, 'a:-soup-contains("by")').replace("by", "", 1).strip(),
        ),
        "description": _first(
            _all_text(soup, 'div[data-testid="description"]'),
            _all_text(soup, "div.description"),
            _first_text(soup, 'div[class*="description"]'),
        ),
        "year": _match_int(YEAR_RE, year_text),
        "isbn": _match_str(ISBN_RE, isbn_text),
        "page_count": _match_int(PAGES_RE, pages_text),
        "cover_image_url": _first(
            _attr(soup, 'img[class*="ResponsiveImage"]', "src"),
            _attr(soup, 'img[data-testid="coverImage"]', "src"),
            _attr(soup, 'img[alt*="cover"]', "src"),
        ),
        "publisher": _first(
            _all_text(soup, 'p:-soup-contains("Published by")').replace("Published by", "", 1).strip(),
            _all_text(soup, 'span[itemprop="publisher"]'),
        ),
    }


def extract_book_data(html: str, url: str) -> Dict[str, Any]:
    """Pull book fields out of a page's HTML, choosing selectors by host."""
    hostname = (urlparse(url).hostname or "").lower()
    soup = BeautifulSoup(html, "html.parser")

    if "goodreads.com" in hostname:
        data = _extract_goodreads(soup)
    elif "amazon.com" in hostname:
        data = _extract_amazon(soup)
    else:
        data = _extract_generic(soup)

    description = data.get("description")
    if description and len(description) > DESCRIPTION_MAX_LENGTH:
        data["description"] = description[:DESCRIPTION_MAX_LENGTH] + "..."

    author = data.get("author")
    if author and "by" in author:
        data["author"] = author.replace("by", "", 1).strip()

    year = data.get("year")
    return {
        "title": data.get("title"),
        "author": data.get("author"),
        "year": year,
        "description": data.get("description"),
        "isbn": data.get("isbn"),
        "page_count": data.get("page_count"),
        "language": DEFAULT_LANGUAGE,
        "publisher": data.get("publisher"),
        "cover_image_url": data.get("cover_image_url"),
        "publication_date": f"{year}-01-01" if year else None,
        "genres": list(DEFAULT_GENRES),
    }


def scrape_book_data(url: str) -> Optional[Dict[str, Any]]:
    """
    Fetch ``url`` and extract book fields.

    Returns None when the page cannot be fetched.
    """
    try:
        resp = requests.get(
            url,
            headers={"User-Agent": settings.SCRAPE_USER_AGENT},
            timeout=settings.SCRAPE_TIMEOUT,
        )
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.warning("Failed to fetch %s for scraping: %s", url, e)
        return None

    return extract_book_data(resp.text, url)
