"""Normalise catalog titles before using them as external search queries."""
import re

# Applied in order. Subtitles and edition markers confuse the upstream search.
# Edition markers only match as whole words after whitespace, so "Moby Dick"
# and "Neoclassical Architecture" survive intact.
_TITLE_NOISE = [
    re.compile(r"(?:\s+-|\s*[–—])\s*.*$"),  # " - A Novel"
    re.compile(r"\s*:\s*.*$"),  # ": Subtitle"
    re.compile(r"\s*\([^)]*\)"),  # "(Penguin Classics)"
    re.compile(r"\s*\[[^\]]*\]"),  # "[Annotated]"
    re.compile(r"\s+By\s+.*$", re.IGNORECASE),
    re.compile(r"\s+Annotated\b.*$", re.IGNORECASE),
    re.compile(r"\s+Classic\b.*$", re.IGNORECASE),
    re.compile(r"\s+Unabridged\b.*$", re.IGNORECASE),
    re.compile(r"\s+Illustrated\b.*$", re.IGNORECASE),
    re.compile(r"\s+Original\b.*$", re.IGNORECASE),
]


def clean_title(title: str) -> str:
    """
    Strip subtitles, bracketed segments and edition markers from a title.

    >>> clean_title("Pride and Prejudice (Penguin Classics)")
    'Pride and Prejudice'
    >>> clean_title("Frankenstein: Or, The Modern Prometheus")
    'Frankenstein'
    """
    cleaned = title or ""
    for pattern in _TITLE_NOISE:
        cleaned = pattern.sub("", cleaned)
    return cleaned.strip()
