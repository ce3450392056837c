"""
URL Normalizer

Canonical page URLs for per-page record matching: query and fragment
dropped, scheme and host lower-cased, trailing slash stripped except on
the root path. Input that is not an absolute URL is returned unchanged.
"""

from typing import Optional
from urllib.parse import urlsplit, urlunsplit


def normalize_url(url: Optional[str]) -> Optional[str]:
    """
    Normalize a page URL for comparison.

    Examples:
        >>> normalize_url("HTTPS://Ex.com/a/?utm=1#top")
        'https://ex.com/a'
        >>> normalize_url("https://ex.com")
        'https://ex.com/'
    """
    if not url:
        return url
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return url
    if not (parts.scheme and parts.netloc):
        return url

    path = parts.path or "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, "", ""))


def same_page(first: Optional[str], second: Optional[str]) -> bool:
    """Compare two page URLs after normalization; two missing URLs are equal."""
    return (normalize_url(first) or None) == (normalize_url(second) or None)
