"""
Text and URL helpers shared by the Fiverr resolver, validator and builder
"""

import re
from typing import Optional
from urllib.parse import urljoin, urlparse

from src.FIVERR.config import SITE_ORIGIN, CURRENCY_GLYPHS, RESERVED_PATH_SEGMENTS


def clean_text(text: Optional[str]) -> str:
    """
    Collapse whitespace and trim.

    Entities are decoded once, by BeautifulSoup, when the page snapshot is
    parsed; text is never unescaped a second time.

    Args:
        text: Text from the parsed page (may be None)

    Returns:
        Cleaned text, empty string if nothing is left
    """
    if not text:
        return ""
    text = re.sub(r'\s+', ' ', text)
    return text.strip()


def absolutize_url(url: Optional[str]) -> str:
    """
    Rewrite relative and protocol-relative URLs against the Fiverr origin.

    "//cdn/x.jpg" -> "https://cdn/x.jpg", "/seller/gig" -> "https://www.fiverr.com/seller/gig".
    Absolute http(s) URLs are returned unchanged.
    """
    if not url:
        return ""
    url = url.strip()
    if url.startswith(('http://', 'https://')):
        return url
    if url.startswith('//'):
        return f"https:{url}"
    return urljoin(f"{SITE_ORIGIN}/", url)


def is_listing_url(url: Optional[str]) -> bool:
    """
    Check whether a URL points at a gig page on fiverr.com.

    Gig pages live either under /gigs/ or at /<seller>/<gig-slug>.
    """
    if not url:
        return False
    parsed = urlparse(absolutize_url(url))
    host = parsed.netloc.lower()
    if host != 'fiverr.com' and not host.endswith('.fiverr.com'):
        return False

    segments = [s for s in parsed.path.split('/') if s]
    return len(segments) >= 2 and segments[0].lower() not in RESERVED_PATH_SEGMENTS


def has_digit(value: str) -> bool:
    return bool(re.search(r'\d', value))


def has_currency_glyph(value: str) -> bool:
    return any(glyph in value for glyph in CURRENCY_GLYPHS)


def is_image_url(value: str) -> bool:
    """Lazy-loaded cards carry a data: placeholder in src until scrolled into view."""
    return bool(value) and not value.startswith('data:')
