"""
Per-field acceptance rules for gig candidates.

Every rule either returns the accepted (typed, normalized) value or the
REJECTED sentinel. A numeric field that does not parse or falls outside its
range is a rejection, never a zero.
"""

import re
from typing import Any, Optional, Tuple

from src.FIVERR.config import (
    MIN_TITLE_LENGTH,
    RATING_RANGE,
    MAX_REVIEW_COUNT,
    MAX_PRICE,
    SELLER_LENGTH,
    CURRENCY_GLYPHS,
    DEFAULT_SELLER_LEVEL,
    SELLER_LEVEL_PATTERNS,
)
from src.FIVERR.utils import clean_text, absolutize_url, is_listing_url


class _Rejected:
    def __repr__(self):
        return "REJECTED"


REJECTED = _Rejected()

# Amount with optional thousands separators and cents: 45, 1,200, 12.50
AMOUNT_PATTERN = re.compile(r'(\d{1,3}(?:,\d{3})+|\d+)(?:\.(\d{1,2}))?')


def parse_rating(text: Optional[str]) -> Optional[float]:
    """
    Parse a star rating such as "4.9", "4.7 out of 5" or "Rated 5.0 stars".

    Returns:
        Rating rounded to one decimal, or None if missing or out of range
    """
    if not text:
        return None
    match = re.search(r'(\d+(?:\.\d+)?)', text)
    if not match:
        return None
    rating = float(match.group(1))
    low, high = RATING_RANGE
    if not low <= rating <= high:
        return None
    return round(rating, 1)


def is_rating_text(value: str) -> bool:
    """Shape check for the rating cascade: "0" or "6.2" lets the next selector try."""
    return parse_rating(value) is not None


def parse_review_count(text: Optional[str]) -> Optional[int]:
    """
    Parse a review count such as "(1,234)", "1.2k+" or "4.9 (87)".

    A parenthesized number is preferred over the first number in the text, so
    a rating printed next to the count is not mistaken for it. Thousands
    separators are stripped ("(1,234)" -> 1234) and a k suffix multiplies
    by 1000 ("(2.5k)" -> 2500).

    Returns:
        Review count, or None if missing, zero or above the cap
    """
    if not text:
        return None

    parenthesized = re.search(r'\(([^)]*\d[^)]*)\)', text)
    source = parenthesized.group(1) if parenthesized else text

    match = re.search(r'(\d{1,3}(?:,\d{3})+|\d+(?:\.\d+)?)\s*([kK])?', source)
    if not match:
        return None

    number, suffix = match.group(1), match.group(2)
    if suffix:
        count = int(float(number.replace(',', '')) * 1000)
    elif '.' in number:
        return None
    else:
        count = int(number.replace(',', ''))

    if not 0 < count <= MAX_REVIEW_COUNT:
        return None
    return count


def parse_price(text: Optional[str]) -> Optional[Tuple[str, str, float]]:
    """
    Split a price string into its currency glyph and amount.

    Args:
        text: Price text (e.g., "From $45", "Starting at €1,200")

    Returns:
        Tuple of (glyph, amount_text, amount) or None if no glyph/amount or out of range
    """
    if not text:
        return None

    glyph_positions = [(text.find(g), g) for g in CURRENCY_GLYPHS if g in text]
    if not glyph_positions:
        return None
    position, glyph = min(glyph_positions)

    # Amount after the glyph ("$45"), else anywhere ("45€")
    match = AMOUNT_PATTERN.search(text, position) or AMOUNT_PATTERN.search(text)
    if not match:
        return None

    amount_text = match.group(0)
    amount = float(amount_text.replace(',', ''))
    if not 0 < amount < MAX_PRICE:
        return None
    return glyph, amount_text, amount


def normalize_price(text: Optional[str]) -> Optional[str]:
    """Normalize to the "From <glyph><amount>" form, e.g. "$45" -> "From $45"."""
    parsed = parse_price(clean_text(text))
    if parsed is None:
        return None
    glyph, amount_text, _ = parsed
    return f"From {glyph}{amount_text}"


def normalize_seller_level(text: Optional[str]) -> str:
    """Map badge text to a canonical level label, defaulting to the baseline level."""
    lowered = clean_text(text).lower()
    if lowered:
        for pattern, label in SELLER_LEVEL_PATTERNS:
            if re.search(pattern, lowered):
                return label
    return DEFAULT_SELLER_LEVEL


def first_srcset_url(value: str) -> str:
    """Return the first URL of a srcset ("a.jpg 1x, b.jpg 2x" -> "a.jpg")."""
    candidate = value.split(',')[0].strip()
    return candidate.split()[0] if candidate else ""


def validate_field(field_name: str, raw_value: Optional[str]) -> Any:
    """
    Validate and normalize one resolved field value.

    Args:
        field_name: Gig field name (title, link, rating, ...)
        raw_value: Raw value from the resolver, None if unresolved

    Returns:
        Accepted value, or REJECTED
    """
    if field_name == 'seller_level':
        return normalize_seller_level(raw_value)

    if raw_value is None:
        return REJECTED

    if field_name == 'title':
        title = clean_text(raw_value)
        return title if len(title) >= MIN_TITLE_LENGTH else REJECTED

    if field_name == 'link':
        link = absolutize_url(raw_value)
        return link if is_listing_url(link) else REJECTED

    if field_name == 'rating':
        rating = parse_rating(raw_value)
        return REJECTED if rating is None else rating

    if field_name == 'review_count':
        count = parse_review_count(raw_value)
        return REJECTED if count is None else count

    if field_name == 'price':
        price = normalize_price(raw_value)
        return REJECTED if price is None else price

    if field_name == 'seller':
        seller = clean_text(raw_value)
        low, high = SELLER_LENGTH
        return seller if low < len(seller) < high else REJECTED

    if field_name == 'thumbnail':
        thumbnail = absolutize_url(first_srcset_url(raw_value))
        return thumbnail if thumbnail.startswith(('http://', 'https://')) else REJECTED

    raise ValueError(f"Unknown gig field: {field_name}")
