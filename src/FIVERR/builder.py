"""
Gig builder: turns accepted field values into the canonical Gig shape.

Every normalization here is a fixed point, so building from the values of an
already-built Gig returns an identical Gig.
"""

import re
import secrets
import time
from typing import Any, Dict, List, Optional

from src.FIVERR.config import MAX_TAGS, TAG_VOCABULARY
from src.FIVERR.models import Gig
from src.FIVERR.utils import clean_text, absolutize_url
from src.FIVERR.validator import normalize_price, normalize_seller_level


def synthesize_gig_id(index: int) -> str:
    """
    Build a fallback ID for cards that carry no data-gig-id.

    Format: gig-<epoch ms>-<index on page>-<random token>
    """
    return f"gig-{int(time.time() * 1000)}-{index}-{secrets.token_hex(3)}"


def choose_gig_id(container_id: Optional[str], alternate_id: Optional[str], index: int) -> str:
    for candidate in (container_id, alternate_id):
        if candidate and candidate.strip():
            return candidate.strip()
    return synthesize_gig_id(index)


def derive_tags(keyword: str, title: str) -> List[str]:
    """
    Derive display tags from the search keyword and the gig title.

    Keyword words come first (capitalized), followed by vocabulary labels for
    words found in the title. Duplicates are dropped case-insensitively and
    the list is capped at MAX_TAGS.

    Args:
        keyword: Search keyword (e.g., "logo design")
        title: Cleaned gig title

    Returns:
        Ordered list of at most MAX_TAGS tags
    """
    candidates = [word.capitalize() for word in re.findall(r'[A-Za-z0-9]+', keyword or "")]

    for word in re.findall(r'[a-z0-9]+', (title or "").lower()):
        label = TAG_VOCABULARY.get(word)
        if label:
            candidates.append(label)

    tags = []
    seen = set()
    for tag in candidates:
        if tag.lower() in seen:
            continue
        seen.add(tag.lower())
        tags.append(tag)
        if len(tags) == MAX_TAGS:
            break
    return tags


def build_gig(container_id: Optional[str], field_values: Dict[str, Any], keyword: str,
              index: int = 0, alternate_id: Optional[str] = None) -> Gig:
    """
    Build a Gig from accepted field values.

    Args:
        container_id: data-gig-id of the card, if any
        field_values: Accepted values keyed by field name
        keyword: Search keyword (for tag derivation)
        index: Position of the card on the page (for ID synthesis)
        alternate_id: Secondary source ID (data-gig attribute)

    Returns:
        Normalized Gig
    """
    title = clean_text(field_values.get('title'))
    seller = clean_text(field_values.get('seller')) or None
    thumbnail = absolutize_url(field_values.get('thumbnail')) or None
    rating = field_values.get('rating')

    return Gig(
        id=choose_gig_id(container_id, alternate_id, index),
        title=title,
        link=absolutize_url(field_values.get('link')),
        rating=round(rating, 1) if rating is not None else None,
        review_count=field_values.get('review_count'),
        price=normalize_price(field_values.get('price')),
        seller=seller,
        seller_level=normalize_seller_level(field_values.get('seller_level')),
        thumbnail=thumbnail,
        tags=derive_tags(keyword, title),
    )
