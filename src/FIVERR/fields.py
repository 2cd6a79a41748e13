"""
Selector cascades for every gig field.

Each FieldSpec lists its strategies in the order they are tried. The first
strategy that yields a value passing the field's shape check wins; values are
never merged across strategies. Fiverr reshuffles its card markup regularly,
so new selectors go at the top of a list and stale ones drift to the bottom.
"""

from dataclasses import replace
from typing import List

from src.FIVERR.config import STRICT_VALIDATION
from src.FIVERR.models import FieldSpec, Strategy
from src.FIVERR.utils import has_digit, has_currency_glyph, is_image_url, is_listing_url
from src.FIVERR.validator import is_rating_text

# Matches the container itself when the container is an anchor (link-scan fallback)
SELF = ':scope'

TITLE_SELECTORS = [
    'h3 a',
    'h2 a',
    'h4 a',
    '.gig-title a',
    '[data-gig-title] a',
    'a[data-impression-collected]',
    '.gig-link',
    'a[href*="/gigs/"]',
    SELF,
]

# Fields that must resolve and validate in strict mode
STRICT_REQUIRED = {'title', 'link', 'rating', 'review_count', 'price', 'seller', 'thumbnail'}
PERMISSIVE_REQUIRED = {'title', 'link'}


def build_field_specs(strict: bool = STRICT_VALIDATION) -> List[FieldSpec]:
    """
    Build the field lookup table.

    Args:
        strict: Require every scored field (rating, reviews, price, seller,
                thumbnail) or only title and link

    Returns:
        FieldSpecs in extraction order
    """
    required = STRICT_REQUIRED if strict else PERMISSIVE_REQUIRED

    specs = [
        FieldSpec(
            name='title',
            strategies=[Strategy(selector) for selector in TITLE_SELECTORS],
            container_attributes=['data-gig-title', 'data-title'],
        ),
        FieldSpec(
            name='link',
            strategies=[Strategy(selector, 'href') for selector in TITLE_SELECTORS],
            shape=is_listing_url,
        ),
        FieldSpec(
            name='rating',
            strategies=[
                Strategy('.rating-score', fallback_attribute='aria-label'),
                Strategy('.star-rating-score', fallback_attribute='aria-label'),
                Strategy('[data-rating]', 'data-rating'),
                Strategy('.gig-rating', fallback_attribute='aria-label'),
                Strategy('.rating-wrapper span:not(.rating-count):not(.count)', fallback_attribute='aria-label'),
                Strategy('.rating span:not(.rating-count):not(.count)', fallback_attribute='aria-label'),
                Strategy('[aria-label*="star"]', fallback_attribute='aria-label'),
            ],
            shape=is_rating_text,
        ),
        FieldSpec(
            name='review_count',
            strategies=[
                Strategy('.rating-count'),
                Strategy('.reviews-count'),
                Strategy('[data-reviews-count]', 'data-reviews-count'),
                Strategy('.rating-wrapper .count'),
                Strategy('.review-count'),
                Strategy('[class*="review"]'),
            ],
            shape=has_digit,
        ),
        FieldSpec(
            name='price',
            strategies=[
                Strategy('.price'),
                Strategy('.gig-price'),
                Strategy('[data-price]'),
                Strategy('.price-wrapper'),
                Strategy('.starting-at'),
                Strategy('.price-display'),
                Strategy('[class*="price"]'),
            ],
            shape=has_currency_glyph,
        ),
        FieldSpec(
            name='seller',
            strategies=[
                Strategy('.seller-name'),
                Strategy('.username'),
                Strategy('[data-seller]'),
                Strategy('.seller-info .name'),
                Strategy('.seller-link'),
                Strategy('[class*="seller"]:not([class*="level"]):not(:has([class*="level"]))'),
            ],
        ),
        FieldSpec(
            name='seller_level',
            strategies=[
                Strategy('.seller-level'),
                Strategy('[data-seller-level]', 'data-seller-level'),
                Strategy('[class*="level"]'),
            ],
        ),
        FieldSpec(
            name='thumbnail',
            strategies=[
                Strategy('img', 'src', fallback_attribute='data-src'),
                Strategy('img', 'data-lazy-src'),
                Strategy('source', 'srcset'),
            ],
            shape=is_image_url,
        ),
    ]

    return [replace(spec, required=spec.name in required) for spec in specs]


FIELD_SPECS = build_field_specs()
