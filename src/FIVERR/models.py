"""
Data models for the Fiverr gig search scraper
"""

from dataclasses import dataclass, field
from typing import Optional, List, Callable, Dict, Any
from datetime import datetime

from src.FIVERR.config import DEFAULT_SELLER_LEVEL

SORT_OPTIONS = ('relevance', 'rating', 'reviews', 'price_low', 'price_high')


@dataclass(frozen=True)
class Strategy:
    """One lookup attempt for a field: a CSS selector plus what to read from the match.

    `attribute` of None means the trimmed text content. `fallback_attribute`
    is read from the same element when the primary read yields nothing usable.
    """

    selector: str
    attribute: Optional[str] = None
    fallback_attribute: Optional[str] = None


@dataclass(frozen=True)
class FieldSpec:
    """Declarative lookup table entry for one gig field"""

    name: str
    strategies: List[Strategy]
    shape: Optional[Callable[[str], bool]] = None
    container_attributes: List[str] = field(default_factory=list)
    required: bool = False


@dataclass
class Gig:
    """A single gig listing taken from a search results page"""

    id: str
    title: str
    link: str
    rating: Optional[float] = None
    review_count: Optional[int] = None
    price: Optional[str] = None
    seller: Optional[str] = None
    seller_level: str = DEFAULT_SELLER_LEVEL
    thumbnail: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase keys of the dataset output."""
        return {
            'id': self.id,
            'title': self.title,
            'link': self.link,
            'rating': self.rating,
            'reviewCount': self.review_count,
            'price': self.price,
            'seller': self.seller,
            'sellerLevel': self.seller_level,
            'thumbnail': self.thumbnail,
            'tags': list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Gig":
        return cls(
            id=data['id'],
            title=data['title'],
            link=data['link'],
            rating=data.get('rating'),
            review_count=data.get('reviewCount'),
            price=data.get('price'),
            seller=data.get('seller'),
            seller_level=data.get('sellerLevel') or DEFAULT_SELLER_LEVEL,
            thumbnail=data.get('thumbnail'),
            tags=list(data.get('tags') or []),
        )


@dataclass
class RunConfig:
    """Parameters for one scraper run"""

    keyword: str
    min_reviews: int = 0
    max_reviews: Optional[int] = None
    pages: int = 1
    sort_by: str = 'relevance'

    def __post_init__(self):
        if not self.keyword or not self.keyword.strip():
            raise ValueError("Keyword is required")
        self.keyword = self.keyword.strip()
        if self.min_reviews < 0:
            raise ValueError(f"min_reviews must be >= 0, got {self.min_reviews}")
        if self.max_reviews is not None and self.max_reviews < 0:
            raise ValueError(f"max_reviews must be >= 0, got {self.max_reviews}")
        if self.pages < 1:
            raise ValueError(f"pages must be >= 1, got {self.pages}")
        if self.sort_by not in SORT_OPTIONS:
            raise ValueError(f"sort_by must be one of {', '.join(SORT_OPTIONS)}, got '{self.sort_by}'")


@dataclass
class TraversalState:
    """Page counter for a single run. Starts at 1 and only moves forward."""

    page_limit: int
    current_page: int = 1
    pages_visited: int = 0
    gigs_pushed: int = 0
    push_failures: int = 0
    # URL asked for when the current page was opened; a blocked run resumes here
    requested_url: Optional[str] = None

    def advance(self) -> int:
        self.current_page += 1
        return self.current_page

    @property
    def limit_reached(self) -> bool:
        return self.current_page >= self.page_limit


@dataclass
class ScraperOutput:
    """Final output document for a run"""

    gigs: List[Dict[str, Any]]
    total_results: int
    success: bool
    message: str
    error: Optional[str] = None
    keyword: str = ""
    scraped_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        output = {
            'gigs': self.gigs,
            'totalResults': self.total_results,
            'success': self.success,
            'message': self.message,
            'keyword': self.keyword,
            'scrapedAt': self.scraped_at,
        }
        if self.error is not None:
            output['error'] = self.error
        return output
