"""
Shared fixtures for the Fiverr scraper tests.

Search pages are built from small HTML snippets and served by FakeSession,
which mimics the BrowserSession surface on top of BeautifulSoup so the
traversal controller runs without a browser.
"""

from typing import List, Optional
from urllib.parse import urljoin

import pytest
from bs4 import BeautifulSoup
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from src.FIVERR.fields import build_field_specs

LOGO_URL = "//fiverr-res.cloudinary.com/images/t_main1/logo.jpg"


def gig_card(gig_id: Optional[str] = "101",
             title: Optional[str] = "I will design a modern minimalist logo",
             href: Optional[str] = "/designer_joe/design-a-modern-minimalist-logo",
             rating: Optional[str] = "4.9",
             reviews: Optional[str] = "(1,234)",
             price: Optional[str] = "From $45",
             seller: Optional[str] = "designer_joe",
             level: Optional[str] = "Level 2",
             img: Optional[str] = LOGO_URL,
             css_class: str = "gig-card-layout") -> str:
    """Build one gig card; pass None to leave a part out."""
    id_attr = f' data-gig-id="{gig_id}"' if gig_id else ""
    parts = [f'<div class="{css_class}"{id_attr}>']
    if img is not None:
        parts.append(f'<a href="{href or ""}"><img src="{img}" alt=""></a>')
    if seller is not None or level is not None:
        parts.append('<div class="seller-info">')
        if seller is not None:
            parts.append(f'<span class="seller-name">{seller}</span>')
        if level is not None:
            parts.append(f'<span class="seller-level">{level}</span>')
        parts.append('</div>')
    if title is not None:
        parts.append(f'<h3><a href="{href or ""}">{title}</a></h3>')
    if rating is not None or reviews is not None:
        parts.append('<div class="rating-wrapper">')
        if rating is not None:
            parts.append(f'<span class="rating-score">{rating}</span>')
        if reviews is not None:
            parts.append(f'<span class="rating-count">{reviews}</span>')
        parts.append('</div>')
    if price is not None:
        parts.append(f'<div class="price-wrapper"><span class="price">{price}</span></div>')
    parts.append('</div>')
    return "".join(parts)


def search_page(cards: List[str], next_page: Optional[str] = "enabled", body_text: str = "") -> str:
    """
    Wrap cards in a search results page.

    next_page: "enabled", "disabled", "button" (no href) or None for no pagination.
    """
    pagination = ""
    if next_page == "enabled":
        pagination = '<nav class="pagination"><a class="pagination-next" href="/search/gigs?query=logo&page=2">Next</a></nav>'
    elif next_page == "disabled":
        pagination = '<nav class="pagination"><a class="pagination-next disabled">Next</a></nav>'
    elif next_page == "button":
        pagination = '<nav class="pagination"><button aria-label="Next">Next</button></nav>'
    return (
        "<html><head><title>Fiverr search</title></head><body>"
        f"<p>{body_text}</p>"
        f'<div class="results">{"".join(cards)}</div>'
        f"{pagination}"
        "</body></html>"
    )


class FakeElement:
    """Stand-in for a Playwright ElementHandle backed by a BeautifulSoup tag."""

    def __init__(self, tag, session):
        self.tag = tag
        self.session = session

    def get_attribute(self, name: str) -> Optional[str]:
        value = self.tag.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def click(self, timeout: Optional[int] = None) -> None:
        self.session.clicks += 1
        self.session.advance()


class FakeSession:
    """
    Serves a fixed list of pages; following a next control moves to the next one.

    redirect_url, when set, is reported by url() for every page, like a site
    that bounces the browser to a challenge page.
    """

    def __init__(self, pages: List[str], load_timeout: bool = False, redirect_url: Optional[str] = None):
        self.pages = pages
        self.redirect_url = redirect_url
        self.index = 0
        self.load_timeout = load_timeout
        self.navigations: List[str] = []
        self.follows = 0
        self.clicks = 0
        self.unhealthy_marks = 0
        self.closed = False
        self.contents_served = 0

    @property
    def soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.pages[self.index], 'html.parser')

    def advance(self) -> None:
        self.index += 1

    def navigate(self, url: str) -> None:
        self.navigations.append(url)

    def wait_for_load_state(self, state: str, timeout: int) -> None:
        if self.load_timeout:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {state}")

    def wait_for_selector(self, selector: str, timeout: int) -> None:
        if not self.soup.select(selector):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    def query_all(self, selector: str) -> List[FakeElement]:
        return [FakeElement(tag, self) for tag in self.soup.select(selector)]

    def visible_text(self) -> str:
        return self.soup.get_text(" ")

    def title(self) -> str:
        title = self.soup.title
        return title.get_text(strip=True) if title else ""

    def url(self) -> str:
        if self.redirect_url:
            return self.redirect_url
        return f"https://www.fiverr.com/search/gigs?query=logo&page={self.index + 1}"

    def content(self) -> str:
        self.contents_served += 1
        return self.pages[self.index]

    def mark_unhealthy(self) -> None:
        self.unhealthy_marks += 1

    def follow(self, handle: FakeElement) -> Optional[str]:
        self.follows += 1
        href = handle.get_attribute("href")
        if href:
            next_url = urljoin(self.url(), href)
            self.navigate(next_url)
            self.advance()
            return next_url
        handle.click()
        return None

    def scroll_like_human(self) -> None:
        pass

    def dismiss_overlays(self, selectors: List[str]) -> int:
        return 0

    def close(self) -> None:
        self.closed = True


class ListSink:
    """In-memory sink; optionally fails every push."""

    def __init__(self, accept: bool = True):
        self.accept = accept
        self.gigs = []

    def push(self, gig) -> bool:
        if self.accept:
            self.gigs.append(gig)
        return self.accept


@pytest.fixture
def strict_specs():
    return build_field_specs(strict=True)


@pytest.fixture
def permissive_specs():
    return build_field_specs(strict=False)


@pytest.fixture
def sink():
    return ListSink()


@pytest.fixture
def sleeps():
    """Collects requested delays instead of sleeping; pass sleeps.append as the sleep function."""
    return []
