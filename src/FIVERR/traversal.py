"""
Traversal controller for Fiverr search results.

Drives one run page by page:

    AWAITING_LOAD -> BLOCK_CHECK -> EXTRACTING -> DECIDING_CONTINUATION
        -> NAVIGATING -> AWAITING_LOAD ...
        -> TERMINATED

A load timeout is logged and the page is still extracted. Block detection
marks the session unhealthy and raises; retrying with a fresh session is the
caller's job. The URL requested for the current page is kept on the
TraversalState, so a retry reopens the search page rather than wherever the
site redirected. Any other exception ends the run as failed.
"""

import logging
import random
import re
import time
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from src.FIVERR.config import (
    BLOCKING_PHRASES,
    CONTAINER_SELECTORS,
    CONTAINER_WAIT_TIMEOUT,
    DELAY_BETWEEN_PAGES,
    DOM_LOAD_TIMEOUT,
    NETWORK_IDLE_TIMEOUT,
    NEXT_PAGE_SELECTORS,
    OVERLAY_SELECTORS,
    SETTLE_DELAY,
)
from src.FIVERR.models import FieldSpec, TraversalState
from src.FIVERR.parser import extract_page

logger = logging.getLogger(__name__)


class ScraperError(Exception):
    """Base exception for scraper failures."""


class BlockedError(ScraperError):
    """The site served an anti-automation page instead of search results."""

    def __init__(self, message: str, url: Optional[str] = None, phrase: Optional[str] = None):
        super().__init__(message)
        self.url = url
        self.phrase = phrase


class Phase(Enum):
    AWAITING_LOAD = "awaiting_load"
    BLOCK_CHECK = "block_check"
    EXTRACTING = "extracting"
    DECIDING_CONTINUATION = "deciding_continuation"
    NAVIGATING = "navigating"
    TERMINATED = "terminated"
    FAILED = "failed"


def detect_block(text: str) -> Optional[str]:
    """
    Look for anti-automation phrases in visible page text.

    Args:
        text: Visible text of the page

    Returns:
        The matched phrase, or None if the page looks normal
    """
    lowered = (text or "").lower()
    for phrase in BLOCKING_PHRASES:
        if phrase in lowered:
            return phrase
    return None


def is_disabled(handle) -> bool:
    if handle.get_attribute("disabled") is not None:
        return True
    if (handle.get_attribute("aria-disabled") or "").lower() == "true":
        return True
    classes = (handle.get_attribute("class") or "").split()
    return "disabled" in classes


class TraversalController:
    """Walks search result pages for one run and pushes gigs to a sink."""

    def __init__(self, session, sink, keyword: str,
                 field_specs: Optional[List[FieldSpec]] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 snapshot_dir: Optional[Path] = None):
        """
        Args:
            session: Browser session (see BrowserSession for the expected surface)
            sink: Object with push(gig) -> bool
            keyword: Search keyword
            field_specs: Field lookup table (defaults to FIELD_SPECS)
            sleep: Delay function, replaced in tests
            snapshot_dir: Where to save each page's HTML, None to skip
        """
        self.session = session
        self.sink = sink
        self.keyword = keyword
        self.field_specs = field_specs
        self.sleep = sleep
        self.snapshot_dir = snapshot_dir
        self.phase = Phase.AWAITING_LOAD

    def run(self, start_url: Optional[str], state: TraversalState) -> TraversalState:
        """
        Traverse result pages until the page limit or the last page.

        Args:
            start_url: URL to open first, None if the session is already there
            state: Page counter for this run (resumed, never reset)

        Returns:
            The same TraversalState, advanced
        """
        if start_url:
            logger.info(f"🌐 Opening {start_url}")
            self.session.navigate(start_url)
            state.requested_url = start_url

        self.phase = Phase.AWAITING_LOAD
        next_control = None

        try:
            while self.phase is not Phase.TERMINATED:
                if self.phase is Phase.AWAITING_LOAD:
                    self.await_load(state)
                    self.phase = Phase.BLOCK_CHECK

                elif self.phase is Phase.BLOCK_CHECK:
                    self.check_blocked()
                    self.phase = Phase.EXTRACTING

                elif self.phase is Phase.EXTRACTING:
                    self.extract_and_push(state)
                    self.phase = Phase.DECIDING_CONTINUATION

                elif self.phase is Phase.DECIDING_CONTINUATION:
                    next_control = self.decide_continuation(state)
                    self.phase = Phase.NAVIGATING if next_control is not None else Phase.TERMINATED

                elif self.phase is Phase.NAVIGATING:
                    state.requested_url = self.session.follow(next_control)
                    next_control = None
                    self.phase = Phase.AWAITING_LOAD

        except Exception:
            self.phase = Phase.FAILED
            raise

        logger.info(f"✓ Traversal finished after {state.pages_visited} page(s), {state.gigs_pushed} gigs pushed")
        return state

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def await_load(self, state: TraversalState) -> None:
        try:
            self.session.wait_for_load_state("domcontentloaded", DOM_LOAD_TIMEOUT)
            logger.info("  Page DOM content loaded")
            self.session.wait_for_load_state("networkidle", NETWORK_IDLE_TIMEOUT)
            logger.info("  Page network idle")
        except PlaywrightTimeoutError as e:
            logger.warning(f"  ⚠ Load state timeout, continuing anyway: {e}")

        self.sleep(SETTLE_DELAY)

        current_url = self.session.url()
        logger.info(f"  Current URL: {current_url}")
        logger.info(f"  Page title: {self.session.title()}")

        # A clicked control has no href; record where the click landed
        if state.requested_url is None:
            state.requested_url = current_url

    def check_blocked(self) -> None:
        phrase = detect_block(self.session.visible_text())
        if phrase is None:
            return

        url = self.session.url()
        logger.warning(f"⚠ Page appears to be blocked ('{phrase}' found on {url}), marking session as bad")
        self.session.mark_unhealthy()
        raise BlockedError(f"Page blocked by anti-bot protection (matched '{phrase}')", url=url, phrase=phrase)

    def find_working_selector(self) -> Optional[str]:
        """Wait for each container selector in turn; the first one present wins."""
        for selector in CONTAINER_SELECTORS:
            try:
                self.session.wait_for_selector(selector, CONTAINER_WAIT_TIMEOUT)
            except PlaywrightTimeoutError:
                logger.debug(f"  Selector {selector} not found, trying next...")
                continue

            count = len(self.session.query_all(selector))
            if count > 0:
                logger.info(f"  Found {count} elements with selector: {selector}")
                return selector
        return None

    def extract_and_push(self, state: TraversalState) -> None:
        logger.info(f"📄 Processing search results page {state.current_page}/{state.page_limit}")

        self.session.scroll_like_human()

        working_selector = self.find_working_selector()
        if working_selector is None:
            logger.warning("  ⚠ No gig listings found with any of the expected selectors")
            closed = self.session.dismiss_overlays(OVERLAY_SELECTORS)
            if closed:
                working_selector = self.find_working_selector()

        html_content = self.session.content()
        self.save_snapshot(html_content, state.current_page)

        gigs = extract_page(html_content, self.keyword, working_selector, self.field_specs)
        state.pages_visited += 1

        if not gigs:
            logger.warning(f"  ⚠ No gigs were extracted from page {state.current_page}")

        pushed = 0
        for gig in gigs:
            if self.sink.push(gig):
                pushed += 1
            else:
                state.push_failures += 1
        state.gigs_pushed += pushed

        logger.info(f"  💾 Saved {pushed}/{len(gigs)} gigs from page {state.current_page}")

    def find_next_control(self):
        for selector in NEXT_PAGE_SELECTORS:
            for handle in self.session.query_all(selector):
                if not is_disabled(handle):
                    logger.debug(f"  Found next page control with selector: {selector}")
                    return handle
        return None

    def decide_continuation(self, state: TraversalState):
        """
        Decide whether to move on to the next page.

        Returns:
            The next page control to follow, or None to stop
        """
        if state.limit_reached:
            logger.info(f"Reached maximum pages limit: {state.page_limit}")
            return None

        logger.info(f"Checking for next page. Current: {state.current_page}, Target: {state.page_limit}")
        next_control = self.find_next_control()
        if next_control is None:
            logger.info("No more pages available or reached the end")
            return None

        state.advance()
        delay = random.uniform(*DELAY_BETWEEN_PAGES)
        logger.info(f"⏳ Waiting {delay:.1f}s before page {state.current_page}...")
        self.sleep(delay)
        return next_control

    def save_snapshot(self, html_content: str, page_number: int) -> None:
        if self.snapshot_dir is None:
            return
        slug = re.sub(r'[^a-z0-9]+', '_', self.keyword.lower()).strip('_')
        self.snapshot_dir.mkdir(parents=True, exist_ok=True)
        snapshot_file = self.snapshot_dir / f"{slug}_page{page_number}.html"
        snapshot_file.write_text(html_content, encoding='utf-8')
        logger.debug(f"  Saved search HTML: {snapshot_file.name}")
