"""
Browser session wrapper around a Playwright page.

The traversal controller only talks to this class, which keeps the
Playwright calls in one place and lets tests swap in a fake session.
"""

import logging
import random
import time
from typing import Dict, List, Optional
from urllib.parse import urljoin

from playwright.sync_api import Browser, BrowserContext, ElementHandle, Page, Error as PlaywrightError

from src.FIVERR.config import (
    USER_AGENT,
    VIEWPORT,
    PROXY_URL,
    EXTRA_HEADERS,
    NAVIGATION_TIMEOUT,
    OVERLAY_CLOSE_DELAY,
)

logger = logging.getLogger(__name__)

# Hide the usual automation fingerprints before any page script runs
STEALTH_INIT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
if (window.navigator.permissions) {
    const originalQuery = window.navigator.permissions.query;
    window.navigator.permissions.query = (parameters) => (
        parameters.name === 'notifications'
            ? Promise.resolve({ state: Notification.permission })
            : originalQuery(parameters)
    );
}
window.chrome = { runtime: {} };
"""


class BrowserSession:
    """One browser context + page, retired as a unit when the site blocks it."""

    def __init__(self, context: BrowserContext, page: Page):
        self.context = context
        self.page = page
        self.healthy = True

    @classmethod
    def open(cls, browser: Browser, proxy_url: Optional[str] = PROXY_URL) -> "BrowserSession":
        """
        Create a fresh context and page with the stealth profile applied.

        Args:
            browser: Launched Playwright browser
            proxy_url: Optional proxy for this session

        Returns:
            Ready-to-use BrowserSession
        """
        context_options = {
            'user_agent': USER_AGENT,
            'viewport': VIEWPORT,
            'locale': 'en-US',
        }
        if proxy_url:
            context_options['proxy'] = {'server': proxy_url}

        context = browser.new_context(**context_options)
        page = context.new_page()
        page.set_default_navigation_timeout(NAVIGATION_TIMEOUT)

        session = cls(context, page)
        session.add_init_script(STEALTH_INIT_SCRIPT)
        session.set_extra_headers(EXTRA_HEADERS)
        session.set_viewport(VIEWPORT)
        return session

    # ------------------------------------------------------------------
    # Runtime operations used by the traversal controller
    # ------------------------------------------------------------------

    def navigate(self, url: str) -> None:
        """Start navigation; load readiness is awaited separately."""
        self.page.goto(url, wait_until="commit", timeout=NAVIGATION_TIMEOUT)

    def wait_for_load_state(self, state: str, timeout: int) -> None:
        self.page.wait_for_load_state(state, timeout=timeout)

    def wait_for_selector(self, selector: str, timeout: int) -> None:
        self.page.wait_for_selector(selector, state="attached", timeout=timeout)

    def query_all(self, selector: str) -> List[ElementHandle]:
        return self.page.query_selector_all(selector)

    def evaluate(self, expression: str):
        return self.page.evaluate(expression)

    def visible_text(self) -> str:
        return self.evaluate("() => document.body ? document.body.innerText : ''") or ""

    def title(self) -> str:
        return self.page.title()

    def url(self) -> str:
        return self.page.url

    def content(self) -> str:
        return self.page.content()

    def set_extra_headers(self, headers: Dict[str, str]) -> None:
        self.page.set_extra_http_headers(headers)

    def set_viewport(self, size: Dict[str, int]) -> None:
        self.page.set_viewport_size(size)

    def add_init_script(self, script: str) -> None:
        self.page.add_init_script(script=script)

    def mark_unhealthy(self) -> None:
        logger.warning("⚠ Marking browser session as unhealthy")
        self.healthy = False

    def follow(self, handle: ElementHandle) -> Optional[str]:
        """
        Follow a pagination control.

        Links are opened by URL so the request is a plain navigation; buttons
        without an href are clicked.

        Returns:
            The URL navigated to, or None when a button was clicked
        """
        href = handle.get_attribute("href")
        if href:
            next_url = urljoin(self.url(), href)
            logger.info(f"  🌐 Navigating to {next_url}")
            self.navigate(next_url)
            return next_url

        logger.info("  🖱️  Clicking next page control")
        handle.click(timeout=NAVIGATION_TIMEOUT)
        return None

    def scroll_like_human(self, max_steps: int = 30) -> None:
        """
        Scroll down the page in random steps to trigger lazy-loaded cards.

        Args:
            max_steps: Upper bound on scroll steps
        """
        try:
            viewport_height = self.evaluate("window.innerHeight") or VIEWPORT['height']
            for _ in range(max_steps):
                scroll_amount = int(viewport_height * random.uniform(0.3, 0.7))
                self.evaluate(f"window.scrollBy(0, {scroll_amount})")
                time.sleep(random.uniform(0.1, 0.3))

                at_bottom = self.evaluate(
                    "window.innerHeight + window.scrollY >= document.body.scrollHeight"
                )
                if at_bottom:
                    break
            logger.debug("  ✓ Scrolled to bottom of page")
        except Exception as e:
            logger.warning(f"  ⚠ Scroll failed: {e}")

    def dismiss_overlays(self, selectors: List[str]) -> int:
        """
        Close cookie banners and modal overlays that can hide the gig grid.

        Args:
            selectors: Overlay selectors to try

        Returns:
            Number of overlays closed
        """
        closed = 0
        for selector in selectors:
            try:
                overlay = self.page.locator(selector).first
                if not overlay.is_visible():
                    continue
                logger.info(f"  Found overlay with selector: {selector}, attempting to close")
                close_button = overlay.locator('button, [role="button"]').first
                if close_button.is_visible():
                    close_button.click()
                    self.page.wait_for_timeout(OVERLAY_CLOSE_DELAY * 1000)
                    closed += 1
            except PlaywrightError as e:
                logger.debug(f"  Overlay {selector} could not be closed: {e}")
        return closed

    def close(self) -> None:
        try:
            self.context.close()
        except Exception as e:
            logger.debug(f"Error closing browser context: {e}")
