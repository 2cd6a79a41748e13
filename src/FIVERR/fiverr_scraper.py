"""
Fiverr gig search scraper

Searches fiverr.com for a keyword, walks the paginated results with a
stealth-configured Playwright browser, and saves every complete gig as JSON.
Review-count filters are applied to the collected gigs at the end of the run,
and a summary output document is written to data/FIVERR/output/.
"""

import json
import logging
import random
import re
import sys
import time
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Callable, List, Optional
from urllib.parse import quote

from playwright.sync_api import sync_playwright

from src.FIVERR.browser import BrowserSession
from src.FIVERR.config import (
    SEARCH_URL,
    SORT_MAPPING,
    HEADLESS,
    BROWSER_ARGS,
    MAX_SESSION_RETRIES,
    PRE_NAVIGATION_DELAY,
    GIGS_JSON_DIR,
    SEARCH_HTML_DIR,
    OUTPUT_DIR,
    LOGS_DIR,
    SCRAPER_VERSION,
)
from src.FIVERR.dataset import GigDataset
from src.FIVERR.models import Gig, RunConfig, ScraperOutput, SORT_OPTIONS, TraversalState
from src.FIVERR.traversal import BlockedError, TraversalController

logger = logging.getLogger("fiverr_scraper")


# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

def setup_logging() -> logging.Logger:
    """
    Configure logging to write to both console and rotating file.

    Handlers go on the package logger so the parser, resolver and traversal
    modules log to the same places.

    Returns:
        Logger instance configured for the scraper.
    """
    package_logger = logging.getLogger("src.FIVERR")
    package_logger.setLevel(logging.INFO)
    logger.setLevel(logging.INFO)

    # Prevent duplicate handlers if function is called multiple times
    if logger.handlers:
        return logger

    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOGS_DIR / "fiverr_scraper.log"

    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    # Rotating file handler (max 10MB, keep 5 backups)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    for target in (logger, package_logger):
        target.addHandler(console_handler)
        target.addHandler(file_handler)

    return logger


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def build_search_url(keyword: str, sort_by: str = 'relevance') -> str:
    """
    Build the Fiverr search URL for a keyword.

    Args:
        keyword: Search keyword (e.g., "logo design")
        sort_by: One of SORT_OPTIONS

    Returns:
        Search URL (e.g., "https://www.fiverr.com/search/gigs?query=logo%20design&sort=reviews")
    """
    return f"{SEARCH_URL}?query={quote(keyword, safe='')}{SORT_MAPPING[sort_by]}"


def filter_by_reviews(gigs: List[Gig], min_reviews: int = 0, max_reviews: Optional[int] = None) -> List[Gig]:
    """
    Keep gigs whose review count lies within [min_reviews, max_reviews].

    Gigs without a review count are treated as having zero reviews.
    """
    filtered = []
    for gig in gigs:
        review_count = gig.review_count or 0
        if review_count < min_reviews:
            continue
        if max_reviews and review_count > max_reviews:
            continue
        filtered.append(gig)
    return filtered


def save_output(output: ScraperOutput, output_dir: Path = OUTPUT_DIR) -> Path:
    """
    Save the run's output document as JSON.

    Returns:
        Path of the written file
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    slug = re.sub(r'[^a-z0-9]+', '_', output.keyword.lower()).strip('_') or "run"
    output_file = output_dir / f"{slug}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(output.to_dict(), f, indent=2, ensure_ascii=False)
    return output_file


def log_sample_gigs(gigs: List[Gig], count: int = 3) -> None:
    if not gigs:
        return
    logger.info("Sample gig data:")
    for i, gig in enumerate(gigs[:count], 1):
        logger.info(
            f"  Gig {i}: {gig.title[:50]}... | rating={gig.rating} "
            f"reviews={gig.review_count} price={gig.price} seller={gig.seller}"
        )


# ============================================================================
# MAIN SCRAPING WORKFLOW
# ============================================================================

def crawl(run_config: RunConfig, open_session: Callable[[], BrowserSession], dataset: GigDataset,
          sleep: Callable[[float], None] = time.sleep,
          snapshot_dir: Optional[Path] = SEARCH_HTML_DIR) -> TraversalState:
    """
    Traverse search results for one run, replacing blocked sessions.

    When a page is blocked the session is retired and a fresh one reopens the
    URL that was requested for that page (not the challenge page the site may
    have redirected to), with the same page counter. After MAX_SESSION_RETRIES
    replacements the BlockedError propagates.

    Args:
        run_config: Run parameters
        open_session: Factory for fresh browser sessions
        dataset: Sink for extracted gigs
        sleep: Delay function, replaced in tests
        snapshot_dir: Where to save page HTML, None to skip

    Returns:
        Final TraversalState
    """
    state = TraversalState(page_limit=run_config.pages)
    url = build_search_url(run_config.keyword, run_config.sort_by)
    retries = 0

    while True:
        session = open_session()
        try:
            # Random delay before navigation
            sleep(random.uniform(*PRE_NAVIGATION_DELAY))
            controller = TraversalController(
                session,
                dataset,
                run_config.keyword,
                sleep=sleep,
                snapshot_dir=snapshot_dir,
            )
            return controller.run(url, state)

        except BlockedError as e:
            retries += 1
            if retries > MAX_SESSION_RETRIES:
                logger.error(f"✗ Still blocked after {MAX_SESSION_RETRIES} fresh sessions, giving up")
                raise
            logger.warning(f"⚠ {e} on {e.url}. Retiring session ({retries}/{MAX_SESSION_RETRIES}) and retrying")
            url = state.requested_url or url

        finally:
            session.close()


def run_scraper(run_config: RunConfig, headless: bool = HEADLESS) -> ScraperOutput:
    """
    Main scraper function - orchestrates the entire scraping process.

    Args:
        run_config: Run parameters
        headless: Run the browser without a window

    Returns:
        ScraperOutput (success or failure); also saved to data/FIVERR/output/
    """
    start_time = time.time()

    logger.info("=" * 80)
    logger.info("Starting Fiverr Gig Scraper")
    logger.info(f"Version: {SCRAPER_VERSION}")
    logger.info(f"Keyword: '{run_config.keyword}'")
    logger.info(f"Pages to scrape: {run_config.pages}, Sort by: {run_config.sort_by}")
    logger.info(f"Review filters - Min: {run_config.min_reviews}, Max: {run_config.max_reviews or 'unlimited'}")
    logger.info(f"Headless mode: {headless}")
    logger.info("=" * 80)

    dataset = GigDataset(GIGS_JSON_DIR, keyword=run_config.keyword)

    try:
        with sync_playwright() as p:
            logger.info("Launching browser...")
            browser = p.chromium.launch(headless=headless, args=BROWSER_ARGS)
            try:
                state = crawl(run_config, lambda: BrowserSession.open(browser), dataset)
            finally:
                browser.close()

        logger.info(f"Total gigs collected: {len(dataset.gigs)} over {state.pages_visited} page(s)")
        filtered = filter_by_reviews(dataset.gigs, run_config.min_reviews, run_config.max_reviews)
        logger.info(f"Gigs after filtering: {len(filtered)}")
        log_sample_gigs(filtered)

        output = ScraperOutput(
            gigs=[gig.to_dict() for gig in filtered],
            total_results=len(filtered),
            success=True,
            message=f"Successfully scraped {len(filtered)} gigs for keyword \"{run_config.keyword}\"",
            keyword=run_config.keyword,
        )

    except Exception as e:
        logger.error(f"Error during scraping: {e}", exc_info=True)
        logger.info(f"{len(dataset.gigs)} gigs were saved before the failure")
        output = ScraperOutput(
            gigs=[],
            total_results=0,
            success=False,
            error=str(e),
            message="Scraping failed due to an error",
            keyword=run_config.keyword,
        )

    output_file = save_output(output)

    logger.info("=" * 80)
    logger.info("SCRAPING COMPLETE" if output.success else "SCRAPING FAILED")
    logger.info(f"Gigs in output: {output.total_results}")
    logger.info(f"Duration: {int(time.time() - start_time)} seconds")
    logger.info(f"Output file: {output_file}")
    logger.info("=" * 80)

    return output


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with command-line argument handling."""
    import argparse

    parser = argparse.ArgumentParser(description="Scrape Fiverr gigs for a search keyword")
    parser.add_argument("--keyword", "-k", required=True, help="Search keyword")
    parser.add_argument("--pages", "-p", type=int, default=1, help="Number of result pages to scrape")
    parser.add_argument("--min-reviews", type=int, default=0, help="Minimum review count")
    parser.add_argument("--max-reviews", type=int, help="Maximum review count")
    parser.add_argument("--sort-by", choices=SORT_OPTIONS, default='relevance', help="Result ordering")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")

    args = parser.parse_args(argv)

    setup_logging()

    try:
        run_config = RunConfig(
            keyword=args.keyword,
            min_reviews=args.min_reviews,
            max_reviews=args.max_reviews,
            pages=args.pages,
            sort_by=args.sort_by,
        )
    except ValueError as e:
        logger.error(f"✗ Invalid input: {e}")
        return 2

    output = run_scraper(run_config, headless=HEADLESS and not args.headed)
    return 0 if output.success else 1


if __name__ == "__main__":
    sys.exit(main())
