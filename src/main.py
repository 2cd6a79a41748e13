"""
Batch runner for the Fiverr gig scraper.

Runs one scraper pass per keyword listed in list-of-gigs.txt (or given on the
command line), sequentially, with a summary at the end.
"""

import sys
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from src.FIVERR.config import KEYWORDS_FILE, LOGS_DIR
from src.FIVERR.fiverr_scraper import run_scraper, setup_logging
from src.FIVERR.models import RunConfig, SORT_OPTIONS

logger = logging.getLogger("fiverr_scraper")


def load_keywords(path: Path = KEYWORDS_FILE) -> List[str]:
    """
    Load search keywords from a text file, one per line.

    Blank lines and lines starting with '#' are ignored.
    """
    if not path.exists():
        logger.error(f"Keywords file not found: {path}")
        return []

    with open(path, "r", encoding="utf-8") as f:
        keywords = [line.strip() for line in f if line.strip() and not line.strip().startswith("#")]

    logger.info(f"✓ Loaded {len(keywords)} keywords from {path.name}")
    return keywords


def run_keyword(keyword: str, pages: int = 1, sort_by: str = 'relevance',
                min_reviews: int = 0, max_reviews: Optional[int] = None) -> Dict:
    """
    Run the scraper for one keyword and return results.

    Args:
        keyword: Search keyword
        pages: Result pages to scrape
        sort_by: Result ordering
        min_reviews: Minimum review count filter
        max_reviews: Maximum review count filter

    Returns:
        Dict with results including success status, gigs scraped, and timing
    """
    logger.info("=" * 80)
    logger.info(f"Starting keyword: '{keyword}'")
    logger.info("=" * 80)

    start_time = time.time()

    try:
        run_config = RunConfig(
            keyword=keyword,
            min_reviews=min_reviews,
            max_reviews=max_reviews,
            pages=pages,
            sort_by=sort_by,
        )
        output = run_scraper(run_config)
    except ValueError as e:
        logger.error(f"✗ Invalid input for '{keyword}': {e}")
        return {
            'keyword': keyword,
            'success': False,
            'error': str(e),
            'elapsed_time': time.time() - start_time,
        }

    elapsed_time = time.time() - start_time
    result = {
        'keyword': keyword,
        'success': output.success,
        'gigs_scraped': output.total_results,
        'elapsed_time': elapsed_time,
        'elapsed_time_formatted': f"{elapsed_time/60:.1f} minutes",
    }
    if not output.success:
        result['error'] = output.error

    if output.success:
        logger.info(f"✓ '{keyword}' completed successfully ({output.total_results} gigs)")
    else:
        logger.error(f"✗ '{keyword}' failed: {output.error}")

    return result


def run_batch(keywords: List[str], pages: int = 1, sort_by: str = 'relevance',
              min_reviews: int = 0, max_reviews: Optional[int] = None) -> List[Dict]:
    """
    Run the scraper for several keywords in sequence.

    Returns:
        One result dict per keyword
    """
    logger.info("")
    logger.info("=" * 80)
    logger.info("FIVERR GIG SCRAPER - BATCH RUN")
    logger.info("=" * 80)
    logger.info(f"Start time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info(f"Keywords: {len(keywords)}, pages per keyword: {pages}, sort by: {sort_by}")
    logger.info("")

    results = []
    overall_start = time.time()

    for i, keyword in enumerate(keywords, 1):
        logger.info(f"\n[{i}/{len(keywords)}] Running '{keyword}'...")
        results.append(run_keyword(keyword, pages, sort_by, min_reviews, max_reviews))

    overall_elapsed = time.time() - overall_start

    logger.info("=" * 80)
    logger.info("BATCH RUN SUMMARY")
    logger.info("=" * 80)

    successful = [r for r in results if r['success']]
    failed = [r for r in results if not r['success']]

    logger.info(f"Total keywords run: {len(results)}")
    logger.info(f"Successful: {len(successful)}")
    logger.info(f"Failed: {len(failed)}")
    logger.info(f"Total time: {overall_elapsed/60:.1f} minutes")

    if successful:
        logger.info("Successful runs:")
        total_gigs = 0
        for r in successful:
            total_gigs += r.get('gigs_scraped', 0)
            logger.info(f"  ✓ {r['keyword']}: {r.get('gigs_scraped', 0)} gigs ({r.get('elapsed_time_formatted', 'N/A')})")
        logger.info(f"\nTotal gigs: {total_gigs}")

    if failed:
        logger.info("Failed runs:")
        for r in failed:
            logger.info(f"  ✗ {r['keyword']}: {r.get('error', 'Unknown error')}")

    logger.info(f"End time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info(f"Logs saved to: {LOGS_DIR}")
    logger.info("=" * 80)

    return results


def main(argv: Optional[List[str]] = None):
    """Main entry point with command-line argument handling."""
    import argparse

    parser = argparse.ArgumentParser(
        description='Run the Fiverr gig scraper for a batch of keywords',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run every keyword in list-of-gigs.txt
  python -m src.main

  # Run specific keywords, two pages each
  python -m src.main --keywords "logo design" "wordpress website" --pages 2

  # List keywords from the file
  python -m src.main --list
        """
    )

    parser.add_argument('--keywords', '-k', nargs='+', help='Keywords to run (default: list-of-gigs.txt)')
    parser.add_argument('--pages', '-p', type=int, default=1, help='Result pages per keyword')
    parser.add_argument('--sort-by', choices=SORT_OPTIONS, default='relevance', help='Result ordering')
    parser.add_argument('--min-reviews', type=int, default=0, help='Minimum review count')
    parser.add_argument('--max-reviews', type=int, help='Maximum review count')
    parser.add_argument('--list', '-l', action='store_true', help='List keywords and exit')

    args = parser.parse_args(argv)

    setup_logging()

    keywords = args.keywords or load_keywords()

    if args.list:
        print("\nKeywords:")
        print("-" * 60)
        for keyword in keywords:
            print(f"  {keyword}")
        print("-" * 60)
        print(f"Total: {len(keywords)} keywords")
        print()
        return

    if not keywords:
        logger.error("No keywords to run")
        sys.exit(1)

    results = run_batch(
        keywords,
        pages=args.pages,
        sort_by=args.sort_by,
        min_reviews=args.min_reviews,
        max_reviews=args.max_reviews,
    )

    # Exit with error code if any keyword failed
    failed_count = sum(1 for r in results if not r['success'])
    if failed_count > 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
