"""
Parser for Fiverr search result pages.

Works on a serialized DOM snapshot (page.content()) so the whole extraction
pipeline (resolve -> validate -> build) runs without a live browser.
"""

import logging
from collections import Counter
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from src.FIVERR.builder import build_gig
from src.FIVERR.config import CONTAINER_SELECTORS, LISTING_LINK_SELECTOR
from src.FIVERR.fields import FIELD_SPECS
from src.FIVERR.models import FieldSpec, Gig
from src.FIVERR.resolver import resolve_field
from src.FIVERR.utils import is_listing_url
from src.FIVERR.validator import REJECTED, validate_field

logger = logging.getLogger(__name__)


def select_containers(soup: BeautifulSoup, working_selector: Optional[str] = None) -> Tuple[Optional[str], List[Tag]]:
    """
    Find the gig containers on a page.

    The working selector (if the browser already found one) is tried first,
    then the container cascade. The first selector with at least one match is
    used for the whole page. When nothing matches, every anchor pointing at a
    gig page becomes a minimal container.

    Args:
        soup: Parsed search results page
        working_selector: Selector that already matched in the live page

    Returns:
        Tuple of (selector used or None for the link scan, containers in DOM order)
    """
    cascade = [working_selector] if working_selector else []
    cascade += [s for s in CONTAINER_SELECTORS if s != working_selector]

    for selector in cascade:
        containers = soup.select(selector)
        if containers:
            return selector, containers

    anchors = [a for a in soup.select(LISTING_LINK_SELECTOR) if is_listing_url(a.get('href'))]
    return None, anchors


def extract_candidate(container: Tag, index: int, keyword: str,
                      field_specs: List[FieldSpec]) -> Tuple[Optional[Gig], Optional[str]]:
    """
    Run one container through resolve -> validate -> build.

    Args:
        container: Candidate gig container
        index: Position of the container on the page
        keyword: Search keyword
        field_specs: Field lookup table

    Returns:
        Tuple of (Gig, None) on acceptance or (None, name of the first failing required field)
    """
    values = {}
    for field_spec in field_specs:
        raw_value = resolve_field(container, field_spec)
        value = validate_field(field_spec.name, raw_value)
        if value is REJECTED:
            if field_spec.required:
                return None, field_spec.name
            value = None
        values[field_spec.name] = value

    gig = build_gig(
        container.get('data-gig-id'),
        values,
        keyword,
        index=index,
        alternate_id=container.get('data-gig'),
    )
    return gig, None


def extract_page(html_content: str, keyword: str, working_selector: Optional[str] = None,
                 field_specs: Optional[List[FieldSpec]] = None) -> List[Gig]:
    """
    Extract every complete gig from a search results page.

    Args:
        html_content: Rendered page HTML
        keyword: Search keyword (for tags)
        working_selector: Container selector found in the live page, if any
        field_specs: Field lookup table (defaults to FIELD_SPECS)

    Returns:
        Gigs in DOM order; incomplete candidates are skipped
    """
    field_specs = field_specs if field_specs is not None else FIELD_SPECS
    soup = BeautifulSoup(html_content, 'html.parser')

    selector, containers = select_containers(soup, working_selector)
    if selector:
        logger.info(f"Found {len(containers)} gig containers with selector: {selector}")
    else:
        logger.warning(f"No container selector matched, falling back to {len(containers)} gig links")

    gigs = []
    rejections = Counter()

    for index, container in enumerate(containers):
        gig, failed_field = extract_candidate(container, index, keyword, field_specs)
        if gig is None:
            rejections[failed_field] += 1
            logger.debug(f"Skipping container {index}: '{failed_field}' missing or invalid")
            continue
        gigs.append(gig)

    if rejections:
        summary = ", ".join(f"{name}: {count}" for name, count in rejections.most_common())
        logger.info(f"Rejected {sum(rejections.values())}/{len(containers)} candidates ({summary})")

    return gigs
