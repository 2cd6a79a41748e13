"""
Configuration for the Fiverr gig search scraper
"""

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / ".env")

# Base URL
SITE_ORIGIN = "https://www.fiverr.com"
SEARCH_URL = f"{SITE_ORIGIN}/search/gigs"

# Query-string suffix appended to the search URL for each sort option
SORT_MAPPING = {
    'relevance': '',
    'rating': '&rating=4',
    'reviews': '&sort=reviews',
    'price_low': '&sort=price',
    'price_high': '&sort=price_desc',
}

# Scraping settings
HEADLESS = os.getenv("FIVERR_HEADLESS", "true").lower() != "false"
PROXY_URL = os.getenv("FIVERR_PROXY_URL") or None
STRICT_VALIDATION = os.getenv("FIVERR_STRICT_VALIDATION", "true").lower() != "false"
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
VIEWPORT = {'width': 1366, 'height': 768}
MAX_SESSION_RETRIES = 3

# Timeouts (in milliseconds)
NAVIGATION_TIMEOUT = 90000
DOM_LOAD_TIMEOUT = 60000
NETWORK_IDLE_TIMEOUT = 30000
CONTAINER_WAIT_TIMEOUT = 10000

# Delays (in seconds)
SETTLE_DELAY = 5  # After load, for deferred rendering
PRE_NAVIGATION_DELAY = (2.0, 5.0)  # Random range before the first load
DELAY_BETWEEN_PAGES = (3.0, 8.0)  # Random range between pagination
OVERLAY_CLOSE_DELAY = 2

# Validation bounds
MIN_TITLE_LENGTH = 10
RATING_RANGE = (1.0, 5.0)
MAX_REVIEW_COUNT = 50000
MAX_PRICE = 10000
SELLER_LENGTH = (1, 50)  # Exclusive bounds
MAX_TAGS = 4
CURRENCY_GLYPHS = ('$', '€', '£')
DEFAULT_SELLER_LEVEL = "New Seller"

# Container-level selectors, most specific first
CONTAINER_SELECTORS = [
    '[data-gig-id]',
    '.gig-card-layout',
    '.gig-wrapper',
    '.gig-card',
    '[data-impression-collected]',
    '.basic-gig-card',
    '.gig-card-footer-wrapper',
    '[data-testid="gig-card"]',
    '.gig-card-container',
]

# Anchors scanned when no container selector matches
LISTING_LINK_SELECTOR = 'a[href*="/gigs/"]'

# First path segments that are never a seller's gig page
RESERVED_PATH_SEGMENTS = {
    'search', 'categories', 'pro', 'support', 'pages', 'resources',
    'login', 'join', 'cp', 'inbox', 'users', 'seller_dashboard', 'levels',
}

NEXT_PAGE_SELECTORS = [
    '.pagination-next:not([disabled]):not(.disabled)',
    '[aria-label="Next"]:not([disabled]):not(.disabled)',
    '.next-page:not([disabled]):not(.disabled)',
    '.pagination .next:not([disabled]):not(.disabled)',
    'a[aria-label="Go to next page"]:not([disabled]):not(.disabled)',
]

OVERLAY_SELECTORS = [
    '[data-testid="cookie-banner"]',
    '.cookie-consent',
    '.gdpr-banner',
    '.modal-overlay',
    '.popup-overlay',
]

BLOCKING_PHRASES = [
    'blocked',
    'access denied',
    'forbidden',
    'captcha',
    'security check',
    'bot detected',
]

# Recognized seller level text -> canonical label (checked in order)
SELLER_LEVEL_PATTERNS = [
    (r'top\s*rated', "Top Rated Seller"),
    (r'level\s*(?:2|two)', "Level 2 Seller"),
    (r'level\s*(?:1|one)', "Level 1 Seller"),
    (r'vetted\s*pro|\bpro\b', "Pro Seller"),
    (r'new\s*seller', "New Seller"),
]

# Lowercase title word -> topical tag label
TAG_VOCABULARY = {
    'logo': "Logo",
    'website': "Website",
    'wordpress': "WordPress",
    'shopify': "Shopify",
    'ecommerce': "Ecommerce",
    'seo': "SEO",
    'marketing': "Marketing",
    'branding': "Branding",
    'video': "Video",
    'animation': "Animation",
    'editing': "Editing",
    'illustration': "Illustration",
    'mobile': "Mobile",
    'app': "App",
    'python': "Python",
    'ai': "AI",
    'chatbot': "Chatbot",
    'data': "Data",
    'writing': "Writing",
    'translation': "Translation",
    'voiceover': "Voiceover",
    'music': "Music",
}

BROWSER_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-blink-features=AutomationControlled',
    '--disable-background-timer-throttling',
    '--disable-backgrounding-occluded-windows',
    '--disable-renderer-backgrounding',
    '--disable-features=TranslateUI',
    '--no-first-run',
    '--no-default-browser-check',
    '--mute-audio',
]

EXTRA_HEADERS = {
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
    'DNT': '1',
    'Upgrade-Insecure-Requests': '1',
    'Sec-Fetch-Dest': 'document',
    'Sec-Fetch-Mode': 'navigate',
    'Sec-Fetch-Site': 'none',
    'Sec-Fetch-User': '?1',
    'Cache-Control': 'max-age=0',
}

# Data directories
DATA_DIR = PROJECT_ROOT / "data" / "FIVERR"
GIGS_JSON_DIR = DATA_DIR / "gigs_json"
SEARCH_HTML_DIR = DATA_DIR / "search_html"
OUTPUT_DIR = DATA_DIR / "output"
LOGS_DIR = PROJECT_ROOT / "logs" / "FIVERR"

# Keywords file for batch runs
KEYWORDS_FILE = PROJECT_ROOT / "list-of-gigs.txt"

# Scraper version
SCRAPER_VERSION = "1.0.0"
