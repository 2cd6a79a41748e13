"""
Upload Fiverr Gigs to Supabase

This script reads JSON files from data/FIVERR/gigs_json/ and uploads them
to the Supabase database using the fiverr_gigs table schema.
"""

import json
import os
from pathlib import Path
from typing import Optional, Dict, Any

from supabase import create_client, Client
from dotenv import load_dotenv

from src.FIVERR.config import PROJECT_ROOT, GIGS_JSON_DIR
from src.FIVERR.validator import parse_price

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / ".env")

# Get Supabase credentials from environment variables
SUPABASE_URL = os.getenv("SUPABASE_URL")
# Check for SUPABASE_KEY first, then fall back to SUPABASE_ANON_KEY or SUPABASE_SERVICE_ROLE_KEY
SUPABASE_KEY = os.getenv("SUPABASE_KEY") or os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY")

TABLE_NAME = 'fiverr_gigs'

CURRENCY_CODES = {
    '$': 'USD',
    '€': 'EUR',
    '£': 'GBP',
}


def get_supabase_client() -> Client:
    """
    Create and return a Supabase client.

    Returns:
        Supabase client instance

    Raises:
        ValueError: If credentials are not set
    """
    if not SUPABASE_URL or not SUPABASE_KEY:
        raise ValueError(
            "Supabase credentials not found. Please set SUPABASE_URL and SUPABASE_KEY "
            "environment variables.\n\n"
            "Example:\n"
            "export SUPABASE_URL='https://your-project.supabase.co'\n"
            "export SUPABASE_KEY='your-service-role-key'\n"
        )

    return create_client(SUPABASE_URL, SUPABASE_KEY)


def transform_gig_for_db(gig_json: Dict[str, Any]) -> Dict[str, Any]:
    """
    Transform a saved gig JSON document into a fiverr_gigs row.

    Args:
        gig_json: Gig as written by GigDataset

    Returns:
        Row dictionary ready for upsert
    """
    metadata = gig_json.get('scrapingMetadata') or {}

    price_amount = None
    price_currency = None
    parsed_price = parse_price(gig_json.get('price'))
    if parsed_price:
        glyph, _, price_amount = parsed_price
        price_currency = CURRENCY_CODES.get(glyph)

    db_data = {
        "gig_id": gig_json['id'],
        "title": gig_json.get('title'),
        "link": gig_json.get('link'),
        "rating": gig_json.get('rating'),
        "review_count": gig_json.get('reviewCount'),
        "price_text": gig_json.get('price'),
        "price_amount": price_amount,
        "price_currency": price_currency,
        "seller": gig_json.get('seller'),
        "seller_level": gig_json.get('sellerLevel'),
        "thumbnail_url": gig_json.get('thumbnail'),
        "tags": gig_json.get('tags') or [],

        # Scraping Metadata
        "search_keyword": metadata.get('searchKeyword'),
        "scraped_at": metadata.get('scrapedAt'),
        "scraper_version": metadata.get('scraperVersion'),
    }

    # Remove None values to let database defaults handle them
    # But keep empty lists for JSONB columns
    return {k: v for k, v in db_data.items() if v is not None or isinstance(v, list)}


def upload_gig(client: Client, gig_data: Dict[str, Any]) -> bool:
    """
    Upload a single gig to Supabase.

    Uses upsert to insert or update the gig based on gig_id.

    Args:
        client: Supabase client instance
        gig_data: Row dictionary from transform_gig_for_db

    Returns:
        True if successful, False otherwise
    """
    gig_id = gig_data.get('gig_id', 'unknown')
    try:
        client.table(TABLE_NAME).upsert(gig_data, on_conflict='gig_id').execute()
        print(f"✓ Uploaded: {gig_id} - {gig_data.get('title', 'Unknown')}")
        return True

    except Exception as e:
        print(f"✗ Error uploading {gig_id}: {e}")
        return False


def load_gig_from_file(filepath: Path) -> Optional[Dict[str, Any]]:
    """
    Load gig data from a JSON file.

    Returns:
        Dictionary containing gig data, or None if loading fails
    """
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"✗ Error loading {filepath.name}: {e}")
        return None


def upload_all_gigs(limit: Optional[int] = None, dry_run: bool = False,
                    data_dir: Path = GIGS_JSON_DIR, client: Optional[Client] = None) -> Dict[str, int]:
    """
    Upload all gigs from the gigs_json directory to Supabase.

    Args:
        limit: Maximum number of gigs to upload (None for all)
        dry_run: If True, only validate files without uploading
        data_dir: Directory holding gig JSON files
        client: Supabase client (created from the environment if omitted)

    Returns:
        Counts of successful and failed files
    """
    print("=" * 80)
    print("Fiverr Gigs Uploader")
    print("=" * 80)
    print(f"Data directory: {data_dir}")
    print(f"Dry run: {dry_run}")
    print()

    counts = {'success': 0, 'errors': 0}

    if not data_dir.exists():
        print(f"✗ Data directory not found: {data_dir}")
        return counts

    json_files = sorted(data_dir.glob("*.json"))
    if not json_files:
        print(f"✗ No gig files found in {data_dir}")
        return counts

    print(f"Found {len(json_files)} gig file(s)")
    if limit:
        json_files = json_files[:limit]
        print(f"Processing first {limit} file(s)")
    print()

    if not dry_run and client is None:
        try:
            client = get_supabase_client()
            print("✓ Connected to Supabase")
            print()
        except ValueError as e:
            print(f"✗ {e}")
            return counts

    for i, filepath in enumerate(json_files, 1):
        print(f"[{i}/{len(json_files)}] Processing {filepath.name}...")

        gig_json = load_gig_from_file(filepath)
        if not gig_json:
            counts['errors'] += 1
            continue

        try:
            gig_data = transform_gig_for_db(gig_json)
        except KeyError as e:
            print(f"✗ Error transforming {filepath.name}: missing {e}")
            counts['errors'] += 1
            continue

        if dry_run:
            print(f"  Would upload: {gig_data['gig_id']} - {gig_data.get('title', 'Unknown')}")
            print(f"    Rating: {gig_data.get('rating', 'N/A')} ({gig_data.get('review_count', 0)} reviews)")
            print(f"    Price: {gig_data.get('price_text', 'N/A')}")
            counts['success'] += 1
        elif upload_gig(client, gig_data):
            counts['success'] += 1
        else:
            counts['errors'] += 1

    print()
    print("=" * 80)
    print("Upload Summary")
    print("=" * 80)
    print(f"Total files: {len(json_files)}")
    print(f"Successful: {counts['success']}")
    print(f"Errors: {counts['errors']}")
    print()

    return counts


def main():
    """Main entry point for the script."""
    import argparse

    parser = argparse.ArgumentParser(description="Upload Fiverr gigs to Supabase")
    parser.add_argument("--limit", type=int, help="Limit number of gigs to upload")
    parser.add_argument("--dry-run", action="store_true", help="Validate files without uploading")

    args = parser.parse_args()

    upload_all_gigs(limit=args.limit, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
