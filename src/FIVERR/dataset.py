"""
Local gig dataset: one JSON file per gig under data/FIVERR/gigs_json/.
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import List

from src.FIVERR.config import GIGS_JSON_DIR, SCRAPER_VERSION
from src.FIVERR.models import Gig

logger = logging.getLogger(__name__)


class GigDataset:
    """Durable sink for gigs pushed during a run."""

    def __init__(self, json_dir: Path = GIGS_JSON_DIR, keyword: str = ""):
        self.json_dir = json_dir
        self.keyword = keyword
        self.gigs: List[Gig] = []
        self.json_dir.mkdir(parents=True, exist_ok=True)

    def gig_path(self, gig: Gig) -> Path:
        safe_id = re.sub(r'[^A-Za-z0-9_-]+', '_', gig.id)
        return self.json_dir / f"{safe_id}.json"

    def push(self, gig: Gig) -> bool:
        """
        Save a gig to disk and keep it for the run summary.

        Args:
            gig: Gig to store

        Returns:
            True if saved, False otherwise
        """
        data = gig.to_dict()
        data['scrapingMetadata'] = {
            'searchKeyword': self.keyword,
            'scrapedAt': datetime.now().isoformat(),
            'scraperVersion': SCRAPER_VERSION,
        }

        json_file = self.gig_path(gig)
        try:
            with open(json_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Error saving gig {gig.id}: {e}")
            return False

        self.gigs.append(gig)
        logger.debug(f"  💾 Saved JSON: {json_file.name}")
        return True
