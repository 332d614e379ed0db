"""Round-count extraction for ammunition listings."""

import re
from typing import List, Optional, Pattern

import structlog

from app.core.enums import Category
from app.scrapers.base import AmmunitionMetadata, CrawlResult

logger = structlog.get_logger(__name__)

# Ordered, first match wins
ROUND_COUNT_PATTERNS: List[Pattern[str]] = [
    re.compile(r"(?:box|case|pack|tin) of (\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s*/?(?:ct|count|rd|rnd|round|pack|pc|shell|box)s?\b", re.IGNORECASE),
]


def extract_round_count(name: str) -> Optional[int]:
    """Pull the number of rounds out of a listing name.

    >>> extract_round_count("Federal 9mm 115gr FMJ - Box of 50")
    50
    >>> extract_round_count("CCI Blazer 22LR 500rds")
    500
    """
    for pattern in ROUND_COUNT_PATTERNS:
        match = pattern.search(name)
        if match:
            return int(match.group(1))
    return None


def enrich_result(result: CrawlResult) -> bool:
    """Attach AmmunitionMetadata to an ammunition result in place.

    Metadata supplied by the adapter is never overwritten.

    Returns:
        True if the result ends up with a known round count
    """
    if result.category != Category.AMMUNITION:
        return False

    if isinstance(result.metadata, AmmunitionMetadata) and result.metadata.round_count:
        return True
    if result.metadata is not None and not isinstance(result.metadata, AmmunitionMetadata):
        return False

    round_count = extract_round_count(result.name)
    if round_count is None:
        logger.debug("round_count_not_found", name=result.name, url=result.url)
        return False

    result.metadata = AmmunitionMetadata(round_count=round_count)
    return True
