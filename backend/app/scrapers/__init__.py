"""Crawler system for indexing retailer catalogs.

This package provides:
- Base adapter classes and the normalized CrawlResult
- The crawl orchestrator, variant resolver and round-count enrichment
- Factory for creating and managing adapter instances
- Crawl cycle service and scheduler
"""

from .base import (
    BaseAdapter,
    BaseCursorAdapter,
    BasePaginatedAdapter,
    CrawlResult,
    Price,
    SearchTerm,
)
from .factory import AdapterFactory

__all__ = [
    # Base classes
    "BaseAdapter",
    "BasePaginatedAdapter",
    "BaseCursorAdapter",
    # Data structures
    "CrawlResult",
    "Price",
    "SearchTerm",
    # Factory
    "AdapterFactory",
]
