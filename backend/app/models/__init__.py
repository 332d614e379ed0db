"""SQLAlchemy models for the catalog.

All models are imported here so metadata.create_all sees every table.
"""

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.crawl_result import CrawlResultRecord, LiveResult
from app.models.price_history import PricePoint, TrackedListing

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "CrawlResultRecord",
    "LiveResult",
    "TrackedListing",
    "PricePoint",
]
