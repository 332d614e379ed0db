"""Price history per (name, url) listing.

Written from the same completed batch as the raw log, and read
independently of the live view so history survives the prune.
"""

import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import NotFoundError
from app.models.crawl_result import CrawlResultRecord
from app.models.price_history import PricePoint, TrackedListing
from app.scrapers.base import CrawlResult

logger = structlog.get_logger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60
# Keeps the url IN (...) lookups under SQLite's bound parameter limit
_LOOKUP_CHUNK = 500


@dataclass
class PriceSummary:
    lowest: Optional[PricePoint]
    highest: Optional[PricePoint]


@dataclass
class DailyPrice:
    normalized_timestamp: int
    price: Optional[int]


def normalize_to_day(timestamp: int) -> int:
    """Floor a unix timestamp to midnight UTC."""
    return timestamp - timestamp % SECONDS_PER_DAY


class PriceHistoryService:
    """Service for recording and reading listing price history."""

    def __init__(self, db: AsyncSession):
        """Initialize price history service.

        Args:
            db: Async database session
        """
        self.db = db
        self.logger = logger.bind(service="price_history_service")

    async def _load_listings(
        self, keys: Sequence[Tuple[str, str]]
    ) -> Dict[Tuple[str, str], TrackedListing]:
        urls = sorted({url for _, url in keys})
        listings: Dict[Tuple[str, str], TrackedListing] = {}
        for start in range(0, len(urls), _LOOKUP_CHUNK):
            chunk = urls[start:start + _LOOKUP_CHUNK]
            rows = await self.db.execute(select(TrackedListing).where(TrackedListing.url.in_(chunk)))
            for listing in rows.scalars():
                listings[(listing.name, listing.url)] = listing
        return listings

    async def record_batch(self, results: Sequence[CrawlResult]) -> int:
        """Append one price point per result, creating listings as needed.

        Args:
            results: Results of one completed crawl session

        Returns:
            Number of listings created
        """
        if not results:
            return 0

        listings = await self._load_listings([result.key for result in results])
        created = 0

        for result in results:
            listing = listings.get(result.key)
            if listing is None:
                listing = TrackedListing(id=uuid.uuid4(), name=result.name, url=result.url)
                self.db.add(listing)
                listings[result.key] = listing
                created += 1

            self.db.add(
                PricePoint(
                    listing_id=listing.id,
                    regular_price=result.price.regular_price,
                    sale_price=result.price.sale_price,
                    query_time=result.query_time,
                )
            )

        await self.db.commit()

        self.logger.info(
            "price_history_recorded",
            points=len(results),
            listings_created=created,
        )
        return created

    async def get_history(self, name: str, url: str) -> List[PricePoint]:
        """All price points of a listing, oldest first. Empty if never seen."""
        rows = await self.db.execute(
            select(PricePoint)
            .join(TrackedListing, PricePoint.listing_id == TrackedListing.id)
            .where(TrackedListing.name == name, TrackedListing.url == url)
            .order_by(PricePoint.query_time.asc())
        )
        return list(rows.scalars().all())

    async def get_history_by_id(self, result_id: uuid.UUID) -> List[PricePoint]:
        """Price history of the listing a search result belongs to.

        Live-view ids are raw-log ids, so the lookup still works once the
        row has been pruned from the live view.

        Raises:
            NotFoundError: No crawl result has this id
        """
        record = await self.db.get(CrawlResultRecord, result_id)
        if record is None:
            raise NotFoundError("CrawlResult", str(result_id))
        return await self.get_history(record.name, record.url)

    @staticmethod
    def summarize(points: Sequence[PricePoint]) -> PriceSummary:
        """Lowest and highest effective price; ties go to the earliest point."""
        lowest: Optional[PricePoint] = None
        highest: Optional[PricePoint] = None

        for point in points:
            price = point.effective_price
            if (
                lowest is None
                or price < lowest.effective_price
                or (price == lowest.effective_price and point.query_time < lowest.query_time)
            ):
                lowest = point
            if (
                highest is None
                or price > highest.effective_price
                or (price == highest.effective_price and point.query_time < highest.query_time)
            ):
                highest = point

        return PriceSummary(lowest=lowest, highest=highest)

    @staticmethod
    def bucket_by_day(
        points: Sequence[PricePoint],
        max_days: Optional[int] = None,
    ) -> List[DailyPrice]:
        """Lowest price per UTC day, gaps filled with empty days.

        Args:
            points: Price points in any order
            max_days: Keep only the newest N days (defaults to HISTORY_MAX_DAYS)

        Returns:
            Contiguous daily series, oldest first
        """
        max_days = max_days if max_days is not None else settings.HISTORY_MAX_DAYS
        lowest_by_day: Dict[int, int] = {}

        for point in points:
            day = normalize_to_day(point.query_time)
            price = point.effective_price
            if day not in lowest_by_day or price < lowest_by_day[day]:
                lowest_by_day[day] = price

        if not lowest_by_day:
            return []

        first_day, last_day = min(lowest_by_day), max(lowest_by_day)
        series = [
            DailyPrice(normalized_timestamp=day, price=lowest_by_day.get(day))
            for day in range(first_day, last_day + SECONDS_PER_DAY, SECONDS_PER_DAY)
        ]
        return series[-max_days:] if max_days > 0 else []
