"""Tests for price history recording, summaries and daily bucketing."""

import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models import PricePoint, TrackedListing
from app.services.catalog_service import CatalogService
from app.services.price_history_service import PriceHistoryService, normalize_to_day

from conftest import make_result

DAY = 24 * 60 * 60
# 2023-11-14 00:00:00 UTC
MIDNIGHT = 1_699_920_000


def point(regular: int, query_time: int, sale: int = None) -> PricePoint:
    return PricePoint(regular_price=regular, sale_price=sale, query_time=query_time)


class TestRecordBatch:
    """Tests for writing price history."""

    async def test_creates_listing_once(self, test_db: AsyncSession):
        service = PriceHistoryService(test_db)

        created_first = await service.record_batch([
            make_result("Tikka T3x", regular_price=120000, query_time=MIDNIGHT),
            make_result("Ruger 10/22", regular_price=45000, query_time=MIDNIGHT),
        ])
        created_second = await service.record_batch([
            make_result("Tikka T3x", regular_price=110000, sale_price=99900, query_time=MIDNIGHT + DAY),
        ])

        assert created_first == 2
        assert created_second == 0
        listings = (await test_db.execute(select(func.count()).select_from(TrackedListing))).scalar_one()
        assert listings == 2

        history = await service.get_history("Tikka T3x", "https://example.com/tikka-t3x")
        assert [(p.regular_price, p.sale_price) for p in history] == [(120000, None), (110000, 99900)]

    async def test_same_url_different_name_is_separate(self, test_db: AsyncSession):
        service = PriceHistoryService(test_db)

        created = await service.record_batch([
            make_result("Federal 9mm - 50rds", url="https://shop.test/federal"),
            make_result("Federal 9mm - 1000rds", url="https://shop.test/federal"),
        ])

        assert created == 2
        assert len(await service.get_history("Federal 9mm - 50rds", "https://shop.test/federal")) == 1

    async def test_empty_batch(self, test_db: AsyncSession):
        assert await PriceHistoryService(test_db).record_batch([]) == 0

    async def test_unknown_listing_has_no_history(self, test_db: AsyncSession):
        assert await PriceHistoryService(test_db).get_history("Nope", "https://nope.test") == []


class TestHistoryById:
    """Tests for history lookup by crawl result id."""

    async def test_lookup_through_raw_log(self, test_db: AsyncSession):
        result = make_result("Beretta A300", query_time=MIDNIGHT)
        records = await CatalogService(test_db).insert_batch([result])
        service = PriceHistoryService(test_db)
        await service.record_batch([result])

        points = await service.get_history_by_id(records[0].id)

        assert len(points) == 1
        assert points[0].regular_price == 1000

    async def test_unknown_id(self, test_db: AsyncSession):
        with pytest.raises(NotFoundError):
            await PriceHistoryService(test_db).get_history_by_id(uuid.uuid4())


class TestSummaries:
    """Tests for lowest/highest and daily series."""

    def test_normalize_to_day(self):
        assert normalize_to_day(MIDNIGHT + 3 * 3600 + 59) == MIDNIGHT
        assert normalize_to_day(MIDNIGHT) == MIDNIGHT

    def test_summarize_uses_effective_price(self):
        points = [
            point(1000, MIDNIGHT),
            point(2000, MIDNIGHT + 10, sale=500),
            point(3000, MIDNIGHT + 20),
        ]

        summary = PriceHistoryService.summarize(points)

        assert summary.lowest is points[1]
        assert summary.highest is points[2]

    def test_summarize_ties_go_to_earliest(self):
        later = point(1000, MIDNIGHT + 100)
        earlier = point(1000, MIDNIGHT)

        summary = PriceHistoryService.summarize([later, earlier])

        assert summary.lowest is earlier
        assert summary.highest is earlier

    def test_summarize_empty(self):
        summary = PriceHistoryService.summarize([])

        assert summary.lowest is None
        assert summary.highest is None

    def test_bucket_by_day_fills_gaps_with_lowest(self):
        points = [
            point(3000, MIDNIGHT + 60),
            point(2500, MIDNIGHT + 7200),
            point(4000, MIDNIGHT + 2 * DAY + 5),
        ]

        series = PriceHistoryService.bucket_by_day(points, max_days=30)

        assert [(day.normalized_timestamp, day.price) for day in series] == [
            (MIDNIGHT, 2500),
            (MIDNIGHT + DAY, None),
            (MIDNIGHT + 2 * DAY, 4000),
        ]

    def test_bucket_by_day_keeps_newest_days(self):
        points = [point(1000 + i, MIDNIGHT + i * DAY) for i in range(10)]

        series = PriceHistoryService.bucket_by_day(points, max_days=3)

        assert [day.price for day in series] == [1007, 1008, 1009]

    def test_bucket_by_day_empty(self):
        assert PriceHistoryService.bucket_by_day([], max_days=10) == []
