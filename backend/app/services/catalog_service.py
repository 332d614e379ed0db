"""Catalog store: the raw crawl log and the live view built from it.

Every crawled result is appended to ``crawl_results``. Search never
reads that table; it reads ``live_results``, a copy of the recent part
of the log. The merge copies new rows in (insert-if-absent by id) and
the prune drops rows that fell out of the retention window.
"""

import time
import uuid
from typing import List, Optional, Sequence

import structlog
from sqlalchemy import delete, exists, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.crawl_result import CrawlResultRecord, LiveResult
from app.schemas.search import SearchParams
from app.scrapers.base import CrawlResult
from app.services.search_pipeline import SearchPipeline, SearchResults

logger = structlog.get_logger(__name__)


class CatalogService:
    """Service for persisting crawl results and querying the live view."""

    def __init__(self, db: AsyncSession):
        """Initialize catalog service.

        Args:
            db: Async database session
        """
        self.db = db
        self.logger = logger.bind(service="catalog_service")

    @staticmethod
    def _cutoff(retention_seconds: Optional[int], now: Optional[int]) -> int:
        now = now if now is not None else int(time.time())
        window = retention_seconds if retention_seconds is not None else settings.retention_seconds
        return now - window

    async def insert_batch(self, results: Sequence[CrawlResult]) -> List[CrawlResultRecord]:
        """Append a batch of results to the raw log in one commit.

        Args:
            results: Deduplicated results of one crawl session

        Returns:
            The stored records
        """
        if not results:
            return []

        records = [CrawlResultRecord.from_crawl_result(result) for result in results]
        self.db.add_all(records)
        await self.db.commit()

        self.logger.info("crawl_batch_inserted", count=len(records))
        return records

    async def merge_live_view(
        self,
        retention_seconds: Optional[int] = None,
        now: Optional[int] = None,
    ) -> int:
        """Copy recent raw-log rows into the live view, keeping existing ones.

        Args:
            retention_seconds: Window size (defaults to RETENTION_DAYS)
            now: Current unix time, for tests

        Returns:
            Number of rows copied, when the driver reports it
        """
        cutoff = self._cutoff(retention_seconds, now)
        source = CrawlResultRecord.__table__
        target = LiveResult.__table__
        columns = [column.name for column in target.columns]

        recent = (
            select(*[source.c[name] for name in columns])
            .where(source.c.query_time >= cutoff)
            .where(~exists().where(target.c.id == source.c.id))
        )
        result = await self.db.execute(insert(target).from_select(columns, recent))
        await self.db.commit()

        merged = max(result.rowcount or 0, 0)
        self.logger.info("live_view_merged", cutoff=cutoff, merged=merged)
        return merged

    async def prune_live_view(
        self,
        retention_seconds: Optional[int] = None,
        now: Optional[int] = None,
    ) -> int:
        """Delete live-view rows older than the retention window.

        Returns:
            Number of rows deleted, when the driver reports it
        """
        cutoff = self._cutoff(retention_seconds, now)
        result = await self.db.execute(delete(LiveResult).where(LiveResult.query_time < cutoff))
        await self.db.commit()

        pruned = max(result.rowcount or 0, 0)
        self.logger.info("live_view_pruned", cutoff=cutoff, pruned=pruned)
        return pruned

    async def find_by_id(self, result_id: uuid.UUID) -> Optional[LiveResult]:
        """Look up one live-view row by id."""
        return await self.db.get(LiveResult, result_id)

    async def search(
        self,
        params: SearchParams,
        now: Optional[int] = None,
    ) -> SearchResults:
        """Run the search pipeline against the live view.

        Args:
            params: Validated search parameters
            now: Current unix time, for tests

        Returns:
            SearchResults with the page of hits and the total match count
        """
        self.logger.info(
            "searching_catalog",
            query=params.query,
            page=params.page_index,
            sort=params.sort.value,
            category=params.category.value,
        )
        return await SearchPipeline(params, now=now).execute(self.db)
