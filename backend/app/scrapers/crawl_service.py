"""Crawl cycle orchestration service.

Connects the adapter layer with the catalog store. One cycle fans out
one task per retailer, joins them, then refreshes the live view:

    init -> crawl -> insert batch + price history   (per retailer)
    merge live view -> prune live view              (once per cycle)
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.core.enums import RetailerName
from app.scrapers.base import BaseAdapter, CrawlResult
from app.scrapers.factory import AdapterFactory
from app.scrapers.orchestrator import CrawlOrchestrator, CrawlSession
from app.services.catalog_service import CatalogService
from app.services.price_history_service import PriceHistoryService

logger = structlog.get_logger(__name__)


@dataclass
class SourceReport:
    """Outcome of crawling one retailer."""

    retailer: RetailerName
    results: int = 0
    persisted: int = 0
    stats: Dict[str, int] = field(default_factory=dict)
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class CycleReport:
    sources: List[SourceReport] = field(default_factory=list)
    merged: int = 0
    pruned: int = 0
    dry_run: bool = False

    @property
    def total_results(self) -> int:
        return sum(source.results for source in self.sources)

    @property
    def failed(self) -> List[SourceReport]:
        return [source for source in self.sources if not source.succeeded]


class CrawlService:
    """Service for running crawl cycles across all registered retailers."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        adapter_factory: AdapterFactory,
        orchestrator: Optional[CrawlOrchestrator] = None,
        dry_run: bool = False,
        commit_partial_results: Optional[bool] = None,
    ):
        """Initialize crawl service.

        Args:
            session_factory: Async session factory; each retailer gets its own session
            adapter_factory: Registry the cycle takes its adapters from
            orchestrator: Crawl driver (built on the factory transport when omitted)
            dry_run: Crawl without writing anything to the database
            commit_partial_results: Persist what a failed crawl collected
        """
        self.session_factory = session_factory
        self.adapter_factory = adapter_factory
        self.orchestrator = orchestrator or CrawlOrchestrator(adapter_factory.transport)
        self.dry_run = dry_run
        self.commit_partial_results = (
            commit_partial_results
            if commit_partial_results is not None
            else settings.COMMIT_PARTIAL_RESULTS
        )
        self.logger = logger.bind(service="crawl_service")

    async def run_cycle(
        self,
        included: Optional[Iterable[RetailerName]] = None,
        excluded: Optional[Iterable[RetailerName]] = None,
    ) -> CycleReport:
        """Crawl the selected retailers concurrently and refresh the live view.

        Args:
            included: Only crawl these retailers (all registered when empty)
            excluded: Skip these retailers

        Returns:
            CycleReport with one SourceReport per retailer
        """
        adapters = self.adapter_factory.create_adapters(included, excluded)
        self.logger.info(
            "crawl_cycle_started",
            retailers=[adapter.retailer.value for adapter in adapters],
            dry_run=self.dry_run,
        )

        sources = await asyncio.gather(*(self.run_adapter(adapter) for adapter in adapters))
        report = CycleReport(sources=list(sources), dry_run=self.dry_run)

        if not self.dry_run:
            async with self.session_factory() as db:
                catalog = CatalogService(db)
                report.merged = await catalog.merge_live_view()
                report.pruned = await catalog.prune_live_view()

        self.logger.info(
            "crawl_cycle_complete",
            sources=len(report.sources),
            failed=[source.retailer.value for source in report.failed],
            total_results=report.total_results,
            merged=report.merged,
            pruned=report.pruned,
        )
        return report

    async def run_source(self, retailer: RetailerName) -> SourceReport:
        """Crawl and persist a single retailer without touching the live view.

        Raises:
            ValueError: If no adapter is registered for the retailer
        """
        adapter = self.adapter_factory.create_adapter(retailer)
        if adapter is None:
            raise ValueError(f"No adapter registered for retailer: {retailer.value}")
        return await self.run_adapter(adapter)

    async def run_adapter(self, adapter: BaseAdapter) -> SourceReport:
        """Init, crawl and persist one retailer.

        Failures are recorded on the report instead of raised so one
        retailer never takes the others down with it.
        """
        report = SourceReport(retailer=adapter.retailer)
        session = CrawlSession(adapter.retailer)
        started = time.monotonic()
        log = self.logger.bind(retailer=adapter.retailer.value)

        try:
            await adapter.init()
            await self.orchestrator.crawl(adapter, session)
        except Exception as e:
            report.error = str(e)
            log.error(
                "crawl_session_failed",
                error=str(e),
                collected=len(session),
                exc_info=True,
            )

        report.results = len(session)
        report.stats = session.stats.as_dict()

        if report.error is None or self.commit_partial_results:
            try:
                report.persisted = await self._persist(session.results)
            except Exception as e:
                report.error = report.error or str(e)
                log.error("crawl_persist_failed", error=str(e), exc_info=True)
        else:
            log.warning("crawl_results_discarded", count=len(session))

        report.duration_seconds = round(time.monotonic() - started, 2)
        log.info(
            "source_crawl_complete",
            results=report.results,
            persisted=report.persisted,
            duration_seconds=report.duration_seconds,
            succeeded=report.succeeded,
        )
        return report

    async def _persist(self, results: List[CrawlResult]) -> int:
        if self.dry_run or not results:
            return 0

        async with self.session_factory() as db:
            await CatalogService(db).insert_batch(results)
            await PriceHistoryService(db).record_batch(results)
        return len(results)
