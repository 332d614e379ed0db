"""Crawl orchestration for a single retailer.

The orchestrator drives one adapter through every search term it
exposes, following page-bounded or cursor pagination, enriching
ammunition results and deduplicating by (name, url). Requests to one
retailer are strictly sequential and separated by the adapter cooldown.
"""

import asyncio
from dataclasses import asdict, dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

import structlog

from app.core.enums import Category
from app.scrapers.base import (
    BaseAdapter,
    BaseCursorAdapter,
    BasePaginatedAdapter,
    CrawlResult,
    SearchTerm,
)
from app.scrapers.enrichment import enrich_result
from app.scrapers.transport import HttpTransport, Request

logger = structlog.get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass
class CrawlStats:
    requests_sent: int = 0
    results_parsed: int = 0
    duplicates_discarded: int = 0
    missing_round_count: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class CrawlSession:
    """Per-retailer crawl state shared by all of its search terms.

    Results stay readable after a failed crawl so the caller can decide
    whether to persist what was collected.
    """

    def __init__(self, retailer):
        self.retailer = retailer
        self.stats = CrawlStats()
        self._results: Dict[Tuple[str, str], CrawlResult] = {}

    def insert(self, result: CrawlResult) -> bool:
        """Add a result unless its (name, url) was already seen.

        Returns:
            True if stored, False if discarded as a duplicate
        """
        if result.key in self._results:
            self.stats.duplicates_discarded += 1
            return False
        self._results[result.key] = result
        return True

    @property
    def results(self) -> List[CrawlResult]:
        return list(self._results.values())

    def __len__(self) -> int:
        return len(self._results)


class CrawlOrchestrator:
    """Drive adapters through their pagination using a shared transport."""

    def __init__(self, transport: HttpTransport, sleep: Optional[SleepFunc] = None):
        """Initialize the orchestrator.

        Args:
            transport: Transport used for page requests
            sleep: Awaitable sleep used for the cooldown (tests pass a mock)
        """
        self.transport = transport
        self._sleep = sleep or asyncio.sleep
        self.logger = logger.bind(service="crawl_orchestrator")

    async def crawl(
        self,
        adapter: BaseAdapter,
        session: Optional[CrawlSession] = None,
    ) -> CrawlSession:
        """Crawl every search term of an adapter.

        Args:
            adapter: Initialized retailer adapter
            session: Session to fill; a new one is created when omitted

        Returns:
            The session holding deduplicated results and statistics

        Raises:
            AdapterError: Any adapter or transport failure aborts the crawl
        """
        session = session if session is not None else CrawlSession(adapter.retailer)
        search_terms = adapter.get_search_terms()

        self.logger.info(
            "crawl_started",
            retailer=adapter.retailer.value,
            search_terms=len(search_terms),
            pagination=adapter.pagination,
        )

        for search_term in search_terms:
            if isinstance(adapter, BaseCursorAdapter):
                await self._crawl_cursor(adapter, search_term, session)
            elif isinstance(adapter, BasePaginatedAdapter):
                await self._crawl_pages(adapter, search_term, session)
            else:
                raise TypeError(f"Unsupported adapter type: {type(adapter).__name__}")

        self.logger.info(
            "crawl_completed",
            retailer=adapter.retailer.value,
            results=len(session),
            **session.stats.as_dict(),
        )
        return session

    async def _crawl_pages(
        self,
        adapter: BasePaginatedAdapter,
        search_term: SearchTerm,
        session: CrawlSession,
    ) -> None:
        # Page 0 is always fetched; its response reveals the real page count
        request = await adapter.build_page_request(0, search_term)
        body = await self._fetch(adapter, request, session)
        max_page = adapter.get_num_pages(body)

        self.logger.debug(
            "max_page_resolved",
            retailer=adapter.retailer.value,
            term=search_term.term,
            max_page=max_page,
        )
        await self._collect(adapter, body, search_term, session)

        for page in range(1, max_page):
            request = await adapter.build_page_request(page, search_term)
            body = await self._fetch(adapter, request, session)
            await self._collect(adapter, body, search_term, session)

    async def _crawl_cursor(
        self,
        adapter: BaseCursorAdapter,
        search_term: SearchTerm,
        session: CrawlSession,
    ) -> None:
        token: Optional[str] = None
        while True:
            request = await adapter.build_page_request(token, search_term)
            body = await self._fetch(adapter, request, session)
            await self._collect(adapter, body, search_term, session)

            token = adapter.get_pagination_token(body)
            if token is None:
                break

    async def _fetch(self, adapter: BaseAdapter, request: Request, session: CrawlSession) -> str:
        # Cooldown goes before every request but the first, so none trails the last one
        if session.stats.requests_sent > 0 and adapter.cooldown_seconds > 0:
            await self._sleep(adapter.cooldown_seconds)

        response = await self.transport.send(request)
        session.stats.requests_sent += 1

        self.logger.debug(
            "page_fetched",
            retailer=adapter.retailer.value,
            url=request.url,
            bytes=len(response.content),
        )
        return response.body

    async def _collect(
        self,
        adapter: BaseAdapter,
        body: str,
        search_term: SearchTerm,
        session: CrawlSession,
    ) -> None:
        results = await adapter.parse_response(body, search_term)
        session.stats.results_parsed += len(results)

        for result in results:
            if result.category == Category.AMMUNITION and not enrich_result(result):
                session.stats.missing_round_count += 1
            session.insert(result)
