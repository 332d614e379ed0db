"""Pytest configuration and shared fixtures."""

import os

# Keep the app from starting the crawl scheduler when imported by tests
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from typing import Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.enums import Category, RetailerName
from app.core.exceptions import TransportError
from app.models import Base
from app.scrapers.base import CrawlResult, Price
from app.scrapers.transport import Request, Response


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite database shared across connections."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_db(session_factory):
    async with session_factory() as session:
        yield session


def make_result(
    name: str,
    url: Optional[str] = None,
    regular_price: int = 1000,
    sale_price: Optional[int] = None,
    category: Category = Category.FIREARM,
    retailer: RetailerName = RetailerName.CALGARY_SHOOTING_CENTRE,
    query_time: int = 1_700_000_000,
    **kwargs,
) -> CrawlResult:
    """Build a CrawlResult with sensible defaults."""
    return CrawlResult(
        name=name,
        url=url or f"https://example.com/{name.lower().replace(' ', '-')}",
        price=Price(regular_price=regular_price, sale_price=sale_price),
        retailer=retailer,
        category=category,
        query_time=query_time,
        **kwargs,
    )


class FakeTransport:
    """Transport double that serves canned bodies by URL and records requests.

    A route value may be a string, a list of strings served in order, or
    an exception instance to raise.
    """

    def __init__(self, routes: Optional[Dict[str, object]] = None):
        self.routes: Dict[str, object] = dict(routes or {})
        self.requests: List[Request] = []

    async def send(self, request: Request) -> Response:
        self.requests.append(request)
        route = self.routes.get(request.url)

        if isinstance(route, list):
            route = route.pop(0) if route else None
        if isinstance(route, Exception):
            raise route
        if route is None:
            raise TransportError("fake", f"no route for {request.url}")

        return Response(body=route, content=route.encode(), headers={})


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


def mock_client(handler) -> httpx.AsyncClient:
    """httpx client backed by a MockTransport handler."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
