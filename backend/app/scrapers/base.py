"""Base retailer adapter interface and normalized crawl result types.

Every retailer adapter inherits from BasePaginatedAdapter or
BaseCursorAdapter and implements the abstract methods defined here.
Adapters only describe *how* to talk to a retailer; the crawl loop,
dedup and pacing live in the orchestrator.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

import structlog

from app.config import settings
from app.core.enums import (
    ActionType,
    AmmunitionType,
    Category,
    FirearmClass,
    FirearmType,
    RetailerName,
)

if TYPE_CHECKING:
    from app.scrapers.transport import HttpTransport, Request, Response


def current_time() -> int:
    """Current unix time in whole seconds."""
    return int(time.time())


@dataclass
class Price:
    """Listing price in integer cents."""

    regular_price: int
    sale_price: Optional[int] = None

    def __post_init__(self):
        if self.regular_price is None or self.regular_price < 0:
            raise ValueError("regular_price must be a non-negative number of cents")
        if self.sale_price is not None and self.sale_price < 0:
            raise ValueError("sale_price must be a non-negative number of cents")

    @property
    def effective(self) -> int:
        """Price a buyer pays: the sale price when there is one."""
        return self.sale_price if self.sale_price is not None else self.regular_price


@dataclass
class FirearmMetadata:
    action_type: Optional[ActionType] = None
    firearm_type: Optional[FirearmType] = None
    firearm_class: Optional[FirearmClass] = None
    ammo_type: Optional[AmmunitionType] = None


@dataclass
class AmmunitionMetadata:
    round_count: Optional[int] = None


Metadata = Union[FirearmMetadata, AmmunitionMetadata]


def metadata_to_dict(metadata: Optional[Metadata]) -> Optional[dict]:
    """Serialize metadata into a tagged JSON-friendly dict."""
    if metadata is None:
        return None
    if isinstance(metadata, AmmunitionMetadata):
        return {"type": "ammunition", "round_count": metadata.round_count}
    return {
        "type": "firearm",
        "action_type": metadata.action_type.value if metadata.action_type else None,
        "firearm_type": metadata.firearm_type.value if metadata.firearm_type else None,
        "firearm_class": metadata.firearm_class.value if metadata.firearm_class else None,
        "ammo_type": metadata.ammo_type.value if metadata.ammo_type else None,
    }


def metadata_from_dict(data: Optional[dict]) -> Optional[Metadata]:
    """Inverse of metadata_to_dict."""
    if not data:
        return None
    if data.get("type") == "ammunition":
        return AmmunitionMetadata(round_count=data.get("round_count"))
    if data.get("type") == "firearm":
        return FirearmMetadata(
            action_type=ActionType(data["action_type"]) if data.get("action_type") else None,
            firearm_type=FirearmType(data["firearm_type"]) if data.get("firearm_type") else None,
            firearm_class=FirearmClass(data["firearm_class"]) if data.get("firearm_class") else None,
            ammo_type=AmmunitionType(data["ammo_type"]) if data.get("ammo_type") else None,
        )
    raise ValueError(f"Unknown metadata type: {data.get('type')}")


@dataclass
class CrawlResult:
    """Normalized listing returned by all adapters.

    Identified by (name, url). Created once by an adapter or the variant
    resolver, enriched before persistence, then treated as immutable.
    """

    name: str
    url: str
    price: Price
    retailer: RetailerName
    category: Category
    description: Optional[str] = None
    image_url: Optional[str] = None
    metadata: Optional[Metadata] = None
    query_time: int = field(default_factory=current_time)

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.name:
            raise ValueError("name is required")
        if not self.url:
            raise ValueError("url is required")
        if self.category == Category.ALL:
            raise ValueError("category 'all' is a query wildcard, not a listing category")

    @property
    def key(self) -> Tuple[str, str]:
        """Dedup fingerprint."""
        return self.name, self.url

    @property
    def round_count(self) -> Optional[int]:
        if isinstance(self.metadata, AmmunitionMetadata):
            return self.metadata.round_count
        return None


@dataclass(frozen=True)
class SearchTerm:
    """One crawl sub-loop unit: an opaque retailer key plus its category."""

    term: str
    category: Category


class BaseAdapter(ABC):
    """Abstract base class for all retailer adapters.

    The transport and cooldown are injected by the AdapterFactory.
    """

    retailer: RetailerName  # Must be overridden in subclass
    pagination: str = ""  # 'pages' or 'cursor'

    def __init__(self):
        """Initialize the adapter with dependency injection points."""
        self.transport: Optional["HttpTransport"] = None
        self.cooldown_seconds: float = settings.CRAWL_COOLDOWN_SECONDS
        self.logger = structlog.get_logger(__name__).bind(retailer=self.retailer.value)

    async def init(self) -> None:
        """One-time setup before crawling (auth tokens, sitemap discovery)."""

    @abstractmethod
    def get_search_terms(self) -> List[SearchTerm]:
        """Enumerate the search terms this retailer is crawled by."""

    @abstractmethod
    async def parse_response(self, body: str, search_term: SearchTerm) -> List[CrawlResult]:
        """Parse one page/cursor response into normalized results.

        Raises:
            ParseError: expected markup or JSON is missing
            ShapeError: payload has an unexpected shape
            NumericError: a price fails to parse
        """

    async def _send(self, request: "Request") -> "Response":
        """Send an auxiliary request (init, detail pages) through the transport."""
        if self.transport is None:
            raise RuntimeError(f"No transport injected into {self.retailer.value} adapter")
        return await self.transport.send(request)


class BasePaginatedAdapter(BaseAdapter):
    """Adapter for retailers paged by a 0-based page index."""

    pagination = "pages"

    @abstractmethod
    async def build_page_request(self, page: int, search_term: SearchTerm) -> "Request":
        """Build the request for page ``page`` (0-based) of ``search_term``."""

    @abstractmethod
    def get_num_pages(self, body: str) -> int:
        """Total number of pages reported by a response."""


class BaseCursorAdapter(BaseAdapter):
    """Adapter for retailers paged by an opaque continuation token."""

    pagination = "cursor"

    @abstractmethod
    async def build_page_request(
        self, pagination_token: Optional[str], search_term: SearchTerm
    ) -> "Request":
        """Build the request for the page after ``pagination_token``.

        ``None`` requests the first page.
        """

    @abstractmethod
    def get_pagination_token(self, body: str) -> Optional[str]:
        """Token for the next page, or None when this was the last page."""
