"""Nested product variant resolution.

Some retailers list one card for a product that is really sold as
several SKUs (sizes, round counts, colours). The resolver visits the
product page, works out every in-stock combination of attribute options
and probes each one for stock and price, producing one CrawlResult per
purchasable variant.
"""

import asyncio
import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

import structlog

from app.core.enums import Category, RetailerName
from app.core.exceptions import AdapterError
from app.scrapers.base import CrawlResult, Price
from app.scrapers.transport import HttpTransport, Request

logger = structlog.get_logger(__name__)

Selection = Tuple["VariantAttribute", ...]


@dataclass(frozen=True)
class VariantAttribute:
    """One selectable option of one attribute form."""

    form_id: str
    option_id: str
    label: str


@dataclass
class NestedProduct:
    """A listing queued for variant resolution."""

    detail_url: str
    name: str
    category: Category
    fallback_image_url: Optional[str] = None


@dataclass
class VariantPage:
    """What the detail page says about a product's variants."""

    product_id: str
    attributes: List[VariantAttribute] = field(default_factory=list)


@dataclass
class ProbeResult:
    in_stock: bool
    price: Optional[Price] = None
    image_url: Optional[str] = None


class StockProbe(ABC):
    """Ask the retailer whether one attribute combination is purchasable."""

    @abstractmethod
    async def probe(self, page: VariantPage, selection: Selection) -> ProbeResult:
        """Probe stock and price for one selection."""


def needs_variant_resolution(price_text: str, variant_count: int = 0, force: bool = False) -> bool:
    """Whether a listing has to be expanded through its detail page.

    A price range such as "$25.99 - $31.99" means the card hides variants.
    """
    return force or variant_count > 0 or "-" in price_text


def group_by_form(attributes: Sequence[VariantAttribute]) -> List[List[VariantAttribute]]:
    """Group attributes by form id, keeping first-seen order."""
    forms: Dict[str, List[VariantAttribute]] = {}
    for attribute in attributes:
        forms.setdefault(attribute.form_id, []).append(attribute)
    return list(forms.values())


def expand_selections(attributes: Sequence[VariantAttribute]) -> List[Selection]:
    """Cartesian product of options across distinct forms.

    Two forms with options [a, b] and [x, y] give
    (a, x), (a, y), (b, x), (b, y).
    """
    forms = group_by_form(attributes)
    if not forms:
        return []
    return list(itertools.product(*forms))


def build_variant_name(base_name: str, selection: Selection, category: Category) -> Optional[str]:
    """Append every option label to the base name.

    Numeric labels under ammunition are round counts and get an "rds"
    suffix, so "Federal 9mm" with label "50" becomes "Federal 9mm - 50rds".

    Returns:
        The variant name, or None if an option has no usable label
    """
    parts = [base_name]
    for attribute in selection:
        label = attribute.label.strip()
        if not label:
            return None
        if category == Category.AMMUNITION and label.isdigit():
            label = f"{label}rds"
        parts.append(label)
    return " - ".join(parts)


class VariantResolver:
    """Expand nested products into per-variant crawl results.

    The page parser and the stock probe are platform specific; the
    resolver only owns the flow, the naming and the pacing.
    """

    def __init__(
        self,
        retailer: RetailerName,
        transport: HttpTransport,
        page_parser: Callable[[str], VariantPage],
        probe: StockProbe,
        cooldown_seconds: float = 0.0,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        follows_request: bool = False,
    ):
        """Initialize the resolver.

        Args:
            follows_request: A request to the same retailer was just sent, so
                the first detail-page fetch waits for the cooldown too
        """
        self.retailer = retailer
        self.transport = transport
        self.page_parser = page_parser
        self.probe = probe
        self.cooldown_seconds = cooldown_seconds
        self._sleep = sleep or asyncio.sleep
        self._requests_sent = 1 if follows_request else 0
        self.failed_products = 0
        self.logger = logger.bind(service="variant_resolver", retailer=retailer.value)

    async def _pace(self) -> None:
        if self._requests_sent > 0 and self.cooldown_seconds > 0:
            await self._sleep(self.cooldown_seconds)
        self._requests_sent += 1

    async def resolve(self, product: NestedProduct) -> List[CrawlResult]:
        """Resolve one nested product into its in-stock variants.

        Raises:
            AdapterError: fetching, parsing or probing failed
        """
        await self._pace()
        response = await self.transport.send(Request(url=product.detail_url))
        page = self.page_parser(response.body)

        selections = expand_selections(page.attributes)
        self.logger.debug(
            "variant_selections_expanded",
            url=product.detail_url,
            options=len(page.attributes),
            selections=len(selections),
        )

        results: List[CrawlResult] = []
        for selection in selections:
            name = build_variant_name(product.name, selection, product.category)
            if name is None:
                self.logger.debug("variant_label_missing", url=product.detail_url)
                continue

            await self._pace()
            probe_result = await self.probe.probe(page, selection)

            if not probe_result.in_stock:
                self.logger.debug("variant_out_of_stock", name=name)
                continue
            if probe_result.price is None:
                self.logger.debug("variant_price_missing", name=name)
                continue

            results.append(
                CrawlResult(
                    name=name,
                    url=product.detail_url,
                    price=probe_result.price,
                    retailer=self.retailer,
                    category=product.category,
                    image_url=probe_result.image_url or product.fallback_image_url,
                )
            )

        return results

    async def resolve_all(self, products: Sequence[NestedProduct]) -> List[CrawlResult]:
        """Resolve products one by one.

        A failure skips only the product it happened on; its siblings are
        still resolved.
        """
        results: List[CrawlResult] = []
        for product in products:
            try:
                results.extend(await self.resolve(product))
            except AdapterError as e:
                self.failed_products += 1
                self.logger.warning(
                    "variant_resolution_failed",
                    url=product.detail_url,
                    error=str(e),
                )
        return results
