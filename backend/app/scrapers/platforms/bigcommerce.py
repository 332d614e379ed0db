"""Helpers shared by BigCommerce storefronts.

Covers category listing pages (cards, prices, pagination) and the
nested product flow: variant forms on the product page and the
``/remote/v1/product-attributes`` stock probe.
"""

import json
from typing import List, Optional, Set
from urllib.parse import urlencode

import structlog
from bs4 import BeautifulSoup, Tag

from app.core.enums import RetailerName
from app.core.exceptions import ParseError, ShapeError
from app.scrapers.base import Price
from app.scrapers.transport import HttpTransport, Request
from app.scrapers.utils.normalizer import PriceNormalizer
from app.scrapers.variants import (
    ProbeResult,
    Selection,
    StockProbe,
    VariantAttribute,
    VariantPage,
)

logger = structlog.get_logger(__name__)

PAGINATION_SELECTOR = (
    "li.pagination-item:not(.pagination-item--next):not(.pagination-item--previous)"
    " > a.pagination-link"
)
IMAGE_SIZE_PLACEHOLDER = "{:size}"
IMAGE_SIZE = "300w"


def element_text(element: Tag) -> str:
    return element.get_text(" ", strip=True)


def select_required(root: Tag, selector: str, retailer: str) -> Tag:
    """select_one that raises ParseError instead of returning None."""
    element = root.select_one(selector)
    if element is None:
        raise ParseError(retailer, f"missing element '{selector}'")
    return element


def attr_required(element: Tag, name: str, retailer: str) -> str:
    value = element.get(name)
    if value is None:
        raise ParseError(retailer, f"element <{element.name}> missing attribute '{name}'")
    return value.strip()


def parse_max_pages(html: str, retailer: str = "bigcommerce") -> int:
    """Number of pages from the pagination bar; 0 when there is none."""
    soup = BeautifulSoup(html, "html.parser")
    links = soup.select(PAGINATION_SELECTOR)
    if not links:
        return 0

    text = element_text(links[-1])
    if not text.isdigit():
        raise ParseError(retailer, f"pagination link is not a page number: {text!r}")
    return int(text)


def parse_card_price(main_text: str, non_sale_text: str, retailer: str) -> Price:
    """Build a Price from the main and non-sale price spans of a card.

    When a non-sale price is rendered the main price is the sale price.
    """
    current = PriceNormalizer.to_cents(main_text, retailer)
    regular = PriceNormalizer.to_cents_optional(non_sale_text, retailer)
    if regular is None:
        return Price(regular_price=current)
    return Price(regular_price=regular, sale_price=current)


def parse_in_stock_ids(soup: BeautifulSoup, retailer: str) -> Optional[Set[str]]:
    """Option ids the page script reports as in stock.

    The data lives in an inline script assignment such as
    ``var BCData = {"product_attributes": {"in_stock_attributes": [..]}};``
    None means the page does not say, and every option counts. An empty
    set means nothing is in stock.
    """
    for script in soup.find_all("script"):
        source = script.string or script.get_text()
        if "in_stock_attributes" not in source:
            continue

        _, sep, payload = source.partition(" = ")
        if not sep:
            raise ParseError(retailer, "unexpected script, no variable assignment")

        try:
            data = json.loads(payload.strip().rstrip(";"))
            in_stock = data["product_attributes"]["in_stock_attributes"]
        except (ValueError, KeyError, TypeError) as e:
            raise ParseError(retailer, f"could not read in_stock_attributes: {e}") from e

        return {str(option_id) for option_id in in_stock}

    return None


def _dropdown_options(form: Tag, in_stock: Optional[Set[str]], retailer: str) -> List[VariantAttribute]:
    select = select_required(form, "select.form-select.form-select--small", retailer)
    form_id = attr_required(select, "name", retailer)

    options = []
    for option in select.select("option[data-product-attribute-value]"):
        option_id = attr_required(option, "data-product-attribute-value", retailer)
        if in_stock is not None and option_id not in in_stock:
            continue
        options.append(VariantAttribute(form_id, option_id, element_text(option)))
    return options


def _radio_options(form: Tag, in_stock: Optional[Set[str]], retailer: str) -> List[VariantAttribute]:
    radio = select_required(form, "input.form-radio", retailer)
    form_id = attr_required(radio, "name", retailer)

    options = []
    for label in form.select("label.form-option[data-product-attribute-value]"):
        option_id = attr_required(label, "data-product-attribute-value", retailer)
        if in_stock is not None and option_id not in in_stock:
            continue
        span = label.select_one("span.form-option-variant")
        if span is None:
            text = element_text(label)
        else:
            text = span.get("title") or element_text(span)
        options.append(VariantAttribute(form_id, option_id, text.strip()))
    return options


def parse_variant_page(html: str, cart_url: str, retailer: str = "bigcommerce") -> VariantPage:
    """Extract the product id and in-stock attribute options of a product page.

    Args:
        html: Product detail page
        cart_url: The add-to-cart form action, used to find the right form
        retailer: Retailer tag for error messages

    Raises:
        ParseError: product id or form markup is missing
    """
    soup = BeautifulSoup(html, "html.parser")

    product_id_input = select_required(soup, "input[name=product_id]", retailer)
    product_id = attr_required(product_id_input, "value", retailer)

    in_stock = parse_in_stock_ids(soup, retailer)

    attributes: List[VariantAttribute] = []
    for form in soup.select(f"form[action='{cart_url}'] div.form-field[data-product-attribute]"):
        kind = (form.get("data-product-attribute") or "").lower()
        if kind == "set-select":
            attributes.extend(_dropdown_options(form, in_stock, retailer))
        elif kind == "set-rectangle":
            attributes.extend(_radio_options(form, in_stock, retailer))

    return VariantPage(product_id=product_id, attributes=attributes)


def parse_probe_response(body: str, retailer: str) -> ProbeResult:
    """Parse a product-attributes probe response.

    Raises:
        ShapeError: unexpected payload or non-CAD pricing
    """
    try:
        data = json.loads(body)["data"]
        in_stock = bool(data["instock"])
        price_data = data["price"]
        current = price_data["without_tax"]
    except (ValueError, KeyError, TypeError) as e:
        raise ShapeError(retailer, f"unexpected product-attributes response: {e}") from e

    if current.get("currency") != "CAD":
        raise ShapeError(retailer, f"non CAD pricing: {current.get('currency')}")

    current_cents = PriceNormalizer.from_number(current["value"], retailer)
    non_sale = price_data.get("non_sale_price_without_tax")
    if non_sale:
        price = Price(
            regular_price=PriceNormalizer.from_number(non_sale["value"], retailer),
            sale_price=current_cents,
        )
    else:
        price = Price(regular_price=current_cents)

    image_url = None
    image = data.get("image")
    if isinstance(image, dict) and image.get("data"):
        image_url = image["data"].replace(IMAGE_SIZE_PLACEHOLDER, IMAGE_SIZE)

    return ProbeResult(in_stock=in_stock, price=price, image_url=image_url)


class BigCommerceStockProbe(StockProbe):
    """Probe variant stock through the storefront product-attributes endpoint."""

    def __init__(self, site_url: str, retailer: RetailerName, transport: HttpTransport):
        self.site_url = site_url.rstrip("/")
        self.retailer = retailer
        self.transport = transport

    def build_request(self, page: VariantPage, selection: Selection) -> Request:
        form = [("action", "add"), ("product_id", page.product_id)]
        form.extend((attribute.form_id, attribute.option_id) for attribute in selection)
        return Request(
            url=f"{self.site_url}/remote/v1/product-attributes/{page.product_id}",
            method="POST",
            body=urlencode(form),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    async def probe(self, page: VariantPage, selection: Selection) -> ProbeResult:
        response = await self.transport.send(self.build_request(page, selection))
        return parse_probe_response(response.body, self.retailer.value)


def first_image_url(card: Tag, selector: str) -> Optional[str]:
    """Prefer a lazy-loaded https data-src over src."""
    image = card.select_one(selector)
    if image is None:
        return None
    for attribute in ("data-src", "src"):
        value = image.get(attribute)
        if value and value.startswith("https"):
            return value
    return None
