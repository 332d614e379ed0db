"""Prophet River adapter.

BigCommerce storefront crawled through its GraphQL API. The storefront
embeds a bearer token in the home page, fetched once by init().
"""

import json
import re
from typing import List, Optional

from app.core.enums import Category, RetailerName
from app.core.exceptions import ParseError, ShapeError
from app.scrapers.base import BaseCursorAdapter, CrawlResult, Price, SearchTerm
from app.scrapers.transport import Request
from app.scrapers.utils.normalizer import PriceNormalizer

MAIN_URL = "https://store.prophetriver.com"
GRAPHQL_URL = f"{MAIN_URL}/graphql"
DEFAULT_IMAGE_URL = (
    "https://cdn11.bigcommerce.com/s-dcynby20nc/stencil/be1fd970-0d6b-013e-f9b9-6613132a0701"
    "/e/092afc30-45f5-013e-ca76-52b5c4b168da/img/ProductDefault.gif"
)
PAGE_SIZE = 50

AUTH_TOKEN_PATTERN = re.compile(
    r"'Authorization'\s*:\s*'Bearer\s+([A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+)'"
)

# Breadcrumb path -> category
CATEGORY_PATHS = {
    "/categories/Rifles/": Category.FIREARM,
    "/categories/Shotguns/": Category.FIREARM,
    "/ammunition/": Category.AMMUNITION,
    "/reloading-equipment/": Category.OTHER,
    "/reloading-components/": Category.OTHER,
    "/rifle-scopes/": Category.OTHER,
    "/optics-accessories/": Category.OTHER,
    "/other-optics/": Category.OTHER,
    "/stocks/": Category.OTHER,
    "/accessories/": Category.OTHER,
}

PRODUCTS_QUERY = """
{
  site {
    products(hideOutOfStock: true %(after)s first: %(first)d) {
      pageInfo { endCursor hasNextPage }
      edges {
        node {
          categories {
            edges { node { breadcrumbs(depth: 99) { edges { node { entityId name path } } } } }
          }
          name
          inventory { isInStock hasVariantInventory }
          path
          defaultImage { url(width: 800) }
          prices(currencyCode: CAD) { price { value } salePrice { value } }
        }
      }
    }
  }
}
"""


class ProphetRiverAdapter(BaseCursorAdapter):
    """Prophet River GraphQL adapter."""

    retailer = RetailerName.PROPHET_RIVER

    def __init__(self):
        super().__init__()
        self.auth_token: Optional[str] = None

    async def init(self) -> None:
        """Scrape the storefront API token from the home page."""
        response = await self._send(Request(url=MAIN_URL))
        match = AUTH_TOKEN_PATTERN.search(response.body)
        if not match:
            raise ParseError(self.retailer.value, "storefront API token not found")
        self.auth_token = match.group(1)
        self.logger.info("auth_token_acquired")

    def get_search_terms(self) -> List[SearchTerm]:
        # One pass over the whole catalog; categories come from breadcrumbs
        return [SearchTerm("products", Category.ALL)]

    async def build_page_request(
        self, pagination_token: Optional[str], search_term: SearchTerm
    ) -> Request:
        after = f'after: "{pagination_token}"' if pagination_token else ""
        return Request(
            url=GRAPHQL_URL,
            method="POST",
            json={"query": PRODUCTS_QUERY % {"after": after, "first": PAGE_SIZE}},
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.auth_token}",
            },
        )

    def _products(self, body: str) -> dict:
        try:
            return json.loads(body)["data"]["site"]["products"]
        except (ValueError, KeyError, TypeError) as e:
            raise ShapeError(self.retailer.value, f"unexpected GraphQL response: {e}") from e

    @staticmethod
    def _category(node: dict) -> Optional[Category]:
        for edge in node.get("categories", {}).get("edges", []):
            for crumb in edge["node"]["breadcrumbs"]["edges"]:
                category = CATEGORY_PATHS.get(crumb["node"].get("path") or "")
                if category is not None:
                    return category
        return None

    def _price(self, node: dict) -> Price:
        prices = node["prices"]
        retailer = self.retailer.value
        sale = prices.get("salePrice")
        return Price(
            regular_price=PriceNormalizer.from_number(prices["price"]["value"], retailer),
            sale_price=PriceNormalizer.from_number(sale["value"], retailer) if sale else None,
        )

    def _result(self, node: dict, category: Category) -> CrawlResult:
        try:
            image = node.get("defaultImage")
            return CrawlResult(
                name=node["name"],
                url=f"{MAIN_URL}{node['path']}",
                price=self._price(node),
                retailer=self.retailer,
                category=category,
                image_url=image["url"] if image else DEFAULT_IMAGE_URL,
            )
        except (KeyError, TypeError) as e:
            raise ShapeError(self.retailer.value, f"malformed product node: {e!r}") from e

    async def parse_response(self, body: str, search_term: SearchTerm) -> List[CrawlResult]:
        results: List[CrawlResult] = []

        for edge in self._products(body).get("edges", []):
            try:
                node = edge["node"]
                inventory = node.get("inventory") or {}
            except (KeyError, TypeError, AttributeError) as e:
                raise ShapeError(self.retailer.value, f"malformed product edge: {e!r}") from e

            if not inventory.get("isInStock"):
                continue
            if inventory.get("hasVariantInventory"):
                raise ShapeError(
                    self.retailer.value,
                    f"product {node.get('name')!r} has variant inventory",
                )

            try:
                category = self._category(node)
            except (KeyError, TypeError) as e:
                raise ShapeError(self.retailer.value, f"malformed breadcrumbs: {e}") from e
            if category is None:
                self.logger.warning("unrecognized_category", name=node.get("name"))
                continue

            results.append(self._result(node, category))

        return results

    def get_pagination_token(self, body: str) -> Optional[str]:
        page_info = self._products(body).get("pageInfo") or {}
        if not page_info.get("hasNextPage"):
            return None
        return page_info.get("endCursor")
