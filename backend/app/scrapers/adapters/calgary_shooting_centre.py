"""Calgary Shooting Centre adapter.

BigCommerce storefront crawled through its category listing pages.
Cards with a price range hide variants, and ammunition cards never put
the round count in the title, so both go through the variant resolver.
"""

from typing import List

from bs4 import BeautifulSoup

from app.core.enums import Category, RetailerName
from app.scrapers.base import BasePaginatedAdapter, CrawlResult, SearchTerm
from app.scrapers.platforms import bigcommerce
from app.scrapers.transport import Request
from app.scrapers.variants import NestedProduct, VariantResolver, needs_variant_resolution

SITE_URL = "https://store.theshootingcentre.com"
CART_URL = f"{SITE_URL}/cart.php"
PAGE_LIMIT = 100

_OTHER_TERMS = ["optics", "reloading", "gun-parts-accessories", "optics-accessories"]


class CalgaryShootingCentreAdapter(BasePaginatedAdapter):
    """Calgary Shooting Centre listing adapter."""

    retailer = RetailerName.CALGARY_SHOOTING_CENTRE

    def get_search_terms(self) -> List[SearchTerm]:
        terms = [
            SearchTerm("firearms", Category.FIREARM),
            SearchTerm("ammunition", Category.AMMUNITION),
        ]
        terms.extend(SearchTerm(term, Category.OTHER) for term in _OTHER_TERMS)
        return terms

    async def build_page_request(self, page: int, search_term: SearchTerm) -> Request:
        # Storefront pages are 1-based
        return Request(
            url=f"{SITE_URL}/{search_term.term}/?limit={PAGE_LIMIT}&mode=6&page={page + 1}"
        )

    def get_num_pages(self, body: str) -> int:
        return bigcommerce.parse_max_pages(body, self.retailer.value)

    def _create_resolver(self) -> VariantResolver:
        return VariantResolver(
            retailer=self.retailer,
            transport=self.transport,
            page_parser=lambda html: bigcommerce.parse_variant_page(
                html, CART_URL, self.retailer.value
            ),
            probe=bigcommerce.BigCommerceStockProbe(SITE_URL, self.retailer, self.transport),
            cooldown_seconds=self.cooldown_seconds,
            follows_request=True,
        )

    async def parse_response(self, body: str, search_term: SearchTerm) -> List[CrawlResult]:
        retailer = self.retailer.value
        soup = BeautifulSoup(body, "html.parser")

        results: List[CrawlResult] = []
        nested: List[NestedProduct] = []

        for card in soup.select("li.product > article.card"):
            link = bigcommerce.select_required(card, "h4.card-title > a", retailer)
            name = bigcommerce.element_text(link)
            url = bigcommerce.attr_required(link, "href", retailer)
            image_url = bigcommerce.first_image_url(card, "div.card-img-container > img.card-image")

            main_price = bigcommerce.element_text(
                bigcommerce.select_required(card, "span.price--main", retailer)
            )

            if needs_variant_resolution(
                main_price, force=search_term.category == Category.AMMUNITION
            ):
                nested.append(
                    NestedProduct(
                        detail_url=url,
                        name=name,
                        category=search_term.category,
                        fallback_image_url=image_url,
                    )
                )
                continue

            non_sale = card.select_one("span.price--non-sale")
            price = bigcommerce.parse_card_price(
                main_price,
                bigcommerce.element_text(non_sale) if non_sale else "",
                retailer,
            )

            results.append(
                CrawlResult(
                    name=name,
                    url=url,
                    price=price,
                    retailer=self.retailer,
                    category=search_term.category,
                    image_url=image_url,
                )
            )

        if nested:
            self.logger.info(
                "resolving_nested_products",
                term=search_term.term,
                count=len(nested),
            )
            results.extend(await self._create_resolver().resolve_all(nested))

        return results
