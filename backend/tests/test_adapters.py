"""Tests for retailer adapters and the adapter factory."""

import json

import pytest

from app.core.enums import Category, RetailerName
from app.core.exceptions import NumericError, ParseError, ShapeError
from app.scrapers.adapters.calgary_shooting_centre import (
    CART_URL,
    SITE_URL,
    CalgaryShootingCentreAdapter,
)
from app.scrapers.adapters.prophet_river import (
    DEFAULT_IMAGE_URL,
    GRAPHQL_URL,
    MAIN_URL,
    ProphetRiverAdapter,
)
from app.scrapers.base import Price, SearchTerm
from app.scrapers.factory import AdapterFactory
from app.scrapers.platforms.bigcommerce import parse_card_price, parse_max_pages
from app.scrapers.register_adapters import register_all_adapters

from conftest import FakeTransport


def card(name: str, slug: str, main: str, non_sale: str = "", image: str = "") -> str:
    image_tag = (
        f'<div class="card-img-container"><img class="card-image" data-src="{image}"'
        ' src="data:image/gif;base64,R0lGOD"></div>'
        if image
        else ""
    )
    return f"""
    <li class="product"><article class="card">
      <figure class="card-figure">{image_tag}</figure>
      <div class="card-body">
        <h4 class="card-title"><a href="{SITE_URL}/{slug}/">{name}</a></h4>
        <div class="price-section">
          <span class="price price--non-sale">{non_sale}</span>
          <span class="price price--main">{main}</span>
        </div>
      </div>
    </article></li>
    """


PAGINATION = """
<ul class="pagination-list">
  <li class="pagination-item pagination-item--previous"><a class="pagination-link">Previous</a></li>
  <li class="pagination-item pagination-item--current"><a class="pagination-link">1</a></li>
  <li class="pagination-item"><a class="pagination-link">2</a></li>
  <li class="pagination-item"><a class="pagination-link">3</a></li>
  <li class="pagination-item pagination-item--next"><a class="pagination-link">Next</a></li>
</ul>
"""


def listing(*cards: str, pagination: str = "") -> str:
    return f'<html><body><ul class="productGrid">{"".join(cards)}</ul>{pagination}</body></html>'


NESTED_PAGE = f"""
<html><body>
<form action="{CART_URL}" method="post">
  <input type="hidden" name="product_id" value="77">
  <div class="form-field" data-product-attribute="set-select">
    <select class="form-select form-select--small" name="attribute[5]">
      <option data-product-attribute-value="1" value="1">Black</option>
      <option data-product-attribute-value="2" value="2">FDE</option>
    </select>
  </div>
</form>
</body></html>
"""


def probe_body(value: float) -> str:
    return json.dumps({
        "data": {"instock": True, "price": {"without_tax": {"value": value, "currency": "CAD"}}}
    })


def csc_adapter(transport=None) -> CalgaryShootingCentreAdapter:
    factory = AdapterFactory(transport=transport or FakeTransport(), cooldown_seconds=0)
    factory.register_adapter(RetailerName.CALGARY_SHOOTING_CENTRE, CalgaryShootingCentreAdapter)
    return factory.create_adapter(RetailerName.CALGARY_SHOOTING_CENTRE)


# ============================================================================
# TESTS: BIGCOMMERCE LISTING HELPERS
# ============================================================================

class TestBigCommerceListing:
    """Tests for listing page helpers."""

    def test_max_pages_from_pagination(self):
        assert parse_max_pages(listing(pagination=PAGINATION)) == 3

    def test_max_pages_without_pagination(self):
        assert parse_max_pages(listing()) == 0

    def test_card_price_with_sale(self):
        assert parse_card_price("$1,099.99", "$1,299.99", "test") == Price(
            regular_price=129999, sale_price=109999
        )

    def test_card_price_without_sale(self):
        assert parse_card_price("$549", "", "test") == Price(regular_price=54900)

    def test_card_price_unparseable(self):
        with pytest.raises(NumericError):
            parse_card_price("Call for price", "", "test")


# ============================================================================
# TESTS: CALGARY SHOOTING CENTRE
# ============================================================================

class TestCalgaryShootingCentreAdapter:
    """Tests for the listing-page adapter."""

    def test_search_terms(self):
        terms = csc_adapter().get_search_terms()

        assert terms[0] == SearchTerm("firearms", Category.FIREARM)
        assert terms[1] == SearchTerm("ammunition", Category.AMMUNITION)
        assert all(term.category == Category.OTHER for term in terms[2:])

    async def test_page_request_is_one_based(self):
        request = await csc_adapter().build_page_request(0, SearchTerm("firearms", Category.FIREARM))

        assert request.url == f"{SITE_URL}/firearms/?limit=100&mode=6&page=1"
        assert request.method == "GET"

    async def test_parse_simple_cards(self):
        body = listing(
            card("Tikka T3x Lite", "tikka", "$1,099.99", "$1,299.99", image="https://cdn.test/t.jpg"),
            card("Ruger 10/22", "ruger", "$449.99"),
        )

        results = await csc_adapter().parse_response(body, SearchTerm("firearms", Category.FIREARM))

        assert [r.name for r in results] == ["Tikka T3x Lite", "Ruger 10/22"]
        tikka, ruger = results
        assert tikka.url == f"{SITE_URL}/tikka/"
        assert tikka.price == Price(regular_price=129999, sale_price=109999)
        assert tikka.image_url == "https://cdn.test/t.jpg"
        assert tikka.retailer == RetailerName.CALGARY_SHOOTING_CENTRE
        assert tikka.category == Category.FIREARM
        assert ruger.price == Price(regular_price=44999)
        assert ruger.image_url is None

    async def test_price_range_cards_resolved_through_variants(self):
        transport = FakeTransport({
            f"{SITE_URL}/magpul-stock/": NESTED_PAGE,
            f"{SITE_URL}/remote/v1/product-attributes/77": [probe_body(129.99), probe_body(139.99)],
        })
        body = listing(
            card("Magpul Stock", "magpul-stock", "$129.99 - $139.99", image="https://cdn.test/m.jpg"),
            card("Sling", "sling", "$39.99"),
        )

        results = await csc_adapter(transport).parse_response(
            body, SearchTerm("gun-parts-accessories", Category.OTHER)
        )

        assert [(r.name, r.price.regular_price) for r in results] == [
            ("Sling", 3999),
            ("Magpul Stock - Black", 12999),
            ("Magpul Stock - FDE", 13999),
        ]
        assert results[1].image_url == "https://cdn.test/m.jpg"

    async def test_ammunition_cards_always_resolved(self):
        transport = FakeTransport({
            f"{SITE_URL}/federal-9mm/": NESTED_PAGE,
            f"{SITE_URL}/remote/v1/product-attributes/77": [probe_body(19.99), probe_body(21.99)],
        })
        body = listing(card("Federal 9mm", "federal-9mm", "$19.99"))

        results = await csc_adapter(transport).parse_response(
            body, SearchTerm("ammunition", Category.AMMUNITION)
        )

        assert [r.name for r in results] == ["Federal 9mm - Black", "Federal 9mm - FDE"]
        assert all(r.category == Category.AMMUNITION for r in results)

    async def test_card_without_title_is_parse_error(self):
        body = listing('<li class="product"><article class="card"></article></li>')

        with pytest.raises(ParseError):
            await csc_adapter().parse_response(body, SearchTerm("firearms", Category.FIREARM))

    def test_num_pages(self):
        assert csc_adapter().get_num_pages(listing(pagination=PAGINATION)) == 3


# ============================================================================
# TESTS: PROPHET RIVER
# ============================================================================

def product_node(
    name: str,
    path: str = "/rifles/item/",
    crumb: str = "/categories/Rifles/",
    price: float = 999.99,
    sale: float = None,
    in_stock: bool = True,
    variants: bool = False,
    image: str = "https://cdn.test/p.jpg",
) -> dict:
    return {
        "node": {
            "categories": {
                "edges": [
                    {"node": {"breadcrumbs": {"edges": [
                        {"node": {"entityId": 1, "name": "Crumb", "path": crumb}},
                    ]}}},
                ]
            },
            "name": name,
            "inventory": {"isInStock": in_stock, "hasVariantInventory": variants},
            "path": path,
            "defaultImage": {"url": image} if image else None,
            "prices": {
                "price": {"value": price},
                "salePrice": {"value": sale} if sale is not None else None,
            },
        }
    }


def graphql_body(*edges, has_next: bool = False, cursor: str = "YXJyYXljb25uZWN0aW9uOjQ5") -> str:
    return json.dumps({
        "data": {"site": {"products": {
            "pageInfo": {"endCursor": cursor, "hasNextPage": has_next},
            "edges": list(edges),
        }}}
    })


PRODUCTS = SearchTerm("products", Category.ALL)


class TestProphetRiverAdapter:
    """Tests for the GraphQL cursor adapter."""

    async def test_init_extracts_bearer_token(self):
        home = "<script>fetch(url, {headers: {'Authorization': 'Bearer aaa.bbb-1.c_c'}})</script>"
        adapter = ProphetRiverAdapter()
        adapter.transport = FakeTransport({MAIN_URL: home})

        await adapter.init()

        assert adapter.auth_token == "aaa.bbb-1.c_c"

    async def test_init_without_token_is_parse_error(self):
        adapter = ProphetRiverAdapter()
        adapter.transport = FakeTransport({MAIN_URL: "<html></html>"})

        with pytest.raises(ParseError):
            await adapter.init()

    async def test_page_request_carries_cursor_and_token(self):
        adapter = ProphetRiverAdapter()
        adapter.auth_token = "aaa.bbb.ccc"

        first = await adapter.build_page_request(None, PRODUCTS)
        later = await adapter.build_page_request("abc", PRODUCTS)

        assert first.url == GRAPHQL_URL
        assert first.method == "POST"
        assert first.headers["Authorization"] == "Bearer aaa.bbb.ccc"
        assert "after:" not in first.json["query"]
        assert 'after: "abc"' in later.json["query"]
        assert "first: 50" in later.json["query"]

    async def test_parse_response(self):
        body = graphql_body(
            product_node("Savage 110", path="/savage-110/", price=1199.99, sale=1099.0),
            product_node("Sold Out", in_stock=False),
            product_node("Hornady 308 - 20rds", crumb="/ammunition/", price=45.5, image=None),
            product_node("Gift Card", crumb="/gift-cards/"),
        )

        results = await ProphetRiverAdapter().parse_response(body, PRODUCTS)

        assert [r.name for r in results] == ["Savage 110", "Hornady 308 - 20rds"]
        savage, hornady = results
        assert savage.url == f"{MAIN_URL}/savage-110/"
        assert savage.price == Price(regular_price=119999, sale_price=109900)
        assert savage.category == Category.FIREARM
        assert hornady.category == Category.AMMUNITION
        assert hornady.price == Price(regular_price=4550)
        assert hornady.image_url == DEFAULT_IMAGE_URL

    async def test_variant_inventory_is_shape_error(self):
        body = graphql_body(product_node("Configurable", variants=True))

        with pytest.raises(ShapeError):
            await ProphetRiverAdapter().parse_response(body, PRODUCTS)

    async def test_unexpected_payload_is_shape_error(self):
        with pytest.raises(ShapeError):
            await ProphetRiverAdapter().parse_response('{"errors": []}', PRODUCTS)

    @pytest.mark.parametrize("field", ["name", "path", "prices"])
    async def test_missing_node_field_is_shape_error(self, field):
        edge = product_node("Savage 110")
        del edge["node"][field]

        with pytest.raises(ShapeError):
            await ProphetRiverAdapter().parse_response(graphql_body(edge), PRODUCTS)

    async def test_missing_price_value_is_shape_error(self):
        edge = product_node("Savage 110")
        edge["node"]["prices"]["price"] = {}

        with pytest.raises(ShapeError):
            await ProphetRiverAdapter().parse_response(graphql_body(edge), PRODUCTS)

    def test_pagination_token(self):
        adapter = ProphetRiverAdapter()

        assert adapter.get_pagination_token(graphql_body(has_next=True, cursor="c1")) == "c1"
        assert adapter.get_pagination_token(graphql_body(has_next=False, cursor="c1")) is None


# ============================================================================
# TESTS: FACTORY
# ============================================================================

class TestAdapterFactory:
    """Tests for adapter registration and selection."""

    def test_register_all_adapters(self):
        factory = AdapterFactory()
        register_all_adapters(factory)

        assert factory.get_registered_retailers() == [
            RetailerName.CALGARY_SHOOTING_CENTRE,
            RetailerName.PROPHET_RIVER,
        ]

    def test_create_adapter_injects_transport_and_cooldown(self):
        transport = FakeTransport()
        factory = AdapterFactory(transport=transport, cooldown_seconds=2.5)
        register_all_adapters(factory)

        adapter = factory.create_adapter(RetailerName.PROPHET_RIVER)

        assert isinstance(adapter, ProphetRiverAdapter)
        assert adapter.transport is transport
        assert adapter.cooldown_seconds == 2.5

    def test_unregistered_retailer(self):
        factory = AdapterFactory()

        assert factory.create_adapter(RetailerName.PROPHET_RIVER) is None
        assert factory.has_adapter(RetailerName.PROPHET_RIVER) is False

    def test_select_retailers_include_exclude(self):
        factory = AdapterFactory()
        register_all_adapters(factory)

        assert factory.select_retailers(included=[RetailerName.PROPHET_RIVER]) == [
            RetailerName.PROPHET_RIVER
        ]
        assert factory.select_retailers(excluded=[RetailerName.PROPHET_RIVER]) == [
            RetailerName.CALGARY_SHOOTING_CENTRE
        ]
        assert factory.select_retailers(
            included=[RetailerName.PROPHET_RIVER], excluded=[RetailerName.PROPHET_RIVER]
        ) == []

    def test_register_rejects_non_adapter(self):
        with pytest.raises(ValueError):
            AdapterFactory().register_adapter(RetailerName.PROPHET_RIVER, dict)
