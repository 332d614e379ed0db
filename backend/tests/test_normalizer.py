"""Tests for price normalization and round-count enrichment."""

from decimal import Decimal

import pytest

from app.core.enums import Category
from app.core.exceptions import NumericError
from app.scrapers.base import AmmunitionMetadata, FirearmMetadata
from app.scrapers.enrichment import enrich_result, extract_round_count
from app.scrapers.utils.normalizer import PriceNormalizer

from conftest import make_result


# ============================================================================
# TESTS: PRICE NORMALIZER
# ============================================================================

class TestPriceNormalizer:
    """Tests for currency string parsing."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("$1,234.56", 123456),
            ("100", 10000),
            ("12.5", 1250),
            (" $ 0.99 ", 99),
            ("7.", 700),
        ],
    )
    def test_to_cents(self, raw, expected):
        assert PriceNormalizer.to_cents(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", "12.345", "-5", "$", "1.2.3"])
    def test_to_cents_rejects_garbage(self, raw):
        with pytest.raises(NumericError):
            PriceNormalizer.to_cents(raw, "test")

    def test_to_cents_optional_blank_is_none(self):
        assert PriceNormalizer.to_cents_optional(None) is None
        assert PriceNormalizer.to_cents_optional("   ") is None
        assert PriceNormalizer.to_cents_optional("$5") == 500

    @pytest.mark.parametrize(
        "value,expected",
        [
            (24.99, 2499),
            (10, 1000),
            ("0.005", 1),
            (Decimal("1099.5"), 109950),
        ],
    )
    def test_from_number(self, value, expected):
        assert PriceNormalizer.from_number(value) == expected

    @pytest.mark.parametrize("value", ["nope", -1, float("nan")])
    def test_from_number_rejects_invalid(self, value):
        with pytest.raises(NumericError):
            PriceNormalizer.from_number(value, "test")

    def test_error_names_retailer(self):
        with pytest.raises(NumericError) as exc_info:
            PriceNormalizer.to_cents("free", "prophet_river")

        assert exc_info.value.retailer == "prophet_river"
        assert "free" in exc_info.value.message


# ============================================================================
# TESTS: ROUND COUNT ENRICHMENT
# ============================================================================

class TestRoundCountExtraction:
    """Tests for round-count patterns."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Federal 9mm 115gr FMJ - Box of 50", 50),
            ("Winchester 12ga #8 Case of 250", 250),
            ("CCI Blazer 22LR 500rds", 500),
            ("Hornady 308 Win 20 Rounds", 20),
            ("Remington 12ga 00 Buck 5 shells", 5),
            ("PPU 7.62x39 - 20ct", 20),
            ("S&B 9mm 50/box", 50),
            ("Norma 6.5 Creedmoor 20 RND", 20),
        ],
    )
    def test_extract(self, name, expected):
        assert extract_round_count(name) == expected

    def test_box_of_wins_over_later_count(self):
        assert extract_round_count("Box of 25 - 1000rds case") == 25

    def test_no_count(self):
        assert extract_round_count("Hornady Lock-N-Load Press") is None


class TestEnrichResult:
    """Tests for in-place enrichment of crawl results."""

    def test_sets_ammunition_metadata(self):
        result = make_result("Federal 9mm - 50rds", category=Category.AMMUNITION)

        assert enrich_result(result) is True
        assert result.metadata == AmmunitionMetadata(round_count=50)
        assert result.round_count == 50

    def test_keeps_adapter_metadata(self):
        result = make_result(
            "Federal 9mm - 50rds",
            category=Category.AMMUNITION,
            metadata=AmmunitionMetadata(round_count=1000),
        )

        assert enrich_result(result) is True
        assert result.round_count == 1000

    def test_non_ammunition_untouched(self):
        result = make_result("Box of 50 targets", category=Category.OTHER)

        assert enrich_result(result) is False
        assert result.metadata is None

    def test_firearm_metadata_not_replaced(self):
        metadata = FirearmMetadata()
        result = make_result("Odd 50rds", category=Category.AMMUNITION, metadata=metadata)

        assert enrich_result(result) is False
        assert result.metadata is metadata

    def test_missing_count(self):
        result = make_result("Mystery Ammo", category=Category.AMMUNITION)

        assert enrich_result(result) is False
        assert result.metadata is None
