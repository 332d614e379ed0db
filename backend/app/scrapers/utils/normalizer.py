"""Data normalization utilities for price parsing."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from app.core.exceptions import NumericError

_PRICE_PATTERN = re.compile(r"^(\d+)(?:\.(\d{0,2}))?$")


class PriceNormalizer:
    """Convert retailer price strings into integer cents.

    Handles the formats retailers render:
    - "$1,234.56" -> 123456
    - "100" -> 10000
    - "12.5" -> 1250
    """

    @staticmethod
    def clean_price_string(raw: str) -> str:
        """Strip whitespace, a leading "$" and thousands separators."""
        cleaned = raw.strip()
        if cleaned.startswith("$"):
            cleaned = cleaned[1:]
        return cleaned.replace(",", "").strip()

    @classmethod
    def to_cents(cls, raw: str, retailer: str = "unknown") -> int:
        """Parse a mandatory price string into cents.

        Args:
            raw: Price text such as "$1,234.56"
            retailer: Retailer tag for the error message

        Returns:
            Price in integer cents

        Raises:
            NumericError: If the string is empty or not a price
        """
        if raw is None:
            raise NumericError(retailer, "price is missing")

        cleaned = cls.clean_price_string(raw)
        match = _PRICE_PATTERN.match(cleaned)
        if not match:
            raise NumericError(retailer, f"could not parse price {raw!r}")

        dollars, cents = match.group(1), match.group(2) or ""
        return int(dollars) * 100 + int(cents.ljust(2, "0"))

    @classmethod
    def to_cents_optional(cls, raw: Optional[str], retailer: str = "unknown") -> Optional[int]:
        """Like to_cents, but an absent or blank string is None."""
        if raw is None or not raw.strip():
            return None
        return cls.to_cents(raw, retailer)

    @staticmethod
    def from_number(value: Union[int, float, str, Decimal], retailer: str = "unknown") -> int:
        """Convert a numeric dollar amount from a JSON payload into cents."""
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise NumericError(retailer, f"could not parse price {value!r}") from e
        if not amount.is_finite() or amount < 0:
            raise NumericError(retailer, f"invalid price {value!r}")
        return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
