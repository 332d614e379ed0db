"""Search Pydantic schemas for request/response validation."""

import json
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from app.core.enums import Category, RetailerName, SortOrder
from app.core.exceptions import NumericError
from app.schemas.result import ResultResponse
from app.scrapers.utils.normalizer import PriceNormalizer


class SearchParams(BaseModel):
    """Query string of the search endpoint.

    Prices arrive as currency strings ("$1,234.56", "1234") and are held
    in cents. Empty strings mean "absent". Unknown parameters are rejected.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    query: str
    page: Optional[int] = Field(default=None, ge=0)
    min_price: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("min_price", "min-price")
    )
    max_price: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("max_price", "max-price")
    )
    sort: SortOrder = SortOrder.RELEVANT
    category: Category = Category.ALL
    retailers: Optional[List[RetailerName]] = None

    @field_validator("query")
    @classmethod
    def query_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be empty")
        return v

    @field_validator("page", mode="before")
    @classmethod
    def empty_page_is_absent(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("min_price", "max_price", mode="before")
    @classmethod
    def price_to_cents(cls, v):
        if v is None or isinstance(v, int):
            return v
        try:
            return PriceNormalizer.to_cents_optional(str(v), "search")
        except NumericError as e:
            raise ValueError(f"invalid price {v!r}") from e

    @field_validator("retailers", mode="before")
    @classmethod
    def parse_retailer_list(cls, v):
        if isinstance(v, str):
            if not v.strip():
                return None
            try:
                return json.loads(v)
            except ValueError as e:
                raise ValueError("retailers must be a JSON array") from e
        return v

    @property
    def page_index(self) -> int:
        return self.page or 0


class SearchItemResponse(BaseModel):
    """One search hit: the listing plus its computed ranking fields."""

    result: ResultResponse
    final_price: float
    score: float
