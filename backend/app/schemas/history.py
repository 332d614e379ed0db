"""Price history Pydantic schemas."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class PriceHistoryPoint(BaseModel):
    """Single price history data point."""

    model_config = ConfigDict(from_attributes=True)

    regular_price: int
    sale_price: Optional[int] = None
    query_time: int


class DailyPricePoint(BaseModel):
    """Lowest effective price seen on one UTC day; null on days without data."""

    normalized_timestamp: int
    price: Optional[int] = None


class PriceHistoryResponse(BaseModel):
    history: List[DailyPricePoint]
    lowest_price: Optional[PriceHistoryPoint] = None
    highest_price: Optional[PriceHistoryPoint] = None
