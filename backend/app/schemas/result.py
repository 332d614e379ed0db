"""Crawl result Pydantic schemas."""

from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PriceSchema(BaseModel):
    """Prices in integer cents."""

    regular_price: int
    sale_price: Optional[int] = None


class ResultResponse(BaseModel):
    """A live-view listing."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    url: str
    price: PriceSchema
    query_time: int
    retailer: str
    category: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None)

    @classmethod
    def from_record(cls, record) -> "ResultResponse":
        return cls(
            id=record.id,
            name=record.name,
            url=record.url,
            price=PriceSchema(regular_price=record.regular_price, sale_price=record.sale_price),
            query_time=record.query_time,
            retailer=record.retailer,
            category=record.category,
            description=record.description,
            image_url=record.image_url,
            metadata=record.metadata_,
        )
