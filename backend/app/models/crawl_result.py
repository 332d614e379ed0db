"""Raw crawl log and the live view materialized from it."""

from typing import Optional

from sqlalchemy import JSON, BigInteger, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.enums import Category, RetailerName
from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.scrapers.base import CrawlResult, Price, metadata_from_dict, metadata_to_dict

_JSONType = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")


class CrawlResultColumns:
    """Columns shared by the raw log and the live view.

    Prices are integer cents, query_time is unix seconds.
    """

    name: Mapped[str] = mapped_column(String(500), nullable=False)
    url: Mapped[str] = mapped_column(String(2000), nullable=False)
    regular_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    sale_price: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    query_time: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    retailer: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(2000), nullable=True)
    round_count: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Denormalized from ammunition metadata for unit price sorting",
    )
    metadata_: Mapped[Optional[dict]] = mapped_column("metadata", _JSONType, nullable=True)

    @property
    def effective_price(self) -> int:
        return self.sale_price if self.sale_price is not None else self.regular_price

    @classmethod
    def from_crawl_result(cls, result: CrawlResult):
        return cls(
            name=result.name,
            url=result.url,
            regular_price=result.price.regular_price,
            sale_price=result.price.sale_price,
            query_time=result.query_time,
            retailer=result.retailer.value,
            category=result.category.value,
            description=result.description,
            image_url=result.image_url,
            round_count=result.round_count,
            metadata_=metadata_to_dict(result.metadata),
        )

    def to_crawl_result(self) -> CrawlResult:
        return CrawlResult(
            name=self.name,
            url=self.url,
            price=Price(regular_price=self.regular_price, sale_price=self.sale_price),
            retailer=RetailerName(self.retailer),
            category=Category(self.category),
            description=self.description,
            image_url=self.image_url,
            metadata=metadata_from_dict(self.metadata_),
            query_time=self.query_time,
        )


class CrawlResultRecord(UUIDPrimaryKeyMixin, CrawlResultColumns, TimestampMixin, Base):
    """Append-only log of every result ever crawled."""

    __tablename__ = "crawl_results"

    __table_args__ = (
        Index("idx_crawl_results_name_url", "name", "url"),
    )

    def __repr__(self) -> str:
        return f"<CrawlResultRecord(id={self.id}, name={self.name!r}, query_time={self.query_time})>"


class LiveResult(UUIDPrimaryKeyMixin, CrawlResultColumns, Base):
    """Recent subset of the raw log that search reads from.

    Rows are copied from crawl_results with the same id by the merge and
    deleted by the prune; they are never updated.
    """

    __tablename__ = "live_results"

    __table_args__ = (
        Index("idx_live_results_name_url", "name", "url"),
    )

    def __repr__(self) -> str:
        return f"<LiveResult(id={self.id}, name={self.name!r}, query_time={self.query_time})>"
