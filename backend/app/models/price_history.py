"""Price history per listing."""

import uuid
from typing import List, Optional

from sqlalchemy import BigInteger, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class TrackedListing(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One (name, url) bucket of price history."""

    __tablename__ = "tracked_listings"

    name: Mapped[str] = mapped_column(String(500), nullable=False)
    url: Mapped[str] = mapped_column(String(2000), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("name", "url", name="uq_tracked_listings_name_url"),
    )

    points: Mapped[List["PricePoint"]] = relationship(
        back_populates="listing",
        cascade="all, delete-orphan",
        order_by="PricePoint.query_time",
    )

    def __repr__(self) -> str:
        return f"<TrackedListing(id={self.id}, name={self.name!r})>"


class PricePoint(UUIDPrimaryKeyMixin, Base):
    """Price observed for a listing at one crawl."""

    __tablename__ = "price_points"

    listing_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tracked_listings.id", ondelete="CASCADE"),
        nullable=False,
    )
    regular_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    sale_price: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    query_time: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        Index("idx_price_points_listing_time", "listing_id", "query_time"),
    )

    listing: Mapped["TrackedListing"] = relationship(back_populates="points")

    @property
    def effective_price(self) -> int:
        return self.sale_price if self.sale_price is not None else self.regular_price

    def __repr__(self) -> str:
        return f"<PricePoint(listing_id={self.listing_id}, regular_price={self.regular_price}, query_time={self.query_time})>"
