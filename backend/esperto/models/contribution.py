"""
Models for crowd-sourced price contributions and the daily offers built from them.
"""
from datetime import date, datetime

from sqlalchemy import (
    Column, Integer, String, ForeignKey, Boolean, DateTime, Date, Numeric, Text,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship
from esperto.database import Base


class PriceContribution(Base):
    """A user-submitted price awaiting (or past) moderation."""
    __tablename__ = "price_contributions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    # Moderation
    status = Column(String(20), default="pending", index=True)  # pending, approved, rejected
    reviewed_by = Column(String(64), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Local wall-clock time; same-day checks compare against local midnight
    created_at = Column(DateTime, default=datetime.now, index=True)

    # Relationships
    user = relationship("User")
    product = relationship("Product")
    store = relationship("Store")


class DailyOffer(Base):
    """A de-duplicated, per-day price offer shown in comparisons."""
    __tablename__ = "daily_offers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    contributor_name = Column(String(200), nullable=False)
    product_name = Column(String(255), nullable=False)
    store_name = Column(String(200), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(50), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Numeric(10, 3), nullable=True)
    unit = Column(String(20), nullable=True)
    verified = Column(Boolean, default=False)
    offer_date = Column(Date, nullable=False, default=date.today)
    created_at = Column(DateTime, default=datetime.now, index=True)

    __table_args__ = (
        # One offer per user, product and store per calendar day
        UniqueConstraint("user_id", "product_name", "store_name", "offer_date", name="uq_daily_offer_per_day"),
        Index("idx_daily_offers_location", "product_name", "city", "state", "created_at"),
    )
