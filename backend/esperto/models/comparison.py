from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from esperto.database import Base


class Comparison(Base):
    """A saved shopping-list comparison across stores."""
    __tablename__ = "comparisons"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=True)
    date = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="comparisons")
    comparison_stores = relationship("ComparisonStore", back_populates="comparison", cascade="all, delete-orphan")
    comparison_products = relationship("ComparisonProduct", back_populates="comparison", cascade="all, delete-orphan")


class ComparisonStore(Base):
    __tablename__ = "comparison_stores"

    id = Column(Integer, primary_key=True, index=True)
    comparison_id = Column(Integer, ForeignKey("comparisons.id", ondelete="CASCADE"), nullable=False)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)

    comparison = relationship("Comparison", back_populates="comparison_stores")
    store = relationship("Store")


class ComparisonProduct(Base):
    __tablename__ = "comparison_products"

    id = Column(Integer, primary_key=True, index=True)
    comparison_id = Column(Integer, ForeignKey("comparisons.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    comparison = relationship("Comparison", back_populates="comparison_products")
    product = relationship("Product")
