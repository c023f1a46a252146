from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from esperto.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    quantity = Column(Numeric(10, 3), default=1)
    unit = Column(String(20), default="un")  # 'un', 'kg', 'g', 'l', 'ml'
    category = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    product_prices = relationship("ProductPrice", back_populates="product", cascade="all, delete-orphan")


class ProductPrice(Base):
    """Current price of a product at a store."""
    __tablename__ = "product_prices"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)
    comparison_id = Column(Integer, ForeignKey("comparisons.id", ondelete="SET NULL"), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("product_id", "store_id", name="uq_product_price"),
    )

    # Relationships
    product = relationship("Product", back_populates="product_prices")
    store = relationship("Store", back_populates="product_prices")
