from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    quantity: float = 1
    unit: str = "un"
    category: str | None = None


class ProductCreate(ProductBase):
    pass


class StorePriceInfo(BaseModel):
    store_id: int
    store_name: str
    price: float


class Product(ProductBase):
    id: int
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class ProductWithPrices(Product):
    """Product with current prices from all stores."""
    prices: list[StorePriceInfo] = []


class ProductGroup(BaseModel):
    """Products whose names differ only in accents, case or spacing."""
    product: ProductWithPrices
    display_name: str
    variant_count: int
    variants: list[ProductWithPrices]


class ProductPriceCreate(BaseModel):
    product_id: int
    store_id: int
    price: Decimal = Field(..., gt=0)
    comparison_id: int | None = None


class ProductPrice(BaseModel):
    id: int
    product_id: int
    store_id: int
    comparison_id: int | None
    price: float

    class Config:
        from_attributes = True
