from pydantic import BaseModel
from datetime import datetime

from esperto.schemas.product import ProductWithPrices
from esperto.schemas.store import Store


class IdRef(BaseModel):
    id: int


class ComparisonCreate(BaseModel):
    products: list[IdRef]
    stores: list[IdRef]
    date: datetime | None = None
    title: str | None = None


class ComparisonUpdate(ComparisonCreate):
    pass


class Comparison(BaseModel):
    id: int
    user_id: str
    title: str | None
    date: datetime | None
    created_at: datetime | None
    stores: list[Store]
    products: list[ProductWithPrices]


class StoreTotal(BaseModel):
    store_id: int
    store_name: str
    total: float


class ComparisonSummary(BaseModel):
    comparison_id: int
    totals: list[StoreTotal]
    optimal_total: float
    highest: float
    lowest: float
    average: float
    savings: float
