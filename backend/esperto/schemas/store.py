from pydantic import BaseModel, Field
from datetime import datetime


class StoreBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class StoreCreate(StoreBase):
    pass


class Store(StoreBase):
    id: int
    created_at: datetime | None = None

    class Config:
        from_attributes = True
