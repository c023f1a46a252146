from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal


class ContributionRequest(BaseModel):
    """A price seen in a store today."""
    product_name: str = Field(..., min_length=1, max_length=255)
    store_name: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=50)
    price: Decimal = Field(..., gt=0)
    quantity: Decimal | None = None
    unit: str | None = None


class ValidationResponse(BaseModel):
    is_valid: bool
    message: str
    price_difference: float | None = None


class DailyOffer(BaseModel):
    id: int
    user_id: str
    contributor_name: str
    product_name: str
    store_name: str
    city: str
    state: str
    price: float
    quantity: float | None = None
    unit: str | None = None
    verified: bool
    offer_date: date
    created_at: datetime


class DailyOfferSubmitted(BaseModel):
    offer: DailyOffer
    contribution_id: int
    status: str
    warning: str | None = None
    price_difference: float | None = None


class PriceContributionCreate(BaseModel):
    product_name: str = Field(..., min_length=1, max_length=255)
    store_name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., gt=0)
    quantity: Decimal | None = None
    unit: str | None = None


class PriceContribution(BaseModel):
    id: int
    user_id: str
    product_id: int
    product_name: str
    store_id: int
    store_name: str
    price: float
    status: str
    rejection_reason: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime


class AdminContribution(PriceContribution):
    contributor_email: str
    contributor_name: str | None = None


class RejectRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)
