from esperto.schemas.store import Store, StoreCreate
from esperto.schemas.product import (
    Product, ProductCreate, ProductWithPrices, ProductGroup, StorePriceInfo,
    ProductPrice, ProductPriceCreate,
)
from esperto.schemas.comparison import (
    Comparison, ComparisonCreate, ComparisonUpdate, ComparisonSummary, StoreTotal,
)
from esperto.schemas.contribution import (
    ContributionRequest, ValidationResponse, DailyOffer, DailyOfferSubmitted,
    PriceContribution, PriceContributionCreate, AdminContribution, RejectRequest,
)

__all__ = [
    "Store", "StoreCreate",
    "Product", "ProductCreate", "ProductWithPrices", "ProductGroup", "StorePriceInfo",
    "ProductPrice", "ProductPriceCreate",
    "Comparison", "ComparisonCreate", "ComparisonUpdate", "ComparisonSummary", "StoreTotal",
    "ContributionRequest", "ValidationResponse", "DailyOffer", "DailyOfferSubmitted",
    "PriceContribution", "PriceContributionCreate", "AdminContribution", "RejectRequest",
]
