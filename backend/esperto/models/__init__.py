from esperto.models.user import User, UserRole
from esperto.models.store import Store
from esperto.models.product import Product, ProductPrice
from esperto.models.comparison import Comparison, ComparisonStore, ComparisonProduct
from esperto.models.contribution import PriceContribution, DailyOffer
from esperto.models.alert import PriceAlert, Notification
from esperto.models.report import MonthlyReport, Suggestion
from esperto.models.subscriber import Subscriber
from esperto.models.policy import RateLimitEntry, AdminAuditLog

__all__ = [
    "User",
    "UserRole",
    "Store",
    "Product",
    "ProductPrice",
    "Comparison",
    "ComparisonStore",
    "ComparisonProduct",
    "PriceContribution",
    "DailyOffer",
    "PriceAlert",
    "Notification",
    "MonthlyReport",
    "Suggestion",
    "Subscriber",
    "RateLimitEntry",
    "AdminAuditLog",
]
