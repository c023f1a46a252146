"""
Contribution Validator

Decides whether a price contribution is accepted, rejected as a same-day
duplicate, or accepted with a warning because it is far from today's mean
price for the same product in the same city.

The duplicate check here is a read-then-write check; the daily offers table
also carries a uniqueness constraint that catches concurrent submissions.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal
from typing import Callable, Optional

from esperto.services.offer_store import OfferRepository

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Você já contribuiu com este produto/loja hoje. Tente novamente amanhã."
VALID_MESSAGE = "Contribuição válida"
ERROR_MESSAGE = "Erro ao validar contribuição"
OUTLIER_MESSAGE = "Preço muito diferente da média (R$ {average:.2f}). Tem certeza?"


@dataclass
class ContributionInput:
    product_name: str
    store_name: str
    city: str
    state: str
    price: Decimal
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None


@dataclass
class ValidationResult:
    is_valid: bool
    message: str
    price_difference: Optional[float] = None  # percent
    average_price: Optional[Decimal] = None

    @property
    def is_outlier(self) -> bool:
        return self.price_difference is not None


def start_of_day(moment: datetime) -> datetime:
    """Local midnight of the given moment's day."""
    return datetime.combine(moment.date(), time.min)


def mean_price(prices: list[Decimal]) -> Decimal:
    return sum(prices, Decimal("0")) / len(prices)


class ContributionValidator:
    def __init__(
        self,
        offers: OfferRepository,
        outlier_threshold: float = 0.5,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.offers = offers
        self.outlier_threshold = Decimal(str(outlier_threshold))
        self.clock = clock

    def validate(
        self, contribution: ContributionInput, user_id: str, now: datetime | None = None
    ) -> ValidationResult:
        """Validate a contribution against the offers of `now`'s day. Read failures reject it."""
        try:
            return self._validate(contribution, user_id, now or self.clock())
        except Exception as e:
            logger.error(f"Error validating contribution from {user_id}: {e}")
            return ValidationResult(is_valid=False, message=ERROR_MESSAGE)

    def _validate(self, contribution: ContributionInput, user_id: str, now: datetime) -> ValidationResult:
        today = start_of_day(now)

        existing = self.offers.user_offers_since(
            user_id, contribution.product_name, contribution.store_name, today
        )
        if existing:
            return ValidationResult(is_valid=False, message=DUPLICATE_MESSAGE)

        similar = self.offers.location_offers_since(
            contribution.product_name, contribution.city, contribution.state, today
        )
        if similar:
            average = mean_price([Decimal(str(offer.price)) for offer in similar])
            if average > 0:
                price = Decimal(str(contribution.price))
                deviation = abs(price - average) / average
                if deviation > self.outlier_threshold:
                    logger.info(
                        f"Outlier price for {contribution.product_name} in {contribution.city}: "
                        f"{price} vs mean {average:.2f}"
                    )
                    return ValidationResult(
                        is_valid=True,
                        message=OUTLIER_MESSAGE.format(average=average),
                        price_difference=float(deviation * 100),
                        average_price=average,
                    )

        return ValidationResult(is_valid=True, message=VALID_MESSAGE)
