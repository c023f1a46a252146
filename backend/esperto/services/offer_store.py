"""
Read access to daily offers for the contribution validator.
"""
from datetime import datetime
from typing import Protocol, Sequence

from sqlalchemy.orm import Session

from esperto.models import DailyOffer


class OfferRepository(Protocol):
    def user_offers_since(
        self, user_id: str, product_name: str, store_name: str, since: datetime
    ) -> Sequence[DailyOffer]:
        ...

    def location_offers_since(
        self, product_name: str, city: str, state: str, since: datetime
    ) -> Sequence[DailyOffer]:
        ...


class SqlOfferRepository:
    def __init__(self, db: Session):
        self.db = db

    def user_offers_since(self, user_id, product_name, store_name, since):
        """Offers by one user for a product at a store created at or after `since`."""
        return self.db.query(DailyOffer).filter(
            DailyOffer.user_id == user_id,
            DailyOffer.product_name == product_name.strip(),
            DailyOffer.store_name == store_name.strip(),
            DailyOffer.created_at >= since
        ).all()

    def location_offers_since(self, product_name, city, state, since):
        """Offers by any user for a product in a city created at or after `since`."""
        return self.db.query(DailyOffer).filter(
            DailyOffer.product_name == product_name.strip(),
            DailyOffer.city == city.strip(),
            DailyOffer.state == state.strip(),
            DailyOffer.created_at >= since
        ).all()
