"""Tests for the contribution validator."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

import pytest

from esperto.services.contribution_validator import (
    DUPLICATE_MESSAGE,
    ERROR_MESSAGE,
    VALID_MESSAGE,
    ContributionInput,
    ContributionValidator,
    start_of_day,
)
from esperto.services.offer_store import SqlOfferRepository
from esperto.models import DailyOffer

pytestmark = pytest.mark.unit

NOW = datetime(2026, 3, 10, 15, 30)


@dataclass
class Offer:
    user_id: str
    product_name: str
    store_name: str
    city: str
    state: str
    price: Decimal
    created_at: datetime


class InMemoryOffers:
    """OfferRepository over a plain list."""

    def __init__(self, offers):
        self.offers = offers

    def user_offers_since(self, user_id, product_name, store_name, since):
        return [
            o for o in self.offers
            if o.user_id == user_id and o.product_name == product_name
            and o.store_name == store_name and o.created_at >= since
        ]

    def location_offers_since(self, product_name, city, state, since):
        return [
            o for o in self.offers
            if o.product_name == product_name and o.city == city
            and o.state == state and o.created_at >= since
        ]


class BrokenOffers:
    def user_offers_since(self, *args):
        raise ConnectionError("database unavailable")

    def location_offers_since(self, *args):
        raise ConnectionError("database unavailable")


def contribution(product="Arroz 5kg", store="Mercado A", price="20.00", city="Campinas", state="SP"):
    return ContributionInput(
        product_name=product, store_name=store, city=city, state=state, price=Decimal(price)
    )


def validator(offers):
    return ContributionValidator(InMemoryOffers(offers), clock=lambda: NOW)


class RecordingOffers(InMemoryOffers):
    def __init__(self):
        super().__init__([])
        self.since = []

    def user_offers_since(self, user_id, product_name, store_name, since):
        self.since.append(since)
        return super().user_offers_since(user_id, product_name, store_name, since)


def test_submission_checks_and_stores_the_same_day(db, user):
    from esperto.services.contributions import submit_daily_offer

    just_after_midnight = datetime(2026, 3, 11, 0, 0, 5)
    offers = RecordingOffers()
    # The validator's own clock still reads the previous day
    stale = ContributionValidator(offers, clock=lambda: datetime(2026, 3, 10, 23, 59, 59))

    offer, _, _ = submit_daily_offer(db, user, contribution(), stale, clock=lambda: just_after_midnight)

    assert offers.since == [start_of_day(just_after_midnight)]
    assert offer.offer_date == just_after_midnight.date()
    assert offer.created_at == just_after_midnight


def test_start_of_day_is_local_midnight():
    assert start_of_day(NOW) == datetime(2026, 3, 10, 0, 0)


def test_first_contribution_is_valid():
    result = validator([]).validate(contribution(), "u1")

    assert result.is_valid is True
    assert result.message == VALID_MESSAGE
    assert result.price_difference is None


def test_same_user_same_product_store_today_is_duplicate():
    offers = [Offer("u1", "Arroz 5kg", "Mercado A", "Campinas", "SP", Decimal("19.90"), datetime(2026, 3, 10, 8, 0))]

    result = validator(offers).validate(contribution(), "u1")

    assert result.is_valid is False
    assert result.message == DUPLICATE_MESSAGE
    assert "hoje" in result.message


def test_yesterdays_offer_is_not_a_duplicate():
    offers = [Offer("u1", "Arroz 5kg", "Mercado A", "Campinas", "SP", Decimal("19.90"), datetime(2026, 3, 9, 23, 59))]

    result = validator(offers).validate(contribution(), "u1")

    assert result.is_valid is True
    assert result.message == VALID_MESSAGE


def test_other_users_offer_is_not_a_duplicate():
    offers = [Offer("u2", "Arroz 5kg", "Mercado A", "Campinas", "SP", Decimal("20.10"), datetime(2026, 3, 10, 9, 0))]

    result = validator(offers).validate(contribution(), "u1")

    assert result.is_valid is True
    assert result.message == VALID_MESSAGE


def test_same_product_at_another_store_is_allowed():
    offers = [Offer("u1", "Arroz 5kg", "Mercado B", "Campinas", "SP", Decimal("20.00"), datetime(2026, 3, 10, 9, 0))]

    result = validator(offers).validate(contribution(), "u1")

    assert result.is_valid is True


def test_price_far_from_mean_is_accepted_with_warning():
    offers = [
        Offer("u2", "Leite 1L", "Mercado A", "Campinas", "SP", Decimal("4.00"), datetime(2026, 3, 10, 9, 0)),
        Offer("u3", "Leite 1L", "Mercado B", "Campinas", "SP", Decimal("4.20"), datetime(2026, 3, 10, 10, 0)),
        Offer("u4", "Leite 1L", "Mercado C", "Campinas", "SP", Decimal("4.10"), datetime(2026, 3, 10, 11, 0)),
    ]

    result = validator(offers).validate(contribution(product="Leite 1L", store="Mercado D", price="8.00"), "u1")

    assert result.is_valid is True
    assert result.is_outlier
    assert "4.10" in result.message
    assert result.price_difference == pytest.approx(95.12, abs=0.01)


def test_price_within_threshold_is_plain_valid():
    offers = [
        Offer("u2", "Leite 1L", "Mercado A", "Campinas", "SP", Decimal("4.00"), datetime(2026, 3, 10, 9, 0)),
    ]

    result = validator(offers).validate(contribution(product="Leite 1L", store="Mercado D", price="5.00"), "u1")

    assert result.is_valid is True
    assert result.message == VALID_MESSAGE
    assert result.price_difference is None


def test_offers_in_other_cities_do_not_count_for_mean():
    offers = [
        Offer("u2", "Leite 1L", "Mercado A", "Recife", "PE", Decimal("4.00"), datetime(2026, 3, 10, 9, 0)),
    ]

    result = validator(offers).validate(contribution(product="Leite 1L", price="8.00"), "u1")

    assert result.price_difference is None


def test_threshold_is_configurable():
    offers = [
        Offer("u2", "Leite 1L", "Mercado A", "Campinas", "SP", Decimal("4.00"), datetime(2026, 3, 10, 9, 0)),
    ]
    strict = ContributionValidator(InMemoryOffers(offers), outlier_threshold=0.1, clock=lambda: NOW)

    result = strict.validate(contribution(product="Leite 1L", price="4.60"), "u1")

    assert result.is_valid is True
    assert result.price_difference == pytest.approx(15.0)


def test_read_failure_rejects_contribution():
    broken = ContributionValidator(BrokenOffers(), clock=lambda: NOW)

    result = broken.validate(contribution(), "u1")

    assert result.is_valid is False
    assert result.message == ERROR_MESSAGE


def test_sql_repository_matches_trimmed_names(db, user):
    db.add(DailyOffer(
        user_id=user.id, contributor_name="Maria", product_name="Arroz 5kg", store_name="Mercado A",
        city="Campinas", state="SP", price=Decimal("20.00"), created_at=datetime.now()
    ))
    db.commit()
    repo = SqlOfferRepository(db)
    since = start_of_day(datetime.now())

    assert len(repo.user_offers_since(user.id, " Arroz 5kg ", "Mercado A", since)) == 1
    assert len(repo.location_offers_since("Arroz 5kg", "Campinas ", "SP", since)) == 1
    assert repo.user_offers_since("someone_else", "Arroz 5kg", "Mercado A", since) == []
