"""Tests for price alert matching against accepted offers."""

from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from esperto.models import DailyOffer, Notification, PriceAlert
from esperto.services.alerts import (
    alert_emails,
    check_for_lower_prices,
    process_offer_alerts,
    send_emails,
)


@pytest.fixture
def watcher(make_user):
    return make_user(user_id="user_watcher", email="watcher@example.com", name="Watcher", plan="premium")


def add_offer(db, user, product="Leite Integral 1L", price="3.99", store="Mercado A", city="Campinas", state="SP"):
    offer = DailyOffer(
        user_id=user.id, contributor_name=user.name, product_name=product, store_name=store,
        city=city, state=state, price=Decimal(price), created_at=datetime.now()
    )
    db.add(offer)
    db.commit()
    return offer


def add_alert(db, user, product="leite integral", target="4.50", **filters):
    alert = PriceAlert(user_id=user.id, product_name=product, target_price=Decimal(target), **filters)
    db.add(alert)
    db.commit()
    return alert


def test_offer_at_or_below_target_triggers_alert(db, user, watcher):
    alert = add_alert(db, watcher)
    offer = add_offer(db, user)

    triggered = process_offer_alerts(db, offer)

    assert triggered == [alert]
    db.refresh(alert)
    assert alert.notification_sent is True
    assert alert.current_price == Decimal("3.99")
    assert alert.triggered_at is not None

    notification = db.query(Notification).filter_by(user_id=watcher.id).one()
    assert notification.type == "price_alert"
    assert notification.data["price"] == 3.99


def test_offer_above_target_does_not_trigger(db, user, watcher):
    add_alert(db, watcher, target="3.50")

    assert process_offer_alerts(db, add_offer(db, user)) == []


def test_alert_fires_only_once(db, user, watcher):
    add_alert(db, watcher)
    process_offer_alerts(db, add_offer(db, user))

    second = add_offer(db, user, store="Mercado B", price="3.79")
    assert process_offer_alerts(db, second) == []


def test_location_and_store_filters(db, user, watcher):
    add_alert(db, watcher, city="Recife")
    add_alert(db, watcher, store_name="Mercado Z")
    matching = add_alert(db, watcher, city="campinas", state="SP", store_name="mercado a")

    assert process_offer_alerts(db, add_offer(db, user)) == [matching]


def test_inactive_alerts_are_ignored(db, user, watcher):
    add_alert(db, watcher, is_active=False)

    assert process_offer_alerts(db, add_offer(db, user)) == []


def test_check_for_lower_prices_returns_cheapest_match(db, user, watcher):
    alert = add_alert(db, watcher)
    add_offer(db, user, price="4.20", store="Mercado A")
    cheapest = add_offer(db, user, price="3.89", store="Mercado B")
    add_offer(db, user, price="5.00", store="Mercado C")

    assert check_for_lower_prices(db, alert).id == cheapest.id


def test_check_for_lower_prices_respects_location(db, user, watcher):
    alert = add_alert(db, watcher, city="Recife", state="PE")
    add_offer(db, user, price="3.49", city="Campinas", state="SP")

    assert check_for_lower_prices(db, alert) is None

    local = add_offer(db, user, price="3.99", store="Mercado B", city="Recife", state="PE")
    assert check_for_lower_prices(db, alert).id == local.id


def test_check_for_lower_prices_ignores_accents(db, user, watcher):
    alert = add_alert(db, watcher, product="feijao carioca", target="9.00")
    offer = add_offer(db, user, product="Feijão Carioca 1kg", price="8.49")

    assert check_for_lower_prices(db, alert).id == offer.id


def test_alert_emails_and_sending(db, user, watcher):
    add_alert(db, watcher)
    offer = add_offer(db, user)
    triggered = process_offer_alerts(db, offer)

    messages = alert_emails(triggered, offer.price, offer.store_name)
    assert [m[0] for m in messages] == ["watcher@example.com"]

    service = MagicMock()
    service.send.return_value = True
    assert send_emails(messages, service) == 1
