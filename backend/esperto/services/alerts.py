"""
Price alert matching.

An alert fires once: the first accepted offer at or below its target price
sets current_price, triggered_at and notification_sent, and creates an
in-app notification.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from esperto.models import DailyOffer, Notification, PriceAlert
from esperto.services.email_service import EmailService, price_alert_email
from esperto.services.normalization import are_strings_similar, normalize_string

logger = logging.getLogger(__name__)


def _location_matches(alert: PriceAlert, offer: DailyOffer) -> bool:
    if alert.city and normalize_string(alert.city) != normalize_string(offer.city):
        return False
    if alert.state and normalize_string(alert.state) != normalize_string(offer.state):
        return False
    if alert.store_name and not are_strings_similar(alert.store_name, offer.store_name):
        return False
    return True


def _offer_matches(alert: PriceAlert, offer: DailyOffer) -> bool:
    if normalize_string(alert.product_name) not in normalize_string(offer.product_name):
        return False
    return _location_matches(alert, offer)


def check_for_lower_prices(db: Session, alert: PriceAlert) -> Optional[DailyOffer]:
    """Cheapest offer matching the alert's product and location at or below its target price."""
    offers = db.query(DailyOffer).filter(
        DailyOffer.price <= alert.target_price
    ).order_by(DailyOffer.price.asc(), DailyOffer.created_at.desc()).all()

    for offer in offers:
        if _offer_matches(alert, offer):
            return offer
    return None


def trigger_alert(db: Session, alert: PriceAlert, price: Decimal, store_name: str) -> Notification:
    alert.current_price = price
    alert.triggered_at = datetime.now(timezone.utc)
    alert.notification_sent = True

    notification = Notification(
        user_id=alert.user_id,
        type="price_alert",
        title=f"{alert.product_name} abaixo do seu preço-alvo",
        message=f"{alert.product_name} por R$ {price:.2f} em {store_name}",
        data={
            "alert_id": alert.id,
            "product_name": alert.product_name,
            "price": float(price),
            "target_price": float(alert.target_price),
            "store_name": store_name,
        }
    )
    db.add(notification)
    return notification


def process_offer_alerts(db: Session, offer: DailyOffer) -> list[PriceAlert]:
    """Trigger every pending alert satisfied by a newly accepted offer."""
    candidates = db.query(PriceAlert).filter(
        PriceAlert.is_active == True,
        PriceAlert.notification_sent == False,
        PriceAlert.target_price >= offer.price
    ).all()

    triggered = []
    for alert in candidates:
        if not _offer_matches(alert, offer):
            continue

        trigger_alert(db, alert, Decimal(str(offer.price)), offer.store_name)
        triggered.append(alert)

    if triggered:
        db.commit()
        logger.info(f"Offer {offer.id} triggered {len(triggered)} price alerts")

    return triggered


def alert_emails(alerts: list[PriceAlert], price, store_name: str) -> list[tuple[str, str, str]]:
    """(to, subject, html) for each triggered alert whose owner has an email."""
    messages = []
    for alert in alerts:
        if alert.user is None or not alert.user.email:
            continue
        subject, html = price_alert_email(alert.product_name, price, store_name, alert.target_price)
        messages.append((alert.user.email, subject, html))
    return messages


def send_emails(messages: list[tuple[str, str, str]], email_service: EmailService) -> int:
    """Send prepared emails. Returns how many were accepted."""
    return sum(1 for to, subject, html in messages if email_service.send(to, subject, html))
