"""
Alerts router for managing target-price alerts and notifications.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from sqlalchemy import desc
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timezone
from decimal import Decimal

from esperto.database import get_db
from esperto.routers.auth import require_auth
from esperto.models import Notification, PriceAlert, User
from esperto.services.alerts import check_for_lower_prices, trigger_alert
from esperto.services.feature_gate import FeatureGate
from esperto.services.plans import PRICE_ALERTS
from esperto.services.policy_store import PolicyStore, get_policy_store

router = APIRouter(prefix="/alerts", tags=["alerts"])
notifications_router = APIRouter(prefix="/notifications", tags=["notifications"])

ALERT_LIMIT_MESSAGE = "Limite de alertas de preço do seu plano atingido. Faça upgrade para criar mais alertas."


# Schemas
class AlertCreate(BaseModel):
    product_name: str = Field(..., min_length=1, max_length=255)
    target_price: float = Field(..., gt=0)
    store_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None


class AlertUpdate(BaseModel):
    target_price: Optional[float] = Field(None, gt=0)
    store_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    is_active: Optional[bool] = None


class AlertResponse(BaseModel):
    id: int
    product_name: str
    target_price: float
    current_price: Optional[float]
    store_name: Optional[str]
    city: Optional[str]
    state: Optional[str]
    is_active: bool
    notification_sent: bool
    triggered_at: Optional[datetime]
    created_at: Optional[datetime]


class AlertCheckResponse(BaseModel):
    triggered: bool
    price: Optional[float] = None
    store_name: Optional[str] = None


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: Optional[str]
    data: Optional[dict]
    read_at: Optional[datetime]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


def _to_response(alert: PriceAlert) -> AlertResponse:
    return AlertResponse(
        id=alert.id,
        product_name=alert.product_name,
        target_price=float(alert.target_price),
        current_price=float(alert.current_price) if alert.current_price is not None else None,
        store_name=alert.store_name,
        city=alert.city,
        state=alert.state,
        is_active=alert.is_active,
        notification_sent=alert.notification_sent,
        triggered_at=alert.triggered_at,
        created_at=alert.created_at
    )


def _get_owned(db: Session, alert_id: int, user: User) -> PriceAlert:
    alert = db.query(PriceAlert).filter(
        PriceAlert.id == alert_id,
        PriceAlert.user_id == user.id
    ).first()
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


def _active_count(db: Session, user: User) -> int:
    return db.query(PriceAlert).filter(
        PriceAlert.user_id == user.id,
        PriceAlert.is_active == True
    ).count()


# Alert Endpoints
@router.get("", response_model=list[AlertResponse])
async def get_my_alerts(
    active_only: bool = Query(False, description="Only return active alerts"),
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """Get all alerts for the current user."""
    query = db.query(PriceAlert).filter(PriceAlert.user_id == current_user.id)

    if active_only:
        query = query.filter(PriceAlert.is_active == True)

    alerts = query.order_by(desc(PriceAlert.created_at), desc(PriceAlert.id)).all()
    return [_to_response(alert) for alert in alerts]


@router.post("", response_model=AlertResponse, status_code=201)
async def create_alert(
    alert_data: AlertCreate,
    current_user: User = Depends(require_auth),
    policy_store: PolicyStore = Depends(get_policy_store),
    db: Session = Depends(get_db)
):
    """Create a target-price alert. The number of active alerts depends on the plan."""
    gate = FeatureGate(db, policy_store)
    if not gate.validate_feature_access(current_user, PRICE_ALERTS, _active_count(db, current_user)):
        raise HTTPException(status_code=403, detail=ALERT_LIMIT_MESSAGE)

    alert = PriceAlert(
        user_id=current_user.id,
        product_name=alert_data.product_name.strip(),
        target_price=Decimal(str(alert_data.target_price)),
        store_name=alert_data.store_name,
        city=alert_data.city,
        state=alert_data.state
    )

    db.add(alert)
    db.commit()
    db.refresh(alert)
    return _to_response(alert)


@router.patch("/{alert_id}", response_model=AlertResponse)
async def update_alert(
    alert_id: int,
    alert_data: AlertUpdate,
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """Update an alert's settings. A new target re-arms the alert."""
    alert = _get_owned(db, alert_id, current_user)

    if alert_data.target_price is not None:
        alert.target_price = Decimal(str(alert_data.target_price))
        alert.notification_sent = False
        alert.triggered_at = None
    if alert_data.store_name is not None:
        alert.store_name = alert_data.store_name or None
    if alert_data.city is not None:
        alert.city = alert_data.city or None
    if alert_data.state is not None:
        alert.state = alert_data.state or None
    if alert_data.is_active is not None:
        alert.is_active = alert_data.is_active

    db.commit()
    db.refresh(alert)
    return _to_response(alert)


@router.post("/{alert_id}/toggle", response_model=AlertResponse)
async def toggle_alert(
    alert_id: int,
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    alert = _get_owned(db, alert_id, current_user)
    alert.is_active = not alert.is_active
    db.commit()
    db.refresh(alert)
    return _to_response(alert)


@router.delete("/{alert_id}")
async def delete_alert(
    alert_id: int,
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """Delete an alert."""
    alert = _get_owned(db, alert_id, current_user)
    db.delete(alert)
    db.commit()
    return {"status": "deleted"}


@router.post("/{alert_id}/check", response_model=AlertCheckResponse)
async def check_alert(
    alert_id: int,
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """Look for an existing offer at or below the alert's target and trigger it."""
    alert = _get_owned(db, alert_id, current_user)
    if not alert.is_active or alert.notification_sent:
        return AlertCheckResponse(triggered=False)

    offer = check_for_lower_prices(db, alert)
    if offer is None:
        return AlertCheckResponse(triggered=False)

    trigger_alert(db, alert, offer.price, offer.store_name)
    db.commit()
    return AlertCheckResponse(triggered=True, price=float(offer.price), store_name=offer.store_name)


# Notification Endpoints
@notifications_router.get("", response_model=list[NotificationResponse])
async def get_notifications(
    limit: int = Query(20, le=100),
    unread_only: bool = Query(False),
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """Get notifications for the current user."""
    query = db.query(Notification).filter(Notification.user_id == current_user.id)

    if unread_only:
        query = query.filter(Notification.read_at == None)

    return query.order_by(desc(Notification.created_at), desc(Notification.id)).limit(limit).all()


@notifications_router.get("/count")
async def get_unread_count(
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """Get count of unread notifications."""
    count = db.query(Notification).filter(
        Notification.user_id == current_user.id,
        Notification.read_at == None
    ).count()

    return {"unread_count": count}


@notifications_router.post("/{notification_id}/read")
async def mark_notification_read(
    notification_id: int,
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """Mark a notification as read."""
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == current_user.id
    ).first()

    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    notification.read_at = datetime.now(timezone.utc)
    db.commit()

    return {"status": "read"}


@notifications_router.post("/read-all")
async def mark_all_read(
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """Mark all notifications as read."""
    db.query(Notification).filter(
        Notification.user_id == current_user.id,
        Notification.read_at == None
    ).update({"read_at": datetime.now(timezone.utc)})

    db.commit()

    return {"status": "all_read"}
