"""
Monthly spending reports and product suggestions.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import desc
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

from esperto.database import get_db
from esperto.routers.auth import require_auth
from esperto.models import MonthlyReport, Suggestion, User
from esperto.services.plans import REPORTS_HISTORY, UNLIMITED, get_feature_limit
from esperto.services.policy_store import ADMIN_PLAN, PolicyStore, effective_plan, get_policy_store

router = APIRouter(prefix="/reports", tags=["reports"])
suggestions_router = APIRouter(prefix="/suggestions", tags=["suggestions"])


# Schemas
class MonthlyReportCreate(BaseModel):
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)
    total_spent: float = Field(..., ge=0)


class MonthlyReportResponse(BaseModel):
    id: int
    month: str
    year: int
    total_spent: float
    created_at: Optional[datetime]


class SuggestionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    category: str = Field(..., min_length=1, max_length=50)


class SuggestionResponse(BaseModel):
    id: int
    title: str
    description: str
    category: str
    status: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


def _report_response(report: MonthlyReport) -> MonthlyReportResponse:
    return MonthlyReportResponse(
        id=report.id,
        month=report.month,
        year=report.year,
        total_spent=float(report.total_spent or 0),
        created_at=report.created_at
    )


@router.get("/monthly", response_model=list[MonthlyReportResponse])
def get_monthly_reports(
    user: User = Depends(require_auth),
    policy_store: PolicyStore = Depends(get_policy_store),
    db: Session = Depends(get_db)
):
    """The caller's monthly reports, newest first, as far back as the plan allows."""
    query = db.query(MonthlyReport).filter(
        MonthlyReport.user_id == user.id
    ).order_by(desc(MonthlyReport.year), desc(MonthlyReport.month))

    plan = effective_plan(db, user)
    if plan == ADMIN_PLAN or policy_store.is_admin(user.id):
        history = UNLIMITED
    else:
        history = get_feature_limit(plan, REPORTS_HISTORY)
    if history != UNLIMITED:
        query = query.limit(history)

    return [_report_response(r) for r in query.all()]


@router.post("/monthly", response_model=MonthlyReportResponse)
def save_monthly_report(
    data: MonthlyReportCreate,
    user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """Create or replace the report for one month."""
    month = f"{data.month:02d}"
    report = db.query(MonthlyReport).filter(
        MonthlyReport.user_id == user.id,
        MonthlyReport.month == month,
        MonthlyReport.year == data.year
    ).first()

    if report:
        report.total_spent = Decimal(str(data.total_spent))
    else:
        report = MonthlyReport(
            user_id=user.id,
            month=month,
            year=data.year,
            total_spent=Decimal(str(data.total_spent))
        )
        db.add(report)

    db.commit()
    db.refresh(report)
    return _report_response(report)


@suggestions_router.get("", response_model=list[SuggestionResponse])
def get_my_suggestions(
    user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    return db.query(Suggestion).filter(
        Suggestion.user_id == user.id
    ).order_by(desc(Suggestion.created_at), desc(Suggestion.id)).all()


@suggestions_router.post("", response_model=SuggestionResponse, status_code=201)
def create_suggestion(
    data: SuggestionCreate,
    user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    suggestion = Suggestion(
        user_id=user.id,
        title=data.title.strip(),
        description=data.description.strip(),
        category=data.category
    )
    db.add(suggestion)
    db.commit()
    db.refresh(suggestion)
    return suggestion
