"""
Tables backing the policy store: rate-limit counters and the admin audit trail.
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func
from esperto.database import Base


class RateLimitEntry(Base):
    """Attempt counter for one caller on one endpoint."""
    __tablename__ = "rate_limits"

    id = Column(Integer, primary_key=True, index=True)
    identifier = Column(String(100), nullable=False)  # user id or client address
    endpoint = Column(String(100), nullable=False)
    attempt_count = Column(Integer, default=0)
    window_start = Column(DateTime, nullable=False)
    blocked_until = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("identifier", "endpoint", name="uq_rate_limit_identifier_endpoint"),
    )


class AdminAuditLog(Base):
    """Record of an administrative or automated maintenance action."""
    __tablename__ = "admin_audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    admin_id = Column(String(64), nullable=True)  # None for scheduled jobs
    action_type = Column(String(50), nullable=False)
    target_user_id = Column(String(64), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
