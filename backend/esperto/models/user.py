from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from esperto.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)  # Clerk user id (user_xxx)
    email = Column(String(255), index=True, default="")
    name = Column(String(200), nullable=True)
    plan = Column(String(20), default="free")  # free, premium, pro, empresarial, admin
    comparisons_made_this_month = Column(Integer, default=0)
    last_comparison_reset_month = Column(Integer, nullable=True)
    is_online = Column(Boolean, default=False)
    last_activity = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")
    comparisons = relationship("Comparison", back_populates="user", cascade="all, delete-orphan")
    price_alerts = relationship("PriceAlert", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")
    suggestions = relationship("Suggestion", back_populates="user", cascade="all, delete-orphan")
    subscriber = relationship("Subscriber", back_populates="user", uselist=False)


class UserRole(Base):
    """Role grants checked by the policy store ('admin')."""
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_role"),
    )

    user = relationship("User", back_populates="roles")
