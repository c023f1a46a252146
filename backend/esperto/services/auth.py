"""
Authentication Service

Verifies bearer session tokens and resolves them to users.
Users themselves are provisioned by the Clerk webhook (see users.py).
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from esperto.models import User
from esperto.config import get_settings


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed session token."""
    settings = get_settings()
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate a session token."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    """Get a user by ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_current_user_from_token(db: Session, token: str) -> Optional[User]:
    """Get the current user from a session token."""
    payload = decode_token(token)
    if payload is None:
        return None

    sub = payload.get("sub")
    if not sub:
        return None

    return get_user_by_id(db, str(sub))


def touch_activity(db: Session, user: User) -> None:
    """Record that the user was seen just now."""
    user.is_online = True
    user.last_activity = datetime.now(timezone.utc)
    db.commit()
