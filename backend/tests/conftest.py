"""Shared test fixtures: in-memory database, API client and users."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import esperto.models  # noqa: F401
from esperto.database import Base, get_db
from esperto.main import app
from esperto.models import User, UserRole
from esperto.services.auth import create_access_token
from esperto.services.cache import CacheService, get_cache
from esperto.services.email_service import EmailService, get_email_service


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def email_service():
    """EmailService double that accepts every message."""
    service = MagicMock(spec=EmailService)
    service.send.return_value = True
    return service


@pytest.fixture
def client(db, email_service):
    """TestClient wired to the test session, a disconnected cache and the email double."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: CacheService()
    app.dependency_overrides[get_email_service] = lambda: email_service

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Factory creating users; `admin=True` also grants the admin role."""

    def _make(user_id="user_1", email="maria@example.com", name="Maria Silva", plan="free", admin=False):
        user = User(id=user_id, email=email, name=name, plan=plan)
        db.add(user)
        if admin:
            db.add(UserRole(user_id=user_id, role="admin"))
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(user_id="user_admin", email="admin@example.com", name="Admin", admin=True)


@pytest.fixture
def auth_headers():
    """Bearer headers for a user."""

    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}

    return _headers
