"""Tests for bearer authentication and the profile endpoint."""

from datetime import timedelta

from esperto.services.auth import create_access_token, decode_token


def test_token_round_trip_keeps_subject():
    token = create_access_token({"sub": "user_abc"})

    assert decode_token(token)["sub"] == "user_abc"


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "user_abc"}, expires_delta=timedelta(minutes=-1))

    assert decode_token(token) is None


def test_me_requires_bearer(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["detail"] == "Unauthorized"
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_me_rejects_garbage_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


def test_me_rejects_unknown_user(client):
    token = create_access_token({"sub": "user_ghost"})

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired token"


def test_disabled_user_is_forbidden(client, db, user, auth_headers):
    user.is_active = False
    db.commit()

    response = client.get("/api/auth/me", headers=auth_headers(user))

    assert response.status_code == 403
    assert response.json()["detail"] == "User account is disabled"


def test_me_returns_profile_and_limits(client, user, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers(user))

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == user.id
    assert data["effective_plan"] == "free"
    assert data["comparisons_limit"] == 5
    assert data["is_admin"] is False


def test_me_marks_user_online(client, db, user, auth_headers):
    client.get("/api/auth/me", headers=auth_headers(user))

    db.refresh(user)
    assert user.is_online is True
    assert user.last_activity is not None
