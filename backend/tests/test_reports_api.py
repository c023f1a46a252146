"""Tests for monthly reports and suggestions."""


def test_report_upsert(client, user, auth_headers):
    headers = auth_headers(user)

    client.post("/api/reports/monthly", json={"month": 3, "year": 2026, "total_spent": 850.4}, headers=headers)
    updated = client.post("/api/reports/monthly", json={"month": 3, "year": 2026, "total_spent": 910}, headers=headers)

    assert updated.json()["month"] == "03"
    assert updated.json()["total_spent"] == 910.0


def test_free_plan_sees_only_latest_month(client, user, auth_headers):
    headers = auth_headers(user)
    for month in (1, 2, 3):
        client.post("/api/reports/monthly", json={"month": month, "year": 2026, "total_spent": 100}, headers=headers)

    reports = client.get("/api/reports/monthly", headers=headers).json()

    assert [(r["year"], r["month"]) for r in reports] == [(2026, "03")]


def test_admin_sees_full_history_newest_first(client, admin, auth_headers):
    headers = auth_headers(admin)
    for year, month in ((2025, 12), (2026, 2), (2026, 1)):
        client.post("/api/reports/monthly", json={"month": month, "year": year, "total_spent": 100}, headers=headers)

    reports = client.get("/api/reports/monthly", headers=headers).json()

    assert [(r["year"], r["month"]) for r in reports] == [(2026, "02"), (2026, "01"), (2025, "12")]


def test_invalid_month_is_rejected(client, user, auth_headers):
    response = client.post(
        "/api/reports/monthly", json={"month": 13, "year": 2026, "total_spent": 1}, headers=auth_headers(user)
    )

    assert response.status_code == 422


def test_suggestions(client, user, auth_headers):
    headers = auth_headers(user)
    created = client.post(
        "/api/suggestions",
        json={"title": "Modo escuro", "description": "Seria ótimo ter modo escuro", "category": "interface"},
        headers=headers,
    )

    assert created.status_code == 201
    assert created.json()["status"] == "open"
    assert [s["title"] for s in client.get("/api/suggestions", headers=headers).json()] == ["Modo escuro"]
