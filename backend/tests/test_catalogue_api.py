"""Tests for products, stores and product prices."""

from esperto.models import ProductPrice


def create_product(client, headers, **overrides):
    body = {"name": "Arroz Tipo 1 5kg", "quantity": 1, "unit": "un", "category": "Grãos"}
    body.update(overrides)
    return client.post("/api/products", json=body, headers=headers)


def create_store(client, headers, name):
    return client.post("/api/stores", json={"name": name}, headers=headers)


def test_create_requires_auth(client):
    assert client.post("/api/products", json={"name": "Arroz"}).status_code == 401
    assert client.post("/api/stores", json={"name": "Mercado"}).status_code == 401


def test_stores_are_listed_by_name(client, user, auth_headers):
    create_store(client, auth_headers(user), "Mercado Zeta")
    create_store(client, auth_headers(user), "Atacadão")

    names = [s["name"] for s in client.get("/api/stores").json()]

    assert names == ["Atacadão", "Mercado Zeta"]


def test_duplicate_store_name_is_rejected(client, user, auth_headers):
    create_store(client, auth_headers(user), "Mercado São João")

    response = create_store(client, auth_headers(user), "mercado sao joao")

    assert response.status_code == 400


def test_product_price_upsert(client, db, user, auth_headers):
    headers = auth_headers(user)
    product = create_product(client, headers).json()
    store = create_store(client, headers, "Mercado A").json()

    first = client.post(
        "/api/product-prices",
        json={"product_id": product["id"], "store_id": store["id"], "price": 24.9},
        headers=headers,
    )
    second = client.post(
        "/api/product-prices",
        json={"product_id": product["id"], "store_id": store["id"], "price": 23.5},
        headers=headers,
    )

    assert first.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["price"] == 23.5
    assert db.query(ProductPrice).count() == 1


def test_product_price_unknown_product_is_404(client, user, auth_headers):
    store = create_store(client, auth_headers(user), "Mercado A").json()

    response = client.post(
        "/api/product-prices",
        json={"product_id": 999, "store_id": store["id"], "price": 1.0},
        headers=auth_headers(user),
    )

    assert response.status_code == 404


def test_products_include_prices(client, user, auth_headers):
    headers = auth_headers(user)
    product = create_product(client, headers).json()
    store = create_store(client, headers, "Mercado A").json()
    client.post(
        "/api/product-prices",
        json={"product_id": product["id"], "store_id": store["id"], "price": 24.9},
        headers=headers,
    )

    products = client.get("/api/products").json()

    assert products[0]["name"] == "Arroz Tipo 1 5kg"
    assert products[0]["prices"] == [{"store_id": store["id"], "store_name": "Mercado A", "price": 24.9}]


def test_grouped_products_merge_spelling_variants(client, user, auth_headers):
    headers = auth_headers(user)
    create_product(client, headers, name="Leite Integral 1L")
    create_product(client, headers, name="leite integral 2L")
    create_product(client, headers, name="Café 500g")

    groups = client.get("/api/products/grouped").json()

    assert len(groups) == 2
    milk = next(g for g in groups if g["variant_count"] == 2)
    assert len(milk["variants"]) == 2


def test_search_products(client, user, auth_headers):
    create_product(client, auth_headers(user), name="Feijão Carioca 1kg")

    assert [p["name"] for p in client.get("/api/products/search", params={"q": "carioca"}).json()] == [
        "Feijão Carioca 1kg"
    ]
