"""Tests for /api/v1/cart endpoints."""

import pytest


@pytest.fixture
def headers(make_account, auth_headers):
    return auth_headers(make_account())


def test_empty_cart(client, headers):
    response = client.get("/api/v1/cart", headers=headers)

    assert response.status_code == 200
    assert response.json()["lines"] == []
    assert response.json()["total"] == 0


def test_add_replace_and_remove(client, headers, make_item):
    a = make_item(name="A", price=500)
    b = make_item(name="B", price=250)

    client.post("/api/v1/cart/items", json={"item_id": a.id, "quantity": 1}, headers=headers)
    client.post("/api/v1/cart/items", json={"item_id": b.id, "quantity": 2}, headers=headers)
    replaced = client.post(
        "/api/v1/cart/items", json={"item_id": a.id, "quantity": 3}, headers=headers
    )

    assert replaced.status_code == 200
    assert [(ln["name"], ln["quantity"]) for ln in replaced.json()["lines"]] == [
        ("A", 3),
        ("B", 2),
    ]
    assert replaced.json()["total"] == 2000

    removed = client.delete(f"/api/v1/cart/items/{a.id}", headers=headers)
    assert removed.json()["total"] == 500


def test_zero_quantity_rejected(client, headers, make_item):
    response = client.post(
        "/api/v1/cart/items", json={"item_id": make_item().id, "quantity": 0}, headers=headers
    )
    assert response.status_code == 400


def test_remove_from_missing_cart(client, headers):
    response = client.delete("/api/v1/cart/items/anything", headers=headers)
    assert response.status_code == 404


def test_clear(client, headers, make_item):
    client.post(
        "/api/v1/cart/items", json={"item_id": make_item().id, "quantity": 2}, headers=headers
    )

    response = client.delete("/api/v1/cart", headers=headers)

    assert response.status_code == 200
    assert response.json()["lines"] == []
