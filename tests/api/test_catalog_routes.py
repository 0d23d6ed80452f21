"""Tests for /api/v1/catalog endpoints."""

import pytest


@pytest.fixture
def partner_headers(make_partner, auth_headers):
    return auth_headers(make_partner().account)


def test_partner_creates_and_reads_item(client, partner_headers):
    created = client.post(
        "/api/v1/catalog/items",
        json={"name": "Poulet DG", "price": 3500, "stock": 10},
        headers=partner_headers,
    )

    assert created.status_code == 201
    item = created.json()
    assert item["category"] == "Local Meals"

    fetched = client.get(f"/api/v1/catalog/items/{item['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["price"] == 3500


def test_patch_applies_only_sent_fields(client, partner_headers):
    item = client.post(
        "/api/v1/catalog/items",
        json={"name": "Poulet DG", "price": 3500, "stock": 10, "description": "Spicy"},
        headers=partner_headers,
    ).json()

    response = client.patch(
        f"/api/v1/catalog/items/{item['id']}",
        json={"stock": None},
        headers=partner_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["stock"] is None
    assert body["price"] == 3500
    assert body["description"] == "Spicy"


def test_negative_price_rejected(client, partner_headers):
    response = client.post(
        "/api/v1/catalog/items", json={"name": "Eru", "price": -5}, headers=partner_headers
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_input"


def test_client_cannot_create(client, make_account, auth_headers):
    response = client.post(
        "/api/v1/catalog/items",
        json={"name": "Eru", "price": 100},
        headers=auth_headers(make_account()),
    )
    assert response.status_code == 403


def test_unknown_item(client):
    response = client.get("/api/v1/catalog/items/missing")
    assert response.status_code == 404


def test_list_items_by_partner(client, make_item, make_partner, auth_headers):
    make_item(name="B")
    make_item(name="A")
    other = make_partner(business_name="Other")
    client.post(
        "/api/v1/catalog/items",
        json={"name": "C", "price": 100},
        headers=auth_headers(other.account),
    )

    everything = client.get("/api/v1/catalog/items").json()
    mine = client.get(
        "/api/v1/catalog/items", params={"partner_account_id": other.account_id}
    ).json()

    assert [i["name"] for i in everything["items"]] == ["A", "B", "C"]
    assert mine["total"] == 1
    assert mine["items"][0]["name"] == "C"


def test_delete_item(client, partner_headers):
    item = client.post(
        "/api/v1/catalog/items", json={"name": "Eru", "price": 100}, headers=partner_headers
    ).json()

    response = client.delete(f"/api/v1/catalog/items/{item['id']}", headers=partner_headers)

    assert response.status_code == 204
    assert client.get(f"/api/v1/catalog/items/{item['id']}").status_code == 404


def test_delete_item_of_other_partner(client, make_item, partner_headers):
    item = make_item()

    response = client.delete(f"/api/v1/catalog/items/{item.id}", headers=partner_headers)

    assert response.status_code == 403
    assert client.get(f"/api/v1/catalog/items/{item.id}").status_code == 200
