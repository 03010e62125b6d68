from tabstock.extensions import db
from tabstock.models import RestockMovement
from tabstock.services import restock_service

from conftest import admin_headers, stock_of


def test_restock_accepts_and_returns_move_id(client, make_product):
    cola = make_product("Cola", qty=5)

    response = client.post(
        "/api/admin/restock",
        json={"items": [{"product_id": cola.id, "qty": -5}], "comment": "inventory count"},
        headers=admin_headers(),
    )

    assert response.status_code == 200
    assert response.json["ok"] is True
    move_id = response.json["move_id"]
    assert stock_of(cola.id) == 0

    response = client.get(f"/api/admin/restock/{move_id}", headers=admin_headers())
    assert response.status_code == 200
    movement = response.json["movement"]
    assert movement["comment"] == "inventory count"
    assert movement["lines"] == [{"position": 0, "product_id": cola.id, "qty_delta": -5, "qty_after": 0}]


def test_restock_insufficient_stock(client, make_product):
    cola = make_product("Cola", qty=5)

    response = client.post(
        "/api/admin/restock",
        json={"items": [{"product_id": cola.id, "qty": -6}]},
        headers=admin_headers(),
    )

    assert response.status_code == 400
    assert response.json["details"] == {"product_id": cola.id, "current_qty": 5, "requested_removal": 6}
    assert stock_of(cola.id) == 5
    assert db.session.query(RestockMovement).count() == 0


def test_restock_ignores_incomplete_rows(client, make_product):
    cola = make_product("Cola", qty=1)

    response = client.post(
        "/api/admin/restock",
        json={"items": [{"product_id": 0, "qty": 1}, {"product_id": cola.id, "qty": 6}, {"product_id": cola.id, "qty": 0}]},
        headers=admin_headers(),
    )

    assert response.status_code == 200
    assert stock_of(cola.id) == 7


def test_restock_empty_after_filtering(client, db_session):
    for body in ({"items": []}, {"items": [{"product_id": 0, "qty": 3}]}):
        response = client.post("/api/admin/restock", json=body, headers=admin_headers())
        assert response.status_code == 400, body


def test_restock_malformed_payload(client, db_session):
    for body in (None, {"comment": "x"}, {"items": "nope"}, {"items": [], "extra": 1}):
        response = client.post("/api/admin/restock", json=body, headers=admin_headers())
        assert response.status_code == 400, body


def test_restock_values_past_integer_column(client, make_product):
    cola_id = make_product("Cola", qty=5).id
    rows = (
        {"product_id": cola_id, "qty": 10**20},
        {"product_id": cola_id, "qty": -(10**20)},
        {"product_id": 10**20, "qty": 1},
        {"product_id": cola_id, "qty": 1e300},
        {"product_id": 1e300, "qty": 1},
    )
    for row in rows:
        response = client.post("/api/admin/restock", json={"items": [row]}, headers=admin_headers())
        assert response.status_code == 400, row
        assert "too large" in response.json["error"]

    assert stock_of(cola_id) == 5
    assert db.session.query(RestockMovement).count() == 0


def test_restock_unknown_product(client, db_session):
    response = client.post(
        "/api/admin/restock",
        json={"items": [{"product_id": 12345, "qty": 1}]},
        headers=admin_headers(),
    )
    assert response.status_code == 404


def test_restock_concurrent_change_is_409(client, make_product, monkeypatch):
    cola_id = make_product("Cola", qty=1).id
    monkeypatch.setattr(restock_service, "get_quantities", lambda ids, lock=False: {cola_id: 10})

    response = client.post(
        "/api/admin/restock",
        json={"items": [{"product_id": cola_id, "qty": -4}]},
        headers=admin_headers(),
    )

    assert response.status_code == 409
    assert response.json["retryable"] is True
    assert stock_of(cola_id) == 1


def test_unknown_movement(client, db_session):
    response = client.get("/api/admin/restock/doesnotexist", headers=admin_headers())
    assert response.status_code == 404


def test_list_products(client, make_product):
    make_product("Water", qty=3)
    make_product("Cola", qty=12)

    response = client.get("/api/admin/products", headers=admin_headers())

    assert response.status_code == 200
    assert [(p["name"], p["qty"]) for p in response.json["products"]] == [("Cola", 12), ("Water", 3)]
