import json
import logging
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from boba_pos.core.errors import PersistenceFailure, ValidationError
from boba_pos.main import create_app
from boba_pos.models.inventory import InventoryItem, InventoryUsage
from boba_pos.models.order import Order
from boba_pos.models.order_item import OrderItem
from boba_pos.routers import orders as orders_router
from boba_pos.services import deduction
from boba_pos.services.orders import OrderLineRequest, create_order, validate_order_request, verify_prices
from tests.fixtures_data import order_line, order_payload, quantities


def test_create_order_deducts_milk_tea_ingredients(client, db, catalog, stock):
    payload = order_payload(order_line(catalog["Classic Milk Tea"]))

    response = client.post("/api/orders", json=payload)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["warnings"] == []
    assert len(body["items"]) == 1

    after = quantities(db)
    assert after["Tea"] == stock["Tea"] - 8
    assert after["Milk"] == stock["Milk"] - 4
    assert after["Sugar"] == stock["Sugar"] - 1
    assert after["Ice"] == stock["Ice"] - 6
    assert after["Cups"] == stock["Cups"] - 1
    assert after["Straws"] == stock["Straws"] - 1


def test_fruit_tea_uses_no_milk_and_scales_with_size(client, db, catalog, stock):
    line = order_line(
        catalog["Mango Green Tea"],
        itemName="Mango Green Tea",
        size="large",
        sugarLevel="half-sugar",
        iceLevel="less",
        quantity=2,
        price=11.00,
    )

    response = client.post("/api/orders", json=order_payload(line))

    assert response.status_code == 201
    after = quantities(db)
    assert after["Milk"] == stock["Milk"]
    assert after["Tea"] == pytest.approx(stock["Tea"] - 8 * 1.3 * 2)
    assert after["Sugar"] == pytest.approx(stock["Sugar"] - 1 * 1.3 * 0.5 * 2)
    assert after["Ice"] == pytest.approx(stock["Ice"] - 6 * 1.3 * 0.5 * 2)
    assert after["Cups"] == stock["Cups"] - 2


def test_no_sugar_skips_sugar_deduction(client, db, catalog, stock):
    line = order_line(catalog["Classic Milk Tea"], sugarLevel="no-sugar")

    response = client.post("/api/orders", json=order_payload(line))

    assert response.status_code == 201
    assert response.json()["warnings"] == []
    assert quantities(db)["Sugar"] == stock["Sugar"]


def test_insufficient_and_missing_stock_are_reported_as_warnings(client, db, catalog, stock):
    tea = db.query(InventoryItem).filter_by(ingredient_name="Tea").one()
    tea.quantity = 5
    db.commit()

    line = order_line(catalog["Classic Milk Tea"], toppings=["boba"], price=5.75)
    response = client.post("/api/orders", json=order_payload(line))

    assert response.status_code == 201
    warnings = {warning["ingredient"]: warning for warning in response.json()["warnings"]}
    assert warnings["Tea"]["status"] == "skipped_insufficient"
    assert warnings["Tea"]["amount"] == 8
    assert warnings["Boba"]["status"] == "skipped_missing"
    assert set(warnings) == {"Tea", "Boba"}

    after = quantities(db)
    assert after["Tea"] == 5
    assert after["Milk"] == stock["Milk"] - 4


def test_round_trip_preserves_items_in_order(client, catalog, stock):
    lines = [
        order_line(catalog["Classic Milk Tea"], size="large", toppings=["boba", "pudding"], price=7.00),
        order_line(catalog["Mango Green Tea"], itemName="Mango Green Tea", sugarLevel="extra-sugar", price=5.25),
        order_line(catalog["Classic Milk Tea"], size="small", quantity=3, iceLevel="extra", price=13.50),
    ]
    created = client.post("/api/orders", json=order_payload(*lines, total_price=27.81)).json()

    fetched = client.get(f"/api/orders/{created['id']}")

    assert fetched.status_code == 200
    body = fetched.json()
    assert body["totalPrice"] == 27.81
    assert len(body["items"]) == 3
    for sent, stored in zip(lines, body["items"]):
        assert stored["menuItemId"] == sent["menuItemId"]
        assert stored["itemName"] == sent["itemName"]
        assert stored["price"] == sent["price"]
        assert stored["size"] == sent["size"]
        assert stored["sugarLevel"] == sent["sugarLevel"]
        assert stored["iceLevel"] == sent["iceLevel"]
        assert stored["toppings"] == sent["toppings"]
        assert stored["quantity"] == sent["quantity"]


def test_caller_prices_are_stored_as_given(client, catalog, stock):
    line = order_line(catalog["Classic Milk Tea"], price=1.23)

    response = client.post("/api/orders", json=order_payload(line, total_price=99.99))

    assert response.status_code == 201
    assert response.json()["totalPrice"] == 99.99
    assert response.json()["items"][0]["price"] == 1.23


def test_failure_on_second_item_rolls_back_everything(client, db, catalog, stock):
    before = quantities(db)
    real_deduct = deduction.deduct_for_item
    calls = {"count": 0}

    def flaky_deduct(session, order_item, **kwargs):
        calls["count"] += 1
        if calls["count"] == 2:
            raise RuntimeError("deduction query failed")
        return real_deduct(session, order_item, **kwargs)

    lines = [order_line(catalog["Classic Milk Tea"]) for _ in range(3)]
    with patch("boba_pos.services.deduction.deduct_for_item", side_effect=flaky_deduct):
        response = client.post("/api/orders", json=order_payload(*lines))

    assert response.status_code == 500
    assert response.json()["error"] == "persistence_failure"
    assert "deduction query failed" not in response.json()["message"]
    assert calls["count"] == 2

    assert client.get("/api/orders").json() == []
    db.expire_all()
    assert db.query(Order).count() == 0
    assert db.query(OrderItem).count() == 0
    assert db.query(InventoryUsage).count() == 0
    assert quantities(db) == before


def test_rollback_failure_does_not_mask_original_error(db, catalog, stock):
    lines = [OrderLineRequest(catalog["Classic Milk Tea"], "Classic Milk Tea", 1, "medium", "normal", "regular", [], 5.0)]

    with (
        patch("boba_pos.services.deduction.deduct_for_item", side_effect=RuntimeError("primary")),
        patch.object(db, "rollback", side_effect=RuntimeError("rollback broke")),
    ):
        with pytest.raises(PersistenceFailure) as excinfo:
            create_order(db, lines, 5.4)

    assert str(excinfo.value.__cause__) == "primary"


def test_deductions_are_recorded_in_usage_ledger(client, db, catalog, stock):
    response = client.post("/api/orders", json=order_payload(order_line(catalog["Classic Milk Tea"])))

    order_id = response.json()["id"]
    db.expire_all()
    usage = db.query(InventoryUsage).filter(InventoryUsage.order_id == order_id).all()
    assert len(usage) == 6
    assert {row.notes for row in usage} == {"order deduction"}


def test_orders_work_without_usage_ledger(client, db, storage, catalog, stock):
    InventoryUsage.__table__.drop(storage.engine)

    response = client.post("/api/orders", json=order_payload(order_line(catalog["Classic Milk Tea"])))

    assert response.status_code == 201
    assert quantities(db)["Tea"] == stock["Tea"] - 8


@pytest.mark.parametrize(
    "payload",
    [
        {"items": [], "totalPrice": 5.0},
        {"items": "not-a-list", "totalPrice": 5.0},
        {"totalPrice": 5.0},
        {"items": [{"menuItemId": 1}], "totalPrice": 5.0},
    ],
)
def test_invalid_items_rejected_before_persistence(client, db, catalog, stock, payload):
    response = client.post("/api/orders", json=payload)

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    db.expire_all()
    assert db.query(Order).count() == 0


def test_string_total_price_rejected(client, db, catalog, stock):
    payload = order_payload(order_line(catalog["Classic Milk Tea"]), total_price="5.40")

    response = client.post("/api/orders", json=payload)

    assert response.status_code == 400
    db.expire_all()
    assert db.query(Order).count() == 0


def test_nan_total_price_rejected(client, db, catalog, stock):
    line = json.dumps(order_line(catalog["Classic Milk Tea"]))
    body = '{"items": [' + line + '], "totalPrice": NaN}'

    response = client.post("/api/orders", content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    db.expire_all()
    assert db.query(Order).count() == 0


@pytest.mark.parametrize(
    "overrides",
    [{"size": "venti"}, {"sugarLevel": "lots"}, {"iceLevel": "none"}, {"quantity": 0}],
)
def test_invalid_line_options_rejected(client, catalog, stock, overrides):
    line = order_line(catalog["Classic Milk Tea"], **overrides)

    response = client.post("/api/orders", json=order_payload(line))

    assert response.status_code == 400


def test_validate_order_request_rejects_nan_and_bool_totals():
    line = OrderLineRequest(1, "Classic Milk Tea", 1, "medium", "normal", "regular", [], 5.0)

    for total in (float("nan"), float("inf"), "5.00", True, None):
        with pytest.raises(ValidationError):
            validate_order_request([line], total)


def test_validate_order_request_caps_item_count():
    line = OrderLineRequest(1, "Classic Milk Tea", 1, "medium", "normal", "regular", [], 5.0)

    with pytest.raises(ValidationError):
        validate_order_request([line] * 3, 15.0, max_items=2)


def test_list_orders_newest_first(client, catalog, stock):
    first = client.post("/api/orders", json=order_payload(order_line(catalog["Classic Milk Tea"]))).json()
    second = client.post("/api/orders", json=order_payload(order_line(catalog["Classic Milk Tea"]))).json()

    orders = client.get("/api/orders").json()

    assert [order["id"] for order in orders] == [second["id"], first["id"]]
    assert all(len(order["items"]) == 1 for order in orders)


def test_order_without_items_renders_empty_list(client, db):
    order = Order(total_price=0, status="pending")
    db.add(order)
    db.commit()

    response = client.get(f"/api/orders/{order.id}")

    assert response.status_code == 200
    assert response.json()["items"] == []
    assert client.get("/api/orders").json()[0]["items"] == []


def test_get_unknown_order_returns_404(client):
    response = client.get("/api/orders/999")

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_status_update_allows_any_valid_transition(client, catalog, stock):
    order = client.post("/api/orders", json=order_payload(order_line(catalog["Classic Milk Tea"]))).json()

    for status in ("completed", "pending", "cancelled", "ready"):
        response = client.patch(f"/api/orders/{order['id']}/status", json={"status": status})
        assert response.status_code == 200
        assert response.json()["status"] == status


def test_status_update_rejects_invalid_status(client, catalog, stock):
    order = client.post("/api/orders", json=order_payload(order_line(catalog["Classic Milk Tea"]))).json()

    response = client.patch(f"/api/orders/{order['id']}/status", json={"status": "shipped"})

    assert response.status_code == 400
    assert client.get(f"/api/orders/{order['id']}").json()["status"] == "pending"


def test_status_update_unknown_order_returns_404(client):
    response = client.patch("/api/orders/999/status", json={"status": "ready"})

    assert response.status_code == 404


def test_delete_order_removes_items_without_restoring_stock(client, db, catalog, stock):
    order = client.post("/api/orders", json=order_payload(order_line(catalog["Classic Milk Tea"]))).json()
    after_create = quantities(db)

    response = client.delete(f"/api/orders/{order['id']}")

    assert response.status_code == 200
    assert client.get(f"/api/orders/{order['id']}").status_code == 404
    db.expire_all()
    assert db.query(OrderItem).count() == 0
    assert quantities(db) == after_create


def test_delete_unknown_order_returns_404(client):
    assert client.delete("/api/orders/999").status_code == 404


def test_order_writes_require_manager_identity(storage, catalog, stock):
    anonymous = TestClient(create_app(storage))
    order = anonymous.post("/api/orders", json=order_payload(order_line(catalog["Classic Milk Tea"])))
    assert order.status_code == 201

    missing = anonymous.patch(f"/api/orders/{order.json()['id']}/status", json={"status": "ready"})
    unknown = anonymous.patch(
        f"/api/orders/{order.json()['id']}/status",
        json={"status": "ready"},
        headers={"X-Manager-Email": "stranger@boba.test"},
    )

    assert missing.status_code == 401
    assert missing.json() == {"error": "unauthorized", "message": "Manager identity required"}
    assert unknown.status_code == 403
    assert unknown.json() == {"error": "forbidden", "message": "Not authorized as manager"}


def test_enforce_policy_rejects_price_outside_tolerance(client, db, catalog, stock, monkeypatch):
    monkeypatch.setattr(orders_router, "PRICE_VERIFICATION", "enforce")
    before = quantities(db)
    line = order_line(catalog["Classic Milk Tea"], price=5.05)

    response = client.post("/api/orders", json=order_payload(line, total_price=5.40))

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert "items[0]" in response.json()["message"]
    assert db.query(Order).count() == 0
    assert quantities(db) == before


def test_enforce_policy_rejects_unknown_topping(client, db, catalog, stock, monkeypatch):
    monkeypatch.setattr(orders_router, "PRICE_VERIFICATION", "enforce")
    line = order_line(catalog["Classic Milk Tea"], toppings=["taro-foam"], price=5.75)

    response = client.post("/api/orders", json=order_payload(line))

    assert response.status_code == 400
    assert "taro-foam" in response.json()["message"]
    assert db.query(Order).count() == 0


def test_enforce_policy_accepts_catalog_prices(client, catalog, stock, monkeypatch):
    monkeypatch.setattr(orders_router, "PRICE_VERIFICATION", "enforce")
    line = order_line(catalog["Classic Milk Tea"], toppings=["boba"], size="large", price=6.00)

    response = client.post("/api/orders", json=order_payload(line, total_price=6.48))

    assert response.status_code == 201
    assert response.json()["totalPrice"] == 6.48


def test_warn_policy_stores_mismatched_price(client, catalog, stock, monkeypatch, caplog):
    monkeypatch.setattr(orders_router, "PRICE_VERIFICATION", "warn")
    line = order_line(catalog["Classic Milk Tea"], price=1.23)

    with caplog.at_level(logging.WARNING, logger="boba_pos.services.orders"):
        response = client.post("/api/orders", json=order_payload(line, total_price=1.33))

    assert response.status_code == 201
    assert response.json()["items"][0]["price"] == 1.23
    assert response.json()["totalPrice"] == 1.33
    assert "price verification mismatch" in caplog.text


def test_warn_policy_accepts_unknown_topping(client, db, catalog, stock, monkeypatch):
    monkeypatch.setattr(orders_router, "PRICE_VERIFICATION", "warn")
    line = order_line(catalog["Classic Milk Tea"], toppings=["taro-foam"], price=5.75)

    response = client.post("/api/orders", json=order_payload(line))

    assert response.status_code == 201
    assert response.json()["items"][0]["toppings"] == ["taro-foam"]
    assert db.query(Order).count() == 1


def test_verify_prices_collects_unknown_toppings(db, catalog):
    lines, total = validate_order_request(
        [
            OrderLineRequest(
                menu_item_id=catalog["Classic Milk Tea"],
                item_name="Classic Milk Tea",
                quantity=1,
                size="medium",
                sugar_level="normal",
                toppings=["taro-foam"],
                price=5.75,
            )
        ],
        6.21,
    )

    mismatches = verify_prices(db, lines, total, policy="warn")

    assert mismatches == ["items[0]: Unknown toppings: taro-foam"]
