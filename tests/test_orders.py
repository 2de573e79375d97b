import pytest
from sqlalchemy import func, select

from backoffice.core.config import settings
from backoffice.models.inventory import InventoryRecord, StockMovement
from backoffice.models.order import Order


def _create_product(client, headers, *, name: str = "Classic Tee", price: float = 19.99) -> str:
    res = client.post("/api/products", json={"name": name, "price": price}, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()["id"]


def _seed_inventory(client, headers, product_id: str, quantity: int) -> None:
    res = client.post("/api/inventory", json={"productId": product_id, "quantity": quantity}, headers=headers)
    assert res.status_code == 201, res.text


def _create_order(client, headers, product_id: str, quantity: int, **extra):
    return client.post(
        "/api/orders",
        json={
            "email": "buyer@example.com",
            "items": [{"productId": product_id, "quantity": quantity}],
            **extra,
        },
        headers=headers,
    )


def _update_order(client, headers, order_id: str, **changes):
    return client.put(f"/api/orders/{order_id}", json=changes, headers=headers)


def _stock(session_local, product_id: str) -> tuple[int, int, int]:
    with session_local() as db:
        record = db.execute(
            select(InventoryRecord).where(InventoryRecord.product_id == product_id)
        ).scalar_one()
        return record.quantity, record.reserved_quantity, record.available_quantity


def _movements(client, headers, product_id: str) -> list[dict]:
    res = client.get(f"/api/inventory/stock-movements?productId={product_id}", headers=headers)
    assert res.status_code == 200, res.text
    return res.json()


def test_confirmed_order_reserves_stock_through_the_ledger(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)
    _seed_inventory(client, admin_headers, product_id, 10)

    res = _create_order(client, admin_headers, product_id, 3, status="confirmed")
    assert res.status_code == 201, res.text
    order = res.json()
    assert order["orderNumber"].startswith("ORD-")
    assert order["items"][0]["productName"] == "Classic Tee"
    assert order["items"][0]["quantity"] == 3

    assert _stock(session_local, product_id) == (10, 3, 7)

    latest = _movements(client, admin_headers, product_id)[0]
    assert latest["movementType"] == "reserve"
    assert latest["quantity"] == 3
    assert latest["previousQuantity"] == 10
    assert latest["newQuantity"] == 10
    assert latest["reason"] == "Order Reservation"
    assert latest["reference"] == order["orderNumber"]
    assert latest["processedBy"] is not None


def test_pending_order_reserves_on_confirm_and_releases_on_cancel(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)
    _seed_inventory(client, admin_headers, product_id, 10)

    order = _create_order(client, admin_headers, product_id, 3).json()
    assert order["status"] == "pending"
    assert _stock(session_local, product_id) == (10, 0, 10)

    confirmed = _update_order(client, admin_headers, order["id"], status="confirmed")
    assert confirmed.status_code == 200, confirmed.text
    assert _stock(session_local, product_id) == (10, 3, 7)
    assert _movements(client, admin_headers, product_id)[0]["reason"] == "Order Confirmed - Inventory Reserved"

    # Receiving stock leaves the reservation in place.
    restock = client.post(
        "/api/inventory/stock-movements",
        json={"productId": product_id, "movementType": "in", "quantity": 5, "reason": "restock"},
        headers=admin_headers,
    )
    assert restock.status_code == 201, restock.text
    assert _stock(session_local, product_id) == (15, 3, 12)

    cancelled = _update_order(
        client, admin_headers, order["id"], status="cancelled", cancelReason="Customer request"
    )
    assert cancelled.status_code == 200, cancelled.text
    assert cancelled.json()["cancelReason"] == "Customer request"
    assert _stock(session_local, product_id) == (15, 0, 15)

    latest = _movements(client, admin_headers, product_id)[0]
    assert latest["movementType"] == "release"
    assert latest["reason"] == "Order Cancelled - Inventory Restored"
    assert latest["quantity"] == 3


def test_delivery_ships_the_reserved_units(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)
    _seed_inventory(client, admin_headers, product_id, 10)
    order = _create_order(client, admin_headers, product_id, 4, status="confirmed").json()

    shipped = _update_order(client, admin_headers, order["id"], status="shipped", trackingNumber="TRK-1")
    assert shipped.status_code == 200, shipped.text
    assert _stock(session_local, product_id) == (10, 4, 6)

    delivered = _update_order(client, admin_headers, order["id"], status="delivered")
    assert delivered.status_code == 200, delivered.text
    assert delivered.json()["fulfillmentStatus"] == "fulfilled"
    assert delivered.json()["trackingNumber"] == "TRK-1"
    assert _stock(session_local, product_id) == (6, 0, 6)

    latest = _movements(client, admin_headers, product_id)[0]
    assert latest["movementType"] == "out"
    assert latest["previousQuantity"] == 10
    assert latest["newQuantity"] == 6
    assert latest["reason"] == "Order Delivered - Final Inventory Reduction"


def test_payment_status_starts_and_ends_the_reservation(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)
    _seed_inventory(client, admin_headers, product_id, 5)
    order = _create_order(client, admin_headers, product_id, 2).json()

    paid = _update_order(client, admin_headers, order["id"], paymentStatus="paid")
    assert paid.status_code == 200, paid.text
    assert _stock(session_local, product_id) == (5, 2, 3)
    assert _movements(client, admin_headers, product_id)[0]["reason"] == "Payment Received - Inventory Reserved"

    refunded = _update_order(client, admin_headers, order["id"], paymentStatus="refunded")
    assert refunded.status_code == 200, refunded.text
    assert _stock(session_local, product_id) == (5, 0, 5)
    assert _movements(client, admin_headers, product_id)[0]["reason"] == "Payment Reversed - Inventory Unreserved"


def test_deleting_a_confirmed_order_releases_its_stock(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)
    _seed_inventory(client, admin_headers, product_id, 8)
    order = _create_order(client, admin_headers, product_id, 5, status="confirmed").json()
    assert _stock(session_local, product_id) == (8, 5, 3)

    res = client.delete(f"/api/orders/{order['id']}", headers=admin_headers)
    assert res.status_code == 200, res.text
    assert res.json()["message"] == "Order deleted successfully"
    assert _stock(session_local, product_id) == (8, 0, 8)
    assert _movements(client, admin_headers, product_id)[0]["reason"] == "Order Deleted - Inventory Restored"

    assert client.get(f"/api/orders/{order['id']}", headers=admin_headers).status_code == 404


def test_order_creation_checks_stock(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers, name="Mug")

    no_record = _create_order(client, admin_headers, product_id, 1)
    assert no_record.status_code == 400, no_record.text
    assert no_record.json()["error"]["message"] == (
        "No inventory record found for Mug. "
        "Please create an inventory record first or disable stock management."
    )

    _seed_inventory(client, admin_headers, product_id, 2)
    short = _create_order(client, admin_headers, product_id, 3, status="confirmed")
    assert short.status_code == 400, short.text
    assert short.json()["error"]["message"] == "Insufficient stock for Mug. Available: 2, Requested: 3"

    with session_local() as db:
        assert db.execute(select(func.count(Order.id))).scalar_one() == 0
        assert db.execute(
            select(func.count(StockMovement.id)).where(StockMovement.movement_type == "reserve")
        ).scalar_one() == 0
    assert _stock(session_local, product_id) == (2, 0, 2)


def test_confirm_fails_when_other_orders_hold_the_stock(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers, name="Lamp")
    _seed_inventory(client, admin_headers, product_id, 5)

    assert _create_order(client, admin_headers, product_id, 4, status="confirmed").status_code == 201
    waiting = _create_order(client, admin_headers, product_id, 1).json()
    # A recount takes on-hand down to what the confirmed order already holds.
    client.post(
        "/api/inventory/stock-movements",
        json={"productId": product_id, "movementType": "adjustment", "quantity": 4, "reason": "count"},
        headers=admin_headers,
    )
    assert _stock(session_local, product_id) == (4, 4, 0)

    res = _update_order(client, admin_headers, waiting["id"], status="confirmed")
    assert res.status_code == 400, res.text
    assert res.json()["error"]["message"] == "Insufficient stock for Lamp. Available: 0, Required: 1"

    assert client.get(f"/api/orders/{waiting['id']}", headers=admin_headers).json()["status"] == "pending"
    assert _stock(session_local, product_id) == (4, 4, 0)


def test_invalid_status_transitions_are_rejected(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)
    _seed_inventory(client, admin_headers, product_id, 10)
    order = _create_order(client, admin_headers, product_id, 1).json()

    skip = _update_order(client, admin_headers, order["id"], status="delivered")
    assert skip.status_code == 400
    assert skip.json()["error"]["message"] == "Cannot transition order from 'pending' to 'delivered'"

    unknown = _update_order(client, admin_headers, order["id"], status="lost")
    assert unknown.status_code == 400
    assert unknown.json()["error"]["message"].startswith("Invalid order status.")

    assert _update_order(client, admin_headers, order["id"], status="cancelled").status_code == 200
    reopen = _update_order(client, admin_headers, order["id"], status="confirmed")
    assert reopen.status_code == 400
    assert _stock(session_local, product_id) == (10, 0, 10)

    created_shipped = _create_order(client, admin_headers, product_id, 1, status="shipped")
    assert created_shipped.status_code == 400
    assert created_shipped.json()["error"]["message"] == "New orders must be pending or confirmed"


def test_order_validation_and_lookup_errors(test_context, admin_headers):
    client, _ = test_context

    missing = client.post("/api/orders", json={"email": "buyer@example.com", "items": []}, headers=admin_headers)
    assert missing.status_code == 400
    assert missing.json()["error"]["message"] == "Email and items are required"

    unknown_product = _create_order(client, admin_headers, "missing-product", 1)
    assert unknown_product.status_code == 404
    assert unknown_product.json()["error"]["message"] == "Product not found"

    zero = _create_order(client, admin_headers, "missing-product", 0)
    assert zero.status_code == 422

    assert client.get("/api/orders/nope", headers=admin_headers).status_code == 404
    assert _update_order(client, admin_headers, "nope", status="confirmed").status_code == 404
    assert client.delete("/api/orders/nope", headers=admin_headers).status_code == 404


def test_orders_skip_stock_when_management_is_disabled(test_context, admin_headers, monkeypatch):
    client, _ = test_context
    monkeypatch.setattr(settings, "stock_management_enabled", False)
    product_id = _create_product(client, admin_headers)

    res = _create_order(client, admin_headers, product_id, 2, status="confirmed")
    assert res.status_code == 201, res.text
    delivered = _update_order(client, admin_headers, res.json()["id"], status="delivered")
    assert delivered.status_code == 200, delivered.text

    assert _movements(client, admin_headers, product_id) == []


def test_list_orders_newest_first_with_totals_and_refs(test_context, admin_headers):
    client, _ = test_context
    product_id = _create_product(client, admin_headers, price=19.99)
    _seed_inventory(client, admin_headers, product_id, 10)
    method = client.post(
        "/api/shipping-methods",
        json={"name": "Standard", "code": "STD", "price": 5, "estimatedDays": 3},
        headers=admin_headers,
    )
    assert method.status_code == 201, method.text

    first = _create_order(client, admin_headers, product_id, 2, shippingAmount=5, shippingMethodId=method.json()["id"])
    assert first.status_code == 201, first.text
    body = first.json()
    assert body["subtotal"] == pytest.approx(39.98)
    assert body["totalAmount"] == pytest.approx(44.98)
    assert body["shippingMethod"]["code"] == "STD"
    assert body["shippingMethod"]["estimatedDays"] == 3
    assert body["user"] is None

    second = _create_order(client, admin_headers, product_id, 1, shippingCity="Lagos")
    assert second.status_code == 201, second.text

    listed = client.get("/api/orders", headers=admin_headers)
    assert listed.status_code == 200, listed.text
    rows = listed.json()
    assert [row["id"] for row in rows] == [second.json()["id"], body["id"]]
    assert rows[0]["shippingCity"] == "Lagos"
    assert len(rows[1]["items"]) == 1

    discounted = _update_order(client, admin_headers, body["id"], discountAmount=4.98)
    assert discounted.json()["totalAmount"] == pytest.approx(40.0)

    stats = client.get("/api/dashboard/stats", headers=admin_headers).json()
    assert stats["orders"] == 2


def test_orders_require_authentication(test_context):
    client, _ = test_context

    res = client.get("/api/orders")
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "unauthorized"
