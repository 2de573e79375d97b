from datetime import datetime, timezone

from sqlalchemy import func, select, update

from backoffice.models.inventory import MAX_STOCK_QUANTITY, InventoryRecord, StockMovement


def _create_product(client, headers, *, name: str = "Classic Tee", **extra) -> str:
    res = client.post("/api/products", json={"name": name, "price": 19.99, **extra}, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()["id"]


def _create_variant(client, headers, product_id: str, *, title: str = "Red / M") -> str:
    res = client.post(
        "/api/product-variants",
        json={"productId": product_id, "title": title, "price": 21.5},
        headers=headers,
    )
    assert res.status_code == 201, res.text
    return res.json()["id"]


def _move(client, headers, product_id: str, movement_type: str, quantity: int, **extra):
    return client.post(
        "/api/inventory/stock-movements",
        json={
            "productId": product_id,
            "movementType": movement_type,
            "quantity": quantity,
            "reason": extra.pop("reason", "test movement"),
            **extra,
        },
        headers=headers,
    )


def _record(session_local, product_id: str, variant_id: str | None = None) -> InventoryRecord | None:
    with session_local() as db:
        stmt = select(InventoryRecord).where(InventoryRecord.product_id == product_id)
        if variant_id:
            stmt = stmt.where(InventoryRecord.variant_id == variant_id)
        else:
            stmt = stmt.where(InventoryRecord.variant_id.is_(None))
        return db.execute(stmt).scalar_one_or_none()


def _movement_count(session_local) -> int:
    with session_local() as db:
        return db.execute(select(func.count(StockMovement.id))).scalar_one()


def test_first_stock_in_creates_inventory_record(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)

    res = _move(client, admin_headers, product_id, "in", 50, reason="initial stock", supplier="Acme")
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["previousQuantity"] == 0
    assert body["newQuantity"] == 50
    assert body["movementType"] == "in"
    assert body["processedBy"] is not None

    record = _record(session_local, product_id)
    assert record is not None
    assert record.quantity == 50
    assert record.available_quantity == 50
    assert record.reserved_quantity == 0
    assert record.reorder_point == 0
    assert record.supplier == "Acme"
    assert record.last_restock_date is not None
    assert body["inventoryId"] == record.id


def test_stock_out_keeps_reserved_quantity_out_of_available(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)

    seeded = client.post(
        "/api/inventory",
        json={"productId": product_id, "quantity": 50, "reservedQuantity": 10},
        headers=admin_headers,
    )
    assert seeded.status_code == 201, seeded.text

    res = _move(client, admin_headers, product_id, "out", 20)
    assert res.status_code == 201, res.text
    assert res.json()["previousQuantity"] == 50
    assert res.json()["newQuantity"] == 30

    record = _record(session_local, product_id)
    assert record.quantity == 30
    assert record.reserved_quantity == 10
    assert record.available_quantity == 20


def test_stock_out_beyond_on_hand_is_rejected_without_changes(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)
    assert _move(client, admin_headers, product_id, "in", 10).status_code == 201
    movements_before = _movement_count(session_local)

    res = _move(client, admin_headers, product_id, "out", 15)
    assert res.status_code == 400, res.text
    assert res.json()["error"]["message"] == "Insufficient stock for this movement"

    record = _record(session_local, product_id)
    assert record.quantity == 10
    assert record.available_quantity == 10
    assert _movement_count(session_local) == movements_before


def test_stock_out_without_inventory_record_creates_nothing(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)

    res = _move(client, admin_headers, product_id, "out", 5)
    assert res.status_code == 400, res.text
    assert res.json()["error"]["message"] == "Cannot remove stock from non-existent inventory"

    assert _record(session_local, product_id) is None
    assert _movement_count(session_local) == 0


def test_adjustment_sets_absolute_quantity(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)
    assert _move(client, admin_headers, product_id, "in", 30).status_code == 201

    res = _move(client, admin_headers, product_id, "adjustment", 100, reason="cycle count")
    assert res.status_code == 201, res.text
    assert res.json()["previousQuantity"] == 30
    assert res.json()["newQuantity"] == 100

    record = _record(session_local, product_id)
    assert record.quantity == 100
    assert record.available_quantity == 100


def test_quantity_equals_sum_of_stock_in_movements(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)

    for qty in (5, 12, 8, 1):
        assert _move(client, admin_headers, product_id, "in", qty).status_code == 201

    assert _record(session_local, product_id).quantity == 26
    with session_local() as db:
        movements = db.execute(
            select(StockMovement).order_by(StockMovement.created_at.asc())
        ).scalars().all()
    # Each row chains from the previous one.
    previous = 0
    for movement in movements:
        assert movement.previous_quantity == previous
        assert movement.new_quantity == previous + movement.quantity
        previous = movement.new_quantity


def test_variant_and_product_level_records_are_separate(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)
    variant_id = _create_variant(client, admin_headers, product_id)

    assert _move(client, admin_headers, product_id, "in", 7, variantId=variant_id).status_code == 201
    # Product-level record must not match the variant record.
    res = _move(client, admin_headers, product_id, "out", 1)
    assert res.status_code == 400, res.text
    assert res.json()["error"]["message"] == "Cannot remove stock from non-existent inventory"

    assert _move(client, admin_headers, product_id, "in", 3).status_code == 201
    assert _record(session_local, product_id, variant_id).quantity == 7
    assert _record(session_local, product_id).quantity == 3


def test_movement_requires_fields_and_known_type(test_context, admin_headers):
    client, _ = test_context
    product_id = _create_product(client, admin_headers)

    missing_reason = client.post(
        "/api/inventory/stock-movements",
        json={"productId": product_id, "movementType": "in", "quantity": 5},
        headers=admin_headers,
    )
    assert missing_reason.status_code == 400, missing_reason.text
    assert missing_reason.json()["error"]["message"] == (
        "ProductId, movementType, quantity, and reason are required"
    )

    zero_quantity = _move(client, admin_headers, product_id, "in", 0)
    assert zero_quantity.status_code == 400

    negative = _move(client, admin_headers, product_id, "in", -4)
    assert negative.status_code == 400
    assert negative.json()["error"]["message"] == "Quantity must be a positive integer"

    unknown_type = _move(client, admin_headers, product_id, "transfer", 4)
    assert unknown_type.status_code == 400
    assert unknown_type.json()["error"]["message"] == "Invalid movement type"


def test_movement_for_unknown_product_is_not_found(test_context, admin_headers):
    client, session_local = test_context

    res = _move(client, admin_headers, "missing-product", "in", 4)
    assert res.status_code == 404, res.text
    assert res.json()["error"]["code"] == "not_found"
    assert _movement_count(session_local) == 0


def test_list_movements_newest_first_with_names(test_context, admin_headers):
    client, _ = test_context
    product_id = _create_product(client, admin_headers, name="Mug")
    variant_id = _create_variant(client, admin_headers, product_id, title="Blue")

    assert _move(client, admin_headers, product_id, "in", 4, reason="first").status_code == 201
    assert _move(client, admin_headers, product_id, "in", 2, variantId=variant_id, reason="second").status_code == 201
    assert _move(client, admin_headers, product_id, "out", 1, reason="third").status_code == 201

    res = client.get("/api/inventory/stock-movements", headers=admin_headers)
    assert res.status_code == 200, res.text
    rows = res.json()
    assert [row["reason"] for row in rows] == ["third", "second", "first"]
    assert rows[0]["productName"] == "Mug"
    assert rows[0]["variantTitle"] is None
    assert rows[1]["variantTitle"] == "Blue"
    assert "T" in rows[0]["createdAt"]

    limited = client.get("/api/inventory/stock-movements?limit=2", headers=admin_headers)
    assert limited.status_code == 200
    assert len(limited.json()) == 2

    filtered = client.get(
        f"/api/inventory/stock-movements?productId={product_id}&movementType=out",
        headers=admin_headers,
    )
    assert [row["reason"] for row in filtered.json()] == ["third"]

    too_many = client.get("/api/inventory/stock-movements?limit=1001", headers=admin_headers)
    assert too_many.status_code == 422


def test_ledger_survives_product_deletion(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers, name="Retired")
    assert _move(client, admin_headers, product_id, "in", 9).status_code == 201

    deleted = client.delete(f"/api/products/{product_id}", headers=admin_headers)
    assert deleted.status_code == 200, deleted.text
    assert _record(session_local, product_id) is None

    rows = client.get("/api/inventory/stock-movements", headers=admin_headers).json()
    assert len(rows) == 1
    assert rows[0]["productName"] == "Unknown Product"


def test_movements_require_authentication(test_context):
    client, _ = test_context

    res = client.get("/api/inventory/stock-movements")
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "unauthorized"


def test_movement_bounds_are_rejected_as_bad_request(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)
    assert _move(client, admin_headers, product_id, "in", 5).status_code == 201

    huge = _move(client, admin_headers, product_id, "in", 10**20)
    assert huge.status_code == 400, huge.text
    assert huge.json()["error"]["message"] == f"Quantity must not exceed {MAX_STOCK_QUANTITY}"

    long_reason = _move(client, admin_headers, product_id, "in", 1, reason="r" * 256)
    assert long_reason.status_code == 400, long_reason.text
    assert long_reason.json()["error"]["message"] == "Reason must be at most 255 characters"

    assert _move(client, admin_headers, product_id, "in", 1, reason="r" * 255).status_code == 201
    assert _record(session_local, product_id).quantity == 6
    assert _movement_count(session_local) == 2


def test_stock_in_past_the_column_ceiling_leaves_state_unchanged(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)
    assert _move(client, admin_headers, product_id, "adjustment", MAX_STOCK_QUANTITY).status_code == 201

    res = _move(client, admin_headers, product_id, "in", 1)
    assert res.status_code == 400, res.text
    assert res.json()["error"]["message"] == "Resulting quantity exceeds the maximum stock level"

    record = _record(session_local, product_id)
    assert record.quantity == MAX_STOCK_QUANTITY
    assert _movement_count(session_local) == 1


def test_movements_with_equal_timestamps_list_newest_first(test_context, admin_headers):
    client, session_local = test_context
    product_id = _create_product(client, admin_headers)
    for reason in ("first", "second", "third"):
        assert _move(client, admin_headers, product_id, "in", 1, reason=reason).status_code == 201

    with session_local() as db:
        db.execute(update(StockMovement).values(created_at=datetime(2026, 1, 1, tzinfo=timezone.utc)))
        db.commit()

    rows = client.get("/api/inventory/stock-movements", headers=admin_headers).json()
    assert [row["reason"] for row in rows] == ["third", "second", "first"]
