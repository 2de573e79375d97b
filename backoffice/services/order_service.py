"""
Orders and the stock they hold.

An order holds a reservation while it is confirmed, processing or shipped, and
while it is still pending but already paid. A status or payment change that
starts that hold reserves stock, one that ends it releases the stock, and
delivery ships the reserved units. Every stock change is a ledger row, and the
order write and its ledger rows commit together under the inventory key locks.
"""
from collections import defaultdict
from decimal import Decimal

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.errors import InsufficientStockError, NotFoundError, ValidationError
from backoffice.core.id_utils import generate_order_number
from backoffice.core.locks import KeyedLock
from backoffice.core.observability import log_event
from backoffice.models.order import Order, OrderItem
from backoffice.models.product import Product, ProductVariant
from backoffice.models.shipping import ShippingMethod
from backoffice.models.user import User
from backoffice.schemas.order import (
    FULFILLMENT_STATUSES,
    ORDER_STATUSES,
    PAYMENT_STATUSES,
    OrderCustomerRefOut,
    OrderIn,
    OrderItemOut,
    OrderOut,
    OrderShippingMethodRefOut,
    OrderUpdateIn,
)
from backoffice.services.inventory_service import (
    find_inventory_record,
    fulfil_reserved_stock,
    hold_inventory_keys,
    release_stock,
    reserve_stock,
)

RESERVING_STATUSES = {"confirmed", "processing", "shipped"}
NEW_ORDER_STATUSES = {"pending", "confirmed"}

ALLOWED_ORDER_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"pending", "processing", "shipped", "delivered", "cancelled"},
    "processing": {"shipped", "delivered", "cancelled"},
    "shipped": {"delivered", "cancelled"},
    "delivered": set(),
    "cancelled": set(),
}

_ZERO = Decimal("0")

# Serializes status changes of one order; the inventory key locks are taken inside it.
order_lock = KeyedLock()

_ADDRESS_FIELDS = tuple(
    f"{kind}_{part}"
    for kind in ("billing", "shipping")
    for part in (
        "first_name",
        "last_name",
        "address1",
        "address2",
        "city",
        "state",
        "postal_code",
        "country",
    )
)


def holds_reservation(status: str, payment_status: str) -> bool:
    return status in RESERVING_STATUSES or (status == "pending" and payment_status == "paid")


def stock_action(
    old_status: str,
    old_payment_status: str,
    new_status: str,
    new_payment_status: str,
) -> str | None:
    """Return ``reserve``, ``release``, ``fulfil`` or None for a state change."""
    if new_status == "delivered" and old_status != "delivered":
        return "fulfil"
    before = holds_reservation(old_status, old_payment_status)
    after = holds_reservation(new_status, new_payment_status)
    if after and not before:
        return "reserve"
    if before and not after:
        return "release"
    return None


def _stock_reason(action: str, *, old_status: str, new_status: str) -> str:
    if action == "fulfil":
        return "Order Delivered - Final Inventory Reduction"
    if action == "reserve":
        if new_status == "pending":
            return "Payment Received - Inventory Reserved"
        return "Order Confirmed - Inventory Reserved"
    if new_status == "cancelled":
        return "Order Cancelled - Inventory Restored"
    if old_status != "pending" and new_status == "pending":
        return "Order Pending - Inventory Unreserved"
    return "Payment Reversed - Inventory Unreserved"


def _check_choice(value: str, allowed: set[str], label: str) -> str:
    normalized = value.strip().lower()
    if normalized not in allowed:
        raise ValidationError(f"Invalid {label}. Allowed: {', '.join(sorted(allowed))}")
    return normalized


def _ensure_transition_allowed(current_status: str, next_status: str) -> None:
    if current_status == next_status:
        return
    if next_status not in ALLOWED_ORDER_TRANSITIONS.get(current_status, set()):
        raise ValidationError(f"Cannot transition order from '{current_status}' to '{next_status}'")


def _item_label(product_name: str, variant_title: str | None) -> str:
    return f"{product_name} ({variant_title})" if variant_title else product_name


def _apply_stock_action(
    db: Session,
    order: Order,
    items: list[OrderItem],
    action: str,
    *,
    reason: str,
    notes: str,
    processed_by: str | None,
) -> None:
    for item in items:
        label = _item_label(item.product_name, item.variant_title)
        record = find_inventory_record(db, item.product_id, item.variant_id, for_update=True)
        if record is None:
            if action == "reserve":
                raise ValidationError(
                    f"No inventory record found for {label}. Please create an inventory record first."
                )
            # Nothing was reserved for a line without inventory.
            continue

        if action == "reserve":
            available = record.quantity - (record.reserved_quantity or 0)
            if available < item.quantity:
                raise InsufficientStockError(
                    f"Insufficient stock for {label}. Available: {available}, Required: {item.quantity}"
                )
            reserve_stock(
                db, record, item.quantity,
                reason=reason, reference=order.order_number, notes=notes, processed_by=processed_by,
            )
        elif action == "release":
            release_stock(
                db, record, item.quantity,
                reason=reason, reference=order.order_number, notes=notes, processed_by=processed_by,
            )
        else:
            fulfil_reserved_stock(
                db, record, item.quantity,
                reason=reason, reference=order.order_number, notes=notes, processed_by=processed_by,
            )


def _check_new_order_stock(db: Session, items: list[OrderItem]) -> None:
    requested: dict[tuple[str, str | None], int] = defaultdict(int)
    labels: dict[tuple[str, str | None], str] = {}
    for item in items:
        key = (item.product_id, item.variant_id)
        requested[key] += item.quantity
        labels[key] = _item_label(item.product_name, item.variant_title)

    for key, quantity in requested.items():
        label = labels[key]
        record = find_inventory_record(db, *key, for_update=True)
        if record is None:
            raise ValidationError(
                f"No inventory record found for {label}. "
                "Please create an inventory record first or disable stock management."
            )
        if record.quantity <= 0:
            raise InsufficientStockError(f"{label} is out of stock. Total quantity: {record.quantity}")
        available = record.quantity - (record.reserved_quantity or 0)
        if available < quantity:
            raise InsufficientStockError(
                f"Insufficient stock for {label}. Available: {available}, Requested: {quantity}"
            )


def _build_items(db: Session, payload: OrderIn) -> list[OrderItem]:
    items: list[OrderItem] = []
    for line in payload.items:
        product = db.execute(select(Product).where(Product.id == line.product_id)).scalar_one_or_none()
        if product is None:
            raise NotFoundError("Product not found")

        variant = None
        if line.variant_id:
            variant = db.execute(
                select(ProductVariant).where(
                    ProductVariant.id == line.variant_id,
                    ProductVariant.product_id == product.id,
                )
            ).scalar_one_or_none()
            if variant is None:
                raise NotFoundError("Variant not found")

        if line.price is not None:
            price = line.price
        elif variant is not None:
            price = variant.price
        else:
            price = product.price
        items.append(
            OrderItem(
                product_id=product.id,
                variant_id=variant.id if variant else None,
                product_name=product.name,
                variant_title=variant.title if variant else None,
                sku=line.sku or (variant.sku if variant else product.sku),
                quantity=line.quantity,
                price=price,
                total_price=price * line.quantity,
            )
        )
    return items


def _ensure_references(db: Session, payload: OrderIn) -> None:
    if payload.user_id:
        if db.execute(select(User.id).where(User.id == payload.user_id)).scalar_one_or_none() is None:
            raise NotFoundError("User not found")
    if payload.shipping_method_id:
        method_id = db.execute(
            select(ShippingMethod.id).where(ShippingMethod.id == payload.shipping_method_id)
        ).scalar_one_or_none()
        if method_id is None:
            raise NotFoundError("Shipping method not found")


def create_order(db: Session, payload: OrderIn, *, processed_by: str | None = None) -> OrderOut:
    if not (payload.email or "").strip() or not payload.items:
        raise ValidationError("Email and items are required")
    status = _check_choice(payload.status, ORDER_STATUSES, "order status")
    if status not in NEW_ORDER_STATUSES:
        raise ValidationError("New orders must be pending or confirmed")
    payment_status = _check_choice(payload.payment_status, PAYMENT_STATUSES, "payment status")
    _ensure_references(db, payload)
    items = _build_items(db, payload)

    subtotal = payload.subtotal if payload.subtotal is not None else sum(
        (item.total_price for item in items), _ZERO
    )
    total_amount = payload.total_amount
    if total_amount is None:
        total_amount = subtotal - payload.discount_amount + payload.tax_amount + payload.shipping_amount

    order = Order(
        order_number=generate_order_number(),
        user_id=payload.user_id or None,
        email=payload.email.strip(),
        phone=payload.phone or None,
        status=status,
        payment_status=payment_status,
        fulfillment_status="pending",
        subtotal=subtotal,
        tax_amount=payload.tax_amount,
        shipping_amount=payload.shipping_amount,
        discount_amount=payload.discount_amount,
        total_amount=total_amount,
        currency=payload.currency.upper(),
        notes=payload.notes or None,
        shipping_method_id=payload.shipping_method_id or None,
        **payload.model_dump(include=set(_ADDRESS_FIELDS)),
    )

    stock_managed = settings.stock_management_enabled
    keys = [(item.product_id, item.variant_id) for item in items] if stock_managed else []
    with hold_inventory_keys(keys):
        try:
            if stock_managed:
                _check_new_order_stock(db, items)
            db.add(order)
            db.flush()
            for item in items:
                item.order_id = order.id
                db.add(item)
            db.flush()
            if stock_managed and holds_reservation(status, payment_status):
                _apply_stock_action(
                    db, order, items, "reserve",
                    reason="Order Reservation",
                    notes=f"Reserved for order {order.order_number}",
                    processed_by=processed_by,
                )
            db.commit()
        except Exception:
            db.rollback()
            raise

    log_event(
        "order.created",
        order_id=order.id,
        order_number=order.order_number,
        status=status,
        payment_status=payment_status,
        items=len(items),
    )
    return get_order(db, order.id)


def update_order(
    db: Session,
    order_id: str,
    payload: OrderUpdateIn,
    *,
    processed_by: str | None = None,
) -> OrderOut:
    with order_lock.hold(order_id):
        return _update_order_locked(db, order_id, payload, processed_by=processed_by)


def _update_order_locked(
    db: Session,
    order_id: str,
    payload: OrderUpdateIn,
    *,
    processed_by: str | None,
) -> OrderOut:
    order = _get_order_or_404(db, order_id, for_update=True)
    values = payload.model_dump(exclude_unset=True)

    old_status, old_payment_status = order.status, order.payment_status
    new_status = old_status
    if values.get("status"):
        new_status = _check_choice(values["status"], ORDER_STATUSES, "order status")
        _ensure_transition_allowed(old_status, new_status)
    new_payment_status = old_payment_status
    if values.get("payment_status"):
        new_payment_status = _check_choice(values["payment_status"], PAYMENT_STATUSES, "payment status")
    if values.get("fulfillment_status"):
        values["fulfillment_status"] = _check_choice(
            values["fulfillment_status"], FULFILLMENT_STATUSES, "fulfillment status"
        )
    elif new_status == "delivered":
        values["fulfillment_status"] = "fulfilled"

    action = None
    if settings.stock_management_enabled:
        action = stock_action(old_status, old_payment_status, new_status, new_payment_status)
    items = _order_items(db, order.id)
    keys = [(item.product_id, item.variant_id) for item in items] if action else []

    with hold_inventory_keys(keys):
        try:
            if action:
                _apply_stock_action(
                    db, order, items, action,
                    reason=_stock_reason(action, old_status=old_status, new_status=new_status),
                    notes=f"Status changed from {old_status}/{old_payment_status} "
                    f"to {new_status}/{new_payment_status}",
                    processed_by=processed_by,
                )

            for field in ("fulfillment_status", "notes", "tracking_number", "cancel_reason"):
                if field in values:
                    setattr(order, field, values[field])
            if values.get("shipping_amount") is not None:
                order.shipping_amount = values["shipping_amount"]
            if values.get("discount_amount") is not None:
                order.discount_amount = values["discount_amount"]
            if "shipping_amount" in values or "discount_amount" in values:
                order.total_amount = (
                    order.subtotal - order.discount_amount + (order.tax_amount or _ZERO) + order.shipping_amount
                )
            order.status = new_status
            order.payment_status = new_payment_status
            db.commit()
        except Exception:
            db.rollback()
            raise

    if (new_status, new_payment_status) != (old_status, old_payment_status):
        log_event(
            "order.status_changed",
            order_id=order.id,
            from_status=old_status,
            to_status=new_status,
            from_payment_status=old_payment_status,
            to_payment_status=new_payment_status,
            stock_action=action,
        )
    return get_order(db, order.id)


def delete_order(db: Session, order_id: str, *, processed_by: str | None = None) -> None:
    with order_lock.hold(order_id):
        _delete_order_locked(db, order_id, processed_by=processed_by)


def _delete_order_locked(db: Session, order_id: str, *, processed_by: str | None) -> None:
    order = _get_order_or_404(db, order_id, for_update=True)
    items = _order_items(db, order.id)
    release = settings.stock_management_enabled and holds_reservation(order.status, order.payment_status)
    keys = [(item.product_id, item.variant_id) for item in items] if release else []

    with hold_inventory_keys(keys):
        try:
            if release:
                _apply_stock_action(
                    db, order, items, "release",
                    reason="Order Deleted - Inventory Restored",
                    notes=f"Order {order.order_number} was deleted",
                    processed_by=processed_by,
                )
            db.execute(delete(OrderItem).where(OrderItem.order_id == order.id))
            db.delete(order)
            db.commit()
        except Exception:
            db.rollback()
            raise

    log_event("order.deleted", order_id=order_id, released_stock=release)


def _get_order_or_404(db: Session, order_id: str, *, for_update: bool = False) -> Order:
    stmt = select(Order).where(Order.id == order_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    order = db.execute(stmt).scalar_one_or_none()
    if order is None:
        raise NotFoundError("Order not found")
    return order


def _order_items(db: Session, order_id: str) -> list[OrderItem]:
    return list(
        db.execute(
            select(OrderItem)
            .where(OrderItem.order_id == order_id)
            .order_by(OrderItem.created_at.asc(), OrderItem.id.asc())
        ).scalars().all()
    )


def _order_out(
    order: Order,
    items: list[OrderItem],
    user: User | None,
    method: ShippingMethod | None,
) -> OrderOut:
    data = {column.key: getattr(order, column.key) for column in Order.__table__.columns}
    return OrderOut(
        **data,
        user=OrderCustomerRefOut(id=user.id, name=user.name, email=user.email) if user else None,
        shipping_method=(
            OrderShippingMethodRefOut(
                id=method.id,
                name=method.name,
                code=method.code,
                price=float(method.price),
                estimated_days=method.estimated_days,
            )
            if method
            else None
        ),
        items=[OrderItemOut.model_validate(item) for item in items],
    )


def _order_rows(db: Session, *filters) -> list[OrderOut]:
    rows = db.execute(
        select(Order, User, ShippingMethod)
        .outerjoin(User, User.id == Order.user_id)
        .outerjoin(ShippingMethod, ShippingMethod.id == Order.shipping_method_id)
        .where(*filters)
        .order_by(Order.created_at.desc(), Order.id.desc())
    ).all()
    if not rows:
        return []

    items_by_order: dict[str, list[OrderItem]] = defaultdict(list)
    order_ids = [order.id for order, _, _ in rows]
    for item in db.execute(
        select(OrderItem)
        .where(OrderItem.order_id.in_(order_ids))
        .order_by(OrderItem.created_at.asc(), OrderItem.id.asc())
    ).scalars():
        items_by_order[item.order_id].append(item)

    return [_order_out(order, items_by_order[order.id], user, method) for order, user, method in rows]


def list_orders(db: Session) -> list[OrderOut]:
    return _order_rows(db)


def get_order(db: Session, order_id: str) -> OrderOut:
    rows = _order_rows(db, Order.id == order_id)
    if not rows:
        raise NotFoundError("Order not found")
    return rows[0]
