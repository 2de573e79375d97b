"""
Inventory records and the stock-movement ledger.

Every quantity change goes through ``record_stock_movement``: the new on-hand
quantity is derived from the current one, written to the inventory record and
appended to ``stock_movements`` in a single transaction. Work on one
(product, variant) key is serialized in-process by ``inventory_key_lock`` and
across processes by a row lock on the inventory record plus the partial unique
indexes on the key.

Order processing moves units between available and reserved through
``reserve_stock``, ``release_stock`` and ``fulfil_reserved_stock``; each call
appends a ledger row as well.
"""
import logging
from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backoffice.core.errors import (
    ConflictError,
    InsufficientStockError,
    InvalidMovementTypeError,
    NoInventoryRecordError,
    NotFoundError,
    ValidationError,
)
from backoffice.core.locks import KeyedLock
from backoffice.core.observability import log_event
from backoffice.models.inventory import (
    MAX_STOCK_QUANTITY,
    MOVEMENT_TYPES,
    REASON_MAX_LENGTH,
    InventoryRecord,
    StockMovement,
)
from backoffice.models.product import Product, ProductVariant
from backoffice.schemas.inventory import (
    InventoryListItemOut,
    InventoryProductRefOut,
    InventoryRecordIn,
    InventoryRecordOut,
    InventoryReportOut,
    InventoryVariantRefOut,
    LowStockItemOut,
    StockMovementIn,
    StockMovementListItemOut,
)

MAX_MOVEMENTS_LISTED = 1000
UNKNOWN_PRODUCT_NAME = "Unknown Product"
INITIAL_RECORD_REASON = "Initial inventory record"

inventory_key_lock = KeyedLock()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def apply_movement(movement_type: str, previous_quantity: int, quantity: int) -> int:
    """Return the on-hand quantity after applying one movement."""
    if movement_type == "in":
        new_quantity = previous_quantity + quantity
        if new_quantity > MAX_STOCK_QUANTITY:
            raise ValidationError("Resulting quantity exceeds the maximum stock level")
        return new_quantity
    if movement_type == "out":
        new_quantity = previous_quantity - quantity
        if new_quantity < 0:
            raise InsufficientStockError()
        return new_quantity
    if movement_type == "adjustment":
        # quantity is the new total, not a delta
        return quantity
    raise InvalidMovementTypeError()


def stock_status(quantity: int, reorder_point: int) -> str:
    if quantity <= 0:
        return "out_of_stock"
    if quantity <= reorder_point:
        return "low_stock"
    return "in_stock"


def _ensure_catalog_key(db: Session, product_id: str, variant_id: str | None) -> None:
    product_exists = db.execute(
        select(Product.id).where(Product.id == product_id)
    ).scalar_one_or_none()
    if not product_exists:
        raise NotFoundError("Product not found")

    if variant_id is None:
        return
    variant_exists = db.execute(
        select(ProductVariant.id).where(
            ProductVariant.id == variant_id,
            ProductVariant.product_id == product_id,
        )
    ).scalar_one_or_none()
    if not variant_exists:
        raise NotFoundError("Variant not found")


def find_inventory_record(
    db: Session,
    product_id: str,
    variant_id: str | None,
    *,
    for_update: bool = False,
) -> InventoryRecord | None:
    stmt = select(InventoryRecord).where(InventoryRecord.product_id == product_id)
    if variant_id:
        stmt = stmt.where(InventoryRecord.variant_id == variant_id)
    else:
        # A record without a variant only matches NULL, never "any variant".
        stmt = stmt.where(InventoryRecord.variant_id.is_(None))
    if for_update:
        stmt = stmt.with_for_update()
    return db.execute(stmt.limit(1)).scalar_one_or_none()


def _validate_movement(payload: StockMovementIn) -> None:
    if (
        not payload.product_id
        or not payload.movement_type
        or not payload.quantity
        or not (payload.reason or "").strip()
    ):
        raise ValidationError("ProductId, movementType, quantity, and reason are required")
    if payload.quantity < 0:
        raise ValidationError("Quantity must be a positive integer")
    if payload.quantity > MAX_STOCK_QUANTITY:
        raise ValidationError(f"Quantity must not exceed {MAX_STOCK_QUANTITY}")
    if len(payload.reason) > REASON_MAX_LENGTH:
        raise ValidationError(f"Reason must be at most {REASON_MAX_LENGTH} characters")
    if payload.movement_type not in MOVEMENT_TYPES:
        raise InvalidMovementTypeError()


def record_stock_movement(
    db: Session,
    payload: StockMovementIn,
    *,
    processed_by: str | None = None,
) -> StockMovement:
    _validate_movement(payload)
    product_id = payload.product_id
    variant_id = payload.variant_id or None
    movement_type = payload.movement_type
    quantity = payload.quantity
    _ensure_catalog_key(db, product_id, variant_id)

    with inventory_key_lock.hold((product_id, variant_id)):
        try:
            record = find_inventory_record(db, product_id, variant_id, for_update=True)
            if record is None and movement_type == "out":
                raise NoInventoryRecordError()

            previous_quantity = record.quantity if record else 0
            new_quantity = apply_movement(movement_type, previous_quantity, quantity)
            now = _utcnow()

            if record is None:
                record = InventoryRecord(
                    product_id=product_id,
                    variant_id=variant_id,
                    quantity=new_quantity,
                    reserved_quantity=0,
                    available_quantity=new_quantity,
                    reorder_point=0,
                    reorder_quantity=0,
                    location=payload.location or None,
                    supplier=payload.supplier or None,
                    last_restock_date=now if movement_type == "in" else None,
                )
                db.add(record)
                db.flush()
            else:
                record.quantity = new_quantity
                record.available_quantity = new_quantity - (record.reserved_quantity or 0)
                if movement_type == "in":
                    record.last_restock_date = now
                    if payload.supplier:
                        record.supplier = payload.supplier

            movement = StockMovement(
                inventory_id=record.id,
                product_id=product_id,
                variant_id=variant_id,
                movement_type=movement_type,
                quantity=quantity,
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
                reason=payload.reason,
                location=payload.location or None,
                reference=payload.reference or None,
                notes=payload.notes or None,
                cost_price=payload.cost_price,
                supplier=payload.supplier or None,
                processed_by=processed_by,
                created_at=now,
            )
            db.add(movement)
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ConflictError(
                "Inventory for this product/variant was changed concurrently; retry the movement"
            ) from exc
        except Exception as exc:
            db.rollback()
            log_event(
                "stock_movement.rejected",
                level=logging.WARNING,
                product_id=product_id,
                variant_id=variant_id,
                movement_type=movement_type,
                quantity=quantity,
                error=str(exc),
            )
            raise

    db.refresh(movement)
    log_event(
        "stock_movement.recorded",
        movement_id=movement.id,
        inventory_id=movement.inventory_id,
        movement_type=movement_type,
        previous_quantity=previous_quantity,
        new_quantity=new_quantity,
    )
    return movement


@contextmanager
def hold_inventory_keys(keys: Iterable[tuple[str, str | None]]) -> Iterator[None]:
    """Hold the lock of every key, always acquired in the same order."""
    with ExitStack() as stack:
        for key in sorted(set(keys), key=lambda k: (k[0], k[1] or "")):
            stack.enter_context(inventory_key_lock.hold(key))
        yield


def _ledger_row(
    record: InventoryRecord,
    *,
    movement_type: str,
    quantity: int,
    previous_quantity: int,
    reason: str,
    reference: str | None,
    notes: str | None,
    processed_by: str | None,
) -> StockMovement:
    return StockMovement(
        inventory_id=record.id,
        product_id=record.product_id,
        variant_id=record.variant_id,
        movement_type=movement_type,
        quantity=quantity,
        previous_quantity=previous_quantity,
        new_quantity=record.quantity,
        reason=reason,
        reference=reference,
        notes=notes,
        processed_by=processed_by,
        created_at=_utcnow(),
    )


# The three helpers below expect the caller to hold the key lock, to have loaded
# the record with for_update=True and to own the commit.


def reserve_stock(
    db: Session,
    record: InventoryRecord,
    quantity: int,
    *,
    reason: str,
    reference: str | None = None,
    notes: str | None = None,
    processed_by: str | None = None,
) -> StockMovement:
    available = record.quantity - (record.reserved_quantity or 0)
    if available < quantity:
        raise InsufficientStockError(f"Insufficient stock. Available: {available}, Required: {quantity}")

    record.reserved_quantity = (record.reserved_quantity or 0) + quantity
    record.available_quantity = record.quantity - record.reserved_quantity
    movement = _ledger_row(
        record,
        movement_type="reserve",
        quantity=quantity,
        previous_quantity=record.quantity,
        reason=reason,
        reference=reference,
        notes=notes,
        processed_by=processed_by,
    )
    db.add(movement)
    return movement


def release_stock(
    db: Session,
    record: InventoryRecord,
    quantity: int,
    *,
    reason: str,
    reference: str | None = None,
    notes: str | None = None,
    processed_by: str | None = None,
) -> StockMovement:
    record.reserved_quantity = max(0, (record.reserved_quantity or 0) - quantity)
    record.available_quantity = record.quantity - record.reserved_quantity
    movement = _ledger_row(
        record,
        movement_type="release",
        quantity=quantity,
        previous_quantity=record.quantity,
        reason=reason,
        reference=reference,
        notes=notes,
        processed_by=processed_by,
    )
    db.add(movement)
    return movement


def fulfil_reserved_stock(
    db: Session,
    record: InventoryRecord,
    quantity: int,
    *,
    reason: str,
    reference: str | None = None,
    notes: str | None = None,
    processed_by: str | None = None,
) -> StockMovement:
    """Ship reserved units: on-hand and reserved both drop by ``quantity``."""
    previous_quantity = record.quantity
    record.quantity = apply_movement("out", previous_quantity, quantity)
    record.reserved_quantity = max(0, (record.reserved_quantity or 0) - quantity)
    record.available_quantity = record.quantity - record.reserved_quantity
    movement = _ledger_row(
        record,
        movement_type="out",
        quantity=quantity,
        previous_quantity=previous_quantity,
        reason=reason,
        reference=reference,
        notes=notes,
        processed_by=processed_by,
    )
    db.add(movement)
    return movement


def list_stock_movements(
    db: Session,
    *,
    limit: int = MAX_MOVEMENTS_LISTED,
    product_id: str | None = None,
    variant_id: str | None = None,
    movement_type: str | None = None,
) -> list[StockMovementListItemOut]:
    bounded_limit = max(1, min(limit, MAX_MOVEMENTS_LISTED))
    stmt = (
        select(StockMovement, Product.name, ProductVariant.title)
        .outerjoin(Product, Product.id == StockMovement.product_id)
        .outerjoin(ProductVariant, ProductVariant.id == StockMovement.variant_id)
    )
    if product_id:
        stmt = stmt.where(StockMovement.product_id == product_id)
    if variant_id:
        stmt = stmt.where(StockMovement.variant_id == variant_id)
    if movement_type:
        stmt = stmt.where(StockMovement.movement_type == movement_type)
    # Ledger ids are time-ordered, so they break created_at ties.
    stmt = stmt.order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).limit(bounded_limit)

    return [
        StockMovementListItemOut(
            id=movement.id,
            product_name=product_name or UNKNOWN_PRODUCT_NAME,
            variant_title=variant_title,
            movement_type=movement.movement_type,
            quantity=movement.quantity,
            previous_quantity=movement.previous_quantity,
            new_quantity=movement.new_quantity,
            reason=movement.reason,
            location=movement.location,
            reference=movement.reference,
            notes=movement.notes,
            cost_price=float(movement.cost_price) if movement.cost_price is not None else None,
            supplier=movement.supplier,
            processed_by=movement.processed_by,
            created_at=movement.created_at,
        )
        for movement, product_name, variant_title in db.execute(stmt).all()
    ]


def create_inventory_record(
    db: Session,
    payload: InventoryRecordIn,
    *,
    processed_by: str | None = None,
) -> InventoryRecord:
    """
    Seed path for a key that has no record yet. A non-zero starting quantity is
    ledgered as an adjustment from 0 so on-hand changes stay auditable.
    """
    if not payload.product_id:
        raise ValidationError("ProductId is required")
    if payload.reserved_quantity > payload.quantity:
        raise ValidationError("Reserved quantity cannot exceed quantity")
    product_id = payload.product_id
    variant_id = payload.variant_id or None
    _ensure_catalog_key(db, product_id, variant_id)

    with inventory_key_lock.hold((product_id, variant_id)):
        try:
            if find_inventory_record(db, product_id, variant_id) is not None:
                raise ConflictError("Inventory record already exists for this product/variant")

            record = InventoryRecord(
                product_id=product_id,
                variant_id=variant_id,
                quantity=payload.quantity,
                reserved_quantity=payload.reserved_quantity,
                available_quantity=payload.quantity - payload.reserved_quantity,
                reorder_point=payload.reorder_point,
                reorder_quantity=payload.reorder_quantity,
                location=payload.location or None,
                supplier=payload.supplier or None,
                last_restock_date=payload.last_restock_date,
            )
            db.add(record)
            db.flush()

            if payload.quantity:
                db.add(
                    StockMovement(
                        inventory_id=record.id,
                        product_id=product_id,
                        variant_id=variant_id,
                        movement_type="adjustment",
                        quantity=payload.quantity,
                        previous_quantity=0,
                        new_quantity=payload.quantity,
                        reason=INITIAL_RECORD_REASON,
                        location=record.location,
                        supplier=record.supplier,
                        processed_by=processed_by,
                        created_at=_utcnow(),
                    )
                )
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ConflictError("Inventory record already exists for this product/variant") from exc
        except Exception:
            db.rollback()
            raise

    db.refresh(record)
    log_event(
        "inventory.created",
        inventory_id=record.id,
        product_id=product_id,
        variant_id=variant_id,
        quantity=record.quantity,
    )
    return record


def get_inventory_record(db: Session, inventory_id: str) -> InventoryRecord:
    record = db.execute(
        select(InventoryRecord).where(InventoryRecord.id == inventory_id)
    ).scalar_one_or_none()
    if not record:
        raise NotFoundError("Inventory record not found")
    return record


def list_inventory(db: Session) -> list[InventoryListItemOut]:
    rows = db.execute(
        select(InventoryRecord, Product.id, Product.name, ProductVariant.id, ProductVariant.title)
        .outerjoin(Product, Product.id == InventoryRecord.product_id)
        .outerjoin(ProductVariant, ProductVariant.id == InventoryRecord.variant_id)
        .order_by(InventoryRecord.created_at.desc())
    ).all()

    items: list[InventoryListItemOut] = []
    for record, product_id, product_name, variant_id, variant_title in rows:
        items.append(
            InventoryListItemOut(
                inventory=InventoryRecordOut.model_validate(record),
                product=(
                    InventoryProductRefOut(id=product_id, name=product_name)
                    if product_id
                    else None
                ),
                variant=(
                    InventoryVariantRefOut(id=variant_id, title=variant_title)
                    if variant_id
                    else None
                ),
                stock_status=stock_status(record.quantity, record.reorder_point),
            )
        )
    return items


def _percentage(part: int, total: int) -> float:
    return round(part / total * 100, 2) if total > 0 else 0.0


def build_inventory_report(db: Session) -> InventoryReportOut:
    items = list_inventory(db)
    total = len(items)
    counts = {"in_stock": 0, "low_stock": 0, "out_of_stock": 0}
    low_stock_items: list[LowStockItemOut] = []
    for item in items:
        counts[item.stock_status] += 1
        if item.stock_status == "low_stock":
            low_stock_items.append(
                LowStockItemOut(
                    inventory_id=item.inventory.id,
                    product_id=item.inventory.product_id,
                    product_name=item.product.name if item.product else UNKNOWN_PRODUCT_NAME,
                    variant_title=item.variant.title if item.variant else None,
                    quantity=item.inventory.quantity,
                    reorder_point=item.inventory.reorder_point,
                )
            )

    return InventoryReportOut(
        total=total,
        in_stock=counts["in_stock"],
        low_stock=counts["low_stock"],
        out_of_stock=counts["out_of_stock"],
        in_stock_percentage=_percentage(counts["in_stock"], total),
        low_stock_percentage=_percentage(counts["low_stock"], total),
        out_of_stock_percentage=_percentage(counts["out_of_stock"], total),
        low_stock_items=low_stock_items,
    )
