from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backoffice.core.api_docs import error_responses
from backoffice.core.config import settings
from backoffice.core.deps import get_db
from backoffice.core.security_current import get_current_admin
from backoffice.models.user import AdminUser
from backoffice.schemas.inventory import (
    InventoryListItemOut,
    InventoryRecordIn,
    InventoryRecordOut,
    InventoryReportOut,
    StockMovementIn,
    StockMovementListItemOut,
    StockMovementOut,
)
from backoffice.services.inventory_service import (
    MAX_MOVEMENTS_LISTED,
    build_inventory_report,
    create_inventory_record,
    get_inventory_record,
    list_inventory,
    list_stock_movements,
    record_stock_movement,
)

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get(
    "/stock-movements",
    response_model=list[StockMovementListItemOut],
    summary="List stock movements, newest first",
    responses=error_responses(),
)
def get_stock_movements(
    limit: int = Query(default=settings.stock_movements_list_limit, ge=1, le=MAX_MOVEMENTS_LISTED),
    product_id: str | None = Query(default=None, alias="productId"),
    variant_id: str | None = Query(default=None, alias="variantId"),
    movement_type: str | None = Query(default=None, alias="movementType"),
    db: Session = Depends(get_db),
    _admin: AdminUser = Depends(get_current_admin),
):
    return list_stock_movements(
        db,
        limit=limit,
        product_id=product_id,
        variant_id=variant_id,
        movement_type=movement_type,
    )


@router.post(
    "/stock-movements",
    response_model=StockMovementOut,
    status_code=201,
    summary="Record a stock movement",
    description=(
        "Applies an `in`, `out` or `adjustment` movement to the inventory record for "
        "`(productId, variantId)` and appends it to the ledger in one transaction. "
        "`adjustment` sets the on-hand quantity to `quantity`."
    ),
    responses=error_responses(400, 404, 409),
)
def post_stock_movement(
    payload: StockMovementIn,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    return record_stock_movement(db, payload, processed_by=admin.id)


@router.get(
    "/reports/summary",
    response_model=InventoryReportOut,
    summary="Stock status summary",
    responses=error_responses(),
)
def get_inventory_report(
    db: Session = Depends(get_db),
    _admin: AdminUser = Depends(get_current_admin),
):
    return build_inventory_report(db)


@router.get(
    "",
    response_model=list[InventoryListItemOut],
    summary="List inventory records",
    responses=error_responses(),
)
def get_inventory(
    db: Session = Depends(get_db),
    _admin: AdminUser = Depends(get_current_admin),
):
    return list_inventory(db)


@router.post(
    "",
    response_model=InventoryRecordOut,
    status_code=201,
    summary="Create an inventory record",
    description=(
        "Seeds the record for a product/variant that has none. A non-zero starting "
        "quantity is written to the ledger as an adjustment."
    ),
    responses=error_responses(400, 404, 409),
)
def post_inventory(
    payload: InventoryRecordIn,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    return create_inventory_record(db, payload, processed_by=admin.id)


@router.get(
    "/{inventory_id}",
    response_model=InventoryRecordOut,
    summary="Get inventory record",
    responses=error_responses(404),
)
def get_inventory_by_id(
    inventory_id: str,
    db: Session = Depends(get_db),
    _admin: AdminUser = Depends(get_current_admin),
):
    return get_inventory_record(db, inventory_id)
