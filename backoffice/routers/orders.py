from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backoffice.core.api_docs import error_responses
from backoffice.core.deps import get_db
from backoffice.core.security_current import get_current_admin
from backoffice.models.user import AdminUser
from backoffice.schemas.common import MessageOut
from backoffice.schemas.order import OrderIn, OrderOut, OrderUpdateIn
from backoffice.services import order_service

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=list[OrderOut], summary="List orders, newest first", responses=error_responses())
def list_orders(
    db: Session = Depends(get_db),
    _admin: AdminUser = Depends(get_current_admin),
):
    return order_service.list_orders(db)


@router.post(
    "",
    response_model=OrderOut,
    status_code=201,
    summary="Create order",
    description=(
        "Checks stock for every line and, when the order is created `confirmed` or "
        "`paid`, reserves it through the stock-movement ledger in the same transaction."
    ),
    responses=error_responses(400, 404),
)
def create_order(
    payload: OrderIn,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    return order_service.create_order(db, payload, processed_by=admin.id)


@router.get(
    "/{order_id}",
    response_model=OrderOut,
    summary="Get order",
    responses=error_responses(404),
)
def get_order(
    order_id: str,
    db: Session = Depends(get_db),
    _admin: AdminUser = Depends(get_current_admin),
):
    return order_service.get_order(db, order_id)


@router.put(
    "/{order_id}",
    response_model=OrderOut,
    summary="Update order status, payment or shipping details",
    description=(
        "Confirming reserves stock, cancelling releases it and delivering ships the "
        "reserved units. Each change is recorded as stock movements."
    ),
    responses=error_responses(400, 404),
)
def update_order(
    order_id: str,
    payload: OrderUpdateIn,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    return order_service.update_order(db, order_id, payload, processed_by=admin.id)


@router.delete(
    "/{order_id}",
    response_model=MessageOut,
    summary="Delete order",
    responses=error_responses(404),
)
def delete_order(
    order_id: str,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    order_service.delete_order(db, order_id, processed_by=admin.id)
    return MessageOut(message="Order deleted successfully")
