from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backoffice.core.api_docs import error_responses
from backoffice.core.deps import get_db
from backoffice.core.security_current import get_current_admin
from backoffice.schemas.common import MessageOut
from backoffice.schemas.shipping import (
    ShippingCarrierIn,
    ShippingCarrierOut,
    ShippingMethodIn,
    ShippingMethodOut,
    ShippingServiceTypeIn,
    ShippingServiceTypeOut,
)
from backoffice.services import shipping_service
from backoffice.services.shipping_service import carriers, methods, service_types

carriers_router = APIRouter(
    prefix="/shipping-carriers",
    tags=["shipping"],
    dependencies=[Depends(get_current_admin)],
)
service_types_router = APIRouter(
    prefix="/shipping-service-types",
    tags=["shipping"],
    dependencies=[Depends(get_current_admin)],
)
methods_router = APIRouter(
    prefix="/shipping-methods",
    tags=["shipping"],
    dependencies=[Depends(get_current_admin)],
)


@carriers_router.get("", response_model=list[ShippingCarrierOut], summary="List shipping carriers", responses=error_responses())
def list_carriers(db: Session = Depends(get_db)):
    return carriers.list_all(db)


@carriers_router.post(
    "",
    response_model=ShippingCarrierOut,
    status_code=201,
    summary="Create shipping carrier",
    responses=error_responses(400),
)
def create_carrier(payload: ShippingCarrierIn, db: Session = Depends(get_db)):
    return carriers.create(db, payload.model_dump())


@carriers_router.get(
    "/{carrier_id}",
    response_model=ShippingCarrierOut,
    summary="Get shipping carrier",
    responses=error_responses(404),
)
def get_carrier(carrier_id: str, db: Session = Depends(get_db)):
    return carriers.get_or_404(db, carrier_id)


@carriers_router.put(
    "/{carrier_id}",
    response_model=ShippingCarrierOut,
    summary="Update shipping carrier",
    responses=error_responses(400, 404),
)
def update_carrier(carrier_id: str, payload: ShippingCarrierIn, db: Session = Depends(get_db)):
    return carriers.update(db, carrier_id, payload.model_dump())


@carriers_router.delete(
    "/{carrier_id}",
    response_model=MessageOut,
    summary="Delete shipping carrier",
    responses=error_responses(404),
)
def delete_carrier(carrier_id: str, db: Session = Depends(get_db)):
    shipping_service.delete_carrier(db, carrier_id)
    return MessageOut(message="Shipping carrier deleted successfully")


@service_types_router.get(
    "",
    response_model=list[ShippingServiceTypeOut],
    summary="List shipping service types",
    responses=error_responses(),
)
def list_service_types(db: Session = Depends(get_db)):
    return service_types.list_all(db)


@service_types_router.post(
    "",
    response_model=ShippingServiceTypeOut,
    status_code=201,
    summary="Create shipping service type",
    responses=error_responses(400),
)
def create_service_type(payload: ShippingServiceTypeIn, db: Session = Depends(get_db)):
    return service_types.create(db, payload.model_dump())


@service_types_router.get(
    "/{service_type_id}",
    response_model=ShippingServiceTypeOut,
    summary="Get shipping service type",
    responses=error_responses(404),
)
def get_service_type(service_type_id: str, db: Session = Depends(get_db)):
    return service_types.get_or_404(db, service_type_id)


@service_types_router.put(
    "/{service_type_id}",
    response_model=ShippingServiceTypeOut,
    summary="Update shipping service type",
    responses=error_responses(400, 404),
)
def update_service_type(
    service_type_id: str,
    payload: ShippingServiceTypeIn,
    db: Session = Depends(get_db),
):
    return service_types.update(db, service_type_id, payload.model_dump())


@service_types_router.delete(
    "/{service_type_id}",
    response_model=MessageOut,
    summary="Delete shipping service type",
    responses=error_responses(404),
)
def delete_service_type(service_type_id: str, db: Session = Depends(get_db)):
    shipping_service.delete_service_type(db, service_type_id)
    return MessageOut(message="Service type deleted successfully")


@methods_router.get(
    "",
    response_model=list[ShippingMethodOut],
    summary="List shipping methods with carrier and service type",
    responses=error_responses(),
)
def list_methods(db: Session = Depends(get_db)):
    return shipping_service.list_methods(db)


@methods_router.post(
    "",
    response_model=ShippingMethodOut,
    status_code=201,
    summary="Create shipping method",
    responses=error_responses(400, 404),
)
def create_method(payload: ShippingMethodIn, db: Session = Depends(get_db)):
    return shipping_service.create_method(db, payload)


@methods_router.get(
    "/{method_id}",
    response_model=ShippingMethodOut,
    summary="Get shipping method",
    responses=error_responses(404),
)
def get_method(method_id: str, db: Session = Depends(get_db)):
    return shipping_service.get_method(db, method_id)


@methods_router.put(
    "/{method_id}",
    response_model=ShippingMethodOut,
    summary="Update shipping method",
    responses=error_responses(400, 404),
)
def update_method(method_id: str, payload: ShippingMethodIn, db: Session = Depends(get_db)):
    return shipping_service.update_method(db, method_id, payload)


@methods_router.delete(
    "/{method_id}",
    response_model=MessageOut,
    summary="Delete shipping method",
    responses=error_responses(404),
)
def delete_method(method_id: str, db: Session = Depends(get_db)):
    methods.delete(db, method_id)
    return MessageOut(message="Shipping method deleted successfully")
