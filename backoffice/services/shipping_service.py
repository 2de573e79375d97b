from sqlalchemy import select, update
from sqlalchemy.orm import Session

from backoffice.core.errors import NotFoundError
from backoffice.models.shipping import ShippingCarrier, ShippingMethod, ShippingServiceType
from backoffice.schemas.shipping import (
    CarrierRefOut,
    ServiceTypeRefOut,
    ShippingMethodIn,
    ShippingMethodOut,
)
from backoffice.services.crud_service import CrudRepository

carriers = CrudRepository(
    ShippingCarrier,
    label="Shipping carrier",
    required_fields=("name", "code"),
    required_message="Name and code are required",
    unique_fields=("code",),
    duplicate_messages={"code": "Carrier code already exists"},
    order_by=(ShippingCarrier.sort_order.desc(), ShippingCarrier.name.asc()),
)
service_types = CrudRepository(
    ShippingServiceType,
    label="Service type",
    required_fields=("name", "code"),
    required_message="Name and code are required",
    unique_fields=("code",),
    duplicate_messages={"code": "Service type code already exists"},
    order_by=(ShippingServiceType.sort_order.desc(), ShippingServiceType.name.asc()),
)
methods = CrudRepository(
    ShippingMethod,
    label="Shipping method",
    required_fields=("name", "code", "price"),
    required_message="Name, code, and price are required",
    unique_fields=("code",),
    duplicate_messages={"code": "Shipping method code already exists"},
    order_by=(ShippingMethod.sort_order.desc(), ShippingMethod.name.asc()),
)


def _method_stmt():
    return (
        select(ShippingMethod, ShippingCarrier, ShippingServiceType)
        .outerjoin(ShippingCarrier, ShippingCarrier.id == ShippingMethod.carrier_id)
        .outerjoin(ShippingServiceType, ShippingServiceType.id == ShippingMethod.service_type_id)
    )


def _method_out(
    method: ShippingMethod,
    carrier: ShippingCarrier | None,
    service_type: ShippingServiceType | None,
) -> ShippingMethodOut:
    out = ShippingMethodOut.model_validate(method)
    out.carrier = CarrierRefOut.model_validate(carrier) if carrier else None
    out.service_type = ServiceTypeRefOut.model_validate(service_type) if service_type else None
    return out


def _method_values(payload: ShippingMethodIn) -> dict:
    values = payload.model_dump()
    for field in ("carrier_id", "service_type_id", "carrier_code", "service_code", "description"):
        values[field] = values[field] or None
    return values


def _ensure_references(db: Session, values: dict) -> None:
    if values.get("carrier_id") and carriers.get(db, values["carrier_id"]) is None:
        raise NotFoundError("Shipping carrier not found")
    if values.get("service_type_id") and service_types.get(db, values["service_type_id"]) is None:
        raise NotFoundError("Service type not found")


def list_methods(db: Session) -> list[ShippingMethodOut]:
    stmt = _method_stmt().order_by(ShippingMethod.sort_order.desc(), ShippingMethod.name.asc())
    return [_method_out(*row) for row in db.execute(stmt).all()]


def get_method(db: Session, method_id: str) -> ShippingMethodOut:
    row = db.execute(_method_stmt().where(ShippingMethod.id == method_id)).first()
    if row is None:
        raise NotFoundError("Shipping method not found")
    return _method_out(*row)


def create_method(db: Session, payload: ShippingMethodIn) -> ShippingMethodOut:
    values = _method_values(payload)
    methods.validate_required(values)
    _ensure_references(db, values)
    method = methods.create(db, values)
    return get_method(db, method.id)


def update_method(db: Session, method_id: str, payload: ShippingMethodIn) -> ShippingMethodOut:
    values = _method_values(payload)
    methods.validate_required(values)
    _ensure_references(db, values)
    methods.update(db, method_id, values)
    return get_method(db, method_id)


def delete_carrier(db: Session, carrier_id: str) -> None:
    carriers.get_or_404(db, carrier_id)
    db.execute(
        update(ShippingMethod)
        .where(ShippingMethod.carrier_id == carrier_id)
        .values(carrier_id=None)
    )
    carriers.delete(db, carrier_id)


def delete_service_type(db: Session, service_type_id: str) -> None:
    service_types.get_or_404(db, service_type_id)
    db.execute(
        update(ShippingMethod)
        .where(ShippingMethod.service_type_id == service_type_id)
        .values(service_type_id=None)
    )
    service_types.delete(db, service_type_id)
