from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backoffice.core.api_docs import error_responses
from backoffice.core.deps import get_db
from backoffice.core.security_current import get_current_admin
from backoffice.schemas.common import MessageOut
from backoffice.schemas.variation import (
    VariationAttributeIn,
    VariationAttributeOut,
    VariationAttributeValueIn,
    VariationAttributeValueListItemOut,
    VariationAttributeValueOut,
)
from backoffice.services import variation_service
from backoffice.services.variation_service import attributes

attributes_router = APIRouter(
    prefix="/variation-attributes",
    tags=["variations"],
    dependencies=[Depends(get_current_admin)],
)
values_router = APIRouter(
    prefix="/variation-attribute-values",
    tags=["variations"],
    dependencies=[Depends(get_current_admin)],
)


@attributes_router.get(
    "",
    response_model=list[VariationAttributeOut],
    summary="List variation attributes",
    responses=error_responses(),
)
def list_attributes(db: Session = Depends(get_db)):
    return attributes.list_all(db)


@attributes_router.post(
    "",
    response_model=VariationAttributeOut,
    status_code=201,
    summary="Create variation attribute",
    responses=error_responses(400),
)
def create_attribute(payload: VariationAttributeIn, db: Session = Depends(get_db)):
    return variation_service.create_attribute(db, payload)


@attributes_router.get(
    "/{attribute_id}",
    response_model=VariationAttributeOut,
    summary="Get variation attribute",
    responses=error_responses(404),
)
def get_attribute(attribute_id: str, db: Session = Depends(get_db)):
    return attributes.get_or_404(db, attribute_id)


@attributes_router.put(
    "/{attribute_id}",
    response_model=VariationAttributeOut,
    summary="Update variation attribute",
    responses=error_responses(400, 404),
)
def update_attribute(attribute_id: str, payload: VariationAttributeIn, db: Session = Depends(get_db)):
    return variation_service.update_attribute(db, attribute_id, payload)


@attributes_router.delete(
    "/{attribute_id}",
    response_model=MessageOut,
    summary="Delete variation attribute and its values",
    responses=error_responses(404),
)
def delete_attribute(attribute_id: str, db: Session = Depends(get_db)):
    variation_service.delete_attribute(db, attribute_id)
    return MessageOut(message="Variation attribute deleted successfully")


@values_router.get(
    "",
    response_model=list[VariationAttributeValueListItemOut],
    summary="List attribute values",
    description="With `attributeId`, all values of that attribute; otherwise every active value.",
    responses=error_responses(),
)
def list_values(
    attribute_id: str | None = Query(default=None, alias="attributeId"),
    db: Session = Depends(get_db),
):
    return variation_service.list_attribute_values(db, attribute_id)


@values_router.post(
    "",
    response_model=VariationAttributeValueOut,
    status_code=201,
    summary="Create attribute value",
    responses=error_responses(400, 404, 409),
)
def create_value(payload: VariationAttributeValueIn, db: Session = Depends(get_db)):
    return variation_service.create_attribute_value(db, payload)
