"""Variation attributes (Color, Size, ...) and the values variants pick from."""
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backoffice.core.errors import ConflictError, NotFoundError, ValidationError
from backoffice.core.observability import log_event
from backoffice.models.variation import VariationAttribute, VariationAttributeValue
from backoffice.schemas.variation import (
    AttributeRefOut,
    VariationAttributeIn,
    VariationAttributeValueIn,
    VariationAttributeValueListItemOut,
    VariationAttributeValueOut,
)
from backoffice.services.crud_service import CrudRepository
from backoffice.services.slug_service import generate_slug, generate_unique_slug

attributes = CrudRepository(
    VariationAttribute,
    label="Variation attribute",
    required_fields=("name",),
    required_message="Name is required",
    unique_fields=("name", "slug"),
    duplicate_messages={
        "name": "Variation attribute name already exists",
        "slug": "Variation attribute slug already exists",
    },
    order_by=(VariationAttribute.sort_order.asc(), VariationAttribute.name.asc()),
)


def create_attribute(db: Session, payload: VariationAttributeIn) -> VariationAttribute:
    values = payload.model_dump()
    attributes.validate_required(values)
    if values.get("slug"):
        values["slug"] = generate_slug(values["slug"])
    else:
        values["slug"] = generate_unique_slug(db, VariationAttribute.slug, values["name"])
    return attributes.create(db, values)


def update_attribute(db: Session, attribute_id: str, payload: VariationAttributeIn) -> VariationAttribute:
    values = payload.model_dump(exclude_unset=True)
    if values.get("slug"):
        values["slug"] = generate_slug(values["slug"])
    else:
        values.pop("slug", None)
    return attributes.update(db, attribute_id, values)


def list_attribute_values(
    db: Session,
    attribute_id: str | None = None,
) -> list[VariationAttributeValueListItemOut]:
    stmt = (
        select(VariationAttributeValue, VariationAttribute)
        .outerjoin(VariationAttribute, VariationAttribute.id == VariationAttributeValue.attribute_id)
        .order_by(VariationAttributeValue.sort_order.asc(), VariationAttributeValue.value.asc())
    )
    if attribute_id:
        stmt = stmt.where(VariationAttributeValue.attribute_id == attribute_id)
    else:
        # Without a filter only active values are offered.
        stmt = stmt.where(VariationAttributeValue.is_active.is_(True))

    return [
        VariationAttributeValueListItemOut(
            value=VariationAttributeValueOut.model_validate(value),
            attribute=AttributeRefOut(id=attribute.id, name=attribute.name, type=attribute.type)
            if attribute
            else None,
        )
        for value, attribute in db.execute(stmt).all()
    ]


def create_attribute_value(db: Session, payload: VariationAttributeValueIn) -> VariationAttributeValue:
    if not payload.attribute_id or not (payload.value or "").strip():
        raise ValidationError("AttributeId and value are required")
    if attributes.get(db, payload.attribute_id) is None:
        raise NotFoundError("Variation attribute not found")

    value_text = payload.value.strip()
    slug = generate_slug(payload.slug or value_text)
    if not slug:
        raise ValidationError("Value must contain letters or digits")
    taken = db.execute(
        select(VariationAttributeValue.id).where(
            VariationAttributeValue.attribute_id == payload.attribute_id,
            VariationAttributeValue.slug == slug,
        )
    ).scalar_one_or_none()
    if taken is not None:
        raise ConflictError("Value slug already exists for this attribute")

    entity = VariationAttributeValue(
        attribute_id=payload.attribute_id,
        value=value_text,
        slug=slug,
        color_code=payload.color_code or None,
        image=payload.image or None,
        description=payload.description or None,
        sort_order=payload.sort_order,
        is_active=payload.is_active,
    )
    db.add(entity)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Value slug already exists for this attribute") from exc
    db.refresh(entity)
    log_event(
        "variation_value.created",
        value_id=entity.id,
        attribute_id=entity.attribute_id,
        slug=entity.slug,
    )
    return entity


def delete_attribute(db: Session, attribute_id: str) -> None:
    attributes.get_or_404(db, attribute_id)
    db.execute(delete(VariationAttributeValue).where(VariationAttributeValue.attribute_id == attribute_id))
    attributes.delete(db, attribute_id)
