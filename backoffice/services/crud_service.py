from collections.abc import Mapping, Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice.core.errors import DuplicateCodeError, NotFoundError, ValidationError
from backoffice.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class CrudRepository(Generic[ModelT]):
    """
    Single-table persistence for a back-office entity.

    ``required_fields`` and ``unique_fields`` are declared once per entity and
    enforced on every create/update, so routers only translate payloads.
    """

    def __init__(
        self,
        model: type[ModelT],
        *,
        label: str,
        required_fields: Sequence[str] = (),
        required_message: str | None = None,
        unique_fields: Sequence[str] = (),
        duplicate_messages: Mapping[str, str] | None = None,
        order_by: Sequence[Any] = (),
    ):
        self.model = model
        self.label = label
        self.required_fields = tuple(required_fields)
        self.required_message = required_message
        self.unique_fields = tuple(unique_fields)
        self.duplicate_messages = dict(duplicate_messages or {})
        self.order_by = tuple(order_by)

    def list_all(self, db: Session, *filters: Any) -> list[ModelT]:
        stmt = select(self.model)
        if filters:
            stmt = stmt.where(*filters)
        if self.order_by:
            stmt = stmt.order_by(*self.order_by)
        return list(db.execute(stmt).scalars().all())

    def get(self, db: Session, entity_id: str) -> ModelT | None:
        return db.execute(
            select(self.model).where(self.model.id == entity_id)
        ).scalar_one_or_none()

    def get_or_404(self, db: Session, entity_id: str) -> ModelT:
        entity = self.get(db, entity_id)
        if entity is None:
            raise NotFoundError(f"{self.label} not found")
        return entity

    def validate_required(self, values: Mapping[str, Any], *, partial: bool = False) -> None:
        # Partial updates only check the required fields they actually carry.
        fields = [f for f in self.required_fields if f in values] if partial else self.required_fields
        missing = [field for field in fields if values.get(field) in (None, "")]
        if missing:
            raise ValidationError(
                self.required_message or f"{', '.join(missing)} required"
            )

    def ensure_unique(
        self,
        db: Session,
        values: Mapping[str, Any],
        *,
        exclude_id: str | None = None,
    ) -> None:
        for field in self.unique_fields:
            value = values.get(field)
            if value in (None, ""):
                continue
            column = getattr(self.model, field)
            existing_id = db.execute(
                select(self.model.id).where(column == value).limit(1)
            ).scalar_one_or_none()
            if existing_id is not None and existing_id != exclude_id:
                raise DuplicateCodeError(
                    self.duplicate_messages.get(field, f"{self.label} {field} already exists")
                )

    def create(self, db: Session, values: Mapping[str, Any], *, commit: bool = True) -> ModelT:
        self.validate_required(values)
        self.ensure_unique(db, values)
        entity = self.model(**values)
        db.add(entity)
        if commit:
            db.commit()
            db.refresh(entity)
        else:
            db.flush()
        return entity

    def update(
        self,
        db: Session,
        entity_id: str,
        values: Mapping[str, Any],
        *,
        commit: bool = True,
    ) -> ModelT:
        self.validate_required(values, partial=True)
        entity = self.get_or_404(db, entity_id)
        self.ensure_unique(db, values, exclude_id=entity_id)
        for field, value in values.items():
            setattr(entity, field, value)
        if commit:
            db.commit()
            db.refresh(entity)
        else:
            db.flush()
        return entity

    def delete(self, db: Session, entity_id: str, *, commit: bool = True) -> None:
        entity = self.get_or_404(db, entity_id)
        db.delete(entity)
        if commit:
            db.commit()
