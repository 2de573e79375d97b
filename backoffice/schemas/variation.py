from datetime import datetime

from pydantic import Field

from backoffice.schemas.common import CamelModel


class VariationAttributeIn(CamelModel):
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    type: str = "select"
    is_active: bool = True
    sort_order: int = 0


class VariationAttributeOut(CamelModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    type: str
    is_active: bool
    sort_order: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class VariationAttributeValueIn(CamelModel):
    attribute_id: str | None = None
    value: str | None = None
    slug: str | None = None
    color_code: str | None = Field(default=None, max_length=7)
    image: str | None = None
    description: str | None = None
    sort_order: int = 0
    is_active: bool = True


class VariationAttributeValueOut(CamelModel):
    id: str
    attribute_id: str
    value: str
    slug: str
    color_code: str | None = None
    image: str | None = None
    description: str | None = None
    is_active: bool
    sort_order: int


class AttributeRefOut(CamelModel):
    id: str
    name: str
    type: str


class VariationAttributeValueListItemOut(CamelModel):
    value: VariationAttributeValueOut
    attribute: AttributeRefOut | None = None
