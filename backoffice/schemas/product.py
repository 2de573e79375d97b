from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from backoffice.schemas.common import CamelModel

PRODUCT_TYPES = {"simple", "variable"}


class CategoryIn(CamelModel):
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    image: str | None = None
    is_active: bool = True
    sort_order: int = 0


class CategoryOut(CamelModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    image: str | None = None
    is_active: bool
    sort_order: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class VariantInlineIn(CamelModel):
    id: str | None = None
    title: str
    sku: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    compare_price: Decimal | None = Field(default=None, ge=0)
    cost_price: Decimal | None = Field(default=None, ge=0)
    weight: Decimal | None = Field(default=None, ge=0)
    image: str | None = None
    inventory_quantity: int = Field(default=0, ge=0)
    is_active: bool = True
    attributes: dict[str, Any] | None = None


class ProductIn(CamelModel):
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    short_description: str | None = None
    sku: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    compare_price: Decimal | None = Field(default=None, ge=0)
    cost_price: Decimal | None = Field(default=None, ge=0)
    images: list[str] | None = None
    category_id: str | None = None
    tags: list[str] | None = None
    weight: Decimal | None = Field(default=None, ge=0)
    dimensions: dict[str, Any] | None = None
    is_featured: bool = False
    is_active: bool = True
    is_digital: bool = False
    requires_shipping: bool = True
    taxable: bool = True
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: str | None = None
    product_type: str = "simple"
    variation_attributes: list[dict[str, Any]] | None = None
    variants: list[VariantInlineIn] | None = None
    variants_to_delete: list[str] | None = None

    @field_validator("product_type")
    @classmethod
    def validate_product_type(cls, value: str) -> str:
        cleaned = (value or "simple").strip().lower()
        if cleaned not in PRODUCT_TYPES:
            raise ValueError(f"product_type must be one of: {', '.join(sorted(PRODUCT_TYPES))}")
        return cleaned

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Classic Tee",
                "price": 19.99,
                "productType": "variable",
                "variants": [
                    {"title": "Red / M", "sku": "TEE-RED-M", "price": 19.99},
                    {"title": "Red / L", "sku": "TEE-RED-L", "price": 21.99},
                ],
            }
        }
    )


class ProductOut(CamelModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    short_description: str | None = None
    sku: str | None = None
    price: float
    compare_price: float | None = None
    cost_price: float | None = None
    images: list[str] = Field(default_factory=list)
    category_id: str | None = None
    tags: list[str] | None = None
    weight: float | None = None
    dimensions: dict[str, Any] | None = None
    is_featured: bool
    is_active: bool
    is_digital: bool
    requires_shipping: bool
    taxable: bool
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: str | None = None
    product_type: str
    variation_attributes: list[dict[str, Any]] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("images", mode="before")
    @classmethod
    def normalize_images(cls, value: Any) -> list[str]:
        if not value:
            return []
        if isinstance(value, str):
            return [value]
        return [str(item) for item in value if item]


class CategoryRefOut(CamelModel):
    id: str
    name: str


class ProductListItemOut(CamelModel):
    product: ProductOut
    category: CategoryRefOut | None = None


class VariantIn(CamelModel):
    product_id: str | None = None
    title: str | None = None
    sku: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    compare_price: Decimal | None = Field(default=None, ge=0)
    cost_price: Decimal | None = Field(default=None, ge=0)
    weight: Decimal | None = Field(default=None, ge=0)
    image: str | None = None
    position: int = 0
    inventory_quantity: int = Field(default=0, ge=0)
    inventory_management: bool = True
    allow_backorder: bool = False
    variant_options: dict[str, Any] | list[Any] | None = None
    is_active: bool = True


class VariantOut(CamelModel):
    id: str
    product_id: str
    title: str
    sku: str | None = None
    price: float
    compare_price: float | None = None
    cost_price: float | None = None
    weight: float | None = None
    image: str | None = None
    position: int
    inventory_quantity: int
    inventory_management: bool
    allow_backorder: bool
    variant_options: dict[str, Any] | list[Any] | None = None
    is_active: bool
    created_at: datetime | None = None


class VariantProductRefOut(CamelModel):
    id: str
    name: str
    product_type: str


class VariantListItemOut(CamelModel):
    variant: VariantOut
    product: VariantProductRefOut | None = None


class ProductDetailOut(ProductOut):
    variants: list[VariantOut] = Field(default_factory=list)
