"""
Categories, products and product variants.

Products of type ``variable`` own their variants: creating or updating such a
product upserts the inline variants in the same transaction, and switching a
product back to ``simple`` removes them. Deleting a product removes its
variants and inventory records; the stock-movement ledger is kept.
"""
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from backoffice.core.errors import NotFoundError, ValidationError
from backoffice.core.observability import log_event
from backoffice.models.inventory import InventoryRecord
from backoffice.models.product import Category, Product, ProductVariant
from backoffice.schemas.product import (
    CategoryIn,
    CategoryRefOut,
    ProductDetailOut,
    ProductIn,
    ProductListItemOut,
    ProductOut,
    VariantIn,
    VariantInlineIn,
    VariantListItemOut,
    VariantOut,
    VariantProductRefOut,
)
from backoffice.services.crud_service import CrudRepository
from backoffice.services.slug_service import generate_slug, generate_unique_slug

categories = CrudRepository(
    Category,
    label="Category",
    required_fields=("name",),
    required_message="Name is required",
    unique_fields=("slug",),
    duplicate_messages={"slug": "Category slug already exists"},
    order_by=(Category.sort_order.asc(), Category.name.asc()),
)
products = CrudRepository(
    Product,
    label="Product",
    required_fields=("name",),
    required_message="Name is required",
    order_by=(Product.created_at.desc(),),
)
variants = CrudRepository(
    ProductVariant,
    label="Variant",
    required_fields=("product_id", "title", "price"),
    required_message="ProductId, title, and price are required",
    order_by=(ProductVariant.position.asc(), ProductVariant.created_at.asc()),
)

_PRODUCT_COLUMNS = {
    "name",
    "slug",
    "description",
    "short_description",
    "sku",
    "price",
    "compare_price",
    "cost_price",
    "images",
    "category_id",
    "tags",
    "weight",
    "dimensions",
    "is_featured",
    "is_active",
    "is_digital",
    "requires_shipping",
    "taxable",
    "meta_title",
    "meta_description",
    "meta_keywords",
    "product_type",
    "variation_attributes",
}


# Categories

def create_category(db: Session, payload: CategoryIn) -> Category:
    values = payload.model_dump()
    categories.validate_required(values)
    if values.get("slug"):
        values["slug"] = generate_slug(values["slug"])
    else:
        values["slug"] = generate_unique_slug(db, Category.slug, values["name"])
    return categories.create(db, values)


def update_category(db: Session, category_id: str, payload: CategoryIn) -> Category:
    values = payload.model_dump(exclude_unset=True)
    if values.get("slug"):
        values["slug"] = generate_slug(values["slug"])
    else:
        values.pop("slug", None)
    return categories.update(db, category_id, values)


def delete_category(db: Session, category_id: str) -> None:
    categories.get_or_404(db, category_id)
    db.execute(
        update(Product).where(Product.category_id == category_id).values(category_id=None)
    )
    categories.delete(db, category_id)


# Products

def _ensure_category(db: Session, category_id: str | None) -> None:
    if category_id and categories.get(db, category_id) is None:
        raise NotFoundError("Category not found")


def _inline_variant_values(
    product_id: str,
    variant: VariantInlineIn,
    fallback_price: Any,
) -> dict[str, Any]:
    return {
        "product_id": product_id,
        "title": variant.title,
        "sku": variant.sku or None,
        "price": variant.price if variant.price is not None else fallback_price,
        "compare_price": variant.compare_price,
        "cost_price": variant.cost_price,
        "weight": variant.weight,
        "image": variant.image or None,
        "inventory_quantity": variant.inventory_quantity,
        "inventory_management": True,
        "allow_backorder": False,
        "is_active": variant.is_active,
        "position": 0,
        "variant_options": variant.attributes,
    }


def _upsert_inline_variants(
    db: Session,
    product: Product,
    inline_variants: list[VariantInlineIn],
) -> None:
    for variant in inline_variants:
        if not variant.title.strip():
            raise ValidationError("Variant title is required")
        values = _inline_variant_values(product.id, variant, product.price)
        if variant.id:
            existing = variants.get(db, variant.id)
            if existing is None or existing.product_id != product.id:
                raise NotFoundError("Variant not found")
            for field, value in values.items():
                setattr(existing, field, value)
        else:
            db.add(ProductVariant(**values))


def create_product(db: Session, payload: ProductIn) -> Product:
    values = payload.model_dump(include=_PRODUCT_COLUMNS)
    products.validate_required(values)
    if values.get("price") is None:
        raise ValidationError("Price is required for this product type")
    _ensure_category(db, values.get("category_id"))
    values["slug"] = generate_slug(values.get("slug") or values["name"])

    try:
        product = products.create(db, values, commit=False)
        if product.product_type == "variable" and payload.variants:
            _upsert_inline_variants(db, product, payload.variants)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(product)
    log_event("product.created", product_id=product.id, product_type=product.product_type)
    return product


def update_product(db: Session, product_id: str, payload: ProductIn) -> Product:
    values = payload.model_dump(include=_PRODUCT_COLUMNS, exclude_unset=True)
    if "price" in values and values["price"] is None:
        raise ValidationError("Price is required for this product type")
    if values.get("slug"):
        values["slug"] = generate_slug(values["slug"])
    else:
        values.pop("slug", None)
    _ensure_category(db, values.get("category_id"))

    try:
        product = products.update(db, product_id, values, commit=False)
        if product.product_type == "variable" and payload.variants is not None:
            if payload.variants_to_delete:
                db.execute(
                    delete(ProductVariant).where(
                        ProductVariant.product_id == product.id,
                        ProductVariant.id.in_(payload.variants_to_delete),
                    )
                )
            _upsert_inline_variants(db, product, payload.variants)
        elif values.get("product_type") == "simple":
            db.execute(delete(ProductVariant).where(ProductVariant.product_id == product.id))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(product)
    return product


def delete_product(db: Session, product_id: str) -> None:
    product = products.get_or_404(db, product_id)
    try:
        db.execute(delete(InventoryRecord).where(InventoryRecord.product_id == product.id))
        db.execute(delete(ProductVariant).where(ProductVariant.product_id == product.id))
        db.delete(product)
        db.commit()
    except Exception:
        db.rollback()
        raise
    log_event("product.deleted", product_id=product_id)


def list_products(db: Session) -> list[ProductListItemOut]:
    rows = db.execute(
        select(Product, Category.id, Category.name)
        .outerjoin(Category, Category.id == Product.category_id)
        .order_by(Product.created_at.desc())
    ).all()
    return [
        ProductListItemOut(
            product=ProductOut.model_validate(product),
            category=CategoryRefOut(id=category_id, name=category_name) if category_id else None,
        )
        for product, category_id, category_name in rows
    ]


def get_product_detail(db: Session, product_id: str) -> ProductDetailOut:
    product = products.get_or_404(db, product_id)
    product_variants = variants.list_all(db, ProductVariant.product_id == product.id)
    detail = ProductDetailOut.model_validate(product)
    detail.variants = [VariantOut.model_validate(variant) for variant in product_variants]
    return detail


# Variants

def create_variant(db: Session, payload: VariantIn) -> ProductVariant:
    values = payload.model_dump()
    variants.validate_required(values)
    if products.get(db, values["product_id"]) is None:
        raise NotFoundError("Product not found")
    return variants.create(db, values)


def list_variants(db: Session, *, product_id: str | None = None) -> list[VariantListItemOut]:
    stmt = (
        select(ProductVariant, Product.id, Product.name, Product.product_type)
        .outerjoin(Product, Product.id == ProductVariant.product_id)
        .order_by(ProductVariant.position.asc(), ProductVariant.created_at.asc())
    )
    if product_id:
        stmt = stmt.where(ProductVariant.product_id == product_id)
    return [
        VariantListItemOut(
            variant=VariantOut.model_validate(variant),
            product=(
                VariantProductRefOut(id=pid, name=name, product_type=product_type)
                if pid
                else None
            ),
        )
        for variant, pid, name, product_type in db.execute(stmt).all()
    ]
