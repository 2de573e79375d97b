from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backoffice.core.api_docs import error_responses
from backoffice.core.deps import get_db
from backoffice.core.security_current import get_current_admin
from backoffice.schemas.common import MessageOut
from backoffice.schemas.product import (
    ProductDetailOut,
    ProductIn,
    ProductListItemOut,
    ProductOut,
    VariantIn,
    VariantListItemOut,
    VariantOut,
)
from backoffice.services import catalog_service

router = APIRouter(
    prefix="/products",
    tags=["products"],
    dependencies=[Depends(get_current_admin)],
)
variants_router = APIRouter(
    prefix="/product-variants",
    tags=["products"],
    dependencies=[Depends(get_current_admin)],
)


@router.get(
    "",
    response_model=list[ProductListItemOut],
    summary="List products with their category",
    responses=error_responses(),
)
def list_products(db: Session = Depends(get_db)):
    return catalog_service.list_products(db)


@router.post(
    "",
    response_model=ProductOut,
    status_code=201,
    summary="Create product",
    description="`variable` products may carry their variants inline.",
    responses=error_responses(400, 404),
)
def create_product(payload: ProductIn, db: Session = Depends(get_db)):
    return catalog_service.create_product(db, payload)


@router.get(
    "/{product_id}",
    response_model=ProductDetailOut,
    summary="Get product with variants",
    responses=error_responses(404),
)
def get_product(product_id: str, db: Session = Depends(get_db)):
    return catalog_service.get_product_detail(db, product_id)


@router.put(
    "/{product_id}",
    response_model=ProductOut,
    summary="Update product",
    description=(
        "Inline `variants` are upserted by id for `variable` products and ids in "
        "`variantsToDelete` are removed. Switching to `simple` removes all variants."
    ),
    responses=error_responses(400, 404),
)
def update_product(product_id: str, payload: ProductIn, db: Session = Depends(get_db)):
    return catalog_service.update_product(db, product_id, payload)


@router.delete(
    "/{product_id}",
    response_model=MessageOut,
    summary="Delete product",
    responses=error_responses(404),
)
def delete_product(product_id: str, db: Session = Depends(get_db)):
    catalog_service.delete_product(db, product_id)
    return MessageOut(message="Product deleted successfully")


@variants_router.get(
    "",
    response_model=list[VariantListItemOut],
    summary="List product variants",
    responses=error_responses(),
)
def list_variants(
    product_id: str | None = Query(default=None, alias="productId"),
    db: Session = Depends(get_db),
):
    return catalog_service.list_variants(db, product_id=product_id)


@variants_router.post(
    "",
    response_model=VariantOut,
    status_code=201,
    summary="Create product variant",
    responses=error_responses(400, 404),
)
def create_variant(payload: VariantIn, db: Session = Depends(get_db)):
    return catalog_service.create_variant(db, payload)
