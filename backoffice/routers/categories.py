from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backoffice.core.api_docs import error_responses
from backoffice.core.deps import get_db
from backoffice.core.security_current import get_current_admin
from backoffice.schemas.common import MessageOut
from backoffice.schemas.product import CategoryIn, CategoryOut
from backoffice.services import catalog_service
from backoffice.services.catalog_service import categories

router = APIRouter(
    prefix="/categories",
    tags=["categories"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("", response_model=list[CategoryOut], summary="List categories", responses=error_responses())
def list_categories(db: Session = Depends(get_db)):
    return categories.list_all(db)


@router.post(
    "",
    response_model=CategoryOut,
    status_code=201,
    summary="Create category",
    responses=error_responses(400),
)
def create_category(payload: CategoryIn, db: Session = Depends(get_db)):
    return catalog_service.create_category(db, payload)


@router.get(
    "/{category_id}",
    response_model=CategoryOut,
    summary="Get category",
    responses=error_responses(404),
)
def get_category(category_id: str, db: Session = Depends(get_db)):
    return categories.get_or_404(db, category_id)


@router.put(
    "/{category_id}",
    response_model=CategoryOut,
    summary="Update category",
    responses=error_responses(400, 404),
)
def update_category(category_id: str, payload: CategoryIn, db: Session = Depends(get_db)):
    return catalog_service.update_category(db, category_id, payload)


@router.delete(
    "/{category_id}",
    response_model=MessageOut,
    summary="Delete category",
    responses=error_responses(404),
)
def delete_category(category_id: str, db: Session = Depends(get_db)):
    catalog_service.delete_category(db, category_id)
    return MessageOut(message="Category deleted successfully")
