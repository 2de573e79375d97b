from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backoffice.core.api_docs import error_responses
from backoffice.core.deps import get_db
from backoffice.core.security import hash_password
from backoffice.core.security_current import get_current_admin
from backoffice.models.user import User
from backoffice.schemas.auth import UserIn, UserOut
from backoffice.services.crud_service import CrudRepository

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(get_current_admin)],
)

users = CrudRepository(
    User,
    label="User",
    required_fields=("name", "email", "hashed_password"),
    required_message="Name, email, and password are required",
    unique_fields=("email",),
    duplicate_messages={"email": "Email already registered"},
    order_by=(User.created_at.desc(),),
)


@router.get("", response_model=list[UserOut], summary="List customer accounts", responses=error_responses())
def list_users(db: Session = Depends(get_db)):
    return users.list_all(db)


@router.post(
    "",
    response_model=UserOut,
    status_code=201,
    summary="Create customer account",
    responses=error_responses(400),
)
def create_user(payload: UserIn, db: Session = Depends(get_db)):
    return users.create(
        db,
        {
            "name": payload.name,
            "email": str(payload.email).strip().lower() if payload.email else None,
            "hashed_password": hash_password(payload.password) if payload.password else None,
            "role": "user",
        },
    )
