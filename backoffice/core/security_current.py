from fastapi import Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.deps import get_db
from backoffice.core.security import ACCESS_TOKEN_TYPE, TokenValidationError, decode_token
from backoffice.models.user import AdminUser

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def extract_session_token(request: Request, bearer_token: str | None = None) -> str | None:
    """Bearer header wins over the session cookie when both are present."""
    if bearer_token:
        return bearer_token
    header = request.headers.get("authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(settings.session_cookie_name) or None


def get_current_admin(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> AdminUser:
    session_token = extract_session_token(request, token)
    if not session_token:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_token(session_token, expected_type=ACCESS_TOKEN_TYPE)
    except TokenValidationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    admin_id = payload.get("sub")
    admin = db.execute(select(AdminUser).where(AdminUser.id == admin_id)).scalar_one_or_none()
    if not admin:
        raise HTTPException(status_code=401, detail="User not found")
    if not admin.is_active:
        raise HTTPException(status_code=401, detail="User is inactive")
    return admin
