import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from backoffice.core.api_docs import error_responses
from backoffice.core.config import settings
from backoffice.core.deps import get_db
from backoffice.core.observability import log_event
from backoffice.core.rate_limit import LoginRateLimiter
from backoffice.core.security import create_access_token
from backoffice.core.security_current import get_current_admin
from backoffice.models.user import AdminUser
from backoffice.schemas.auth import AdminProfileOut, LoginIn, TokenOut
from backoffice.schemas.common import MessageOut
from backoffice.services.auth_service import authenticate_admin

router = APIRouter(prefix="/auth", tags=["auth"])
TOKEN_RESPONSE = {
    200: {
        "description": "Session token, also set as the session cookie",
        "content": {
            "application/json": {
                "example": {
                    "accessToken": "access-token",
                    "tokenType": "bearer",
                }
            }
        },
    }
}

login_rate_limiter = LoginRateLimiter(
    max_attempts=settings.auth_rate_limit_max_attempts,
    window_seconds=settings.auth_rate_limit_window_seconds,
    lock_seconds=settings.auth_rate_limit_lock_seconds,
)


def _client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for", "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _rate_key(email: str, client_ip: str) -> str:
    return f"{email.strip().lower()}:{client_ip}"


def _enforce_rate_limit(email: str, client_ip: str) -> str:
    key = _rate_key(email, client_ip)
    retry_after = login_rate_limiter.retry_after(key)
    if retry_after > 0:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many failed attempts. Try again later.",
            headers={"Retry-After": str(retry_after)},
        )
    return key


def _sign_in(
    db: Session,
    request: Request,
    response: Response,
    *,
    email: str,
    password: str,
) -> TokenOut:
    key = _enforce_rate_limit(email, _client_ip(request))
    admin = authenticate_admin(db, email, password)
    if admin is None:
        login_rate_limiter.record_failure(key)
        log_event("auth.login_failed", level=logging.WARNING, email=email.strip().lower())
        raise HTTPException(status_code=401, detail="Invalid credentials")

    login_rate_limiter.record_success(key)
    token = create_access_token(admin.id)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )
    return TokenOut(access_token=token)


@router.post(
    "/login",
    response_model=TokenOut,
    summary="Admin login with JSON",
    description="Authenticate with email and password; the token is also set as the session cookie.",
    responses={**TOKEN_RESPONSE, **error_responses(401, 429, authenticated=False)},
)
def login(
    payload: LoginIn,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    return _sign_in(db, request, response, email=payload.email, password=payload.password)


@router.post(
    "/token",
    response_model=TokenOut,
    summary="OAuth2 password token (Swagger Authorize)",
    description="Form-data login used by Swagger Authorize. Put the admin email in `username`.",
    responses={**TOKEN_RESPONSE, **error_responses(401, 429, authenticated=False)},
)
def login_for_swagger(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    form_data: OAuth2PasswordRequestForm = Depends(),
):
    return _sign_in(
        db,
        request,
        response,
        email=form_data.username,
        password=form_data.password,
    )


@router.post(
    "/logout",
    response_model=MessageOut,
    summary="Clear the session cookie",
    responses=error_responses(authenticated=False),
)
def logout(response: Response):
    response.delete_cookie(settings.session_cookie_name, path="/")
    return MessageOut(message="Logged out")


@router.get(
    "/me",
    response_model=AdminProfileOut,
    summary="Current admin profile",
    responses=error_responses(),
)
def me(admin: AdminUser = Depends(get_current_admin)):
    return admin
