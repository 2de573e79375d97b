import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.observability import log_event
from backoffice.core.security import hash_password, verify_password
from backoffice.models.user import AdminUser


def find_admin_by_email(db: Session, email: str) -> AdminUser | None:
    return db.execute(
        select(AdminUser).where(func.lower(AdminUser.email) == email.strip().lower())
    ).scalar_one_or_none()


def authenticate_admin(db: Session, email: str, password: str) -> AdminUser | None:
    admin = find_admin_by_email(db, email)
    if admin is None or not verify_password(password, admin.hashed_password):
        return None
    if not admin.is_active:
        return None
    return admin


def create_admin(db: Session, *, email: str, password: str, name: str | None = None) -> AdminUser:
    admin = AdminUser(
        email=email.strip().lower(),
        name=name,
        hashed_password=hash_password(password),
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def ensure_bootstrap_admin(db: Session) -> AdminUser | None:
    """Creates the configured first admin unless an admin with that email exists."""
    email = settings.bootstrap_admin_email
    password = settings.bootstrap_admin_password
    if not email or not password:
        return None

    existing = find_admin_by_email(db, email)
    if existing is not None:
        return existing

    admin = create_admin(db, email=email, password=password, name=settings.bootstrap_admin_name)
    log_event("auth.bootstrap_admin_created", level=logging.WARNING, admin_id=admin.id)
    return admin
