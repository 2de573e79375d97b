import pytest
import os
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import backoffice.models  # noqa: F401
from backoffice.core.config import settings
from backoffice.core.deps import get_db
from backoffice.db.base import Base
from backoffice.main import app
from backoffice.routers.auth import login_rate_limiter

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "password123"


@pytest.fixture()
def test_context(tmp_path):
    original_secret = settings.secret_key
    original_upload_dir = settings.upload_dir
    settings.secret_key = "test-secret-key"
    settings.upload_dir = str(tmp_path / "uploads")

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client, session_local

    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)
    settings.secret_key = original_secret
    settings.upload_dir = original_upload_dir
    login_rate_limiter.clear()


@pytest.fixture()
def admin_headers(test_context) -> dict[str, str]:
    from backoffice.services.auth_service import create_admin

    client, session_local = test_context
    with session_local() as db:
        create_admin(db, email=ADMIN_EMAIL, password=ADMIN_PASSWORD, name="Admin")

    res = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert res.status_code == 200, res.text
    # Bearer header only; keep the cookie jar clean so tests control it explicitly.
    client.cookies.clear()
    return {"Authorization": f"Bearer {res.json()['accessToken']}"}
