from sqlalchemy import select, update

from backoffice.core.config import settings
from backoffice.models.user import AdminUser
from backoffice.services.auth_service import create_admin, ensure_bootstrap_admin

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "password123"


def _seed_admin(session_local, *, email: str = ADMIN_EMAIL, password: str = ADMIN_PASSWORD) -> str:
    with session_local() as db:
        return create_admin(db, email=email, password=password, name="Admin").id


def test_login_issues_token_and_session_cookie(test_context):
    client, session_local = test_context
    admin_id = _seed_admin(session_local)

    res = client.post("/api/auth/login", json={"email": "ADMIN@example.com", "password": ADMIN_PASSWORD})
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["tokenType"] == "bearer"
    assert res.cookies.get(settings.session_cookie_name) == body["accessToken"]

    # The cookie alone authenticates API calls.
    me = client.get("/api/auth/me")
    assert me.status_code == 200, me.text
    assert me.json()["id"] == admin_id
    assert me.json()["email"] == ADMIN_EMAIL

    logout = client.post("/api/auth/logout")
    assert logout.status_code == 200
    client.cookies.clear()
    assert client.get("/api/auth/me").status_code == 401


def test_swagger_token_form_login(test_context):
    client, session_local = test_context
    _seed_admin(session_local)

    res = client.post("/api/auth/token", data={"username": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert res.status_code == 200, res.text
    token = res.json()["accessToken"]
    client.cookies.clear()

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200


def test_invalid_credentials_and_rate_limit(test_context):
    client, session_local = test_context
    _seed_admin(session_local)

    for _ in range(settings.auth_rate_limit_max_attempts):
        res = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong-password"})
        assert res.status_code == 401
        assert res.json()["error"]["message"] == "Invalid credentials"

    blocked = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert blocked.status_code == 429
    assert int(blocked.headers["Retry-After"]) > 0
    assert blocked.json()["error"]["code"] == "rate_limited"


def test_inactive_admin_cannot_sign_in_or_use_token(test_context, admin_headers):
    client, session_local = test_context

    with session_local() as db:
        db.execute(update(AdminUser).values(is_active=False))
        db.commit()

    assert client.get("/api/auth/me", headers=admin_headers).status_code == 401
    res = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert res.status_code == 401


def test_garbage_token_is_rejected(test_context):
    client, _ = test_context

    res = client.get("/api/products", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.json()["error"]["message"] == "Invalid token"


def test_bootstrap_admin_created_once(test_context, monkeypatch):
    _, session_local = test_context
    monkeypatch.setattr(settings, "bootstrap_admin_email", "root@example.com")
    monkeypatch.setattr(settings, "bootstrap_admin_password", "bootstrap-pass")

    with session_local() as db:
        first = ensure_bootstrap_admin(db)
        second = ensure_bootstrap_admin(db)
        admins = db.execute(select(AdminUser)).scalars().all()

    assert first.id == second.id
    assert len(admins) == 1
    assert admins[0].name == settings.bootstrap_admin_name


def test_bootstrap_admin_skipped_without_settings(test_context, monkeypatch):
    _, session_local = test_context
    monkeypatch.setattr(settings, "bootstrap_admin_email", None)

    with session_local() as db:
        assert ensure_bootstrap_admin(db) is None
