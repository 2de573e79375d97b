from urllib.parse import parse_qs, urlparse

import pytest

from backoffice.core.auth_gate import GatePolicy, resolve_policy


@pytest.mark.parametrize(
    "path",
    ["/", "/products", "/products/new", "/inventory/stock-movements", "/refunds/12", "/addon-groups"],
)
def test_protected_paths_require_session(path):
    assert resolve_policy(path) is GatePolicy.REQUIRE_SESSION


@pytest.mark.parametrize("path", ["/productsx", "/health", "/api/products", "/docs", "/shipping-methods"])
def test_unlisted_paths_pass_through(path):
    assert resolve_policy(path) is None


def test_login_path_redirects_signed_in_admins():
    assert resolve_policy("/login") is GatePolicy.REDIRECT_IF_AUTHENTICATED


def test_anonymous_page_visit_redirects_to_login_with_callback(test_context):
    client, _ = test_context

    res = client.get("/products/edit?id=7", follow_redirects=False)
    assert res.status_code == 307
    location = urlparse(res.headers["location"])
    assert location.path == "/login"
    assert parse_qs(location.query)["callbackUrl"] == ["http://testserver/products/edit?id=7"]


def test_signed_in_admin_passes_gate(test_context, admin_headers):
    client, _ = test_context

    res = client.get("/inventory", headers=admin_headers, follow_redirects=False)
    # No page is served here, but the gate let the request through.
    assert res.status_code == 404


def test_signed_in_admin_is_sent_home_from_login(test_context, admin_headers):
    client, _ = test_context

    res = client.get("/login", headers=admin_headers, follow_redirects=False)
    assert res.status_code == 307
    assert res.headers["location"] == "/"


def test_session_cookie_counts_as_signed_in(test_context, admin_headers):
    client, _ = test_context
    login = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "password123"})
    assert login.status_code == 200, login.text

    res = client.get("/login", follow_redirects=False)
    assert res.status_code == 307
    assert res.headers["location"] == "/"


def test_expired_or_invalid_cookie_is_anonymous(test_context):
    client, _ = test_context
    client.cookies.set("session_token", "garbage")

    res = client.get("/", follow_redirects=False)
    assert res.status_code == 307
    assert res.headers["location"].startswith("/login?callbackUrl=")

    assert client.get("/health").json() == {"ok": True}
