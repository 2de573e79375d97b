"""
Page gating for the admin UI paths.

Each request path is resolved against ``PROTECTED_ROUTES``. Anonymous visitors
of a protected page are sent to the login page with the original URL in the
callback parameter; signed-in admins visiting the login page are sent home.
JSON API routes under ``/api`` are not gated here, they authenticate through
``get_current_admin``.
"""
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse

from backoffice.core.config import settings
from backoffice.core.security import is_valid_session_token
from backoffice.core.security_current import extract_session_token


class GatePolicy(str, Enum):
    REQUIRE_SESSION = "require_session"
    REDIRECT_IF_AUTHENTICATED = "redirect_if_authenticated"


@dataclass(frozen=True)
class RoutePolicy:
    prefix: str
    policy: GatePolicy = GatePolicy.REQUIRE_SESSION
    exact: bool = False

    def matches(self, path: str) -> bool:
        if self.exact:
            return path == self.prefix
        return path == self.prefix or path.startswith(self.prefix.rstrip("/") + "/")


PROTECTED_ROUTES: tuple[RoutePolicy, ...] = (
    RoutePolicy("/", exact=True),
    RoutePolicy("/users"),
    RoutePolicy("/courses"),
    RoutePolicy("/orders"),
    RoutePolicy("/admins"),
    RoutePolicy("/roles"),
    RoutePolicy("/logs"),
    RoutePolicy("/attendance"),
    RoutePolicy("/batches"),
    RoutePolicy("/recordings"),
    RoutePolicy("/products"),
    RoutePolicy("/categories"),
    RoutePolicy("/addons"),
    RoutePolicy("/addon-groups"),
    RoutePolicy("/inventory"),
    RoutePolicy("/variation-attributes"),
    RoutePolicy("/product-variants"),
    RoutePolicy("/subcategories"),
    RoutePolicy("/shipping-labels"),
    RoutePolicy("/returns"),
    RoutePolicy("/refunds"),
)


def resolve_policy(path: str) -> GatePolicy | None:
    if RoutePolicy(settings.login_path).matches(path):
        return GatePolicy.REDIRECT_IF_AUTHENTICATED
    for route in PROTECTED_ROUTES:
        if route.matches(path):
            return route.policy
    return None


def login_redirect_url(original_url: str) -> str:
    query = urlencode({settings.auth_callback_param: original_url})
    return f"{settings.login_path}?{query}"


async def auth_gate_middleware(request: Request, call_next):
    policy = resolve_policy(request.url.path)
    if policy is None:
        return await call_next(request)

    authenticated = is_valid_session_token(extract_session_token(request))
    if policy is GatePolicy.REQUIRE_SESSION and not authenticated:
        return RedirectResponse(login_redirect_url(str(request.url)), status_code=307)
    if policy is GatePolicy.REDIRECT_IF_AUTHENTICATED and authenticated:
        return RedirectResponse("/", status_code=307)
    return await call_next(request)
