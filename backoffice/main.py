from contextlib import asynccontextmanager

from sqlalchemy import text

from backoffice.core.auth_gate import auth_gate_middleware
from backoffice.core.errors import BackOfficeError
from backoffice.core.observability import (
    backoffice_error_handler,
    http_exception_handler,
    request_logging_middleware,
    setup_observability,
    unhandled_exception_handler,
    validation_exception_handler,
)
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from backoffice.core.config import settings
from backoffice.db.session import SessionLocal, engine
from backoffice.routers import (
    auth,
    categories,
    dashboard,
    inventory,
    orders,
    products,
    shipping,
    upload,
    users,
    variations,
)
from backoffice.services.auth_service import ensure_bootstrap_admin

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if settings.bootstrap_admin_email and settings.bootstrap_admin_password:
        with SessionLocal() as db:
            ensure_bootstrap_admin(db)
    yield


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description=(
        "Back-office API for the catalog, inventory ledger, shipping and customer accounts.\n\n"
        "Swagger quick test flow:\n"
        "1. Call `POST /api/auth/login` with an admin email + password.\n"
        "2. Click **Authorize** and use the same credentials "
        "(OAuth token URL: `/api/auth/token`).\n"
        "3. Test protected endpoints (`/api/products`, `/api/inventory`, `/api/inventory/stock-movements`)."
    ),
    lifespan=lifespan,
    swagger_ui_parameters={
        "persistAuthorization": True,
        "displayRequestDuration": True,
        "defaultModelsExpandDepth": 1,
    },
    openapi_tags=[
        {"name": "health", "description": "Service status and quick links."},
        {"name": "auth", "description": "Admin sign-in and session cookie."},
        {"name": "products", "description": "Products and product variants."},
        {"name": "variations", "description": "Variation attributes and their values."},
        {"name": "categories", "description": "Product categories."},
        {"name": "inventory", "description": "Inventory records, stock movements and stock reports."},
        {"name": "orders", "description": "Customer orders and the stock they reserve."},
        {"name": "shipping", "description": "Shipping carriers, service types and methods."},
        {"name": "users", "description": "Storefront customer accounts."},
        {"name": "dashboard", "description": "Entity counts for the admin home page."},
        {"name": "upload", "description": "Image uploads for catalog and course content."},
    ],
)

setup_observability()
app.middleware("http")(auth_gate_middleware)
app.middleware("http")(request_logging_middleware)
app.add_exception_handler(BackOfficeError, backoffice_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

cors_origins = settings.cors_origins or ["http://localhost:3000"]
allow_all_origins = "*" in cors_origins
env_value = settings.env.lower().strip()
allow_origin_regex = settings.cors_origin_regex

if (
    not allow_origin_regex
    and env_value in {"dev", "development", "staging", "stage"}
):
    # Admin UI dev servers run on dynamic localhost ports.
    allow_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all_origins else cors_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=not allow_all_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix=API_PREFIX)
app.include_router(categories.router, prefix=API_PREFIX)
app.include_router(products.router, prefix=API_PREFIX)
app.include_router(products.variants_router, prefix=API_PREFIX)
app.include_router(variations.attributes_router, prefix=API_PREFIX)
app.include_router(variations.values_router, prefix=API_PREFIX)
app.include_router(inventory.router, prefix=API_PREFIX)
app.include_router(orders.router, prefix=API_PREFIX)
app.include_router(shipping.carriers_router, prefix=API_PREFIX)
app.include_router(shipping.service_types_router, prefix=API_PREFIX)
app.include_router(shipping.methods_router, prefix=API_PREFIX)
app.include_router(users.router, prefix=API_PREFIX)
app.include_router(dashboard.router, prefix=API_PREFIX)
app.include_router(upload.router, prefix=API_PREFIX)

if settings.upload_base_url.startswith("/"):
    app.mount(
        settings.upload_base_url,
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads",
    )


@app.get(API_PREFIX, tags=["health"])
def root():
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
        "ready": "/ready",
    }


@app.get("/health", tags=["health"])
def health():
    return {"ok": True}


@app.get("/ready", tags=["health"])
def ready():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception:
        return {"ok": False}
    return {"ok": True}
