import json
from typing import List, Union
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Back Office API"
    env: str = "dev"
    secret_key: str
    access_token_expire_minutes: int = Field(default=24 * 60, ge=1)

    # DATABASE
    database_url: str
    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=20, ge=0, le=200)
    db_pool_timeout_seconds: int = Field(default=30, ge=1, le=300)
    db_pool_recycle_seconds: int = Field(default=1800, ge=30, le=86_400)

    # SESSION / PAGE GATING
    session_cookie_name: str = "session_token"
    session_cookie_secure: bool = False
    login_path: str = "/login"
    auth_callback_param: str = "callbackUrl"

    # AUTH HARDENING
    auth_rate_limit_max_attempts: int = Field(default=5, ge=1)
    auth_rate_limit_window_seconds: int = Field(default=300, ge=1)
    auth_rate_limit_lock_seconds: int = Field(default=900, ge=1)

    # BOOTSTRAP ADMIN
    bootstrap_admin_email: str | None = None
    bootstrap_admin_password: str | None = None
    bootstrap_admin_name: str = "Administrator"

    # INVENTORY
    stock_movements_list_limit: int = Field(default=1000, ge=1, le=1000)
    # When off, orders skip inventory checks and reservations.
    stock_management_enabled: bool = True

    # UPLOADS
    upload_dir: str = "uploads"
    upload_base_url: str = "/uploads"
    upload_max_bytes: int = Field(default=5 * 1024 * 1024, ge=1)
    upload_allowed_content_types: List[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/jpg", "image/png", "image/webp"]
    )
    upload_allowed_directories: List[str] = Field(
        default_factory=lambda: ["courses", "batches", "general", "products"]
    )

    # CORS
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    cors_origin_regex: str | None = None

    @field_validator(
        "cors_origins",
        "upload_allowed_content_types",
        "upload_allowed_directories",
        mode="before",
    )
    @classmethod
    def assemble_string_list(cls, v: Union[str, List[str]]) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            if not v.strip():
                return []
            if v.startswith("["):
                parsed = json.loads(v)
                if not isinstance(parsed, list):
                    raise ValueError("JSON value must be a list")
                return [str(i).strip() for i in parsed if str(i).strip()]
            return [i.strip() for i in v.split(",") if i.strip()]
        if isinstance(v, list):
            return [str(i).strip() for i in v if str(i).strip()]
        raise ValueError(v)

    @field_validator(
        "bootstrap_admin_email",
        "bootstrap_admin_password",
        "cors_origin_regex",
        mode="before",
    )
    @classmethod
    def normalize_optional_strings(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @field_validator("login_path")
    @classmethod
    def validate_login_path(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned.startswith("/"):
            raise ValueError("LOGIN_PATH must start with '/'")
        return cleaned.rstrip("/") or "/"

    @model_validator(mode="after")
    def validate_production_safety(self) -> "Settings":
        env_value = self.env.lower().strip()
        if env_value not in {"prod", "production"}:
            return self

        weak_secrets = {
            "",
            "change_me",
            "change_me_please_to_a_long_random_string",
            "dev-secret-key-change-before-prod",
        }
        if self.secret_key.strip() in weak_secrets or len(self.secret_key.strip()) < 32:
            raise ValueError("SECRET_KEY must be a strong random value in production")

        if "*" in self.cors_origins:
            raise ValueError("CORS_ORIGINS cannot contain '*' in production")
        if self.cors_origin_regex:
            raise ValueError("CORS_ORIGIN_REGEX cannot be set in production")

        if not self.session_cookie_secure:
            raise ValueError("SESSION_COOKIE_SECURE must be enabled in production")

        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        enable_decoding=False,
    )


settings = Settings()
