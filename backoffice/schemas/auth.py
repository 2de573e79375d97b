from datetime import datetime

from pydantic import ConfigDict, EmailStr, field_validator

from backoffice.schemas.common import CamelModel


class LoginIn(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        cleaned = value.strip().lower()
        if not cleaned:
            raise ValueError("email is required")
        return cleaned

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "admin@example.com",
                "password": "password123",
            }
        }
    )


class TokenOut(CamelModel):
    access_token: str
    token_type: str = "bearer"


class AdminProfileOut(CamelModel):
    id: str
    name: str | None = None
    email: str
    is_active: bool
    created_at: datetime | None = None


class UserIn(CamelModel):
    name: str | None = None
    email: EmailStr | None = None
    password: str | None = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str | None) -> str | None:
        if value is not None and len(value) < 8:
            raise ValueError("password must be at least 8 characters")
        return value


class UserOut(CamelModel):
    id: str
    name: str | None = None
    email: str
    role: str
    created_at: datetime | None = None
