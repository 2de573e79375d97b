from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, Field

from backoffice.schemas.common import CamelModel


class ShippingCarrierIn(CamelModel):
    name: str | None = None
    code: str | None = None
    description: str | None = None
    website: str | None = None
    tracking_url: str | None = None
    api_endpoint: str | None = None
    api_key: str | None = None
    is_active: bool = True
    sort_order: int = 0

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "UPS",
                "code": "ups",
                "website": "https://www.ups.com",
                "trackingUrl": "https://www.ups.com/track?tracknum={tracking_number}",
                "sortOrder": 1,
            }
        }
    )


class ShippingCarrierOut(CamelModel):
    id: str
    name: str
    code: str
    description: str | None = None
    website: str | None = None
    tracking_url: str | None = None
    api_endpoint: str | None = None
    api_key: str | None = None
    is_active: bool
    sort_order: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ShippingServiceTypeIn(CamelModel):
    name: str | None = None
    code: str | None = None
    description: str | None = None
    category: str | None = None
    is_active: bool = True
    sort_order: int = 0


class ShippingServiceTypeOut(CamelModel):
    id: str
    name: str
    code: str
    description: str | None = None
    category: str | None = None
    is_active: bool
    sort_order: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ShippingMethodIn(CamelModel):
    name: str | None = None
    code: str | None = None
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    estimated_days: int | None = Field(default=None, ge=0)
    is_active: bool = True
    sort_order: int = 0
    carrier_id: str | None = None
    service_type_id: str | None = None
    carrier_code: str | None = None
    service_code: str | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "UPS Ground",
                "code": "ups-ground",
                "price": 9.99,
                "estimatedDays": 5,
                "carrierId": "carrier-id",
                "serviceTypeId": "service-type-id",
            }
        }
    )


class CarrierRefOut(CamelModel):
    id: str
    name: str
    code: str
    tracking_url: str | None = None


class ServiceTypeRefOut(CamelModel):
    id: str
    name: str
    code: str
    category: str | None = None


class ShippingMethodOut(CamelModel):
    id: str
    name: str
    code: str
    description: str | None = None
    price: float
    estimated_days: int | None = None
    is_active: bool
    sort_order: int
    carrier_id: str | None = None
    service_type_id: str | None = None
    carrier_code: str | None = None
    service_code: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    carrier: CarrierRefOut | None = None
    service_type: ServiceTypeRefOut | None = None
