from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, Field

from backoffice.models.inventory import MAX_STOCK_QUANTITY
from backoffice.schemas.common import CamelModel

ORDER_STATUSES = {"pending", "confirmed", "processing", "shipped", "delivered", "cancelled"}
PAYMENT_STATUSES = {"pending", "paid", "failed", "refunded"}
FULFILLMENT_STATUSES = {"pending", "partial", "fulfilled"}


class OrderItemIn(CamelModel):
    product_id: str
    variant_id: str | None = None
    quantity: int = Field(gt=0, le=MAX_STOCK_QUANTITY)
    # Defaults to the variant price, then the product price.
    price: Decimal | None = Field(default=None, ge=0)
    sku: str | None = Field(default=None, max_length=100)


class _AddressFields(CamelModel):
    billing_first_name: str | None = Field(default=None, max_length=100)
    billing_last_name: str | None = Field(default=None, max_length=100)
    billing_address1: str | None = Field(default=None, max_length=255)
    billing_address2: str | None = Field(default=None, max_length=255)
    billing_city: str | None = Field(default=None, max_length=100)
    billing_state: str | None = Field(default=None, max_length=100)
    billing_postal_code: str | None = Field(default=None, max_length=20)
    billing_country: str | None = Field(default=None, max_length=100)

    shipping_first_name: str | None = Field(default=None, max_length=100)
    shipping_last_name: str | None = Field(default=None, max_length=100)
    shipping_address1: str | None = Field(default=None, max_length=255)
    shipping_address2: str | None = Field(default=None, max_length=255)
    shipping_city: str | None = Field(default=None, max_length=100)
    shipping_state: str | None = Field(default=None, max_length=100)
    shipping_postal_code: str | None = Field(default=None, max_length=20)
    shipping_country: str | None = Field(default=None, max_length=100)


class OrderIn(_AddressFields):
    user_id: str | None = None
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    status: str = "pending"
    payment_status: str = "pending"
    subtotal: Decimal | None = Field(default=None, ge=0)
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0)
    shipping_amount: Decimal = Field(default=Decimal("0"), ge=0)
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0)
    total_amount: Decimal | None = Field(default=None, ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    notes: str | None = None
    shipping_method_id: str | None = None
    items: list[OrderItemIn] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "customer@example.com",
                "status": "confirmed",
                "paymentStatus": "paid",
                "shippingAmount": 5,
                "shippingMethodId": "shipping-method-id-here",
                "items": [{"productId": "product-id-here", "quantity": 2}],
            }
        }
    )


class OrderUpdateIn(CamelModel):
    status: str | None = None
    payment_status: str | None = None
    fulfillment_status: str | None = None
    shipping_amount: Decimal | None = Field(default=None, ge=0)
    discount_amount: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None
    tracking_number: str | None = Field(default=None, max_length=100)
    cancel_reason: str | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "shipped",
                "trackingNumber": "1Z999AA10123456784",
            }
        }
    )


class OrderItemOut(CamelModel):
    id: str
    product_id: str
    variant_id: str | None = None
    product_name: str
    variant_title: str | None = None
    sku: str | None = None
    quantity: int
    price: float
    total_price: float


class OrderCustomerRefOut(CamelModel):
    id: str
    name: str | None = None
    email: str


class OrderShippingMethodRefOut(CamelModel):
    id: str
    name: str
    code: str
    price: float
    estimated_days: int | None = None


class OrderOut(_AddressFields):
    id: str
    order_number: str
    user_id: str | None = None
    email: str
    phone: str | None = None
    status: str
    payment_status: str
    fulfillment_status: str
    subtotal: float
    tax_amount: float
    shipping_amount: float
    discount_amount: float
    total_amount: float
    currency: str
    notes: str | None = None
    shipping_method_id: str | None = None
    tracking_number: str | None = None
    cancel_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    user: OrderCustomerRefOut | None = None
    shipping_method: OrderShippingMethodRefOut | None = None
    items: list[OrderItemOut] = Field(default_factory=list)
