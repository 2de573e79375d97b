from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, Field

from backoffice.models.inventory import MAX_STOCK_QUANTITY
from backoffice.schemas.common import CamelModel


class StockMovementIn(CamelModel):
    # Presence of the required fields is checked by the ledger so that a
    # missing field is reported as a 400 with a single message.
    product_id: str | None = None
    variant_id: str | None = None
    movement_type: str | None = None
    quantity: int | None = None
    reason: str | None = None
    location: str | None = Field(default=None, max_length=255)
    reference: str | None = Field(default=None, max_length=255)
    notes: str | None = None
    cost_price: Decimal | None = Field(default=None, ge=0)
    supplier: str | None = Field(default=None, max_length=255)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "productId": "product-id-here",
                "variantId": None,
                "movementType": "in",
                "quantity": 50,
                "reason": "initial stock",
                "reference": "PO-1042",
                "costPrice": 12.5,
                "supplier": "Acme Supplies",
            }
        }
    )


class StockMovementOut(CamelModel):
    id: str
    inventory_id: str
    product_id: str
    variant_id: str | None = None
    movement_type: str
    quantity: int
    previous_quantity: int
    new_quantity: int
    reason: str
    location: str | None = None
    reference: str | None = None
    notes: str | None = None
    cost_price: float | None = None
    supplier: str | None = None
    processed_by: str | None = None
    created_at: datetime


class StockMovementListItemOut(CamelModel):
    id: str
    product_name: str
    variant_title: str | None = None
    movement_type: str
    quantity: int
    previous_quantity: int
    new_quantity: int
    reason: str
    location: str | None = None
    reference: str | None = None
    notes: str | None = None
    cost_price: float | None = None
    supplier: str | None = None
    processed_by: str | None = None
    created_at: datetime


class InventoryRecordIn(CamelModel):
    product_id: str | None = None
    variant_id: str | None = None
    quantity: int = Field(default=0, ge=0, le=MAX_STOCK_QUANTITY)
    reserved_quantity: int = Field(default=0, ge=0, le=MAX_STOCK_QUANTITY)
    reorder_point: int = Field(default=0, ge=0, le=MAX_STOCK_QUANTITY)
    reorder_quantity: int = Field(default=0, ge=0, le=MAX_STOCK_QUANTITY)
    location: str | None = Field(default=None, max_length=255)
    supplier: str | None = Field(default=None, max_length=255)
    last_restock_date: datetime | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "productId": "product-id-here",
                "quantity": 40,
                "reservedQuantity": 5,
                "reorderPoint": 10,
                "reorderQuantity": 50,
                "location": "Main warehouse",
            }
        }
    )


class InventoryRecordOut(CamelModel):
    id: str
    product_id: str
    variant_id: str | None = None
    quantity: int
    reserved_quantity: int
    available_quantity: int
    reorder_point: int
    reorder_quantity: int
    location: str | None = None
    supplier: str | None = None
    last_restock_date: datetime | None = None


class InventoryProductRefOut(CamelModel):
    id: str
    name: str


class InventoryVariantRefOut(CamelModel):
    id: str
    title: str


class InventoryListItemOut(CamelModel):
    inventory: InventoryRecordOut
    product: InventoryProductRefOut | None = None
    variant: InventoryVariantRefOut | None = None
    stock_status: str


class LowStockItemOut(CamelModel):
    inventory_id: str
    product_id: str
    product_name: str
    variant_title: str | None = None
    quantity: int
    reorder_point: int


class InventoryReportOut(CamelModel):
    total: int
    in_stock: int
    low_stock: int
    out_of_stock: int
    in_stock_percentage: float
    low_stock_percentage: float
    out_of_stock_percentage: float
    low_stock_items: list[LowStockItemOut]
