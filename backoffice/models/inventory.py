from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.core.id_utils import generate_ordered_uuid, generate_uuid
from backoffice.db.base import Base

MOVEMENT_TYPES = ("in", "out", "adjustment")
# Written by order processing only; on-hand quantity is unchanged, reserved moves.
RESERVATION_MOVEMENT_TYPES = ("reserve", "release")

# Ceiling of the Integer quantity columns.
MAX_STOCK_QUANTITY = 2_147_483_647
REASON_MAX_LENGTH = 255


class InventoryRecord(Base):
    """
    Current stock state for one (product, variant-or-none) key.
    available_quantity is always quantity - reserved_quantity after a write.
    """
    __tablename__ = "product_inventory"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("products.id", ondelete="CASCADE"), index=True)
    variant_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=True, index=True
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    reserved_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    available_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    reorder_point: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    reorder_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    supplier: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    last_restock_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        # One record per key; NULL variant ids never collide in a plain unique index.
        Index(
            "ux_product_inventory_product_variant",
            "product_id",
            "variant_id",
            unique=True,
            postgresql_where=text("variant_id IS NOT NULL"),
            sqlite_where=text("variant_id IS NOT NULL"),
        ),
        Index(
            "ux_product_inventory_product_no_variant",
            "product_id",
            unique=True,
            postgresql_where=text("variant_id IS NULL"),
            sqlite_where=text("variant_id IS NULL"),
        ),
    )


class StockMovement(Base):
    """
    Append-only audit row, one per quantity change of an inventory record.
    """
    __tablename__ = "stock_movements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_ordered_uuid)
    # No foreign keys to inventory or catalog rows: the ledger outlives removed products.
    inventory_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    product_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    variant_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)

    movement_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # MOVEMENT_TYPES + RESERVATION_MOVEMENT_TYPES
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    new_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(REASON_MAX_LENGTH), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)  # PO number, invoice, etc.
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cost_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    supplier: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    processed_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    __table_args__ = (
        Index("ix_stock_movements_product_created_at", "product_id", "created_at"),
    )
