"""add orders, order items and variation attributes

Revision ID: 20261019_0003
Revises: 20261019_0002
Create Date: 2026-10-19 11:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_0003"
down_revision: Union[str, None] = "20261019_0002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(inspector: sa.Inspector, table_name: str) -> bool:
    return table_name in inspector.get_table_names()


def _index_exists(inspector: sa.Inspector, table_name: str, index_name: str) -> bool:
    return index_name in {index["name"] for index in inspector.get_indexes(table_name)}


def _address_columns(kind: str) -> list[sa.Column]:
    return [
        sa.Column(f"{kind}_first_name", sa.String(length=100), nullable=True),
        sa.Column(f"{kind}_last_name", sa.String(length=100), nullable=True),
        sa.Column(f"{kind}_address1", sa.String(length=255), nullable=True),
        sa.Column(f"{kind}_address2", sa.String(length=255), nullable=True),
        sa.Column(f"{kind}_city", sa.String(length=100), nullable=True),
        sa.Column(f"{kind}_state", sa.String(length=100), nullable=True),
        sa.Column(f"{kind}_postal_code", sa.String(length=20), nullable=True),
        sa.Column(f"{kind}_country", sa.String(length=100), nullable=True),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not _table_exists(inspector, "orders"):
        op.create_table(
            "orders",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("order_number", sa.String(length=50), nullable=False),
            sa.Column("user_id", sa.String(length=36), nullable=True),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("phone", sa.String(length=50), nullable=True),
            sa.Column("status", sa.String(length=20), server_default="pending", nullable=False),
            sa.Column("payment_status", sa.String(length=20), server_default="pending", nullable=False),
            sa.Column("fulfillment_status", sa.String(length=20), server_default="pending", nullable=False),
            sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
            sa.Column("tax_amount", sa.Numeric(10, 2), server_default="0", nullable=False),
            sa.Column("shipping_amount", sa.Numeric(10, 2), server_default="0", nullable=False),
            sa.Column("discount_amount", sa.Numeric(10, 2), server_default="0", nullable=False),
            sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
            sa.Column("currency", sa.String(length=3), server_default="USD", nullable=False),
            *_address_columns("billing"),
            *_address_columns("shipping"),
            sa.Column("shipping_method_id", sa.String(length=36), nullable=True),
            sa.Column("tracking_number", sa.String(length=100), nullable=True),
            sa.Column("cancel_reason", sa.Text(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
            sa.ForeignKeyConstraint(["shipping_method_id"], ["shipping_methods.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "order_items"):
        op.create_table(
            "order_items",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("order_id", sa.String(length=36), nullable=False),
            sa.Column("product_id", sa.String(length=36), nullable=False),
            sa.Column("variant_id", sa.String(length=36), nullable=True),
            sa.Column("product_name", sa.String(length=255), nullable=False),
            sa.Column("variant_title", sa.String(length=255), nullable=True),
            sa.Column("sku", sa.String(length=100), nullable=True),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("price", sa.Numeric(10, 2), nullable=False),
            sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
            sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "variation_attributes"):
        op.create_table(
            "variation_attributes",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("slug", sa.String(length=255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("type", sa.String(length=50), server_default="select", nullable=False),
            sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
            sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name"),
        )

    if not _table_exists(inspector, "variation_attribute_values"):
        op.create_table(
            "variation_attribute_values",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("attribute_id", sa.String(length=36), nullable=False),
            sa.Column("value", sa.String(length=255), nullable=False),
            sa.Column("slug", sa.String(length=255), nullable=False),
            sa.Column("color_code", sa.String(length=7), nullable=True),
            sa.Column("image", sa.String(length=500), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
            sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
            sa.ForeignKeyConstraint(["attribute_id"], ["variation_attributes.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint(
                "attribute_id", "slug", name="uq_variation_attribute_values_attribute_slug"
            ),
        )

    inspector = sa.inspect(bind)

    indexes = {
        "orders": {
            "ix_orders_order_number": (["order_number"], True),
            "ix_orders_user_id": (["user_id"], False),
            "ix_orders_created_at": (["created_at"], False),
            "ix_orders_status_created_at": (["status", "created_at"], False),
        },
        "order_items": {
            "ix_order_items_order_id": (["order_id"], False),
            "ix_order_items_product_id": (["product_id"], False),
        },
        "variation_attributes": {
            "ix_variation_attributes_slug": (["slug"], True),
            "ix_variation_attributes_is_active": (["is_active"], False),
            "ix_variation_attributes_sort_order": (["sort_order"], False),
        },
        "variation_attribute_values": {
            "ix_variation_attribute_values_attribute_id": (["attribute_id"], False),
            "ix_variation_attribute_values_is_active": (["is_active"], False),
            "ix_variation_attribute_values_sort_order": (["sort_order"], False),
        },
    }
    for table_name, table_indexes in indexes.items():
        for index_name, (columns, unique) in table_indexes.items():
            if not _index_exists(inspector, table_name, index_name):
                op.create_index(index_name, table_name, columns, unique=unique)


def downgrade() -> None:
    op.drop_table("variation_attribute_values")
    op.drop_table("variation_attributes")
    op.drop_table("order_items")
    op.drop_table("orders")
