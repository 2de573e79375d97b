"""add product inventory and stock movement ledger

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 09:30:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_0002"
down_revision: Union[str, None] = "20261019_0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(inspector: sa.Inspector, table_name: str) -> bool:
    return table_name in inspector.get_table_names()


def _index_exists(inspector: sa.Inspector, table_name: str, index_name: str) -> bool:
    return index_name in {index["name"] for index in inspector.get_indexes(table_name)}


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not _table_exists(inspector, "product_inventory"):
        op.create_table(
            "product_inventory",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("product_id", sa.String(length=36), nullable=False),
            sa.Column("variant_id", sa.String(length=36), nullable=True),
            sa.Column("quantity", sa.Integer(), server_default="0", nullable=False),
            sa.Column("reserved_quantity", sa.Integer(), server_default="0", nullable=False),
            sa.Column("available_quantity", sa.Integer(), server_default="0", nullable=False),
            sa.Column("reorder_point", sa.Integer(), server_default="0", nullable=False),
            sa.Column("reorder_quantity", sa.Integer(), server_default="0", nullable=False),
            sa.Column("location", sa.String(length=255), nullable=True),
            sa.Column("supplier", sa.String(length=255), nullable=True),
            sa.Column("last_restock_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["variant_id"], ["product_variants.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "stock_movements"):
        op.create_table(
            "stock_movements",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("inventory_id", sa.String(length=36), nullable=False),
            sa.Column("product_id", sa.String(length=36), nullable=False),
            sa.Column("variant_id", sa.String(length=36), nullable=True),
            sa.Column("movement_type", sa.String(length=50), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("previous_quantity", sa.Integer(), server_default="0", nullable=False),
            sa.Column("new_quantity", sa.Integer(), nullable=False),
            sa.Column("reason", sa.String(length=255), nullable=False),
            sa.Column("location", sa.String(length=255), nullable=True),
            sa.Column("reference", sa.String(length=255), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("cost_price", sa.Numeric(10, 2), nullable=True),
            sa.Column("supplier", sa.String(length=255), nullable=True),
            sa.Column("processed_by", sa.String(length=36), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["processed_by"], ["admin_users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )

    inspector = sa.inspect(bind)

    inventory_indexes = {
        "ix_product_inventory_product_id": ["product_id"],
        "ix_product_inventory_variant_id": ["variant_id"],
    }
    for index_name, columns in inventory_indexes.items():
        if not _index_exists(inspector, "product_inventory", index_name):
            op.create_index(index_name, "product_inventory", columns, unique=False)

    # NULL variant ids never collide in a plain unique index, so the key is
    # covered by one partial index per case.
    if not _index_exists(inspector, "product_inventory", "ux_product_inventory_product_variant"):
        op.create_index(
            "ux_product_inventory_product_variant",
            "product_inventory",
            ["product_id", "variant_id"],
            unique=True,
            postgresql_where=sa.text("variant_id IS NOT NULL"),
            sqlite_where=sa.text("variant_id IS NOT NULL"),
        )
    if not _index_exists(inspector, "product_inventory", "ux_product_inventory_product_no_variant"):
        op.create_index(
            "ux_product_inventory_product_no_variant",
            "product_inventory",
            ["product_id"],
            unique=True,
            postgresql_where=sa.text("variant_id IS NULL"),
            sqlite_where=sa.text("variant_id IS NULL"),
        )

    movement_indexes = {
        "ix_stock_movements_inventory_id": ["inventory_id"],
        "ix_stock_movements_product_id": ["product_id"],
        "ix_stock_movements_variant_id": ["variant_id"],
        "ix_stock_movements_movement_type": ["movement_type"],
        "ix_stock_movements_created_at": ["created_at"],
        "ix_stock_movements_product_created_at": ["product_id", "created_at"],
    }
    for index_name, columns in movement_indexes.items():
        if not _index_exists(inspector, "stock_movements", index_name):
            op.create_index(index_name, "stock_movements", columns, unique=False)


def downgrade() -> None:
    op.drop_table("stock_movements")
    op.drop_table("product_inventory")
