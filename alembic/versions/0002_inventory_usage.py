from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0002_inventory_usage"
down_revision = "0001_create_schema"
branch_labels = None
depends_on = None


def _has_table(table_name: str) -> bool:
    return sa.inspect(op.get_bind()).has_table(table_name)


def upgrade() -> None:
    if _has_table("inventory_usage"):
        return

    op.create_table(
        "inventory_usage",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "inventory_id",
            sa.Integer(),
            sa.ForeignKey("inventory.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("quantity_used", sa.Numeric(12, 3), nullable=False),
        sa.Column("unit_cost", sa.Numeric(10, 4), nullable=False, server_default="0"),
        sa.Column(
            "order_id",
            sa.Integer(),
            sa.ForeignKey("orders.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("used_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(255), nullable=True),
    )
    op.create_index("ix_inventory_usage_inventory_id", "inventory_usage", ["inventory_id"])
    op.create_index("ix_inventory_usage_order_id", "inventory_usage", ["order_id"])
    op.create_index("ix_inventory_usage_used_at", "inventory_usage", ["used_at"])


def downgrade() -> None:
    if not _has_table("inventory_usage"):
        return
    op.drop_index("ix_inventory_usage_used_at", table_name="inventory_usage")
    op.drop_index("ix_inventory_usage_order_id", table_name="inventory_usage")
    op.drop_index("ix_inventory_usage_inventory_id", table_name="inventory_usage")
    op.drop_table("inventory_usage")
