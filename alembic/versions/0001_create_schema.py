from __future__ import annotations

from alembic import op

from boba_pos.core.database import Base
import boba_pos.models  # noqa: F401

revision = "0001_create_schema"
down_revision = None
branch_labels = None
depends_on = None

# Provisioned separately by 0002 so deployments can run without it
OPTIONAL_TABLES = {"inventory_usage"}


def _core_tables():
    return [table for table in Base.metadata.sorted_tables if table.name not in OPTIONAL_TABLES]


def upgrade() -> None:
    Base.metadata.create_all(bind=op.get_bind(), tables=_core_tables())


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind(), tables=_core_tables())
