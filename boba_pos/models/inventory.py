from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship

from boba_pos.core.database import Base
from boba_pos.models._time import utcnow


class InventoryItem(Base):
    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True)
    ingredient_name = Column(String(120), unique=True, nullable=False)
    # May go negative through manual edits; deductions never take it below zero
    quantity = Column(Numeric(12, 3), nullable=False, default=0)
    unit = Column(String(20), nullable=False, default="units")
    min_quantity = Column(Numeric(12, 3), nullable=False, default=10)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )


class InventoryUsage(Base):
    """Append-only usage ledger. Provisioned by its own migration; optional."""

    __tablename__ = "inventory_usage"

    id = Column(Integer, primary_key=True)
    inventory_id = Column(Integer, ForeignKey("inventory.id", ondelete="CASCADE"), index=True, nullable=False)
    quantity_used = Column(Numeric(12, 3), nullable=False)
    unit_cost = Column(Numeric(10, 4), nullable=False, default=0)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"), index=True, nullable=True)
    used_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True, nullable=False)
    notes = Column(Text, nullable=True)
    created_by = Column(String(255), nullable=True)

    inventory_item = relationship("InventoryItem")
