import sqlalchemy as sa
from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from boba_pos.core.database import Base
from boba_pos.models._time import utcnow


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    # Weak reference: menu edits and deletes never touch past orders
    menu_item_id = Column(Integer, index=True, nullable=True)

    item_name = Column(String(120), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    size = Column(String(10), nullable=False)
    sugar_level = Column(String(15), nullable=False)
    ice_level = Column(String(10), nullable=False, default="regular")
    toppings = Column(JSONB().with_variant(sa.JSON(), "sqlite"), nullable=False, default=list)
    price = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="items")
