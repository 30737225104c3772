from sqlalchemy import Column, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import relationship

from boba_pos.core.database import Base
from boba_pos.models._time import utcnow


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)

    # Caller-supplied; stored as given
    total_price = Column(Numeric(10, 2), nullable=False)

    status = Column(String(20), default="pending", index=True, nullable=False)  # pending / preparing / ready / completed / cancelled

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True, nullable=False)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
