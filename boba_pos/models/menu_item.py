from sqlalchemy import Boolean, Column, DateTime, Float, Integer, Numeric, String, Text, func

from boba_pos.core.database import Base
from boba_pos.models._time import utcnow


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    description = Column(Text, default="", nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)
    image_ref = Column(String, nullable=True)
    category = Column(String(20), index=True, nullable=False)  # milk-tea / fruit-tea / specialty

    # Nutrition baseline: medium size, normal sugar
    calories = Column(Float, default=0, nullable=False)
    sugar_grams = Column(Float, default=0, nullable=False)
    protein_grams = Column(Float, default=0, nullable=False)

    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
