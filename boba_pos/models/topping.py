from sqlalchemy import Column, Numeric, String

from boba_pos.core.database import Base


class Topping(Base):
    __tablename__ = "toppings"

    id = Column(String(40), primary_key=True)  # slug, e.g. "boba"
    name = Column(String(80), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
