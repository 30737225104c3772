from sqlalchemy import Column, DateTime, Integer, String, func

from boba_pos.core.database import Base
from boba_pos.models._time import utcnow


class Manager(Base):
    __tablename__ = "managers"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
