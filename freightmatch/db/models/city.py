# freightmatch/db/models/city.py
from sqlalchemy import Boolean, Column, DateTime, String

from freightmatch.db.base import Base, new_id, utcnow


class City(Base):
    __tablename__ = "cities"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False, unique=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
