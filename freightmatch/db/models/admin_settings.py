from sqlalchemy import Column, DateTime, Numeric, String

from freightmatch.db.base import Base, new_id, utcnow


class AdminSettings(Base):
    """Single-row platform settings."""
    __tablename__ = "admin_settings"

    id = Column(String(36), primary_key=True, default=new_id)
    commission_percentage = Column(Numeric(5, 2), nullable=False, default=10)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
