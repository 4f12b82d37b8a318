from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from freightmatch.db.base import Base, new_id, utcnow


class CoordinationStatusConfig(Base):
    """
    Admin-configurable coordination sub-status (e.g. "Client injoignable").
    category: en_action / prioritaires
    """
    __tablename__ = "coordination_statuses"

    id = Column(String(36), primary_key=True, default=new_id)
    label = Column(String, nullable=False)
    value = Column(String, nullable=False, unique=True)
    category = Column(String, nullable=False)
    color = Column(String, nullable=True)
    display_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class CoordinatorLog(Base):
    """Audit trail of coordinator actions."""
    __tablename__ = "coordinator_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    coordinator_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String, nullable=False)
    target_type = Column(String, nullable=True)  # request / user / offer
    target_id = Column(String(36), nullable=True)
    details = Column(Text, nullable=True)  # JSON string
    created_at = Column(DateTime, default=utcnow)

    coordinator = relationship("User", foreign_keys=[coordinator_id])
