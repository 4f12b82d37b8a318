from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from freightmatch.db.base import Base, new_id, utcnow
from freightmatch.db.enums import ReferenceStatus


class TransporterReference(Base):
    """Professional reference used to manually vet a transporter."""
    __tablename__ = "transporter_references"

    id = Column(String(36), primary_key=True, default=new_id)
    transporter_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    reference_name = Column(String, nullable=False)
    reference_phone = Column(String, nullable=False)
    reference_relation = Column(String, nullable=False)  # Client / Transporteur / Autre
    status = Column(String, nullable=False, default=ReferenceStatus.PENDING.value)
    validated_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    validated_at = Column(DateTime, nullable=True)
    rejection_reason = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    transporter = relationship("User", foreign_keys=[transporter_id])
