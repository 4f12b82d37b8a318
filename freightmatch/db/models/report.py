from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from freightmatch.db.base import Base, new_id, utcnow
from freightmatch.db.enums import ReportStatus


class Report(Base):
    """Dispute raised by a client or transporter about a request."""
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True, default=new_id)
    request_id = Column(String(36), ForeignKey("transport_requests.id", ondelete="CASCADE"), nullable=False)
    reporter_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reporter_type = Column(String, nullable=False)  # client / transporteur
    reported_user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reason = Column(String, nullable=False)
    details = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=ReportStatus.PENDING.value)
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    reporter = relationship("User", foreign_keys=[reporter_id])
    reported_user = relationship("User", foreign_keys=[reported_user_id])
