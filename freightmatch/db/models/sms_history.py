from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from freightmatch.db.base import Base, new_id, utcnow


class SmsHistory(Base):
    """Bulk SMS campaigns sent from the admin dashboard."""
    __tablename__ = "sms_history"

    id = Column(String(36), primary_key=True, default=new_id)
    admin_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    target_audience = Column(String, nullable=False)  # transporters / clients / both
    message = Column(Text, nullable=False)
    recipient_count = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default="sent")
    created_at = Column(DateTime, default=utcnow)
