# freightmatch/db/models/empty_return.py
from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from freightmatch.db.base import Base, new_id, utcnow
from freightmatch.db.enums import EmptyReturnStatus


class EmptyReturn(Base):
    """
    A transporter's declared backhaul: driving from_city -> to_city empty on
    return_date. Entries past their date are flipped to "expired" on read.
    """
    __tablename__ = "empty_returns"

    id = Column(String(36), primary_key=True, default=new_id)
    transporter_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    from_city = Column(String, nullable=False)
    to_city = Column(String, nullable=False)
    return_date = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=EmptyReturnStatus.ACTIVE.value)
    created_at = Column(DateTime, default=utcnow)

    transporter = relationship("User", back_populates="empty_returns")
