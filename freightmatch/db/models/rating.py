# freightmatch/db/models/rating.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from freightmatch.db.base import Base, new_id, utcnow


class Rating(Base):
    __tablename__ = "ratings"

    id = Column(String(36), primary_key=True, default=new_id)
    request_id = Column(
        String(36), ForeignKey("transport_requests.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    transporter_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    score = Column(Integer, nullable=False)  # 1..5
    comment = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow)

    # relationships (helpful for response shaping)
    request = relationship("TransportRequest", foreign_keys=[request_id])
    transporter = relationship("User", foreign_keys=[transporter_id])
    client = relationship("User", foreign_keys=[client_id])
