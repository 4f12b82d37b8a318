from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from freightmatch.db.base import Base, new_id, utcnow


class Story(Base):
    """Marketing banner shown on the client / transporter dashboards."""
    __tablename__ = "stories"

    id = Column(String(36), primary_key=True, default=new_id)
    role = Column(String, nullable=False)  # client / transporter / all
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    media_url = Column(String, nullable=True)
    order = Column(Integer, default=0)  # lower = first
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
