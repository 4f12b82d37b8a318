from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from freightmatch.db.base import Base, new_id, utcnow
from freightmatch.db.enums import MessageType


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(String(36), primary_key=True, default=new_id)
    request_id = Column(String(36), ForeignKey("transport_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    receiver_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text, nullable=True)  # null for media messages
    message_type = Column(String, nullable=False, default=MessageType.TEXT.value)
    file_url = Column(Text, nullable=True)
    file_name = Column(String, nullable=True)
    file_size = Column(Integer, nullable=True)
    filtered_message = Column(Text, nullable=True)  # phone numbers / links masked
    is_read = Column(Boolean, default=False)
    sender_type = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
