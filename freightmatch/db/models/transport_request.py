from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from freightmatch.db.base import Base, new_id, utcnow
from freightmatch.db.enums import CoordinationStatus, PaymentStatus, RequestStatus


class TransportRequest(Base):
    __tablename__ = "transport_requests"

    id = Column(String(36), primary_key=True, default=new_id)
    reference_id = Column(String, unique=True, nullable=False)  # CMD-YYYY-NNNNN
    client_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # route
    from_city = Column(String, nullable=False)
    to_city = Column(String, nullable=False)
    from_address = Column(String, nullable=True)
    to_address = Column(String, nullable=True)
    distance_km = Column(Integer, nullable=True)

    # cargo / schedule
    description = Column(Text, nullable=False)
    goods_type = Column(String, nullable=False)
    date_time = Column(DateTime, nullable=False)
    budget = Column(Numeric(10, 2), nullable=True)
    photos = Column(JSON, nullable=True)

    # handling
    handling_required = Column(Boolean, default=False)
    departure_floor = Column(Integer, nullable=True)
    departure_elevator = Column(Boolean, nullable=True)
    arrival_floor = Column(Integer, nullable=True)
    arrival_elevator = Column(Boolean, nullable=True)

    # status tracks
    status = Column(String, nullable=False, default=RequestStatus.OPEN.value)
    coordination_status = Column(
        String, nullable=False, default=CoordinationStatus.QUALIFICATION_PENDING.value, index=True
    )
    payment_status = Column(String, nullable=False, default=PaymentStatus.A_FACTURER.value)

    accepted_offer_id = Column(String(36), nullable=True)
    accepted_at = Column(DateTime, nullable=True)

    payment_receipt = Column(Text, nullable=True)
    payment_date = Column(DateTime, nullable=True)

    view_count = Column(Integer, default=0)
    declined_by = Column(JSON, default=list)
    is_hidden = Column(Boolean, default=False)
    share_token = Column(String, unique=True, nullable=True)

    # coordination
    coordination_reason = Column(String, nullable=True)
    coordination_reminder_date = Column(DateTime, nullable=True)
    coordination_updated_at = Column(DateTime, nullable=True)
    coordination_updated_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_to_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    cancellation_reason = Column(String, nullable=True)

    # pricing set by coordinator
    transporter_amount = Column(Numeric(10, 2), nullable=True)
    platform_fee = Column(Numeric(10, 2), nullable=True)
    client_total = Column(Numeric(10, 2), nullable=True)

    # manual assignment
    assigned_transporter_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_by_coordinator_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_manually = Column(Boolean, default=False)
    assigned_at = Column(DateTime, nullable=True)

    # matching
    transporter_interests = Column(JSON, default=list)
    qualified_at = Column(DateTime, nullable=True)
    published_for_matching_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)

    # relationships
    client = relationship("User", foreign_keys=[client_id], back_populates="requests")
    assigned_transporter = relationship("User", foreign_keys=[assigned_transporter_id])
    offers = relationship("Offer", back_populates="request", cascade="all, delete-orphan", passive_deletes=True)
    interests = relationship(
        "TransporterInterest", back_populates="request", cascade="all, delete-orphan", passive_deletes=True
    )
    notes = relationship("RequestNote", back_populates="request", cascade="all, delete-orphan", passive_deletes=True)


class RequestNote(Base):
    """Internal free-text note on a request (staff only)."""
    __tablename__ = "request_notes"

    id = Column(String(36), primary_key=True, default=new_id)
    request_id = Column(String(36), ForeignKey("transport_requests.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    request = relationship("TransportRequest", back_populates="notes")
    author = relationship("User", foreign_keys=[author_id])
