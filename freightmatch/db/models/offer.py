from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from freightmatch.db.base import Base, new_id, utcnow
from freightmatch.db.enums import ContractStatus, OfferStatus


class Offer(Base):
    """
    A transporter's bid on a request.
    One offer per (transporter, request) is enforced by an existence check at
    insert time, not by a unique constraint.
    """
    __tablename__ = "offers"

    id = Column(String(36), primary_key=True, default=new_id)
    request_id = Column(String(36), ForeignKey("transport_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    transporter_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Numeric(10, 2), nullable=False)
    pickup_date = Column(DateTime, nullable=False)
    load_type = Column(String, nullable=False)  # return / shared
    status = Column(String, nullable=False, default=OfferStatus.PENDING.value)

    payment_proof_url = Column(String, nullable=True)
    payment_validated = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)

    request = relationship("TransportRequest", back_populates="offers")
    transporter = relationship("User", back_populates="offers")


class TransporterInterest(Base):
    """Lightweight availability signal (no price) used during matching."""
    __tablename__ = "transporter_interests"

    id = Column(String(36), primary_key=True, default=new_id)
    request_id = Column(String(36), ForeignKey("transport_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    transporter_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    availability_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    request = relationship("TransportRequest", back_populates="interests")
    transporter = relationship("User", foreign_keys=[transporter_id])


class Contract(Base):
    __tablename__ = "contracts"

    id = Column(String(36), primary_key=True, default=new_id)
    request_id = Column(String(36), ForeignKey("transport_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    # null when the job was assigned by a coordinator rather than through an offer
    offer_id = Column(String(36), nullable=True)
    client_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    transporter_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reference_id = Column(String, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String, nullable=False, default=ContractStatus.IN_PROGRESS.value)
    created_at = Column(DateTime, default=utcnow)

    request = relationship("TransportRequest", foreign_keys=[request_id])
    client = relationship("User", foreign_keys=[client_id])
    transporter = relationship("User", foreign_keys=[transporter_id])
