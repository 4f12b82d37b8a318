# freightmatch/db/models/user.py
from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship

from freightmatch.db.base import Base, new_id, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    phone_number = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)  # bcrypt hash of the 6-digit PIN
    role = Column(String, nullable=True)  # NULL until selected after registration

    client_id = Column(String, unique=True, nullable=True)  # C-XXXX, clients only
    name = Column(String, nullable=True)
    city = Column(String, nullable=True)
    truck_photos = Column(JSON, nullable=True)

    # rating aggregates (transporters)
    rating = Column(Numeric(3, 2), nullable=True, default=0)
    total_ratings = Column(Integer, nullable=True, default=0)
    total_trips = Column(Integer, nullable=True, default=0)

    status = Column(String, nullable=True)  # pending / validated / rejected (transporters)
    account_status = Column(String, nullable=False, default="active", server_default="active")

    rib_name = Column(String, nullable=True)
    rib_number = Column(String, nullable=True)
    device_token = Column(String, nullable=True)

    is_active = Column(Boolean, default=True)
    is_verified = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)

    requests = relationship(
        "TransportRequest",
        foreign_keys="TransportRequest.client_id",
        back_populates="client",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    offers = relationship("Offer", back_populates="transporter", cascade="all, delete-orphan", passive_deletes=True)
    empty_returns = relationship("EmptyReturn", back_populates="transporter", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")


class ClientIdSequence(Base):
    """Monotonic source for client numbers: one row per issued number."""
    __tablename__ = "client_id_sequence"

    id = Column(Integer, primary_key=True, autoincrement=True)
    issued_at = Column(DateTime, default=utcnow)
