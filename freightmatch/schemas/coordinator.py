from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, condecimal

from freightmatch.db.enums import ArchiveReason, PaymentStatus

Amount = condecimal(ge=0, max_digits=10, decimal_places=2)


class QualifyRequest(BaseModel):
    transporter_amount: Amount
    platform_fee: Amount


class AssignTransporterRequest(BaseModel):
    transporter_id: str
    transporter_amount: Amount
    platform_fee: Amount


class ArchiveRequest(BaseModel):
    reason: ArchiveReason


class CancelRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class CoordinationStatusUpdate(BaseModel):
    coordination_status: str
    reason: Optional[str] = None
    reminder_date: Optional[datetime] = None


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus


class NoteCreate(BaseModel):
    content: str = Field(..., min_length=1)


class NoteResponse(BaseModel):
    id: str
    request_id: str
    author_id: Optional[str]
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


class CoordinatorLogResponse(BaseModel):
    id: str
    coordinator_id: str
    action: str
    target_type: Optional[str]
    target_id: Optional[str]
    details: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class ReferenceDecision(BaseModel):
    approved: bool
    rejection_reason: Optional[str] = None
