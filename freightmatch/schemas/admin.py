from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, condecimal

from freightmatch.db.enums import CoordinationCategory, ReportStatus, SmsAudience
from freightmatch.schemas.common import Money
from freightmatch.schemas.user import Pin


class AdminSettingsResponse(BaseModel):
    commission_percentage: Money
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class AdminSettingsUpdate(BaseModel):
    commission_percentage: condecimal(ge=0, le=100, max_digits=5, decimal_places=2)


class ValidateDriverRequest(BaseModel):
    approved: bool


class CoordinatorCreate(BaseModel):
    phone_number: str = Field(..., min_length=8, max_length=20)
    name: str = Field(..., min_length=1)
    pin: Pin


class CoordinationStatusConfigCreate(BaseModel):
    label: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1, pattern=r"^[a-z0-9_]+$")
    category: CoordinationCategory
    color: Optional[str] = None
    display_order: int = 0


class CoordinationStatusConfigUpdate(BaseModel):
    label: Optional[str] = None
    category: Optional[CoordinationCategory] = None
    color: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class CoordinationStatusConfigResponse(BaseModel):
    id: str
    label: str
    value: str
    category: str
    color: Optional[str]
    display_order: int
    is_active: bool

    class Config:
        from_attributes = True


class SmsSendRequest(BaseModel):
    target_audience: SmsAudience
    message: str = Field(..., min_length=1, max_length=640)


class SmsHistoryResponse(BaseModel):
    id: str
    admin_id: str
    target_audience: str
    message: str
    recipient_count: int
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class ReportUpdate(BaseModel):
    status: ReportStatus
    admin_notes: Optional[str] = None


class StatsResponse(BaseModel):
    total_clients: int
    total_transporters: int
    pending_drivers: int
    total_requests: int
    open_requests: int
    accepted_requests: int
    completed_requests: int
    total_offers: int
    commission_percentage: Money
    total_commissions: Money


class InconsistentRequest(BaseModel):
    id: str
    reference_id: str
    status: str
    coordination_status: str
    expected_coordination_status: str


class ConsistencyReport(BaseModel):
    checked: int
    inconsistent: list[InconsistentRequest]
    repaired: int = 0
