from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, condecimal

from freightmatch.schemas.common import Money


class RequestCreate(BaseModel):
    from_city: str = Field(..., min_length=1)
    to_city: str = Field(..., min_length=1)
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    description: str = Field(..., min_length=1)
    goods_type: str = Field(..., min_length=1)
    date_time: datetime
    budget: Optional[condecimal(ge=0, max_digits=10, decimal_places=2)] = None
    photos: Optional[list[str]] = None
    handling_required: bool = False
    departure_floor: Optional[int] = None
    departure_elevator: Optional[bool] = None
    arrival_floor: Optional[int] = None
    arrival_elevator: Optional[bool] = None


class RequestResponse(BaseModel):
    id: str
    reference_id: str
    client_id: str
    from_city: str
    to_city: str
    from_address: Optional[str]
    to_address: Optional[str]
    distance_km: Optional[int]
    description: str
    goods_type: str
    date_time: datetime
    budget: Optional[Money]
    photos: Optional[list[str]]
    handling_required: Optional[bool]
    departure_floor: Optional[int]
    departure_elevator: Optional[bool]
    arrival_floor: Optional[int]
    arrival_elevator: Optional[bool]

    status: str
    coordination_status: str
    payment_status: str
    accepted_offer_id: Optional[str]
    accepted_at: Optional[datetime]
    payment_date: Optional[datetime]

    coordination_reason: Optional[str]
    coordination_reminder_date: Optional[datetime]
    assigned_to_id: Optional[str]
    cancellation_reason: Optional[str]

    transporter_amount: Optional[Money]
    platform_fee: Optional[Money]
    client_total: Optional[Money]

    assigned_transporter_id: Optional[str]
    assigned_manually: Optional[bool]
    assigned_at: Optional[datetime]
    transporter_interests: Optional[list[str]]
    qualified_at: Optional[datetime]
    published_for_matching_at: Optional[datetime]
    is_hidden: Optional[bool]
    view_count: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class PublicRequestResponse(BaseModel):
    """What a share link exposes: route and cargo, no people or money."""
    reference_id: str
    from_city: str
    to_city: str
    description: str
    goods_type: str
    date_time: datetime
    status: str

    class Config:
        from_attributes = True


class RepublishRequest(BaseModel):
    date_time: Optional[datetime] = None


class CompleteRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class MarkAsPaidRequest(BaseModel):
    payment_receipt: str = Field(..., min_length=1)


class InterestRequest(BaseModel):
    availability_date: Optional[datetime] = None


class ChooseTransporterRequest(BaseModel):
    transporter_id: str


class AcceptedTransporterResponse(BaseModel):
    transporter_id: str
    name: Optional[str]
    phone_number: str
    city: Optional[str]
    rating: Optional[Money]
    total_trips: Optional[int]
    amount: Money
    commission: Money
    total_amount: Money
