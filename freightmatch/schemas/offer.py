from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, condecimal

from freightmatch.db.enums import LoadType
from freightmatch.schemas.common import Money
from freightmatch.schemas.user import UserResponse


class OfferCreate(BaseModel):
    request_id: str
    amount: condecimal(gt=0, max_digits=10, decimal_places=2)
    pickup_date: datetime
    load_type: LoadType


class OfferResponse(BaseModel):
    id: str
    request_id: str
    transporter_id: str
    amount: Money
    pickup_date: datetime
    load_type: str
    status: str
    created_at: datetime
    # filled for the requesting client: amount + commission
    client_amount: Optional[Money] = None

    class Config:
        from_attributes = True


class AcceptOfferResponse(BaseModel):
    success: bool = True
    contract_id: str
    commission: Money
    total: Money
    transporter_name: Optional[str]
    transporter_phone: Optional[str]
    client_name: Optional[str]
    client_phone: Optional[str]


class ContractResponse(BaseModel):
    id: str
    request_id: str
    offer_id: Optional[str]
    client_id: str
    transporter_id: str
    reference_id: str
    amount: Money
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class InterestedTransporterResponse(BaseModel):
    transporter: UserResponse
    availability_date: Optional[datetime] = None
