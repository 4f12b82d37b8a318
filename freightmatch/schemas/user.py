from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field

from freightmatch.schemas.common import Money

Pin = Annotated[str, Field(pattern=r"^\d{6}$", description="6-digit PIN")]


class CheckPhoneRequest(BaseModel):
    phone_number: str = Field(..., min_length=8, max_length=20)


class RegisterRequest(BaseModel):
    phone_number: str = Field(..., min_length=8, max_length=20)
    pin: Pin


class LoginRequest(BaseModel):
    phone_number: str
    pin: Pin


class SelectRoleRequest(BaseModel):
    role: str = Field(..., description="client or transporteur")


class CompleteProfileRequest(BaseModel):
    name: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    truck_photo: Optional[str] = Field(default=None, description="data URL")


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    city: Optional[str] = None


class PinUpdate(BaseModel):
    current_pin: Pin
    new_pin: Pin


class DeviceTokenUpdate(BaseModel):
    device_token: Optional[str] = None


class RibUpdate(BaseModel):
    rib_name: str = Field(..., min_length=1)
    rib_number: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: str
    phone_number: str
    role: Optional[str]
    client_id: Optional[str] = None
    name: Optional[str] = None
    city: Optional[str] = None
    truck_photos: Optional[list[str]] = None
    rating: Optional[Money] = None
    total_ratings: Optional[int] = 0
    total_trips: Optional[int] = 0
    status: Optional[str] = None
    account_status: str
    is_active: Optional[bool] = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RibResponse(BaseModel):
    rib_name: Optional[str]
    rib_number: Optional[str]

    class Config:
        from_attributes = True
