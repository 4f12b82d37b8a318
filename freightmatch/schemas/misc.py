# Smaller resources: cities, stories, empty returns, reports, ratings,
# transporter references, notifications, chat.
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from freightmatch.db.enums import MessageType, StoryAudience


# ---- cities ----
class CityCreate(BaseModel):
    name: str = Field(..., min_length=1)


class CityUpdate(BaseModel):
    name: Optional[str] = None
    is_active: Optional[bool] = None


class CityResponse(BaseModel):
    id: str
    name: str
    is_active: bool

    class Config:
        from_attributes = True


# ---- stories ----
class StoryCreate(BaseModel):
    role: StoryAudience
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    media_url: Optional[str] = None
    order: int = 0
    is_active: bool = True


class StoryUpdate(BaseModel):
    role: Optional[StoryAudience] = None
    title: Optional[str] = None
    content: Optional[str] = None
    media_url: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None


class StoryResponse(BaseModel):
    id: str
    role: str
    title: str
    content: str
    media_url: Optional[str]
    order: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


# ---- empty returns ----
class EmptyReturnCreate(BaseModel):
    from_city: str = Field(..., min_length=1)
    to_city: str = Field(..., min_length=1)
    return_date: datetime


class EmptyReturnResponse(BaseModel):
    id: str
    transporter_id: str
    from_city: str
    to_city: str
    return_date: datetime
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


# ---- reports ----
class ReportCreate(BaseModel):
    request_id: str
    reason: str = Field(..., min_length=1)
    details: Optional[str] = None


class ReportResponse(BaseModel):
    id: str
    request_id: str
    reporter_id: str
    reporter_type: str
    reported_user_id: str
    reason: str
    details: Optional[str]
    status: str
    admin_notes: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


# ---- ratings ----
class RatingResponse(BaseModel):
    id: str
    request_id: str
    transporter_id: str
    client_id: str
    score: int
    comment: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


# ---- transporter references ----
class ReferenceCreate(BaseModel):
    reference_name: str = Field(..., min_length=1)
    reference_phone: str = Field(..., min_length=8)
    reference_relation: str = Field(..., min_length=1)


class ReferenceResponse(BaseModel):
    id: str
    transporter_id: str
    reference_name: str
    reference_phone: str
    reference_relation: str
    status: str
    validated_by: Optional[str]
    validated_at: Optional[datetime]
    rejection_reason: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


# ---- notifications ----
class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    related_id: Optional[str]
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True


# ---- chat ----
class ChatMessageCreate(BaseModel):
    request_id: str
    receiver_id: str
    message: Optional[str] = None
    message_type: MessageType = MessageType.TEXT
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None


class ChatMessageResponse(BaseModel):
    id: str
    request_id: str
    sender_id: str
    receiver_id: str
    message: Optional[str]
    filtered_message: Optional[str]
    message_type: str
    file_url: Optional[str]
    file_name: Optional[str]
    file_size: Optional[int]
    is_read: bool
    sender_type: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class MarkReadRequest(BaseModel):
    request_id: str


class UploadResponse(BaseModel):
    url: str
    file_name: str
    file_size: int
    content_type: str
