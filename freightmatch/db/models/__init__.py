"""ORM models. Importing this package registers every table on Base.metadata."""

from freightmatch.db.models.admin_settings import AdminSettings
from freightmatch.db.models.chat_message import ChatMessage
from freightmatch.db.models.city import City
from freightmatch.db.models.coordination import CoordinationStatusConfig, CoordinatorLog
from freightmatch.db.models.empty_return import EmptyReturn
from freightmatch.db.models.notification import Notification
from freightmatch.db.models.offer import Contract, Offer, TransporterInterest
from freightmatch.db.models.rating import Rating
from freightmatch.db.models.report import Report
from freightmatch.db.models.sms_history import SmsHistory
from freightmatch.db.models.story import Story
from freightmatch.db.models.transport_request import RequestNote, TransportRequest
from freightmatch.db.models.transporter_reference import TransporterReference
from freightmatch.db.models.user import ClientIdSequence, User

__all__ = [
    "AdminSettings",
    "ChatMessage",
    "City",
    "ClientIdSequence",
    "Contract",
    "CoordinationStatusConfig",
    "CoordinatorLog",
    "EmptyReturn",
    "Notification",
    "Offer",
    "Rating",
    "Report",
    "RequestNote",
    "SmsHistory",
    "Story",
    "TransportRequest",
    "TransporterInterest",
    "TransporterReference",
    "User",
]
