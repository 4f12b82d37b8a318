"""Enum definitions for application constants."""

from enum import Enum


class Role(str, Enum):
    """
    User roles.

    - CLIENT: posts transport requests
    - TRANSPORTEUR: bids on / expresses interest in requests (needs admin validation)
    - COORDINATEUR: staff mediating qualification, matching and assignment
    - ADMIN: platform governance
    """
    CLIENT = "client"
    TRANSPORTEUR = "transporteur"
    COORDINATEUR = "coordinateur"
    ADMIN = "admin"


# Legacy spellings still present in older rows / clients
ROLE_ALIASES = {
    "transporter": Role.TRANSPORTEUR.value,
    "coordinator": Role.COORDINATEUR.value,
}


def normalize_role(value: str | None) -> str | None:
    if value is None:
        return None
    return ROLE_ALIASES.get(value, value)


STAFF_ROLES = (Role.COORDINATEUR, Role.ADMIN)


class TransporterStatus(str, Enum):
    PENDING = "pending"
    VALIDATED = "validated"
    REJECTED = "rejected"


class AccountStatus(str, Enum):
    ACTIVE = "active"
    BLOCKED = "blocked"


class RequestStatus(str, Enum):
    OPEN = "open"
    PUBLISHED_FOR_MATCHING = "published_for_matching"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class CoordinationStatus(str, Enum):
    """
    Built-in coordination statuses. Admin-configured sub-statuses
    (categories en_action / prioritaires) live in coordination_statuses rows.
    """
    QUALIFICATION_PENDING = "qualification_pending"
    NOUVEAU = "nouveau"
    QUALIFIED = "qualified"
    MATCHING = "matching"
    ASSIGNED = "assigned"
    ARCHIVE = "archive"


class CoordinationCategory(str, Enum):
    NOUVEAU = "nouveau"
    EN_ACTION = "en_action"
    PRIORITAIRES = "prioritaires"
    ARCHIVES = "archives"


class PaymentStatus(str, Enum):
    A_FACTURER = "a_facturer"
    AWAITING_PAYMENT = "awaiting_payment"
    PENDING_ADMIN_VALIDATION = "pending_admin_validation"
    PAID_BY_CLIENT = "paid_by_client"
    PAID_BY_CAMIONBACK = "paid_by_camionback"
    PAID = "paid"


class OfferStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class LoadType(str, Enum):
    RETURN = "return"
    SHARED = "shared"


class ContractStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    MARKED_PAID_TRANSPORTER = "marked_paid_transporter"
    MARKED_PAID_CLIENT = "marked_paid_client"
    COMPLETED = "completed"


class ArchiveReason(str, Enum):
    CLIENT_INJOIGNABLE = "client_injoignable"
    TRAITE_AILLEURS = "traite_ailleurs"
    BUDGET_INSUFFISANT = "budget_insuffisant"
    INFOS_INCOMPLETES = "infos_incompletes"
    NON_PRIORITAIRE = "non_prioritaire"
    NON_REALISABLE = "non_realisable"
    CLIENT_ANNULE = "client_annule"
    AUCUNE_OFFRE = "aucune_offre"
    PRIX_REFUSE = "prix_refuse"
    INJOIGNABLE_LONG_TERME = "injoignable_long_terme"
    A_REPRENDRE_PLUS_TARD = "a_reprendre_plus_tard"
    OFFRE_EXPIREE = "offre_expiree"


class NotificationType(str, Enum):
    OFFER_RECEIVED = "offer_received"
    OFFER_ACCEPTED = "offer_accepted"
    REQUEST_QUALIFIED = "request_qualified"
    NEW_MISSION = "new_mission"
    TRANSPORTER_INTERESTED = "transporter_interested"
    CLIENT_CHOSE_YOU = "client_chose_you"
    MANUAL_ASSIGNMENT = "manual_assignment"
    TRANSPORTER_ASSIGNED = "transporter_assigned"
    REQUEST_ARCHIVED = "request_archived"
    REQUEST_CANCELLED = "request_cancelled"
    PAYMENT_REQUEST = "payment_request"
    PAYMENT_RECEIPT = "payment_receipt"
    PAYMENT_CONFIRMED = "payment_confirmed"
    PAYMENT_REJECTED = "payment_rejected"
    RATING_RECEIVED = "rating_received"
    ACCOUNT_VALIDATED = "account_validated"
    ACCOUNT_REJECTED = "account_rejected"
    MESSAGE_RECEIVED = "message_received"


class EmptyReturnStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    ASSIGNED = "assigned"


class ReportStatus(str, Enum):
    PENDING = "pending"
    TREATED = "treated"
    REJECTED = "rejected"


class ReferenceStatus(str, Enum):
    PENDING = "pending"
    VALIDATED = "validated"
    REJECTED = "rejected"


class StoryAudience(str, Enum):
    CLIENT = "client"
    TRANSPORTER = "transporter"
    ALL = "all"


class SmsAudience(str, Enum):
    TRANSPORTERS = "transporters"
    CLIENTS = "clients"
    BOTH = "both"


class MessageType(str, Enum):
    TEXT = "text"
    VOICE = "voice"
    PHOTO = "photo"
    VIDEO = "video"
