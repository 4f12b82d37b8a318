"""Centralized authorization policies: (resource, action) -> roles + ownership."""

from dataclasses import dataclass, field
from typing import Any, Callable

from freightmatch.core.exceptions import Forbidden
from freightmatch.db.enums import Role, TransporterStatus

C = Role.CLIENT.value
T = Role.TRANSPORTEUR.value
CO = Role.COORDINATEUR.value
A = Role.ADMIN.value
ALL = frozenset({C, T, CO, A})
STAFF = frozenset({CO, A})


def job_transporter_id(request) -> str | None:
    """Transporter doing the job: manual assignment first, else the accepted offer."""
    if request.assigned_transporter_id:
        return request.assigned_transporter_id
    if request.accepted_offer_id:
        for offer in request.offers:
            if offer.id == request.accepted_offer_id:
                return offer.transporter_id
    return None


def _request_owner(user, obj) -> bool:
    return obj.client_id == user.id


def _job_transporter(user, obj) -> bool:
    return job_transporter_id(obj) == user.id


def _request_participant(user, obj) -> bool:
    return _request_owner(user, obj) or _job_transporter(user, obj) or user.id in (obj.transporter_interests or [])


def _offer_request_owner(user, obj) -> bool:
    return obj.request is not None and obj.request.client_id == user.id


def _offer_owner(user, obj) -> bool:
    return obj.transporter_id == user.id


def _self(user, obj) -> bool:
    return getattr(obj, "user_id", getattr(obj, "id", None)) == user.id


OWNERSHIP: dict[str, Callable[[Any, Any], bool]] = {
    "request_owner": _request_owner,
    "job_transporter": _job_transporter,
    "request_participant": _request_participant,
    "offer_request_owner": _offer_request_owner,
    "offer_owner": _offer_owner,
    "self": _self,
}


@dataclass(frozen=True)
class Policy:
    """
    roles: roles allowed at all.
    ownership: role -> predicate name; that role additionally needs the
        predicate to hold on the target object. Roles absent from the map
        (staff, usually) are not ownership-checked.
    validated_transporter: transporters must have been validated by an admin.
    """

    roles: frozenset
    ownership: dict[str, str] = field(default_factory=dict)
    validated_transporter: bool = False


POLICIES: dict[tuple[str, str], Policy] = {
    ("request", "create"): Policy(frozenset({C})),
    ("request", "view"): Policy(ALL, {C: "request_owner"}),
    ("request", "delete"): Policy(STAFF | {C}, {C: "request_owner"}),
    ("request", "republish"): Policy(STAFF | {C}, {C: "request_owner"}),
    ("request", "complete"): Policy(frozenset({C, A}), {C: "request_owner"}),
    ("request", "choose_transporter"): Policy(STAFF | {C}, {C: "request_owner"}),
    ("request", "view_interests"): Policy(STAFF | {C}, {C: "request_owner"}),
    ("request", "view_accepted"): Policy(ALL, {C: "request_owner", T: "job_transporter"}),
    ("request", "decline"): Policy(frozenset({T})),
    ("request", "express_interest"): Policy(frozenset({T}), validated_transporter=True),
    ("request", "mark_for_billing"): Policy(STAFF | {T}, {T: "job_transporter"}),
    ("request", "mark_as_paid"): Policy(frozenset({C}), {C: "request_owner"}),
    ("request", "validate_payment"): Policy(frozenset({A})),
    ("offer", "create"): Policy(frozenset({T}), validated_transporter=True),
    ("offer", "list"): Policy(ALL, {C: "request_owner"}),
    ("offer", "accept"): Policy(STAFF | {C}, {C: "offer_request_owner"}),
    ("chat", "send"): Policy(ALL, {C: "request_participant", T: "request_participant"}),
    ("chat", "read"): Policy(ALL, {C: "request_participant", T: "request_participant"}),
    ("notification", "edit"): Policy(ALL, {C: "self", T: "self", CO: "self", A: "self"}),
    ("empty_return", "create"): Policy(frozenset({T}), validated_transporter=True),
    ("report", "create"): Policy(frozenset({C, T})),
    ("reference", "create"): Policy(frozenset({T})),
}


def get_policy(resource: str, action: str) -> Policy:
    """Fetch a policy or raise KeyError."""
    return POLICIES[(resource, action)]


def authorize(user, resource: str, action: str, obj=None) -> None:
    """Raise Forbidden unless `user` may perform `action` on `obj`."""
    policy = get_policy(resource, action)
    if user.role not in policy.roles:
        raise Forbidden("Insufficient permissions")

    if (
        policy.validated_transporter
        and user.role == T
        and user.status != TransporterStatus.VALIDATED.value
    ):
        raise Forbidden("Transporter account not validated")

    predicate_name = policy.ownership.get(user.role)
    if predicate_name and obj is not None and not OWNERSHIP[predicate_name](user, obj):
        raise Forbidden("Not allowed on this resource")


def can(user, resource: str, action: str, obj=None) -> bool:
    try:
        authorize(user, resource, action, obj)
    except Forbidden:
        return False
    return True
