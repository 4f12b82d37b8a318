"""
Transition tables for the three request status tracks.

Every status write on a TransportRequest goes through an `ensure_*_transition`
guard so that invalid moves surface as InvalidTransition
instead of silently leaving the row in an inconsistent pairing.
"""

from typing import Iterable

from freightmatch.core.exceptions import InvalidTransition
from freightmatch.db.enums import CoordinationStatus as C
from freightmatch.db.enums import PaymentStatus as P
from freightmatch.db.enums import RequestStatus as R

REQUEST_TRANSITIONS: dict[R, frozenset[R]] = {
    R.OPEN: frozenset({R.PUBLISHED_FOR_MATCHING, R.ACCEPTED, R.EXPIRED, R.CANCELLED}),
    R.PUBLISHED_FOR_MATCHING: frozenset(
        {R.PUBLISHED_FOR_MATCHING, R.ACCEPTED, R.EXPIRED, R.CANCELLED, R.OPEN}
    ),
    R.ACCEPTED: frozenset(
        {R.COMPLETED, R.OPEN, R.PUBLISHED_FOR_MATCHING, R.EXPIRED, R.CANCELLED}
    ),
    R.COMPLETED: frozenset({R.OPEN}),
    R.EXPIRED: frozenset({R.OPEN, R.PUBLISHED_FOR_MATCHING}),
    R.CANCELLED: frozenset(),
}

COORDINATION_TRANSITIONS: dict[C, frozenset[C]] = {
    C.QUALIFICATION_PENDING: frozenset({C.QUALIFIED, C.ASSIGNED, C.ARCHIVE}),
    C.NOUVEAU: frozenset(
        {C.QUALIFICATION_PENDING, C.QUALIFIED, C.MATCHING, C.ASSIGNED, C.ARCHIVE}
    ),
    C.QUALIFIED: frozenset({C.MATCHING, C.ASSIGNED, C.ARCHIVE}),
    C.MATCHING: frozenset({C.MATCHING, C.ASSIGNED, C.ARCHIVE}),
    C.ASSIGNED: frozenset(
        {C.MATCHING, C.ARCHIVE, C.QUALIFIED, C.QUALIFICATION_PENDING}
    ),
    C.ARCHIVE: frozenset({C.MATCHING, C.QUALIFIED, C.QUALIFICATION_PENDING}),
}

PAYMENT_TRANSITIONS: dict[P, frozenset[P]] = {
    P.A_FACTURER: frozenset({P.AWAITING_PAYMENT, P.PAID_BY_CLIENT, P.PAID_BY_CAMIONBACK}),
    P.AWAITING_PAYMENT: frozenset(
        {P.PENDING_ADMIN_VALIDATION, P.PAID_BY_CLIENT, P.PAID_BY_CAMIONBACK}
    ),
    P.PENDING_ADMIN_VALIDATION: frozenset({P.PAID, P.AWAITING_PAYMENT}),
    P.PAID_BY_CLIENT: frozenset({P.PAID}),
    P.PAID_BY_CAMIONBACK: frozenset({P.PAID}),
    P.PAID: frozenset(),
}

# Sub-statuses (admin-configured) may be entered from / left to these built-ins.
SUBSTATUS_COMPATIBLE = frozenset({C.NOUVEAU, C.QUALIFICATION_PENDING, C.QUALIFIED, C.MATCHING, C.ASSIGNED})

# status -> coordination statuses it may be paired with. `None` in the set
# means "any configured sub-status".
ALLOWED_PAIRS: dict[R, frozenset] = {
    R.OPEN: frozenset({C.QUALIFICATION_PENDING, C.NOUVEAU, C.QUALIFIED, None}),
    R.PUBLISHED_FOR_MATCHING: frozenset({C.MATCHING, None}),
    R.ACCEPTED: frozenset({C.ASSIGNED, None}),
    R.COMPLETED: frozenset({C.ASSIGNED, C.ARCHIVE}),
    R.EXPIRED: frozenset({C.ARCHIVE}),
    R.CANCELLED: frozenset({C.ARCHIVE}),
}

# Canonical coordination status used when repairing an inconsistent row.
CANONICAL_COORDINATION: dict[R, C] = {
    R.OPEN: C.QUALIFICATION_PENDING,
    R.PUBLISHED_FOR_MATCHING: C.MATCHING,
    R.ACCEPTED: C.ASSIGNED,
    R.COMPLETED: C.ASSIGNED,
    R.EXPIRED: C.ARCHIVE,
    R.CANCELLED: C.ARCHIVE,
}


def _parse(enum_cls, value):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


def ensure_request_transition(current: str | None, target: R) -> None:
    state = _parse(R, current) or R.OPEN
    if target not in REQUEST_TRANSITIONS[state]:
        raise InvalidTransition("status", current, target.value)


def ensure_payment_transition(current: str | None, target: P) -> None:
    state = _parse(P, current) or P.A_FACTURER
    if target not in PAYMENT_TRANSITIONS[state]:
        raise InvalidTransition("payment_status", current, target.value)


def ensure_coordination_transition(
    current: str | None,
    target: str,
    substatuses: Iterable[str] = (),
) -> None:
    """
    Built-in → built-in moves use the table; moves into or out of an
    admin-configured sub-status are allowed against SUBSTATUS_COMPATIBLE.
    """
    known = set(substatuses)
    current_builtin = _parse(C, current) or (None if current in known else C.QUALIFICATION_PENDING)
    target_builtin = _parse(C, target)

    if target_builtin is None:
        if target not in known:
            raise InvalidTransition("coordination_status", current, target)
        if current_builtin is None or current_builtin in SUBSTATUS_COMPATIBLE:
            return
        raise InvalidTransition("coordination_status", current, target)

    if current_builtin is None:
        if target_builtin in SUBSTATUS_COMPATIBLE or target_builtin == C.ARCHIVE:
            return
        raise InvalidTransition("coordination_status", current, target)

    if target_builtin not in COORDINATION_TRANSITIONS[current_builtin]:
        raise InvalidTransition("coordination_status", current, target)


def is_consistent_pair(status: str | None, coordination_status: str | None, substatuses: Iterable[str] = ()) -> bool:
    """True when (status, coordination_status) is one of the documented pairings."""
    request_status = _parse(R, status)
    if request_status is None:
        return False
    allowed = ALLOWED_PAIRS[request_status]
    builtin = _parse(C, coordination_status)
    if builtin is not None:
        return builtin in allowed
    return None in allowed and coordination_status in set(substatuses)
