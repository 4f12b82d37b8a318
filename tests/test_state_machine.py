import pytest

from freightmatch.core.exceptions import InvalidTransition
from freightmatch.core.state_machine import (
    ALLOWED_PAIRS,
    CANONICAL_COORDINATION,
    REQUEST_TRANSITIONS,
    ensure_coordination_transition,
    ensure_payment_transition,
    ensure_request_transition,
    is_consistent_pair,
)
from freightmatch.db.enums import CoordinationStatus as C
from freightmatch.db.enums import PaymentStatus as P
from freightmatch.db.enums import RequestStatus as R


def test_every_status_has_a_transition_row():
    assert set(REQUEST_TRANSITIONS) == set(R)
    assert set(ALLOWED_PAIRS) == set(R)
    assert set(CANONICAL_COORDINATION) == set(R)


def test_canonical_pairs_are_consistent():
    for status, coordination in CANONICAL_COORDINATION.items():
        assert is_consistent_pair(status.value, coordination.value)


@pytest.mark.parametrize(
    "current,target",
    [
        ("open", R.PUBLISHED_FOR_MATCHING),
        ("open", R.ACCEPTED),
        ("published_for_matching", R.ACCEPTED),
        ("accepted", R.COMPLETED),
        ("accepted", R.OPEN),
        ("expired", R.PUBLISHED_FOR_MATCHING),
        (None, R.ACCEPTED),
    ],
)
def test_allowed_request_transitions(current, target):
    ensure_request_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        ("cancelled", R.OPEN),
        ("completed", R.ACCEPTED),
        ("open", R.COMPLETED),
    ],
)
def test_rejected_request_transitions(current, target):
    with pytest.raises(InvalidTransition) as exc:
        ensure_request_transition(current, target)
    assert exc.value.track == "status"
    assert exc.value.target == target.value


def test_payment_track():
    ensure_payment_transition("a_facturer", P.AWAITING_PAYMENT)
    ensure_payment_transition("awaiting_payment", P.PENDING_ADMIN_VALIDATION)
    ensure_payment_transition("pending_admin_validation", P.PAID)
    ensure_payment_transition("pending_admin_validation", P.AWAITING_PAYMENT)
    with pytest.raises(InvalidTransition):
        ensure_payment_transition("paid", P.AWAITING_PAYMENT)
    with pytest.raises(InvalidTransition):
        ensure_payment_transition("a_facturer", P.PAID)


def test_coordination_builtin_moves():
    ensure_coordination_transition("qualification_pending", C.QUALIFIED.value)
    ensure_coordination_transition("qualified", C.MATCHING.value)
    ensure_coordination_transition("archive", C.MATCHING.value)
    with pytest.raises(InvalidTransition):
        ensure_coordination_transition("qualification_pending", C.MATCHING.value)


def test_coordination_substatus_moves():
    subs = ["client_injoignable"]
    ensure_coordination_transition("qualified", "client_injoignable", subs)
    ensure_coordination_transition("client_injoignable", C.ARCHIVE.value, subs)
    ensure_coordination_transition("client_injoignable", C.MATCHING.value, subs)
    with pytest.raises(InvalidTransition):
        # unknown value
        ensure_coordination_transition("qualified", "made_up", subs)
    with pytest.raises(InvalidTransition):
        # archive cannot go straight to a sub-status
        ensure_coordination_transition("archive", "client_injoignable", subs)


def test_consistent_pairs():
    assert is_consistent_pair("accepted", "assigned")
    assert is_consistent_pair("open", "client_injoignable", ["client_injoignable"])
    assert not is_consistent_pair("accepted", "qualification_pending")
    assert not is_consistent_pair("cancelled", "client_injoignable", ["client_injoignable"])
    assert not is_consistent_pair("nonsense", "assigned")
