from types import SimpleNamespace

import pytest

from freightmatch.core.exceptions import Forbidden
from freightmatch.core.policies import POLICIES, OWNERSHIP, authorize, can, job_transporter_id


def user(id, role, status=None):
    return SimpleNamespace(id=id, role=role, status=status)


def request_row(client_id="c1", assigned=None, accepted_offer=None, offers=(), interests=()):
    return SimpleNamespace(
        client_id=client_id,
        assigned_transporter_id=assigned,
        accepted_offer_id=accepted_offer,
        offers=list(offers),
        transporter_interests=list(interests),
    )


def test_every_policy_names_a_known_predicate():
    for policy in POLICIES.values():
        for name in policy.ownership.values():
            assert name in OWNERSHIP


def test_job_transporter_prefers_manual_assignment():
    offer = SimpleNamespace(id="o1", transporter_id="t-offer")
    assert job_transporter_id(request_row(assigned="t-manual", accepted_offer="o1", offers=[offer])) == "t-manual"
    assert job_transporter_id(request_row(accepted_offer="o1", offers=[offer])) == "t-offer"
    assert job_transporter_id(request_row()) is None


def test_role_not_in_policy_is_forbidden():
    with pytest.raises(Forbidden) as exc:
        authorize(user("t1", "transporteur", "validated"), "request", "create")
    assert exc.value.message == "Insufficient permissions"


def test_unvalidated_transporter_cannot_bid():
    with pytest.raises(Forbidden) as exc:
        authorize(user("t1", "transporteur", "pending"), "offer", "create")
    assert exc.value.message == "Transporter account not validated"
    assert can(user("t1", "transporteur", "validated"), "offer", "create")


def test_client_needs_ownership():
    req = request_row(client_id="c1")
    assert can(user("c1", "client"), "request", "view", req)
    assert not can(user("c2", "client"), "request", "view", req)


def test_staff_skip_ownership():
    req = request_row(client_id="c1")
    assert can(user("co", "coordinateur"), "request", "choose_transporter", req)
    assert can(user("a", "admin"), "request", "view", req)


def test_billing_is_limited_to_the_job_transporter():
    req = request_row(assigned="t1")
    assert can(user("t1", "transporteur", "validated"), "request", "mark_for_billing", req)
    assert not can(user("t2", "transporteur", "validated"), "request", "mark_for_billing", req)


def test_interested_transporter_may_chat():
    req = request_row(interests=["t3"])
    assert can(user("t3", "transporteur", "validated"), "chat", "send", req)
    assert not can(user("t4", "transporteur", "validated"), "chat", "send", req)


def test_payment_validation_is_admin_only():
    assert not can(user("co", "coordinateur"), "request", "validate_payment")
    assert can(user("a", "admin"), "request", "validate_payment")
