from freightmatch.db.models.offer import Contract
from freightmatch.db.models.transport_request import TransportRequest


async def test_billing_receipt_and_admin_validation(accepted_request, as_transporter, as_client, as_admin, db):
    req = await accepted_request()
    assert req["payment_status"] == "a_facturer"

    r = await as_transporter.post(f"/api/requests/{req['id']}/mark-for-billing")
    assert r.status_code == 200
    assert r.json()["payment_status"] == "awaiting_payment"

    r = await as_client.post(f"/api/requests/{req['id']}/mark-as-paid", json={"payment_receipt": "data:image/png;base64,AAA"})
    assert r.status_code == 200
    assert r.json()["payment_status"] == "pending_admin_validation"

    r = await as_admin.post(f"/api/requests/{req['id']}/admin-validate-payment")
    assert r.status_code == 200
    assert r.json()["payment_status"] == "paid"
    assert r.json()["payment_date"] is not None
    # not rated yet
    assert r.json()["status"] == "accepted"

    contract = db.query(Contract).filter(Contract.request_id == req["id"]).one()
    assert contract.status == "completed"


async def test_admin_reject_clears_receipt(accepted_request, as_transporter, as_client, as_admin, db):
    req = await accepted_request()
    await as_transporter.post(f"/api/requests/{req['id']}/mark-for-billing")
    await as_client.post(f"/api/requests/{req['id']}/mark-as-paid", json={"payment_receipt": "receipt"})

    r = await as_admin.post(f"/api/requests/{req['id']}/admin-reject-payment")
    assert r.status_code == 200
    assert r.json()["payment_status"] == "awaiting_payment"
    row = db.get(TransportRequest, req["id"])
    assert row.payment_receipt is None


async def test_mark_as_paid_requires_billing_first(accepted_request, as_client):
    req = await accepted_request()
    r = await as_client.post(f"/api/requests/{req['id']}/mark-as-paid", json={"payment_receipt": "receipt"})
    assert r.status_code == 400


async def test_only_the_job_transporter_bills(accepted_request, make_user, make_client):
    from freightmatch.db.enums import Role

    req = await accepted_request()
    stranger = await make_client(make_user(Role.TRANSPORTEUR))
    r = await stranger.post(f"/api/requests/{req['id']}/mark-for-billing")
    assert r.status_code == 403


async def test_coordinator_cannot_validate_as_admin(accepted_request, as_coordinator):
    req = await accepted_request()
    r = await as_coordinator.post(f"/api/requests/{req['id']}/admin-validate-payment")
    assert r.status_code == 403


async def test_coordinator_desk_validation(accepted_request, as_coordinator):
    req = await accepted_request()
    url = f"/api/coordinator/requests/{req['id']}/payment-status"
    r = await as_coordinator.patch(url, json={"payment_status": "paid_by_client"})
    assert r.status_code == 200

    r = await as_coordinator.post(f"/api/coordinator/requests/{req['id']}/validate-payment")
    assert r.status_code == 200
    assert r.json()["payment_status"] == "paid"

    r = await as_coordinator.patch(url, json={"payment_status": "awaiting_payment"})
    assert r.status_code == 400
