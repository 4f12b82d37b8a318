from decimal import Decimal

from freightmatch.db.models.user import User


async def test_rating_completes_request_and_updates_average(accepted_request, as_client, anon, transporter, db):
    req = await accepted_request()

    r = await as_client.post(f"/api/requests/{req['id']}/complete", json={"rating": 4, "comment": "Ponctuel"})
    assert r.status_code == 200
    assert r.json()["status"] == "completed"

    db.expire_all()
    row = db.get(User, transporter.id)
    assert row.rating == Decimal("4.00")
    assert (row.total_ratings, row.total_trips) == (1, 1)

    r = await anon.get(f"/api/ratings/transporter/{transporter.id}")
    assert [(x["score"], x["comment"]) for x in r.json()] == [(4, "Ponctuel")]


async def test_second_rating_conflicts(accepted_request, as_client):
    req = await accepted_request()
    assert (await as_client.post(f"/api/requests/{req['id']}/complete", json={"rating": 5})).status_code == 200
    r = await as_client.post(f"/api/requests/{req['id']}/complete", json={"rating": 1})
    assert r.status_code == 409
    assert r.json() == {"error": "This request has already been rated"}


async def test_rating_out_of_range(accepted_request, as_client):
    req = await accepted_request()
    r = await as_client.post(f"/api/requests/{req['id']}/complete", json={"rating": 6})
    assert r.status_code == 400


async def test_cannot_rate_open_request(new_request, as_client):
    req = await new_request()
    r = await as_client.post(f"/api/requests/{req['id']}/complete", json={"rating": 5})
    assert r.status_code == 400


async def test_validated_payment_after_rating_keeps_completed(accepted_request, as_client, as_transporter, as_admin):
    req = await accepted_request()
    await as_client.post(f"/api/requests/{req['id']}/complete", json={"rating": 5})
    await as_transporter.post(f"/api/requests/{req['id']}/mark-for-billing")
    await as_client.post(f"/api/requests/{req['id']}/mark-as-paid", json={"payment_receipt": "r"})
    r = await as_admin.post(f"/api/requests/{req['id']}/admin-validate-payment")
    assert (r.json()["status"], r.json()["payment_status"]) == ("completed", "paid")


async def test_republish_after_completion(accepted_request, as_client):
    req = await accepted_request()
    await as_client.post(f"/api/requests/{req['id']}/complete", json={"rating": 5})
    r = await as_client.post(f"/api/requests/{req['id']}/republish", json={"date_time": "2027-01-10T10:00:00"})
    assert r.status_code == 200
    body = r.json()
    assert (body["status"], body["coordination_status"], body["payment_status"]) == ("open", "qualification_pending", "a_facturer")
    assert body["accepted_offer_id"] is None
    assert body["date_time"].startswith("2027-01-10")


async def test_rating_from_substatus_returns_to_assigned(accepted_request, as_client, as_coordinator, as_admin, db):
    from freightmatch.services.seed import seed_defaults

    seed_defaults(db)
    req = await accepted_request()
    r = await as_coordinator.patch(
        f"/api/coordinator/requests/{req['id']}/coordination-status",
        json={"coordination_status": "client_injoignable"},
    )
    assert (r.json()["status"], r.json()["coordination_status"]) == ("accepted", "client_injoignable")

    r = await as_client.post(f"/api/requests/{req['id']}/complete", json={"rating": 5})
    assert r.status_code == 200
    assert (r.json()["status"], r.json()["coordination_status"]) == ("completed", "assigned")

    r = await as_admin.get("/api/admin/consistency-check")
    assert r.json()["inconsistent"] == []
