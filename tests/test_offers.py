from freightmatch.db.enums import Role
from freightmatch.db.models.offer import Contract, Offer
from freightmatch.db.models.transport_request import RequestNote, TransportRequest

OFFER = {"amount": "1000", "pickup_date": "2026-12-01T08:00:00", "load_type": "return"}


async def test_offer_accept_applies_commission(new_request, as_client, as_transporter, client_user, transporter, outbox, db):
    req = await new_request()
    r = await as_transporter.post("/api/offers", json={"request_id": req["id"], **OFFER})
    assert r.status_code == 201
    offer = r.json()
    assert offer["amount"] == "1000.00"
    assert offer["status"] == "pending"

    r = await as_client.get("/api/offers", params={"request_id": req["id"]})
    assert r.status_code == 200
    assert r.json()[0]["client_amount"] == "1100.00"

    r = await as_client.post(f"/api/offers/{offer['id']}/accept")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert (body["commission"], body["total"]) == ("100.00", "1100.00")
    assert body["transporter_name"] == "Youssef Transport"

    r = await as_client.get(f"/api/requests/{req['id']}")
    assert (r.json()["status"], r.json()["coordination_status"]) == ("accepted", "assigned")
    assert r.json()["accepted_offer_id"] == offer["id"]

    contract = db.query(Contract).filter(Contract.request_id == req["id"]).one()
    assert contract.transporter_id == transporter.id
    assert str(contract.amount) == "1000.00"
    assert outbox.push.sent[-1][0] == ["device-youssef"]
    assert any(subject.startswith("Offer accepted") for subject, _, _ in outbox.email.sent)


async def test_accepting_drops_competing_offers(new_request, as_client, as_transporter, make_user, make_client, db):
    req = await new_request()
    other = make_user(Role.TRANSPORTEUR, name="Other")
    as_other = await make_client(other)

    r = await as_transporter.post("/api/offers", json={"request_id": req["id"], **OFFER})
    winner = r.json()["id"]
    r = await as_other.post("/api/offers", json={"request_id": req["id"], **OFFER, "amount": "900"})
    assert r.status_code == 201

    r = await as_client.post(f"/api/offers/{winner}/accept")
    assert r.status_code == 200
    assert [o.id for o in db.query(Offer).filter(Offer.request_id == req["id"]).all()] == [winner]


async def test_second_accept_conflicts(accepted_request, as_client):
    req = await accepted_request()
    r = await as_client.post(f"/api/offers/{req['accepted_offer_id']}/accept")
    assert r.status_code == 409
    assert r.json() == {"error": "An offer has already been accepted for this request"}


async def test_duplicate_offer_conflicts(new_request, as_transporter):
    req = await new_request()
    assert (await as_transporter.post("/api/offers", json={"request_id": req["id"], **OFFER})).status_code == 201
    r = await as_transporter.post("/api/offers", json={"request_id": req["id"], **OFFER})
    assert r.status_code == 409


async def test_transporter_sees_only_own_offer_without_client_price(new_request, as_transporter, make_user, make_client):
    req = await new_request()
    other = await make_client(make_user(Role.TRANSPORTEUR))
    await as_transporter.post("/api/offers", json={"request_id": req["id"], **OFFER})
    await other.post("/api/offers", json={"request_id": req["id"], **OFFER})

    r = await as_transporter.get("/api/offers", params={"request_id": req["id"]})
    assert len(r.json()) == 1
    assert r.json()[0]["client_amount"] is None


async def test_other_client_cannot_accept(new_request, as_transporter, make_user, make_client):
    req = await new_request()
    offer = (await as_transporter.post("/api/offers", json={"request_id": req["id"], **OFFER})).json()
    stranger = await make_client(make_user(Role.CLIENT))
    r = await stranger.post(f"/api/offers/{offer['id']}/accept")
    assert r.status_code == 403


async def test_coordinator_accepts_on_behalf_of_client(new_request, as_transporter, as_coordinator):
    req = await new_request()
    offer = (await as_transporter.post("/api/offers", json={"request_id": req["id"], **OFFER})).json()
    r = await as_coordinator.post(f"/api/coordinator/offers/{offer['id']}/accept")
    assert r.status_code == 200
    assert r.json()["total"] == "1100.00"


async def test_commission_setting_changes_client_price(new_request, as_client, as_transporter, as_admin):
    r = await as_admin.patch("/api/admin/settings", json={"commission_percentage": "15"})
    assert r.status_code == 200
    assert r.json()["commission_percentage"] == "15.00"

    req = await new_request()
    offer = (await as_transporter.post("/api/offers", json={"request_id": req["id"], **OFFER})).json()
    r = await as_client.post(f"/api/offers/{offer['id']}/accept")
    assert (r.json()["commission"], r.json()["total"]) == ("150.00", "1150.00")


async def test_offers_closed_after_cancel(new_request, as_coordinator, as_transporter):
    req = await new_request()
    await as_coordinator.post(f"/api/coordinator/requests/{req['id']}/cancel", json={"reason": "Client annule"})
    r = await as_transporter.post("/api/offers", json={"request_id": req["id"], **OFFER})
    assert r.status_code == 400


async def test_deleting_accepted_request_removes_dependent_rows(accepted_request, as_coordinator, db):
    req = await accepted_request()
    await as_coordinator.post(f"/api/coordinator/requests/{req['id']}/notes", json={"content": "Appeler le client"})
    assert db.query(Contract).count() == 1

    r = await as_coordinator.delete(f"/api/requests/{req['id']}")
    assert r.status_code == 200
    for model in (Offer, Contract, RequestNote, TransportRequest):
        assert db.query(model).count() == 0, model.__name__
