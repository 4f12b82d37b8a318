from freightmatch.services.consistency import find_inconsistent
from freightmatch.services.seed import seed_defaults


def assert_all_pairs_allowed(db):
    db.expire_all()
    checked, bad = find_inconsistent(db)
    assert checked > 0
    assert [(r.reference_id, r.status, r.coordination_status) for r, _ in bad] == []


def _pair(response):
    assert response.status_code == 200, response.text
    body = response.json()
    return body["status"], body["coordination_status"]


async def test_client_path_with_substatus_detours(new_request, as_client, as_coordinator, as_transporter, transporter, db):
    seed_defaults(db)
    req = await new_request()
    desk = f"/api/coordinator/requests/{req['id']}"
    assert_all_pairs_allowed(db)

    r = await as_coordinator.post(f"{desk}/qualify", json={"transporter_amount": "500", "platform_fee": "50"})
    assert _pair(r) == ("open", "qualified")
    assert_all_pairs_allowed(db)

    r = await as_coordinator.patch(f"{desk}/coordination-status", json={"coordination_status": "client_injoignable"})
    assert _pair(r) == ("open", "client_injoignable")
    assert_all_pairs_allowed(db)

    r = await as_coordinator.patch(f"{desk}/coordination-status", json={"coordination_status": "qualified"})
    assert _pair(r) == ("open", "qualified")

    r = await as_coordinator.post(f"{desk}/publish-for-matching")
    assert _pair(r) == ("published_for_matching", "matching")
    assert_all_pairs_allowed(db)

    await as_transporter.post(f"/api/requests/{req['id']}/interest", json={})
    r = await as_client.post(f"/api/requests/{req['id']}/choose-transporter", json={"transporter_id": transporter.id})
    assert _pair(r) == ("accepted", "assigned")
    assert_all_pairs_allowed(db)

    r = await as_coordinator.patch(f"{desk}/coordination-status", json={"coordination_status": "client_injoignable"})
    assert _pair(r) == ("accepted", "client_injoignable")
    assert_all_pairs_allowed(db)

    r = await as_client.post(f"/api/requests/{req['id']}/complete", json={"rating": 5})
    assert _pair(r) == ("completed", "assigned")
    assert_all_pairs_allowed(db)

    r = await as_client.post(f"/api/requests/{req['id']}/republish", json={})
    assert _pair(r) == ("open", "qualified")
    assert_all_pairs_allowed(db)


async def test_coordinator_path(new_request, as_client, as_coordinator, as_transporter, transporter, db):
    req = await new_request()
    desk = f"/api/coordinator/requests/{req['id']}"

    r = await as_coordinator.post(
        f"{desk}/assign-transporter",
        json={"transporter_id": transporter.id, "transporter_amount": "800", "platform_fee": "80"},
    )
    assert _pair(r) == ("accepted", "assigned")
    assert_all_pairs_allowed(db)

    r = await as_coordinator.post(f"{desk}/requalify")
    assert _pair(r) == ("published_for_matching", "matching")
    assert_all_pairs_allowed(db)

    r = await as_transporter.post(
        "/api/offers",
        json={"request_id": req["id"], "amount": "900", "pickup_date": "2026-12-01T08:00:00", "load_type": "return"},
    )
    assert r.status_code == 201, r.text
    assert (await as_client.post(f"/api/offers/{r.json()['id']}/accept")).status_code == 200
    assert_all_pairs_allowed(db)

    r = await as_coordinator.post(f"{desk}/archive", json={"reason": "client_injoignable"})
    assert _pair(r) == ("expired", "archive")
    assert_all_pairs_allowed(db)

    r = await as_coordinator.post(f"{desk}/requalify")
    assert _pair(r) == ("published_for_matching", "matching")
    assert_all_pairs_allowed(db)

    r = await as_coordinator.post(f"{desk}/cancel", json={"reason": "Client a annulé"})
    assert _pair(r) == ("cancelled", "archive")
    assert_all_pairs_allowed(db)
