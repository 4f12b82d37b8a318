from freightmatch.db.enums import Role
from freightmatch.db.models.transport_request import TransportRequest
from freightmatch.db.models.user import User


async def test_validate_driver_sends_sms(as_admin, make_user, outbox):
    driver = make_user(Role.TRANSPORTEUR, status="pending", name="Hamid")

    r = await as_admin.get("/api/admin/pending-drivers")
    assert [u["id"] for u in r.json()] == [driver.id]

    r = await as_admin.post(f"/api/admin/validate-driver/{driver.id}", json={"approved": True})
    assert r.status_code == 200
    assert r.json()["status"] == "validated"
    assert outbox.sms.sent == [(driver.phone_number, "Your transporter account has been validated. You can now receive missions.")]


async def test_reject_driver(as_admin, make_user, outbox):
    driver = make_user(Role.TRANSPORTEUR, status="pending")
    r = await as_admin.post(f"/api/admin/validate-driver/{driver.id}", json={"approved": False})
    assert r.json()["status"] == "rejected"
    assert outbox.sms.sent == []


async def test_admin_cannot_block_self(as_admin, admin):
    r = await as_admin.post(f"/api/admin/users/{admin.id}/block")
    assert r.status_code == 400


async def test_delete_user_removes_their_requests(as_admin, new_request, client_user, db):
    await new_request()
    r = await as_admin.delete(f"/api/admin/users/{client_user.id}")
    assert r.status_code == 200
    assert db.query(User).filter(User.id == client_user.id).count() == 0
    assert db.query(TransportRequest).count() == 0


async def test_coordinator_lifecycle(as_admin, make_client):
    r = await as_admin.post("/api/admin/coordinators", json={"phone_number": "+212677777777", "name": "Nadia", "pin": "246810"})
    assert r.status_code == 201
    coordinator_id = r.json()["id"]
    assert r.json()["role"] == "coordinateur"

    r = await as_admin.post(f"/api/admin/coordinators/{coordinator_id}/reset-pin")
    new_pin = r.json()["pin"]
    assert len(new_pin) == 6 and new_pin.isdigit()

    ac = await make_client()
    r = await ac.post("/api/auth/login", json={"phone_number": "+212677777777", "pin": new_pin})
    assert r.status_code == 200

    r = await as_admin.post(f"/api/admin/coordinators/{coordinator_id}/toggle-status")
    assert r.json()["account_status"] == "blocked"


async def test_coordination_status_taxonomy(as_admin, new_request, as_coordinator):
    r = await as_admin.post(
        "/api/admin/coordination-statuses",
        json={"label": "Matching", "value": "matching", "category": "en_action"},
    )
    assert r.status_code == 409

    r = await as_admin.post(
        "/api/admin/coordination-statuses",
        json={"label": "Devis envoyé", "value": "devis_envoye", "category": "en_action"},
    )
    assert r.status_code == 201
    status_id = r.json()["id"]

    req = await new_request()
    r = await as_coordinator.patch(
        f"/api/coordinator/requests/{req['id']}/coordination-status", json={"coordination_status": "devis_envoye"}
    )
    assert r.status_code == 200

    r = await as_admin.get("/api/admin/coordination-status-usage")
    assert r.json() == {"devis_envoye": 1}

    r = await as_admin.delete(f"/api/admin/coordination-statuses/{status_id}")
    assert r.status_code == 409


async def test_bulk_sms_campaign(as_admin, client_user, transporter, make_user, outbox):
    make_user(Role.CLIENT, account_status="blocked")
    r = await as_admin.post("/api/admin/sms/send", json={"target_audience": "clients", "message": "Promo -10%"})
    assert r.status_code == 201
    assert r.json()["recipient_count"] == 1
    assert outbox.sms.bulk == [([client_user.phone_number], "Promo -10%")]

    r = await as_admin.get("/api/admin/sms/history")
    assert len(r.json()) == 1


async def test_stats(as_admin, accepted_request):
    await accepted_request()
    r = await as_admin.get("/api/admin/stats")
    assert r.status_code == 200
    body = r.json()
    assert body["accepted_requests"] == 1
    assert body["total_offers"] == 1
    assert body["total_commissions"] == "100.00"
    assert body["commission_percentage"] == "10.00"


async def test_consistency_check_and_repair(as_admin, new_request, db):
    req = await new_request()
    row = db.get(TransportRequest, req["id"])
    row.status = "accepted"
    db.commit()

    r = await as_admin.get("/api/admin/consistency-check")
    body = r.json()
    assert body["checked"] == 1
    assert body["inconsistent"] == [
        {
            "id": req["id"],
            "reference_id": req["reference_id"],
            "status": "accepted",
            "coordination_status": "qualification_pending",
            "expected_coordination_status": "assigned",
        }
    ]

    r = await as_admin.post("/api/admin/consistency-check/repair")
    assert r.json()["repaired"] == 1

    r = await as_admin.get("/api/admin/consistency-check")
    assert r.json()["inconsistent"] == []


async def test_stories_and_cities(as_admin, anon):
    await as_admin.post("/api/admin/stories", json={"role": "client", "title": "B", "content": "b", "order": 2})
    await as_admin.post("/api/admin/stories", json={"role": "all", "title": "A", "content": "a", "order": 1})
    await as_admin.post("/api/admin/stories", json={"role": "transporter", "title": "T", "content": "t"})

    r = await anon.get("/api/stories/active", params={"role": "client"})
    assert [s["title"] for s in r.json()] == ["A", "B"]

    r = await as_admin.post("/api/admin/cities", json={"name": "Essaouira"})
    assert r.status_code == 201
    assert (await as_admin.post("/api/admin/cities", json={"name": "essaouira"})).status_code == 409
    await as_admin.patch(f"/api/admin/cities/{r.json()['id']}", json={"is_active": False})

    r = await anon.get("/api/cities")
    assert r.json() == []

    r = await as_admin.get("/api/admin/cities")
    assert [(c["name"], c["is_active"]) for c in r.json()] == [("Essaouira", False)]
