from freightmatch.core.security import get_current_user
from freightmatch.db.enums import Role
from freightmatch.db.models.user import User
from freightmatch.main import app

PIN = "123456"


async def test_register_select_role_and_me(anon):
    r = await anon.post("/api/auth/register", json={"phone_number": "+212612345678", "pin": "654321"})
    assert r.status_code == 201
    assert r.json()["user"]["role"] is None

    r = await anon.post("/api/auth/select-role", json={"role": "client"})
    assert r.status_code == 200
    body = r.json()["user"]
    assert body["role"] == "client"
    assert body["client_id"].startswith("C-")

    r = await anon.get("/api/auth/me")
    assert r.status_code == 200
    # own profile is not masked
    assert r.json()["user"]["phone_number"] == "+212612345678"


async def test_register_duplicate_phone_conflicts(anon, client_user):
    r = await anon.post("/api/auth/register", json={"phone_number": client_user.phone_number, "pin": PIN})
    assert r.status_code == 409
    assert r.json() == {"error": "Phone number already registered"}


async def test_register_rejects_short_pin(anon):
    r = await anon.post("/api/auth/register", json={"phone_number": "+212612345678", "pin": "12"})
    assert r.status_code == 400
    assert r.json()["error"] == "Validation error"


async def test_admin_marker_phone_registers_as_admin(anon):
    r = await anon.post("/api/auth/register", json={"phone_number": "+212600000099", "pin": PIN})
    assert r.status_code == 201
    assert r.json()["user"]["role"] == "admin"


async def test_transporter_role_starts_pending(anon):
    await anon.post("/api/auth/register", json={"phone_number": "+212698765432", "pin": PIN})
    r = await anon.post("/api/auth/select-role", json={"role": "transporter"})
    assert r.status_code == 200
    assert r.json()["user"]["role"] == "transporteur"
    assert r.json()["user"]["status"] == "pending"

    r = await anon.post("/api/auth/select-role", json={"role": "client"})
    assert r.status_code == 400


async def test_complete_profile_emails_admin(anon, outbox):
    await anon.post("/api/auth/register", json={"phone_number": "+212698765432", "pin": PIN})
    await anon.post("/api/auth/select-role", json={"role": "transporteur"})
    r = await anon.post("/api/auth/complete-profile", json={"name": "Karim", "city": "Agadir"})
    assert r.status_code == 200
    assert r.json()["user"]["city"] == "Agadir"
    assert outbox.email.sent[0][0] == "New transporter to validate"


async def test_login_with_wrong_pin(anon, client_user):
    r = await anon.post("/api/auth/login", json={"phone_number": client_user.phone_number, "pin": "999999"})
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid phone number or PIN"}


async def test_blocked_account_cannot_log_in(anon, make_user):
    blocked = make_user(Role.CLIENT, account_status="blocked")
    r = await anon.post("/api/auth/login", json={"phone_number": blocked.phone_number, "pin": PIN})
    assert r.status_code == 403
    assert r.json() == {"error": "Account blocked"}


async def test_blocking_ends_an_open_session(as_client, as_admin, client_user):
    assert (await as_client.get("/api/auth/me")).status_code == 200

    r = await as_admin.post(f"/api/admin/users/{client_user.id}/block")
    assert r.status_code == 200

    r = await as_client.get("/api/auth/me")
    assert r.status_code == 403
    assert r.json() == {"error": "Account blocked"}
    # session was cleared
    assert (await as_client.get("/api/auth/me")).status_code == 401


async def test_logout(as_client):
    r = await as_client.post("/api/auth/logout")
    assert r.status_code == 200
    r = await as_client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json() == {"error": "Not authenticated"}


async def test_deleted_user_session_expires(as_client, db, client_user):
    db.query(User).filter(User.id == client_user.id).delete()
    db.commit()
    r = await as_client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json() == {"error": "Session expired"}


async def test_role_guard(as_client):
    r = await as_client.get("/api/admin/settings")
    assert r.status_code == 403
    assert r.json() == {"error": "Insufficient permissions"}


async def test_role_guard_fails_closed_without_session_user(make_client, admin):
    ac = await make_client()
    app.dependency_overrides[get_current_user] = lambda: admin
    r = await ac.get("/api/admin/settings")
    assert r.status_code == 500
    assert r.json() == {"error": "Authorization misconfigured"}


async def test_profile_phone_is_masked_for_other_users(as_client, transporter):
    r = await as_client.get(f"/api/users/{transporter.id}")
    assert r.status_code == 200
    assert "•••••" in r.json()["phone_number"]
