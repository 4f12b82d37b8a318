"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite schema per test (StaticPool, shared connection)
- Recording notification providers in place of SMS / push / email
- User factory and per-user logged-in HTTPX AsyncClients
"""
import itertools
import os
from dataclasses import dataclass, field
from types import SimpleNamespace

# Settings are read at import time
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "dev"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from freightmatch.main import app
from freightmatch.db.base import Base, get_db
from freightmatch.db.enums import Role, TransporterStatus
from freightmatch.db.models.user import User
from freightmatch.notifications.dispatcher import NotificationDispatcher, get_dispatcher
from freightmatch.services.client_ids import next_client_id
from freightmatch.services.users import create_user

PIN = "123456"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_phones = itertools.count(1)


def next_phone() -> str:
    # never contains the admin marker
    return f"+2126{11111111 + next(_phones)}"


# =============================================================================
# Recording providers
# =============================================================================

@dataclass
class RecordingSms:
    sent: list = field(default_factory=list)
    bulk: list = field(default_factory=list)

    def send(self, phone_number, message):
        self.sent.append((phone_number, message))

    def send_bulk(self, phone_numbers, message):
        self.bulk.append((list(phone_numbers), message))
        return len(phone_numbers), 0


@dataclass
class RecordingPush:
    sent: list = field(default_factory=list)

    def send(self, device_tokens, title, body, url=None):
        self.sent.append((list(device_tokens), title, body, url))


@dataclass
class RecordingEmail:
    sent: list = field(default_factory=list)

    def send(self, subject, html, to=None):
        self.sent.append((subject, html, to))


# =============================================================================
# Database
# =============================================================================

@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db() -> Session:
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def outbox():
    sms, push, email = RecordingSms(), RecordingPush(), RecordingEmail()
    return SimpleNamespace(
        sms=sms,
        push=push,
        email=email,
        dispatcher=NotificationDispatcher(sms=sms, push=push, email=email),
    )


# =============================================================================
# Users
# =============================================================================

@pytest.fixture
def make_user(db: Session):
    def _make(role: Role | None, name: str | None = None, status: str | None = None, **fields) -> User:
        user = create_user(db, fields.pop("phone_number", None) or next_phone(), PIN, role=role.value if role else None, name=name)
        if role == Role.CLIENT:
            user.client_id = next_client_id(db)
        if role == Role.TRANSPORTEUR:
            user.status = status or TransporterStatus.VALIDATED.value
            user.city = fields.pop("city", "Casablanca")
        for k, v in fields.items():
            setattr(user, k, v)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def client_user(make_user) -> User:
    return make_user(Role.CLIENT, name="Amina Client")


@pytest.fixture
def transporter(make_user) -> User:
    return make_user(Role.TRANSPORTEUR, name="Youssef Transport", device_token="device-youssef")


@pytest.fixture
def coordinator(make_user) -> User:
    return make_user(Role.COORDINATEUR, name="Sara Coord")


@pytest.fixture
def admin(make_user) -> User:
    return make_user(Role.ADMIN, name="Admin")


# =============================================================================
# HTTP clients
# =============================================================================

def _override_get_db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
async def make_client(outbox):
    """Factory for AsyncClients; each one carries its own session cookie."""
    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_dispatcher] = lambda: outbox.dispatcher
    clients = []

    async def _make(user: User | None = None, pin: str = PIN) -> AsyncClient:
        ac = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(ac)
        if user is not None:
            response = await ac.post("/api/auth/login", json={"phone_number": user.phone_number, "pin": pin})
            assert response.status_code == 200, response.text
        return ac

    yield _make

    for ac in clients:
        await ac.aclose()
    app.dependency_overrides.clear()


@pytest.fixture
async def anon(make_client) -> AsyncClient:
    return await make_client()


@pytest.fixture
async def as_client(make_client, client_user) -> AsyncClient:
    return await make_client(client_user)


@pytest.fixture
async def as_transporter(make_client, transporter) -> AsyncClient:
    return await make_client(transporter)


@pytest.fixture
async def as_coordinator(make_client, coordinator) -> AsyncClient:
    return await make_client(coordinator)


@pytest.fixture
async def as_admin(make_client, admin) -> AsyncClient:
    return await make_client(admin)


# =============================================================================
# Request helpers
# =============================================================================

REQUEST_PAYLOAD = {
    "from_city": "Casablanca",
    "to_city": "Rabat",
    "description": "Salon et deux armoires",
    "goods_type": "Meubles",
    "date_time": "2026-12-01T09:00:00",
}


@pytest.fixture
def new_request(as_client):
    async def _create(**overrides) -> dict:
        response = await as_client.post("/api/requests", json={**REQUEST_PAYLOAD, **overrides})
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def published_request(new_request, as_coordinator):
    """Request qualified at 500 + 50 and published for matching."""
    async def _create() -> dict:
        req = await new_request()
        r = await as_coordinator.post(
            f"/api/coordinator/requests/{req['id']}/qualify",
            json={"transporter_amount": "500", "platform_fee": "50"},
        )
        assert r.status_code == 200, r.text
        r = await as_coordinator.post(f"/api/coordinator/requests/{req['id']}/publish-for-matching")
        assert r.status_code == 200, r.text
        return r.json()

    return _create


@pytest.fixture
def accepted_request(new_request, as_client, as_transporter):
    """Request with an accepted 1000 MAD offer from `transporter`."""
    async def _create() -> dict:
        req = await new_request()
        r = await as_transporter.post(
            "/api/offers",
            json={"request_id": req["id"], "amount": "1000", "pickup_date": "2026-12-01T08:00:00", "load_type": "return"},
        )
        assert r.status_code == 201, r.text
        r = await as_client.post(f"/api/offers/{r.json()['id']}/accept")
        assert r.status_code == 200, r.text
        r = await as_client.get(f"/api/requests/{req['id']}")
        return r.json()

    return _create
