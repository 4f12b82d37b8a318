import json

from fastapi.testclient import TestClient

from freightmatch.db.enums import Role
from freightmatch.db.models.notification import Notification
from freightmatch.main import app


async def test_messages_are_filtered_for_parties(accepted_request, as_client, as_transporter, as_coordinator, transporter, db):
    req = await accepted_request()
    r = await as_client.post(
        "/api/chat/messages",
        json={"request_id": req["id"], "receiver_id": transporter.id, "message": "Appelez-moi au 0612345678"},
    )
    assert r.status_code == 201
    assert r.json()["message"] == "Appelez-moi au ***"

    r = await as_transporter.get("/api/chat/messages", params={"request_id": req["id"]})
    assert [m["message"] for m in r.json()] == ["Appelez-moi au ***"]

    r = await as_coordinator.get("/api/chat/messages", params={"request_id": req["id"]})
    assert [m["message"] for m in r.json()] == ["Appelez-moi au 0612345678"]

    received = db.query(Notification).filter(Notification.user_id == transporter.id, Notification.type == "message_received")
    assert received.count() == 1


async def test_conversations_and_unread(accepted_request, as_client, as_transporter, client_user, transporter):
    req = await accepted_request()
    for text in ("Bonjour", "Vous êtes où ?"):
        await as_client.post("/api/chat/messages", json={"request_id": req["id"], "receiver_id": transporter.id, "message": text})

    assert (await as_transporter.get("/api/chat/unread-count")).json() == {"count": 2}
    r = await as_transporter.get("/api/chat/conversations")
    (conv,) = r.json()
    assert conv["other_user_id"] == client_user.id
    assert conv["unread_count"] == 2

    await as_transporter.post("/api/chat/mark-read", json={"request_id": req["id"]})
    assert (await as_transporter.get("/api/chat/unread-count")).json() == {"count": 0}


async def test_outsiders_cannot_chat(accepted_request, make_user, make_client, client_user):
    req = await accepted_request()
    outsider = await make_client(make_user(Role.TRANSPORTEUR))
    r = await outsider.post("/api/chat/messages", json={"request_id": req["id"], "receiver_id": client_user.id, "message": "Salut"})
    assert r.status_code == 403


async def test_media_message_requires_file(accepted_request, as_client, transporter):
    req = await accepted_request()
    r = await as_client.post(
        "/api/chat/messages",
        json={"request_id": req["id"], "receiver_id": transporter.id, "message_type": "photo"},
    )
    assert r.status_code == 400


def test_websocket_relays_chat_frames():
    # one TestClient context keeps both sockets on the same event loop
    with TestClient(app) as client:
        with client.websocket_connect("/ws-chat") as sender, client.websocket_connect("/ws-chat") as listener:
            # ping round-trips guarantee both sockets are registered
            sender.send_text("ping")
            assert sender.receive_text() == "pong"
            listener.send_text("ping")
            assert listener.receive_text() == "pong"

            frame = {"type": "chat", "request_id": "r1", "message": "hello"}
            sender.send_text(json.dumps(frame))
            assert listener.receive_json() == frame
            assert sender.receive_json() == frame


def test_websocket_ignores_other_frames():
    with TestClient(app) as client:
        with client.websocket_connect("/ws-chat") as ws:
            ws.send_text("not json")
            ws.send_text(json.dumps({"type": "typing"}))
            ws.send_text("ping")
            assert ws.receive_text() == "pong"
