from freightmatch.db.enums import NotificationType, Role
from freightmatch.db.models.notification import Notification
from freightmatch.notifications.dispatcher import NotificationDispatcher, OutboundQueue, build_dispatcher
from freightmatch.notifications.events import BulkSmsEvent, EmailEvent, PushEvent, SmsEvent
from freightmatch.notifications.providers import (
    LoggingNoopEmailProvider,
    LoggingNoopPushProvider,
    LoggingNoopSmsProvider,
)
from freightmatch.notifications.service import broadcast_new_mission, email_admin, notify


class ExplodingSms:
    def send(self, phone_number, message):
        raise RuntimeError("provider down")

    def send_bulk(self, phone_numbers, message):
        raise RuntimeError("provider down")


def test_dispatch_routes_events_to_providers(outbox):
    report = outbox.dispatcher.dispatch_all([
        PushEvent(device_tokens=("tok",), title="t", body="b"),
        SmsEvent(phone_number="+212611111111", message="hello"),
        BulkSmsEvent(phone_numbers=("a", "b", "c"), message="promo"),
        EmailEvent(subject="s", html="<p>x</p>"),
    ])
    assert report.sent == 6
    assert report.failed == 0
    assert outbox.push.sent == [(["tok"], "t", "b", None)]
    assert outbox.sms.sent == [("+212611111111", "hello")]
    assert outbox.email.sent[0][0] == "s"


def test_push_without_tokens_is_skipped(outbox):
    report = outbox.dispatcher.dispatch(PushEvent(device_tokens=(), title="t", body="b"))
    assert report.sent == 0
    assert outbox.push.sent == []


def test_provider_failure_is_reported_not_raised(outbox):
    dispatcher = NotificationDispatcher(sms=ExplodingSms(), push=outbox.push, email=outbox.email)
    report = dispatcher.dispatch_all([
        SmsEvent(phone_number="+212611111111", message="hello"),
        EmailEvent(subject="s", html="x"),
    ])
    assert report.sent == 1
    assert report.failed == 1
    assert report.errors == ["provider down"]


def test_queue_drain_empties_queue(outbox):
    queue = OutboundQueue()
    queue.enqueue(SmsEvent(phone_number="1", message="m"))
    queue.enqueue(SmsEvent(phone_number="2", message="m"))
    assert len(queue) == 2

    report = queue.drain(outbox.dispatcher)
    assert report.sent == 2
    assert len(queue) == 0
    assert queue.drain(outbox.dispatcher).sent == 0


def test_unconfigured_providers_fall_back_to_logging():
    dispatcher = build_dispatcher()
    assert isinstance(dispatcher.sms, LoggingNoopSmsProvider)
    assert isinstance(dispatcher.push, LoggingNoopPushProvider)
    assert isinstance(dispatcher.email, LoggingNoopEmailProvider)


def test_notify_writes_inbox_row_and_queues_push_and_sms(db, make_user):
    user = make_user(Role.CLIENT, device_token="tok-1")
    queue = OutboundQueue()

    notification = notify(db, queue, user, NotificationType.REQUEST_QUALIFIED, "Title", "Body", "r1", sms="Text")

    assert notification.id is not None
    assert notification.read is False
    kinds = [type(e) for e in queue.pending]
    assert kinds == [PushEvent, SmsEvent]
    assert queue.pending[0].url == "/client-dashboard"


def test_notify_without_device_token_queues_nothing(db, make_user):
    user = make_user(Role.CLIENT)
    queue = OutboundQueue()
    notify(db, queue, user, NotificationType.OFFER_RECEIVED, "Title", "Body")
    assert len(queue) == 0
    assert db.query(Notification).filter(Notification.user_id == user.id).count() == 1


def test_broadcast_reaches_only_active_validated_transporters(db, make_user):
    client = make_user(Role.CLIENT)
    ok = make_user(Role.TRANSPORTEUR, device_token="tok-ok")
    make_user(Role.TRANSPORTEUR, status="pending", device_token="tok-pending")
    make_user(Role.TRANSPORTEUR, account_status="blocked", device_token="tok-blocked")
    request = type("Req", (), {"id": "r1", "reference_id": "CMD-2026-00001", "from_city": "Fès", "to_city": "Rabat"})()
    queue = OutboundQueue()

    assert broadcast_new_mission(db, queue, request) == 1

    rows = db.query(Notification).filter(Notification.type == NotificationType.NEW_MISSION.value).all()
    assert [r.user_id for r in rows] == [ok.id]
    assert queue.pending == [
        PushEvent(
            device_tokens=("tok-ok",),
            title="New mission available",
            body=rows[0].message,
            url="/transporter-dashboard",
        )
    ]
    assert client.id not in [r.user_id for r in rows]


def test_email_admin_escapes_values():
    queue = OutboundQueue()
    email_admin(queue, "Subject", {"Name": "<script>"})
    (event,) = queue.pending
    assert "&lt;script&gt;" in event.html
    assert event.to is None
