"""
Outbound notification queue (producer side) and dispatcher (consumer side).

Handlers enqueue typed events on a per-request OutboundQueue. The queue is
drained by a FastAPI background task after the response is sent, so a slow
or failing provider never delays or fails the primary request.
"""

from functools import lru_cache
import logging

from fastapi import BackgroundTasks, Depends

from freightmatch.core.config import settings
from freightmatch.notifications.events import (
    BulkSmsEvent,
    DispatchReport,
    EmailEvent,
    OutboundEvent,
    PushEvent,
    SmsEvent,
)
from freightmatch.notifications.providers import (
    HttpPushProvider,
    InfobipSmsProvider,
    LoggingNoopEmailProvider,
    LoggingNoopPushProvider,
    LoggingNoopSmsProvider,
    ResendEmailProvider,
)

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Delivers events to providers. Never raises."""

    def __init__(self, sms, push, email):
        self.sms = sms
        self.push = push
        self.email = email

    def _deliver(self, event: OutboundEvent) -> DispatchReport:
        if isinstance(event, PushEvent):
            if not event.device_tokens:
                return DispatchReport()
            self.push.send(list(event.device_tokens), event.title, event.body, event.url)
            return DispatchReport(sent=1)
        if isinstance(event, SmsEvent):
            self.sms.send(event.phone_number, event.message)
            return DispatchReport(sent=1)
        if isinstance(event, BulkSmsEvent):
            success, failed = self.sms.send_bulk(list(event.phone_numbers), event.message)
            return DispatchReport(sent=success, failed=failed)
        if isinstance(event, EmailEvent):
            self.email.send(event.subject, event.html, event.to)
            return DispatchReport(sent=1)
        raise TypeError(f"Unknown outbound event {type(event).__name__}")

    def dispatch(self, event: OutboundEvent) -> DispatchReport:
        try:
            return self._deliver(event)
        except Exception as exc:
            logger.warning("Delivery of %s failed: %s", type(event).__name__, exc)
            return DispatchReport(failed=1, errors=[str(exc)])

    def dispatch_all(self, events: list[OutboundEvent]) -> DispatchReport:
        report = DispatchReport()
        for event in events:
            report.merge(self.dispatch(event))
        return report


class OutboundQueue:
    """Per-request buffer of outbound events."""

    def __init__(self):
        self._events: list[OutboundEvent] = []

    def enqueue(self, event: OutboundEvent) -> None:
        self._events.append(event)

    @property
    def pending(self) -> list[OutboundEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def drain(self, dispatcher: NotificationDispatcher) -> DispatchReport:
        events, self._events = self._events, []
        if not events:
            return DispatchReport()
        report = dispatcher.dispatch_all(events)
        if report.failed:
            logger.warning("Outbound queue drained: %d sent, %d failed", report.sent, report.failed)
        else:
            logger.debug("Outbound queue drained: %d sent", report.sent)
        return report


def build_dispatcher() -> NotificationDispatcher:
    """Real providers where credentials are set, logging no-ops elsewhere."""
    timeout = settings.PROVIDER_TIMEOUT_SECONDS

    if settings.INFOBIP_API_KEY and settings.INFOBIP_BASE_URL:
        sms = InfobipSmsProvider(settings.INFOBIP_API_KEY, settings.INFOBIP_BASE_URL, settings.SMS_SENDER_NAME, timeout)
    else:
        sms = LoggingNoopSmsProvider()

    if settings.PUSH_SERVER_KEY:
        push = HttpPushProvider(settings.PUSH_SERVER_KEY, settings.PUSH_API_URL, timeout)
    else:
        push = LoggingNoopPushProvider()

    if settings.RESEND_API_KEY:
        email = ResendEmailProvider(settings.RESEND_API_KEY, settings.EMAIL_FROM, settings.ADMIN_EMAIL, timeout)
    else:
        email = LoggingNoopEmailProvider()

    return NotificationDispatcher(sms=sms, push=push, email=email)


@lru_cache
def get_dispatcher() -> NotificationDispatcher:
    return build_dispatcher()


def get_outbound_queue(
    background_tasks: BackgroundTasks,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> OutboundQueue:
    queue = OutboundQueue()
    background_tasks.add_task(queue.drain, dispatcher)
    return queue
