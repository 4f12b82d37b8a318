"""
In-app notifications plus the outbound side effects that accompany them.

`notify` writes the Notification row synchronously (it is part of the
response-visible state) and enqueues push / SMS for after the response.
"""

import logging
from html import escape

from sqlalchemy.orm import Session

from freightmatch.db.enums import AccountStatus, NotificationType, Role, TransporterStatus
from freightmatch.db.models.notification import Notification
from freightmatch.db.models.user import User
from freightmatch.notifications.dispatcher import OutboundQueue
from freightmatch.notifications.events import BulkSmsEvent, EmailEvent, PushEvent, SmsEvent

logger = logging.getLogger(__name__)

# Push deep links by recipient role
DASHBOARD_URLS = {
    Role.CLIENT.value: "/client-dashboard",
    Role.TRANSPORTEUR.value: "/transporter-dashboard",
    Role.COORDINATEUR.value: "/coordinator",
    Role.ADMIN.value: "/admin",
}


def notify(
    db: Session,
    queue: OutboundQueue,
    user: User,
    type_: NotificationType,
    title: str,
    message: str,
    related_id: str | None = None,
    *,
    push: bool = True,
    sms: str | None = None,
) -> Notification:
    """Create an inbox row for `user`; queue push (if they have a device) and SMS (if given)."""
    notification = Notification(
        user_id=user.id,
        type=type_.value,
        title=title,
        message=message,
        related_id=related_id,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)

    if push and user.device_token:
        queue.enqueue(
            PushEvent(
                device_tokens=(user.device_token,),
                title=title,
                body=message,
                url=DASHBOARD_URLS.get(user.role, "/"),
            )
        )
    if sms:
        queue.enqueue(SmsEvent(phone_number=user.phone_number, message=sms))
    return notification


def active_validated_transporters(db: Session) -> list[User]:
    return (
        db.query(User)
        .filter(
            User.role == Role.TRANSPORTEUR.value,
            User.status == TransporterStatus.VALIDATED.value,
            User.account_status == AccountStatus.ACTIVE.value,
        )
        .all()
    )


def broadcast_new_mission(db: Session, queue: OutboundQueue, request) -> int:
    """Inbox row for every eligible transporter plus one multicast push. Returns recipient count."""
    transporters = active_validated_transporters(db)
    title = "New mission available"
    message = f"Mission {request.reference_id} ({request.from_city} → {request.to_city}) is open for interest."
    for transporter in transporters:
        db.add(
            Notification(
                user_id=transporter.id,
                type=NotificationType.NEW_MISSION.value,
                title=title,
                message=message,
                related_id=request.id,
            )
        )
    db.commit()

    tokens = tuple(t.device_token for t in transporters if t.device_token)
    if tokens:
        queue.enqueue(
            PushEvent(device_tokens=tokens, title=title, body=message, url=DASHBOARD_URLS[Role.TRANSPORTEUR.value])
        )
    logger.info("Mission %s broadcast to %d transporters", request.reference_id, len(transporters))
    return len(transporters)


def email_admin(queue: OutboundQueue, subject: str, lines: dict[str, object]) -> None:
    """Audit copy to the platform admin mailbox."""
    rows = "".join(
        f"<tr><td><strong>{escape(str(k))}</strong></td><td>{escape(str(v))}</td></tr>" for k, v in lines.items()
    )
    queue.enqueue(EmailEvent(subject=subject, html=f"<h2>{escape(subject)}</h2><table>{rows}</table>"))


def send_bulk_sms(queue: OutboundQueue, phone_numbers: list[str], message: str) -> None:
    queue.enqueue(BulkSmsEvent(phone_numbers=tuple(phone_numbers), message=message))
