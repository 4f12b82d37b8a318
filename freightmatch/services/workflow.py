"""
Request lifecycle operations.

Each operation checks its guard against the transition tables in
core.state_machine, writes the row, then records the side effects
(inbox rows, queued push/SMS, coordinator audit log). Operations commit as
they go; there is no wrapping transaction.
"""

from datetime import datetime
import json
import logging

from sqlalchemy.orm import Session

from freightmatch.core.exceptions import Conflict, NotFound, ValidationFailed
from freightmatch.core.policies import job_transporter_id
from freightmatch.core.state_machine import (
    ensure_coordination_transition,
    ensure_payment_transition,
    ensure_request_transition,
    is_consistent_pair,
)
from freightmatch.db.base import to_naive_utc, utcnow
from freightmatch.db.enums import (
    AccountStatus,
    ContractStatus,
    CoordinationStatus,
    NotificationType,
    OfferStatus,
    PaymentStatus,
    RequestStatus,
    Role,
    TransporterStatus,
)
from freightmatch.db.models.chat_message import ChatMessage
from freightmatch.db.models.coordination import CoordinationStatusConfig, CoordinatorLog
from freightmatch.db.models.offer import Contract, Offer, TransporterInterest
from freightmatch.db.models.rating import Rating
from freightmatch.db.models.report import Report
from freightmatch.db.models.transport_request import RequestNote, TransportRequest
from freightmatch.db.models.user import User
from freightmatch.notifications.dispatcher import OutboundQueue
from freightmatch.notifications.service import broadcast_new_mission, email_admin, notify
from freightmatch.services.distance import calculate_distance_km
from freightmatch.services.pricing import (
    PricingConfig,
    client_amount,
    commission_amount,
    format_amount,
    qualify_split,
    quantize,
    to_decimal,
)
from freightmatch.services.references import new_share_token, next_reference_id

logger = logging.getLogger(__name__)


# ---- lookups ----

def get_request_or_404(db: Session, request_id: str) -> TransportRequest:
    req = db.query(TransportRequest).filter(TransportRequest.id == request_id).first()
    if not req:
        raise NotFound("Request not found")
    return req


def get_offer_or_404(db: Session, offer_id: str) -> Offer:
    offer = db.query(Offer).filter(Offer.id == offer_id).first()
    if not offer:
        raise NotFound("Offer not found")
    return offer


def configured_substatuses(db: Session) -> list[str]:
    rows = db.query(CoordinationStatusConfig.value).filter(CoordinationStatusConfig.is_active == True).all()  # noqa: E712
    return [r[0] for r in rows]


def get_active_transporter(db: Session, transporter_id: str) -> User:
    transporter = db.query(User).filter(User.id == transporter_id, User.role == Role.TRANSPORTEUR.value).first()
    if not transporter:
        raise NotFound("Transporter not found")
    if transporter.status != TransporterStatus.VALIDATED.value:
        raise ValidationFailed("Transporter is not validated")
    if transporter.account_status == AccountStatus.BLOCKED.value:
        raise ValidationFailed("Transporter account is blocked")
    return transporter


def log_action(db: Session, coordinator: User, action: str, req: TransportRequest | None = None, **details) -> None:
    """Audit trail row for staff actions."""
    if coordinator.role not in (Role.COORDINATEUR.value, Role.ADMIN.value):
        return
    db.add(
        CoordinatorLog(
            coordinator_id=coordinator.id,
            action=action,
            target_type="request" if req is not None else None,
            target_id=req.id if req is not None else None,
            details=json.dumps(details, default=str) if details else None,
        )
    )
    db.commit()


# ---- status writers ----

def _set_coordination(req: TransportRequest, target: CoordinationStatus | str, actor: User | None, substatuses=()) -> None:
    value = target.value if isinstance(target, CoordinationStatus) else target
    ensure_coordination_transition(req.coordination_status, value, substatuses)
    req.coordination_status = value
    req.coordination_updated_at = utcnow()
    req.coordination_updated_by = actor.id if actor else None


def _set_status(req: TransportRequest, target: RequestStatus) -> None:
    ensure_request_transition(req.status, target)
    req.status = target.value


def _set_payment(req: TransportRequest, target: PaymentStatus) -> None:
    ensure_payment_transition(req.payment_status, target)
    req.payment_status = target.value


def _clear_assignment(db: Session, req: TransportRequest) -> None:
    db.query(Offer).filter(Offer.request_id == req.id).delete(synchronize_session=False)
    db.query(TransporterInterest).filter(TransporterInterest.request_id == req.id).delete(synchronize_session=False)
    req.accepted_offer_id = None
    req.accepted_at = None
    req.assigned_transporter_id = None
    req.assigned_by_coordinator_id = None
    req.assigned_manually = False
    req.assigned_at = None
    req.transporter_interests = []
    req.payment_status = PaymentStatus.A_FACTURER.value
    req.payment_receipt = None
    req.payment_date = None


def _create_contract(
    db: Session,
    req: TransportRequest,
    transporter_id: str,
    amount,
    offer_id: str | None = None,
    status: ContractStatus = ContractStatus.IN_PROGRESS,
) -> Contract:
    contract = Contract(
        request_id=req.id,
        offer_id=offer_id,
        client_id=req.client_id,
        transporter_id=transporter_id,
        reference_id=req.reference_id,
        amount=quantize(amount),
        status=status.value,
    )
    db.add(contract)
    db.commit()
    db.refresh(contract)
    return contract


# ---- creation ----

def create_request(db: Session, client: User, data) -> TransportRequest:
    payload = data.model_dump()
    payload["date_time"] = to_naive_utc(payload["date_time"])
    req = TransportRequest(
        **payload,
        client_id=client.id,
        reference_id=next_reference_id(db),
        share_token=new_share_token(),
        status=RequestStatus.OPEN.value,
        coordination_status=CoordinationStatus.QUALIFICATION_PENDING.value,
        payment_status=PaymentStatus.A_FACTURER.value,
        transporter_interests=[],
        declined_by=[],
    )
    db.add(req)
    db.commit()
    db.refresh(req)
    logger.info("Request %s created", req.reference_id)
    return req


def delete_requests(db: Session, request_ids: list[str]) -> None:
    """Hard-delete requests and every row that points at them; caller commits."""
    if not request_ids:
        return
    # explicit deletes: SQLite does not enforce ON DELETE CASCADE
    for model in (Rating, Contract, ChatMessage, Report, Offer, TransporterInterest, RequestNote):
        db.query(model).filter(model.request_id.in_(request_ids)).delete(synchronize_session=False)
    db.query(TransportRequest).filter(TransportRequest.id.in_(request_ids)).delete(synchronize_session=False)


# ---- qualification & matching ----

def qualify(db: Session, queue: OutboundQueue, coordinator: User, req: TransportRequest, transporter_amount, platform_fee):
    if req.coordination_status != CoordinationStatus.QUALIFICATION_PENDING.value:
        raise ValidationFailed("Request is not pending qualification")
    _set_coordination(req, CoordinationStatus.QUALIFIED, coordinator)

    req.transporter_amount, req.platform_fee, req.client_total = qualify_split(transporter_amount, platform_fee)
    req.qualified_at = utcnow()
    if req.from_address and req.to_address:
        req.distance_km = calculate_distance_km(req.from_address, req.to_address)
    db.commit()
    db.refresh(req)

    client = db.get(User, req.client_id)
    total = format_amount(req.client_total)
    notify(
        db, queue, client, NotificationType.REQUEST_QUALIFIED,
        "Request qualified",
        f"Your request {req.reference_id} has been qualified. Total: {total} MAD.",
        req.id,
        sms=f"Your request {req.reference_id} has been qualified. Total amount: {total} MAD.",
    )
    log_action(db, coordinator, "qualify", req, transporter_amount=req.transporter_amount, platform_fee=req.platform_fee)
    return req


def publish_for_matching(db: Session, queue: OutboundQueue, coordinator: User, req: TransportRequest):
    if req.coordination_status != CoordinationStatus.QUALIFIED.value or req.client_total is None:
        raise ValidationFailed("Request must be qualified before publishing")
    _set_status(req, RequestStatus.PUBLISHED_FOR_MATCHING)
    _set_coordination(req, CoordinationStatus.MATCHING, coordinator)
    req.published_for_matching_at = utcnow()
    db.commit()
    db.refresh(req)

    broadcast_new_mission(db, queue, req)
    log_action(db, coordinator, "publish_for_matching", req)
    return req


def express_interest(db: Session, queue: OutboundQueue, transporter: User, req: TransportRequest, availability_date=None):
    """Add the transporter to the request's interest list. Repeat calls are no-ops."""
    if req.status != RequestStatus.PUBLISHED_FOR_MATCHING.value:
        raise ValidationFailed("Request is not open for interest")

    interests = list(req.transporter_interests or [])
    if transporter.id in interests:
        return req

    req.transporter_interests = interests + [transporter.id]
    db.add(
        TransporterInterest(
            request_id=req.id,
            transporter_id=transporter.id,
            availability_date=to_naive_utc(availability_date),
        )
    )
    db.commit()
    db.refresh(req)

    client = db.get(User, req.client_id)
    notify(
        db, queue, client, NotificationType.TRANSPORTER_INTERESTED,
        "A transporter is interested",
        f"{transporter.name or 'A transporter'} is interested in your request {req.reference_id}.",
        req.id,
    )
    return req


def withdraw_interest(db: Session, transporter: User, req: TransportRequest):
    """Remove the transporter from the interest list. Repeat calls are no-ops."""
    interests = list(req.transporter_interests or [])
    if transporter.id not in interests:
        return req
    req.transporter_interests = [t for t in interests if t != transporter.id]
    db.query(TransporterInterest).filter(
        TransporterInterest.request_id == req.id,
        TransporterInterest.transporter_id == transporter.id,
    ).delete(synchronize_session=False)
    db.commit()
    db.refresh(req)
    return req


def decline(db: Session, transporter: User, req: TransportRequest):
    """Hide a request from this transporter's feed."""
    declined = list(req.declined_by or [])
    if transporter.id not in declined:
        req.declined_by = declined + [transporter.id]
        db.commit()
        db.refresh(req)
    return req


# ---- offers ----

def create_offer(db: Session, queue: OutboundQueue, transporter: User, req: TransportRequest, data, config: PricingConfig) -> Offer:
    if req.status not in (RequestStatus.OPEN.value, RequestStatus.PUBLISHED_FOR_MATCHING.value):
        raise ValidationFailed("Request is not accepting offers")

    existing = db.query(Offer).filter(Offer.request_id == req.id, Offer.transporter_id == transporter.id).first()
    if existing:
        raise Conflict("You already submitted an offer for this request")

    offer = Offer(
        request_id=req.id,
        transporter_id=transporter.id,
        amount=quantize(data.amount),
        pickup_date=to_naive_utc(data.pickup_date),
        load_type=data.load_type.value,
        status=OfferStatus.PENDING.value,
    )
    db.add(offer)
    db.commit()
    db.refresh(offer)

    client = db.get(User, req.client_id)
    notify(
        db, queue, client, NotificationType.OFFER_RECEIVED,
        "New offer received",
        f"New offer of {format_amount(client_amount(offer.amount, config))} MAD for request {req.reference_id}.",
        offer.id,
    )
    return offer


def accept_offer(db: Session, queue: OutboundQueue, actor: User, offer: Offer, config: PricingConfig) -> dict:
    """
    Accept `offer`: request -> accepted/assigned, sibling offers deleted,
    contract created, winner notified. Steps are committed one by one; a
    failure part-way is logged and re-raised with the earlier steps kept.
    """
    req = offer.request
    if req.status == RequestStatus.ACCEPTED.value:
        raise Conflict("An offer has already been accepted for this request")
    if req.status not in (RequestStatus.OPEN.value, RequestStatus.PUBLISHED_FOR_MATCHING.value):
        raise ValidationFailed("Request is not accepting offers")
    ensure_request_transition(req.status, RequestStatus.ACCEPTED)
    ensure_coordination_transition(req.coordination_status, CoordinationStatus.ASSIGNED.value, configured_substatuses(db))

    offer.status = OfferStatus.ACCEPTED.value
    db.commit()

    try:
        now = utcnow()
        req.status = RequestStatus.ACCEPTED.value
        req.accepted_offer_id = offer.id
        req.accepted_at = now
        req.coordination_status = CoordinationStatus.ASSIGNED.value
        req.coordination_updated_at = now
        req.coordination_updated_by = actor.id
        db.commit()

        db.query(Offer).filter(Offer.request_id == req.id, Offer.id != offer.id).delete(synchronize_session=False)
        db.commit()

        contract = _create_contract(db, req, offer.transporter_id, offer.amount, offer_id=offer.id)
    except Exception:
        logger.exception("Accepting offer %s on request %s stopped part-way", offer.id, req.reference_id)
        raise

    db.refresh(req)
    transporter = db.get(User, offer.transporter_id)
    client = db.get(User, req.client_id)
    commission = commission_amount(offer.amount, config)
    total = client_amount(offer.amount, config)

    notify(
        db, queue, transporter, NotificationType.OFFER_ACCEPTED,
        "Offer accepted!",
        f"{client.name or 'The client'} accepted your offer of {format_amount(offer.amount)} MAD "
        f"for request {req.reference_id}.",
        offer.id,
    )
    email_admin(queue, f"Offer accepted - {req.reference_id}", {
        "Request": req.reference_id,
        "Transporter": transporter.name or transporter.id,
        "Amount": format_amount(offer.amount),
        "Commission": format_amount(commission),
        "Total": format_amount(total),
    })
    log_action(db, actor, "accept_offer", req, offer_id=offer.id)

    return {
        "success": True,
        "contract_id": contract.id,
        "commission": commission,
        "total": total,
        "transporter_name": transporter.name,
        "transporter_phone": transporter.phone_number,
        "client_name": client.name,
        "client_phone": client.phone_number,
    }


def choose_transporter(db: Session, queue: OutboundQueue, actor: User, req: TransportRequest, transporter_id: str):
    """Client (or staff on their behalf) picks one of the interested transporters."""
    if req.status != RequestStatus.PUBLISHED_FOR_MATCHING.value:
        raise ValidationFailed("Request is not in matching")
    if transporter_id not in (req.transporter_interests or []):
        raise ValidationFailed("Transporter has not expressed interest in this request")
    transporter = get_active_transporter(db, transporter_id)

    _set_status(req, RequestStatus.ACCEPTED)
    _set_coordination(req, CoordinationStatus.ASSIGNED, actor, configured_substatuses(db))
    now = utcnow()
    req.assigned_transporter_id = transporter.id
    req.assigned_at = now
    req.accepted_at = now
    db.commit()
    db.refresh(req)

    _create_contract(db, req, transporter.id, req.client_total if req.client_total is not None else 0)

    notify(
        db, queue, transporter, NotificationType.CLIENT_CHOSE_YOU,
        "You were chosen!",
        f"A client chose you for mission {req.reference_id}.",
        req.id,
        sms=f"Congratulations! A client chose you for mission {req.reference_id}.",
    )
    client = db.get(User, req.client_id)
    notify(
        db, queue, client, NotificationType.TRANSPORTER_ASSIGNED,
        "Transporter selected",
        f"You selected {transporter.name or 'a transporter'} for mission {req.reference_id}.",
        req.id,
    )
    log_action(db, actor, "choose_transporter", req, transporter_id=transporter.id)
    return req


def assign_transporter(
    db: Session,
    queue: OutboundQueue,
    coordinator: User,
    req: TransportRequest,
    transporter_id: str,
    transporter_amount,
    platform_fee,
):
    """Manual assignment: bypasses offers, sets coordinator-chosen pricing."""
    transporter = get_active_transporter(db, transporter_id)
    _set_status(req, RequestStatus.ACCEPTED)
    _set_coordination(req, CoordinationStatus.ASSIGNED, coordinator, configured_substatuses(db))

    now = utcnow()
    req.transporter_amount, req.platform_fee, req.client_total = qualify_split(transporter_amount, platform_fee)
    req.assigned_transporter_id = transporter.id
    req.assigned_by_coordinator_id = coordinator.id
    req.assigned_manually = True
    req.assigned_at = now
    req.accepted_at = now
    # a manual assignment starts billing from scratch
    req.payment_status = PaymentStatus.A_FACTURER.value
    req.payment_receipt = None
    req.payment_date = None
    db.commit()
    db.refresh(req)

    notify(
        db, queue, transporter, NotificationType.MANUAL_ASSIGNMENT,
        "New mission assigned",
        f"You have been assigned to mission {req.reference_id}.",
        req.id,
        sms=f"You have been assigned to mission {req.reference_id}. Check your dashboard for details.",
    )
    client = db.get(User, req.client_id)
    notify(
        db, queue, client, NotificationType.TRANSPORTER_ASSIGNED,
        "Transporter assigned",
        f"A transporter has been assigned to your request {req.reference_id}.",
        req.id,
        sms=f"A transporter has been assigned to your request {req.reference_id}.",
    )
    log_action(
        db, coordinator, "assign_transporter", req,
        transporter_id=transporter.id, transporter_amount=req.transporter_amount, platform_fee=req.platform_fee,
    )
    return req


# ---- payment ----

def mark_for_billing(db: Session, queue: OutboundQueue, actor: User, req: TransportRequest):
    if req.status not in (RequestStatus.ACCEPTED.value, RequestStatus.COMPLETED.value):
        raise ValidationFailed("Only accepted requests can be billed")
    _set_payment(req, PaymentStatus.AWAITING_PAYMENT)
    db.commit()
    db.refresh(req)

    client = db.get(User, req.client_id)
    notify(
        db, queue, client, NotificationType.PAYMENT_REQUEST,
        "Payment requested",
        f"The transporter has requested payment for request {req.reference_id}.",
        req.id,
    )
    log_action(db, actor, "mark_for_billing", req)
    return req


def mark_as_paid(db: Session, queue: OutboundQueue, client: User, req: TransportRequest, receipt: str):
    _set_payment(req, PaymentStatus.PENDING_ADMIN_VALIDATION)
    req.payment_receipt = receipt
    db.commit()
    db.refresh(req)

    for admin in db.query(User).filter(User.role == Role.ADMIN.value).all():
        notify(
            db, queue, admin, NotificationType.PAYMENT_RECEIPT,
            "Payment receipt to validate",
            f"Client uploaded a payment receipt for request {req.reference_id}.",
            req.id,
        )
    email_admin(queue, f"Payment receipt - {req.reference_id}", {
        "Request": req.reference_id,
        "Client": client.name or client.id,
        "Total": format_amount(req.client_total) if req.client_total is not None else "-",
    })
    return req


def admin_validate_payment(db: Session, queue: OutboundQueue, admin: User, req: TransportRequest):
    _set_payment(req, PaymentStatus.PAID)
    req.payment_date = utcnow()

    contract = db.query(Contract).filter(Contract.request_id == req.id).first()
    if contract:
        contract.status = ContractStatus.COMPLETED.value
    db.commit()
    db.refresh(req)

    transporter_id = job_transporter_id(req)
    if transporter_id:
        transporter = db.get(User, transporter_id)
        notify(
            db, queue, transporter, NotificationType.PAYMENT_CONFIRMED,
            "Payment confirmed",
            f"Payment for request {req.reference_id} has been validated.",
            req.id,
        )
    return req


def admin_reject_payment(db: Session, queue: OutboundQueue, admin: User, req: TransportRequest):
    _set_payment(req, PaymentStatus.AWAITING_PAYMENT)
    req.payment_receipt = None
    db.commit()
    db.refresh(req)

    client = db.get(User, req.client_id)
    notify(
        db, queue, client, NotificationType.PAYMENT_REJECTED,
        "Payment receipt rejected",
        f"Your payment receipt for request {req.reference_id} was rejected. Please upload a new one.",
        req.id,
    )
    return req


def coordinator_validate_payment(db: Session, queue: OutboundQueue, coordinator: User, req: TransportRequest):
    """Close out payment from the coordinator desk; records a completed contract."""
    allowed = (
        PaymentStatus.PAID_BY_CLIENT.value,
        PaymentStatus.PAID_BY_CAMIONBACK.value,
        PaymentStatus.PENDING_ADMIN_VALIDATION.value,
    )
    if req.payment_status not in allowed:
        raise ValidationFailed("Payment is not ready for validation")
    transporter_id = job_transporter_id(req)
    if not transporter_id:
        raise ValidationFailed("Request has no transporter")

    _set_payment(req, PaymentStatus.PAID)
    req.payment_date = utcnow()
    db.commit()

    contract = db.query(Contract).filter(Contract.request_id == req.id).first()
    if contract:
        contract.status = ContractStatus.COMPLETED.value
        db.commit()
    else:
        amount = req.client_total if req.client_total is not None else 0
        _create_contract(db, req, transporter_id, amount, status=ContractStatus.COMPLETED)
    db.refresh(req)

    transporter = db.get(User, transporter_id)
    notify(
        db, queue, transporter, NotificationType.PAYMENT_CONFIRMED,
        "Payment confirmed",
        f"Payment for request {req.reference_id} has been validated.",
        req.id,
    )
    log_action(db, coordinator, "validate_payment", req)
    return req


def update_payment_status(db: Session, coordinator: User, req: TransportRequest, target: PaymentStatus):
    _set_payment(req, target)
    if target == PaymentStatus.PAID:
        req.payment_date = utcnow()
    db.commit()
    db.refresh(req)
    log_action(db, coordinator, "update_payment_status", req, payment_status=target.value)
    return req


# ---- completion ----

def complete_with_rating(db: Session, queue: OutboundQueue, actor: User, req: TransportRequest, score: int, comment=None):
    existing = db.query(Rating).filter(Rating.request_id == req.id).first()
    if existing:
        raise Conflict("This request has already been rated")
    if not 1 <= score <= 5:
        raise ValidationFailed("Rating must be between 1 and 5")
    ensure_request_transition(req.status, RequestStatus.COMPLETED)

    transporter_id = job_transporter_id(req)
    if not transporter_id:
        raise ValidationFailed("Request has no transporter to rate")
    transporter = db.get(User, transporter_id)

    db.add(Rating(request_id=req.id, transporter_id=transporter.id, client_id=req.client_id, score=score, comment=comment))

    current = to_decimal(transporter.rating or 0)
    count = transporter.total_ratings or 0
    transporter.rating = quantize((current * count + score) / (count + 1))
    transporter.total_ratings = count + 1
    transporter.total_trips = (transporter.total_trips or 0) + 1

    _set_status(req, RequestStatus.COMPLETED)
    if req.coordination_status not in (CoordinationStatus.ASSIGNED.value, CoordinationStatus.ARCHIVE.value):
        # a completed request pairs only with assigned or archive
        _set_coordination(req, CoordinationStatus.ASSIGNED, actor, configured_substatuses(db))
    db.commit()
    db.refresh(req)

    notify(
        db, queue, transporter, NotificationType.RATING_RECEIVED,
        "New rating",
        f"You received {score}/5 for mission {req.reference_id}.",
        req.id,
    )
    return req


# ---- archive / requalify / cancel / republish ----

def archive(db: Session, queue: OutboundQueue, coordinator: User, req: TransportRequest, reason: str):
    if not reason:
        raise ValidationFailed("An archive reason is required")
    _set_status(req, RequestStatus.EXPIRED)
    _set_coordination(req, CoordinationStatus.ARCHIVE, coordinator, configured_substatuses(db))
    req.coordination_reason = reason
    db.commit()
    db.refresh(req)

    client = db.get(User, req.client_id)
    notify(
        db, queue, client, NotificationType.REQUEST_ARCHIVED,
        "Request archived",
        f"Your request {req.reference_id} has been archived. Reason: {reason}.",
        req.id,
        sms=f"Your request {req.reference_id} has been archived. Reason: {reason}.",
    )
    log_action(db, coordinator, "archive", req, reason=reason)
    return req


def requalify(db: Session, queue: OutboundQueue, coordinator: User, req: TransportRequest):
    """Put a request back into matching with its existing pricing; assignment and interests are cleared."""
    if req.transporter_amount is None or req.client_total is None:
        raise ValidationFailed("Request has no pricing to requalify with")
    _set_status(req, RequestStatus.PUBLISHED_FOR_MATCHING)
    _set_coordination(req, CoordinationStatus.MATCHING, coordinator, configured_substatuses(db))
    _clear_assignment(db, req)
    req.coordination_reason = None
    req.published_for_matching_at = utcnow()
    db.commit()
    db.refresh(req)

    broadcast_new_mission(db, queue, req)
    log_action(db, coordinator, "requalify", req)
    return req


def cancel(db: Session, queue: OutboundQueue, coordinator: User, req: TransportRequest, reason: str):
    if not reason or not reason.strip():
        raise ValidationFailed("A cancellation reason is required")
    _set_status(req, RequestStatus.CANCELLED)
    _set_coordination(req, CoordinationStatus.ARCHIVE, coordinator, configured_substatuses(db))
    req.cancellation_reason = reason
    db.add(RequestNote(request_id=req.id, author_id=coordinator.id, content=f"Cancelled: {reason}"))
    db.commit()
    db.refresh(req)

    client = db.get(User, req.client_id)
    notify(
        db, queue, client, NotificationType.REQUEST_CANCELLED,
        "Request cancelled",
        f"Your request {req.reference_id} has been cancelled. Reason: {reason}.",
        req.id,
    )
    log_action(db, coordinator, "cancel", req, reason=reason)
    return req


def republish(db: Session, actor: User, req: TransportRequest, date_time: datetime | None = None):
    allowed = (RequestStatus.ACCEPTED.value, RequestStatus.COMPLETED.value, RequestStatus.EXPIRED.value)
    if req.status not in allowed:
        raise ValidationFailed("Only accepted, completed or expired requests can be republished")
    _set_status(req, RequestStatus.OPEN)
    target = CoordinationStatus.QUALIFIED if req.client_total is not None else CoordinationStatus.QUALIFICATION_PENDING
    _set_coordination(req, target, actor, configured_substatuses(db))
    _clear_assignment(db, req)
    req.coordination_reason = None
    if date_time is not None:
        req.date_time = to_naive_utc(date_time)
    db.commit()
    db.refresh(req)
    log_action(db, actor, "republish", req)
    return req


# ---- manual coordination status ----

def update_coordination_status(
    db: Session,
    coordinator: User,
    req: TransportRequest,
    target: str,
    reason: str | None = None,
    reminder_date: datetime | None = None,
):
    substatuses = configured_substatuses(db)
    if not is_consistent_pair(req.status, target, substatuses):
        raise ValidationFailed(f"Coordination status '{target}' is not compatible with status '{req.status}'")
    _set_coordination(req, target, coordinator, substatuses)
    req.coordination_reason = reason
    req.coordination_reminder_date = to_naive_utc(reminder_date)
    db.commit()
    db.refresh(req)
    log_action(db, coordinator, "update_coordination_status", req, coordination_status=target, reason=reason)
    return req
