from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from freightmatch.core.security import require_staff
from freightmatch.db.base import get_db, utcnow
from freightmatch.db.enums import (
    CoordinationCategory,
    CoordinationStatus,
    PaymentStatus,
    ReferenceStatus,
    RequestStatus,
    Role,
    TransporterStatus,
)
from freightmatch.db.models.coordination import CoordinationStatusConfig
from freightmatch.db.models.transport_request import RequestNote, TransportRequest
from freightmatch.db.models.transporter_reference import TransporterReference
from freightmatch.db.models.user import User
from freightmatch.notifications.dispatcher import OutboundQueue, get_outbound_queue
from freightmatch.schemas.coordinator import (
    ArchiveRequest,
    AssignTransporterRequest,
    CancelRequest,
    CoordinationStatusUpdate,
    NoteCreate,
    NoteResponse,
    PaymentStatusUpdate,
    QualifyRequest,
    ReferenceDecision,
)
from freightmatch.schemas.misc import ReferenceResponse
from freightmatch.schemas.offer import AcceptOfferResponse
from freightmatch.schemas.transport_request import RequestResponse
from freightmatch.services import workflow
from freightmatch.services.pricing import PricingConfig, get_pricing_config
from freightmatch.services.users import sanitize_user

router = APIRouter(prefix="/api/coordinator", tags=["coordinator"])

PAYMENT_QUEUE = (
    PaymentStatus.AWAITING_PAYMENT.value,
    PaymentStatus.PENDING_ADMIN_VALIDATION.value,
    PaymentStatus.PAID_BY_CLIENT.value,
    PaymentStatus.PAID_BY_CAMIONBACK.value,
)


def _list(q, city: Optional[str]):
    if city:
        pattern = f"%{city.lower()}%"
        q = q.filter(or_(func.lower(TransportRequest.from_city).like(pattern), func.lower(TransportRequest.to_city).like(pattern)))
    return q.order_by(TransportRequest.created_at.desc()).all()


# ---- 1) Queues ----

@router.get("/qualification-pending", response_model=List[RequestResponse])
def qualification_pending(city: Optional[str] = None, db: Session = Depends(get_db), _: User = Depends(require_staff)):
    q = db.query(TransportRequest).filter(
        TransportRequest.status == RequestStatus.OPEN.value,
        TransportRequest.coordination_status.in_(
            [CoordinationStatus.QUALIFICATION_PENDING.value, CoordinationStatus.NOUVEAU.value]
        ),
    )
    return _list(q, city)


@router.get("/matching", response_model=List[RequestResponse])
def matching(city: Optional[str] = None, db: Session = Depends(get_db), _: User = Depends(require_staff)):
    q = db.query(TransportRequest).filter(TransportRequest.status == RequestStatus.PUBLISHED_FOR_MATCHING.value)
    return _list(q, city)


@router.get("/active-requests", response_model=List[RequestResponse])
def active_requests(city: Optional[str] = None, db: Session = Depends(get_db), _: User = Depends(require_staff)):
    q = db.query(TransportRequest).filter(TransportRequest.status == RequestStatus.ACCEPTED.value)
    return _list(q, city)


@router.get("/archives", response_model=List[RequestResponse])
def archives(city: Optional[str] = None, db: Session = Depends(get_db), _: User = Depends(require_staff)):
    q = db.query(TransportRequest).filter(TransportRequest.coordination_status == CoordinationStatus.ARCHIVE.value)
    return _list(q, city)


@router.get("/en-action", response_model=List[RequestResponse])
def en_action(
    category: CoordinationCategory = CoordinationCategory.EN_ACTION,
    city: Optional[str] = None,
    db: Session = Depends(get_db),
    _: User = Depends(require_staff),
):
    """Requests parked on an admin-configured sub-status of the given category."""
    values = [
        v for (v,) in db.query(CoordinationStatusConfig.value).filter(CoordinationStatusConfig.category == category.value).all()
    ]
    if not values:
        return []
    q = db.query(TransportRequest).filter(TransportRequest.coordination_status.in_(values))
    return _list(q, city)


@router.get("/payment-requests", response_model=List[RequestResponse])
def payment_requests(city: Optional[str] = None, db: Session = Depends(get_db), _: User = Depends(require_staff)):
    q = db.query(TransportRequest).filter(TransportRequest.payment_status.in_(PAYMENT_QUEUE))
    return _list(q, city)


# ---- 2) Workflow actions ----

@router.post("/requests/{request_id}/qualify", response_model=RequestResponse)
def qualify(
    request_id: str,
    payload: QualifyRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = workflow.get_request_or_404(db, request_id)
    return workflow.qualify(db, queue, current_user, req, payload.transporter_amount, payload.platform_fee)


@router.post("/requests/{request_id}/publish-for-matching", response_model=RequestResponse)
def publish_for_matching(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = workflow.get_request_or_404(db, request_id)
    return workflow.publish_for_matching(db, queue, current_user, req)


@router.post("/requests/{request_id}/assign-transporter", response_model=RequestResponse)
def assign_transporter(
    request_id: str,
    payload: AssignTransporterRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = workflow.get_request_or_404(db, request_id)
    return workflow.assign_transporter(
        db, queue, current_user, req, payload.transporter_id, payload.transporter_amount, payload.platform_fee
    )


@router.post("/requests/{request_id}/archive", response_model=RequestResponse)
def archive(
    request_id: str,
    payload: ArchiveRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = workflow.get_request_or_404(db, request_id)
    return workflow.archive(db, queue, current_user, req, payload.reason.value)


@router.post("/requests/{request_id}/requalify", response_model=RequestResponse)
def requalify(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = workflow.get_request_or_404(db, request_id)
    return workflow.requalify(db, queue, current_user, req)


@router.post("/requests/{request_id}/cancel", response_model=RequestResponse)
def cancel(
    request_id: str,
    payload: CancelRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = workflow.get_request_or_404(db, request_id)
    return workflow.cancel(db, queue, current_user, req, payload.reason)


@router.patch("/requests/{request_id}/coordination-status", response_model=RequestResponse)
def update_coordination_status(
    request_id: str,
    payload: CoordinationStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    req = workflow.get_request_or_404(db, request_id)
    return workflow.update_coordination_status(
        db, current_user, req, payload.coordination_status, payload.reason, payload.reminder_date
    )


@router.patch("/requests/{request_id}/payment-status", response_model=RequestResponse)
def update_payment_status(
    request_id: str,
    payload: PaymentStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    req = workflow.get_request_or_404(db, request_id)
    return workflow.update_payment_status(db, current_user, req, payload.payment_status)


@router.post("/requests/{request_id}/validate-payment", response_model=RequestResponse)
def validate_payment(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = workflow.get_request_or_404(db, request_id)
    return workflow.coordinator_validate_payment(db, queue, current_user, req)


@router.post("/offers/{offer_id}/accept", response_model=AcceptOfferResponse)
def accept_offer_for_client(
    offer_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
    queue: OutboundQueue = Depends(get_outbound_queue),
    config: PricingConfig = Depends(get_pricing_config),
):
    offer = workflow.get_offer_or_404(db, offer_id)
    return workflow.accept_offer(db, queue, current_user, offer, config)


# ---- 3) Desk tools ----

@router.post("/requests/{request_id}/toggle-visibility", response_model=RequestResponse)
def toggle_visibility(request_id: str, db: Session = Depends(get_db), current_user: User = Depends(require_staff)):
    req = workflow.get_request_or_404(db, request_id)
    req.is_hidden = not bool(req.is_hidden)
    db.commit()
    db.refresh(req)
    workflow.log_action(db, current_user, "toggle_visibility", req, is_hidden=req.is_hidden)
    return req


@router.post("/requests/{request_id}/assign-to-me", response_model=RequestResponse)
def assign_to_me(request_id: str, db: Session = Depends(get_db), current_user: User = Depends(require_staff)):
    req = workflow.get_request_or_404(db, request_id)
    req.assigned_to_id = current_user.id
    db.commit()
    db.refresh(req)
    workflow.log_action(db, current_user, "assign_to_me", req)
    return req


@router.post("/requests/{request_id}/notes", response_model=NoteResponse, status_code=201)
def add_note(
    request_id: str, payload: NoteCreate, db: Session = Depends(get_db), current_user: User = Depends(require_staff)
):
    req = workflow.get_request_or_404(db, request_id)
    note = RequestNote(request_id=req.id, author_id=current_user.id, content=payload.content)
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


@router.get("/requests/{request_id}/notes", response_model=List[NoteResponse])
def list_notes(request_id: str, db: Session = Depends(get_db), _: User = Depends(require_staff)):
    req = workflow.get_request_or_404(db, request_id)
    return db.query(RequestNote).filter(RequestNote.request_id == req.id).order_by(RequestNote.created_at.desc()).all()


@router.get("/search-transporters")
def search_transporters(q: str, db: Session = Depends(get_db), current_user: User = Depends(require_staff)):
    pattern = f"%{q.lower()}%"
    rows = (
        db.query(User)
        .filter(
            User.role == Role.TRANSPORTEUR.value,
            or_(func.lower(User.name).like(pattern), User.phone_number.like(f"%{q}%")),
        )
        .order_by(User.name.asc())
        .limit(20)
        .all()
    )
    return [sanitize_user(u, current_user) for u in rows]


@router.get("/transporters-portfolio")
def transporters_portfolio(
    city: Optional[str] = None, db: Session = Depends(get_db), current_user: User = Depends(require_staff)
):
    q = db.query(User).filter(User.role == Role.TRANSPORTEUR.value, User.status == TransporterStatus.VALIDATED.value)
    if city:
        q = q.filter(func.lower(User.city) == city.lower())
    rows = q.order_by(User.rating.desc(), User.total_trips.desc()).all()
    return [sanitize_user(u, current_user) for u in rows]


@router.get("/transporter-references", response_model=List[ReferenceResponse])
def list_references(
    status: Optional[ReferenceStatus] = None, db: Session = Depends(get_db), _: User = Depends(require_staff)
):
    q = db.query(TransporterReference)
    if status:
        q = q.filter(TransporterReference.status == status.value)
    return q.order_by(TransporterReference.created_at.desc()).all()


@router.post("/transporter-references/{reference_id}/validate", response_model=ReferenceResponse)
def decide_reference(
    reference_id: str,
    payload: ReferenceDecision,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    ref = db.query(TransporterReference).filter(TransporterReference.id == reference_id).first()
    if not ref:
        raise HTTPException(status_code=404, detail="Reference not found")
    if payload.approved:
        ref.status = ReferenceStatus.VALIDATED.value
        ref.rejection_reason = None
    else:
        if not payload.rejection_reason:
            raise HTTPException(status_code=400, detail="A rejection reason is required")
        ref.status = ReferenceStatus.REJECTED.value
        ref.rejection_reason = payload.rejection_reason
    ref.validated_by = current_user.id
    ref.validated_at = utcnow()
    db.commit()
    db.refresh(ref)
    workflow.log_action(db, current_user, "review_reference", None, reference_id=ref.id, approved=payload.approved)
    return ref
