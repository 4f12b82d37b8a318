from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from freightmatch.core.policies import authorize, job_transporter_id
from freightmatch.core.security import get_current_user, require_transporter
from freightmatch.db.base import get_db, utcnow
from freightmatch.db.enums import (
    EmptyReturnStatus,
    PaymentStatus,
    RequestStatus,
    Role,
    TransporterStatus,
)
from freightmatch.db.models.empty_return import EmptyReturn
from freightmatch.db.models.offer import Offer, TransporterInterest
from freightmatch.db.models.transport_request import TransportRequest
from freightmatch.db.models.user import User
from freightmatch.notifications.dispatcher import OutboundQueue, get_outbound_queue
from freightmatch.schemas.common import SuccessResponse
from freightmatch.schemas.offer import InterestedTransporterResponse
from freightmatch.schemas.transport_request import (
    AcceptedTransporterResponse,
    ChooseTransporterRequest,
    CompleteRequest,
    InterestRequest,
    MarkAsPaidRequest,
    PublicRequestResponse,
    RepublishRequest,
    RequestCreate,
    RequestResponse,
)
from freightmatch.services import workflow
from freightmatch.services.pricing import PricingConfig, client_amount, commission_amount, get_pricing_config
from freightmatch.services.users import sanitize_user

router = APIRouter(prefix="/api/requests", tags=["requests"])

STAFF = (Role.COORDINATEUR.value, Role.ADMIN.value)
VISIBLE_TO_TRANSPORTERS = (RequestStatus.OPEN.value, RequestStatus.PUBLISHED_FOR_MATCHING.value)


def _jobs_of(transporter_id: str):
    """Filter clause: requests this transporter is doing (manual assignment or accepted offer)."""
    accepted_offer_ids = select(Offer.id).where(Offer.transporter_id == transporter_id)
    return or_(
        TransportRequest.assigned_transporter_id == transporter_id,
        TransportRequest.accepted_offer_id.in_(accepted_offer_ids),
    )


# Create request (client)
@router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
def create_request(payload: RequestCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    authorize(current_user, "request", "create")
    return workflow.create_request(db, current_user, payload)


# List requests, scoped by role
@router.get("", response_model=List[RequestResponse])
def list_requests(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    city: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = db.query(TransportRequest)

    if current_user.role == Role.CLIENT.value:
        q = q.filter(TransportRequest.client_id == current_user.id)
    elif current_user.role == Role.TRANSPORTEUR.value:
        if current_user.status != TransporterStatus.VALIDATED.value:
            return []
        q = q.filter(
            TransportRequest.status.in_(VISIBLE_TO_TRANSPORTERS),
            or_(TransportRequest.is_hidden == False, TransportRequest.is_hidden.is_(None)),  # noqa: E712
        )
    elif current_user.role not in STAFF:
        raise HTTPException(status_code=403, detail="Select a role first")

    if status_filter:
        q = q.filter(TransportRequest.status == status_filter)
    if city:
        pattern = f"%{city.lower()}%"
        q = q.filter(or_(func.lower(TransportRequest.from_city).like(pattern), func.lower(TransportRequest.to_city).like(pattern)))

    rows = q.order_by(TransportRequest.created_at.desc()).all()
    if current_user.role == Role.TRANSPORTEUR.value:
        rows = [r for r in rows if current_user.id not in (r.declined_by or [])]
    return rows


# Transporter's own jobs
@router.get("/assigned", response_model=List[RequestResponse])
def list_assigned(db: Session = Depends(get_db), current_user: User = Depends(require_transporter)):
    return (
        db.query(TransportRequest)
        .filter(_jobs_of(current_user.id))
        .order_by(TransportRequest.accepted_at.desc())
        .all()
    )


# Transporter paid history
@router.get("/payments", response_model=List[RequestResponse])
def list_payments(db: Session = Depends(get_db), current_user: User = Depends(require_transporter)):
    return (
        db.query(TransportRequest)
        .filter(_jobs_of(current_user.id), TransportRequest.payment_status == PaymentStatus.PAID.value)
        .order_by(TransportRequest.payment_date.desc())
        .all()
    )


# Share link (public)
@router.get("/public/{share_token}", response_model=PublicRequestResponse)
def public_request(share_token: str, db: Session = Depends(get_db)):
    req = db.query(TransportRequest).filter(TransportRequest.share_token == share_token).first()
    if not req:
        raise HTTPException(status_code=404, detail="Request not found")
    return req


@router.get("/{request_id}", response_model=RequestResponse)
def get_request(request_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "view", req)
    if current_user.role == Role.TRANSPORTEUR.value:
        req.view_count = (req.view_count or 0) + 1
        db.commit()
        db.refresh(req)
    return req


@router.delete("/{request_id}", response_model=SuccessResponse)
def delete_request(request_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "delete", req)
    if current_user.role == Role.CLIENT.value and req.status != RequestStatus.OPEN.value:
        raise HTTPException(status_code=400, detail="Only open requests can be deleted")
    workflow.delete_requests(db, [req.id])
    db.commit()
    return SuccessResponse(message="Request deleted")


@router.get("/{request_id}/accepted-transporter", response_model=AcceptedTransporterResponse)
def accepted_transporter(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    config: PricingConfig = Depends(get_pricing_config),
):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "view_accepted", req)

    transporter_id = job_transporter_id(req)
    if not transporter_id:
        raise HTTPException(status_code=404, detail="No transporter accepted yet")
    transporter = db.get(User, transporter_id)

    if req.assigned_transporter_id:
        amount = req.transporter_amount or 0
        commission = req.platform_fee or 0
        total = req.client_total if req.client_total is not None else amount
    else:
        offer = db.get(Offer, req.accepted_offer_id)
        amount = offer.amount
        commission = commission_amount(offer.amount, config)
        total = client_amount(offer.amount, config)

    return AcceptedTransporterResponse(
        transporter_id=transporter.id,
        name=transporter.name,
        phone_number=transporter.phone_number,
        city=transporter.city,
        rating=transporter.rating,
        total_trips=transporter.total_trips,
        amount=amount,
        commission=commission,
        total_amount=total,
    )


@router.post("/{request_id}/republish", response_model=RequestResponse)
def republish(
    request_id: str,
    payload: RepublishRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "republish", req)
    return workflow.republish(db, current_user, req, payload.date_time)


@router.post("/{request_id}/complete", response_model=RequestResponse)
def complete(
    request_id: str,
    payload: CompleteRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "complete", req)
    return workflow.complete_with_rating(db, queue, current_user, req, payload.rating, payload.comment)


# ---- payment ----
# Identities come from the session; body ids are never trusted here.

@router.post("/{request_id}/mark-for-billing", response_model=RequestResponse)
def mark_for_billing(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "mark_for_billing", req)
    return workflow.mark_for_billing(db, queue, current_user, req)


@router.post("/{request_id}/mark-as-paid", response_model=RequestResponse)
def mark_as_paid(
    request_id: str,
    payload: MarkAsPaidRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "mark_as_paid", req)
    return workflow.mark_as_paid(db, queue, current_user, req, payload.payment_receipt)


@router.post("/{request_id}/admin-validate-payment", response_model=RequestResponse)
def admin_validate_payment(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "validate_payment", req)
    return workflow.admin_validate_payment(db, queue, current_user, req)


@router.post("/{request_id}/admin-reject-payment", response_model=RequestResponse)
def admin_reject_payment(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "validate_payment", req)
    return workflow.admin_reject_payment(db, queue, current_user, req)


# ---- matching ----

@router.post("/{request_id}/interest", response_model=RequestResponse)
def express_interest(
    request_id: str,
    payload: Optional[InterestRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "express_interest", req)
    availability = payload.availability_date if payload else None
    return workflow.express_interest(db, queue, current_user, req, availability)


@router.delete("/{request_id}/interest", response_model=RequestResponse)
def withdraw_interest(request_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "express_interest", req)
    return workflow.withdraw_interest(db, current_user, req)


@router.post("/{request_id}/decline", response_model=SuccessResponse)
def decline(request_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "decline", req)
    workflow.decline(db, current_user, req)
    return SuccessResponse()


@router.post("/{request_id}/choose-transporter", response_model=RequestResponse)
def choose_transporter(
    request_id: str,
    payload: ChooseTransporterRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "choose_transporter", req)
    return workflow.choose_transporter(db, queue, current_user, req, payload.transporter_id)


@router.get("/{request_id}/interested-transporters", response_model=List[InterestedTransporterResponse])
def interested_transporters(request_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "view_interests", req)

    ids = list(req.transporter_interests or [])
    if not ids:
        return []
    users = {u.id: u for u in db.query(User).filter(User.id.in_(ids)).all()}
    availability = {
        i.transporter_id: i.availability_date
        for i in db.query(TransporterInterest).filter(TransporterInterest.request_id == req.id).all()
    }
    return [
        {"transporter": sanitize_user(users[tid], current_user), "availability_date": availability.get(tid)}
        for tid in ids
        if tid in users
    ]


@router.get("/{request_id}/recommended-transporters")
def recommended_transporters(request_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Transporters with an active empty return on the same route, best rated first."""
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "request", "view_interests", req)

    rows = (
        db.query(EmptyReturn, User)
        .join(User, User.id == EmptyReturn.transporter_id)
        .filter(
            EmptyReturn.status == EmptyReturnStatus.ACTIVE.value,
            EmptyReturn.return_date >= utcnow(),
            func.lower(EmptyReturn.from_city) == req.from_city.lower(),
            func.lower(EmptyReturn.to_city) == req.to_city.lower(),
            User.status == TransporterStatus.VALIDATED.value,
        )
        .order_by(User.rating.desc())
        .all()
    )
    return [
        {
            "transporter": sanitize_user(user, current_user),
            "empty_return_id": er.id,
            "return_date": er.return_date,
        }
        for er, user in rows
    ]
