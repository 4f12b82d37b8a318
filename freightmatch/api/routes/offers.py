from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from freightmatch.core.policies import authorize
from freightmatch.core.security import get_current_user, require_transporter
from freightmatch.db.base import get_db
from freightmatch.db.enums import Role
from freightmatch.db.models.offer import Offer
from freightmatch.db.models.user import User
from freightmatch.notifications.dispatcher import OutboundQueue, get_outbound_queue
from freightmatch.schemas.offer import AcceptOfferResponse, OfferCreate, OfferResponse
from freightmatch.services import workflow
from freightmatch.services.pricing import PricingConfig, client_amount, get_pricing_config

router = APIRouter(prefix="/api/offers", tags=["offers"])


def _with_client_amount(offer: Offer, config: PricingConfig) -> OfferResponse:
    out = OfferResponse.model_validate(offer)
    out.client_amount = client_amount(offer.amount, config)
    return out


# Transporter submits an offer
@router.post("", response_model=OfferResponse, status_code=status.HTTP_201_CREATED)
def create_offer(
    payload: OfferCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    queue: OutboundQueue = Depends(get_outbound_queue),
    config: PricingConfig = Depends(get_pricing_config),
):
    authorize(current_user, "offer", "create")
    req = workflow.get_request_or_404(db, payload.request_id)
    return workflow.create_offer(db, queue, current_user, req, payload, config)


# Offers on a request: the owner and staff see client prices, transporters only their own offer
@router.get("", response_model=List[OfferResponse])
def list_offers(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    config: PricingConfig = Depends(get_pricing_config),
):
    req = workflow.get_request_or_404(db, request_id)
    authorize(current_user, "offer", "list", req)

    q = db.query(Offer).filter(Offer.request_id == req.id)
    if current_user.role == Role.TRANSPORTEUR.value:
        return q.filter(Offer.transporter_id == current_user.id).all()
    return [_with_client_amount(o, config) for o in q.order_by(Offer.created_at.asc()).all()]


@router.get("/mine", response_model=List[OfferResponse])
def my_offers(db: Session = Depends(get_db), current_user: User = Depends(require_transporter)):
    return db.query(Offer).filter(Offer.transporter_id == current_user.id).order_by(Offer.created_at.desc()).all()


@router.post("/{offer_id}/accept", response_model=AcceptOfferResponse)
def accept_offer(
    offer_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    queue: OutboundQueue = Depends(get_outbound_queue),
    config: PricingConfig = Depends(get_pricing_config),
):
    offer = workflow.get_offer_or_404(db, offer_id)
    authorize(current_user, "offer", "accept", offer)
    return workflow.accept_offer(db, queue, current_user, offer, config)
