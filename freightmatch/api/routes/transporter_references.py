from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from freightmatch.core.policies import authorize
from freightmatch.core.security import get_current_user, require_transporter
from freightmatch.db.base import get_db
from freightmatch.db.enums import ReferenceStatus
from freightmatch.db.models.transporter_reference import TransporterReference
from freightmatch.db.models.user import User
from freightmatch.schemas.misc import ReferenceCreate, ReferenceResponse

router = APIRouter(prefix="/api/transporter-references", tags=["transporter-references"])


@router.post("", response_model=ReferenceResponse, status_code=status.HTTP_201_CREATED)
def submit_reference(payload: ReferenceCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    authorize(current_user, "reference", "create")
    existing = db.query(TransporterReference).filter(TransporterReference.transporter_id == current_user.id).first()
    if existing and existing.status != ReferenceStatus.REJECTED.value:
        raise HTTPException(status_code=409, detail="A reference has already been submitted")

    if existing:
        # rejected: resubmission replaces it
        ref = existing
        ref.status = ReferenceStatus.PENDING.value
        ref.rejection_reason = None
        ref.validated_by = None
        ref.validated_at = None
    else:
        ref = TransporterReference(transporter_id=current_user.id)
        db.add(ref)
    ref.reference_name = payload.reference_name
    ref.reference_phone = payload.reference_phone
    ref.reference_relation = payload.reference_relation
    db.commit()
    db.refresh(ref)
    return ref


@router.get("/me", response_model=ReferenceResponse)
def my_reference(db: Session = Depends(get_db), current_user: User = Depends(require_transporter)):
    ref = db.query(TransporterReference).filter(TransporterReference.transporter_id == current_user.id).first()
    if not ref:
        raise HTTPException(status_code=404, detail="No reference submitted")
    return ref
