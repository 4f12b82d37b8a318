from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from freightmatch.core.policies import authorize
from freightmatch.core.security import get_current_user
from freightmatch.db.base import get_db, to_naive_utc, utcnow
from freightmatch.db.enums import EmptyReturnStatus, Role
from freightmatch.db.models.empty_return import EmptyReturn
from freightmatch.db.models.user import User
from freightmatch.schemas.misc import EmptyReturnCreate, EmptyReturnResponse

router = APIRouter(prefix="/api/empty-returns", tags=["empty-returns"])


def expire_past_returns(db: Session) -> int:
    """Flip active entries whose date has passed to expired."""
    count = (
        db.query(EmptyReturn)
        .filter(EmptyReturn.status == EmptyReturnStatus.ACTIVE.value, EmptyReturn.return_date < utcnow())
        .update({EmptyReturn.status: EmptyReturnStatus.EXPIRED.value}, synchronize_session=False)
    )
    if count:
        db.commit()
    return count


@router.post("", response_model=EmptyReturnResponse, status_code=status.HTTP_201_CREATED)
def declare_empty_return(
    payload: EmptyReturnCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    authorize(current_user, "empty_return", "create")
    return_date = to_naive_utc(payload.return_date)
    if return_date < utcnow():
        raise HTTPException(status_code=400, detail="Return date must be in the future")
    er = EmptyReturn(
        transporter_id=current_user.id,
        from_city=payload.from_city,
        to_city=payload.to_city,
        return_date=return_date,
        status=EmptyReturnStatus.ACTIVE.value,
    )
    db.add(er)
    db.commit()
    db.refresh(er)
    return er


# Transporters see their own entries; everyone else sees active ones
@router.get("", response_model=List[EmptyReturnResponse])
def list_empty_returns(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    expire_past_returns(db)
    q = db.query(EmptyReturn)
    if current_user.role == Role.TRANSPORTEUR.value:
        q = q.filter(EmptyReturn.transporter_id == current_user.id)
    else:
        q = q.filter(EmptyReturn.status == EmptyReturnStatus.ACTIVE.value)
    return q.order_by(EmptyReturn.return_date.asc()).all()
