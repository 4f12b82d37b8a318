from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from freightmatch.core.policies import authorize, job_transporter_id
from freightmatch.core.security import get_current_user
from freightmatch.db.base import get_db
from freightmatch.db.enums import ReportStatus, Role
from freightmatch.db.models.report import Report
from freightmatch.db.models.user import User
from freightmatch.schemas.misc import ReportCreate, ReportResponse
from freightmatch.services.workflow import get_request_or_404

router = APIRouter(prefix="/api/reports", tags=["reports"])


# Client or transporter raises a dispute against the other party of a job
@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
def create_report(payload: ReportCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    authorize(current_user, "report", "create")
    req = get_request_or_404(db, payload.request_id)
    transporter_id = job_transporter_id(req)

    if current_user.role == Role.CLIENT.value:
        if req.client_id != current_user.id:
            raise HTTPException(status_code=403, detail="Not your request")
        reported = transporter_id
    else:
        if transporter_id != current_user.id:
            raise HTTPException(status_code=403, detail="You are not the transporter on this request")
        reported = req.client_id

    if not reported:
        raise HTTPException(status_code=400, detail="No counterpart to report on this request")

    report = Report(
        request_id=req.id,
        reporter_id=current_user.id,
        reporter_type=current_user.role,
        reported_user_id=reported,
        reason=payload.reason,
        details=payload.details,
        status=ReportStatus.PENDING.value,
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    return report
