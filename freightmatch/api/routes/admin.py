from decimal import Decimal
from typing import List, Optional
import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from freightmatch.core.security import hash_password, require_admin
from freightmatch.db.base import get_db
from freightmatch.db.enums import (
    AccountStatus,
    CoordinationStatus,
    NotificationType,
    RequestStatus,
    Role,
    SmsAudience,
    TransporterStatus,
)
from freightmatch.db.models.chat_message import ChatMessage
from freightmatch.db.models.city import City
from freightmatch.db.models.coordination import CoordinationStatusConfig, CoordinatorLog
from freightmatch.db.models.offer import Contract, Offer, TransporterInterest
from freightmatch.db.models.rating import Rating
from freightmatch.db.models.report import Report
from freightmatch.db.models.sms_history import SmsHistory
from freightmatch.db.models.story import Story
from freightmatch.db.models.transport_request import TransportRequest
from freightmatch.db.models.transporter_reference import TransporterReference
from freightmatch.db.models.user import User
from freightmatch.notifications.dispatcher import OutboundQueue, get_outbound_queue
from freightmatch.notifications.service import notify, send_bulk_sms
from freightmatch.schemas.admin import (
    AdminSettingsResponse,
    AdminSettingsUpdate,
    ConsistencyReport,
    CoordinationStatusConfigCreate,
    CoordinationStatusConfigResponse,
    CoordinationStatusConfigUpdate,
    CoordinatorCreate,
    ReportUpdate,
    SmsHistoryResponse,
    SmsSendRequest,
    StatsResponse,
    ValidateDriverRequest,
)
from freightmatch.schemas.common import SuccessResponse
from freightmatch.schemas.coordinator import CoordinatorLogResponse
from freightmatch.schemas.misc import (
    CityCreate,
    CityResponse,
    CityUpdate,
    ReportResponse,
    StoryCreate,
    StoryResponse,
    StoryUpdate,
)
from freightmatch.schemas.offer import ContractResponse
from freightmatch.schemas.user import UserResponse
from freightmatch.services import workflow
from freightmatch.services.consistency import find_inconsistent, repair_inconsistent
from freightmatch.services.pricing import (
    PricingConfig,
    commission_amount,
    get_admin_settings,
    get_pricing_config,
    to_decimal,
)
from freightmatch.services.users import create_user, sanitize_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _get_user_or_404(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ---- 1) Settings & stats ----

@router.get("/settings", response_model=AdminSettingsResponse)
def get_settings(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return get_admin_settings(db)


@router.patch("/settings", response_model=AdminSettingsResponse)
def update_settings(payload: AdminSettingsUpdate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    row = get_admin_settings(db)
    row.commission_percentage = payload.commission_percentage
    db.commit()
    db.refresh(row)
    logger.info("Commission set to %s%%", row.commission_percentage)
    return row


@router.get("/stats", response_model=StatsResponse)
def stats(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    config: PricingConfig = Depends(get_pricing_config),
):
    def count_requests(*statuses):
        return db.query(func.count(TransportRequest.id)).filter(TransportRequest.status.in_(statuses)).scalar()

    total_commissions = Decimal("0")
    for contract in db.query(Contract).all():
        if contract.offer_id:
            total_commissions += commission_amount(contract.amount, config)
    fees = (
        db.query(func.sum(TransportRequest.platform_fee))
        .filter(
            TransportRequest.assigned_transporter_id.isnot(None),
            TransportRequest.status.in_([RequestStatus.ACCEPTED.value, RequestStatus.COMPLETED.value]),
        )
        .scalar()
    )
    total_commissions += to_decimal(fees or 0)

    return StatsResponse(
        total_clients=db.query(func.count(User.id)).filter(User.role == Role.CLIENT.value).scalar(),
        total_transporters=db.query(func.count(User.id)).filter(User.role == Role.TRANSPORTEUR.value).scalar(),
        pending_drivers=db.query(func.count(User.id))
        .filter(User.role == Role.TRANSPORTEUR.value, User.status == TransporterStatus.PENDING.value)
        .scalar(),
        total_requests=db.query(func.count(TransportRequest.id)).scalar(),
        open_requests=count_requests(RequestStatus.OPEN.value, RequestStatus.PUBLISHED_FOR_MATCHING.value),
        accepted_requests=count_requests(RequestStatus.ACCEPTED.value),
        completed_requests=count_requests(RequestStatus.COMPLETED.value),
        total_offers=db.query(func.count(Offer.id)).scalar(),
        commission_percentage=config.commission_rate,
        total_commissions=total_commissions,
    )


# ---- 2) Transporter validation ----

@router.get("/pending-drivers", response_model=List[UserResponse])
def pending_drivers(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    rows = (
        db.query(User)
        .filter(User.role == Role.TRANSPORTEUR.value, User.status == TransporterStatus.PENDING.value)
        .order_by(User.created_at.asc())
        .all()
    )
    return [sanitize_user(u, admin) for u in rows]


@router.post("/validate-driver/{user_id}", response_model=UserResponse)
def validate_driver(
    user_id: str,
    payload: ValidateDriverRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    driver = _get_user_or_404(db, user_id)
    if driver.role != Role.TRANSPORTEUR.value:
        raise HTTPException(status_code=400, detail="User is not a transporter")

    if payload.approved:
        driver.status = TransporterStatus.VALIDATED.value
        db.commit()
        notify(
            db, queue, driver, NotificationType.ACCOUNT_VALIDATED,
            "Account validated",
            "Your transporter account has been validated. You can now receive missions.",
            sms="Your transporter account has been validated. You can now receive missions.",
        )
    else:
        driver.status = TransporterStatus.REJECTED.value
        db.commit()
        notify(
            db, queue, driver, NotificationType.ACCOUNT_REJECTED,
            "Account rejected",
            "Your transporter account was not validated. Contact support for details.",
        )
    db.refresh(driver)
    return sanitize_user(driver, admin)


# ---- 3) Users ----

@router.get("/users", response_model=List[UserResponse])
def list_users(role: Optional[str] = None, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    q = db.query(User)
    if role:
        q = q.filter(User.role == role)
    return [sanitize_user(u, admin) for u in q.order_by(User.created_at.desc()).all()]


@router.post("/users/{user_id}/block", response_model=UserResponse)
def block_user(user_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    user = _get_user_or_404(db, user_id)
    if user.id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot block yourself")
    user.account_status = AccountStatus.BLOCKED.value
    db.commit()
    db.refresh(user)
    logger.info("User %s blocked", user.id)
    return sanitize_user(user, admin)


@router.post("/users/{user_id}/unblock", response_model=UserResponse)
def unblock_user(user_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    user = _get_user_or_404(db, user_id)
    user.account_status = AccountStatus.ACTIVE.value
    db.commit()
    db.refresh(user)
    return sanitize_user(user, admin)


@router.delete("/users/{user_id}", response_model=SuccessResponse)
def delete_user(user_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    user = _get_user_or_404(db, user_id)
    if user.id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete yourself")

    # rows without an ORM cascade from User
    request_ids = [r for (r,) in db.query(TransportRequest.id).filter(TransportRequest.client_id == user.id).all()]
    for model, columns in (
        (Rating, (Rating.transporter_id, Rating.client_id)),
        (Contract, (Contract.transporter_id, Contract.client_id)),
        (ChatMessage, (ChatMessage.sender_id, ChatMessage.receiver_id)),
        (Report, (Report.reporter_id, Report.reported_user_id)),
        (Offer, (Offer.transporter_id,)),
        (TransporterInterest, (TransporterInterest.transporter_id,)),
    ):
        for column in columns:
            db.query(model).filter(column == user.id).delete(synchronize_session=False)
    workflow.delete_requests(db, request_ids)
    db.query(TransporterReference).filter(TransporterReference.transporter_id == user.id).delete(synchronize_session=False)
    db.query(CoordinatorLog).filter(CoordinatorLog.coordinator_id == user.id).delete(synchronize_session=False)
    db.query(SmsHistory).filter(SmsHistory.admin_id == user.id).delete(synchronize_session=False)
    db.query(TransportRequest).filter(TransportRequest.assigned_transporter_id == user.id).update(
        {TransportRequest.assigned_transporter_id: None}, synchronize_session=False
    )

    db.delete(user)
    db.commit()
    logger.info("User %s deleted", user_id)
    return SuccessResponse(message="User deleted")


# ---- 4) Coordinators ----

@router.get("/coordinators", response_model=List[UserResponse])
def list_coordinators(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    rows = db.query(User).filter(User.role == Role.COORDINATEUR.value).order_by(User.created_at.desc()).all()
    return [sanitize_user(u, admin) for u in rows]


@router.post("/coordinators", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_coordinator(payload: CoordinatorCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    if db.query(User.id).filter(User.phone_number == payload.phone_number).first():
        raise HTTPException(status_code=409, detail="Phone number already registered")
    user = create_user(db, payload.phone_number, payload.pin, role=Role.COORDINATEUR.value, name=payload.name)
    return sanitize_user(user, admin)


@router.post("/coordinators/{user_id}/reset-pin")
def reset_coordinator_pin(user_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    user = _get_user_or_404(db, user_id)
    if user.role != Role.COORDINATEUR.value:
        raise HTTPException(status_code=400, detail="User is not a coordinator")
    pin = f"{secrets.randbelow(10**6):06d}"
    user.password_hash = hash_password(pin)
    db.commit()
    return {"success": True, "pin": pin}


@router.post("/coordinators/{user_id}/toggle-status", response_model=UserResponse)
def toggle_coordinator(user_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    user = _get_user_or_404(db, user_id)
    if user.role != Role.COORDINATEUR.value:
        raise HTTPException(status_code=400, detail="User is not a coordinator")
    user.account_status = (
        AccountStatus.ACTIVE.value if user.account_status == AccountStatus.BLOCKED.value else AccountStatus.BLOCKED.value
    )
    db.commit()
    db.refresh(user)
    return sanitize_user(user, admin)


@router.get("/coordinator-activity", response_model=List[CoordinatorLogResponse])
def coordinator_activity(
    coordinator_id: Optional[str] = None,
    limit: int = 100,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    q = db.query(CoordinatorLog)
    if coordinator_id:
        q = q.filter(CoordinatorLog.coordinator_id == coordinator_id)
    return q.order_by(CoordinatorLog.created_at.desc()).limit(min(limit, 500)).all()


# ---- 5) Coordination status taxonomy ----

@router.get("/coordination-statuses", response_model=List[CoordinationStatusConfigResponse])
def list_coordination_statuses(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return (
        db.query(CoordinationStatusConfig)
        .order_by(CoordinationStatusConfig.category.asc(), CoordinationStatusConfig.display_order.asc())
        .all()
    )


@router.post("/coordination-statuses", response_model=CoordinationStatusConfigResponse, status_code=201)
def create_coordination_status(
    payload: CoordinationStatusConfigCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)
):
    if payload.value in {c.value for c in CoordinationStatus}:
        raise HTTPException(status_code=409, detail="Value is reserved by a built-in status")
    if db.query(CoordinationStatusConfig.id).filter(CoordinationStatusConfig.value == payload.value).first():
        raise HTTPException(status_code=409, detail="Coordination status already exists")
    row = CoordinationStatusConfig(
        label=payload.label,
        value=payload.value,
        category=payload.category.value,
        color=payload.color,
        display_order=payload.display_order,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.patch("/coordination-statuses/{status_id}", response_model=CoordinationStatusConfigResponse)
def update_coordination_status_config(
    status_id: str,
    payload: CoordinationStatusConfigUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    row = db.query(CoordinationStatusConfig).filter(CoordinationStatusConfig.id == status_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Coordination status not found")
    data = payload.model_dump(exclude_unset=True)
    if data.get("category") is not None:
        data["category"] = data["category"].value
    for k, v in data.items():
        setattr(row, k, v)
    db.commit()
    db.refresh(row)
    return row


@router.delete("/coordination-statuses/{status_id}", response_model=SuccessResponse)
def delete_coordination_status_config(status_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    row = db.query(CoordinationStatusConfig).filter(CoordinationStatusConfig.id == status_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Coordination status not found")
    in_use = db.query(func.count(TransportRequest.id)).filter(TransportRequest.coordination_status == row.value).scalar()
    if in_use:
        raise HTTPException(status_code=409, detail=f"Status is used by {in_use} request(s)")
    db.delete(row)
    db.commit()
    return SuccessResponse()


@router.get("/coordination-status-usage")
def coordination_status_usage(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    rows = (
        db.query(TransportRequest.coordination_status, func.count(TransportRequest.id))
        .group_by(TransportRequest.coordination_status)
        .all()
    )
    return {value: count for value, count in rows}


# ---- 6) SMS campaigns ----

AUDIENCE_ROLES = {
    SmsAudience.TRANSPORTERS: [Role.TRANSPORTEUR.value],
    SmsAudience.CLIENTS: [Role.CLIENT.value],
    SmsAudience.BOTH: [Role.TRANSPORTEUR.value, Role.CLIENT.value],
}


@router.post("/sms/send", response_model=SmsHistoryResponse, status_code=201)
def send_sms(
    payload: SmsSendRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    phones = [
        p for (p,) in db.query(User.phone_number)
        .filter(User.role.in_(AUDIENCE_ROLES[payload.target_audience]), User.account_status == AccountStatus.ACTIVE.value)
        .all()
    ]
    if not phones:
        raise HTTPException(status_code=400, detail="No recipients for this audience")

    send_bulk_sms(queue, phones, payload.message)
    row = SmsHistory(
        admin_id=admin.id,
        target_audience=payload.target_audience.value,
        message=payload.message,
        recipient_count=len(phones),
        status="queued",
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.get("/sms/history", response_model=List[SmsHistoryResponse])
def sms_history(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return db.query(SmsHistory).order_by(SmsHistory.created_at.desc()).all()


@router.delete("/sms/history/{history_id}", response_model=SuccessResponse)
def delete_sms_history(history_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    row = db.query(SmsHistory).filter(SmsHistory.id == history_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="SMS history entry not found")
    db.delete(row)
    db.commit()
    return SuccessResponse()


# ---- 7) Reports, stories, cities, contracts ----

@router.get("/reports", response_model=List[ReportResponse])
def list_reports(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    q = db.query(Report)
    if status_filter:
        q = q.filter(Report.status == status_filter)
    return q.order_by(Report.created_at.desc()).all()


@router.patch("/reports/{report_id}", response_model=ReportResponse)
def update_report(
    report_id: str, payload: ReportUpdate, db: Session = Depends(get_db), admin: User = Depends(require_admin)
):
    report = db.query(Report).filter(Report.id == report_id).first()
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    report.status = payload.status.value
    if payload.admin_notes is not None:
        report.admin_notes = payload.admin_notes
    db.commit()
    db.refresh(report)
    return report


@router.get("/stories", response_model=List[StoryResponse])
def list_stories(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return db.query(Story).order_by(Story.order.asc(), Story.created_at.desc()).all()


@router.post("/stories", response_model=StoryResponse, status_code=201)
def create_story(payload: StoryCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    data = payload.model_dump()
    data["role"] = payload.role.value
    story = Story(**data)
    db.add(story)
    db.commit()
    db.refresh(story)
    return story


@router.patch("/stories/{story_id}", response_model=StoryResponse)
def update_story(story_id: str, payload: StoryUpdate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    story = db.query(Story).filter(Story.id == story_id).first()
    if not story:
        raise HTTPException(status_code=404, detail="Story not found")
    data = payload.model_dump(exclude_unset=True)
    if data.get("role") is not None:
        data["role"] = data["role"].value
    for k, v in data.items():
        setattr(story, k, v)
    db.commit()
    db.refresh(story)
    return story


@router.delete("/stories/{story_id}", response_model=SuccessResponse)
def delete_story(story_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    story = db.query(Story).filter(Story.id == story_id).first()
    if not story:
        raise HTTPException(status_code=404, detail="Story not found")
    db.delete(story)
    db.commit()
    return SuccessResponse()


# All cities, inactive included; /api/cities only lists active ones
@router.get("/cities", response_model=List[CityResponse])
def list_all_cities(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return db.query(City).order_by(City.name.asc()).all()


@router.post("/cities", response_model=CityResponse, status_code=201)
def create_city(payload: CityCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    if db.query(City.id).filter(func.lower(City.name) == payload.name.lower()).first():
        raise HTTPException(status_code=409, detail="City already exists")
    city = City(name=payload.name)
    db.add(city)
    db.commit()
    db.refresh(city)
    return city


@router.patch("/cities/{city_id}", response_model=CityResponse)
def update_city(city_id: str, payload: CityUpdate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    city = db.query(City).filter(City.id == city_id).first()
    if not city:
        raise HTTPException(status_code=404, detail="City not found")
    for k, v in payload.model_dump(exclude_unset=True).items():
        setattr(city, k, v)
    db.commit()
    db.refresh(city)
    return city


@router.delete("/cities/{city_id}", response_model=SuccessResponse)
def delete_city(city_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    city = db.query(City).filter(City.id == city_id).first()
    if not city:
        raise HTTPException(status_code=404, detail="City not found")
    db.delete(city)
    db.commit()
    return SuccessResponse()


@router.get("/contracts", response_model=List[ContractResponse])
def list_contracts(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return db.query(Contract).order_by(Contract.created_at.desc()).all()


# ---- 8) Consistency ----

@router.get("/consistency-check", response_model=ConsistencyReport)
def consistency_check(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    checked, bad = find_inconsistent(db)
    return ConsistencyReport(
        checked=checked,
        inconsistent=[
            {
                "id": r.id,
                "reference_id": r.reference_id,
                "status": r.status,
                "coordination_status": r.coordination_status,
                "expected_coordination_status": expected,
            }
            for r, expected in bad
        ],
    )


@router.post("/consistency-check/repair", response_model=ConsistencyReport)
def consistency_repair(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    checked, bad = repair_inconsistent(db)
    return ConsistencyReport(
        checked=checked,
        inconsistent=[
            {
                "id": r.id,
                "reference_id": r.reference_id,
                "status": r.status,
                "coordination_status": r.coordination_status,
                "expected_coordination_status": expected,
            }
            for r, expected in bad
        ],
        repaired=len(bad),
    )
