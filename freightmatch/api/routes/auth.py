from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
import logging

from freightmatch.core.security import end_session, get_current_user, start_session, verify_password
from freightmatch.core.structured_logging import build_log_context
from freightmatch.db.base import get_db
from freightmatch.db.enums import AccountStatus, Role, TransporterStatus, normalize_role
from freightmatch.db.models.user import User
from freightmatch.notifications.dispatcher import OutboundQueue, get_outbound_queue
from freightmatch.notifications.service import email_admin
from freightmatch.schemas.common import SuccessResponse
from freightmatch.schemas.user import (
    CheckPhoneRequest,
    CompleteProfileRequest,
    LoginRequest,
    RegisterRequest,
    SelectRoleRequest,
)
from freightmatch.services.client_ids import next_client_id
from freightmatch.services.users import create_user, role_for_new_phone, sanitize_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

SELECTABLE_ROLES = {Role.CLIENT.value, Role.TRANSPORTEUR.value}


@router.post("/check-phone")
def check_phone(payload: CheckPhoneRequest, db: Session = Depends(get_db)):
    exists = db.query(User.id).filter(User.phone_number == payload.phone_number).first() is not None
    return {"exists": exists}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    existing = db.query(User).filter(User.phone_number == payload.phone_number).first()
    if existing:
        raise HTTPException(status_code=409, detail="Phone number already registered")

    user = create_user(db, payload.phone_number, payload.pin, role=role_for_new_phone(payload.phone_number))
    start_session(request, user)
    logger.info("User registered", extra=build_log_context(user_id=user.id, route="/api/auth/register"))
    return {"user": sanitize_user(user, user)}


@router.post("/login")
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.phone_number == payload.phone_number).first()
    if not user or not verify_password(payload.pin, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid phone number or PIN")

    if user.account_status == AccountStatus.BLOCKED.value:
        raise HTTPException(status_code=403, detail="Account blocked")

    start_session(request, user)
    logger.info("User logged in", extra=build_log_context(user_id=user.id, route="/api/auth/login"))
    return {"user": sanitize_user(user, user)}


@router.post("/logout", response_model=SuccessResponse)
def logout(request: Request):
    end_session(request)
    return SuccessResponse()


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {"user": sanitize_user(current_user, current_user)}


@router.post("/select-role")
def select_role(
    payload: SelectRoleRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    role = normalize_role(payload.role)
    if role not in SELECTABLE_ROLES:
        raise HTTPException(status_code=400, detail="Role must be client or transporteur")
    if current_user.role:
        raise HTTPException(status_code=400, detail="Role already selected")

    current_user.role = role
    if role == Role.CLIENT.value:
        current_user.client_id = next_client_id(db)
    else:
        current_user.status = TransporterStatus.PENDING.value
    db.commit()
    db.refresh(current_user)

    request.session["role"] = role
    return {"user": sanitize_user(current_user, current_user)}


@router.post("/complete-profile")
def complete_profile(
    payload: CompleteProfileRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    if current_user.role != Role.TRANSPORTEUR.value:
        raise HTTPException(status_code=403, detail="Only transporters complete a profile")

    current_user.name = payload.name
    current_user.city = payload.city
    if payload.truck_photo:
        current_user.truck_photos = [payload.truck_photo]
    current_user.status = TransporterStatus.PENDING.value
    db.commit()
    db.refresh(current_user)

    email_admin(queue, "New transporter to validate", {
        "Name": current_user.name,
        "City": current_user.city,
        "User id": current_user.id,
    })
    return {"user": sanitize_user(current_user, current_user)}
