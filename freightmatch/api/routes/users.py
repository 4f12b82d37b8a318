from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from freightmatch.core.security import get_current_user, hash_password, require_transporter, verify_password
from freightmatch.db.base import get_db
from freightmatch.db.models.user import User
from freightmatch.schemas.common import SuccessResponse
from freightmatch.schemas.user import DeviceTokenUpdate, PinUpdate, ProfileUpdate, RibResponse, RibUpdate, UserResponse
from freightmatch.services.users import sanitize_user

router = APIRouter(prefix="/api/users", tags=["users"])


@router.patch("/me/profile", response_model=UserResponse)
def update_profile(payload: ProfileUpdate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    data = payload.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(current_user, k, v)
    db.commit()
    db.refresh(current_user)
    return sanitize_user(current_user, current_user)


@router.patch("/me/pin", response_model=SuccessResponse)
def update_pin(payload: PinUpdate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    if not verify_password(payload.current_pin, current_user.password_hash):
        raise HTTPException(status_code=400, detail="Current PIN is incorrect")
    current_user.password_hash = hash_password(payload.new_pin)
    db.commit()
    return SuccessResponse(message="PIN updated")


@router.patch("/me/device-token", response_model=SuccessResponse)
def update_device_token(
    payload: DeviceTokenUpdate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    current_user.device_token = payload.device_token
    db.commit()
    return SuccessResponse()


@router.get("/me/rib", response_model=RibResponse)
def get_rib(current_user: User = Depends(require_transporter)):
    return current_user


@router.patch("/me/rib", response_model=RibResponse)
def update_rib(payload: RibUpdate, db: Session = Depends(get_db), current_user: User = Depends(require_transporter)):
    current_user.rib_name = payload.rib_name
    current_user.rib_number = payload.rib_number
    db.commit()
    db.refresh(current_user)
    return current_user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return sanitize_user(user, current_user)
