from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from freightmatch.core.policies import authorize
from freightmatch.core.security import get_current_user
from freightmatch.db.base import get_db
from freightmatch.db.models.notification import Notification
from freightmatch.db.models.user import User
from freightmatch.schemas.common import SuccessResponse
from freightmatch.schemas.misc import NotificationResponse

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationResponse])
def list_notifications(limit: int = 50, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return (
        db.query(Notification)
        .filter(Notification.user_id == current_user.id)
        .order_by(Notification.created_at.desc())
        .limit(min(limit, 200))
        .all()
    )


@router.get("/unread-count")
def unread_count(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    count = (
        db.query(func.count(Notification.id))
        .filter(Notification.user_id == current_user.id, Notification.read == False)  # noqa: E712
        .scalar()
    )
    return {"count": count}


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(notification_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    authorize(current_user, "notification", "edit", notification)
    notification.read = True
    db.commit()
    db.refresh(notification)
    return notification


@router.post("/mark-all-read", response_model=SuccessResponse)
def mark_all_read(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    db.query(Notification).filter(
        Notification.user_id == current_user.id, Notification.read == False  # noqa: E712
    ).update({Notification.read: True}, synchronize_session=False)
    db.commit()
    return SuccessResponse()
