import json
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from freightmatch.core.policies import authorize
from freightmatch.core.security import get_current_user
from freightmatch.core.websocket import manager
from freightmatch.db.base import get_db
from freightmatch.db.enums import STAFF_ROLES, MessageType, NotificationType
from freightmatch.db.models.chat_message import ChatMessage
from freightmatch.db.models.user import User
from freightmatch.notifications.dispatcher import OutboundQueue, get_outbound_queue
from freightmatch.notifications.service import notify
from freightmatch.schemas.common import SuccessResponse
from freightmatch.schemas.misc import ChatMessageCreate, ChatMessageResponse, MarkReadRequest
from freightmatch.services.chat import filter_message
from freightmatch.services.workflow import get_request_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])
ws_router = APIRouter(tags=["chat"])


def _visible(message: ChatMessage, viewer: User) -> ChatMessageResponse:
    out = ChatMessageResponse.model_validate(message)
    if viewer.role not in STAFF_ROLES:
        # parties only ever see the masked text
        out.message = message.filtered_message
    return out


@router.post("/messages", response_model=ChatMessageResponse, status_code=status.HTTP_201_CREATED)
def send_message(
    payload: ChatMessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    queue: OutboundQueue = Depends(get_outbound_queue),
):
    req = get_request_or_404(db, payload.request_id)
    authorize(current_user, "chat", "send", req)

    if payload.message_type == MessageType.TEXT and not (payload.message or "").strip():
        raise HTTPException(status_code=400, detail="Message is empty")
    if payload.message_type != MessageType.TEXT and not payload.file_url:
        raise HTTPException(status_code=400, detail="file_url is required for media messages")
    if payload.receiver_id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot message yourself")

    receiver = db.query(User).filter(User.id == payload.receiver_id).first()
    if not receiver:
        raise HTTPException(status_code=404, detail="Receiver not found")

    msg = ChatMessage(
        request_id=req.id,
        sender_id=current_user.id,
        receiver_id=receiver.id,
        message=payload.message,
        filtered_message=filter_message(payload.message),
        message_type=payload.message_type.value,
        file_url=payload.file_url,
        file_name=payload.file_name,
        file_size=payload.file_size,
        sender_type=current_user.role,
    )
    db.add(msg)
    db.commit()
    db.refresh(msg)

    preview = msg.filtered_message or "Media message"
    notify(
        db, queue, receiver, NotificationType.MESSAGE_RECEIVED,
        "New message", preview[:120], req.id,
    )
    return _visible(msg, current_user)


@router.get("/messages", response_model=List[ChatMessageResponse])
def list_messages(request_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    req = get_request_or_404(db, request_id)
    authorize(current_user, "chat", "read", req)

    q = db.query(ChatMessage).filter(ChatMessage.request_id == req.id)
    if current_user.role not in STAFF_ROLES:
        q = q.filter(or_(ChatMessage.sender_id == current_user.id, ChatMessage.receiver_id == current_user.id))
    return [_visible(m, current_user) for m in q.order_by(ChatMessage.created_at.asc()).all()]


# One entry per (request, counterpart), latest first
@router.get("/conversations")
def list_conversations(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    messages = (
        db.query(ChatMessage)
        .filter(or_(ChatMessage.sender_id == current_user.id, ChatMessage.receiver_id == current_user.id))
        .order_by(ChatMessage.created_at.desc())
        .all()
    )

    conversations = {}
    for m in messages:
        other_id = m.receiver_id if m.sender_id == current_user.id else m.sender_id
        key = (m.request_id, other_id)
        conv = conversations.get(key)
        if conv is None:
            conv = conversations[key] = {
                "request_id": m.request_id,
                "other_user_id": other_id,
                "last_message": m.filtered_message if m.message_type == MessageType.TEXT.value else m.message_type,
                "last_message_at": m.created_at,
                "unread_count": 0,
            }
        if m.receiver_id == current_user.id and not m.is_read:
            conv["unread_count"] += 1

    return list(conversations.values())


@router.post("/mark-read", response_model=SuccessResponse)
def mark_read(payload: MarkReadRequest, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    db.query(ChatMessage).filter(
        ChatMessage.request_id == payload.request_id,
        ChatMessage.receiver_id == current_user.id,
        ChatMessage.is_read == False,  # noqa: E712
    ).update({ChatMessage.is_read: True}, synchronize_session=False)
    db.commit()
    return SuccessResponse()


@router.get("/unread-count")
def unread_count(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    count = (
        db.query(func.count(ChatMessage.id))
        .filter(ChatMessage.receiver_id == current_user.id, ChatMessage.is_read == False)  # noqa: E712
        .scalar()
    )
    return {"count": count}


@ws_router.websocket("/ws-chat")
async def chat_socket(websocket: WebSocket):
    """
    Relay for live chat. Frames with type "chat" are rebroadcast verbatim to
    every open socket; anything else is ignored apart from "ping".
    """
    await manager.connect(websocket)
    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
                continue
            try:
                frame = json.loads(data)
            except json.JSONDecodeError:
                logger.debug("Ignoring non-JSON chat frame")
                continue
            if isinstance(frame, dict) and frame.get("type") == "chat":
                await manager.broadcast(frame)
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(websocket)
