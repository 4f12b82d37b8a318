"""Human-readable request references (CMD-YYYY-NNNNN) and share tokens."""

import secrets

from sqlalchemy.orm import Session

from freightmatch.db.base import utcnow
from freightmatch.db.models.transport_request import TransportRequest


def next_reference_id(db: Session) -> str:
    prefix = f"CMD-{utcnow().year}-"
    last = (
        db.query(TransportRequest.reference_id)
        .filter(TransportRequest.reference_id.like(f"{prefix}%"))
        .order_by(TransportRequest.reference_id.desc())
        .first()
    )
    number = int(last[0].rsplit("-", 1)[1]) + 1 if last else 1
    return f"{prefix}{number:05d}"


def new_share_token() -> str:
    return secrets.token_urlsafe(16)
