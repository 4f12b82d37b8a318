"""
Session authentication and role guards.

Login writes user_id / role / phone_number into the signed session cookie
(Starlette SessionMiddleware). `get_current_user` resolves the user on every
request and stores it on `request.state.user`; `require_roles` reads it back
from there.
"""

import logging

from fastapi import Depends, HTTPException, Request
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from freightmatch.core.config import settings
from freightmatch.db.base import get_db
from freightmatch.db.enums import AccountStatus, Role, normalize_role
from freightmatch.db.models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)


def hash_password(pin: str) -> str:
    return pwd_context.hash(pin)


def verify_password(pin: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(pin, password_hash)
    except ValueError:
        # malformed hash in the row
        return False


def start_session(request: Request, user: User) -> None:
    request.session.clear()
    request.session["user_id"] = user.id
    request.session["role"] = normalize_role(user.role)
    request.session["phone_number"] = user.phone_number


def end_session(request: Request) -> None:
    request.session.clear()


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Resolve the session user.

    Raises:
        HTTPException 401: no session, or the session points at a deleted user
        HTTPException 403: account is blocked
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        request.session.clear()
        raise HTTPException(status_code=401, detail="Session expired")

    if user.account_status == AccountStatus.BLOCKED.value:
        request.session.clear()
        raise HTTPException(status_code=403, detail="Account blocked")

    # rows written before the role rename
    user.role = normalize_role(user.role)
    request.state.user = user
    return user


def require_roles(*allowed_roles: Role):
    """
    Dependency factory for role-based authorization.

    Usage:
        @router.post("/x")
        def x(user: User = Depends(require_roles(Role.ADMIN))): ...

    The returned dependency trusts `request.state.user`, which only
    `get_current_user` populates. If an override or a mis-wired router
    skipped it, the request fails with 500 instead of being let through.
    """
    allowed = {r.value for r in allowed_roles}

    def dependency(request: Request, _: User = Depends(get_current_user)) -> User:
        user = getattr(request.state, "user", None)
        if user is None:
            logger.error("require_roles reached without an authenticated user on %s", request.url.path)
            raise HTTPException(status_code=500, detail="Authorization misconfigured")
        if user.role not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return dependency


require_admin = require_roles(Role.ADMIN)
require_staff = require_roles(Role.COORDINATEUR, Role.ADMIN)
require_client = require_roles(Role.CLIENT)
require_transporter = require_roles(Role.TRANSPORTEUR)
