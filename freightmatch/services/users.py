"""User presentation helpers and account bootstrap."""

from sqlalchemy.orm import Session

from freightmatch.core.config import settings
from freightmatch.core.security import hash_password
from freightmatch.db.enums import AccountStatus, Role
from freightmatch.db.models.user import User
from freightmatch.schemas.user import UserResponse
from freightmatch.services.phone import mask_phone_number


def sanitize_user(user: User, viewer: User | None = None) -> UserResponse:
    """Public view of a user; the phone number is masked unless the viewer is the user or an admin."""
    data = UserResponse.model_validate(user)
    full_access = viewer is not None and (viewer.id == user.id or viewer.role == Role.ADMIN.value)
    if not full_access:
        data.phone_number = mask_phone_number(user.phone_number)
    return data


def role_for_new_phone(phone_number: str) -> str | None:
    """Bootstrap rule: numbers containing the admin marker register as admin."""
    if settings.ADMIN_PHONE_MARKER and settings.ADMIN_PHONE_MARKER in phone_number:
        return Role.ADMIN.value
    return None


def create_user(db: Session, phone_number: str, pin: str, role: str | None = None, name: str | None = None) -> User:
    user = User(
        phone_number=phone_number,
        password_hash=hash_password(pin),
        role=role,
        name=name,
        account_status=AccountStatus.ACTIVE.value,
        rating=0,
        total_ratings=0,
        total_trips=0,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
