from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from freightmatch.db.base import get_db
from freightmatch.db.enums import StoryAudience
from freightmatch.db.models.story import Story
from freightmatch.schemas.misc import StoryResponse

router = APIRouter(prefix="/api/stories", tags=["stories"])


@router.get("/active", response_model=List[StoryResponse])
def active_stories(role: StoryAudience = StoryAudience.ALL, db: Session = Depends(get_db)):
    audiences = {role.value, StoryAudience.ALL.value}
    return (
        db.query(Story)
        .filter(Story.is_active == True, Story.role.in_(audiences))  # noqa: E712
        .order_by(Story.order.asc())
        .all()
    )
