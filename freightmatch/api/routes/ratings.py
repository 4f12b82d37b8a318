from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from freightmatch.db.base import get_db
from freightmatch.db.models.rating import Rating
from freightmatch.schemas.misc import RatingResponse

router = APIRouter(prefix="/api/ratings", tags=["ratings"])


# List ratings for a transporter (public)
@router.get("/transporter/{transporter_id}", response_model=List[RatingResponse])
def list_transporter_ratings(transporter_id: str, db: Session = Depends(get_db)):
    return db.query(Rating).filter(Rating.transporter_id == transporter_id).order_by(Rating.created_at.desc()).all()
