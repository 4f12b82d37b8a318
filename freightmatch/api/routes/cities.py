from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from freightmatch.db.base import get_db
from freightmatch.db.models.city import City
from freightmatch.schemas.misc import CityResponse

router = APIRouter(prefix="/api/cities", tags=["cities"])


# Active cities (public, used by the request form)
@router.get("", response_model=List[CityResponse])
def list_cities(db: Session = Depends(get_db)):
    return db.query(City).filter(City.is_active == True).order_by(City.name.asc()).all()  # noqa: E712
