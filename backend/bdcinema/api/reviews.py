"""
reviews.py

Meter review submission and listing. Reviewing a TMDB-only title imports it
into the local catalog first.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from bdcinema import crud, models
from bdcinema.core.database import get_db
from bdcinema.exceptions import UpstreamUnavailableError
from bdcinema.schemas import ReviewCreate, ReviewSchema, ReviewWithTitle, ReviewWithUserName
from bdcinema.services.catalog_sync import import_external_title
from bdcinema.api.deps import get_current_user

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", status_code=201)
async def submit_review(
    payload: ReviewCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    if not payload.movie_id and not payload.tmdb_id:
        raise HTTPException(status_code=400, detail="Movie ID and rating are required.")

    if payload.movie_id:
        title = crud.get_title_by_id(db, payload.movie_id)
        if title is None:
            raise HTTPException(status_code=404, detail="Title not found")
    else:
        try:
            title = await import_external_title(db, payload.tmdb_id, payload.type)
        except UpstreamUnavailableError as e:
            logger.error(f"Failed to import TMDB {payload.type}/{payload.tmdb_id}: {e}")
            raise HTTPException(status_code=502, detail="Failed to sync title data.")

    review = crud.submit_review(db, title.id, user.id, payload.meter_rating, payload.body)
    return {"success": True, "review": ReviewSchema.model_validate(review)}


@router.get("/mine", response_model=List[ReviewWithTitle])
def my_reviews(db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return crud.get_reviews_by_user(db, user.id)


@router.get("/title/{title_id}", response_model=List[ReviewWithUserName])
def reviews_for_title(title_id: int, db: Session = Depends(get_db)):
    return crud.get_reviews_for_title(db, title_id)
