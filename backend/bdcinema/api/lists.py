"""
lists.py

Per-user toggles: watchlist and watched (local titles), interested (TMDB ids).
POST flips membership and returns the new state; GET reports it.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from bdcinema import crud, models
from bdcinema.core.database import get_db
from bdcinema.schemas import ExternalRef, InterestedSchema, ListEntrySchema, TitleRef
from bdcinema.api.deps import get_current_user, get_optional_user

logger = logging.getLogger(__name__)

watchlist_router = APIRouter()
watched_router = APIRouter()
interested_router = APIRouter()


def _require_title(db: Session, title_id: int) -> models.Title:
    title = crud.get_title_by_id(db, title_id)
    if title is None:
        raise HTTPException(status_code=404, detail="Title not found")
    return title


@watchlist_router.post("")
def toggle_watchlist(payload: TitleRef, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    _require_title(db, payload.movie_id)
    state = crud.toggle_watchlist(db, user.id, payload.movie_id)
    return {"success": True, "in_watchlist": state}


@watchlist_router.get("")
def watchlist_status(
    movie_id: int = Query(0, alias="movieId"),
    db: Session = Depends(get_db),
    user: Optional[models.User] = Depends(get_optional_user),
):
    if user is None or not movie_id:
        return {"in_watchlist": False}
    return {"in_watchlist": crud.is_in_watchlist(db, user.id, movie_id)}


@watchlist_router.get("/mine", response_model=List[ListEntrySchema])
def my_watchlist(db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return crud.get_user_watchlist(db, user.id)


@watched_router.post("")
def toggle_watched(payload: TitleRef, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    _require_title(db, payload.movie_id)
    return {"watched": crud.toggle_watched(db, user.id, payload.movie_id)}


@watched_router.get("")
def watched_status(
    movie_id: int = Query(0, alias="movieId"),
    db: Session = Depends(get_db),
    user: Optional[models.User] = Depends(get_optional_user),
):
    if user is None or not movie_id:
        return {"watched": False}
    return {"watched": crud.is_watched(db, user.id, movie_id)}


@watched_router.get("/mine", response_model=List[ListEntrySchema])
def my_watched(db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return crud.get_user_watched(db, user.id)


@interested_router.post("")
def toggle_interested(payload: ExternalRef, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return {"interested": crud.toggle_interested(db, user.id, payload.tmdb_id, payload.media_type)}


@interested_router.get("")
def interested_status(
    tmdb_id: int = Query(0, alias="tmdbId"),
    db: Session = Depends(get_db),
    user: Optional[models.User] = Depends(get_optional_user),
):
    if user is None or not tmdb_id:
        return {"interested": False}
    return {"interested": crud.is_interested(db, user.id, tmdb_id)}


@interested_router.get("/mine", response_model=List[InterestedSchema])
def my_interested(db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return crud.get_user_interested(db, user.id)
