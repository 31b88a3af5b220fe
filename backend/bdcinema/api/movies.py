"""
movies.py

Catalog endpoints: listing with Meter stats, admin curation, local title
pages and TMDB-backed title pages.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from bdcinema import crud, models
from bdcinema.core.database import get_db
from bdcinema.schemas import (
    ReviewSchema,
    ReviewWithUserName,
    TitleCreate,
    TitleDelete,
    TitleSchema,
    TitleWithStats,
)
from bdcinema.services import tmdb_client
from bdcinema.services.rating_aggregator import summarize
from bdcinema.api.deps import get_optional_user, require_admin

router = APIRouter()
logger = logging.getLogger(__name__)

CAST_LIMIT = 12
CREW_JOBS = ("Director", "Screenplay", "Writer", "Producer")


def _local_context(db: Session, title: models.Title, viewer: Optional[models.User]) -> Dict[str, Any]:
    reviews = crud.get_reviews_for_title(db, title.id)
    context = {
        "title": TitleSchema.model_validate(title),
        "reviews": [ReviewWithUserName.model_validate(r) for r in reviews],
        "summary": summarize(reviews),
        "viewer": None,
    }
    if viewer is not None:
        own = crud.get_review_by_user_and_title(db, viewer.id, title.id)
        context["viewer"] = {
            "review": ReviewSchema.model_validate(own) if own else None,
            "in_watchlist": crud.is_in_watchlist(db, viewer.id, title.id),
            "watched": crud.is_watched(db, viewer.id, title.id),
        }
    return context


def _credits(details: Dict) -> Dict[str, List[Dict]]:
    credits = details.get("credits") or {}
    cast = [
        {
            "id": c.get("id"),
            "name": c.get("name"),
            "character": c.get("character"),
            "profile_url": tmdb_client.image_url(c.get("profile_path"), "w185"),
        }
        for c in (credits.get("cast") or [])[:CAST_LIMIT]
    ]
    crew = [
        {"id": c.get("id"), "name": c.get("name"), "job": c.get("job")}
        for c in (credits.get("crew") or [])
        if c.get("job") in CREW_JOBS
    ]
    return {"cast": cast, "crew": crew}


@router.get("", response_model=List[TitleWithStats])
def list_titles(db: Session = Depends(get_db)):
    return crud.get_all_titles(db)


@router.post("", status_code=201)
def create_title(payload: TitleCreate, db: Session = Depends(get_db), admin: models.User = Depends(require_admin)):
    values = payload.model_dump()
    values.update(external_id=None, provenance=models.PROVENANCE_CURATED)
    title = crud.create_title(db, values)
    logger.info(f"Admin {admin.id} curated title {title.id}")
    return {"success": True, "id": title.id}


@router.delete("")
def delete_title(payload: TitleDelete, db: Session = Depends(get_db), admin: models.User = Depends(require_admin)):
    if not crud.delete_title(db, payload.id):
        raise HTTPException(status_code=404, detail="Title not found")
    logger.info(f"Admin {admin.id} deleted title {payload.id}")
    return {"success": True}


@router.get("/external/{media_type}/{external_id}")
async def get_external_title(
    media_type: str,
    external_id: int,
    db: Session = Depends(get_db),
    viewer: Optional[models.User] = Depends(get_optional_user),
):
    """TMDB title page; merges in local reviews when the title has been imported."""
    if media_type not in ("movie", "tv", "series"):
        raise HTTPException(status_code=400, detail="Invalid media_type")
    kind = tmdb_client.title_kind(media_type)
    details = await tmdb_client.fetch_details(external_id, kind)

    out: Dict[str, Any] = {
        "details": tmdb_client.normalize(details, kind),
        "media_type": tmdb_client.tmdb_media_type(kind),
        "runtime": details.get("runtime") or (details.get("episode_run_time") or [None])[0],
        "vote_average": details.get("vote_average"),
        "origin_country": details.get("origin_country") or [],
        "credits": _credits(details),
        "local": None,
        "interested": False,
    }
    local = crud.get_title_by_external_id(db, external_id)
    if local is not None:
        out["local"] = _local_context(db, local, viewer)
    if viewer is not None:
        out["interested"] = crud.is_interested(db, viewer.id, external_id)
    return out


@router.get("/{title_id}")
def get_title(
    title_id: int,
    db: Session = Depends(get_db),
    viewer: Optional[models.User] = Depends(get_optional_user),
):
    title = crud.get_title_by_id(db, title_id)
    if title is None:
        raise HTTPException(status_code=404, detail="Title not found")
    return _local_context(db, title, viewer)
