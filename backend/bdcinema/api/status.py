from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from bdcinema import crud
from bdcinema.core.config import settings
from bdcinema.core.database import get_db, redacted_database_url

router = APIRouter()


@router.get("/db")
def database_status(db: Session = Depends(get_db)):
    """Connection string with the password masked, plus a catalog row count."""
    db.execute(text("SELECT 1"))
    return {
        "database_url": redacted_database_url(),
        "titles": crud.count_titles(db),
        "tmdb_configured": settings.tmdb_enabled,
        "cache_enabled": bool(settings.redis_url),
    }
