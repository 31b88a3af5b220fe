"""
catalog_sync.py

Pulls TMDB data into the local catalog: bulk sync of a curated region and
on-demand import of a single title (used when a user reviews a title that
only exists upstream).
"""
import asyncio
import logging
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bdcinema import crud, models
from bdcinema.core.config import settings
from bdcinema.exceptions import CatalogError
from bdcinema.services import tmdb_client

logger = logging.getLogger(__name__)


async def import_external_title(db: Session, external_id: int, kind: str = "movie") -> models.Title:
    """
    Local title for a TMDB id, importing it first when missing.
    UpstreamUnavailableError propagates; there is no local fallback.
    """
    existing = crud.get_title_by_external_id(db, external_id)
    if existing is not None:
        return existing
    details = await tmdb_client.fetch_details(external_id, kind)
    values = tmdb_client.normalize(details, tmdb_client.title_kind(kind))
    values["external_id"] = details.get("id") or external_id
    logger.info(f"Auto-importing TMDB {tmdb_client.tmdb_media_type(kind)}/{external_id}")
    return crud.upsert_title_by_external_id(db, values)


async def sync_curated_region(db: Session, region: Optional[str] = None) -> Dict[str, int]:
    """
    Upsert the region's popular movies and series by external id.

    Best effort: a failing row is logged and skipped, nothing is rolled back
    beyond that row. `synced` counts the rows attempted.
    """
    region = (region or settings.sync_region).upper()
    movies, series = await asyncio.gather(
        tmdb_client.discover_region("movie", region),
        tmdb_client.discover_region("series", region),
    )
    movie_genres, tv_genres = await asyncio.gather(
        tmdb_client.get_genres("movie"),
        tmdb_client.get_genres("tv"),
    )

    synced = 0
    for kind, results, genre_map in (("movie", movies, movie_genres), ("series", series, tv_genres)):
        for result in results:
            if result.get("id") is None:
                continue
            values = tmdb_client.normalize(result, kind, genre_map)
            try:
                crud.upsert_title_by_external_id(db, values)
            except (CatalogError, SQLAlchemyError) as e:
                db.rollback()
                logger.warning(f"Skipping TMDB {kind} {result.get('id')} during sync: {e}")
            synced += 1

    logger.info(f"Synced {synced} titles for region {region} ({len(movies)} movies, {len(series)} series)")
    return {"synced": synced, "movies": len(movies), "series": len(series)}
