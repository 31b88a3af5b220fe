"""
legacy_import.py

Moves a JSON-file-store dump (bdcinema-data.json) into the relational store.

Dump layout: {"users": [...], "movies": [...], "reviews": [...],
"watchlists": [...], "_nextId": {...}}. Legacy ids are remapped; titles with a
TMDB id are upserted by it, reviews keep the one-per-user-per-title rule.
"""
import json
import logging
from typing import Dict

from sqlalchemy.orm import Session

from bdcinema import crud, models
from bdcinema.exceptions import CatalogError
from bdcinema.utils.timezone import parse_iso

logger = logging.getLogger(__name__)

_PROVENANCE = {"tmdb": models.PROVENANCE_EXTERNAL, "custom": models.PROVENANCE_CURATED}


def _genres(raw):
    if isinstance(raw, list):
        return raw
    try:
        value = json.loads(raw or "[]")
    except (TypeError, ValueError):
        return []
    return value if isinstance(value, list) else []


def import_legacy_data(db: Session, data: Dict) -> Dict[str, int]:
    counts = {"users": 0, "titles": 0, "reviews": 0, "watchlist": 0, "skipped": 0}
    user_ids: Dict[int, int] = {}
    title_ids: Dict[int, int] = {}

    for u in data.get("users", []):
        existing = crud.get_user_by_email(db, u["email"])
        if existing is None:
            existing = crud.create_user(db, u.get("name") or u["email"], u["email"], u.get("password_hash"), u.get("role") or models.ROLE_USER)
            created_at = parse_iso(u.get("created_at"))
            if created_at:
                existing.created_at = created_at
                db.commit()
            counts["users"] += 1
        user_ids[u["id"]] = existing.id

    for m in data.get("movies", []):
        values = {
            "external_id": m.get("tmdb_id"),
            "title": m.get("title") or "Unknown",
            "original_title": m.get("original_title"),
            "overview": m.get("overview"),
            "release_year": m.get("release_year"),
            "poster_url": m.get("poster_url"),
            "backdrop_url": m.get("backdrop_url"),
            "kind": "series" if m.get("type") == "series" else "movie",
            "provenance": _PROVENANCE.get(m.get("source"), models.PROVENANCE_CURATED),
            "genres": _genres(m.get("genres")),
        }
        title = crud.upsert_title_by_external_id(db, values)
        created_at = parse_iso(m.get("created_at"))
        if created_at:
            title.created_at = created_at
            db.commit()
        title_ids[m["id"]] = title.id
        counts["titles"] += 1

    for r in data.get("reviews", []):
        user_id = user_ids.get(r.get("user_id"))
        title_id = title_ids.get(r.get("movie_id"))
        if user_id is None or title_id is None:
            counts["skipped"] += 1
            continue
        try:
            review = crud.submit_review(db, title_id, user_id, r.get("meter_rating"), r.get("body"))
        except CatalogError as e:
            logger.warning(f"Skipping legacy review {r.get('id')}: {e}")
            counts["skipped"] += 1
            continue
        created_at = parse_iso(r.get("created_at"))
        if created_at:
            review.created_at = created_at
            db.commit()
        counts["reviews"] += 1

    for w in data.get("watchlists", []):
        user_id = user_ids.get(w.get("user_id"))
        title_id = title_ids.get(w.get("movie_id"))
        if user_id is None or title_id is None:
            counts["skipped"] += 1
            continue
        if not crud.is_in_watchlist(db, user_id, title_id):
            crud.toggle_watchlist(db, user_id, title_id)
            counts["watchlist"] += 1

    logger.info(f"Legacy import finished: {counts}")
    return counts
