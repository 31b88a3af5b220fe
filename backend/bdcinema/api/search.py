"""
search.py - TMDB-backed title search, discovery feeds and person pages
"""
import logging

from fastapi import APIRouter, HTTPException, Query

from bdcinema.services import tmdb_client

logger = logging.getLogger(__name__)
router = APIRouter()

FEEDS = {
    "trending": lambda: tmdb_client.trending_global(),
    "popular-movies": lambda: tmdb_client.popular_movies(),
    "top-rated": lambda: tmdb_client.top_rated_movies(),
    "popular-series": lambda: tmdb_client.popular_series(),
    "bd-movies": lambda: tmdb_client.discover_region("movie", "BD"),
    "bd-series": lambda: tmdb_client.discover_region("series", "BD"),
    "in-movies": lambda: tmdb_client.discover_region("movie", "IN"),
    "in-series": lambda: tmdb_client.discover_region("series", "IN"),
}


@router.get("/search")
async def search_titles(q: str = Query("", description="Search query")):
    """Top movie/TV matches. Upstream failures yield an empty list, never an error."""
    return {"results": await tmdb_client.search(q)}


@router.get("/discover/{feed}")
async def discover(feed: str):
    fetch = FEEDS.get(feed)
    if fetch is None:
        raise HTTPException(status_code=404, detail=f"Unknown feed: {feed}")
    results = await fetch()
    out = []
    for r in results:
        media_type = r.get("media_type") or ("tv" if feed.endswith("series") else "movie")
        if media_type not in ("movie", "tv"):
            continue
        item = tmdb_client.normalize(r, tmdb_client.title_kind(media_type))
        item["media_type"] = media_type
        item["vote_average"] = r.get("vote_average")
        out.append(item)
    return {"results": out}


@router.get("/person/{person_id}")
async def get_person(person_id: int):
    person = await tmdb_client.get_person(person_id)
    credits = await tmdb_client.get_person_credits(person_id)
    cast = sorted(credits["cast"], key=lambda c: c.get("popularity") or 0, reverse=True)
    return {
        "person": {
            "id": person.get("id"),
            "name": person.get("name"),
            "biography": person.get("biography"),
            "known_for_department": person.get("known_for_department"),
            "birthday": person.get("birthday"),
            "place_of_birth": person.get("place_of_birth"),
            "profile_url": tmdb_client.image_url(person.get("profile_path")),
        },
        "cast": [
            {**tmdb_client.normalize(c), "media_type": c.get("media_type"), "character": c.get("character")}
            for c in cast
        ],
        "crew": [
            {**tmdb_client.normalize(c), "media_type": c.get("media_type"), "job": c.get("job")}
            for c in credits["crew"]
        ],
    }
