"""
TMDB client for bdcinema.
- Async httpx client, API key from settings.
- Movie and TV payloads normalised into one Title-shaped dict.
- Raw JSON bodies optionally cached in Redis for the upstream revalidate window.
- No retries; failures raise UpstreamUnavailableError, except search which degrades to [].
"""
import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from bdcinema.core.config import settings
from bdcinema.core.redis_client import get_redis
from bdcinema.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)

POSTER_SIZE = "w500"
BACKDROP_SIZE = "w1280"

# Per-process genre id -> name maps, keyed by TMDB media type
_genre_cache: Dict[str, Dict[int, str]] = {}


def tmdb_media_type(kind: Optional[str]) -> str:
    """Local title kind -> TMDB path segment ('movie' | 'tv')."""
    return "tv" if kind in ("tv", "series", "show") else "movie"


def title_kind(media_type: Optional[str]) -> str:
    """TMDB media type -> local title kind ('movie' | 'series')."""
    return "series" if media_type in ("tv", "series", "show") else "movie"


def image_url(path: Optional[str], size: str = POSTER_SIZE) -> Optional[str]:
    if not path:
        return None
    return f"{settings.tmdb_image_base_url}/{size}{path}"


def backdrop_url(path: Optional[str]) -> Optional[str]:
    return image_url(path, BACKDROP_SIZE)


def _year(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(str(value).split("-")[0])
    except ValueError:
        return None


def _build_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=settings.tmdb_base_url, timeout=settings.tmdb_timeout_seconds)


def _cache_key(path: str, params: Dict[str, Any]) -> str:
    public = sorted((k, v) for k, v in params.items() if k != "api_key")
    return f"tmdb:{path}?{urlencode(public)}"


async def _cache_get(key: str) -> Optional[Dict]:
    r = get_redis()
    if r is None:
        return None
    try:
        cached = await r.get(key)
        return json.loads(cached) if cached else None
    except Exception as e:
        logger.warning(f"TMDB cache read failed: {e}")
        return None


async def _cache_set(key: str, data: Dict) -> None:
    r = get_redis()
    if r is None:
        return
    try:
        await r.set(key, json.dumps(data), ex=settings.tmdb_cache_ttl_seconds)
    except Exception as e:
        logger.warning(f"TMDB cache write failed: {e}")


async def _get(path: str, params: Optional[Dict[str, Any]] = None) -> Dict:
    if not settings.tmdb_enabled:
        raise UpstreamUnavailableError("TMDB_API_KEY missing")

    query: Dict[str, Any] = {"api_key": settings.tmdb_api_key, "language": settings.tmdb_language}
    query.update(params or {})
    key = _cache_key(path, query)
    cached = await _cache_get(key)
    if cached is not None:
        return cached

    try:
        async with _build_client() as client:
            resp = await client.get(path, params=query)
            resp.raise_for_status()
            data = resp.json()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.warning(f"TMDB {path} returned {status}")
        raise UpstreamUnavailableError(f"TMDB request {path} failed with status {status}", status_code=status) from e
    except httpx.HTTPError as e:
        logger.error(f"TMDB request {path} failed: {e}")
        raise UpstreamUnavailableError(f"TMDB request {path} failed: {e}") from e
    except ValueError as e:
        raise UpstreamUnavailableError(f"TMDB returned invalid JSON for {path}") from e

    await _cache_set(key, data)
    return data


async def get_genres(media_type: str = "movie") -> Dict[int, str]:
    media_type = tmdb_media_type(media_type)
    if media_type in _genre_cache:
        return _genre_cache[media_type]
    data = await _get(f"/genre/{media_type}/list")
    mapping = {g["id"]: g["name"] for g in data.get("genres", []) if "id" in g and "name" in g}
    _genre_cache[media_type] = mapping
    return mapping


def normalize(result: Dict, kind: Optional[str] = None, genre_map: Optional[Dict[int, str]] = None) -> Dict:
    """
    Collapse a TMDB movie or TV payload into Title column values.

    Movies carry title/original_title/release_date, TV carries
    name/original_name/first_air_date; detail payloads embed genre objects
    while list payloads only carry genre_ids.
    """
    if kind is None:
        kind = title_kind(result.get("media_type"))
    if kind == "series":
        name = result.get("name") or result.get("title")
        original = result.get("original_name") or result.get("original_title")
        year = _year(result.get("first_air_date") or result.get("release_date"))
    else:
        name = result.get("title") or result.get("name")
        original = result.get("original_title") or result.get("original_name")
        year = _year(result.get("release_date") or result.get("first_air_date"))

    if result.get("genres"):
        genres = [g["name"] for g in result["genres"] if isinstance(g, dict) and g.get("name")]
    else:
        genre_map = genre_map or {}
        genres = [genre_map[i] for i in result.get("genre_ids", []) if i in genre_map]

    return {
        "external_id": result.get("id"),
        "title": name or "Unknown",
        "original_title": original or None,
        "overview": result.get("overview") or None,
        "release_year": year,
        "poster_url": image_url(result.get("poster_path")),
        "backdrop_url": backdrop_url(result.get("backdrop_path")),
        "kind": kind,
        "provenance": "external",
        "genres": genres,
    }


async def fetch_details(external_id: int, kind: str = "movie") -> Dict:
    """Full TMDB details with credits. Raises UpstreamUnavailableError on any failure."""
    media_type = tmdb_media_type(kind)
    return await _get(f"/{media_type}/{external_id}", {"append_to_response": "credits"})


async def multi_search(query: str) -> List[Dict]:
    if not query:
        return []
    data = await _get("/search/multi", {"query": query, "page": 1, "include_adult": "false"})
    return data.get("results", [])


async def search(query: str, limit: int = 5) -> List[Dict]:
    """Movie/TV search results, normalised. Never raises: any failure yields []."""
    query = (query or "").strip()
    if not query:
        return []
    try:
        results = await multi_search(query)
    except UpstreamUnavailableError as e:
        logger.warning(f"Search degraded to empty results for {query!r}: {e}")
        return []

    out = []
    for r in results:
        media_type = r.get("media_type")
        if media_type not in ("movie", "tv"):
            continue
        item = normalize(r, title_kind(media_type))
        item["media_type"] = media_type
        item["vote_average"] = r.get("vote_average")
        out.append(item)
        if len(out) >= limit:
            break
    return out


async def _listing(path: str, params: Optional[Dict[str, Any]] = None, require_poster: bool = False) -> List[Dict]:
    data = await _get(path, params)
    results = data.get("results", [])
    if require_poster:
        results = [r for r in results if r.get("poster_path")]
    return results


async def trending_global() -> List[Dict]:
    return await _listing("/trending/all/week", require_poster=True)


async def popular_movies() -> List[Dict]:
    return await _listing("/movie/popular", {"page": 1}, require_poster=True)


async def top_rated_movies() -> List[Dict]:
    return await _listing("/movie/top_rated", {"page": 1}, require_poster=True)


async def popular_series() -> List[Dict]:
    return await _listing("/tv/popular", {"page": 1}, require_poster=True)


async def discover_region(kind: str, country: str) -> List[Dict]:
    """Most popular titles whose origin country is `country` (ISO 3166-1, e.g. BD, IN)."""
    params = {
        "with_origin_country": country.upper(),
        "sort_by": "popularity.desc",
        "page": 1,
    }
    if country.upper() == "BD":
        # Bangla posters are often the only artwork available
        params["include_image_language"] = "bn,en,null"
    return await _listing(f"/discover/{tmdb_media_type(kind)}", params)


async def get_person(person_id: int) -> Dict:
    return await _get(f"/person/{person_id}")


async def get_person_credits(person_id: int) -> Dict:
    data = await _get(f"/person/{person_id}/combined_credits")
    return {"cast": data.get("cast", []), "crew": data.get("crew", [])}
