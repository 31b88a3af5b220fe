import json
import unittest
from unittest.mock import AsyncMock, patch

import httpx

import catalog_testing  # noqa: F401

from bdcinema.core.config import settings
from bdcinema.exceptions import UpstreamUnavailableError
from bdcinema.services import tmdb_client

SEARCH_RESULTS = {
    "results": [
        {"id": 1, "media_type": "movie", "title": "Hawa", "release_date": "2022-07-29", "poster_path": "/hawa.jpg", "vote_average": 7.1},
        {"id": 2, "media_type": "person", "name": "Chanchal Chowdhury"},
        {"id": 3, "media_type": "tv", "name": "Karagar", "first_air_date": "2022-08-11", "vote_average": 8.0},
        {"id": 4, "media_type": "movie", "title": "Poran", "release_date": "2022-06-10"},
    ]
}


def mock_tmdb(handler):
    """Route the gateway's HTTP client through an in-process handler."""
    def build():
        return httpx.AsyncClient(base_url=settings.tmdb_base_url, transport=httpx.MockTransport(handler))
    return patch.object(tmdb_client, "_build_client", build)


class TestNormalize(unittest.TestCase):
    def test_movie_payload(self):
        item = tmdb_client.normalize({
            "id": 10,
            "title": "Aynabaji",
            "original_title": "আয়নাবাজি",
            "release_date": "2016-09-30",
            "poster_path": "/a.jpg",
            "genres": [{"id": 53, "name": "Thriller"}, {"id": 18, "name": "Drama"}],
        }, "movie")
        self.assertEqual(item["external_id"], 10)
        self.assertEqual(item["title"], "Aynabaji")
        self.assertEqual(item["release_year"], 2016)
        self.assertEqual(item["kind"], "movie")
        self.assertEqual(item["provenance"], "external")
        self.assertEqual(item["genres"], ["Thriller", "Drama"])
        self.assertTrue(item["poster_url"].endswith("/w500/a.jpg"))
        self.assertIsNone(item["backdrop_url"])

    def test_tv_payload_uses_name_and_air_date(self):
        item = tmdb_client.normalize({
            "id": 11,
            "media_type": "tv",
            "name": "Mohanagar",
            "first_air_date": "2021-06-24",
            "genre_ids": [80, 999],
        }, genre_map={80: "Crime"})
        self.assertEqual(item["kind"], "series")
        self.assertEqual(item["title"], "Mohanagar")
        self.assertEqual(item["release_year"], 2021)
        self.assertEqual(item["genres"], ["Crime"])

    def test_missing_fields(self):
        item = tmdb_client.normalize({"id": 12, "release_date": ""}, "movie")
        self.assertEqual(item["title"], "Unknown")
        self.assertIsNone(item["release_year"])
        self.assertIsNone(item["poster_url"])
        self.assertEqual(item["genres"], [])

    def test_kind_mapping(self):
        self.assertEqual(tmdb_client.tmdb_media_type("series"), "tv")
        self.assertEqual(tmdb_client.tmdb_media_type("movie"), "movie")
        self.assertEqual(tmdb_client.title_kind("tv"), "series")
        self.assertIsNone(tmdb_client.image_url(None))


class TestGateway(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        tmdb_client._genre_cache.clear()

    async def test_search_keeps_movies_and_tv_only(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=SEARCH_RESULTS)

        with mock_tmdb(handler):
            results = await tmdb_client.search("hawa")

        self.assertTrue(seen["path"].endswith("/search/multi"))
        self.assertEqual(seen["params"]["query"], "hawa")
        self.assertEqual(seen["params"]["api_key"], "test-key")
        self.assertEqual([r["external_id"] for r in results], [1, 3, 4])
        self.assertEqual(results[1]["kind"], "series")
        self.assertEqual(results[1]["media_type"], "tv")
        self.assertEqual(results[0]["vote_average"], 7.1)

    async def test_search_honours_limit(self):
        with mock_tmdb(lambda request: httpx.Response(200, json=SEARCH_RESULTS)):
            results = await tmdb_client.search("hawa", limit=2)
        self.assertEqual(len(results), 2)

    async def test_search_degrades_on_upstream_error(self):
        with mock_tmdb(lambda request: httpx.Response(500, json={"status_message": "boom"})):
            self.assertEqual(await tmdb_client.search("hawa"), [])

    async def test_search_degrades_on_network_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        with mock_tmdb(handler):
            self.assertEqual(await tmdb_client.search("hawa"), [])

    async def test_search_without_api_key_returns_empty(self):
        def handler(request):
            raise AssertionError("no request expected")

        with patch.object(settings, "tmdb_api_key", ""), mock_tmdb(handler):
            self.assertEqual(await tmdb_client.search("hawa"), [])

    async def test_blank_query_short_circuits(self):
        self.assertEqual(await tmdb_client.search("   "), [])

    async def test_fetch_details_raises_with_status(self):
        with mock_tmdb(lambda request: httpx.Response(404, json={"status_code": 34})):
            with self.assertRaises(UpstreamUnavailableError) as ctx:
                await tmdb_client.fetch_details(999, "movie")
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_fetch_details_requests_credits(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["append"] = request.url.params.get("append_to_response")
            return httpx.Response(200, json={"id": 77, "name": "Taqdeer"})

        with mock_tmdb(handler):
            details = await tmdb_client.fetch_details(77, "series")

        self.assertTrue(seen["path"].endswith("/tv/77"))
        self.assertEqual(seen["append"], "credits")
        self.assertEqual(details["name"], "Taqdeer")

    async def test_genres_fetched_once(self):
        calls = []

        def handler(request):
            calls.append(request.url.path)
            return httpx.Response(200, json={"genres": [{"id": 18, "name": "Drama"}]})

        with mock_tmdb(handler):
            first = await tmdb_client.get_genres("movie")
            second = await tmdb_client.get_genres("movie")

        self.assertEqual(first, {18: "Drama"})
        self.assertEqual(second, first)
        self.assertEqual(len(calls), 1)

    async def test_discover_region_filters_by_origin_country(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"results": [{"id": 5, "title": "Debi"}]})

        with mock_tmdb(handler):
            results = await tmdb_client.discover_region("movie", "bd")

        self.assertTrue(seen["path"].endswith("/discover/movie"))
        self.assertEqual(seen["params"]["with_origin_country"], "BD")
        self.assertEqual(seen["params"]["sort_by"], "popularity.desc")
        self.assertEqual(results, [{"id": 5, "title": "Debi"}])



class TestResponseCache(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.redis = AsyncMock()
        self.redis.get.return_value = None
        self.http_calls = []

    def handler(self, request):
        self.http_calls.append(request.url.path)
        return httpx.Response(200, json={"id": 77, "title": "Hawa"})

    def test_cache_key_leaves_out_api_key(self):
        key = tmdb_client._cache_key("/movie/77", {"api_key": "test-key", "language": "en-US", "append_to_response": "credits"})
        self.assertEqual(key, "tmdb:/movie/77?append_to_response=credits&language=en-US")

    async def test_hit_skips_http(self):
        self.redis.get.return_value = json.dumps({"id": 77, "title": "Cached"})
        with patch.object(tmdb_client, "get_redis", return_value=self.redis), mock_tmdb(self.handler):
            details = await tmdb_client.fetch_details(77, "movie")
        self.assertEqual(details["title"], "Cached")
        self.assertEqual(self.http_calls, [])
        self.redis.set.assert_not_awaited()

    async def test_miss_stores_body_with_ttl(self):
        with patch.object(tmdb_client, "get_redis", return_value=self.redis), mock_tmdb(self.handler):
            details = await tmdb_client.fetch_details(77, "movie")
        self.assertEqual(details["title"], "Hawa")
        self.assertEqual(len(self.http_calls), 1)
        key, payload = self.redis.set.await_args.args
        self.assertNotIn("test-key", key)
        self.assertEqual(json.loads(payload), {"id": 77, "title": "Hawa"})
        self.assertEqual(self.redis.set.await_args.kwargs["ex"], settings.tmdb_cache_ttl_seconds)

    async def test_cache_errors_are_logged_and_ignored(self):
        self.redis.get.side_effect = ConnectionError("redis down")
        self.redis.set.side_effect = ConnectionError("redis down")
        with patch.object(tmdb_client, "get_redis", return_value=self.redis), mock_tmdb(self.handler):
            with self.assertLogs("bdcinema.services.tmdb_client", level="WARNING") as logs:
                details = await tmdb_client.fetch_details(77, "movie")
        self.assertEqual(details["title"], "Hawa")
        self.assertEqual(len(self.http_calls), 1)
        self.assertTrue(any("cache read failed" in line for line in logs.output))
        self.assertTrue(any("cache write failed" in line for line in logs.output))

    async def test_no_redis_configured_goes_straight_to_http(self):
        with patch.object(tmdb_client, "get_redis", return_value=None), mock_tmdb(self.handler):
            await tmdb_client.fetch_details(77, "movie")
            await tmdb_client.fetch_details(77, "movie")
        self.assertEqual(len(self.http_calls), 2)


if __name__ == "__main__":
    unittest.main()
