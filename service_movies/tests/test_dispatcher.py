"""
Unit tests for the request dispatcher.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.errors import RequestSetupError, UpstreamError, UpstreamUnavailableError
from service_movies.app.adapters.movie_api_client import HealthReport, UpstreamRequest
from service_movies.app.domain.dispatcher import MovieRequestDispatcher, parse_page


@pytest.fixture
def movie_client():
    client = MagicMock()
    client.send = AsyncMock(return_value={"results": []})
    client.health_check = AsyncMock(return_value=HealthReport(
        status="healthy", api_status=200, timestamp="2026-01-01T00:00:00.000Z",
    ))
    return client


@pytest.fixture
def dispatcher(movie_client):
    return MovieRequestDispatcher(movie_client)


class TestParsePage:

    @pytest.mark.parametrize("raw,expected", [
        (None, 1), ("", 1), ("  ", 1), ("1", 1), ("7", 7), (" 3 ", 3), (2, 2),
        ("0", None), ("-4", None), ("abc", None), ("1.5", None),
    ])
    def test_parse_page(self, raw, expected):
        assert parse_page(raw) == expected


class TestMovieRequestDispatcher:
    """Test cases for MovieRequestDispatcher."""

    @pytest.mark.asyncio
    async def test_homepage_forwards_and_wraps(self, dispatcher, movie_client):
        movie_client.send.return_value = {"results": {"banner": []}}

        envelope = await dispatcher.homepage()

        movie_client.send.assert_awaited_once_with(UpstreamRequest("/homepage", {}))
        assert envelope.status == 200
        assert envelope.body == {
            "status": 200,
            "success": True,
            "creator": "GiftedTech",
            "results": {"banner": []},
        }

    @pytest.mark.asyncio
    async def test_trending_forwards(self, dispatcher, movie_client):
        await dispatcher.trending()
        movie_client.send.assert_awaited_once_with(UpstreamRequest("/trending", {}))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", None])
    async def test_search_requires_query(self, dispatcher, movie_client, query):
        envelope = await dispatcher.search(query)

        assert envelope.status == 400
        assert envelope.body == {"status": 400, "success": False, "message": "Query parameter is required"}
        movie_client.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_search_defaults_page_and_echoes(self, dispatcher, movie_client):
        envelope = await dispatcher.search("  the matrix ")

        movie_client.send.assert_awaited_once_with(
            UpstreamRequest("/search/the%20matrix", {"page": "1"})
        )
        assert envelope.body["query"] == "the matrix"
        assert envelope.body["page"] == 1

    @pytest.mark.asyncio
    async def test_search_parses_page(self, dispatcher, movie_client):
        envelope = await dispatcher.search("matrix", "3")

        movie_client.send.assert_awaited_once_with(UpstreamRequest("/search/matrix", {"page": "3"}))
        assert envelope.body["page"] == 3

    @pytest.mark.asyncio
    async def test_search_rejects_bad_page(self, dispatcher, movie_client):
        envelope = await dispatcher.search("matrix", "two")

        assert envelope.status == 400
        assert envelope.body["message"] == "Page parameter must be a positive integer"
        movie_client.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_search_echo_wins_over_upstream_fields(self, dispatcher, movie_client):
        movie_client.send.return_value = {"query": "upstream", "page": "9", "status": "ok", "results": []}

        envelope = await dispatcher.search("matrix", "2")

        assert envelope.body["query"] == "matrix"
        assert envelope.body["page"] == 2
        assert envelope.body["status"] == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("item_id", ["", "  "])
    async def test_info_requires_id(self, dispatcher, movie_client, item_id):
        envelope = await dispatcher.info(item_id)

        assert envelope.status == 400
        assert envelope.body["message"] == "ID parameter is required"
        movie_client.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_info_quotes_identifier(self, dispatcher, movie_client):
        await dispatcher.info("a/b c")
        movie_client.send.assert_awaited_once_with(UpstreamRequest("/info/a%2Fb%20c", {}))

    @pytest.mark.asyncio
    async def test_sources_requires_id(self, dispatcher, movie_client):
        envelope = await dispatcher.sources("", season="1")

        assert envelope.status == 400
        movie_client.send.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("season,episode,expected", [
        ("1", "2", {"season": "1", "episode": "2"}),
        ("1", None, {"season": "1"}),
        ("1", "", {"season": "1"}),
        (None, "4", {"episode": "4"}),
        (None, None, {}),
        ("", "", {}),
    ])
    async def test_sources_includes_only_present_params(self, dispatcher, movie_client, season, episode, expected):
        await dispatcher.sources("tt0944947", season=season, episode=episode)

        movie_client.send.assert_awaited_once_with(UpstreamRequest("/sources/tt0944947", expected))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error,status,message", [
        (UpstreamError(404, "Item not found"), 404, "Item not found"),
        (UpstreamError(500), 500, "API request failed"),
        (UpstreamUnavailableError(), 503, "No response from movie API - Service Unavailable"),
        (RequestSetupError(), 500, "Error setting up request to movie API"),
    ])
    async def test_upstream_failures_map_to_status(self, dispatcher, movie_client, error, status, message):
        movie_client.send.side_effect = error

        envelope = await dispatcher.info("tt0133093")

        assert envelope.status == status
        assert envelope.body == {"status": status, "success": False, "message": message}

    @pytest.mark.asyncio
    async def test_each_call_reaches_upstream(self, dispatcher, movie_client):
        first = await dispatcher.info("tt0133093")
        second = await dispatcher.info("tt0133093")

        assert movie_client.send.await_count == 2
        assert first == second
        assert first is not second

    @pytest.mark.asyncio
    async def test_health_embeds_report(self, dispatcher):
        envelope = await dispatcher.health()

        assert envelope.status == 200
        assert envelope.body["success"] is True
        assert envelope.body["movieApi"]["status"] == "healthy"
        assert envelope.body["backend"]["status"] == "running"
        assert envelope.body["backend"]["uptime"] >= 0
        assert envelope.body["endpoints"]["search"] == "/api/v2/search/{query}"

    @pytest.mark.asyncio
    async def test_health_is_success_when_provider_unhealthy(self, dispatcher, movie_client):
        movie_client.health_check.return_value = HealthReport(
            status="unhealthy", error="connection refused", timestamp="2026-01-01T00:00:00.000Z",
        )

        envelope = await dispatcher.health()

        assert envelope.status == 200
        assert envelope.body["success"] is True
        assert envelope.body["movieApi"] == {
            "status": "unhealthy",
            "error": "connection refused",
            "timestamp": "2026-01-01T00:00:00.000Z",
        }

    @pytest.mark.asyncio
    async def test_health_fault_is_internal_error(self, dispatcher, movie_client):
        movie_client.health_check.side_effect = RuntimeError("report exploded")

        envelope = await dispatcher.health()

        assert envelope.status == 500
        assert envelope.body == {"status": 500, "success": False, "message": "Health check failed"}

    @pytest.mark.asyncio
    async def test_health_fault_detail_in_development(self, movie_client):
        dispatcher = MovieRequestDispatcher(movie_client, environment="development")
        movie_client.health_check.side_effect = RuntimeError("report exploded")

        envelope = await dispatcher.health()

        assert envelope.status == 500
        assert envelope.body["message"] == "report exploded"
        assert "RuntimeError" in envelope.body["stack"]
