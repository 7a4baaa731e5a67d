"""
Shared fixtures for the movie gateway tests.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from shared.test_helpers import (
    RecordingTransport,
    TEST_API_KEY,
    TEST_BASE_URL,
    TestDataFactory,
    make_test_config,
)
from service_movies.app.adapters.movie_api_client import MovieAPIClient
from service_movies.app.main import create_app
from service_movies.app.ratelimit.fixed_window import FixedWindowRateLimiter


@pytest.fixture
def upstream():
    """Fake movie API with the happy-path routes registered."""
    return RecordingTransport({
        "/homepage": httpx.Response(200, json=TestDataFactory.create_homepage()),
        "/trending": httpx.Response(200, json=TestDataFactory.create_trending()),
        "/search/matrix": httpx.Response(200, json=TestDataFactory.create_search_results()),
        "/info/tt0133093": httpx.Response(200, json=TestDataFactory.create_info()),
        "/sources/tt0944947": httpx.Response(200, json=TestDataFactory.create_sources()),
    })


@pytest.fixture
def config():
    return make_test_config()


@pytest.fixture
def movie_client(upstream):
    return MovieAPIClient(TEST_BASE_URL, TEST_API_KEY, transport=upstream)


@pytest.fixture
def rate_limiter():
    return FixedWindowRateLimiter(max_points=100, window_seconds=900)


@pytest.fixture
def app(config, movie_client, rate_limiter):
    return create_app(config=config, client=movie_client, rate_limiter=rate_limiter)


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app, raise_server_exceptions=False)
