"""
Adapters package for the Movie Gateway Service.

Contains the HTTP client wrapper for the upstream movie API. The adapter
encapsulates:

- Base URL, credential and request shapes
- Timeouts
- Error classification into the shared error taxonomy

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .movie_api_client import HealthReport, MovieAPIClient, UpstreamRequest

__all__ = [
    "HealthReport",
    "MovieAPIClient",
    "UpstreamRequest",
]
