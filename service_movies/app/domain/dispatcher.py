"""
Request dispatcher: one handler per gateway operation.

Every handler runs the same sequence and returns an ``Envelope``:
validate parameters, build the upstream request, call the movie API,
wrap the outcome. Rate limiting has already happened in middleware by
the time a handler runs.
"""

import platform
import time
from typing import Any, Callable, Dict, Optional, Union
from urllib.parse import quote

from shared.envelope import (
    Envelope,
    failure_envelope,
    internal_error_envelope,
    success_envelope,
)
from shared.errors import GatewayError, ValidationError
from shared.logging import get_logger
from service_movies.app.adapters.movie_api_client import MovieAPIClient, UpstreamRequest, utc_timestamp

SERVICE_MESSAGE = "MaxMovies Backend API"


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _path_segment(value: str) -> str:
    return quote(value, safe="")


def parse_page(page: Union[str, int, None]) -> Optional[int]:
    """Parse a page number; ``None`` when it is not a positive integer."""
    if page is None or (isinstance(page, str) and not page.strip()):
        return 1
    try:
        number = int(str(page).strip())
    except ValueError:
        return None
    return number if number >= 1 else None


class MovieRequestDispatcher:
    """Validates input, calls the movie API and shapes the reply."""

    def __init__(
        self,
        client: MovieAPIClient,
        api_prefix: str = "/api/v2",
        environment: str = "production",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.api_prefix = api_prefix
        self.environment = environment
        self._clock = clock
        self._started_at = clock()
        self.logger = get_logger("gateway.dispatcher")

    @property
    def include_detail(self) -> bool:
        return self.environment == "development"

    async def homepage(self) -> Envelope:
        return await self._forward(UpstreamRequest.build("/homepage"))

    async def trending(self) -> Envelope:
        return await self._forward(UpstreamRequest.build("/trending"))

    async def search(self, query: Optional[str], page: Union[str, int, None] = None) -> Envelope:
        term = _clean(query)
        if not term:
            return self._invalid("Query parameter is required", "query")

        page_number = parse_page(page)
        if page_number is None:
            return self._invalid("Page parameter must be a positive integer", "page")

        request = UpstreamRequest.build(f"/search/{_path_segment(term)}", page=page_number)
        return await self._forward(request, query=term, page=page_number)

    async def info(self, item_id: Optional[str]) -> Envelope:
        item = _clean(item_id)
        if not item:
            return self._invalid("ID parameter is required", "id")
        return await self._forward(UpstreamRequest.build(f"/info/{_path_segment(item)}"))

    async def sources(
        self,
        item_id: Optional[str],
        season: Optional[str] = None,
        episode: Optional[str] = None,
    ) -> Envelope:
        item = _clean(item_id)
        if not item:
            return self._invalid("ID parameter is required", "id")

        request = UpstreamRequest.build(
            f"/sources/{_path_segment(item)}",
            season=_clean(season),
            episode=_clean(episode),
        )
        return await self._forward(request)

    async def health(self) -> Envelope:
        """Health never fails on a provider error; the report carries it."""
        try:
            report = await self.client.health_check()
            body = self._health_body(report.to_dict())
        except Exception as exc:
            self.logger.error("Health check failed", error=str(exc), exc_info=True)
            return internal_error_envelope(exc, self.include_detail, message="Health check failed")
        return success_envelope(body)

    def endpoints(self) -> Dict[str, str]:
        prefix = self.api_prefix
        return {
            "homepage": f"{prefix}/homepage",
            "trending": f"{prefix}/trending",
            "search": f"{prefix}/search/{{query}}",
            "info": f"{prefix}/info/{{id}}",
            "sources": f"{prefix}/sources/{{id}}",
        }

    def uptime(self) -> float:
        return round(self._clock() - self._started_at, 3)

    def _health_body(self, report: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "message": SERVICE_MESSAGE,
            "backend": {
                "status": "running",
                "uptime": self.uptime(),
                "timestamp": utc_timestamp(),
                "pythonVersion": platform.python_version(),
                "environment": self.environment,
            },
            "movieApi": report,
            "endpoints": self.endpoints(),
        }

    async def _forward(self, request: UpstreamRequest, **echo: Any) -> Envelope:
        try:
            payload = await self.client.send(request)
        except GatewayError as exc:
            # Already classified and logged by the client.
            return failure_envelope(exc)
        return success_envelope(payload, **echo)

    def _invalid(self, message: str, field: str) -> Envelope:
        self.logger.info("Request validation failed", field=field, message=message)
        return failure_envelope(ValidationError(message, field=field))
