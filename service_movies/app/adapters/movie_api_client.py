"""
Movie API client for the gateway.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

import httpx

from shared.errors import (
    ConfigurationError,
    GatewayError,
    RequestSetupError,
    UpstreamError,
    UpstreamUnavailableError,
)
from shared.logging import get_logger
from shared.metrics import MetricsCollector, coarse_path

USER_AGENT = "MaxMovies-Backend/1.0"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class UpstreamRequest:
    """One outbound call: endpoint path plus query parameters."""

    endpoint: str
    params: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(cls, endpoint: str, **params: Any) -> "UpstreamRequest":
        """Keep only parameters that are present and non-empty."""
        cleaned = {
            name: str(value)
            for name, value in params.items()
            if value is not None and str(value).strip() != ""
        }
        return cls(endpoint=endpoint, params=cleaned)


@dataclass(frozen=True)
class HealthReport:
    """Result of probing the movie API."""

    status: str
    timestamp: str
    api_status: Optional[int] = None
    error: Optional[str] = None

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"

    def to_dict(self) -> Dict[str, Any]:
        report: Dict[str, Any] = {"status": self.status}
        if self.api_status is not None:
            report["apiStatus"] = self.api_status
        if self.error is not None:
            report["error"] = self.error
        report["timestamp"] = self.timestamp
        return report


class MovieAPIClient:
    """Client for the upstream movie-metadata provider.

    Failures are classified here, once, into the shared error taxonomy:

    1. a failure status, or a body that cannot be decoded -> ``UpstreamError``
    2. no response (timeout, connection failure) -> ``UpstreamUnavailableError``
    3. the request could not be built or sent -> ``RequestSetupError``
    """

    def __init__(
        self,
        base_url: Optional[str],
        api_key: Optional[str],
        timeout: float = 15.0,
        health_timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.base_url = (base_url or "").strip().rstrip("/")
        api_key = (api_key or "").strip()
        if not self.base_url or not api_key:
            raise ConfigurationError("MOVIE_API_BASE_URL and MOVIE_API_KEY must be set")

        self.timeout = timeout
        self.health_timeout = health_timeout
        self.metrics = metrics
        self.logger = get_logger("gateway.movie_api_client")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            },
        )

    async def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """GET ``endpoint`` and return its JSON object body."""
        request = UpstreamRequest.build(endpoint, **dict(params or {}))
        return await self.send(request)

    async def send(self, request: UpstreamRequest, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Execute ``request``; raises a classified ``GatewayError`` on failure."""
        deadline = timeout or self.timeout
        start_time = time.monotonic()
        outcome = "error"
        try:
            response = await asyncio.wait_for(
                self._client.get(request.endpoint, params=request.params, timeout=deadline),
                timeout=deadline,
            )
            payload = self._parse_response(response)
            outcome = "ok"
            return payload
        except GatewayError as exc:
            outcome = exc.code.lower()
            self._log_error(request, exc)
            raise
        except (httpx.InvalidURL, httpx.UnsupportedProtocol, httpx.LocalProtocolError) as exc:
            error = RequestSetupError(details={"error": str(exc)})
            outcome = error.code.lower()
            self._log_error(request, error, cause=exc)
            raise error from exc
        except httpx.DecodingError as exc:
            error = UpstreamError(502, "Movie API returned an undecodable response")
            outcome = error.code.lower()
            self._log_error(request, error, cause=exc)
            raise error from exc
        except (httpx.HTTPError, asyncio.TimeoutError) as exc:
            # Transport failures, redirect loops and any other httpx error.
            error = UpstreamUnavailableError(details={"error": str(exc) or type(exc).__name__})
            outcome = error.code.lower()
            self._log_error(request, error, cause=exc)
            raise error from exc
        finally:
            if self.metrics:
                self.metrics.record_upstream_request(
                    coarse_path(request.endpoint, depth=1),
                    outcome,
                    time.monotonic() - start_time,
                )

    def _parse_response(self, response: httpx.Response) -> Dict[str, Any]:
        body = self._json_or_none(response)

        if not response.is_success:
            message = body.get("message") if isinstance(body, dict) else None
            raise UpstreamError(
                response.status_code,
                message if isinstance(message, str) and message else None,
                payload=body if body is not None else response.text,
            )

        if body is None:
            raise UpstreamError(502, "Movie API returned a non-JSON response", payload=response.text)
        if not isinstance(body, dict):
            return {"data": body}
        return body

    @staticmethod
    def _json_or_none(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    def _log_error(self, request: UpstreamRequest, error: GatewayError, cause: Optional[BaseException] = None) -> None:
        self.logger.error(
            "Movie API error",
            endpoint=request.endpoint,
            method="GET",
            upstream_status=getattr(error, "upstream_status", None),
            error_kind=error.code,
            message=error.message,
            cause=type(cause).__name__ if cause else None,
        )

    async def health_check(self) -> HealthReport:
        """Probe the provider; never raises."""
        probe = UpstreamRequest.build("/homepage")
        try:
            response = await asyncio.wait_for(
                self._client.get(probe.endpoint, timeout=self.health_timeout),
                timeout=self.health_timeout,
            )
        except (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError) as exc:
            self.logger.warning("Movie API health probe failed", error=str(exc) or type(exc).__name__)
            return HealthReport(
                status="unhealthy",
                error=str(exc) or "Movie API did not respond in time",
                timestamp=utc_timestamp(),
            )
        except Exception as exc:
            self.logger.error("Movie API health probe error", error=str(exc), exc_info=True)
            return HealthReport(status="unhealthy", error=str(exc), timestamp=utc_timestamp())

        if not response.is_success:
            return HealthReport(
                status="unhealthy",
                error=f"Movie API responded with HTTP {response.status_code}",
                timestamp=utc_timestamp(),
            )
        return HealthReport(status="healthy", api_status=response.status_code, timestamp=utc_timestamp())

    async def aclose(self) -> None:
        await self._client.aclose()
