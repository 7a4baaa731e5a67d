"""
Fixed-window rate limiter for the movie gateway.

Counters live in ``limits`` in-memory storage. Each client key gets
``max_points`` admissions per window; the window starts at the client's
first request, refills completely once it has elapsed, and the storage
drops the key when it expires.
"""

import math
import time
from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage
from limits.strategies import FixedWindowRateLimiter as FixedWindowStrategy
from starlette.middleware.base import BaseHTTPMiddleware

from shared.errors import RateLimitError
from shared.envelope import failure_envelope
from shared.logging import get_logger, set_client_context
from shared.metrics import MetricsCollector, coarse_path


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one admission check."""

    allowed: bool
    limit: int
    remaining: int
    reset_in_seconds: int


class FixedWindowRateLimiter:
    """Fixed-window counter keyed by client identifier."""

    def __init__(
        self,
        max_points: int = 100,
        window_seconds: float = 900,
        storage: Optional[Storage] = None,
    ):
        if max_points <= 0:
            raise ValueError("max_points must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_points = max_points
        # limits counts windows in whole seconds
        self.window_seconds = max(1, math.ceil(window_seconds))
        self.item = RateLimitItemPerSecond(max_points, self.window_seconds)
        self.storage = storage if storage is not None else MemoryStorage()
        self._strategy = FixedWindowStrategy(self.storage)
        self.logger = get_logger("gateway.rate_limiter")

    def admit(self, client_key: str) -> RateLimitDecision:
        """Consume one point for ``client_key`` if any remain."""
        allowed = self._strategy.hit(self.item, client_key)
        stats = self._strategy.get_window_stats(self.item, client_key)
        return RateLimitDecision(
            allowed,
            self.max_points,
            stats.remaining,
            self._reset_in(stats.reset_time),
        )

    def status(self, client_key: str) -> RateLimitDecision:
        """Report the quota for ``client_key`` without consuming a point."""
        stats = self._strategy.get_window_stats(self.item, client_key)
        if stats.remaining >= self.max_points:
            return RateLimitDecision(True, self.max_points, self.max_points, self.window_seconds)
        return RateLimitDecision(
            stats.remaining > 0,
            self.max_points,
            stats.remaining,
            self._reset_in(stats.reset_time),
        )

    def reset(self, client_key: str) -> None:
        """Forget the quota for ``client_key``."""
        self._strategy.clear(self.item, client_key)
        self.logger.info("Rate limit reset", client_id=client_key)

    def _reset_in(self, reset_time: float) -> int:
        return max(0, math.ceil(reset_time - time.time()))


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects over-quota callers before routing or any upstream call."""

    exempt_paths = frozenset({"/metrics"})

    def __init__(
        self,
        app,
        rate_limiter: FixedWindowRateLimiter,
        trust_forwarded_headers: bool = False,
        metrics: Optional[MetricsCollector] = None,
    ):
        super().__init__(app)
        self.rate_limiter = rate_limiter
        self.trust_forwarded_headers = trust_forwarded_headers
        self.metrics = metrics
        self.logger = get_logger("gateway.rate_limit_middleware")

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        client_id = self._get_client_id(request)
        set_client_context(client_id)
        decision = self.rate_limiter.admit(client_id)

        if not decision.allowed:
            self.logger.warning(
                "Rate limit exceeded",
                client_id=client_id,
                path=request.url.path,
                limit=decision.limit,
                reset_in_seconds=decision.reset_in_seconds,
            )
            if self.metrics:
                self.metrics.record_rate_limit_hit(coarse_path(request.url.path))
            error = RateLimitError(retry_after=decision.reset_in_seconds)
            response = failure_envelope(error).to_response()
            response.headers["Retry-After"] = str(decision.reset_in_seconds)
            self._set_rate_limit_headers(response, decision)
            return response

        response = await call_next(request)
        self._set_rate_limit_headers(response, decision)
        return response

    def _set_rate_limit_headers(self, response, decision: RateLimitDecision) -> None:
        """Propagate rate limiting metadata via standard headers."""
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        response.headers["X-RateLimit-Reset"] = str(decision.reset_in_seconds)

    def _get_client_id(self, request: Request) -> str:
        """Extract client ID from request."""
        if self.trust_forwarded_headers:
            forwarded_for = request.headers.get('X-Forwarded-For')
            if forwarded_for:
                return forwarded_for.split(',')[0].strip()

            real_ip = request.headers.get('X-Real-IP')
            if real_ip:
                return real_ip

        return request.client.host if request.client else 'unknown'
