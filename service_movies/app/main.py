"""
Movie gateway service for the MaxMovies Access Layer.
"""

from typing import Optional

from fastapi import APIRouter, Query

from shared.base_service import BaseService
from shared.config import GatewayConfig, get_config
from service_movies.app.adapters.movie_api_client import MovieAPIClient
from service_movies.app.domain.dispatcher import MovieRequestDispatcher
from service_movies.app.ratelimit.fixed_window import FixedWindowRateLimiter, RateLimitMiddleware


class MovieGatewayService(BaseService):
    """Read-only gateway in front of the movie-metadata provider."""

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        client: Optional[MovieAPIClient] = None,
        rate_limiter: Optional[FixedWindowRateLimiter] = None,
    ):
        config = config or get_config()
        self.rate_limiter = rate_limiter or FixedWindowRateLimiter(
            max_points=config.rate_limit_max_requests,
            window_seconds=config.rate_limit_window_seconds,
        )
        super().__init__("gateway", config)

        self._owns_client = client is None
        self.client = client or MovieAPIClient(
            self.config.movie_api_base_url,
            self.config.movie_api_key,
            timeout=self.config.movie_api_timeout_seconds,
            health_timeout=self.config.movie_api_health_timeout_seconds,
            metrics=self.metrics,
        )
        self.dispatcher = MovieRequestDispatcher(
            self.client,
            api_prefix=self.config.api_prefix,
            environment=self.config.environment,
        )

        self._setup_gateway_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.gateway_service = self

    def _setup_service_middleware(self) -> None:
        self.app.add_middleware(
            RateLimitMiddleware,
            rate_limiter=self.rate_limiter,
            trust_forwarded_headers=self.config.trust_forwarded_headers,
            metrics=self.metrics,
        )

    async def on_startup(self) -> None:
        self.logger.info(
            "MaxMovies gateway started",
            port=self.config.port,
            environment=self.config.environment,
            api_base=self.config.api_prefix,
            endpoints=sorted(self.dispatcher.endpoints().values()) + [f"{self.config.api_prefix}/health"],
            rate_limit=self.rate_limiter.max_points,
            rate_limit_window_seconds=self.rate_limiter.window_seconds,
        )

    async def on_shutdown(self) -> None:
        self.logger.info("Shutting down MaxMovies gateway")
        if self._owns_client:
            await self.client.aclose()

    def _setup_gateway_routes(self):
        """Set up movie gateway routes."""
        router = APIRouter(prefix=self.config.api_prefix, redirect_slashes=False)
        dispatcher = self.dispatcher

        @router.get("/homepage")
        async def homepage():
            """Catalog homepage."""
            return (await dispatcher.homepage()).to_response()

        @router.get("/trending")
        async def trending():
            """Trending titles."""
            return (await dispatcher.trending()).to_response()

        # ":path" lets an empty segment reach validation instead of the 404 handler.
        @router.get("/search/{query:path}")
        async def search(query: str, page: Optional[str] = Query(None)):
            """Search titles by free text."""
            return (await dispatcher.search(query, page)).to_response()

        @router.get("/info/{item_id:path}")
        async def info(item_id: str):
            """Item detail."""
            return (await dispatcher.info(item_id)).to_response()

        @router.get("/sources/{item_id:path}")
        async def sources(
            item_id: str,
            season: Optional[str] = Query(None),
            episode: Optional[str] = Query(None),
        ):
            """Playback sources, optionally for one season/episode."""
            return (await dispatcher.sources(item_id, season, episode)).to_response()

        @router.get("/health")
        async def health():
            """Gateway and movie API health."""
            envelope = await dispatcher.health()
            movie_api = envelope.body.get("movieApi", {})
            self.metrics.record_health_check(movie_api.get("status", "error"))
            return envelope.to_response()

        self.app.include_router(router)

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "gateway",
                "message": "MaxMovies Backend API",
                "version": self.version,
                "api_base": self.config.api_prefix,
                "endpoints": {**dispatcher.endpoints(), "health": f"{self.config.api_prefix}/health"},
            }


def create_app(
    config: Optional[GatewayConfig] = None,
    client: Optional[MovieAPIClient] = None,
    rate_limiter: Optional[FixedWindowRateLimiter] = None,
):
    """Create FastAPI application."""
    service = MovieGatewayService(config=config, client=client, rate_limiter=rate_limiter)
    return service.app


def main() -> None:
    service = MovieGatewayService()
    service.run()


if __name__ == "__main__":
    main()
