"""
Shared configuration management for the MaxMovies Access Gateway.
"""

from typing import Any, Optional

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationError


ENVIRONMENTS = ("development", "production", "test")


class GatewayConfig(BaseSettings):
    """Gateway configuration, validated once at startup."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Upstream provider
    movie_api_base_url: str
    movie_api_key: str
    movie_api_timeout_seconds: float = Field(default=15.0, gt=0)
    movie_api_health_timeout_seconds: float = Field(default=5.0, gt=0)

    # Listener
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    api_prefix: str = "/api/v2"
    shutdown_grace_seconds: int = Field(default=30, gt=0)

    # Rate limiting
    rate_limit_max_requests: int = Field(default=100, gt=0)
    rate_limit_window_ms: int = Field(default=900_000, gt=0)
    trust_forwarded_headers: bool = False

    # Environment
    environment: str = Field(
        default="production",
        validation_alias=AliasChoices("environment", "node_env"),
    )
    log_level: str = "info"

    @field_validator("movie_api_base_url", "movie_api_key")
    @classmethod
    def _require_non_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("movie_api_base_url")
    @classmethod
    def _require_http_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("must be an http(s) URL")
        return value.rstrip("/")

    @field_validator("environment")
    @classmethod
    def _known_environment(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ENVIRONMENTS:
            raise ValueError(f"must be one of {', '.join(ENVIRONMENTS)}")
        return value

    @field_validator("api_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        return "/" + value.strip("/") if value.strip("/") else ""

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def rate_limit_window_seconds(self) -> float:
        return self.rate_limit_window_ms / 1000


def get_config(_env_file: Optional[str] = ".env", **overrides: Any) -> GatewayConfig:
    """Build and validate the gateway configuration.

    This is the only construction path; a missing base URL or credential
    stops the process before it starts listening.
    """
    try:
        return GatewayConfig(_env_file=_env_file, **overrides)
    except ValidationError as exc:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
        raise ConfigurationError(
            f"Invalid gateway configuration: {', '.join(fields)} "
            "(MOVIE_API_BASE_URL and MOVIE_API_KEY must be set)"
        ) from exc
