"""
Shared utilities for the MaxMovies Access Layer.

This package aggregates common building blocks consumed by the services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error taxonomy and failure responses
- envelope: Uniform success/failure response envelope
- base_service: FastAPI app skeleton with middleware and error handlers

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service_* packages into shared/.
"""
