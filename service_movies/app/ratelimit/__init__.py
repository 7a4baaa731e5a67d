"""
Rate limiting package for the Gateway.

Holds the fixed-window limiter and the middleware that enforces
per-client request budgets before any routing happens.
"""

from .fixed_window import FixedWindowRateLimiter, RateLimitDecision, RateLimitMiddleware

__all__ = [
    "FixedWindowRateLimiter",
    "RateLimitDecision",
    "RateLimitMiddleware",
]
