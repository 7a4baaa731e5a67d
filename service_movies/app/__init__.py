"""
Movie Gateway Service package for the MaxMovies Access Layer.

The gateway fronts client requests to the movie-metadata provider,
enforcing:
- Rate limiting: per-client fixed window, in memory
- Credential injection and timeouts on every upstream call
- A uniform success/failure envelope on every reply

Structure:
- app.main: FastAPI app, routes, and middleware wiring.
- app.adapters: HTTP client for the movie API.
- app.ratelimit: Fixed-window limiter and middleware.
- app.domain: Request dispatching (validate, call, envelope).
"""
