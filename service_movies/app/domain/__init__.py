"""
Domain utilities for the Movie Gateway Service.

Request processing that does not belong to adapters or transport-specific
layers: parameter validation and mapping outcomes to envelopes.
"""

from .dispatcher import MovieRequestDispatcher

__all__ = [
    "MovieRequestDispatcher",
]
