"""Bounds estimators used for automatic clamping."""
from .approx_bounds import DEFAULT_SUCCESS_PROBABILITY, ApproxBounds

__all__ = [
    "ApproxBounds",
    "DEFAULT_SUCCESS_PROBABILITY",
]
