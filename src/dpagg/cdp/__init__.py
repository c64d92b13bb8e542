"""Entry point for the Centralised Differential Privacy (CDP) aggregation package."""

from __future__ import annotations

from .aggregators import BoundedSum, build_bounded_sum
from .bounds import ApproxBounds
from .exceptions import AggregatorError, BoundsEstimationError, InvalidConfigurationError
from .mechanisms import LaplaceMechanism, LaplaceMechanismBuilder
from .types import BoundingReport, ConfidenceInterval, ErrorReport, Output, Summary

__all__ = [
    "BoundedSum",
    "build_bounded_sum",
    "ApproxBounds",
    "AggregatorError",
    "BoundsEstimationError",
    "InvalidConfigurationError",
    "LaplaceMechanism",
    "LaplaceMechanismBuilder",
    "BoundingReport",
    "ConfidenceInterval",
    "ErrorReport",
    "Output",
    "Summary",
]
