"""Incremental central DP aggregators."""

from .base import BaseAggregator
from .bounds_policy import (
    AutoBounds,
    BoundedSumConfig,
    ManualBounds,
    check_lower_bound,
    make_bounded_sum_config,
)
from .bounded_sum import (
    BoundedSum,
    MechanismBuilt,
    MechanismUnbuilt,
    build_bounded_sum,
)

__all__ = [
    "BaseAggregator",
    "AutoBounds",
    "BoundedSumConfig",
    "ManualBounds",
    "check_lower_bound",
    "make_bounded_sum_config",
    "BoundedSum",
    "MechanismBuilt",
    "MechanismUnbuilt",
    "build_bounded_sum",
]
