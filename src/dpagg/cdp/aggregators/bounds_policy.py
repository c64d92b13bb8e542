"""
Bound resolution policy and validated configuration for bounded aggregators.

Responsibilities
  - Model manual bounds and automatic bounds as mutually exclusive variants.
  - Validate epsilon, bound exclusivity and the manual lower bound.
  - Assemble an immutable configuration consumed by the aggregators.

Usage Context
  - ``make_bounded_sum_config`` is the single entry point; aggregators never
    validate their own construction arguments.
"""
# 说明：有界聚合器的边界策略与已校验配置。
# 职责：
# - ManualBounds / AutoBounds：手动边界与自动边界两种互斥变体，杜绝“都设置 / 都不设置”的状态
# - 校验流水线：校验 epsilon → 校验边界互斥性 → 校验手动下界取负不溢出 → 生成配置
# - 未提供任何边界与估计器时，默认挂载 ApproxBounds 自动推断边界

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from dpagg.cdp.bounds.approx_bounds import ApproxBounds
from dpagg.cdp.exceptions import InvalidConfigurationError
from dpagg.cdp.mechanisms.laplace import LaplaceMechanismBuilder
from dpagg.core.data.numeric import NumericKind, resolve_numeric_kind
from dpagg.core.privacy.base_mechanism import MechanismBuilder, ValidationError
from dpagg.core.utils.param_validation import ensure, ensure_finite, ensure_type


@dataclass(frozen=True)
class ManualBounds:
    """Caller supplied clamping range; sensitivity is fixed at build time."""

    lower: Any
    upper: Any


@dataclass(frozen=True)
class AutoBounds:
    """Bounds inferred at result generation by an owned estimator."""

    estimator: ApproxBounds


BoundsPolicy = Union[ManualBounds, AutoBounds]


@dataclass(frozen=True)
class BoundedSumConfig:
    epsilon: float
    numeric_kind: NumericKind
    bounds: BoundsPolicy
    mechanism_builder: MechanismBuilder


def validate_epsilon(epsilon: Any) -> float:
    numeric = ensure_finite(epsilon, label="epsilon", error=ValidationError)
    ensure(numeric > 0, "epsilon must be a positive number", error=ValidationError)
    return numeric


def check_lower_bound(kind: NumericKind, lower: Any) -> None:
    """Reject lower bounds whose negation is not representable."""
    if kind.negation_overflows(lower):
        raise InvalidConfigurationError(
            "Lower bound cannot be higher in magnitude than the max numeric limit. "
            "If manually bounding, please increase it by at least 1."
        )


def resolve_bounds_policy(
    kind: NumericKind,
    epsilon: float,
    lower: Any = None,
    upper: Any = None,
    bounds_estimator: Optional[ApproxBounds] = None,
) -> BoundsPolicy:
    """Choose manual or automatic bounds, rejecting mixed configurations."""
    has_lower, has_upper = lower is not None, upper is not None
    if has_lower != has_upper:
        raise InvalidConfigurationError("Lower and upper bounds must either both be set or both be unset.")
    if has_lower:
        if bounds_estimator is not None:
            raise InvalidConfigurationError("Manual bounds and a bounds estimator cannot both be configured.")
        lo = kind.coerce(lower, label="lower")
        hi = kind.coerce(upper, label="upper")
        if kind.is_nan(lo) or kind.is_nan(hi):
            raise InvalidConfigurationError("Bounds must not be NaN.")
        if lo > hi:
            raise InvalidConfigurationError("Lower bound cannot be greater than upper bound.")
        return ManualBounds(lower=lo, upper=hi)

    if bounds_estimator is None:
        bounds_estimator = ApproxBounds(epsilon, numeric_kind=kind)
    ensure_type(bounds_estimator, (ApproxBounds,), label="bounds_estimator")
    if bounds_estimator.numeric_kind != kind:
        raise InvalidConfigurationError(
            f"Bounds estimator numeric kind {bounds_estimator.numeric_kind.name} does not match {kind.name}."
        )
    return AutoBounds(estimator=bounds_estimator)


def make_bounded_sum_config(
    epsilon: float,
    *,
    lower: Any = None,
    upper: Any = None,
    bounds_estimator: Optional[ApproxBounds] = None,
    numeric_kind: Any = None,
    mechanism_builder: Optional[MechanismBuilder] = None,
) -> BoundedSumConfig:
    """Validate construction arguments and return a ready-to-use configuration."""
    eps = validate_epsilon(epsilon)
    kind = resolve_numeric_kind(numeric_kind)
    bounds = resolve_bounds_policy(kind, eps, lower, upper, bounds_estimator)
    if isinstance(bounds, ManualBounds):
        check_lower_bound(kind, bounds.lower)
    builder = mechanism_builder if mechanism_builder is not None else LaplaceMechanismBuilder()
    ensure_type(builder, (MechanismBuilder,), label="mechanism_builder")
    return BoundedSumConfig(epsilon=eps, numeric_kind=kind, bounds=bounds, mechanism_builder=builder)
