"""
Differentially private bounded sum.

Responsibilities
  - Clamp and accumulate values under manual bounds, or accumulate
    sign-partitioned partial sums while an estimator infers the bounds.
  - Resolve bounds, recompute sensitivity and add calibrated noise when a
    result is generated.
  - Serialize partial state and merge summaries from other shards.

Usage Context
  - Build with ``build_bounded_sum``; feed values with ``add_entry`` and call
    ``generate_result`` once per budget spend.

Limitations
  - Not thread-safe; shard the data and merge summaries instead.
  - Integral sums are accumulated with python ints and never overflow.
"""
# 说明：差分隐私有界求和聚合器。
# 职责：
# - 手动边界：写入时立即裁剪到 [lower, upper] 并累加到单个累加槽
# - 自动边界：原值交给 ApproxBounds 计数，同时按符号拆分写入正/负部分和序列（长度 = 正桶数）
# - 生成结果：自动模式先用一半预算估计边界并对称化，再由部分和还原裁剪后的真实和；
#   按 max(|lower|, |upper|) 重建机制，用剩余预算附加置信区间并加噪，整数种类取整
# - 序列化 / 合并：合并前完成全部校验，失败时不修改自身状态

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, Sequence, Union

from dpagg.cdp.aggregators.base import BaseAggregator
from dpagg.cdp.aggregators.bounds_policy import (
    AutoBounds,
    BoundedSumConfig,
    ManualBounds,
    check_lower_bound,
    make_bounded_sum_config,
)
from dpagg.cdp.bounds.approx_bounds import ApproxBounds
from dpagg.cdp.exceptions import InvalidConfigurationError
from dpagg.cdp.types import ConfidenceInterval, Output, Summary
from dpagg.core.data.numeric import NumericKind, T
from dpagg.core.privacy.base_mechanism import (
    BaseMechanism,
    MechanismBuilder,
    MechanismError,
    ValidationError,
    validate_privacy_budget,
)
from dpagg.core.utils.config import get_config
from dpagg.core.utils.logging import get_logger
from dpagg.core.utils.param_validation import validate_arguments

logger = get_logger(__name__)


@dataclass(frozen=True)
class MechanismUnbuilt:
    """No mechanism yet; sensitivity is unknown or has changed."""


@dataclass(frozen=True)
class MechanismBuilt:
    mechanism: BaseMechanism
    sensitivity: float


MechanismState = Union[MechanismUnbuilt, MechanismBuilt]

_UNBUILT = MechanismUnbuilt()


def _identity(value: Any) -> Any:
    return value


def _budget_or_zero(privacy_budget: Any) -> float:
    return validate_privacy_budget(privacy_budget, allow_zero=True)


class BoundedSum(BaseAggregator, Generic[T]):
    """
    Incrementally computes a differentially private sum of clamped values.

    - Configuration
      - A validated ``BoundedSumConfig``: epsilon, numeric kind, bounds
        policy (manual or automatic) and a mechanism builder.

    - Behavior
      - Manual bounds: the mechanism is built at construction so unusable
        sensitivities fail early.
      - Automatic bounds: half of each result's budget goes to bound
        discovery; bounds are made symmetric around zero.
      - A zero budget returns an empty Output without touching any state.

    - Usage Notes
      - ``privacy_budget`` is the fraction of epsilon to spend, in [0, 1].
    """

    SUMMARY_TYPE = "BoundedSumSummary"

    def __init__(self, config: BoundedSumConfig):
        self.epsilon: float = config.epsilon
        self.numeric_kind: NumericKind = config.numeric_kind
        self._bounds = config.bounds
        self._mechanism_builder: MechanismBuilder = config.mechanism_builder.clone()
        self._mechanism_state: MechanismState = _UNBUILT
        zero = self.numeric_kind.zero()
        if isinstance(self._bounds, AutoBounds):
            # 每个正桶一个部分和槽位；负部分和与正部分和等长
            num_bins = self._bounds.estimator.num_positive_bins()
            self._pos_sum: List[Any] = [zero] * num_bins
            self._neg_sum: List[Any] = [zero] * num_bins
            self._lower: Optional[Any] = None
            self._upper: Optional[Any] = None
        else:
            self._pos_sum = [zero]
            self._neg_sum = []
            self._lower = self._bounds.lower
            self._upper = self._bounds.upper
            self._build_mechanism()

    # Accessors ---------------------------------------------------------------
    @property
    def automatic_bounds(self) -> bool:
        return isinstance(self._bounds, AutoBounds)

    @property
    def bounds_estimator(self) -> Optional[ApproxBounds]:
        return self._bounds.estimator if isinstance(self._bounds, AutoBounds) else None

    @property
    def lower(self) -> Optional[Any]:
        return self._lower

    @property
    def upper(self) -> Optional[Any]:
        return self._upper

    @property
    def partial_positive(self) -> Sequence[Any]:
        return tuple(self._pos_sum)

    @property
    def partial_negative(self) -> Sequence[Any]:
        return tuple(self._neg_sum)

    @property
    def mechanism(self) -> Optional[BaseMechanism]:
        state = self._mechanism_state
        return state.mechanism if isinstance(state, MechanismBuilt) else None

    # Mechanism lifecycle -----------------------------------------------------
    def _build_mechanism(self) -> BaseMechanism:
        state = self._mechanism_state
        if isinstance(state, MechanismBuilt):
            return state.mechanism
        sensitivity = float(max(abs(self._lower), abs(self._upper)))
        mechanism = (
            self._mechanism_builder.clone()
            .set_epsilon(self.epsilon)
            .set_sensitivity(sensitivity)
            .build()
        )
        self._mechanism_state = MechanismBuilt(mechanism=mechanism, sensitivity=sensitivity)
        logger.debug("Built %s with sensitivity %s.", mechanism.mechanism_id, sensitivity)
        return mechanism

    def _drop_mechanism(self) -> None:
        self._mechanism_state = _UNBUILT

    # Ingestion ---------------------------------------------------------------
    def add_entry(self, value: Any) -> None:
        kind = self.numeric_kind
        if kind.is_nan(value):
            return
        numeric = kind.coerce(value)
        if isinstance(self._bounds, ManualBounds):
            self._pos_sum[0] += kind.clamp(self._lower, self._upper, numeric)
            return
        estimator = self._bounds.estimator
        estimator.add_entry(numeric)
        if numeric >= 0:
            estimator.add_to_partial_sums(self._pos_sum, numeric)
        else:
            estimator.add_to_partial_sums(self._neg_sum, numeric)

    # Result generation -------------------------------------------------------
    @validate_arguments({"privacy_budget": _budget_or_zero})
    def generate_result(self, privacy_budget: float = 1.0) -> Output:
        if privacy_budget == 0.0:
            return Output()

        output = Output()
        remaining_budget = privacy_budget
        if isinstance(self._bounds, AutoBounds):
            bounds_budget = privacy_budget / 2
            remaining_budget -= bounds_budget
            true_sum = self._resolve_automatic_bounds(output, bounds_budget)
        else:
            true_sum = self._pos_sum[0]

        mechanism = self._build_mechanism()
        interval = self._noise_interval_or_none(mechanism, remaining_budget)
        if interval is not None:
            output.mutable_error_report().noise_confidence_interval = interval

        noisy_sum = mechanism.add_noise(true_sum, remaining_budget)
        output.add_element(self.numeric_kind.round_result(noisy_sum))
        return output

    def _resolve_automatic_bounds(self, output: Output, bounds_budget: float) -> float:
        estimator = self._bounds.estimator
        kind = self.numeric_kind
        bounds = estimator.generate_result(bounds_budget)
        lower = kind.coerce(bounds.elements[0], label="lower")
        upper = kind.coerce(bounds.elements[1], label="upper")
        check_lower_bound(kind, lower)

        # 敏感度只由绝对值较大的一侧决定，另一侧取其相反数以减少裁剪
        self._lower = min(lower, -upper)
        self._upper = max(upper, -lower)
        logger.debug("Resolved automatic bounds [%s, %s].", self._lower, self._upper)

        true_sum = estimator.compute_from_partials(
            self._pos_sum, self._neg_sum, _identity, self._lower, self._upper, 0
        )
        output.mutable_error_report().bounding_report = estimator.get_bounding_report(self._lower, self._upper)
        self._drop_mechanism()
        return true_sum

    def _noise_interval_or_none(self, mechanism: BaseMechanism, privacy_budget: float) -> Optional[ConfidenceInterval]:
        level = get_config().default_confidence_level
        try:
            return mechanism.noise_confidence_interval(level, privacy_budget)
        except MechanismError as exc:
            logger.debug("Noise confidence interval unavailable: %s", exc)
            return None

    def noise_confidence_interval(self, confidence_level: float, privacy_budget: float = 1.0) -> ConfidenceInterval:
        """Noise interval for manual bounds; automatic bounds have no fixed sensitivity."""
        if isinstance(self._bounds, AutoBounds):
            raise InvalidConfigurationError(
                "NoiseConfidenceInterval changes per result generation for "
                "automatically-determined sensitivity."
            )
        return self._build_mechanism().noise_confidence_interval(confidence_level, privacy_budget)

    # Reset / accounting ------------------------------------------------------
    def reset(self) -> None:
        zero = self.numeric_kind.zero()
        for index in range(len(self._pos_sum)):
            self._pos_sum[index] = zero
        for index in range(len(self._neg_sum)):
            self._neg_sum[index] = zero
        if isinstance(self._bounds, AutoBounds):
            self._bounds.estimator.reset_state()
            self._lower = None
            self._upper = None
        self._drop_mechanism()
        logger.debug("Bounded sum state reset.")

    def memory_used(self) -> int:
        memory = sys.getsizeof(self) + sys.getsizeof(self._pos_sum) + sys.getsizeof(self._neg_sum)
        if isinstance(self._bounds, AutoBounds):
            memory += self._bounds.estimator.memory_used()
        state = self._mechanism_state
        if isinstance(state, MechanismBuilt):
            memory += state.mechanism.memory_used()
        memory += self._mechanism_builder.memory_used()
        return memory

    # Summary / merge ---------------------------------------------------------
    def serialize(self) -> Summary:
        data = {
            "type": self.SUMMARY_TYPE,
            "pos_sum": list(self._pos_sum),
            "neg_sum": list(self._neg_sum),
        }
        if isinstance(self._bounds, AutoBounds):
            data["bounds_summary"] = self._bounds.estimator.serialize().data
        return Summary(data=data)

    def _unpack_partials(self, raw: Any, label: str) -> List[Any]:
        if not isinstance(raw, (list, tuple)):
            raise InvalidConfigurationError(f"Bounded sum summary is missing {label} values.")
        try:
            return [self.numeric_kind.coerce_sum(value, label=label) for value in raw]
        except ValidationError as exc:
            raise InvalidConfigurationError(f"Bounded sum summary holds invalid {label} values.") from exc

    def merge(self, summary: Summary) -> None:
        """Add a peer shard's partial sums; raises without modifying state on mismatch."""
        if not summary.has_data():
            raise InvalidConfigurationError("Cannot merge summary with no bounded sum data.")
        if summary.payload_type != self.SUMMARY_TYPE:
            raise InvalidConfigurationError("Bounded sum summary unable to be unpacked.")
        pos = self._unpack_partials(summary.data.get("pos_sum"), "pos_sum")
        neg = self._unpack_partials(summary.data.get("neg_sum"), "neg_sum")
        if len(pos) != len(self._pos_sum) or len(neg) != len(self._neg_sum):
            raise InvalidConfigurationError(
                "Merged BoundedSum must have the same amount of partial sum values as this BoundedSum."
            )
        if isinstance(self._bounds, AutoBounds):
            bounds_data = summary.data.get("bounds_summary")
            if bounds_data is None:
                raise InvalidConfigurationError("Bounded sum summary is missing its bounds estimator summary.")
            # 估计器合并在写入前完成全部校验，失败时双方状态均不变
            self._bounds.estimator.merge(Summary(data=bounds_data))

        for index, value in enumerate(pos):
            self._pos_sum[index] += value
        for index, value in enumerate(neg):
            self._neg_sum[index] += value
        logger.debug("Merged bounded sum summary with %d partial slots.", len(pos))

    def __repr__(self) -> str:
        mode = "auto" if isinstance(self._bounds, AutoBounds) else "manual"
        return (
            f"<{self.__class__.__name__} kind={self.numeric_kind.name} mode={mode} "
            f"eps={self.epsilon} lower={self._lower} upper={self._upper}>"
        )


def build_bounded_sum(
    epsilon: float,
    *,
    lower: Any = None,
    upper: Any = None,
    bounds_estimator: Optional[ApproxBounds] = None,
    numeric_kind: Any = None,
    mechanism_builder: Optional[MechanismBuilder] = None,
) -> BoundedSum:
    """
    Validate arguments and construct a ``BoundedSum``.

    Supply both ``lower`` and ``upper`` for manual bounds; otherwise bounds are
    inferred by ``bounds_estimator`` (a default ``ApproxBounds`` when omitted).
    """
    config = make_bounded_sum_config(
        epsilon,
        lower=lower,
        upper=upper,
        bounds_estimator=bounds_estimator,
        numeric_kind=numeric_kind,
        mechanism_builder=mechanism_builder,
    )
    return BoundedSum(config)
