"""
Differentially private approximate bounds over a log-scale histogram.

Responsibilities
  - Count entries in positive and negative logarithmic bins.
  - Infer a [lower, upper] clamping range from noisy bin counts.
  - Place values into per-bin partial accumulators so that clamped
    aggregates can be reconstructed once the final bounds are known.
  - Report how many entries fall outside the chosen bounds.
  - Serialize and merge bin counts across shards.

Usage Context
  - Owned by aggregators running in automatic-bounds mode.

Limitations
  - ``compute_from_partials`` is exact only when bounds lie on bin edges;
    bounds emitted by ``generate_result`` always do.
"""
# 说明：基于对数分桶直方图的差分隐私近似边界估计器。
# 职责：
# - 按数值绝对值落入对数分桶：第 i 个桶覆盖 (e[i-1], e[i]]，e[i] = scale * base**i，最后一个桶的上沿为数值上限
# - generate_result：对每个桶计数加拉普拉斯噪声，取超过阈值 k 的最低/最高桶作为下界/上界
# - add_to_partials：将数值按桶拆分为增量写入部分和序列，确定最终边界后可还原裁剪后的聚合值
# - compute_from_partials / get_bounding_report：在给定边界下还原聚合值，并统计被裁剪的条目数
# - serialize / merge：分片之间合并桶计数

from __future__ import annotations

import bisect
import math
import sys
from typing import Any, Callable, Generic, Iterable, List, MutableSequence, Optional, Sequence, Tuple

from dpagg.cdp.exceptions import BoundsEstimationError, InvalidConfigurationError
from dpagg.cdp.mechanisms.laplace import LaplaceMechanismBuilder
from dpagg.cdp.types import BoundingReport, Output, Summary
from dpagg.core.data.numeric import NumericKind, T, resolve_numeric_kind
from dpagg.core.privacy.base_mechanism import MechanismBuilder, ValidationError, validate_privacy_budget
from dpagg.core.utils.logging import get_logger
from dpagg.core.utils.param_validation import ensure, ensure_finite

logger = get_logger(__name__)

Transform = Callable[[Any], Any]

DEFAULT_SUCCESS_PROBABILITY = 1 - 1e-9


def _identity(value: Any) -> Any:
    return value


class ApproxBounds(Generic[T]):
    """
    Approximate bounds estimator for numeric streams.

    - Configuration
      - epsilon: Privacy budget used when emitting bounds.
      - numeric_kind: Value kind of the entries (int64, float64, ...).
      - scale / base: Edge of the first bin and growth factor of later bins.
      - num_bins: Bins per sign; defaults to covering the kind's full range.
      - success_probability: Probability that the derived threshold
        suppresses every empty bin; ignored when ``threshold`` is given.
      - max_contributions: Entries a single record may add (count sensitivity).

    - Behavior
      - Bounds are chosen as the outermost bins whose noisy counts reach the
        threshold, scanning from the most negative bin to the most positive.

    - Usage Notes
      - Aggregators size their partial accumulators with ``num_positive_bins``.
    """

    SUMMARY_TYPE = "ApproxBoundsSummary"

    def __init__(
        self,
        epsilon: float,
        *,
        numeric_kind: Any = None,
        scale: float = 1,
        base: float = 2,
        num_bins: Optional[int] = None,
        success_probability: float = DEFAULT_SUCCESS_PROBABILITY,
        threshold: Optional[float] = None,
        max_contributions: int = 1,
        mechanism_builder: Optional[MechanismBuilder] = None,
        rng: Optional[Any] = None,
    ):
        self.epsilon = ensure_finite(epsilon, label="epsilon", error=ValidationError)
        ensure(self.epsilon > 0, "epsilon must be positive", error=ValidationError)
        self.numeric_kind: NumericKind = resolve_numeric_kind(numeric_kind)
        self.scale = ensure_finite(scale, label="scale", error=ValidationError)
        self.base = ensure_finite(base, label="base", error=ValidationError)
        ensure(self.scale > 0, "scale must be positive", error=ValidationError)
        ensure(self.base > 1, "base must be greater than 1", error=ValidationError)
        if self.numeric_kind.integral:
            # 整数种类下桶边界必须为整数且严格递增
            ensure(
                self.scale.is_integer() and self.base.is_integer(),
                "scale and base must be integral for integral numeric kinds",
                error=ValidationError,
            )
        ensure(
            0.0 < float(success_probability) < 1.0,
            "success_probability must lie strictly between 0 and 1",
            error=ValidationError,
        )
        self.success_probability = float(success_probability)
        if threshold is not None:
            threshold = ensure_finite(threshold, label="threshold", error=ValidationError)
            ensure(threshold >= 0, "threshold must be non-negative", error=ValidationError)
        self.threshold = threshold
        ensure(
            isinstance(max_contributions, int) and max_contributions >= 1,
            "max_contributions must be a positive integer",
            error=ValidationError,
        )
        self.max_contributions = max_contributions

        if num_bins is None:
            num_bins = self._default_num_bins()
        ensure(isinstance(num_bins, int) and num_bins >= 1, "num_bins must be a positive integer", error=ValidationError)
        self._edges: List[Any] = self._compute_edges(num_bins)
        self._pos_bins: List[int] = [0] * num_bins
        self._neg_bins: List[int] = [0] * num_bins
        self._mechanism_builder = (mechanism_builder or LaplaceMechanismBuilder(rng=rng)).clone()

    # Bin layout --------------------------------------------------------------
    def _default_num_bins(self) -> int:
        # 最少的桶数，使最后一个桶的上沿覆盖数值种类的最大值（int64 为 64，float64 为 1025）
        max_value = self.numeric_kind.max_value
        num_bins, edge = 1, self.scale
        while edge < max_value:
            edge *= self.base
            num_bins += 1
        return num_bins

    def _compute_edges(self, num_bins: int) -> List[Any]:
        max_value = self.numeric_kind.max_value
        edges: List[Any] = []
        edge = self.scale
        for index in range(num_bins):
            if index == num_bins - 1 or edge >= max_value:
                edges.append(max_value)
            else:
                edges.append(int(edge) if self.numeric_kind.integral else edge)
            edge *= self.base
        return edges

    @property
    def boundaries(self) -> Sequence[Any]:
        return tuple(self._edges)

    def num_positive_bins(self) -> int:
        return len(self._pos_bins)

    def _bin_index(self, magnitude: Any) -> int:
        return min(bisect.bisect_left(self._edges, magnitude), len(self._edges) - 1)

    def _inner_edge(self, index: int) -> Any:
        return self.numeric_kind.zero() if index == 0 else self._edges[index - 1]

    # Ingestion ---------------------------------------------------------------
    def add_entry(self, value: Any) -> None:
        if self.numeric_kind.is_nan(value):
            return
        numeric = self.numeric_kind.coerce(value)
        index = self._bin_index(abs(numeric))
        if numeric >= 0:
            self._pos_bins[index] += 1
        else:
            self._neg_bins[index] += 1

    def add_entries(self, values: Iterable[Any]) -> None:
        for value in values:
            self.add_entry(value)

    def add_to_partial_sums(self, sums: MutableSequence[Any], value: Any) -> None:
        """Route ``value`` into per-bin partial sums (identity transform)."""
        self.add_to_partials(sums, value, _identity)

    def add_to_partials(self, partials: MutableSequence[Any], value: Any, transform: Transform) -> None:
        """
        Split ``transform(value)`` into per-bin increments.

        Partial ``i`` below the value's bin receives the transform's growth
        across bin ``i``; the value's own bin receives the remainder, so the
        prefix sum up to any bin equals ``transform`` of the value clamped to
        that bin's outer edge.
        """
        if self.numeric_kind.is_nan(value):
            return
        ensure(
            len(partials) == len(self._edges),
            "partials must have one slot per positive bin",
            error=ValidationError,
        )
        numeric = self.numeric_kind.coerce(value)
        sign = 1 if numeric >= 0 else -1
        magnitude = abs(numeric)
        index = self._bin_index(magnitude)
        previous = transform(self.numeric_kind.zero())
        for i in range(index):
            current = transform(sign * self._edges[i])
            partials[i] += current - previous
            previous = current
        clipped = sign * min(magnitude, self._edges[-1])
        partials[index] += transform(clipped) - previous

    # Result generation -------------------------------------------------------
    def _threshold_for(self, privacy_budget: float) -> float:
        if self.threshold is not None:
            return self.threshold
        # k = -ln(2 - 2 p^(1/(m-1))) * Δ / ε，m 为正负桶总数
        total_bins = 2 * len(self._edges)
        exponent = math.log(self.success_probability) / max(total_bins - 1, 1)
        tail = -2.0 * math.expm1(exponent)
        return -math.log(tail) * self.max_contributions / (self.epsilon * privacy_budget)

    def generate_result(self, privacy_budget: float = 1.0) -> Output:
        """Emit ``Output([lower, upper])`` using ``privacy_budget`` of epsilon."""
        budget = validate_privacy_budget(privacy_budget)
        mechanism = (
            self._mechanism_builder.clone()
            .set_epsilon(self.epsilon)
            .set_sensitivity(self.max_contributions)
            .build()
        )
        threshold = self._threshold_for(budget)
        noisy_pos = [mechanism.add_noise(count, budget) for count in self._pos_bins]
        noisy_neg = [mechanism.add_noise(count, budget) for count in self._neg_bins]

        lower = self._find_lower(noisy_pos, noisy_neg, threshold)
        upper = self._find_upper(noisy_pos, noisy_neg, threshold)
        if lower is None or upper is None:
            raise BoundsEstimationError(
                "Bin count threshold was too large to find approximate bounds. Either run over a "
                "larger dataset or decrease success_probability and try again."
            )
        logger.debug("Approximate bounds [%s, %s] found with threshold %.3f.", lower, upper, threshold)
        return Output(elements=[lower, upper])

    def _find_lower(self, noisy_pos: Sequence[float], noisy_neg: Sequence[float], threshold: float) -> Any:
        for index in reversed(range(len(noisy_neg))):
            if noisy_neg[index] >= threshold:
                return -self._edges[index]
        for index in range(len(noisy_pos)):
            if noisy_pos[index] >= threshold:
                return self._inner_edge(index)
        return None

    def _find_upper(self, noisy_pos: Sequence[float], noisy_neg: Sequence[float], threshold: float) -> Any:
        for index in reversed(range(len(noisy_pos))):
            if noisy_pos[index] >= threshold:
                return self._edges[index]
        for index in range(len(noisy_neg)):
            if noisy_neg[index] >= threshold:
                return -self._inner_edge(index)
        return None

    # Reconstruction ----------------------------------------------------------
    def _clamped_total(self, partials: Sequence[Any], counts: Sequence[int], bound: Any, sign: int, transform: Transform) -> Any:
        # 单侧（正或负）所有条目 transform(sign * min(|v|, bound)) - transform(0) 之和
        if bound == 0:
            return 0
        index = self._bin_index(bound)
        total = sum(partials[:index])
        if bound == self._edges[index]:
            return total + partials[index]
        # 边界落在桶内部时，将该桶及更外侧的条目近似视为全部超出边界
        overflow = sum(counts[index:])
        growth = transform(sign * bound) - transform(sign * self._inner_edge(index))
        return total + overflow * growth

    def compute_from_partials(
        self,
        pos_partials: Sequence[Any],
        neg_partials: Sequence[Any],
        transform: Transform,
        lower: Any,
        upper: Any,
        count: int,
    ) -> float:
        """
        Fold stored partials into ``sum(transform(clamp(v)))`` over all entries.

        Each entry contributes relative to ``transform(0)``; ``count`` entries'
        worth of ``transform(0)`` is added back as a baseline.
        """
        n = len(self._edges)
        if len(pos_partials) != n or len(neg_partials) != n:
            raise ValidationError("partials must have one slot per positive bin")
        if lower > upper:
            raise ValidationError("lower bound must not exceed upper bound")
        baseline = transform(self.numeric_kind.zero())
        n_pos = sum(self._pos_bins)
        n_neg = sum(self._neg_bins)

        if upper < 0:
            pos_total = n_pos * (transform(upper) - baseline)
        else:
            pos_total = self._clamped_total(pos_partials, self._pos_bins, upper, 1, transform)
            if lower > 0:
                pos_total -= self._clamped_total(pos_partials, self._pos_bins, lower, 1, transform)
                pos_total += n_pos * (transform(lower) - baseline)

        if lower > 0:
            neg_total = n_neg * (transform(lower) - baseline)
        else:
            neg_total = self._clamped_total(neg_partials, self._neg_bins, -lower, -1, transform)
            if upper < 0:
                neg_total -= self._clamped_total(neg_partials, self._neg_bins, -upper, -1, transform)
                neg_total += n_neg * (transform(upper) - baseline)

        return float(pos_total + neg_total + count * baseline)

    def get_bounding_report(self, lower: Any, upper: Any) -> BoundingReport:
        """Count entries whose bins lie entirely outside ``[lower, upper]``."""
        outside = 0
        for index in range(len(self._edges)):
            inner, outer = self._inner_edge(index), self._edges[index]
            # 正桶取值区间：bin 0 为 [0, e0]，其余为 (e[i-1], e[i]]
            above = (upper < 0) if index == 0 else (inner >= upper)
            if above or outer < lower:
                outside += self._pos_bins[index]
            # 负桶取值区间：bin 0 为 [-e0, 0)，其余为 [-e[i], -e[i-1])
            below = (lower >= 0) if index == 0 else (-inner <= lower)
            if below or -outer > upper:
                outside += self._neg_bins[index]
        return BoundingReport(
            lower_bound=lower,
            upper_bound=upper,
            num_inputs=sum(self._pos_bins) + sum(self._neg_bins),
            num_outside=outside,
        )

    # Summary / merge ---------------------------------------------------------
    def serialize(self) -> Summary:
        return Summary(
            data={
                "type": self.SUMMARY_TYPE,
                "pos_bin_count": list(self._pos_bins),
                "neg_bin_count": list(self._neg_bins),
            }
        )

    def _unpack_summary(self, summary: Summary) -> Tuple[List[int], List[int]]:
        if not summary.has_data():
            raise InvalidConfigurationError("Cannot merge summary with no approximate bounds data.")
        if summary.payload_type != self.SUMMARY_TYPE:
            raise InvalidConfigurationError("Approximate bounds summary unable to be unpacked.")
        pos = self._validated_counts(summary.data.get("pos_bin_count"))
        neg = self._validated_counts(summary.data.get("neg_bin_count"))
        if len(pos) != len(self._pos_bins) or len(neg) != len(self._neg_bins):
            raise InvalidConfigurationError(
                "Merged approximate bounds must have the same number of bins as this estimator."
            )
        return pos, neg

    def merge(self, summary: Summary) -> None:
        """Add a peer's bin counts; raises without modifying state on mismatch."""
        pos, neg = self._unpack_summary(summary)
        for index, value in enumerate(pos):
            self._pos_bins[index] += value
        for index, value in enumerate(neg):
            self._neg_bins[index] += value

    @staticmethod
    def _validated_counts(raw: Any) -> List[int]:
        if not isinstance(raw, (list, tuple)):
            raise InvalidConfigurationError("Approximate bounds summary is missing bin counts.")
        counts: List[int] = []
        for value in raw:
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidConfigurationError("Approximate bounds bin counts must be non-negative integers.")
            counts.append(value)
        return counts

    def memory_used(self) -> int:
        return (
            sys.getsizeof(self)
            + sys.getsizeof(self._pos_bins)
            + sys.getsizeof(self._neg_bins)
            + sys.getsizeof(self._edges)
            + self._mechanism_builder.memory_used()
        )

    def reset_state(self) -> None:
        self._pos_bins = [0] * len(self._edges)
        self._neg_bins = [0] * len(self._edges)
