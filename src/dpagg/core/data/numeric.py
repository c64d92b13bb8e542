"""
Numeric kinds supported by the aggregators.

Responsibilities:
    * describe integral and floating point value kinds with their limits
    * coerce raw inputs, detect NaN, clamp and round results per kind
    * resolve kinds from names, numpy dtypes, or python types
"""
# 说明：聚合器使用的数值类型（NumericKind）抽象，替代按运行时类型分支的写法。
# 职责：
# - 统一描述整数/浮点两类数值种类及其可表示上限（来自 numpy.iinfo / numpy.finfo）
# - 提供输入强制转换、NaN 判定（整数种类恒为 False）、裁剪与结果取整
# - 支持通过名称、numpy dtype、Python 类型解析出对应的 NumericKind

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Dict, Generic, TypeVar, Union

import numpy as np

from dpagg.core.privacy.base_mechanism import ValidationError

T = TypeVar("T", int, float)


@dataclass(frozen=True)
class NumericKind(Generic[T]):
    """
    Capability descriptor for the value type an aggregator operates on.

    - Configuration
      - name: Canonical dtype name (e.g. "int64", "float64").
      - integral: Whether values are integers.

    - Behavior
      - Coerces inputs to python int/float and rejects non-numeric data.
      - Floating kinds round inputs and results to their dtype precision
        (float32 values are stored as the nearest float32), while partial
        sums accumulate as python floats.
      - NaN detection is constant False for integral kinds.
      - Integral results are rounded half away from zero.
    """

    name: str
    integral: bool

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.name)

    @property
    def max_value(self) -> T:
        # 可表示的最大值；下界取负时不得小于 -max_value
        if self.integral:
            return int(np.iinfo(self.dtype).max)  # type: ignore[return-value]
        return float(np.finfo(self.dtype).max)  # type: ignore[return-value]

    def zero(self) -> T:
        return 0 if self.integral else 0.0  # type: ignore[return-value]

    def _real(self, value: Any, label: str) -> Any:
        if isinstance(value, (str, bytes)) or not isinstance(value, numbers.Real):
            raise ValidationError(f"{label} must be a real number, got {type(value).__name__}")
        return value

    def _to_float(self, value: Any) -> float:
        # 经由 dtype 取整到该种类的精度；超出 float32 范围时得到 ±inf
        with np.errstate(over="ignore"):
            return float(self.dtype.type(value))

    def coerce(self, value: Any, *, label: str = "value") -> T:
        """Convert ``value`` into the python scalar type of this kind."""
        value = self._real(value, label)
        if not self.integral:
            return self._to_float(value)  # type: ignore[return-value]
        if isinstance(value, numbers.Integral):
            return int(value)  # type: ignore[return-value]
        numeric = float(value)
        if not numeric.is_integer():
            raise ValidationError(f"{label} must be integral for {self.name} aggregation")
        return int(numeric)  # type: ignore[return-value]

    def coerce_sum(self, value: Any, *, label: str = "value") -> T:
        """Convert an accumulated partial sum, rejecting NaN and infinities."""
        value = self._real(value, label)
        if self.integral:
            return self.coerce(value, label=label)
        numeric = float(value)
        if not math.isfinite(numeric):
            raise ValidationError(f"{label} must be finite")
        return numeric  # type: ignore[return-value]

    def is_nan(self, value: Any) -> bool:
        if self.integral:
            return False
        return isinstance(value, numbers.Real) and math.isnan(value)

    def clamp(self, lower: T, upper: T, value: T) -> T:
        return min(max(value, lower), upper)

    def round_result(self, value: float) -> T:
        """Map a noised real result back onto this kind."""
        if not self.integral:
            return self._to_float(value)  # type: ignore[return-value]
        magnitude = math.floor(abs(value) + 0.5)
        return int(math.copysign(magnitude, value))  # type: ignore[return-value]

    def negation_overflows(self, value: T) -> bool:
        return value < -self.max_value


INT32: NumericKind[int] = NumericKind("int32", integral=True)
INT64: NumericKind[int] = NumericKind("int64", integral=True)
FLOAT32: NumericKind[float] = NumericKind("float32", integral=False)
FLOAT64: NumericKind[float] = NumericKind("float64", integral=False)

_KINDS: Dict[str, NumericKind] = {kind.name: kind for kind in (INT32, INT64, FLOAT32, FLOAT64)}
_ALIASES: Dict[str, str] = {"int": "int64", "float": "float64", "double": "float64"}


def resolve_numeric_kind(kind: Union[NumericKind, str, type, np.dtype, None]) -> NumericKind:
    """Resolve a numeric kind from a name, numpy dtype, or python type."""
    if kind is None:
        return FLOAT64
    if isinstance(kind, NumericKind):
        return kind
    if kind is int:
        return INT64
    if kind is float:
        return FLOAT64
    if isinstance(kind, str):
        key = _ALIASES.get(kind.lower(), kind.lower())
    else:
        try:
            key = np.dtype(kind).name
        except TypeError as exc:
            raise ValidationError(f"unsupported numeric kind {kind!r}") from exc
    if key not in _KINDS:
        raise ValidationError(f"unsupported numeric kind {kind!r}; expected one of {sorted(_KINDS)}")
    return _KINDS[key]
