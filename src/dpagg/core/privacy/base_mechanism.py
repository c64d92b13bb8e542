"""
Core abstractions shared by every noise mechanism implementation.

Responsibilities:
    * common parameter validation and RNG management
    * consistent calibration lifecycle
    * budget-aware noise addition and confidence interval contracts
    * cloneable builders so aggregators can rebuild mechanisms later
    * purpose specific exceptions
"""
# 说明：定义本库所有噪声机制共享的抽象基类、构建器基类与通用异常。
# 职责：
# - 通用参数校验（epsilon、敏感度、隐私预算比例）与随机数生成器（RNG）管理
# - 统一的校准生命周期（calibrate / require_calibrated）
# - 约定按预算比例加噪（add_noise）与噪声置信区间（noise_confidence_interval）接口
# - MechanismBuilder：可克隆的构建器，供聚合器在敏感度变化后重新构建机制

from __future__ import annotations

import copy
import math
import numbers
import sys
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

import numpy as np

from dpagg.core.utils.random import create_rng

if TYPE_CHECKING:
    from dpagg.cdp.types import ConfidenceInterval


# Exceptions -----------------------------------------------------------------
class MechanismError(Exception):
    """Base exception for mechanism errors."""


class ValidationError(MechanismError):
    """Raised when input parameters are invalid."""


class CalibrationError(MechanismError):
    """Raised when calibration fails or is inconsistent."""


class NotCalibratedError(MechanismError):
    """Raised when an operation requires prior calibration."""


# Budget helpers -------------------------------------------------------------
def validate_privacy_budget(privacy_budget: Any, *, allow_zero: bool = False) -> float:
    """Return the budget fraction as float after checking it lies in (0, 1]."""
    # 预算为 epsilon 的使用比例：NaN、负数、大于 1 均为硬错误；0 仅在调用方允许时放行
    if isinstance(privacy_budget, (str, bytes)) or not isinstance(privacy_budget, numbers.Real):
        raise ValidationError("privacy_budget must be a real number")
    budget = float(privacy_budget)
    if math.isnan(budget):
        raise ValidationError("privacy_budget must not be NaN")
    lower_ok = budget >= 0.0 if allow_zero else budget > 0.0
    if not lower_ok or budget > 1.0:
        interval = "[0, 1]" if allow_zero else "(0, 1]"
        raise ValidationError(f"privacy_budget must lie in {interval}, got {budget}")
    return budget


# Base abstraction ------------------------------------------------------------
class BaseMechanism(ABC):
    """Abstract base class for scalar noise mechanisms."""

    def __init__(
        self,
        epsilon: float,
        rng: Optional[Any] = None,
        name: Optional[str] = None,
    ):
        self._validate_epsilon(epsilon)
        self.epsilon: float = float(epsilon)
        self.name: str = name or self.__class__.__name__
        self._rng: np.random.Generator = create_rng(rng)
        self._calibrated: bool = False
        self._meta: Dict[str, Any] = {}

    # Validation helpers ------------------------------------------------------
    @staticmethod
    def _validate_epsilon(eps: Any) -> None:
        if isinstance(eps, bool) or not isinstance(eps, numbers.Real) or not math.isfinite(eps) or eps <= 0:
            raise ValidationError("epsilon must be a positive finite real number")

    @staticmethod
    def _validate_sensitivity(sensitivity: Any) -> None:
        if (
            isinstance(sensitivity, bool)
            or not isinstance(sensitivity, numbers.Real)
            or not math.isfinite(sensitivity)
            or sensitivity <= 0
        ):
            raise ValidationError("sensitivity must be a positive finite real number")

    # Calibration lifecycle ---------------------------------------------------
    def calibrate(self, sensitivity: Optional[float] = None, **kwargs: Any) -> "BaseMechanism":
        """
        Common calibration entry point.
        - Args:
            - sensitivity: Optional numeric sensitivity override.
            - **kwargs: Mechanism specific calibration kwargs.
        - Returns:
            - self (allows chaining).
        """
        if sensitivity is not None:
            self._validate_sensitivity(sensitivity)
        self._calibrate_parameters(sensitivity=sensitivity, **kwargs)
        self._calibrated = True
        return self

    @abstractmethod
    def _calibrate_parameters(self, *, sensitivity: Optional[float], **kwargs: Any) -> None:
        """Subclasses implement their own calibration logic."""

    @abstractmethod
    def add_noise(self, value: float, privacy_budget: float = 1.0) -> float:
        """Add noise spending ``privacy_budget`` (a fraction of epsilon)."""

    @abstractmethod
    def noise_confidence_interval(
        self, confidence_level: float, privacy_budget: float = 1.0
    ) -> "ConfidenceInterval":
        """Interval containing the added noise with probability ``confidence_level``."""

    @property
    def calibrated(self) -> bool:
        return self._calibrated

    def require_calibrated(self) -> None:
        if not self._calibrated:
            raise NotCalibratedError("mechanism not calibrated; call calibrate() first")

    def reseed(self, seed: Optional[Any]) -> None:
        """Replace RNG with a new generator constructed from `seed`."""
        self._rng = create_rng(seed)

    def memory_used(self) -> int:
        # 近似内存占用：对象本身与元数据字典
        return sys.getsizeof(self) + sys.getsizeof(self._meta)

    @property
    def mechanism_id(self) -> str:
        """Stable identifier used in logs and reports."""
        lowered = self.__class__.__name__.lower()
        suffix = "mechanism"
        if lowered.endswith(suffix):
            return lowered[: -len(suffix)] or lowered
        return lowered

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} name={self.name} "
            f"eps={self.epsilon} calibrated={self._calibrated}>"
        )


class MechanismBuilder(ABC):
    """
    Cloneable factory for calibrated mechanisms.

    - Configuration
      - epsilon / sensitivity set through chained setters.

    - Behavior
      - ``build`` validates the settings and returns a calibrated mechanism.
      - ``clone`` returns an independent builder with the same settings.

    - Usage Notes
      - Aggregators keep a clone so the mechanism can be rebuilt once the
        sensitivity is known.
    """

    def __init__(self) -> None:
        self.epsilon: Optional[float] = None
        self.sensitivity: Optional[float] = None

    def set_epsilon(self, epsilon: float) -> "MechanismBuilder":
        self.epsilon = epsilon
        return self

    def set_sensitivity(self, sensitivity: float) -> "MechanismBuilder":
        self.sensitivity = sensitivity
        return self

    @abstractmethod
    def build(self) -> BaseMechanism:
        """Construct a calibrated mechanism or raise ValidationError."""

    def clone(self) -> "MechanismBuilder":
        return copy.copy(self)

    def memory_used(self) -> int:
        return sys.getsizeof(self)
