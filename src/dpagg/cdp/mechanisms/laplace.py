"""
Laplace mechanism for pure differential privacy.

Responsibilities:
    * calibrate Laplace scale from epsilon and sensitivity
    * add Laplace noise to scalars while spending a fraction of epsilon
    * report the noise confidence interval for a given budget
    * provide a cloneable builder used by the aggregators
"""
# 说明：实现纯 (ε, 0)-DP 的拉普拉斯机制及其可克隆构建器。
# 主要职责：
# 1) 由 epsilon 与敏感度 sensitivity 计算全预算下的噪声尺度 scale = sensitivity / epsilon
# 2) 按预算比例 privacy_budget 加噪：实际尺度为 scale / privacy_budget
# 3) 噪声置信区间：以 0 为中心，半宽 = 实际尺度 * ln(1 / (1 - confidence_level))
# 4) LaplaceMechanismBuilder：链式设置 epsilon/sensitivity，build 时校验并完成校准

from __future__ import annotations

import math
from typing import Any, Optional

import numpy as np

from dpagg.cdp.types import ConfidenceInterval
from dpagg.core.privacy.base_mechanism import (
    BaseMechanism,
    CalibrationError,
    MechanismBuilder,
    ValidationError,
    validate_privacy_budget,
)
from dpagg.core.utils.random import create_rng, sample_noise


class LaplaceMechanism(BaseMechanism):
    """Pure (epsilon, 0)-DP Laplace mechanism."""

    def __init__(
        self,
        epsilon: float = 1.0,
        sensitivity: float = 1.0,
        rng: Optional[Any] = None,
        name: Optional[str] = None,
    ):
        super().__init__(epsilon=epsilon, rng=rng, name=name)
        self._validate_sensitivity(sensitivity)
        self.sensitivity = float(sensitivity)
        self.scale: Optional[float] = None

    def _calibrate_parameters(self, *, sensitivity: Optional[float], **kwargs: Any) -> None:
        """Refresh the sensitivity (if provided) and compute the Laplace scale."""
        del kwargs
        if sensitivity is not None:
            self.sensitivity = float(sensitivity)
        self.scale = self.sensitivity / self.epsilon
        self._meta["distribution"] = "laplace"

    def _scale_for(self, privacy_budget: float) -> float:
        self.require_calibrated()
        if self.scale is None:
            raise CalibrationError("Laplace mechanism missing scale; call calibrate()")
        return self.scale / validate_privacy_budget(privacy_budget)

    def add_noise(self, value: float, privacy_budget: float = 1.0) -> float:
        """Add Laplace noise to a scalar using ``privacy_budget`` of epsilon."""
        scale = self._scale_for(privacy_budget)
        try:
            numeric = float(value)
        except (TypeError, ValueError) as exc:
            raise ValidationError("value must be a real number") from exc
        return numeric + float(sample_noise(self._rng, "laplace", scale=scale))

    def noise_confidence_interval(
        self, confidence_level: float, privacy_budget: float = 1.0
    ) -> ConfidenceInterval:
        """Symmetric interval around zero holding the noise with ``confidence_level``."""
        if not (0.0 < float(confidence_level) < 1.0):
            raise ValidationError("confidence_level must lie strictly between 0 and 1")
        scale = self._scale_for(privacy_budget)
        half_width = -scale * math.log1p(-float(confidence_level))
        return ConfidenceInterval(
            lower_bound=-half_width,
            upper_bound=half_width,
            confidence_level=float(confidence_level),
        )


class LaplaceMechanismBuilder(MechanismBuilder):
    """Builder producing calibrated ``LaplaceMechanism`` instances."""

    def __init__(self, rng: Optional[Any] = None) -> None:
        super().__init__()
        # 生成器只解析一次，克隆为浅拷贝，所有构建出的机制共用同一条持续推进的随机流
        self.rng: np.random.Generator = create_rng(rng)

    def build(self) -> LaplaceMechanism:
        if self.epsilon is None:
            raise ValidationError("epsilon must be set before building a Laplace mechanism")
        sensitivity = 1.0 if self.sensitivity is None else self.sensitivity
        mechanism = LaplaceMechanism(epsilon=self.epsilon, sensitivity=sensitivity, rng=self.rng)
        mechanism.calibrate()
        return mechanism
