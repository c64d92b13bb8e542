"""Deterministic mechanism doubles shared by unit, property and integration tests."""
# 说明：测试替身。FixedNoiseMechanism 在输入上加固定偏移（默认 0），用于断言确定性的真实和；
# 构建器记录所有克隆共同构建过的机制，便于断言机制是否被重建以及每次加噪所用预算。

from dpagg.cdp.types import ConfidenceInterval
from dpagg.core.privacy.base_mechanism import (
    BaseMechanism,
    MechanismBuilder,
    validate_privacy_budget,
)


class FixedNoiseMechanism(BaseMechanism):
    """Mechanism adding a constant offset; records every call for assertions."""

    def __init__(self, epsilon: float, sensitivity: float, offset: float = 0.0):
        super().__init__(epsilon=epsilon)
        self.sensitivity = float(sensitivity)
        self.offset = float(offset)
        self.calls = []

    def _calibrate_parameters(self, *, sensitivity, **kwargs) -> None:
        del kwargs
        if sensitivity is not None:
            self.sensitivity = float(sensitivity)

    def add_noise(self, value, privacy_budget=1.0):
        budget = validate_privacy_budget(privacy_budget)
        self.calls.append((value, budget))
        return float(value) + self.offset

    def noise_confidence_interval(self, confidence_level, privacy_budget=1.0):
        validate_privacy_budget(privacy_budget)
        return ConfidenceInterval(lower_bound=0.0, upper_bound=0.0, confidence_level=confidence_level)


class FixedNoiseBuilder(MechanismBuilder):
    """Builder recording every mechanism built through it or its clones."""

    def __init__(self, offset: float = 0.0):
        super().__init__()
        self.offset = offset
        self.built = []

    def build(self) -> FixedNoiseMechanism:
        sensitivity = 1.0 if self.sensitivity is None else self.sensitivity
        mechanism = FixedNoiseMechanism(epsilon=self.epsilon, sensitivity=sensitivity, offset=self.offset)
        mechanism.calibrate()
        # 克隆为浅拷贝，built 列表在所有克隆间共享
        self.built.append(mechanism)
        return mechanism


class ZeroNoiseBuilder(FixedNoiseBuilder):
    def __init__(self):
        super().__init__(offset=0.0)
