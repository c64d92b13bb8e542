"""
Unit tests validating the Laplace mechanism implementation.

Covers:
    * calibration of scale
    * budget-scaled noise addition
    * noise confidence intervals
    * builder validation and lifecycle guardrails
"""
# 说明：对拉普拉斯机制及其构建器进行单元测试。
# 覆盖：
# - 噪声尺度校准
# - 按预算比例放大噪声尺度
# - 噪声置信区间的半宽公式与参数校验
# - 构建器缺少 epsilon 时报错、未校准禁止使用
# - 带种子的构建器及其克隆共用一条随机流，重复构建不会重放相同噪声

import math

import numpy as np
import pytest

from dpagg.cdp.mechanisms.laplace import LaplaceMechanism, LaplaceMechanismBuilder
from dpagg.core.privacy.base_mechanism import NotCalibratedError, ValidationError
from dpagg.core.utils import configure


@pytest.fixture
def laplace() -> LaplaceMechanism:
    """Fixture returning a Laplace mechanism with non-unit parameters."""
    # 夹具：提供一个非默认参数的 Laplace 机制实例，便于复用
    return LaplaceMechanism(epsilon=2.0, sensitivity=3.0)


def test_calibrate_computes_scale(laplace: LaplaceMechanism) -> None:
    laplace.calibrate()
    assert laplace.scale == pytest.approx(1.5)


def test_calibrate_accepts_new_sensitivity(laplace: LaplaceMechanism) -> None:
    laplace.calibrate(sensitivity=4.0)
    assert laplace.scale == pytest.approx(2.0)


def test_add_noise_requires_calibration(laplace: LaplaceMechanism) -> None:
    with pytest.raises(NotCalibratedError):
        laplace.add_noise(1.0)


def test_add_noise_scales_with_budget(laplace: LaplaceMechanism) -> None:
    # 固定种子下，预算 0.5 的噪声等于尺度翻倍后的拉普拉斯采样
    laplace.calibrate()
    laplace.reseed(3)
    noisy = laplace.add_noise(10.0, 0.5)
    expected = 10.0 + np.random.default_rng(3).laplace(0.0, 3.0)
    assert noisy == pytest.approx(expected)


@pytest.mark.parametrize("budget", [0.0, -0.5, 1.5, math.nan])
def test_add_noise_rejects_invalid_budget(laplace: LaplaceMechanism, budget) -> None:
    laplace.calibrate()
    with pytest.raises(ValidationError):
        laplace.add_noise(1.0, budget)


def test_add_noise_rejects_non_numeric(laplace: LaplaceMechanism) -> None:
    laplace.calibrate()
    with pytest.raises(ValidationError):
        laplace.add_noise("abc")  # type: ignore[arg-type]


def test_noise_confidence_interval(laplace: LaplaceMechanism) -> None:
    laplace.calibrate()
    interval = laplace.noise_confidence_interval(0.95, 0.5)
    half_width = 3.0 * math.log(1 / 0.05)
    assert interval.upper_bound == pytest.approx(half_width)
    assert interval.lower_bound == pytest.approx(-half_width)
    assert interval.confidence_level == 0.95


@pytest.mark.parametrize("level", [0.0, 1.0, 1.5])
def test_noise_confidence_interval_rejects_level(laplace: LaplaceMechanism, level) -> None:
    laplace.calibrate()
    with pytest.raises(ValidationError):
        laplace.noise_confidence_interval(level)


def test_empirical_noise_spread() -> None:
    # Laplace(b) 的平均绝对偏差为 b
    mechanism = LaplaceMechanism(epsilon=1.0, sensitivity=2.0, rng=0).calibrate()
    samples = np.array([mechanism.add_noise(0.0) for _ in range(4000)])
    assert np.mean(np.abs(samples)) == pytest.approx(2.0, rel=0.1)


def test_builder_builds_calibrated_mechanism() -> None:
    mechanism = LaplaceMechanismBuilder(rng=1).set_epsilon(0.5).set_sensitivity(2.0).build()
    assert mechanism.calibrated
    assert mechanism.scale == pytest.approx(4.0)


def test_builder_defaults_sensitivity() -> None:
    mechanism = LaplaceMechanismBuilder().set_epsilon(2.0).build()
    assert mechanism.sensitivity == 1.0


def test_builder_requires_epsilon() -> None:
    with pytest.raises(ValidationError):
        LaplaceMechanismBuilder().build()


def test_builder_rejects_zero_sensitivity() -> None:
    with pytest.raises(ValidationError):
        LaplaceMechanismBuilder().set_epsilon(1.0).set_sensitivity(0.0).build()


def test_seeded_builder_clones_share_one_stream() -> None:
    builder = LaplaceMechanismBuilder(rng=7).set_epsilon(1.0)
    first = builder.clone().build().add_noise(0.0)
    second = builder.clone().build().add_noise(0.0)
    assert first != second
    assert first == pytest.approx(np.random.default_rng(7).laplace(0.0, 1.0))


def test_configured_seed_does_not_replay_noise() -> None:
    configure(rng_seed=3)
    sum_noise = LaplaceMechanismBuilder().set_epsilon(1.0).build().add_noise(0.0)
    count_noise = LaplaceMechanismBuilder().set_epsilon(1.0).build().add_noise(0.0)
    assert sum_noise != count_noise
