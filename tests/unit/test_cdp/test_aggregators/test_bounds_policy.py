"""
Unit tests for bound policies and bounded sum configuration.
"""
# 说明：边界策略（ManualBounds / AutoBounds）与 make_bounded_sum_config 校验流水线的单元测试。
# 覆盖：
# - epsilon 校验：0、负数、NaN、无穷大一律报错
# - 边界互斥：只设置一侧、同时设置手动边界与估计器均报错
# - 手动下界取负溢出检查与错误信息
# - 未提供边界时默认挂载 ApproxBounds；估计器数值种类必须一致

import math

import pytest

from dpagg.cdp.aggregators import AutoBounds, ManualBounds, check_lower_bound, make_bounded_sum_config
from dpagg.cdp.bounds import ApproxBounds
from dpagg.cdp.exceptions import InvalidConfigurationError
from dpagg.cdp.mechanisms import LaplaceMechanismBuilder
from dpagg.core.data import FLOAT64, INT64
from dpagg.core.privacy.base_mechanism import ValidationError
from dpagg.core.utils import ParamValidationError


@pytest.mark.parametrize("epsilon", [0.0, -1.0, math.nan, math.inf])
def test_rejects_invalid_epsilon(epsilon) -> None:
    with pytest.raises(ValidationError):
        make_bounded_sum_config(epsilon, lower=-1, upper=1)


def test_manual_bounds_config() -> None:
    config = make_bounded_sum_config(2.0, lower=-3, upper=5, numeric_kind="int64")
    assert config.epsilon == 2.0
    assert config.numeric_kind is INT64
    assert config.bounds == ManualBounds(lower=-3, upper=5)
    assert isinstance(config.mechanism_builder, LaplaceMechanismBuilder)


@pytest.mark.parametrize("lower, upper", [(-1.0, None), (None, 1.0)])
def test_rejects_single_bound(lower, upper) -> None:
    with pytest.raises(InvalidConfigurationError):
        make_bounded_sum_config(1.0, lower=lower, upper=upper)


def test_rejects_manual_bounds_with_estimator() -> None:
    with pytest.raises(InvalidConfigurationError):
        make_bounded_sum_config(1.0, lower=-1.0, upper=1.0, bounds_estimator=ApproxBounds(1.0))


def test_rejects_inverted_and_nan_bounds() -> None:
    with pytest.raises(InvalidConfigurationError):
        make_bounded_sum_config(1.0, lower=2.0, upper=1.0)
    with pytest.raises(InvalidConfigurationError):
        make_bounded_sum_config(1.0, lower=math.nan, upper=1.0)


def test_rejects_lower_bound_negation_overflow() -> None:
    with pytest.raises(InvalidConfigurationError, match="increase it by at least 1"):
        make_bounded_sum_config(1.0, lower=-(2**63), upper=0, numeric_kind="int64")
    config = make_bounded_sum_config(1.0, lower=-(2**63) + 1, upper=0, numeric_kind="int64")
    assert config.bounds.lower == -(2**63) + 1


def test_check_lower_bound_float_kind() -> None:
    check_lower_bound(FLOAT64, -FLOAT64.max_value)
    with pytest.raises(InvalidConfigurationError):
        check_lower_bound(FLOAT64, -math.inf)


def test_default_estimator_when_no_bounds() -> None:
    config = make_bounded_sum_config(3.0)
    assert isinstance(config.bounds, AutoBounds)
    assert config.bounds.estimator.epsilon == 3.0
    assert config.bounds.estimator.numeric_kind is FLOAT64


def test_keeps_supplied_estimator() -> None:
    estimator = ApproxBounds(1.0, numeric_kind="int64")
    config = make_bounded_sum_config(1.0, bounds_estimator=estimator, numeric_kind="int64")
    assert config.bounds.estimator is estimator


def test_rejects_estimator_kind_mismatch() -> None:
    with pytest.raises(InvalidConfigurationError):
        make_bounded_sum_config(1.0, bounds_estimator=ApproxBounds(1.0, numeric_kind="int64"))


def test_rejects_non_builder() -> None:
    with pytest.raises(ParamValidationError):
        make_bounded_sum_config(1.0, lower=-1, upper=1, mechanism_builder=object())
