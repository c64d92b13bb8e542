"""
Error hierarchy for the central DP aggregators.

Responsibilities
  - Define shared exception types for aggregator configuration failures.
  - Separate bounds estimation failures from configuration mistakes.

Usage Context
  - Raised by the bounds policy pipeline, aggregators and bounds estimators.

Limitations
  - Exceptions only carry message text.
"""
# 说明：CDP 聚合器的异常体系。
# 职责：
# - AggregatorError：聚合器子模块统一基类异常
# - InvalidConfigurationError：边界配置、合并摘要形状不匹配、自动边界下查询置信区间等配置类错误
# - BoundsEstimationError：自动边界估计无法在阈值之上找到任何直方图桶

from __future__ import annotations


class AggregatorError(RuntimeError):
    """
    Base error type for aggregator failures.

    - Usage Notes
      - Catch to handle aggregator errors without mixing with mechanism errors.
    """


class InvalidConfigurationError(AggregatorError):
    """
    Raised when an aggregator configuration or merge payload is unusable.

    - Behavior
      - Signals that the privacy guarantee cannot be established with the
        given bounds, summary or mode; state is never modified when raised.
    """


class BoundsEstimationError(AggregatorError):
    """Raised when approximate bounds cannot be found in the data."""
