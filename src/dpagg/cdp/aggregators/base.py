"""
Base abstractions for incremental central DP aggregators.

Responsibilities
  - Define the aggregator interface: ingestion, result generation,
    serialize/merge, memory accounting and reset.
  - Provide batch ingestion and one-shot result helpers on top of it.

Usage Context
  - Use as the base for aggregators that accumulate raw values and release a
    single noised statistic per privacy budget spend.

Limitations
  - Aggregators are not thread-safe; shard data and merge summaries instead.
  - Privacy budget is not tracked across calls.
"""
# 说明：中心化差分隐私增量聚合器的抽象接口。
# 职责：
# - 约定 add_entry / generate_result / serialize / merge / memory_used / reset 方法签名
# - 提供 add_entries（批量写入）与 result（重置 + 写入 + 全预算生成结果）便捷方法
# - 预算由调用方在外部记账，每次调用显式传入所用比例

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable

from dpagg.cdp.types import ConfidenceInterval, Output, Summary


class BaseAggregator(ABC):
    """
    Abstract interface for incremental DP aggregation.

    - Behavior
      - Entries are added one by one; ``generate_result`` spends a fraction
        of epsilon and returns an Output.
      - Partial state can be serialized and merged across shards.

    - Usage Notes
      - Subclasses implement the statistic specific accumulation logic.
    """

    @abstractmethod
    def add_entry(self, value: Any) -> None:
        """Ingest one raw value."""
        raise NotImplementedError

    def add_entries(self, values: Iterable[Any]) -> None:
        for value in values:
            self.add_entry(value)

    @abstractmethod
    def generate_result(self, privacy_budget: float = 1.0) -> Output:
        """Release the noised statistic using ``privacy_budget`` of epsilon."""
        raise NotImplementedError

    @abstractmethod
    def noise_confidence_interval(self, confidence_level: float, privacy_budget: float = 1.0) -> ConfidenceInterval:
        raise NotImplementedError

    @abstractmethod
    def serialize(self) -> Summary:
        raise NotImplementedError

    @abstractmethod
    def merge(self, summary: Summary) -> None:
        raise NotImplementedError

    @abstractmethod
    def memory_used(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        raise NotImplementedError

    def result(self, values: Iterable[Any]) -> Output:
        """Reset, ingest ``values`` and release a result with the full budget."""
        self.reset()
        self.add_entries(values)
        return self.generate_result(1.0)
