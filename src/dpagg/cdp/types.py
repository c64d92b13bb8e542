"""
Shared record types for central DP aggregators.

Responsibilities
  - Define the Output / ErrorReport records emitted by result generation.
  - Define BoundingReport and ConfidenceInterval accuracy records.
  - Define the Summary container exchanged between shards for merging.

Usage Context
  - Produced by mechanisms, bounds estimators and aggregators.
  - Summary supports JSON transport through a versioned envelope.

Limitations
  - Summary payloads are plain dictionaries; each producer validates its own
    payload kind when merging.
"""
# 说明：中心化差分隐私聚合器共享的结果与摘要载体。
# 职责：
# - Output / ErrorReport：结果生成输出的带噪数值及误差报告（边界报告、噪声置信区间）
# - BoundingReport：自动边界模式下裁剪对结果影响的统计
# - ConfidenceInterval：给定置信水平下噪声分布的上下界
# - Summary：分片间合并所用的可序列化摘要，可通过带版本的 JSON 信封传输

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from dpagg.core.utils.serialization import VersionedPayload

SUMMARY_FORMAT_VERSION = "1"


@dataclass(frozen=True)
class ConfidenceInterval:
    lower_bound: float
    upper_bound: float
    confidence_level: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BoundingReport:
    """Describes how clamping to the resolved bounds affected the inputs."""

    lower_bound: float
    upper_bound: float
    num_inputs: int
    num_outside: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ErrorReport:
    bounding_report: Optional[BoundingReport] = None
    noise_confidence_interval: Optional[ConfidenceInterval] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bounding_report": None if self.bounding_report is None else self.bounding_report.to_dict(),
            "noise_confidence_interval": (
                None if self.noise_confidence_interval is None else self.noise_confidence_interval.to_dict()
            ),
        }


@dataclass
class Output:
    """
    Result emitted by an aggregator or estimator.

    - Behavior
      - ``elements`` is empty for a zero-budget call; otherwise it holds the
        noised values in emission order.
      - ``error_report`` is created lazily by ``mutable_error_report``.
    """

    elements: List[Any] = field(default_factory=list)
    error_report: Optional[ErrorReport] = None

    @property
    def value(self) -> Any:
        # 单值输出的便捷访问；空输出时返回 None
        return self.elements[0] if self.elements else None

    def add_element(self, value: Any) -> None:
        self.elements.append(value)

    def mutable_error_report(self) -> ErrorReport:
        if self.error_report is None:
            self.error_report = ErrorReport()
        return self.error_report

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elements": list(self.elements),
            "error_report": None if self.error_report is None else self.error_report.to_dict(),
        }


@dataclass
class Summary:
    """
    Serializable snapshot of partial aggregator state.

    ``data`` holds a typed payload (``{"type": ..., ...}``) or ``None`` for an
    empty summary.
    """

    data: Optional[Dict[str, Any]] = None

    def has_data(self) -> bool:
        return self.data is not None

    @property
    def payload_type(self) -> Optional[str]:
        if not isinstance(self.data, dict):
            return None
        return self.data.get("type")

    def to_dict(self) -> Dict[str, Any]:
        return {"data": self.data}

    def to_json(self) -> str:
        return VersionedPayload(version=SUMMARY_FORMAT_VERSION, payload=self.data).to_json()

    @classmethod
    def from_json(cls, text: str) -> "Summary":
        envelope = VersionedPayload.from_json(text)
        if envelope.version != SUMMARY_FORMAT_VERSION:
            raise ValueError(f"unsupported summary version {envelope.version!r}")
        return cls(data=envelope.payload)
