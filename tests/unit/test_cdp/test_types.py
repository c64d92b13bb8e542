"""
Unit tests for CDP result and summary records.
"""
# 说明：Output / ErrorReport / Summary 等共享记录类型的单元测试。
# 覆盖：
# - Output：value 便捷访问、误差报告懒创建、to_dict 结构
# - Summary：空摘要判定、payload_type 读取、JSON 版本信封往返与版本校验

import pytest

from dpagg.cdp.types import BoundingReport, ConfidenceInterval, Output, Summary


def test_empty_output() -> None:
    output = Output()
    assert output.elements == []
    assert output.value is None
    assert output.error_report is None


def test_output_error_report_created_once() -> None:
    output = Output()
    report = output.mutable_error_report()
    assert output.mutable_error_report() is report
    report.noise_confidence_interval = ConfidenceInterval(-1.0, 1.0, 0.95)
    report.bounding_report = BoundingReport(-2.0, 2.0, num_inputs=5, num_outside=1)
    output.add_element(3.0)
    data = output.to_dict()
    assert data["elements"] == [3.0]
    assert data["error_report"]["bounding_report"]["num_outside"] == 1
    assert data["error_report"]["noise_confidence_interval"]["upper_bound"] == 1.0


def test_summary_json_roundtrip() -> None:
    summary = Summary(data={"type": "BoundedSumSummary", "pos_sum": [1, 2], "neg_sum": []})
    restored = Summary.from_json(summary.to_json())
    assert restored.has_data()
    assert restored.payload_type == "BoundedSumSummary"
    assert restored.data == summary.data


def test_empty_summary_roundtrip() -> None:
    restored = Summary.from_json(Summary().to_json())
    assert not restored.has_data()
    assert restored.payload_type is None


def test_summary_rejects_unknown_version() -> None:
    with pytest.raises(ValueError):
        Summary.from_json('{"version": "99", "payload": null}')
