"""
Unit tests for serialization utilities.
"""
# 说明：JSON 序列化工具与版本信封（VersionedPayload）的单元测试。

import dataclasses

import pytest

from dpagg.core.utils import VersionedPayload, deserialize_from_json, serialize_to_json


@dataclasses.dataclass
class Sample:
    a: int
    b: str


def test_serialize_and_deserialize_dataclass() -> None:
    text = serialize_to_json(Sample(a=5, b="x"))
    assert deserialize_from_json(text) == {"a": 5, "b": "x"}


def test_serialize_with_version_wraps_payload() -> None:
    data = deserialize_from_json(serialize_to_json({"k": 1}, version="2"))
    assert data == {"version": "2", "payload": {"k": 1}}


def test_versioned_payload_roundtrip() -> None:
    payload = VersionedPayload(version="1", payload={"pos_sum": [1.5, 2.0]})
    restored = VersionedPayload.from_json(payload.to_json())
    assert restored.version == "1"
    assert restored.payload["pos_sum"] == [1.5, 2.0]


def test_versioned_payload_allows_null_payload() -> None:
    restored = VersionedPayload.from_json(VersionedPayload(version="1", payload=None).to_json())
    assert restored.payload is None


def test_versioned_payload_requires_envelope_fields() -> None:
    with pytest.raises(ValueError):
        VersionedPayload.from_json('{"payload": {}}')
