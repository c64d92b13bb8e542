"""
Serialization helpers for aggregator summaries.

Provides JSON helpers and a basic versioned envelope to ease backwards
compatibility of stored summaries.
"""
# 说明：序列化辅助工具，统一 JSON 编解码行为并内置简单的版本封装。
# 职责：
# - serialize_to_json / deserialize_from_json：支持 dataclass 与 to_dict 对象的 JSON 编解码，可选 version 包装
# - VersionedPayload：封装 version + payload 结构，供分片摘要（Summary）跨进程持久化使用

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Dict, Optional


def _prepare(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return obj


def serialize_to_json(obj: Any, *, version: Optional[str] = None) -> str:
    payload = _prepare(obj)
    if version is not None:
        payload = {"version": version, "payload": payload}
    return json.dumps(payload, default=_prepare, ensure_ascii=False)


def deserialize_from_json(text: str) -> Any:
    return json.loads(text)


@dataclass
class VersionedPayload:
    version: str
    payload: Optional[Dict[str, Any]]

    def to_json(self) -> str:
        return serialize_to_json({"version": self.version, "payload": self.payload})

    @classmethod
    def from_json(cls, text: str) -> "VersionedPayload":
        # 要求包含 version 与 payload 字段；payload 允许为 null（空摘要）
        data = deserialize_from_json(text)
        if not isinstance(data, dict) or "version" not in data or "payload" not in data:
            raise ValueError("serialized payload missing version or payload fields")
        return cls(version=str(data["version"]), payload=data["payload"])
