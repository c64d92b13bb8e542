"""
Runtime configuration utilities.

Centralises the library's tunable options and exposes helpers to read
from environment variables or update settings at runtime.
"""
# 说明：运行时配置管理工具，集中管理库内可调选项，并支持环境变量覆写与运行期更新。
# 职责：
# - RuntimeConfig：封装日志等级、敏感字段掩码、随机种子、默认置信水平等配置项
# - shared_rng()：按配置的随机种子维护唯一一条持续推进的随机流，供未显式指定 rng 的机制共用
# - load_from_env(...)：按统一前缀（DPAGG_）从环境变量加载并解析配置值
# - get_config()：获取全局 RuntimeConfig 单例，作为库级默认配置入口
# - configure(...)：通过关键字参数便捷更新全局配置并返回更新后的实例
# 约定：
# - 布尔类环境变量使用 {"1", "true", "yes"}（大小写不敏感）视为 True
# - RNG_SEED 解析为整数，DEFAULT_CONFIDENCE_LEVEL 解析为浮点数
# - 重新设置 rng_seed 会重启共享随机流；同一种子下多次构建的机制不会重放相同噪声
# - 未知配置键在 update(...) 中会触发 AttributeError，避免静默吞错

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np

_BOOL_KEYS = ("MASK_SENSITIVE_FIELDS",)
_ENV_KEYS = ("LOG_LEVEL", "MASK_SENSITIVE_FIELDS", "RNG_SEED", "DEFAULT_CONFIDENCE_LEVEL")


@dataclass
class RuntimeConfig:
    log_level: str = field(default_factory=lambda: os.environ.get("DPAGG_LOG_LEVEL", "INFO"))
    mask_sensitive_fields: bool = True
    rng_seed: Optional[int] = None
    default_confidence_level: float = 0.95
    extra: Dict[str, Any] = field(default_factory=dict)
    _shared_rng: Optional[np.random.Generator] = field(default=None, init=False, repr=False, compare=False)
    _shared_seed: Optional[int] = field(default=None, init=False, repr=False, compare=False)

    def update(self, **kwargs: Any) -> None:
        # 按关键字参数更新当前配置实例，未知字段名将显式报错
        for key, value in kwargs.items():
            if key.startswith("_") or not hasattr(self, key):
                raise AttributeError(f"unknown config option '{key}'")
            setattr(self, key, value)
        if "rng_seed" in kwargs:
            self._shared_rng = None

    def shared_rng(self) -> np.random.Generator:
        """Generator shared by every mechanism created without an explicit rng."""
        if self._shared_rng is None or self._shared_seed != self.rng_seed:
            self._shared_rng = np.random.default_rng(self.rng_seed)
            self._shared_seed = self.rng_seed
        return self._shared_rng

    def load_from_env(self, prefix: str = "DPAGG_") -> None:
        # 从带有指定前缀的环境变量中加载配置，并进行类型转换后写回实例字段
        values: Dict[str, Any] = {}
        for key in _ENV_KEYS:
            env_key = f"{prefix}{key}"
            if env_key not in os.environ:
                continue
            value: Any = os.environ[env_key]
            if key in _BOOL_KEYS:
                value = value.lower() in {"1", "true", "yes"}
            elif key == "RNG_SEED":
                value = int(value)
            elif key == "DEFAULT_CONFIDENCE_LEVEL":
                value = float(value)
            values[key.lower()] = value
        self.update(**values)


# 全局配置单例，用作库内默认的运行时配置
_GLOBAL_CONFIG = RuntimeConfig()


def get_config() -> RuntimeConfig:
    return _GLOBAL_CONFIG


def configure(**kwargs: Any) -> RuntimeConfig:
    # 以关键字参数更新全局配置，并返回更新后的实例（便于链式调用或调试）
    _GLOBAL_CONFIG.update(**kwargs)
    return _GLOBAL_CONFIG
