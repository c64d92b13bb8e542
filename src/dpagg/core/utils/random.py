"""
Random number generation helpers.

Responsibilities
  - Centralize RNG creation and seeding.
  - Route mechanisms without an explicit rng to one shared stream.
  - Offer the Laplace noise sampling helper used by mechanisms.

Limitations
  - Relies on numpy Generator behavior for reproducibility.
  - Only Laplace noise is supported.
"""
# 说明：随机数生成与噪声采样辅助工具。
# 职责：
# - create_rng：集中封装 numpy Generator 的创建逻辑
# - 未给种子时返回全局配置维护的共享随机流（RuntimeConfig.shared_rng），
#   避免每次重建机制都从同一种子重新开始而重放相同噪声
# - sample_noise：按分布名称调度到拉普拉斯噪声采样接口

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np

from .config import get_config


def create_rng(seed: Optional[Any] = None) -> np.random.Generator:
    """Create a numpy Generator from a seed, SeedSequence, or existing generator."""
    if isinstance(seed, np.random.Generator):
        return seed
    if seed is None:
        return get_config().shared_rng()
    return np.random.default_rng(seed)


def sample_noise(
    rng: np.random.Generator,
    distribution: str,
    size: Optional[Sequence[int]] = None,
    **kwargs: Any,
) -> Any:
    """Sample noise for a given distribution with named parameters."""
    distribution = distribution.lower()
    if distribution == "laplace":
        return rng.laplace(kwargs.get("loc", 0.0), kwargs["scale"], size=size)
    raise ValueError(f"unsupported distribution '{distribution}'")
