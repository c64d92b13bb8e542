"""Shared pytest configuration and path setup for test modules."""

import sys
from pathlib import Path

import pytest

# Ensure repo root, src/ and the shared test doubles are on sys.path for all tests
_ROOT = Path(__file__).resolve().parents[1]
_SRC = _ROOT / "src"
_TESTS = _ROOT / "tests"
for p in (str(_ROOT), str(_SRC), str(_TESTS)):
    if p not in sys.path:
        sys.path.insert(0, p)

from dpagg.core.utils.config import get_config  # noqa: E402
from noise_doubles import ZeroNoiseBuilder  # noqa: E402


@pytest.fixture
def zero_noise_builder() -> ZeroNoiseBuilder:
    return ZeroNoiseBuilder()


@pytest.fixture(autouse=True)
def _restore_runtime_config():
    # 测试间隔离全局配置的修改
    config = get_config()
    snapshot = dict(vars(config))
    yield
    for key, value in snapshot.items():
        setattr(config, key, value)
