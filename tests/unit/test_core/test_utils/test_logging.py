"""
Unit tests for logging utilities.
"""
# 说明：日志配置与隐私脱敏过滤相关的单元测试。
# 覆盖：
# - configure_logging(...)：为每个根 handler 只挂载一个 PrivacyFilter
# - 子 logger 传播到根 handler 的记录同样被脱敏
# - PrivacyFilter：开启掩码时替换敏感属性，关闭掩码时保持原样，支持自定义字段
# - get_logger(...)：按名称返回 logger

import logging

import pytest

from dpagg.core.utils import configure, configure_logging, get_logger
from dpagg.core.utils.logging import MASK, PrivacyFilter


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def root_handler():
    # 夹具：在根 logger 上挂载一个收集记录的 handler，测试结束后移除
    handler = _ListHandler()
    root = logging.getLogger()
    root.addHandler(handler)
    yield handler
    root.removeHandler(handler)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("dpagg.test", logging.INFO, __file__, 1, "message", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_configure_logging_installs_single_filter_per_handler(root_handler) -> None:
    configure_logging(level="INFO")
    configure_logging(level="INFO")
    filters = [f for f in root_handler.filters if isinstance(f, PrivacyFilter)]
    assert len(filters) == 1


def test_propagated_records_are_masked(root_handler) -> None:
    configure_logging(level="INFO")
    logger = get_logger("dpagg.cdp.aggregators.bounded_sum")
    logger.setLevel(logging.INFO)
    logger.info("merged shard", extra={"payload": {"pos_sum": [12.5]}, "value": 3.0})
    record = root_handler.records[-1]
    assert record.payload == MASK
    assert record.value == MASK


def test_privacy_filter_respects_config() -> None:
    configure(mask_sensitive_fields=False)
    record = _record(value=42)
    PrivacyFilter().filter(record)
    assert record.value == 42


def test_privacy_filter_custom_fields() -> None:
    record = _record(value=1.0, secret="x")
    assert PrivacyFilter(fields=("secret",)).filter(record) is True
    assert record.secret == MASK
    assert record.value == 1.0


def test_get_logger_returns_named_logger(caplog) -> None:
    logger = get_logger("dpagg.test")
    with caplog.at_level(logging.INFO, logger="dpagg.test"):
        logger.info("bounded sum ready")
    assert logger.name == "dpagg.test"
    assert "bounded sum ready" in caplog.text
