"""
Logging helpers that keep raw data out of log output.

Module loggers (``logger = get_logger(__name__)``) propagate to the root
logger; masking therefore happens on the root handlers, which see every
propagated record.
"""
# 说明：日志工具。聚合器与估计器只记录形状信息（边界、槽位数、敏感度），
# 调用方若通过 extra 附带原始数值或分片载荷，由 PrivacyFilter 在输出前替换。
# 职责：
# - PrivacyFilter：按运行时配置 mask_sensitive_fields 对指定记录属性脱敏
# - configure_logging(...)：初始化日志格式与级别，并为每个根 handler 挂载一次过滤器
# - get_logger(...)：按名称获取 logger，根 logger 尚无 handler 时先完成初始化
# 约定：
# - 日志级别优先级：显式参数 level > 环境变量 DPAGG_LOG_LEVEL > 运行时配置的 log_level
# - logger 级别的过滤器不作用于子 logger 传播上来的记录，因此过滤器挂在 handler 上

from __future__ import annotations

import logging
import os
from typing import Iterable, Optional, Tuple

from .config import get_config

SENSITIVE_RECORD_FIELDS: Tuple[str, ...] = ("value", "values", "payload", "user_id")
MASK = "***"
LOG_FORMAT = "[%(levelname)s] %(name)s %(asctime)s | %(message)s"


class PrivacyFilter(logging.Filter):
    """
    Replace sensitive ``extra`` attributes on log records.

    - Configuration
      - fields: Record attribute names to mask.

    - Behavior
      - Masking is skipped while ``RuntimeConfig.mask_sensitive_fields`` is off.
      - Records are never dropped.
    """

    def __init__(self, fields: Iterable[str] = SENSITIVE_RECORD_FIELDS) -> None:
        super().__init__()
        self.fields: Tuple[str, ...] = tuple(fields)

    def filter(self, record: logging.LogRecord) -> bool:
        if not get_config().mask_sensitive_fields:
            return True
        for attr in self.fields:
            if hasattr(record, attr):
                setattr(record, attr, MASK)
        return True


def _attach_filter(handler: logging.Handler) -> None:
    if not any(isinstance(existing, PrivacyFilter) for existing in handler.filters):
        handler.addFilter(PrivacyFilter())


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    log_level = level or os.environ.get("DPAGG_LOG_LEVEL", get_config().log_level)
    logging.basicConfig(level=log_level, format=LOG_FORMAT)
    root = logging.getLogger()
    for handler in root.handlers:
        _attach_filter(handler)
    return root


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)
