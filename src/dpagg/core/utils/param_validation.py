"""
Reusable validation helpers and decorators.
"""
# 说明：参数验证相关的辅助函数与装饰器，用于在库内部统一进行轻量级参数检查与转换。
# 职责：
# - ParamValidationError：专门用于参数校验失败的异常类型
# - ensure / ensure_type：基于布尔条件或类型集合触发校验错误
# - ensure_finite：拒绝 NaN 与无穷大
# - validate_arguments：根据 schema 为函数参数应用验证/转换逻辑的装饰器

from __future__ import annotations

import functools
import math
from typing import Any, Callable, Dict, Mapping, Tuple, Type


class ParamValidationError(ValueError):
    """Raised when parameter validation fails."""


def ensure(condition: bool, message: str, *, error: Type[Exception] = ParamValidationError) -> None:
    if not condition:
        raise error(message)


def ensure_type(value: Any, expected: Tuple[type, ...], *, label: str = "value") -> None:
    if not isinstance(value, expected):
        names = ", ".join(t.__name__ for t in expected)
        raise ParamValidationError(f"{label} must be instance of {names}")


def ensure_finite(
    value: Any,
    *,
    label: str = "value",
    error: Type[Exception] = ParamValidationError,
) -> float:
    # 转换为 float 并拒绝 NaN/inf；返回转换后的数值以便链式使用
    try:
        numeric = float(value)
    except (TypeError, ValueError) as exc:
        raise error(f"{label} must be a real number") from exc
    if not math.isfinite(numeric):
        raise error(f"{label} must be finite")
    return numeric


def validate_arguments(schema: Mapping[str, Callable[[Any], Any]]) -> Callable:
    """
    Decorator validating arguments according to callables.

    Each validator receives the argument and should return the (possibly
    transformed) value or raise.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            mutable = list(args)
            kw: Dict[str, Any] = dict(kwargs)
            varnames = func.__code__.co_varnames[: func.__code__.co_argcount]
            for name, validator in schema.items():
                if name in kw:
                    kw[name] = validator(kw[name])
                    continue
                if name not in varnames:
                    continue
                index = varnames.index(name)
                # 未显式传入的参数使用默认值，不强制验证
                if index >= len(mutable):
                    continue
                mutable[index] = validator(mutable[index])
            return func(*tuple(mutable), **kw)

        return wrapper

    return decorator
