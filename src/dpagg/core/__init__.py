"""Entry point for the core library components."""

from __future__ import annotations

from .privacy import (
    BaseMechanism,
    CalibrationError,
    MechanismBuilder,
    MechanismError,
    NotCalibratedError,
    ValidationError,
    validate_privacy_budget,
)
from .data import (
    FLOAT32,
    FLOAT64,
    INT32,
    INT64,
    NumericKind,
    resolve_numeric_kind,
)
from .utils import (
    ParamValidationError,
    RuntimeConfig,
    configure,
    get_config,
    get_logger,
)

__all__ = [
    "BaseMechanism",
    "CalibrationError",
    "MechanismBuilder",
    "MechanismError",
    "NotCalibratedError",
    "ValidationError",
    "validate_privacy_budget",
    "FLOAT32",
    "FLOAT64",
    "INT32",
    "INT64",
    "NumericKind",
    "resolve_numeric_kind",
    "ParamValidationError",
    "RuntimeConfig",
    "configure",
    "get_config",
    "get_logger",
]
