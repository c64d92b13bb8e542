"""Numeric value kinds shared by the aggregators."""

from .numeric import (
    FLOAT32,
    FLOAT64,
    INT32,
    INT64,
    NumericKind,
    resolve_numeric_kind,
)

__all__ = [
    "FLOAT32",
    "FLOAT64",
    "INT32",
    "INT64",
    "NumericKind",
    "resolve_numeric_kind",
]
