"""Core privacy abstractions and shared exceptions."""
from .base_mechanism import (
    BaseMechanism,
    MechanismBuilder,
    MechanismError,
    ValidationError,
    CalibrationError,
    NotCalibratedError,
    validate_privacy_budget,
)

__all__ = [
    "BaseMechanism",
    "MechanismBuilder",
    "MechanismError",
    "ValidationError",
    "CalibrationError",
    "NotCalibratedError",
    "validate_privacy_budget",
]
