"""Shared utility helpers used across the core library."""

from .random import (
    create_rng,
    sample_noise,
)
from .config import (
    RuntimeConfig,
    get_config,
    configure,
)
from .serialization import (
    serialize_to_json,
    deserialize_from_json,
    VersionedPayload,
)
from .logging import (
    get_logger,
    configure_logging,
)
from .param_validation import (
    ensure,
    ensure_finite,
    ensure_type,
    validate_arguments,
    ParamValidationError,
)

__all__ = [
    "create_rng",
    "sample_noise",
    "RuntimeConfig",
    "get_config",
    "configure",
    "serialize_to_json",
    "deserialize_from_json",
    "VersionedPayload",
    "get_logger",
    "configure_logging",
    "ensure",
    "ensure_finite",
    "ensure_type",
    "validate_arguments",
    "ParamValidationError",
]
