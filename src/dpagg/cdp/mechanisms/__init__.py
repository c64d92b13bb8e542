"""Noise mechanisms used by the central DP aggregators."""
from .laplace import LaplaceMechanism, LaplaceMechanismBuilder

__all__ = [
    "LaplaceMechanism",
    "LaplaceMechanismBuilder",
]
