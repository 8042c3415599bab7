"""Dynamical systems used as DMP subsystems."""

from .base_system import DynamicalSystem
from .systems import (
    ExponentialSystem,
    SigmoidSystem,
    SpringDamperSystem,
    TimeSystem,
)

__all__ = [
    "DynamicalSystem",
    "ExponentialSystem",
    "SigmoidSystem",
    "SpringDamperSystem",
    "TimeSystem",
]
