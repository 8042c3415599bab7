"""Base class for time-invariant first-order dynamical systems."""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np


class DynamicalSystem(ABC):
    """Abstract base class for dynamical systems xd = f(x) / tau.

    All systems are time-scaled by ``tau``: doubling tau makes the system
    evolve twice as slowly.
    """

    def __init__(self, tau: float, x_init):
        """Initialize dynamical system.

        Args:
            tau: Time constant (> 0).
            x_init: Initial state (dim,).
        """
        if tau <= 0:
            raise ValueError(f"tau must be > 0, got {tau}")
        self.tau = float(tau)
        self.x_init = np.atleast_1d(np.asarray(x_init, dtype=float)).copy()

    @property
    def dim(self) -> int:
        return self.x_init.shape[0]

    @abstractmethod
    def differential_equation(self, x: np.ndarray, xd: Optional[np.ndarray] = None) -> np.ndarray:
        """Rate of change of the state.

        Args:
            x: Current state (dim,).
            xd: Optional buffer (dim,) to write the rate into.

        Returns:
            Rate of change xd (dim,).
        """
        pass

    @abstractmethod
    def analytical_solution(self, ts: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Closed-form states and rates at the times ``ts``.

        Returns:
            xs: States (T, dim).
            xds: Rates of change (T, dim).
        """
        pass

    def integrate_start(self) -> tuple[np.ndarray, np.ndarray]:
        """Initial state and its rate of change."""
        x = self.x_init.copy()
        return x, self.differential_equation(x)

    def integrate_step_euler(self, dt: float, x: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Single explicit Euler step."""
        x_updated = x + dt * self.differential_equation(x)
        return x_updated, self.differential_equation(x_updated)
