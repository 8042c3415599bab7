"""Cost functions, tasks and task solvers.

Two ways of scoring samples are supported:

- A :class:`CostFunction` maps a sample directly to a scalar cost.
- A :class:`TaskSolver` turns samples into rollouts (cost variables), and a
  :class:`Task` maps the cost variables of one rollout to a scalar cost.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

import numpy as np


class CostFunction(ABC):
    """Abstract base class for cost functions on samples."""

    @abstractmethod
    def evaluate(self, sample: np.ndarray) -> float:
        """Cost of one sample (N,)."""
        pass


class CostFunctionQuadratic(CostFunction):
    """Squared distance to a point: f(x) = ||x - point||^2."""

    def __init__(self, point):
        self.point = np.atleast_1d(np.asarray(point, dtype=float)).ravel().copy()

    def evaluate(self, sample: np.ndarray) -> float:
        sample = np.asarray(sample, dtype=float).ravel()
        if sample.shape != self.point.shape:
            raise ValueError(
                f"sample must have shape {self.point.shape}, got {sample.shape}"
            )
        diff = sample - self.point
        return float(diff @ diff)


class TaskSolver(ABC):
    """Abstract base class for solvers that execute rollouts."""

    @abstractmethod
    def perform_rollouts(
        self,
        samples: Sequence[np.ndarray],
        task_parameters: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Execute one rollout per sample.

        Args:
            samples: One batch (n_samples, n_params_i) per parameter group.
            task_parameters: Optional task parameters (n_samples, n_task_params).

        Returns:
            Cost variables (n_samples, n_cost_vars).
        """
        pass


class Task(ABC):
    """Abstract base class for tasks that score rollouts."""

    @abstractmethod
    def evaluate_rollout(self, cost_vars: np.ndarray, sample: np.ndarray) -> float:
        """Cost of one rollout.

        Args:
            cost_vars: Cost variables of the rollout (n_cost_vars,).
            sample: The concatenated sample that produced the rollout.
        """
        pass
