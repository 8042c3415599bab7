"""Rollouts of a DMP for black-box optimization of its parameters.

Each sample is pushed into the DMP, the DMP is integrated analytically over
a fixed time grid, and the resulting trajectory is flattened into one row of
cost variables. Per time step, the row holds

    [y (D), yd (D), ydd (D), t (1), forcing term (D), extended outputs (E)]

so a row has ``n_time_steps * (4 D + 1 + E)`` entries. E is 0 for a plain
:class:`Dmp`.
"""

import logging
from typing import Iterable, Optional, Sequence, Union

import numpy as np

from ..bbo.cost_function import TaskSolver
from ..dmp import Dmp, DmpExtendedDimensions

logger = logging.getLogger(__name__)


class TaskSolverDmp(TaskSolver):
    """Performs rollouts by integrating a DMP with sampled parameters."""

    def __init__(
        self,
        dmp: Union[Dmp, DmpExtendedDimensions],
        optimize_parameters: Iterable[str],
        dt: float,
        integrate_dmp_beyond_tau_factor: float = 1.0,
        use_normalized_parameter: bool = False,
    ):
        """Initialize task solver.

        Args:
            dmp: Trained DMP (optionally with extended dimensions). Its
                parameters are overwritten by every rollout.
            optimize_parameters: Labels of the parameters to optimize,
                e.g. {"weights"}.
            dt: Integration time step [s].
            integrate_dmp_beyond_tau_factor: Integrate until
                ``tau * integrate_dmp_beyond_tau_factor``.
            use_normalized_parameter: Interpret samples as offsets from the
                parameters the DMP had after training.
        """
        if dt <= 0:
            raise ValueError(f"dt must be > 0, got {dt}")
        if integrate_dmp_beyond_tau_factor <= 0:
            raise ValueError(
                f"integrate_dmp_beyond_tau_factor must be > 0, got {integrate_dmp_beyond_tau_factor}"
            )

        self.dmp = dmp
        self.dmp.set_selected_parameters(optimize_parameters)
        self.use_normalized_parameter = use_normalized_parameter

        self.integrate_time = dmp.tau * integrate_dmp_beyond_tau_factor
        self.n_time_steps = int(self.integrate_time / dt + 1e-9) + 1
        self.ts = np.linspace(0.0, self.integrate_time, self.n_time_steps)

    @property
    def dim_extended(self) -> int:
        if isinstance(self.dmp, DmpExtendedDimensions):
            return self.dmp.dim_extended()
        return 0

    @property
    def n_cost_vars_per_time_step(self) -> int:
        return 4 * self.dmp.dim_orig + 1 + self.dim_extended

    def _split_samples(self, samples) -> list[np.ndarray]:
        """One (n_samples, size_i) batch per model of the DMP."""
        if isinstance(samples, np.ndarray):
            samples = [samples]
        batches = [np.atleast_2d(np.asarray(batch, dtype=float)) for batch in samples]
        if len(batches) == 0:
            raise ValueError("Need at least one sample batch")

        n_samples = batches[0].shape[0]
        for batch in batches[1:]:
            if batch.shape[0] != n_samples:
                raise ValueError(
                    f"All sample batches must have the same number of rows, "
                    f"got {[b.shape[0] for b in batches]}"
                )

        sizes = self.dmp.get_parameter_vector_sizes()
        if len(batches) == 1:
            if batches[0].shape[1] != sum(sizes):
                raise ValueError(
                    f"Samples must have {sum(sizes)} columns, got {batches[0].shape[1]}"
                )
            return np.split(batches[0], np.cumsum(sizes)[:-1], axis=1)

        if len(batches) != len(sizes):
            raise ValueError(
                f"Need 1 or {len(sizes)} sample batches, got {len(batches)}"
            )
        for i_model, (batch, size) in enumerate(zip(batches, sizes)):
            if batch.shape[1] != size:
                raise ValueError(
                    f"Sample batch {i_model} must have {size} columns, got {batch.shape[1]}"
                )
        return batches

    def perform_rollouts(
        self,
        samples: Sequence[np.ndarray],
        task_parameters: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Integrate the DMP once per sample.

        Args:
            samples: A single batch (n_samples, n_params) or a list of
                batches, one per DOF (and per extended dimension).
            task_parameters: Unused; the DMP task has no task parameters.

        Returns:
            Cost variables (n_samples, n_time_steps * n_cost_vars_per_time_step).
        """
        batches = self._split_samples(samples)
        n_samples = batches[0].shape[0]
        D = self.dmp.dim_orig
        E = self.dim_extended
        T = self.n_time_steps

        cost_vars = np.zeros((n_samples, T, self.n_cost_vars_per_time_step))
        extended = np.zeros((T, E)) if E > 0 else None

        for k in range(n_samples):
            self.dmp.set_model_parameters_vectors(
                [batch[k] for batch in batches], self.use_normalized_parameter
            )
            if extended is None:
                xs, xds, forcing_terms = self.dmp.analytical_solution(self.ts)
            else:
                xs, xds, forcing_terms = self.dmp.analytical_solution(
                    self.ts, extended_output=extended
                )
            trajectory = self.dmp.states_as_trajectory(self.ts, xs, xds)

            rollout = cost_vars[k]
            rollout[:, 0:D] = trajectory.ys
            rollout[:, D:2 * D] = trajectory.yds
            rollout[:, 2 * D:3 * D] = trajectory.ydds
            rollout[:, 3 * D] = self.ts
            rollout[:, 3 * D + 1:4 * D + 1] = forcing_terms
            if extended is not None:
                rollout[:, 4 * D + 1:] = extended

        logger.debug(f"Performed {n_samples} rollouts of {T} time steps")
        return cost_vars.reshape(n_samples, -1)
