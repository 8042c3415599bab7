"""Evolutionary optimization loop over Gaussian search distributions.

Every update:
    0. evaluate the cost at the distribution mean (diagnostic only),
    1. sample from the distribution,
    2. evaluate the samples,
    3. update the distribution with the updater,
    4. record the learning curve and optionally checkpoint the update.

Checkpoints are written to ``<save_directory>/update<5-digit index>/``
and the learning curve to ``<save_directory>/learning_curve.txt``.
"""

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

import numpy as np

from ..matrix_io import save_matrix
from .cost_function import CostFunction, Task, TaskSolver
from .distribution_gaussian import DistributionGaussian
from .updaters import Updater

logger = logging.getLogger(__name__)

Distributions = Union[DistributionGaussian, Sequence[DistributionGaussian]]
RandomState = Union[None, int, np.random.Generator]


class CheckpointError(RuntimeError):
    """Raised when the optimization state cannot be persisted."""


@dataclass
class OptimizationResult:
    """Outcome of an optimization run.

    Attributes:
        distributions: Final distribution(s), one per parallel group.
        learning_curve: (n_updates, 3) rows of
            [samples so far, cost at mean, sqrt(max covariance eigenvalue)].
    """

    distributions: list[DistributionGaussian]
    learning_curve: np.ndarray

    @property
    def distribution(self) -> DistributionGaussian:
        """Final distribution of a single-distribution run."""
        if len(self.distributions) != 1:
            raise ValueError(
                f"Run optimized {len(self.distributions)} distributions; use .distributions"
            )
        return self.distributions[0]

    @property
    def costs_eval(self) -> np.ndarray:
        return self.learning_curve[:, 1]


def save_to_directory(
    directory,
    i_update: int,
    distributions: Distributions,
    cost_eval: Optional[float],
    samples: np.ndarray,
    costs: np.ndarray,
    weights: np.ndarray,
    distributions_new: Distributions,
    overwrite: bool = False,
) -> bool:
    """Write the state of one update to ``directory/update<i_update:05d>``.

    Returns:
        True on success, False if a directory could not be created or a file
        exists and ``overwrite`` is False.
    """
    if isinstance(distributions, DistributionGaussian):
        distributions = [distributions]
    if isinstance(distributions_new, DistributionGaussian):
        distributions_new = [distributions_new]
    if len(distributions) != len(distributions_new):
        raise ValueError(
            f"Got {len(distributions)} distributions but {len(distributions_new)} new ones"
        )

    directory = Path(directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Couldn't make directory '{directory}': {e}")
        return False

    dir_update = directory / f"update{i_update:05d}"
    ow = overwrite

    if len(distributions) == 1:
        if not save_matrix(dir_update, "distribution_mean.txt", distributions[0].mean, ow):
            return False
        if not save_matrix(dir_update, "distribution_covar.txt", distributions[0].covar, ow):
            return False
    else:
        n_parallel = np.array([[len(distributions)]], dtype=int)
        if not save_matrix(dir_update, "n_parallel.txt", n_parallel, ow):
            return False
        for dd, distribution in enumerate(distributions):
            prefix = f"distribution_{dd:03d}"
            if not save_matrix(dir_update, f"{prefix}_mean.txt", distribution.mean, ow):
                return False
            if not save_matrix(dir_update, f"{prefix}_covar.txt", distribution.covar, ow):
                return False

    if cost_eval is not None:
        if not save_matrix(dir_update, "cost_eval.txt", np.array([[cost_eval]]), ow):
            return False

    for filename, matrix in (("samples.txt", samples), ("costs.txt", costs), ("weights.txt", weights)):
        if matrix is not None and np.size(matrix) > 0:
            if not save_matrix(dir_update, filename, matrix, ow):
                return False

    if len(distributions_new) == 1:
        if not save_matrix(dir_update, "distribution_new_mean.txt", distributions_new[0].mean, ow):
            return False
        if not save_matrix(dir_update, "distribution_new_covar.txt", distributions_new[0].covar, ow):
            return False
    else:
        for dd, distribution in enumerate(distributions_new):
            prefix = f"distribution_new_{dd:03d}"
            if not save_matrix(dir_update, f"{prefix}_mean.txt", distribution.mean, ow):
                return False
            if not save_matrix(dir_update, f"{prefix}_covar.txt", distribution.covar, ow):
                return False

    return True


def _optimization_loop(
    evaluate: Callable[[list[np.ndarray]], np.ndarray],
    initial_distribution: Distributions,
    updater: Updater,
    n_updates: int,
    n_samples_per_update: int,
    save_directory,
    overwrite: bool,
    only_learning_curve: bool,
    rng: RandomState,
) -> OptimizationResult:
    if n_updates < 1:
        raise ValueError(f"n_updates must be >= 1, got {n_updates}")
    if n_samples_per_update < 1:
        raise ValueError(f"n_samples_per_update must be >= 1, got {n_samples_per_update}")

    if isinstance(initial_distribution, DistributionGaussian):
        initial_distribution = [initial_distribution]
    if len(initial_distribution) == 0:
        raise ValueError("Need at least one initial distribution")

    rng = np.random.default_rng(rng)
    distributions = [d.copy() for d in initial_distribution]
    learning_curve = np.zeros((n_updates, 3))

    logger.info(
        f"Starting optimization: {n_updates} updates, {n_samples_per_update} samples "
        f"per update, {len(distributions)} distribution(s)"
    )

    for i_update in range(n_updates):
        # 0. Get cost of current distribution mean
        cost_eval = float(evaluate([d.mean.reshape(1, -1) for d in distributions])[0])

        # 1. Sample from distribution
        sample_batches = [d.generate_samples(n_samples_per_update, rng) for d in distributions]

        # 2. Evaluate the samples
        costs = np.asarray(evaluate(sample_batches), dtype=float).ravel()
        if costs.shape[0] != n_samples_per_update:
            raise ValueError(
                f"Expected {n_samples_per_update} costs, got {costs.shape[0]}"
            )

        # 3. Update parameters
        weights = None
        distributions_new = []
        for distribution, samples in zip(distributions, sample_batches):
            w, distribution_new = updater.update_distribution(distribution, samples, costs)
            weights = w if weights is None else weights
            distributions_new.append(distribution_new)

        # Bookkeeping
        max_eigen_value = max(d.max_eigen_value() for d in distributions)
        learning_curve[i_update, 0] = i_update * n_samples_per_update
        learning_curve[i_update, 1] = cost_eval
        learning_curve[i_update, 2] = np.sqrt(max(max_eigen_value, 0.0))

        logger.info(
            f"Update {i_update + 1}/{n_updates}: cost_eval={cost_eval:.6f}, "
            f"exploration={learning_curve[i_update, 2]:.6f}"
        )

        if save_directory is not None and not only_learning_curve:
            saved = save_to_directory(
                save_directory,
                i_update,
                distributions,
                cost_eval,
                np.hstack(sample_batches),
                costs,
                weights,
                distributions_new,
                overwrite,
            )
            if not saved:
                raise CheckpointError(
                    f"Could not save update {i_update} to '{save_directory}'"
                )

        # Distribution is new distribution
        distributions = distributions_new

    if save_directory is not None:
        if not save_matrix(save_directory, "learning_curve.txt", learning_curve, overwrite):
            raise CheckpointError(f"Could not save learning curve to '{save_directory}'")

    return OptimizationResult(distributions=distributions, learning_curve=learning_curve)


def run_optimization(
    cost_function: CostFunction,
    initial_distribution: Distributions,
    updater: Updater,
    n_updates: int,
    n_samples_per_update: int,
    save_directory=None,
    overwrite: bool = False,
    only_learning_curve: bool = False,
    rng: RandomState = None,
) -> OptimizationResult:
    """Optimize a cost function on samples.

    Args:
        cost_function: Maps a sample to a scalar cost.
        initial_distribution: Initial search distribution, or a list of
            distributions optimized jointly. With a list, the cost function
            receives the concatenation of one sample per distribution.
        updater: Distribution updater.
        n_updates: Number of updates (always all performed).
        n_samples_per_update: Samples drawn per update.
        save_directory: If given, checkpoint directory.
        overwrite: Whether existing checkpoint files may be replaced.
        only_learning_curve: Save only the learning curve, not every update.
        rng: Seed or random generator for sampling.

    Raises:
        CheckpointError: If saving to ``save_directory`` fails.
    """

    def evaluate(sample_batches: list[np.ndarray]) -> np.ndarray:
        samples = np.hstack(sample_batches)
        return np.array([cost_function.evaluate(sample) for sample in samples])

    return _optimization_loop(
        evaluate,
        initial_distribution,
        updater,
        n_updates,
        n_samples_per_update,
        save_directory,
        overwrite,
        only_learning_curve,
        rng,
    )


def run_optimization_task(
    task: Task,
    task_solver: TaskSolver,
    initial_distribution: Distributions,
    updater: Updater,
    n_updates: int,
    n_samples_per_update: int,
    save_directory=None,
    overwrite: bool = False,
    only_learning_curve: bool = False,
    rng: RandomState = None,
    task_parameters: Optional[np.ndarray] = None,
) -> OptimizationResult:
    """Optimize a task whose costs are computed from rollouts.

    The task solver receives one sample batch per distribution; the task
    scores each rollout's cost variables together with the concatenated
    sample. Other arguments are as in :func:`run_optimization`.
    """

    def evaluate(sample_batches: list[np.ndarray]) -> np.ndarray:
        cost_vars = task_solver.perform_rollouts(sample_batches, task_parameters)
        samples = np.hstack(sample_batches)
        return np.array([
            task.evaluate_rollout(cost_vars[k], samples[k]) for k in range(samples.shape[0])
        ])

    return _optimization_loop(
        evaluate,
        initial_distribution,
        updater,
        n_updates,
        n_samples_per_update,
        save_directory,
        overwrite,
        only_learning_curve,
        rng,
    )
