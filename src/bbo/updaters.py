"""Distribution updaters for black-box optimization.

An updater turns the costs of a population of samples into a weight per
sample, and computes a new search distribution from the weighted samples.

Weighting methods (lower cost -> higher weight):
- "PI-BB":  w_k ∝ exp(-h (c_k - c_min) / (c_max - c_min)),  h = eliteness
- "CEM":    uniform weights on the ``eliteness`` best samples
- "CMA-ES": log-linear weights ln(μ + 1/2) - ln(rank) on the μ = eliteness best

Reference:
    Stulp & Sigaud 2013, Paladyn 4(1), Section 3 (PI^BB, CEM, CMA-ES).
"""

from abc import ABC, abstractmethod
import logging

import numpy as np
from scipy import linalg

from .distribution_gaussian import DistributionGaussian

logger = logging.getLogger(__name__)

WEIGHTING_METHODS = ("PI-BB", "CEM", "CMA-ES")


def costs_to_weights(
    costs: np.ndarray,
    weighting_method: str = "PI-BB",
    eliteness: float = 10.0,
) -> np.ndarray:
    """Convert costs into normalized weights.

    Args:
        costs: Cost per sample (K,).
        weighting_method: One of WEIGHTING_METHODS.
        eliteness: Temperature h for PI-BB, number of elites for CEM/CMA-ES.

    Returns:
        Non-negative weights (K,) summing to 1.
    """
    costs = np.asarray(costs, dtype=float).ravel()
    n_samples = costs.shape[0]
    if n_samples == 0:
        raise ValueError("Cannot compute weights for an empty cost vector")

    if weighting_method == "PI-BB":
        cost_range = costs.max() - costs.min()
        if cost_range == 0.0:
            weights = np.ones(n_samples)
        else:
            weights = np.exp(-eliteness * (costs - costs.min()) / cost_range)
    elif weighting_method in ("CEM", "CMA-ES"):
        mu = int(eliteness)
        if not 1 <= mu <= n_samples:
            raise ValueError(
                f"eliteness must be in [1, {n_samples}] for {weighting_method}, got {eliteness}"
            )
        order = np.argsort(costs, kind="stable")
        weights = np.zeros(n_samples)
        if weighting_method == "CEM":
            weights[order[:mu]] = 1.0
        else:
            weights[order[:mu]] = np.log(mu + 0.5) - np.log(np.arange(1, mu + 1))
    else:
        raise ValueError(
            f"weighting_method must be one of {WEIGHTING_METHODS}, got {weighting_method}"
        )

    return weights / weights.sum()


def _validate_update_input(
    distribution: DistributionGaussian,
    samples: np.ndarray,
    costs: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    samples = np.atleast_2d(np.asarray(samples, dtype=float))
    costs = np.asarray(costs, dtype=float).ravel()
    if samples.shape[1] != distribution.n_dims:
        raise ValueError(
            f"samples must have {distribution.n_dims} columns, got {samples.shape[1]}"
        )
    if costs.shape[0] != samples.shape[0]:
        raise ValueError(
            f"costs length ({costs.shape[0]}) must match number of samples ({samples.shape[0]})"
        )
    return samples, costs


class Updater(ABC):
    """Abstract base class for distribution updaters."""

    def __init__(self, eliteness: float = 10.0, weighting_method: str = "PI-BB"):
        """Initialize updater.

        Args:
            eliteness: See :func:`costs_to_weights`.
            weighting_method: One of WEIGHTING_METHODS.
        """
        if weighting_method not in WEIGHTING_METHODS:
            raise ValueError(
                f"weighting_method must be one of {WEIGHTING_METHODS}, got {weighting_method}"
            )
        self.eliteness = eliteness
        self.weighting_method = weighting_method

    @abstractmethod
    def update_distribution(
        self,
        distribution: DistributionGaussian,
        samples: np.ndarray,
        costs: np.ndarray,
    ) -> tuple[np.ndarray, DistributionGaussian]:
        """Compute sample weights and the updated distribution.

        Args:
            distribution: Distribution the samples were drawn from.
            samples: Samples (K, N).
            costs: Cost per sample (K,).

        Returns:
            Tuple (weights (K,), new distribution).
        """
        pass

    def _weighted_mean(self, samples: np.ndarray, costs: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        weights = costs_to_weights(costs, self.weighting_method, self.eliteness)
        return weights, weights @ samples


class UpdaterMean(Updater):
    """Reward-weighted averaging of the mean; covariance is left unchanged."""

    def update_distribution(self, distribution, samples, costs):
        samples, costs = _validate_update_input(distribution, samples, costs)
        weights, mean_new = self._weighted_mean(samples, costs)
        return weights, DistributionGaussian(mean=mean_new, covar=distribution.covar)


class UpdaterCovarDecay(Updater):
    """Reward-weighted averaging of the mean with exponential exploration decay.

    The covariance is multiplied by ``covar_decay_factor**2`` every update.
    """

    def __init__(
        self,
        eliteness: float = 10.0,
        covar_decay_factor: float = 0.95,
        weighting_method: str = "PI-BB",
    ):
        super().__init__(eliteness, weighting_method)
        if not 0.0 < covar_decay_factor <= 1.0:
            raise ValueError(
                f"covar_decay_factor must be in (0, 1], got {covar_decay_factor}"
            )
        self.covar_decay_factor = covar_decay_factor

    def update_distribution(self, distribution, samples, costs):
        samples, costs = _validate_update_input(distribution, samples, costs)
        weights, mean_new = self._weighted_mean(samples, costs)
        covar_new = self.covar_decay_factor ** 2 * distribution.covar
        return weights, DistributionGaussian(mean=mean_new, covar=covar_new)


class UpdaterCovarAdaptation(Updater):
    """Reward-weighted averaging of both mean and covariance.

    The adapted covariance is the weighted scatter of the samples around
    the previous mean, blended with the previous covariance by
    ``learning_rate``. Eigenvalues below ``base_level`` are raised to it,
    which keeps the matrix symmetric positive definite.

    With PI-BB weighting most of the weight falls on one or two samples,
    whose scatter is close to rank one. Blending with the previous
    covariance (``learning_rate`` < 1) keeps exploration in the other
    directions until the mean has converged.
    """

    def __init__(
        self,
        eliteness: float = 10.0,
        weighting_method: str = "PI-BB",
        base_level: float = 1e-3,
        diagonal_only: bool = False,
        learning_rate: float = 0.5,
    ):
        super().__init__(eliteness, weighting_method)
        if not 0.0 < learning_rate <= 1.0:
            raise ValueError(f"learning_rate must be in (0, 1], got {learning_rate}")
        if base_level < 0.0:
            raise ValueError(f"base_level must be >= 0, got {base_level}")
        self.base_level = base_level
        self.diagonal_only = diagonal_only
        self.learning_rate = learning_rate

    def update_distribution(self, distribution, samples, costs):
        samples, costs = _validate_update_input(distribution, samples, costs)
        weights, mean_new = self._weighted_mean(samples, costs)

        deviations = samples - distribution.mean
        covar_new = (deviations.T * weights) @ deviations
        if self.diagonal_only:
            covar_new = np.diag(np.diag(covar_new))

        covar_new = (
            (1.0 - self.learning_rate) * distribution.covar
            + self.learning_rate * covar_new
        )

        # Ensure symmetry (numerical stability)
        covar_new = 0.5 * (covar_new + covar_new.T)

        eig_values, eig_vectors = linalg.eigh(covar_new)
        if np.any(eig_values < self.base_level):
            logger.debug(
                f"Raising {np.sum(eig_values < self.base_level)} covariance "
                f"eigenvalue(s) to base level {self.base_level}"
            )
            eig_values = np.maximum(eig_values, self.base_level)
            covar_new = (eig_vectors * eig_values) @ eig_vectors.T
            covar_new = 0.5 * (covar_new + covar_new.T)

        return weights, DistributionGaussian(mean=mean_new, covar=covar_new)
