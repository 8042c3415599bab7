"""Tests for the distribution updaters."""

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy import linalg

from dmp_bbo.bbo import (
    DistributionGaussian,
    UpdaterCovarAdaptation,
    UpdaterCovarDecay,
    UpdaterMean,
    costs_to_weights,
)


@pytest.fixture
def distribution() -> DistributionGaussian:
    return DistributionGaussian(mean=[0.0, 0.0], covar=np.eye(2))


@pytest.fixture
def population(distribution, rng):
    """Samples and their distance-to-(1, 1) costs."""
    samples = distribution.generate_samples(20, rng)
    costs = np.sum((samples - 1.0) ** 2, axis=1)
    return samples, costs


class TestCostsToWeights:
    """Tests for costs_to_weights."""

    @pytest.mark.parametrize("method", ["PI-BB", "CEM", "CMA-ES"])
    def test_normalized_and_ordered(self, method) -> None:
        """Test that weights sum to one and favour low costs."""
        costs = np.array([3.0, 1.0, 4.0, 0.5, 2.0])
        weights = costs_to_weights(costs, method, eliteness=3)
        assert weights.sum() == pytest.approx(1.0)
        assert np.all(weights >= 0.0)
        assert weights[3] == pytest.approx(weights.max())
        assert weights[1] >= weights[0] >= weights[2]

    def test_cem_uniform_elites(self) -> None:
        """Test that CEM gives equal weight to the elites only."""
        weights = costs_to_weights(np.array([3.0, 1.0, 4.0, 0.5]), "CEM", eliteness=2)
        assert_allclose(weights, [0.0, 0.5, 0.0, 0.5])

    def test_equal_costs(self) -> None:
        """Test that equal costs give uniform PI-BB weights."""
        assert_allclose(costs_to_weights(np.ones(4), "PI-BB"), np.full(4, 0.25))

    def test_invalid_eliteness_raises(self) -> None:
        """Test that there cannot be more elites than samples."""
        with pytest.raises(ValueError):
            costs_to_weights(np.ones(3), "CEM", eliteness=4)

    def test_unknown_method_raises(self) -> None:
        """Test that unknown weighting methods are rejected."""
        with pytest.raises(ValueError):
            costs_to_weights(np.ones(3), "softmax")


class TestUpdaters:
    """Tests for the updater implementations."""

    def test_mean_moves_towards_low_cost(self, distribution, population) -> None:
        """Test that the mean moves towards the optimum and covar is kept."""
        samples, costs = population
        weights, new = UpdaterMean(eliteness=10).update_distribution(distribution, samples, costs)
        assert weights.shape == (20,)
        assert np.all(new.mean > 0.0)
        assert_allclose(new.covar, distribution.covar)

    def test_covar_decay(self, distribution, population) -> None:
        """Test that the covariance decays by the squared factor."""
        samples, costs = population
        _, new = UpdaterCovarDecay(covar_decay_factor=0.9).update_distribution(distribution, samples, costs)
        assert_allclose(new.covar, 0.81 * np.eye(2))

    def test_covar_decay_invalid_factor(self) -> None:
        """Test that the decay factor must be in (0, 1]."""
        with pytest.raises(ValueError):
            UpdaterCovarDecay(covar_decay_factor=1.5)

    def test_covar_adaptation_is_positive_definite(self, distribution, population) -> None:
        """Test that the adapted covariance is symmetric with floored eigenvalues."""
        samples, costs = population
        updater = UpdaterCovarAdaptation(eliteness=10, base_level=0.01)
        _, new = updater.update_distribution(distribution, samples, costs)
        assert_allclose(new.covar, new.covar.T)
        assert np.all(linalg.eigvalsh(new.covar) >= 0.01 - 1e-12)

    def test_covar_adaptation_floors_degenerate_samples(self, distribution) -> None:
        """Test that collinear samples do not collapse the covariance."""
        samples = np.column_stack([np.linspace(-1, 1, 10), np.zeros(10)])
        costs = np.arange(10, dtype=float)
        updater = UpdaterCovarAdaptation(base_level=0.1, learning_rate=1.0)
        _, new = updater.update_distribution(distribution, samples, costs)
        assert linalg.eigvalsh(new.covar).min() == pytest.approx(0.1)

    def test_covar_adaptation_diagonal_only(self, distribution, population) -> None:
        """Test that off-diagonal entries are dropped."""
        samples, costs = population
        updater = UpdaterCovarAdaptation(diagonal_only=True)
        _, new = updater.update_distribution(distribution, samples, costs)
        assert new.covar[0, 1] == 0.0
        assert new.covar[1, 0] == 0.0

    def test_covar_adaptation_keeps_exploration(self, distribution, population) -> None:
        """Test that the default blending keeps at least half of the previous covariance."""
        samples, costs = population
        _, new = UpdaterCovarAdaptation().update_distribution(distribution, samples, costs)
        assert linalg.eigvalsh(new.covar).min() >= 0.5 - 1e-12

    def test_covar_adaptation_learning_rate(self, distribution, population) -> None:
        """Test that a learning rate blends the old and adapted covariances."""
        samples, costs = population
        _, full = UpdaterCovarAdaptation(base_level=0.0, learning_rate=1.0).update_distribution(
            distribution, samples, costs
        )
        _, half = UpdaterCovarAdaptation(base_level=0.0, learning_rate=0.5).update_distribution(
            distribution, samples, costs
        )
        assert_allclose(half.covar, 0.5 * distribution.covar + 0.5 * full.covar)

    def test_mismatched_costs_raise(self, distribution, population) -> None:
        """Test that there must be one cost per sample."""
        samples, costs = population
        with pytest.raises(ValueError):
            UpdaterMean().update_distribution(distribution, samples, costs[:-1])

    def test_mismatched_samples_raise(self, distribution, population) -> None:
        """Test that samples must match the distribution's dimension."""
        samples, costs = population
        with pytest.raises(ValueError):
            UpdaterMean().update_distribution(distribution, samples[:, :1], costs)

    def test_unknown_weighting_method_raises(self) -> None:
        """Test that updaters validate the weighting method."""
        with pytest.raises(ValueError):
            UpdaterMean(weighting_method="softmax")
