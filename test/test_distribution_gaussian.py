"""Tests for DistributionGaussian."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from dmp_bbo.bbo import DistributionGaussian


class TestDistributionGaussian:
    """Tests for the Gaussian search distribution."""

    def test_construction(self) -> None:
        """Test conversion of inputs to arrays."""
        distribution = DistributionGaussian(mean=[1.0, 2.0], covar=np.eye(2))
        assert distribution.n_dims == 2
        assert distribution.mean.shape == (2,)

    def test_non_square_covar_raises(self) -> None:
        """Test that the covariance must be N x N."""
        with pytest.raises(ValueError):
            DistributionGaussian(mean=[0.0, 0.0], covar=np.eye(3))

    def test_asymmetric_covar_raises(self) -> None:
        """Test that the covariance must be symmetric."""
        with pytest.raises(ValueError):
            DistributionGaussian(mean=[0.0, 0.0], covar=[[1.0, 0.5], [0.0, 1.0]])

    def test_indefinite_covar_raises(self) -> None:
        """Test that the covariance must be positive semi-definite."""
        with pytest.raises(ValueError, match="semi-definite"):
            DistributionGaussian(mean=[0.0, 0.0], covar=[[1.0, 2.0], [2.0, 1.0]])

    def test_singular_covar_is_accepted(self) -> None:
        """Test that a rank-deficient covariance is a valid distribution."""
        distribution = DistributionGaussian(mean=[0.0, 0.0], covar=[[1.0, 1.0], [1.0, 1.0]])
        assert distribution.max_eigen_value() == pytest.approx(2.0)

    def test_generate_samples(self, rng) -> None:
        """Test sample shape and statistics."""
        distribution = DistributionGaussian(mean=[1.0, -2.0], covar=np.diag([1.0, 4.0]))
        samples = distribution.generate_samples(20000, rng)
        assert samples.shape == (20000, 2)
        assert_allclose(samples.mean(axis=0), [1.0, -2.0], atol=0.1)
        assert_allclose(np.cov(samples.T), np.diag([1.0, 4.0]), atol=0.2)

    def test_seeded_samples_are_reproducible(self) -> None:
        """Test that equal seeds give equal samples."""
        distribution = DistributionGaussian(mean=[0.0, 0.0, 0.0], covar=np.eye(3))
        first = distribution.generate_samples(5, np.random.default_rng(3))
        second = distribution.generate_samples(5, np.random.default_rng(3))
        assert_allclose(first, second)

    def test_invalid_sample_count_raises(self) -> None:
        """Test that at least one sample is required."""
        with pytest.raises(ValueError):
            DistributionGaussian(mean=[0.0], covar=[[1.0]]).generate_samples(0)

    def test_max_eigen_value(self) -> None:
        """Test the largest covariance eigenvalue."""
        distribution = DistributionGaussian(mean=[0.0, 0.0], covar=np.diag([1.0, 4.0]))
        assert distribution.max_eigen_value() == pytest.approx(4.0)

    def test_copy_is_independent(self) -> None:
        """Test that a copy does not share memory."""
        distribution = DistributionGaussian(mean=[0.0, 0.0], covar=np.eye(2))
        clone = distribution.copy()
        clone.mean[0] = 5.0
        clone.covar[1, 1] = 3.0
        assert distribution.mean[0] == 0.0
        assert distribution.covar[1, 1] == 1.0

    def test_str(self) -> None:
        """Test the string representation."""
        assert "DistributionGaussian" in str(DistributionGaussian(mean=[0.0], covar=[[2.0]]))
