"""Gaussian search distribution for black-box optimization."""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy import linalg

PSD_TOLERANCE = 1e-10


@dataclass
class DistributionGaussian:
    """Multivariate Gaussian search distribution.

    Attributes:
        mean: Mean vector (N,).
        covar: Covariance matrix (N, N), symmetric positive semi-definite.
    """

    mean: np.ndarray
    covar: np.ndarray

    def __post_init__(self):
        """Validate shapes and convert to numpy arrays."""
        self.mean = np.atleast_1d(np.asarray(self.mean, dtype=float)).ravel().copy()
        self.covar = np.atleast_2d(np.asarray(self.covar, dtype=float)).copy()

        n_dims = self.mean.shape[0]
        if self.covar.shape != (n_dims, n_dims):
            raise ValueError(
                f"covar must have shape ({n_dims}, {n_dims}), got {self.covar.shape}"
            )
        if not np.allclose(self.covar, self.covar.T):
            raise ValueError("covar must be symmetric")
        eig_values = linalg.eigh(self.covar, eigvals_only=True)
        if eig_values[0] < -PSD_TOLERANCE * max(1.0, abs(eig_values[-1])):
            raise ValueError(
                f"covar must be positive semi-definite, smallest eigenvalue is {eig_values[0]}"
            )

    @property
    def n_dims(self) -> int:
        return self.mean.shape[0]

    def generate_samples(
        self,
        n_samples: int,
        rng: Optional[np.random.Generator] = None,
    ) -> np.ndarray:
        """Draw i.i.d. samples.

        Args:
            n_samples: Number of samples.
            rng: Random generator. A fresh unseeded one if None.

        Returns:
            Samples (n_samples, N).
        """
        if n_samples < 1:
            raise ValueError(f"n_samples must be >= 1, got {n_samples}")
        rng = rng if rng is not None else np.random.default_rng()
        return rng.multivariate_normal(self.mean, self.covar, size=n_samples, method="eigh")

    def max_eigen_value(self) -> float:
        """Largest eigenvalue of the covariance matrix."""
        return float(linalg.eigh(self.covar, eigvals_only=True)[-1])

    def copy(self) -> "DistributionGaussian":
        return DistributionGaussian(mean=self.mean.copy(), covar=self.covar.copy())

    def __str__(self) -> str:
        return (
            f"DistributionGaussian:\n"
            f"  mean:  {np.array2string(self.mean, precision=4)}\n"
            f"  covar diagonal: {np.array2string(np.diag(self.covar), precision=4)}\n"
            f"  max eigenvalue: {self.max_eigen_value():.6f}"
        )
