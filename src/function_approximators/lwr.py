"""Locally Weighted Regression (LWR)."""

import numpy as np

from .base_function_approximator import FunctionApproximator
from .least_squares import weighted_least_squares


class FunctionApproximatorLWR(FunctionApproximator):
    """Locally Weighted Regression with Gaussian weighting kernels.

    Each basis function owns a local line; the output blends the lines with
    normalized kernel activations:

        ψ_b(x) = exp(-0.5 ((x - c_b) / σ_b)^2)
        f(x)   = Σ_b ψ_b(x) (a_b x + o_b) / Σ_b ψ_b(x)

    Each line (slope a_b, offset o_b) is fitted by weighted least squares
    with the kernel activations as sample weights.
    """

    PARAMETER_LABELS = ("centers", "widths", "slopes", "offsets")

    def __init__(
        self,
        n_basis_functions: int = 10,
        intersection_height: float = 0.5,
        regularization: float = 0.0,
    ):
        super().__init__(n_basis_functions, intersection_height, regularization)
        self._lines_one = np.zeros((1, n_basis_functions))
        self._sum_activations_one = np.zeros(1)

    def _train(self, inputs: np.ndarray, targets: np.ndarray) -> dict[str, np.ndarray]:
        centers, widths = self._initial_centers_and_widths(inputs)
        self._model = {"centers": centers, "widths": widths}

        activations = self._activations(inputs.reshape(-1, 1))
        design = np.column_stack([inputs, np.ones_like(inputs)])

        slopes = np.zeros(self.n_basis_functions)
        offsets = np.zeros(self.n_basis_functions)
        for b in range(self.n_basis_functions):
            slopes[b], offsets[b] = weighted_least_squares(
                design, targets, activations[:, b], self.regularization
            )

        return {"centers": centers, "widths": widths, "slopes": slopes, "offsets": offsets}

    def _predict(self, inputs: np.ndarray, outputs: np.ndarray) -> np.ndarray:
        activations = self._activations(inputs, self._scratch_activations(inputs))
        if inputs.shape[0] == 1:
            lines, sum_activations = self._lines_one, self._sum_activations_one
        else:
            lines = np.empty_like(activations)
            sum_activations = np.empty(inputs.shape[0])

        np.multiply(inputs, self._model["slopes"], out=lines)
        np.add(lines, self._model["offsets"], out=lines)
        np.multiply(lines, activations, out=lines)

        np.sum(activations, axis=1, out=sum_activations)
        np.maximum(sum_activations, 1e-300, out=sum_activations)
        np.sum(lines, axis=1, out=outputs)
        np.divide(outputs, sum_activations, out=outputs)
        return outputs
