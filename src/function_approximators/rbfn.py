"""Radial Basis Function Network (RBFN) regression."""

import numpy as np

from .base_function_approximator import FunctionApproximator
from .least_squares import batch_least_squares


class FunctionApproximatorRBFN(FunctionApproximator):
    """Radial Basis Function Network.

    Output is a weighted sum of Gaussian kernels:

        f(x) = Σ_b w_b exp(-0.5 ((x - c_b) / σ_b)^2)

    Centers c and widths σ are placed evenly over the training input range;
    weights w are fitted by (optionally regularized) least squares.
    """

    PARAMETER_LABELS = ("centers", "widths", "weights")

    def _train(self, inputs: np.ndarray, targets: np.ndarray) -> dict[str, np.ndarray]:
        centers, widths = self._initial_centers_and_widths(inputs)
        self._model = {"centers": centers, "widths": widths}

        activations = self._activations(inputs.reshape(-1, 1))
        weights = batch_least_squares(activations, targets, self.regularization)

        return {"centers": centers, "widths": widths, "weights": weights}

    def _predict(self, inputs: np.ndarray, outputs: np.ndarray) -> np.ndarray:
        activations = self._activations(inputs, self._scratch_activations(inputs))
        weights = self._model["weights"]
        if outputs.flags.c_contiguous and outputs.shape == (inputs.shape[0],):
            np.dot(activations, weights, out=outputs)
        else:
            outputs[:] = activations @ weights
        return outputs
