"""Base class for basis-function regression models.

A function approximator maps a scalar input (the DMP phase) to a scalar
output. Its trainable model parameters are grouped under string labels
(e.g. "centers", "widths", "weights"). Every label owns a fixed slice of
one flat "all parameters" vector, so a selection of labels corresponds to
a stable set of indices into that vector. Optimizers read and write only
the selected part.
"""

from abc import ABC, abstractmethod
import copy
from typing import Iterable, Optional

import numpy as np


class FunctionApproximator(ABC):
    """Abstract base class for 1D-input, 1D-output function approximators.

    Subclasses define ``PARAMETER_LABELS`` (the ordered label space) and
    implement ``_train`` and ``_predict``. Model parameters are stored in
    ``self._model`` as one array of length ``n_basis_functions`` per label.
    """

    PARAMETER_LABELS: tuple[str, ...] = ()

    def __init__(
        self,
        n_basis_functions: int = 10,
        intersection_height: float = 0.5,
        regularization: float = 0.0,
    ):
        """Initialize function approximator.

        Args:
            n_basis_functions: Number of Gaussian basis functions.
            intersection_height: Height at which neighbouring basis
                functions intersect, in (0, 1). Determines widths.
            regularization: Tikhonov regularization used during training.
        """
        if n_basis_functions < 1:
            raise ValueError(
                f"n_basis_functions must be >= 1, got {n_basis_functions}"
            )
        if not 0.0 < intersection_height < 1.0:
            raise ValueError(
                f"intersection_height must be in (0, 1), got {intersection_height}"
            )

        self.n_basis_functions = n_basis_functions
        self.intersection_height = intersection_height
        self.regularization = regularization

        self._model: Optional[dict[str, np.ndarray]] = None
        self._selected_labels: set[str] = set()
        self._selected_indices: np.ndarray = np.zeros(0, dtype=int)

        # Scratch memory for single-input prediction on the real-time path
        self._activations_one = np.zeros((1, n_basis_functions))

    # ------------------------------------------------------------------
    # Training and prediction
    # ------------------------------------------------------------------

    @property
    def is_trained(self) -> bool:
        return self._model is not None

    def train(self, inputs: np.ndarray, targets: np.ndarray) -> None:
        """Train the model on (inputs, targets).

        Args:
            inputs: Input samples (N,) or (N, 1).
            targets: Target values (N,) or (N, 1).
        """
        inputs = np.asarray(inputs, dtype=float).ravel()
        targets = np.asarray(targets, dtype=float).ravel()
        if inputs.shape != targets.shape:
            raise ValueError(
                f"inputs and targets must have the same length, "
                f"got {inputs.shape[0]} and {targets.shape[0]}"
            )
        if inputs.shape[0] == 0:
            raise ValueError("Cannot train on an empty data set")

        self._model = self._train(inputs, targets)

    def predict(self, inputs: np.ndarray, outputs: Optional[np.ndarray] = None) -> np.ndarray:
        """Compute model outputs.

        Args:
            inputs: Input samples (N,) or (N, 1).
            outputs: Optional pre-allocated buffer (N,) that is filled in place.

        Returns:
            Model outputs (N,).
        """
        if self._model is None:
            raise RuntimeError(
                f"{self.__class__.__name__} must be trained before predicting"
            )
        inputs = np.asarray(inputs, dtype=float).reshape(-1, 1)
        if outputs is None:
            outputs = np.empty(inputs.shape[0])
        return self._predict(inputs, outputs)

    @abstractmethod
    def _train(self, inputs: np.ndarray, targets: np.ndarray) -> dict[str, np.ndarray]:
        """Fit the model and return its parameters keyed by label."""
        pass

    @abstractmethod
    def _predict(self, inputs: np.ndarray, outputs: np.ndarray) -> np.ndarray:
        """Fill ``outputs`` (N,) for ``inputs`` (N, 1) and return it."""
        pass

    # ------------------------------------------------------------------
    # Gaussian basis functions
    # ------------------------------------------------------------------

    def _initial_centers_and_widths(self, inputs: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Centers spread evenly over the input range.

        Widths are chosen so that neighbouring kernels intersect at
        ``intersection_height``.
        """
        lo, hi = float(np.min(inputs)), float(np.max(inputs))
        centers = np.linspace(lo, hi, self.n_basis_functions)
        if self.n_basis_functions > 1 and hi > lo:
            spacing = centers[1] - centers[0]
            width = spacing / (2.0 * np.sqrt(-2.0 * np.log(self.intersection_height)))
        else:
            width = max(hi - lo, 1.0)
        widths = np.full(self.n_basis_functions, width)
        return centers, widths

    def _activations(self, inputs: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Gaussian kernel activations (N, B) for inputs (N, 1)."""
        centers = self._model["centers"]
        widths = self._model["widths"]
        if out is None or out.shape != (inputs.shape[0], self.n_basis_functions):
            out = np.empty((inputs.shape[0], self.n_basis_functions))
        np.subtract(inputs, centers, out=out)
        np.divide(out, widths, out=out)
        np.square(out, out=out)
        np.multiply(out, -0.5, out=out)
        np.exp(out, out=out)
        return out

    def _scratch_activations(self, inputs: np.ndarray) -> Optional[np.ndarray]:
        if inputs.shape[0] == 1:
            return self._activations_one
        return None

    # ------------------------------------------------------------------
    # Selectable parameters
    # ------------------------------------------------------------------

    def get_selectable_parameters(self) -> set[str]:
        """Labels of the model parameters that may be selected."""
        return set(self.PARAMETER_LABELS)

    def get_selected_parameters(self) -> set[str]:
        return set(self._selected_labels)

    def set_selected_parameters(self, labels: Iterable[str]) -> None:
        """Select which labelled parameters form the parameter vector.

        Raises:
            ValueError: If a label is not selectable.
        """
        labels = set(labels)
        unknown = labels - self.get_selectable_parameters()
        if unknown:
            raise ValueError(
                f"Unknown parameter labels {sorted(unknown)} for "
                f"{self.__class__.__name__}; selectable: {sorted(self.PARAMETER_LABELS)}"
            )
        self._selected_labels = labels
        self._selected_indices = np.flatnonzero(self.get_parameter_vector_mask(labels))

    def get_parameter_vector_all_size(self) -> int:
        """Size of the vector holding all labelled parameters."""
        return len(self.PARAMETER_LABELS) * self.n_basis_functions

    def get_parameter_vector_mask(self, labels: Iterable[str]) -> np.ndarray:
        """Boolean mask over all parameters, True where the label is in ``labels``."""
        labels = set(labels)
        return np.repeat(
            [label in labels for label in self.PARAMETER_LABELS],
            self.n_basis_functions,
        )

    def get_parameter_vector_selected_size(self) -> int:
        return self._selected_indices.shape[0]

    def _get_parameter_vector_all(self) -> np.ndarray:
        self._check_trained()
        return np.concatenate([self._model[label] for label in self.PARAMETER_LABELS])

    def _set_parameter_vector_all(self, values: np.ndarray) -> None:
        n = self.n_basis_functions
        for i, label in enumerate(self.PARAMETER_LABELS):
            self._model[label] = values[i * n:(i + 1) * n].copy()

    def get_parameter_vector_selected(self) -> np.ndarray:
        """Current values of the selected parameters."""
        return self._get_parameter_vector_all()[self._selected_indices]

    def set_parameter_vector_selected(self, values: np.ndarray) -> None:
        """Overwrite the selected parameters.

        Raises:
            ValueError: If ``values`` does not match the selected size.
        """
        values = np.asarray(values, dtype=float).ravel()
        expected = self.get_parameter_vector_selected_size()
        if values.shape[0] != expected:
            raise ValueError(
                f"Parameter vector must have length {expected}, got {values.shape[0]}"
            )
        all_values = self._get_parameter_vector_all()
        all_values[self._selected_indices] = values
        self._set_parameter_vector_all(all_values)

    def _check_trained(self) -> None:
        if self._model is None:
            raise RuntimeError(
                f"{self.__class__.__name__} has no model parameters; train it first"
            )

    def copy(self) -> "FunctionApproximator":
        """Return a deep copy, including model parameters and selection."""
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(n_basis_functions={self.n_basis_functions}, "
            f"trained={self.is_trained}, selected={sorted(self._selected_labels)})"
        )
