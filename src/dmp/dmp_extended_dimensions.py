"""DMP decorator that appends extended output dimensions.

Extended dimensions are auxiliary output channels (e.g. stiffness or
gripper aperture) that should evolve in lock-step with the movement. Each
channel is a function approximator evaluated on the same phase signal that
drives the wrapped DMP. The wrapped DMP's dynamics are never altered; the
extended outputs are only appended.
"""

import copy
import logging
from typing import Iterable, Optional, Sequence

import numpy as np

from ..function_approximators import FunctionApproximator
from ..trajectory import Trajectory
from .dmp import Dmp, _write_output

logger = logging.getLogger(__name__)


class DmpExtendedDimensions:
    """A Dmp plus one function approximator per extended dimension.

    Exposes the same integration and parameter interface as :class:`Dmp`.
    Parameter vectors are the concatenation of the wrapped DMP's selected
    parameters followed by those of each extended channel, in channel order.
    """

    def __init__(
        self,
        dmp: Dmp,
        function_approximators_extended: Sequence[FunctionApproximator],
    ):
        """Initialize the decorator.

        Args:
            dmp: The DMP whose phase drives the extended dimensions. It is
                owned by this object from now on.
            function_approximators_extended: One function approximator per
                extended dimension. Untrained ones output zeros.
        """
        if len(function_approximators_extended) == 0:
            raise ValueError("Need at least one extended-dimension function approximator")
        self._dmp = dmp
        self._function_approximators_extended = list(function_approximators_extended)
        self._parameter_baseline: Optional[np.ndarray] = None
        self._allocate_buffers()

    def _allocate_buffers(self) -> None:
        """(Re)allocate scratch memory for the single-step path."""
        self._fa_input_one = np.zeros((1, 1))
        self._fa_ext_outputs_one = [np.zeros(1) for _ in range(self.dim_extended())]

    def dim_extended(self) -> int:
        """Number of extended output dimensions."""
        return len(self._function_approximators_extended)

    # ------------------------------------------------------------------
    # Delegation to the wrapped DMP
    # ------------------------------------------------------------------

    @property
    def dmp(self) -> Dmp:
        return self._dmp

    @property
    def function_approximators_extended(self) -> list[FunctionApproximator]:
        return self._function_approximators_extended

    @property
    def dim(self) -> int:
        return self._dmp.dim

    @property
    def dim_orig(self) -> int:
        return self._dmp.dim_orig

    @property
    def tau(self) -> float:
        return self._dmp.tau

    @tau.setter
    def tau(self, tau: float) -> None:
        self._dmp.tau = tau

    @property
    def y_init(self) -> np.ndarray:
        return self._dmp.y_init

    @property
    def y_attr(self) -> np.ndarray:
        return self._dmp.y_attr

    @property
    def PHASE(self) -> int:
        return self._dmp.PHASE

    def differential_equation(self, x: np.ndarray, xd: Optional[np.ndarray] = None) -> np.ndarray:
        return self._dmp.differential_equation(x, xd)

    def states_as_trajectory(self, ts, xs: np.ndarray, xds: np.ndarray) -> Trajectory:
        return self._dmp.states_as_trajectory(ts, xs, xds)

    # ------------------------------------------------------------------
    # Extended outputs
    # ------------------------------------------------------------------

    def compute_function_approximator_output_extended_dimensions(
        self,
        phase_state: np.ndarray,
        outputs: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Outputs of the extended-dimension function approximators.

        Args:
            phase_state: Phases (T,) or (T, 1).
            outputs: Optional buffer (T, E) or, for a single phase, (E,).

        Returns:
            Extended outputs (T, E), or ``outputs`` if it was given.
        """
        phase_state = np.asarray(phase_state, dtype=float).reshape(-1, 1)
        n_time_steps = phase_state.shape[0]
        n_ext = self.dim_extended()

        if n_time_steps == 1 and outputs is not None and outputs.size == n_ext:
            # Real-time path: per-channel scratch, no allocation
            self._fa_input_one[0, 0] = phase_state[0, 0]
            flat = outputs.reshape(-1)
            for i_ext, fa in enumerate(self._function_approximators_extended):
                if fa.is_trained:
                    fa.predict(self._fa_input_one, self._fa_ext_outputs_one[i_ext])
                    flat[i_ext] = self._fa_ext_outputs_one[i_ext][0]
                else:
                    flat[i_ext] = 0.0
            return outputs

        values = np.zeros((n_time_steps, n_ext))
        for i_ext, fa in enumerate(self._function_approximators_extended):
            if fa.is_trained:
                values[:, i_ext] = fa.predict(phase_state)
        return _write_output(outputs, values)

    def integrate_start(
        self,
        x: Optional[np.ndarray] = None,
        xd: Optional[np.ndarray] = None,
        extended_output: Optional[np.ndarray] = None,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Initial state of the wrapped DMP; fills ``extended_output`` (E,)."""
        x, xd = self._dmp.integrate_start(x, xd)
        if extended_output is not None:
            self.compute_function_approximator_output_extended_dimensions(
                x[self.PHASE:self.PHASE + 1], extended_output
            )
        return x, xd

    def integrate_step(
        self,
        dt: float,
        x: np.ndarray,
        x_updated: Optional[np.ndarray] = None,
        xd_updated: Optional[np.ndarray] = None,
        method: str = "euler",
        extended_output: Optional[np.ndarray] = None,
    ) -> tuple[np.ndarray, np.ndarray]:
        """One integration step of the wrapped DMP.

        ``extended_output`` (E,), if given, receives the extended outputs at
        the phase of the updated state.
        """
        x_updated, xd_updated = self._dmp.integrate_step(dt, x, x_updated, xd_updated, method)
        if extended_output is not None:
            self.compute_function_approximator_output_extended_dimensions(
                x_updated[self.PHASE:self.PHASE + 1], extended_output
            )
        return x_updated, xd_updated

    def analytical_solution(
        self,
        ts,
        xs: Optional[np.ndarray] = None,
        xds: Optional[np.ndarray] = None,
        forcing_terms: Optional[np.ndarray] = None,
        extended_output: Optional[np.ndarray] = None,
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Analytical solution of the wrapped DMP.

        ``extended_output`` (T, E) or (E, T), if given, is filled with the
        extended outputs batched over all time steps.
        """
        xs_ana, xds_ana, forcing = self._dmp.analytical_solution(ts)
        if extended_output is not None:
            self.compute_function_approximator_output_extended_dimensions(
                xs_ana[:, self.PHASE], extended_output
            )
        return (
            _write_output(xs, xs_ana),
            _write_output(xds, xds_ana),
            _write_output(forcing_terms, forcing),
        )

    def analytical_solution_extended(self, ts) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Like :meth:`analytical_solution`, also returning extended outputs (T, E)."""
        xs, xds, forcing = self._dmp.analytical_solution(ts)
        extended = self.compute_function_approximator_output_extended_dimensions(xs[:, self.PHASE])
        return xs, xds, forcing, extended

    def analytical_solution_trajectory(self, ts) -> Trajectory:
        """Analytical solution with the extended outputs as ``misc`` channels."""
        xs, xds, _, extended = self.analytical_solution_extended(ts)
        trajectory = self._dmp.states_as_trajectory(ts, xs, xds)
        trajectory.misc = extended
        return trajectory

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train(self, trajectory: Trajectory) -> None:
        """Train the wrapped DMP and each extended dimension.

        Extended dimension i is trained on ``trajectory.misc[:, i]`` against
        the phase of the (re-trained) DMP.

        Raises:
            ValueError: If the trajectory has the wrong number of misc columns.
        """
        if trajectory.dim_misc != self.dim_extended():
            raise ValueError(
                f"Trajectory has {trajectory.dim_misc} misc dimensions, "
                f"expected {self.dim_extended()} extended dimensions"
            )
        self._dmp.train(trajectory)

        phases, _ = self._dmp.compute_function_approximator_inputs_and_targets(trajectory)
        for i_ext, fa in enumerate(self._function_approximators_extended):
            fa.train(phases, trajectory.misc[:, i_ext])

        logger.debug(f"Trained {self.dim_extended()} extended dimensions")
        self._record_parameter_baseline()

    # ------------------------------------------------------------------
    # Selectable parameters
    # ------------------------------------------------------------------

    def get_selectable_parameters(self) -> set[str]:
        labels = self._dmp.get_selectable_parameters()
        for fa in self._function_approximators_extended:
            labels |= fa.get_selectable_parameters()
        return labels

    def set_selected_parameters(self, labels: Iterable[str]) -> None:
        """Select labelled parameters in the DMP and the extended dimensions.

        Raises:
            ValueError: If a label is selectable in neither.
        """
        labels = set(labels)
        unknown = labels - self.get_selectable_parameters()
        if unknown:
            raise ValueError(
                f"Unknown parameter labels {sorted(unknown)}; "
                f"selectable: {sorted(self.get_selectable_parameters())}"
            )
        self._dmp.set_selected_parameters(labels & self._dmp.get_selectable_parameters())
        for fa in self._function_approximators_extended:
            fa.set_selected_parameters(labels & fa.get_selectable_parameters())
        self._record_parameter_baseline()

    def get_parameter_vector_sizes(self) -> list[int]:
        """Selected sizes: one entry per DOF, then one per extended dimension."""
        return self._dmp.get_parameter_vector_sizes() + [
            fa.get_parameter_vector_selected_size()
            for fa in self._function_approximators_extended
        ]

    def get_parameter_vector_all_size(self) -> int:
        return int(sum(self.get_parameter_vector_sizes()))

    def get_parameter_vector_all(self) -> np.ndarray:
        return np.concatenate(
            [self._dmp.get_parameter_vector_all()]
            + [fa.get_parameter_vector_selected() for fa in self._function_approximators_extended]
        )

    def set_parameter_vector_all(self, values, normalized: bool = False) -> None:
        """Overwrite the selected parameters of the DMP and extended dimensions.

        Raises:
            ValueError: If ``values`` has the wrong length.
        """
        values = np.asarray(values, dtype=float).ravel()
        expected = self.get_parameter_vector_all_size()
        if values.shape[0] != expected:
            raise ValueError(
                f"Parameter vector must have length {expected}, got {values.shape[0]}"
            )
        if normalized:
            if self._parameter_baseline is None:
                self._record_parameter_baseline()
            values = self._parameter_baseline + values

        n_base = self._dmp.get_parameter_vector_all_size()
        self._dmp.set_parameter_vector_all(values[:n_base])
        offset = n_base
        for fa in self._function_approximators_extended:
            size = fa.get_parameter_vector_selected_size()
            fa.set_parameter_vector_selected(values[offset:offset + size])
            offset += size

    def set_model_parameters_vectors(self, vectors: Sequence, normalized: bool = False) -> None:
        """Set parameters with one vector per DOF followed by one per extended dimension."""
        n_models = self.dim_orig + self.dim_extended()
        if len(vectors) != n_models:
            raise ValueError(f"Need {n_models} parameter vectors, got {len(vectors)}")
        self.set_parameter_vector_all(
            np.concatenate([np.asarray(v, dtype=float).ravel() for v in vectors]),
            normalized,
        )

    def get_parameter_vector_mask(self, labels: Optional[Iterable[str]] = None) -> np.ndarray:
        """Boolean mask over all parameters: DMP first, then extended dimensions."""
        masks = [self._dmp.get_parameter_vector_mask(labels)]
        for fa in self._function_approximators_extended:
            fa_labels = fa.get_selected_parameters() if labels is None else set(labels)
            masks.append(fa.get_parameter_vector_mask(fa_labels))
        return np.concatenate(masks)

    def _record_parameter_baseline(self) -> None:
        trained = all(fa.is_trained for fa in self._dmp.function_approximators) and all(
            fa.is_trained for fa in self._function_approximators_extended
        )
        self._parameter_baseline = self.get_parameter_vector_all() if trained else None

    def copy(self) -> "DmpExtendedDimensions":
        return copy.deepcopy(self)
