"""Dynamical Movement Primitive (DMP) integrator.

The DMP is a set of coupled dynamical systems, stacked into one state
vector per time step:

    x = [y (D), z (D), goal (D), phase (1), gating (1)]        dim = 3D + 2

    yd = z / tau
    zd = (-k (y - goal) - c z + f) / tau,     c = alpha, k = alpha^2 / 4
    f  = gating * fa(phase) [* (y_attr - y_init)]

where fa is one function approximator per degree of freedom, evaluated on
the phase. The goal, phase and gating subsystems depend on ``dmp_type``:

    KULVICIUS_2012_JOINING: goal converges exponentially from y_init to
        y_attr, linear phase 0 -> 1, sigmoid gating 1 -> 0.
    IJSPEERT_2002_MOVEMENT: constant goal y_attr, exponential phase and
        gating 1 -> 0.

Reference:
    Ijspeert et al. 2013, Neural Computation 25(2), Section 2.1.
    Kulvicius et al. 2012, IEEE Transactions on Robotics 28(1).
"""

from dataclasses import dataclass
import copy
import logging
from typing import Iterable, Optional, Sequence

import numpy as np

from ..dynamical_systems import (
    ExponentialSystem,
    SigmoidSystem,
    SpringDamperSystem,
    TimeSystem,
)
from ..function_approximators import FunctionApproximator, create_function_approximator
from ..trajectory import Trajectory

logger = logging.getLogger(__name__)

DMP_TYPES = ("IJSPEERT_2002_MOVEMENT", "KULVICIUS_2012_JOINING")
FORCING_TERM_SCALINGS = ("NO_SCALING", "G_MINUS_Y0_SCALING")
INTEGRATION_METHODS = ("euler", "rk4")

# Subsystem constants
ALPHA_GOAL = 15.0
ALPHA_PHASE_EXPONENTIAL = 4.0
GATING_MAX_RATE = -20.0
GATING_INFLECTION_RATIO = 0.9

# Largest step, relative to tau, of the grid the analytical solution integrates on
ANALYTICAL_MAX_STEP_RATIO = 0.005


@dataclass(kw_only=True)
class DmpConfig:
    """Configuration for building a Dmp.

    Attributes:
        tau: Time constant [s]. Overwritten by training.
        dmp_type: One of DMP_TYPES.
        alpha_spring_damper: Damping coefficient of the spring-damper.
        forcing_term_scaling: One of FORCING_TERM_SCALINGS.
        function_approximator: "rbfn" or "lwr".
        n_basis_functions: Basis functions per degree of freedom.
        intersection_height: Kernel intersection height in (0, 1).
        regularization: Tikhonov regularization for training.
    """

    tau: float = 1.0
    dmp_type: str = "KULVICIUS_2012_JOINING"
    alpha_spring_damper: float = 20.0
    forcing_term_scaling: str = "NO_SCALING"
    function_approximator: str = "rbfn"
    n_basis_functions: int = 10
    intersection_height: float = 0.5
    regularization: float = 0.0

    def __post_init__(self):
        if self.tau <= 0:
            raise ValueError(f"tau must be > 0, got {self.tau}")
        if self.dmp_type not in DMP_TYPES:
            raise ValueError(f"dmp_type must be one of {DMP_TYPES}, got {self.dmp_type}")
        if self.forcing_term_scaling not in FORCING_TERM_SCALINGS:
            raise ValueError(
                f"forcing_term_scaling must be one of {FORCING_TERM_SCALINGS}, "
                f"got {self.forcing_term_scaling}"
            )


def _write_output(buffer: Optional[np.ndarray], values: np.ndarray) -> np.ndarray:
    """Copy time-major ``values`` (T, D) into ``buffer``.

    A buffer of shape (D, T) receives the transposed values. Without a
    buffer, ``values`` is returned as is.

    Raises:
        ValueError: If the buffer matches neither (T, D) nor (D, T).
    """
    if buffer is None:
        return values
    if buffer.shape == values.shape:
        buffer[...] = values
    elif buffer.shape == values.T.shape:
        buffer[...] = values.T
    else:
        raise ValueError(
            f"Output buffer must have shape {values.shape} or {values.T.shape}, "
            f"got {buffer.shape}"
        )
    return buffer


class Dmp:
    """Dynamical Movement Primitive with one function approximator per DOF."""

    def __init__(
        self,
        tau: float,
        y_init,
        y_attr,
        function_approximators: Sequence[FunctionApproximator],
        dmp_type: str = "KULVICIUS_2012_JOINING",
        alpha_spring_damper: float = 20.0,
        forcing_term_scaling: str = "NO_SCALING",
    ):
        """Initialize DMP.

        Args:
            tau: Time constant [s] (> 0).
            y_init: Initial positions (D,).
            y_attr: Attractor (goal) positions (D,).
            function_approximators: One function approximator per DOF. They
                may be untrained, in which case their output is zero.
            dmp_type: One of DMP_TYPES.
            alpha_spring_damper: Damping coefficient c; k = c^2 / 4.
            forcing_term_scaling: One of FORCING_TERM_SCALINGS.
        """
        y_init = np.atleast_1d(np.asarray(y_init, dtype=float)).copy()
        y_attr = np.atleast_1d(np.asarray(y_attr, dtype=float)).copy()
        if y_init.shape != y_attr.shape:
            raise ValueError(
                f"y_init and y_attr must have the same shape, "
                f"got {y_init.shape} and {y_attr.shape}"
            )
        if len(function_approximators) != y_init.shape[0]:
            raise ValueError(
                f"Need one function approximator per dimension ({y_init.shape[0]}), "
                f"got {len(function_approximators)}"
            )
        if dmp_type not in DMP_TYPES:
            raise ValueError(f"dmp_type must be one of {DMP_TYPES}, got {dmp_type}")
        if forcing_term_scaling not in FORCING_TERM_SCALINGS:
            raise ValueError(
                f"forcing_term_scaling must be one of {FORCING_TERM_SCALINGS}, "
                f"got {forcing_term_scaling}"
            )
        if tau <= 0:
            raise ValueError(f"tau must be > 0, got {tau}")

        self._tau = float(tau)
        self._y_init = y_init
        self._y_attr = y_attr
        self.dmp_type = dmp_type
        self.alpha_spring_damper = float(alpha_spring_damper)
        self.forcing_term_scaling = forcing_term_scaling
        self._function_approximators = list(function_approximators)
        self._parameter_baseline: Optional[np.ndarray] = None

        self._build_subsystems()
        self._allocate_buffers()

    @classmethod
    def from_config(cls, config: DmpConfig, y_init, y_attr) -> "Dmp":
        """Build an untrained DMP with function approximators from ``config``."""
        n_dims = np.atleast_1d(y_init).shape[0]
        function_approximators = [
            create_function_approximator(
                config.function_approximator,
                n_basis_functions=config.n_basis_functions,
                intersection_height=config.intersection_height,
                regularization=config.regularization,
            )
            for _ in range(n_dims)
        ]
        return cls(
            tau=config.tau,
            y_init=y_init,
            y_attr=y_attr,
            function_approximators=function_approximators,
            dmp_type=config.dmp_type,
            alpha_spring_damper=config.alpha_spring_damper,
            forcing_term_scaling=config.forcing_term_scaling,
        )

    # ------------------------------------------------------------------
    # Subsystems and state layout
    # ------------------------------------------------------------------

    def _build_subsystems(self) -> None:
        tau = self._tau
        self._spring_system = SpringDamperSystem(
            tau, self._y_init, self._y_attr, self.alpha_spring_damper
        )
        if self.dmp_type == "KULVICIUS_2012_JOINING":
            self._goal_system = ExponentialSystem(tau, self._y_init, self._y_attr, ALPHA_GOAL)
            self._phase_system = TimeSystem(tau)
            self._gating_system = SigmoidSystem(
                tau, 1.0, GATING_MAX_RATE, GATING_INFLECTION_RATIO
            )
        else:
            self._goal_system = None
            self._phase_system = ExponentialSystem(tau, 1.0, 0.0, ALPHA_PHASE_EXPONENTIAL)
            self._gating_system = ExponentialSystem(tau, 1.0, 0.0, ALPHA_PHASE_EXPONENTIAL)

        if self.forcing_term_scaling == "G_MINUS_Y0_SCALING":
            scale = self._y_attr - self._y_init
            self._forcing_term_scale = np.where(np.abs(scale) < 1e-10, 1.0, scale)
        else:
            self._forcing_term_scale = np.ones(self.dim_orig)

    def _allocate_buffers(self) -> None:
        """(Re)allocate scratch memory used by the real-time integration step.

        Only called at construction or when the dimensionality changes, so
        that ``integrate_step`` never allocates on the control loop.
        """
        n = self.dim
        self._xd_scratch = np.zeros(n)
        self._x_scratch = np.zeros(n)
        self._rk_scratch = [np.zeros(n) for _ in range(4)]
        self._fa_input_one = np.zeros((1, 1))
        self._fa_outputs_one = [np.zeros(1) for _ in range(self.dim_orig)]
        self._forcing_term_scratch = np.zeros(self.dim_orig)

    @property
    def dim_orig(self) -> int:
        """Number of degrees of freedom D."""
        return self._y_init.shape[0]

    @property
    def dim(self) -> int:
        """Dimensionality of the state vector (3D + 2)."""
        return 3 * self.dim_orig + 2

    @property
    def SPRING_Y(self) -> slice:
        return slice(0, self.dim_orig)

    @property
    def SPRING_Z(self) -> slice:
        return slice(self.dim_orig, 2 * self.dim_orig)

    @property
    def GOAL(self) -> slice:
        return slice(2 * self.dim_orig, 3 * self.dim_orig)

    @property
    def PHASE(self) -> int:
        return 3 * self.dim_orig

    @property
    def GATING(self) -> int:
        return 3 * self.dim_orig + 1

    @property
    def tau(self) -> float:
        return self._tau

    @tau.setter
    def tau(self, tau: float) -> None:
        if tau <= 0:
            raise ValueError(f"tau must be > 0, got {tau}")
        self._tau = float(tau)
        self._build_subsystems()

    @property
    def y_init(self) -> np.ndarray:
        return self._y_init.copy()

    @y_init.setter
    def y_init(self, y_init) -> None:
        self._set_boundaries(y_init, self._y_attr)

    @property
    def y_attr(self) -> np.ndarray:
        return self._y_attr.copy()

    @y_attr.setter
    def y_attr(self, y_attr) -> None:
        self._set_boundaries(self._y_init, y_attr)

    def _set_boundaries(self, y_init, y_attr) -> None:
        y_init = np.atleast_1d(np.asarray(y_init, dtype=float)).copy()
        y_attr = np.atleast_1d(np.asarray(y_attr, dtype=float)).copy()
        if y_init.shape != (self.dim_orig,) or y_attr.shape != (self.dim_orig,):
            raise ValueError(
                f"y_init and y_attr must have shape ({self.dim_orig},), "
                f"got {y_init.shape} and {y_attr.shape}"
            )
        self._y_init = y_init
        self._y_attr = y_attr
        self._build_subsystems()

    @property
    def function_approximators(self) -> list[FunctionApproximator]:
        return self._function_approximators

    # ------------------------------------------------------------------
    # Forcing term
    # ------------------------------------------------------------------

    def compute_function_approximator_output(
        self,
        phase_state: np.ndarray,
        outputs: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Outputs of the per-DOF function approximators.

        Untrained function approximators output zeros.

        Args:
            phase_state: Phases (T,) or (T, 1).
            outputs: Optional buffer (T, D).

        Returns:
            Function approximator outputs (T, D).

        Raises:
            ValueError: If ``outputs`` does not have shape (T, D).
        """
        phase_state = np.asarray(phase_state, dtype=float).reshape(-1, 1)
        n_time_steps = phase_state.shape[0]
        if outputs is None:
            outputs = np.zeros((n_time_steps, self.dim_orig))
        elif outputs.shape != (n_time_steps, self.dim_orig):
            raise ValueError(
                f"outputs must have shape ({n_time_steps}, {self.dim_orig}), got {outputs.shape}"
            )

        for i_dim, fa in enumerate(self._function_approximators):
            if fa.is_trained:
                outputs[:, i_dim] = fa.predict(phase_state)
            else:
                outputs[:, i_dim] = 0.0
        return outputs

    def _forcing_term_one(self, phase: float, gating: float) -> np.ndarray:
        """Forcing term for a single phase, written into scratch memory."""
        self._fa_input_one[0, 0] = phase
        forcing = self._forcing_term_scratch
        for i_dim, fa in enumerate(self._function_approximators):
            if fa.is_trained:
                fa.predict(self._fa_input_one, self._fa_outputs_one[i_dim])
                forcing[i_dim] = self._fa_outputs_one[i_dim][0]
            else:
                forcing[i_dim] = 0.0
        np.multiply(forcing, gating, out=forcing)
        np.multiply(forcing, self._forcing_term_scale, out=forcing)
        return forcing

    # ------------------------------------------------------------------
    # Integration
    # ------------------------------------------------------------------

    def differential_equation(self, x: np.ndarray, xd: Optional[np.ndarray] = None) -> np.ndarray:
        """Rate of change of the full DMP state.

        Args:
            x: Current state (dim,).
            xd: Optional buffer (dim,) for the result.
        """
        if xd is None:
            xd = np.empty(self.dim)

        Y, Z, G = self.SPRING_Y, self.SPRING_Z, self.GOAL
        P, S = self.PHASE, self.GATING
        k = self._spring_system.spring_constant
        c = self._spring_system.damping_coefficient
        tau = self._tau

        if self._goal_system is None:
            xd[G] = 0.0
        else:
            self._goal_system.differential_equation(x[G], xd[G])
        self._phase_system.differential_equation(x[P:P + 1], xd[P:P + 1])
        self._gating_system.differential_equation(x[S:S + 1], xd[S:S + 1])

        # Spring-damper with the goal state as moving attractor
        zd = xd[Z]
        np.subtract(x[Y], x[G], out=zd)
        np.multiply(zd, -k, out=zd)
        np.multiply(x[Z], -c, out=xd[Y])
        np.add(zd, xd[Y], out=zd)
        np.add(zd, self._forcing_term_one(x[P], x[S]), out=zd)
        np.divide(zd, tau, out=zd)
        np.divide(x[Z], tau, out=xd[Y])

        return xd

    def integrate_start(
        self,
        x: Optional[np.ndarray] = None,
        xd: Optional[np.ndarray] = None,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Initial state and its rate of change.

        Args:
            x: Optional buffer (dim,) for the initial state.
            xd: Optional buffer (dim,) for the initial rate of change.
        """
        if x is None:
            x = np.empty(self.dim)
        x[self.SPRING_Y] = self._y_init
        x[self.SPRING_Z] = 0.0
        x[self.GOAL] = self._y_init if self._goal_system is not None else self._y_attr
        x[self.PHASE] = self._phase_system.x_init[0]
        x[self.GATING] = self._gating_system.x_init[0]
        return x, self.differential_equation(x, xd)

    def integrate_step(
        self,
        dt: float,
        x: np.ndarray,
        x_updated: Optional[np.ndarray] = None,
        xd_updated: Optional[np.ndarray] = None,
        method: str = "euler",
    ) -> tuple[np.ndarray, np.ndarray]:
        """Advance the state by ``dt``.

        When ``x_updated`` and ``xd_updated`` are given, no memory is
        allocated: all intermediate results live in scratch buffers sized
        at construction.

        Args:
            dt: Time step [s].
            x: Current state (dim,).
            x_updated: Optional buffer (dim,) for the next state. May be ``x``.
            xd_updated: Optional buffer (dim,) for the next rate of change.
            method: "euler" or "rk4".

        Returns:
            Tuple (x_updated, xd_updated).
        """
        if x.shape[0] != self.dim:
            raise ValueError(f"x must have shape ({self.dim},), got {x.shape}")
        if x_updated is None:
            x_updated = np.empty(self.dim)
        if xd_updated is None:
            xd_updated = np.empty(self.dim)

        if method == "euler":
            xd = self.differential_equation(x, self._xd_scratch)
            np.multiply(xd, dt, out=xd)
            np.add(x, xd, out=x_updated)
        elif method == "rk4":
            k1, k2, k3, k4 = self._rk_scratch
            x_tmp = self._x_scratch

            self.differential_equation(x, k1)
            np.multiply(k1, 0.5 * dt, out=x_tmp)
            np.add(x, x_tmp, out=x_tmp)
            self.differential_equation(x_tmp, k2)
            np.multiply(k2, 0.5 * dt, out=x_tmp)
            np.add(x, x_tmp, out=x_tmp)
            self.differential_equation(x_tmp, k3)
            np.multiply(k3, dt, out=x_tmp)
            np.add(x, x_tmp, out=x_tmp)
            self.differential_equation(x_tmp, k4)

            # x_updated = x + dt/6 (k1 + 2 k2 + 2 k3 + k4)
            np.add(k2, k3, out=k2)
            np.multiply(k2, 2.0, out=k2)
            np.add(k1, k2, out=k1)
            np.add(k1, k4, out=k1)
            np.multiply(k1, dt / 6.0, out=k1)
            np.add(x, k1, out=x_updated)
        else:
            raise ValueError(f"method must be one of {INTEGRATION_METHODS}, got {method}")

        self.differential_equation(x_updated, xd_updated)
        return x_updated, xd_updated

    def _integration_grid(self, ts: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Sorted grid from 0 through all of ``ts``, and where each ``ts`` lies in it.

        Gaps wider than ``ANALYTICAL_MAX_STEP_RATIO * tau`` are subdivided.
        """
        if not np.all(np.isfinite(ts)) or np.any(ts < 0.0):
            raise ValueError("ts must be finite and >= 0")
        knots = np.unique(np.concatenate([[0.0], ts]))
        max_step = ANALYTICAL_MAX_STEP_RATIO * self._tau
        n_substeps = np.maximum(np.ceil(np.diff(knots) / max_step).astype(int), 1)
        pieces = [
            np.linspace(t_start, t_end, n, endpoint=False)
            for t_start, t_end, n in zip(knots[:-1], knots[1:], n_substeps)
        ]
        grid = np.concatenate(pieces + [knots[-1:]])
        return grid, np.searchsorted(grid, ts)

    def analytical_solution(
        self,
        ts,
        xs: Optional[np.ndarray] = None,
        xds: Optional[np.ndarray] = None,
        forcing_terms: Optional[np.ndarray] = None,
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """States of the DMP at the times ``ts``.

        Goal, phase and gating are evaluated in closed form. The forcing
        terms follow from the phase and gating. The spring-damper is then
        integrated with Heun's method from t = 0 on a fine internal grid
        that contains every requested time, so ``ts`` may start anywhere,
        be unsorted or hold repeated values.

        Args:
            ts: Time stamps (T,) since the start of the movement, all >= 0.
            xs: Optional buffer (T, dim) or (dim, T) for the states.
            xds: Optional buffer (T, dim) or (dim, T) for the rates.
            forcing_terms: Optional buffer (T, D) or (D, T).

        Returns:
            Tuple (xs, xds, forcing_terms). Each output has the layout of the
            corresponding buffer if one of shape (dim, T) was given,
            otherwise (T, dim).

        Raises:
            ValueError: If a time is negative or a buffer has the wrong shape.
        """
        ts = np.asarray(ts, dtype=float).ravel()
        grid, indices = self._integration_grid(ts)
        n_grid = grid.shape[0]
        D = self.dim_orig
        Y, Z, G = self.SPRING_Y, self.SPRING_Z, self.GOAL
        P, S = self.PHASE, self.GATING

        xs_phase, xds_phase = self._phase_system.analytical_solution(grid)
        xs_gating, xds_gating = self._gating_system.analytical_solution(grid)
        if self._goal_system is None:
            xs_goal = np.tile(self._y_attr, (n_grid, 1))
            xds_goal = np.zeros((n_grid, D))
        else:
            xs_goal, xds_goal = self._goal_system.analytical_solution(grid)

        fa_outputs = self.compute_function_approximator_output(xs_phase)
        forcing = fa_outputs * xs_gating * self._forcing_term_scale

        # Spring-damper system with forcing term
        k = self._spring_system.spring_constant
        c = self._spring_system.damping_coefficient
        tau = self._tau
        ys = np.empty((n_grid, D))
        zs = np.empty((n_grid, D))
        y = self._y_init.copy()
        z = np.zeros(D)
        ys[0], zs[0] = y, z
        for tt in range(1, n_grid):
            h = grid[tt] - grid[tt - 1]
            yd = z / tau
            zd = (-k * (y - xs_goal[tt - 1]) - c * z + forcing[tt - 1]) / tau
            y_pred = y + h * yd
            z_pred = z + h * zd
            zd_pred = (-k * (y_pred - xs_goal[tt]) - c * z_pred + forcing[tt]) / tau
            y = y + 0.5 * h * (yd + z_pred / tau)
            z = z + 0.5 * h * (zd + zd_pred)
            ys[tt], zs[tt] = y, z

        ys, zs = ys[indices], zs[indices]
        xs_goal, forcing = xs_goal[indices], forcing[indices]

        xs_ana = np.zeros((ts.shape[0], self.dim))
        xds_ana = np.zeros((ts.shape[0], self.dim))
        xs_ana[:, Y] = ys
        xs_ana[:, Z] = zs
        xs_ana[:, G] = xs_goal
        xs_ana[:, P] = xs_phase[indices, 0]
        xs_ana[:, S] = xs_gating[indices, 0]
        xds_ana[:, Y] = zs / tau
        xds_ana[:, Z] = (-k * (ys - xs_goal) - c * zs + forcing) / tau
        xds_ana[:, G] = xds_goal[indices]
        xds_ana[:, P] = xds_phase[indices, 0]
        xds_ana[:, S] = xds_gating[indices, 0]

        return (
            _write_output(xs, xs_ana),
            _write_output(xds, xds_ana),
            _write_output(forcing_terms, forcing),
        )

    def states_as_trajectory(self, ts, xs: np.ndarray, xds: np.ndarray) -> Trajectory:
        """Convert DMP states to positions, velocities and accelerations.

        Args:
            ts: Time stamps (T,).
            xs: States (T, dim) or (dim, T).
            xds: Rates of change, same layout as ``xs``.
        """
        ts = np.asarray(ts, dtype=float).ravel()
        if xs.shape[0] != ts.shape[0] and xs.shape[1] == ts.shape[0]:
            xs, xds = xs.T, xds.T
        return Trajectory(
            ts=ts,
            ys=xs[:, self.SPRING_Y],
            yds=xds[:, self.SPRING_Y],
            ydds=xds[:, self.SPRING_Z] / self._tau,
        )

    def analytical_solution_trajectory(self, ts) -> Trajectory:
        """Analytical solution at ``ts`` as a :class:`Trajectory`."""
        xs, xds, _ = self.analytical_solution(ts)
        return self.states_as_trajectory(ts, xs, xds)

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def compute_function_approximator_inputs_and_targets(
        self, trajectory: Trajectory
    ) -> tuple[np.ndarray, np.ndarray]:
        """Phase inputs (T,) and forcing-term targets (T, D) for a trajectory.

        The targets invert the transformation system:

            f = tau^2 ydd + k (y - goal) + c tau yd
            fa_target = f / (gating * scale)
        """
        ts = trajectory.ts - trajectory.ts[0]
        tau = self._tau
        k = self._spring_system.spring_constant
        c = self._spring_system.damping_coefficient

        xs_phase, _ = self._phase_system.analytical_solution(ts)
        xs_gating, _ = self._gating_system.analytical_solution(ts)
        if self._goal_system is None:
            xs_goal = np.tile(self._y_attr, (ts.shape[0], 1))
        else:
            xs_goal, _ = self._goal_system.analytical_solution(ts)

        f_target = (
            tau * tau * trajectory.ydds
            + k * (trajectory.ys - xs_goal)
            + c * tau * trajectory.yds
        )
        fa_targets = f_target / (xs_gating * self._forcing_term_scale)
        return xs_phase[:, 0], fa_targets

    def train(self, trajectory: Trajectory) -> None:
        """Train the DMP to reproduce ``trajectory``.

        Sets tau to the trajectory duration, y_init and y_attr to its first
        and last positions, and fits each DOF's function approximator to the
        forcing term that reproduces the trajectory. The selected parameters
        after training become the baseline for normalized parameter vectors.

        Raises:
            ValueError: If the trajectory dimension does not match the DMP.
        """
        if trajectory.dim != self.dim_orig:
            raise ValueError(
                f"Trajectory has {trajectory.dim} dimensions, DMP has {self.dim_orig}"
            )
        if trajectory.length < 2 or trajectory.duration <= 0:
            raise ValueError("Trajectory must span a positive duration")

        self._tau = trajectory.duration
        self._y_init = trajectory.initial_y
        self._y_attr = trajectory.final_y
        self._build_subsystems()

        inputs, targets = self.compute_function_approximator_inputs_and_targets(trajectory)
        for i_dim, fa in enumerate(self._function_approximators):
            fa.train(inputs, targets[:, i_dim])

        logger.debug(
            f"Trained {self.dim_orig}-DOF DMP on {trajectory.length} samples "
            f"(tau={self._tau:.3f}s)"
        )
        self._record_parameter_baseline()

    # ------------------------------------------------------------------
    # Selectable parameters
    # ------------------------------------------------------------------

    def get_selectable_parameters(self) -> set[str]:
        """Labels selectable in at least one function approximator."""
        labels = set()
        for fa in self._function_approximators:
            labels |= fa.get_selectable_parameters()
        return labels

    def set_selected_parameters(self, labels: Iterable[str]) -> None:
        """Select the labelled parameters that form the parameter vector.

        Raises:
            ValueError: If a label is not selectable.
        """
        labels = set(labels)
        unknown = labels - self.get_selectable_parameters()
        if unknown:
            raise ValueError(
                f"Unknown parameter labels {sorted(unknown)}; "
                f"selectable: {sorted(self.get_selectable_parameters())}"
            )
        for fa in self._function_approximators:
            fa.set_selected_parameters(labels & fa.get_selectable_parameters())
        self._record_parameter_baseline()

    def get_parameter_vector_sizes(self) -> list[int]:
        """Size of the selected parameter vector of each DOF's model."""
        return [fa.get_parameter_vector_selected_size() for fa in self._function_approximators]

    def get_parameter_vector_all_size(self) -> int:
        return int(sum(self.get_parameter_vector_sizes()))

    def get_parameter_vector_all(self) -> np.ndarray:
        """Selected parameters of all DOFs, concatenated in DOF order."""
        return np.concatenate(
            [fa.get_parameter_vector_selected() for fa in self._function_approximators]
        )

    def set_parameter_vector_all(self, values, normalized: bool = False) -> None:
        """Overwrite the selected parameters of all DOFs.

        Args:
            values: Vector of length ``get_parameter_vector_all_size()``.
            normalized: If True, ``values`` are offsets from the parameter
                baseline recorded after training (or selection).

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

        offset = 0
        for fa, size in zip(self._function_approximators, self.get_parameter_vector_sizes()):
            fa.set_parameter_vector_selected(values[offset:offset + size])
            offset += size

    def set_model_parameters_vectors(self, vectors: Sequence, normalized: bool = False) -> None:
        """Set the selected parameters with one vector per DOF."""
        if len(vectors) != self.dim_orig:
            raise ValueError(
                f"Need one parameter vector per dimension ({self.dim_orig}), got {len(vectors)}"
            )
        self.set_parameter_vector_all(
            np.concatenate([np.asarray(v, dtype=float).ravel() for v in vectors]),
            normalized,
        )

    def get_parameter_vector_mask(self, labels: Optional[Iterable[str]] = None) -> np.ndarray:
        """Boolean mask over all model parameters of all DOFs.

        Args:
            labels: Labels to mark. Defaults to the current selection.
        """
        masks = []
        for fa in self._function_approximators:
            fa_labels = fa.get_selected_parameters() if labels is None else set(labels)
            masks.append(fa.get_parameter_vector_mask(fa_labels))
        return np.concatenate(masks)

    def _record_parameter_baseline(self) -> None:
        if all(fa.is_trained for fa in self._function_approximators):
            self._parameter_baseline = self.get_parameter_vector_all()
        else:
            self._parameter_baseline = None

    def copy(self) -> "Dmp":
        """Deep copy, safe to integrate concurrently with the original."""
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        return (
            f"Dmp(dim_orig={self.dim_orig}, tau={self._tau:.3f}, dmp_type={self.dmp_type}, "
            f"y_init={np.array2string(self._y_init, precision=3)}, "
            f"y_attr={np.array2string(self._y_attr, precision=3)})"
        )
