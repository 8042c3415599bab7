"""Time-indexed position/velocity/acceleration trajectories.

A trajectory holds, for T time steps and D degrees of freedom:

    ts:   (T,)   time stamps, non-decreasing
    ys:   (T, D) positions
    yds:  (T, D) velocities
    ydds: (T, D) accelerations
    misc: (T, M) optional auxiliary channels (e.g. extended DMP outputs)
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np

from .matrix_io import load_matrix, save_matrix

logger = logging.getLogger(__name__)


def _as_columns(values, n_rows: int) -> np.ndarray:
    values = np.asarray(values, dtype=float)
    if values.ndim == 1:
        values = values.reshape(n_rows, -1) if values.size else np.zeros((n_rows, 0))
    return values


@dataclass
class Trajectory:
    """Sampled multi-dimensional trajectory.

    Attributes:
        ts: Time stamps (T,).
        ys: Positions (T, D).
        yds: Velocities (T, D).
        ydds: Accelerations (T, D).
        misc: Auxiliary channels (T, M). Empty (T, 0) if not given.
    """

    ts: np.ndarray
    ys: np.ndarray
    yds: np.ndarray
    ydds: np.ndarray
    misc: Optional[np.ndarray] = None

    def __post_init__(self):
        """Validate and convert inputs to 2D numpy arrays."""
        self.ts = np.asarray(self.ts, dtype=float).ravel()
        n_time_steps = self.ts.shape[0]

        self.ys = _as_columns(self.ys, n_time_steps)
        self.yds = _as_columns(self.yds, n_time_steps)
        self.ydds = _as_columns(self.ydds, n_time_steps)
        if self.misc is None:
            self.misc = np.zeros((n_time_steps, 0))
        else:
            self.misc = _as_columns(self.misc, n_time_steps)

        if np.any(np.diff(self.ts) < 0):
            raise ValueError("ts must be non-decreasing")

        for name in ("ys", "yds", "ydds", "misc"):
            rows = getattr(self, name).shape[0]
            if rows != n_time_steps:
                raise ValueError(
                    f"{name} must have {n_time_steps} rows (length of ts), got {rows}"
                )

        if not (self.ys.shape[1] == self.yds.shape[1] == self.ydds.shape[1]):
            raise ValueError(
                "ys, yds and ydds must have the same number of columns, got "
                f"{self.ys.shape[1]}, {self.yds.shape[1]}, {self.ydds.shape[1]}"
            )

    @property
    def length(self) -> int:
        """Number of time steps T."""
        return self.ts.shape[0]

    @property
    def dim(self) -> int:
        """Number of degrees of freedom D."""
        return self.ys.shape[1]

    @property
    def dim_misc(self) -> int:
        """Number of auxiliary channels M."""
        return self.misc.shape[1]

    @property
    def duration(self) -> float:
        if self.length == 0:
            return 0.0
        return float(self.ts[-1] - self.ts[0])

    @property
    def initial_y(self) -> np.ndarray:
        return self.ys[0].copy()

    @property
    def final_y(self) -> np.ndarray:
        return self.ys[-1].copy()

    def append(self, other: "Trajectory") -> "Trajectory":
        """Return a new trajectory with ``other`` appended in time.

        If the last time of this trajectory equals the first time of
        ``other``, the duplicated sample is dropped from ``other``.
        """
        if other.dim != self.dim or other.dim_misc != self.dim_misc:
            raise ValueError(
                f"Cannot append trajectory of dim ({other.dim}, {other.dim_misc}) "
                f"to trajectory of dim ({self.dim}, {self.dim_misc})"
            )
        if self.length > 0 and other.length > 0 and other.ts[0] < self.ts[-1]:
            raise ValueError(
                f"Appended trajectory starts at {other.ts[0]}, "
                f"before the end of this one ({self.ts[-1]})"
            )

        start = 0
        if self.length > 0 and other.length > 0 and other.ts[0] == self.ts[-1]:
            start = 1

        return Trajectory(
            ts=np.concatenate([self.ts, other.ts[start:]]),
            ys=np.vstack([self.ys, other.ys[start:]]),
            yds=np.vstack([self.yds, other.yds[start:]]),
            ydds=np.vstack([self.ydds, other.ydds[start:]]),
            misc=np.vstack([self.misc, other.misc[start:]]),
        )

    def as_matrix(self) -> np.ndarray:
        """Stack into a (T, 1 + 3*D + M) matrix [ts, ys, yds, ydds, misc]."""
        return np.column_stack([self.ts, self.ys, self.yds, self.ydds, self.misc])

    @classmethod
    def from_matrix(cls, matrix: np.ndarray, dim_misc: int = 0) -> "Trajectory":
        """Inverse of :meth:`as_matrix`."""
        matrix = np.atleast_2d(np.asarray(matrix, dtype=float))
        n_cols = matrix.shape[1]
        if (n_cols - 1 - dim_misc) % 3 != 0 or n_cols - 1 - dim_misc < 0:
            raise ValueError(
                f"Matrix with {n_cols} columns does not hold a trajectory "
                f"with {dim_misc} misc columns"
            )
        dim = (n_cols - 1 - dim_misc) // 3
        return cls(
            ts=matrix[:, 0],
            ys=matrix[:, 1:1 + dim],
            yds=matrix[:, 1 + dim:1 + 2 * dim],
            ydds=matrix[:, 1 + 2 * dim:1 + 3 * dim],
            misc=matrix[:, 1 + 3 * dim:],
        )

    def save_to_file(self, directory, filename: str, overwrite: bool = False) -> bool:
        """Save the trajectory as a text matrix (see :meth:`as_matrix`)."""
        return save_matrix(directory, filename, self.as_matrix(), overwrite)

    @classmethod
    def from_file(cls, path, dim_misc: int = 0) -> "Trajectory":
        return cls.from_matrix(load_matrix(Path(path)), dim_misc)

    @classmethod
    def generate_min_jerk(
        cls,
        ts,
        y_from,
        y_to,
        yd_from=None,
        yd_to=None,
        ydd_from=None,
        ydd_to=None,
    ) -> "Trajectory":
        """Generate a quintic (minimum-jerk) trajectory for multiple dimensions.

        Ensures continuous position, velocity, and acceleration, with the
        given boundary conditions at ts[0] and ts[-1].

        Args:
            ts: Time stamps (T,).
            y_from: Start positions (D,).
            y_to: End positions (D,).
            yd_from, yd_to, ydd_from, ydd_to: Boundary velocities and
                accelerations (D,). Zero if not given.
        """
        ts = np.asarray(ts, dtype=float).ravel()
        y_from = np.atleast_1d(np.asarray(y_from, dtype=float))
        y_to = np.atleast_1d(np.asarray(y_to, dtype=float))
        n_dims = y_from.shape[0]

        if y_to.shape[0] != n_dims:
            raise ValueError("Start and end positions must have the same length.")

        def _boundary(values):
            if values is None:
                return np.zeros(n_dims)
            values = np.atleast_1d(np.asarray(values, dtype=float))
            if values.shape[0] != n_dims:
                raise ValueError(
                    f"Boundary condition must have length {n_dims}, got {values.shape[0]}"
                )
            return values

        v0, v1 = _boundary(yd_from), _boundary(yd_to)
        acc0, acc1 = _boundary(ydd_from), _boundary(ydd_to)

        T = ts[-1] - ts[0]
        if T <= 0:
            raise ValueError(f"ts must span a positive duration, got {T}")
        T2 = T * T
        T3 = T2 * T
        T4 = T3 * T
        T5 = T4 * T

        # q(T) = a0 + a1*T + a2*T^2 + a3*T^3 + a4*T^4 + a5*T^5
        # v(T) = a1 + 2*a2*T + 3*a3*T^2 + 4*a4*T^3 + 5*a5*T^4
        # a(T) = 2*a2 + 6*a3*T + 12*a4*T^2 + 20*a5*T^3
        A = np.array(
            [
                [T3, T4, T5],
                [3 * T2, 4 * T3, 5 * T4],
                [6 * T, 12 * T2, 20 * T3],
            ],
        )

        coeffs = np.zeros((n_dims, 6))
        for i in range(n_dims):
            a0 = y_from[i]
            a1 = v0[i]
            a2 = acc0[i] / 2.0

            B = np.array(
                [
                    y_to[i] - (a0 + a1 * T + a2 * T2),
                    v1[i] - (a1 + 2 * a2 * T),
                    acc1[i] - (2 * a2),
                ],
            )
            coeffs[i, :3] = a0, a1, a2
            coeffs[i, 3:] = np.linalg.solve(A, B)

        t = (ts - ts[0])[:, None]
        a0, a1, a2, a3, a4, a5 = (coeffs[:, k][None, :] for k in range(6))
        ys = a0 + a1 * t + a2 * t**2 + a3 * t**3 + a4 * t**4 + a5 * t**5
        yds = a1 + 2 * a2 * t + 3 * a3 * t**2 + 4 * a4 * t**3 + 5 * a5 * t**4
        ydds = 2 * a2 + 6 * a3 * t + 12 * a4 * t**2 + 20 * a5 * t**3

        return cls(ts=ts, ys=ys, yds=yds, ydds=ydds)

    @classmethod
    def generate_via_point(
        cls,
        ts,
        y_from,
        y_via,
        y_to,
        via_time_ratio: float = 0.5,
    ) -> "Trajectory":
        """Generate two joined minimum-jerk segments passing through ``y_via``.

        The via-point is reached at rest at ``ts[0] + via_time_ratio * duration``.
        """
        ts = np.asarray(ts, dtype=float).ravel()
        if not 0.0 < via_time_ratio < 1.0:
            raise ValueError(f"via_time_ratio must be in (0, 1), got {via_time_ratio}")

        via_time = ts[0] + via_time_ratio * (ts[-1] - ts[0])
        before = ts[ts <= via_time]
        after = ts[ts >= via_time]
        if before[-1] != via_time:
            before = np.append(before, via_time)
        if after[0] != via_time:
            after = np.insert(after, 0, via_time)

        first = cls.generate_min_jerk(before, y_from, y_via)
        second = cls.generate_min_jerk(after, y_via, y_to)
        trajectory = first.append(second)

        # Resample onto the requested time stamps if the via time was inserted
        if trajectory.length != ts.shape[0]:
            keep = np.isin(trajectory.ts, ts)
            trajectory = Trajectory(
                ts=trajectory.ts[keep],
                ys=trajectory.ys[keep],
                yds=trajectory.yds[keep],
                ydds=trajectory.ydds[keep],
            )
        return trajectory
