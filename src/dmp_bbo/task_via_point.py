"""Task: pass through a via-point, then converge to a goal, smoothly."""

from typing import Optional

import numpy as np

from ..bbo.cost_function import Task


class TaskViaPoint(Task):
    """Scores a DMP rollout by its distance to a via-point.

    The cost of a rollout is

        viapoint_weight * ||y(t_via) - viapoint||
        + acceleration_weight * mean_t(sum_d ydd_d(t)^2)
        + goal_weight * mean_{t >= goal_time} ||y(t) - goal||

    If ``viapoint_time`` is None, the closest distance to the via-point
    over the whole rollout is used. The goal term is omitted if ``goal``
    is None.
    """

    def __init__(
        self,
        viapoint,
        viapoint_time: Optional[float] = None,
        goal=None,
        goal_time: Optional[float] = None,
        viapoint_weight: float = 1.0,
        acceleration_weight: float = 0.0001,
        goal_weight: float = 1.0,
        dim_extended: int = 0,
    ):
        self.viapoint = np.atleast_1d(np.asarray(viapoint, dtype=float)).ravel()
        self.viapoint_time = viapoint_time
        self.goal = None
        if goal is not None:
            self.goal = np.atleast_1d(np.asarray(goal, dtype=float)).ravel()
            if self.goal.shape != self.viapoint.shape:
                raise ValueError(
                    f"goal must have shape {self.viapoint.shape}, got {self.goal.shape}"
                )
        self.goal_time = goal_time
        self.viapoint_weight = viapoint_weight
        self.acceleration_weight = acceleration_weight
        self.goal_weight = goal_weight
        self.dim_extended = dim_extended

    @property
    def n_dims(self) -> int:
        return self.viapoint.shape[0]

    @property
    def n_cost_vars_per_time_step(self) -> int:
        return 4 * self.n_dims + 1 + self.dim_extended

    def decode_cost_vars(self, cost_vars: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Split one rollout's cost variables into (ts, ys, yds, ydds)."""
        cost_vars = np.asarray(cost_vars, dtype=float).ravel()
        width = self.n_cost_vars_per_time_step
        if cost_vars.shape[0] % width != 0:
            raise ValueError(
                f"Length of cost_vars ({cost_vars.shape[0]}) is not a multiple of {width}"
            )
        rollout = cost_vars.reshape(-1, width)
        D = self.n_dims
        return rollout[:, 3 * D], rollout[:, 0:D], rollout[:, D:2 * D], rollout[:, 2 * D:3 * D]

    def evaluate_rollout(self, cost_vars: np.ndarray, sample: np.ndarray) -> float:
        ts, ys, _, ydds = self.decode_cost_vars(cost_vars)

        if self.viapoint_time is None:
            dist_to_viapoint = np.min(np.linalg.norm(ys - self.viapoint, axis=1))
        else:
            i_via = min(np.searchsorted(ts, self.viapoint_time), ts.shape[0] - 1)
            dist_to_viapoint = np.linalg.norm(ys[i_via] - self.viapoint)

        acceleration_cost = np.mean(np.sum(ydds ** 2, axis=1))

        cost = self.viapoint_weight * dist_to_viapoint + self.acceleration_weight * acceleration_cost

        if self.goal is not None:
            goal_time = ts[-1] if self.goal_time is None else self.goal_time
            after_goal_time = ts >= goal_time
            if not np.any(after_goal_time):
                after_goal_time[-1] = True
            dist_to_goal = np.mean(np.linalg.norm(ys[after_goal_time] - self.goal, axis=1))
            cost += self.goal_weight * dist_to_goal

        return float(cost)
