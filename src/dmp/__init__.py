"""Dynamical Movement Primitives.

Usage:
    from dmp_bbo.dmp import Dmp, DmpConfig
    from dmp_bbo.trajectory import Trajectory

    demo = Trajectory.generate_min_jerk(ts, y_from=[0.0, 0.0], y_to=[1.0, 0.5])
    dmp = Dmp.from_config(DmpConfig(), demo.initial_y, demo.final_y)
    dmp.train(demo)

    # Offline: whole trajectory at once
    xs, xds, forcing_terms = dmp.analytical_solution(ts)
    reproduced = dmp.states_as_trajectory(ts, xs, xds)

    # Online: allocation-free stepping on a control loop
    x, xd = dmp.integrate_start()
    for _ in range(n_steps):
        dmp.integrate_step(dt, x, x_updated=x, xd_updated=xd)
"""

from .dmp import (
    DMP_TYPES,
    FORCING_TERM_SCALINGS,
    INTEGRATION_METHODS,
    Dmp,
    DmpConfig,
)
from .dmp_extended_dimensions import DmpExtendedDimensions

__all__ = [
    "DMP_TYPES",
    "FORCING_TERM_SCALINGS",
    "INTEGRATION_METHODS",
    "Dmp",
    "DmpConfig",
    "DmpExtendedDimensions",
]
