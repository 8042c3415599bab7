"""Dynamical movement primitives with black-box optimization.

This package provides tools for generating smooth multi-joint
trajectories with dynamical movement primitives (DMPs) and for tuning
their parameters with distribution-based black-box optimization (BBO).

Subpackages:
    function_approximators: Basis-function regression models (RBFN, LWR).
    dynamical_systems: Phase, gating, goal and spring-damper subsystems.
    dmp: The DMP integrator and its extended-dimensions decorator.
    bbo: Search distributions, updaters and the optimization loop.
    dmp_bbo: Rollout evaluation of DMPs and example tasks.

Based on:
    Ijspeert, A. J., Nakanishi, J., Hoffmann, H., Pastor, P., & Schaal, S.
    (2013). Dynamical movement primitives: learning attractor models for
    motor behaviors. Neural Computation, 25(2), 328-373.

    Stulp, F., & Sigaud, O. (2013). Robot skill learning: From
    reinforcement learning to evolution strategies. Paladyn, Journal of
    Behavioral Robotics, 4(1), 49-61.
"""

__version__ = "0.1.0"
