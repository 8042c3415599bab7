"""Black-box optimization with Gaussian search distributions."""

from .cost_function import CostFunction, CostFunctionQuadratic, Task, TaskSolver
from .distribution_gaussian import DistributionGaussian
from .run_optimization import (
    CheckpointError,
    OptimizationResult,
    run_optimization,
    run_optimization_task,
    save_to_directory,
)
from .updaters import (
    WEIGHTING_METHODS,
    Updater,
    UpdaterCovarAdaptation,
    UpdaterCovarDecay,
    UpdaterMean,
    costs_to_weights,
)

__all__ = [
    "CostFunction",
    "CostFunctionQuadratic",
    "Task",
    "TaskSolver",
    "DistributionGaussian",
    "CheckpointError",
    "OptimizationResult",
    "run_optimization",
    "run_optimization_task",
    "save_to_directory",
    "WEIGHTING_METHODS",
    "Updater",
    "UpdaterCovarAdaptation",
    "UpdaterCovarDecay",
    "UpdaterMean",
    "costs_to_weights",
]
