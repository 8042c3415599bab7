"""Optimization of DMP parameters through rollouts.

Usage:
    from dmp_bbo.bbo import DistributionGaussian, UpdaterCovarDecay, run_optimization_task
    from dmp_bbo.dmp_bbo import TaskSolverDmp, TaskViaPoint

    task_solver = TaskSolverDmp(dmp, {"weights"}, dt=0.01)
    task = TaskViaPoint(viapoint=[0.4, 0.7], viapoint_time=0.3)
    result = run_optimization_task(task, task_solver, distribution, updater, 20, 10)
"""

from .task_solver_dmp import TaskSolverDmp
from .task_via_point import TaskViaPoint

__all__ = ["TaskSolverDmp", "TaskViaPoint"]
