import logging
import os
from dataclasses import dataclass, field
from typing import Annotated, Optional, Union

import numpy as np
import tyro

from dmp_bbo.bbo import (
    WEIGHTING_METHODS,
    CheckpointError,
    DistributionGaussian,
    UpdaterCovarAdaptation,
    UpdaterCovarDecay,
    UpdaterMean,
    run_optimization_task,
)
from dmp_bbo.dmp import Dmp, DmpConfig
from dmp_bbo.dmp_bbo import TaskSolverDmp, TaskViaPoint
from dmp_bbo.trajectory import Trajectory

UPDATERS = ("mean", "decay", "adaptation")


@dataclass(kw_only=True)
class TrainConfig:
    """Train a DMP on a minimum-jerk demonstration and save the reproduction.

    Attributes:
        dmp: DMP configuration.
        y_from: Start positions of the demonstration.
        y_to: End positions of the demonstration.
        duration: Duration of the demonstration [s].
        dt: Sampling period [s].
        output_dir: Directory for demonstration.txt and reproduced.txt.
        overwrite: Overwrite existing files.
    """

    dmp: DmpConfig = field(default_factory=DmpConfig)
    y_from: tuple[float, ...] = (0.0, 0.0)
    y_to: tuple[float, ...] = (1.0, 0.5)
    duration: float = 1.0
    dt: float = 0.01
    output_dir: str = "results/train"
    overwrite: bool = False

    def __post_init__(self):
        if len(self.y_from) != len(self.y_to):
            raise ValueError(
                f"y_from and y_to must have the same length, got {len(self.y_from)} and {len(self.y_to)}"
            )
        if self.duration <= 0:
            raise ValueError(f"duration must be > 0, got {self.duration}")
        if not 0 < self.dt < self.duration:
            raise ValueError(f"dt must be in (0, duration), got {self.dt}")


@dataclass(kw_only=True)
class OptimizationConfig(TrainConfig):
    """Optimize the weights of a trained DMP to pass through a via-point.

    Attributes:
        viapoint: Via-point positions, one per DOF.
        viapoint_time: Time at which to pass the via-point. Closest
            approach over the whole movement if None.
        n_updates: Number of distribution updates.
        n_samples_per_update: Rollouts per update.
        covar_init: Initial exploration variance (isotropic).
        updater: One of "mean", "decay", "adaptation".
        weighting_method: One of "PI-BB", "CEM", "CMA-ES".
        eliteness: Eliteness of the weighting method.
        covar_decay_factor: Decay per update for the "decay" updater.
        use_normalized_parameter: Sample offsets from the trained weights.
        save_directory: Checkpoint directory. Nothing is saved if None.
        only_learning_curve: Only save the learning curve.
        seed: Random seed.
    """

    output_dir: str = "results/optimize"
    viapoint: tuple[float, ...] = (0.4, 0.7)
    viapoint_time: Optional[float] = 0.3
    n_updates: int = 20
    n_samples_per_update: int = 10
    covar_init: float = 1000.0
    updater: str = "decay"
    weighting_method: str = "PI-BB"
    eliteness: float = 10.0
    covar_decay_factor: float = 0.9
    use_normalized_parameter: bool = False
    save_directory: Optional[str] = None
    only_learning_curve: bool = False
    seed: Optional[int] = None

    def __post_init__(self):
        super().__post_init__()
        if len(self.viapoint) != len(self.y_from):
            raise ValueError(
                f"viapoint must have {len(self.y_from)} values, got {len(self.viapoint)}"
            )
        if self.n_updates < 1:
            raise ValueError(f"n_updates must be >= 1, got {self.n_updates}")
        if self.n_samples_per_update < 1:
            raise ValueError(f"n_samples_per_update must be >= 1, got {self.n_samples_per_update}")
        if self.covar_init <= 0:
            raise ValueError(f"covar_init must be > 0, got {self.covar_init}")
        if self.updater not in UPDATERS:
            raise ValueError(f"updater must be one of {UPDATERS}, got {self.updater}")
        if self.weighting_method not in WEIGHTING_METHODS:
            raise ValueError(
                f"weighting_method must be one of {WEIGHTING_METHODS}, got {self.weighting_method}"
            )


ConfigType = Union[
    Annotated[TrainConfig, tyro.conf.subcommand(name="train")],
    Annotated[OptimizationConfig, tyro.conf.subcommand(name="optimize")],
]


def make_updater(config: OptimizationConfig):
    if config.updater == "mean":
        return UpdaterMean(config.eliteness, config.weighting_method)
    if config.updater == "decay":
        return UpdaterCovarDecay(config.eliteness, config.covar_decay_factor, config.weighting_method)
    return UpdaterCovarAdaptation(config.eliteness, config.weighting_method)


def train_dmp(config: TrainConfig) -> tuple[Dmp, Trajectory]:
    """Train a DMP on the minimum-jerk demonstration described by ``config``."""
    n_time_steps = int(config.duration / config.dt + 1e-9) + 1
    ts = np.linspace(0.0, config.duration, n_time_steps)
    demonstration = Trajectory.generate_min_jerk(ts, config.y_from, config.y_to)

    dmp = Dmp.from_config(config.dmp, demonstration.initial_y, demonstration.final_y)
    dmp.train(demonstration)
    return dmp, demonstration


def save_trajectory(trajectory: Trajectory, config: TrainConfig, filename: str) -> None:
    """Save ``trajectory`` to ``config.output_dir``, exiting on failure."""
    if not trajectory.save_to_file(config.output_dir, filename, config.overwrite):
        raise SystemExit(
            f"Could not save {filename} to {config.output_dir}; "
            f"it may exist already (use --overwrite)"
        )


def main(config: ConfigType) -> None:
    """Train and optimize Dynamical Movement Primitives.

    Args:
        config: Subcommand configuration.
    """
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")
    os.makedirs(os.path.abspath(config.output_dir), exist_ok=True)

    dmp, demonstration = train_dmp(config)
    reproduced = dmp.analytical_solution_trajectory(demonstration.ts)
    rmse = np.sqrt(np.mean((reproduced.ys - demonstration.ys) ** 2))
    print(f"Trained {dmp}")
    print(f"Reproduction RMSE: {rmse:.6f}")

    save_trajectory(demonstration, config, "demonstration.txt")
    save_trajectory(reproduced, config, "reproduced.txt")

    if not isinstance(config, OptimizationConfig):
        print(f"Trajectories saved to {config.output_dir}")
        return

    task_solver = TaskSolverDmp(
        dmp,
        {"weights"},
        config.dt,
        use_normalized_parameter=config.use_normalized_parameter,
    )
    task = TaskViaPoint(
        viapoint=config.viapoint,
        viapoint_time=config.viapoint_time,
        goal=config.y_to,
    )

    if config.use_normalized_parameter:
        mean_init = np.zeros(dmp.get_parameter_vector_all_size())
    else:
        mean_init = dmp.get_parameter_vector_all()
    distribution = DistributionGaussian(
        mean=mean_init,
        covar=config.covar_init * np.eye(mean_init.shape[0]),
    )

    print(f"Optimizing {mean_init.shape[0]} parameters...")
    try:
        result = run_optimization_task(
            task,
            task_solver,
            distribution,
            make_updater(config),
            config.n_updates,
            config.n_samples_per_update,
            save_directory=config.save_directory,
            overwrite=config.overwrite,
            only_learning_curve=config.only_learning_curve,
            rng=config.seed,
        )
    except CheckpointError as e:
        raise SystemExit(str(e)) from e

    dmp.set_parameter_vector_all(result.distribution.mean, config.use_normalized_parameter)
    optimized = dmp.analytical_solution_trajectory(demonstration.ts)
    save_trajectory(optimized, config, "optimized.txt")

    print(f"Cost at mean: {result.learning_curve[0, 1]:.6f} -> {result.learning_curve[-1, 1]:.6f}")
    print(f"Trajectories saved to {config.output_dir}")
    if config.save_directory is not None:
        print(f"Optimization saved to {config.save_directory}")


def entry_point() -> None:
    config = tyro.cli(ConfigType)
    main(config)


if __name__ == "__main__":
    entry_point()
