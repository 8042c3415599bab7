"""Pytest fixtures for dmp_bbo tests."""

import numpy as np
import pytest

from dmp_bbo.dmp import Dmp, DmpConfig
from dmp_bbo.trajectory import Trajectory


@pytest.fixture
def ts() -> np.ndarray:
    """Time stamps of a 1 s movement sampled at 100 Hz."""
    return np.linspace(0.0, 1.0, 101)


@pytest.fixture
def demonstration(ts) -> Trajectory:
    """Two-dimensional minimum-jerk demonstration."""
    return Trajectory.generate_min_jerk(ts, y_from=[0.0, 0.0], y_to=[1.0, 0.5])


@pytest.fixture
def dmp_config() -> DmpConfig:
    """Default DMP configuration with RBFN function approximators."""
    return DmpConfig(n_basis_functions=15, intersection_height=0.7)


@pytest.fixture
def trained_dmp(demonstration, dmp_config) -> Dmp:
    """DMP trained on the demonstration."""
    dmp = Dmp.from_config(dmp_config, demonstration.initial_y, demonstration.final_y)
    dmp.train(demonstration)
    return dmp


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator."""
    return np.random.default_rng(42)
