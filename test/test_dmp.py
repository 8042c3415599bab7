"""Tests for the Dmp integrator."""

import tracemalloc

import numpy as np
import pytest
from numpy.testing import assert_allclose

from dmp_bbo.dmp import Dmp, DmpConfig
from dmp_bbo.function_approximators import FunctionApproximatorLWR, FunctionApproximatorRBFN
from dmp_bbo.trajectory import Trajectory


def integrate_steps(dmp, ts, method="euler"):
    """Integrate ``dmp`` step by step on ``ts``, returning positions (T, D)."""
    ys = np.zeros((ts.shape[0], dmp.dim_orig))
    x, xd = dmp.integrate_start()
    ys[0] = x[dmp.SPRING_Y]
    for tt in range(1, ts.shape[0]):
        dmp.integrate_step(ts[tt] - ts[tt - 1], x, x_updated=x, xd_updated=xd, method=method)
        ys[tt] = x[dmp.SPRING_Y]
    return ys


class TestConstruction:
    """Tests for construction and the state layout."""

    def test_state_layout(self) -> None:
        """Test the [y, z, goal, phase, gating] layout."""
        dmp = Dmp.from_config(DmpConfig(), [0.0, 0.0, 0.0], [1.0, 1.0, 1.0])
        assert dmp.dim_orig == 3
        assert dmp.dim == 11
        assert dmp.SPRING_Y == slice(0, 3)
        assert dmp.SPRING_Z == slice(3, 6)
        assert dmp.GOAL == slice(6, 9)
        assert dmp.PHASE == 9
        assert dmp.GATING == 10

    def test_integrate_start(self) -> None:
        """Test the initial state of a joining DMP."""
        dmp = Dmp.from_config(DmpConfig(), [0.5, -0.5], [1.0, 1.0])
        x, xd = dmp.integrate_start()
        assert_allclose(x[dmp.SPRING_Y], [0.5, -0.5])
        assert_allclose(x[dmp.SPRING_Z], 0.0)
        assert_allclose(x[dmp.GOAL], [0.5, -0.5])
        assert x[dmp.PHASE] == pytest.approx(0.0)
        assert x[dmp.GATING] == pytest.approx(1.0)
        assert xd.shape == (dmp.dim,)

    def test_wrong_number_of_function_approximators(self) -> None:
        """Test that one function approximator per dimension is required."""
        with pytest.raises(ValueError):
            Dmp(1.0, [0.0, 0.0], [1.0, 1.0], [FunctionApproximatorRBFN()])

    def test_invalid_config(self) -> None:
        """Test configuration validation."""
        with pytest.raises(ValueError):
            DmpConfig(dmp_type="UNKNOWN")
        with pytest.raises(ValueError):
            DmpConfig(tau=-1.0)
        with pytest.raises(ValueError):
            DmpConfig(forcing_term_scaling="AMPLITUDE")


class TestUntrained:
    """Tests for a DMP whose function approximators are untrained."""

    @pytest.mark.parametrize("dmp_type", ["KULVICIUS_2012_JOINING", "IJSPEERT_2002_MOVEMENT"])
    def test_converges_to_attractor(self, dmp_type) -> None:
        """Test that without forcing term the DMP converges to y_attr."""
        dmp = Dmp.from_config(DmpConfig(dmp_type=dmp_type), [0.0, 1.0], [1.0, -1.0])
        ts = np.linspace(0.0, 1.5, 301)
        xs, _, forcing_terms = dmp.analytical_solution(ts)
        assert_allclose(forcing_terms, 0.0)
        assert_allclose(xs[-1, dmp.SPRING_Y], [1.0, -1.0], atol=1e-2)


class TestTraining:
    """Tests for training on a demonstration."""

    def test_training_sets_boundaries(self, trained_dmp, demonstration) -> None:
        """Test that training adopts the demonstration's duration and boundaries."""
        assert trained_dmp.tau == pytest.approx(demonstration.duration)
        assert_allclose(trained_dmp.y_init, demonstration.initial_y)
        assert_allclose(trained_dmp.y_attr, demonstration.final_y)

    def test_reproduces_demonstration(self, trained_dmp, demonstration) -> None:
        """Test that the trained DMP reproduces the demonstration."""
        reproduced = trained_dmp.analytical_solution_trajectory(demonstration.ts)
        assert reproduced.dim == demonstration.dim
        assert_allclose(reproduced.ys, demonstration.ys, atol=0.1)

    @pytest.mark.parametrize("function_approximator", ["rbfn", "lwr"])
    def test_reproduces_with_scaling(self, demonstration, function_approximator) -> None:
        """Test training with forcing term scaling and both model types."""
        config = DmpConfig(
            forcing_term_scaling="G_MINUS_Y0_SCALING",
            function_approximator=function_approximator,
            n_basis_functions=15,
            intersection_height=0.7,
        )
        dmp = Dmp.from_config(config, demonstration.initial_y, demonstration.final_y)
        dmp.train(demonstration)
        reproduced = dmp.analytical_solution_trajectory(demonstration.ts)
        assert_allclose(reproduced.ys, demonstration.ys, atol=0.1)

    def test_dimension_mismatch_raises(self, demonstration) -> None:
        """Test that a trajectory of the wrong dimension is rejected."""
        dmp = Dmp.from_config(DmpConfig(), [0.0], [1.0])
        with pytest.raises(ValueError):
            dmp.train(demonstration)


class TestIntegration:
    """Tests for step-wise integration against the analytical solution."""

    def test_euler_matches_analytical(self, trained_dmp) -> None:
        """Test that Euler steps converge to the analytical solution."""
        ts = np.linspace(0.0, 1.0, 1001)
        xs, _, _ = trained_dmp.analytical_solution(ts)
        ys = integrate_steps(trained_dmp, ts, "euler")
        assert_allclose(ys, xs[:, trained_dmp.SPRING_Y], atol=2e-2)

    def test_rk4_matches_analytical(self, trained_dmp) -> None:
        """Test that RK4 steps converge to the analytical solution."""
        ts_fine = np.linspace(0.0, 1.0, 1001)
        xs, _, _ = trained_dmp.analytical_solution(ts_fine)
        ts = ts_fine[::10]
        ys = integrate_steps(trained_dmp, ts, "rk4")
        assert_allclose(ys, xs[::10, trained_dmp.SPRING_Y], atol=2e-2)

    def test_in_place_step(self, trained_dmp) -> None:
        """Test that a step with given buffers writes into them."""
        x, xd = trained_dmp.integrate_start()
        x_updated, xd_updated = trained_dmp.integrate_step(0.01, x, x_updated=x, xd_updated=xd)
        assert x_updated is x
        assert xd_updated is xd

    def test_unknown_method_raises(self, trained_dmp) -> None:
        """Test that unknown integration methods are rejected."""
        x, _ = trained_dmp.integrate_start()
        with pytest.raises(ValueError):
            trained_dmp.integrate_step(0.01, x, method="midpoint")

    def test_column_major_buffers(self, trained_dmp, ts) -> None:
        """Test that (dim, T) buffers receive the transposed solution."""
        xs, xds, forcing_terms = trained_dmp.analytical_solution(ts)
        xs_buffer = np.zeros((trained_dmp.dim, ts.shape[0]))
        forcing_buffer = np.zeros((trained_dmp.dim_orig, ts.shape[0]))
        xs_out, _, forcing_out = trained_dmp.analytical_solution(
            ts, xs=xs_buffer, forcing_terms=forcing_buffer
        )
        assert xs_out is xs_buffer
        assert forcing_out is forcing_buffer
        assert_allclose(xs_buffer, xs.T)
        assert_allclose(forcing_buffer, forcing_terms.T)

    def test_states_as_trajectory(self, trained_dmp, ts) -> None:
        """Test the conversion of states to positions, velocities and accelerations."""
        xs, xds, _ = trained_dmp.analytical_solution(ts)
        trajectory = trained_dmp.states_as_trajectory(ts, xs, xds)
        assert_allclose(trajectory.ys, xs[:, trained_dmp.SPRING_Y])
        assert_allclose(trajectory.yds, xds[:, trained_dmp.SPRING_Y])
        assert_allclose(trajectory.ydds, xds[:, trained_dmp.SPRING_Z] / trained_dmp.tau)


class TestAnalyticalSolution:
    """Tests for the analytical solution on arbitrary time grids."""

    def test_grid_starting_later(self, trained_dmp, ts) -> None:
        """Test that a grid starting after 0 gives the states of the full grid."""
        Y = trained_dmp.SPRING_Y
        xs, _, forcing_terms = trained_dmp.analytical_solution(ts)
        xs_late, _, forcing_late = trained_dmp.analytical_solution(ts[50:])
        assert_allclose(xs_late[:, Y], xs[50:, Y], atol=1e-3)
        assert_allclose(xs_late[:, trained_dmp.PHASE], xs[50:, trained_dmp.PHASE])
        assert_allclose(forcing_late, forcing_terms[50:])
        assert not np.allclose(xs_late[0, Y], trained_dmp.y_init, atol=0.1)

    def test_unsorted_grid(self, trained_dmp, ts, rng) -> None:
        """Test that permuted time stamps give the permuted states."""
        xs, xds, _ = trained_dmp.analytical_solution(ts)
        order = rng.permutation(ts.shape[0])
        xs_perm, xds_perm, _ = trained_dmp.analytical_solution(ts[order])
        assert_allclose(xs_perm, xs[order])
        assert_allclose(xds_perm, xds[order])

    def test_sparse_grid_matches_dense_grid(self, trained_dmp) -> None:
        """Test that a coarse grid does not accumulate integration error."""
        ts_dense = np.linspace(0.0, 1.0, 1001)
        xs_dense, _, _ = trained_dmp.analytical_solution(ts_dense)
        xs_sparse, _, _ = trained_dmp.analytical_solution(ts_dense[::250])
        Y = trained_dmp.SPRING_Y
        assert_allclose(xs_sparse[:, Y], xs_dense[::250, Y], atol=1e-3)

    def test_negative_time_raises(self, trained_dmp) -> None:
        """Test that times before the start of the movement are rejected."""
        with pytest.raises(ValueError):
            trained_dmp.analytical_solution(np.array([-0.1, 0.0, 0.1]))

    def test_wrong_buffer_shape_raises(self, trained_dmp, ts) -> None:
        """Test that a buffer matching neither layout is rejected."""
        with pytest.raises(ValueError):
            trained_dmp.analytical_solution(ts, xs=np.zeros((ts.shape[0], trained_dmp.dim + 1)))
        with pytest.raises(ValueError):
            trained_dmp.analytical_solution(ts, forcing_terms=np.zeros(ts.shape[0]))

    def test_wrong_function_approximator_buffer_raises(self, trained_dmp, ts) -> None:
        """Test that the function approximator output buffer must be (T, D)."""
        with pytest.raises(ValueError):
            trained_dmp.compute_function_approximator_output(ts, np.zeros((ts.shape[0], 3)))


class TestParameterVector:
    """Tests for the selectable parameter interface."""

    def test_sizes(self, trained_dmp) -> None:
        """Test parameter vector sizes for the weights."""
        trained_dmp.set_selected_parameters({"weights"})
        assert trained_dmp.get_parameter_vector_sizes() == [15, 15]
        assert trained_dmp.get_parameter_vector_all_size() == 30
        assert trained_dmp.get_parameter_vector_all().shape == (30,)

    def test_mask(self, trained_dmp) -> None:
        """Test the mask over all model parameters of all dimensions."""
        mask = trained_dmp.get_parameter_vector_mask({"weights"})
        assert mask.shape == (2 * 3 * 15,)
        assert mask.sum() == 30

    def test_unknown_label_raises(self, trained_dmp) -> None:
        """Test that labels unknown to every model are rejected."""
        with pytest.raises(ValueError):
            trained_dmp.set_selected_parameters({"goal"})

    def test_round_trip_is_no_op(self, trained_dmp, ts) -> None:
        """Test that writing back the current parameters changes nothing."""
        trained_dmp.set_selected_parameters({"weights", "widths"})
        xs_before, _, _ = trained_dmp.analytical_solution(ts)
        trained_dmp.set_parameter_vector_all(trained_dmp.get_parameter_vector_all())
        xs_after, _, _ = trained_dmp.analytical_solution(ts)
        assert_allclose(xs_after, xs_before)

    def test_wrong_length_raises(self, trained_dmp) -> None:
        """Test that a vector of the wrong length is rejected."""
        trained_dmp.set_selected_parameters({"weights"})
        with pytest.raises(ValueError):
            trained_dmp.set_parameter_vector_all(np.zeros(29))

    def test_parameters_change_trajectory(self, trained_dmp, ts) -> None:
        """Test that perturbed weights give a different trajectory."""
        trained_dmp.set_selected_parameters({"weights"})
        xs_before, _, _ = trained_dmp.analytical_solution(ts)
        trained_dmp.set_parameter_vector_all(trained_dmp.get_parameter_vector_all() + 10.0)
        xs_after, _, _ = trained_dmp.analytical_solution(ts)
        assert not np.allclose(xs_after[:, trained_dmp.SPRING_Y], xs_before[:, trained_dmp.SPRING_Y])

    def test_normalized_parameters(self, trained_dmp) -> None:
        """Test that normalized vectors are offsets from the trained parameters."""
        trained_dmp.set_selected_parameters({"weights"})
        baseline = trained_dmp.get_parameter_vector_all()

        trained_dmp.set_parameter_vector_all(np.zeros(30), normalized=True)
        assert_allclose(trained_dmp.get_parameter_vector_all(), baseline)

        trained_dmp.set_parameter_vector_all(np.ones(30), normalized=True)
        assert_allclose(trained_dmp.get_parameter_vector_all(), baseline + 1.0)

    def test_model_parameters_vectors(self, trained_dmp) -> None:
        """Test setting one parameter vector per dimension."""
        trained_dmp.set_selected_parameters({"weights"})
        trained_dmp.set_model_parameters_vectors([np.zeros(15), np.ones(15)])
        assert_allclose(trained_dmp.get_parameter_vector_all(), np.r_[np.zeros(15), np.ones(15)])
        with pytest.raises(ValueError):
            trained_dmp.set_model_parameters_vectors([np.zeros(15)])

    def test_copy_is_independent(self, trained_dmp, ts) -> None:
        """Test that a copy can be modified without affecting the original."""
        trained_dmp.set_selected_parameters({"weights"})
        clone = trained_dmp.copy()
        clone.set_parameter_vector_all(np.zeros(30))
        assert not np.allclose(trained_dmp.get_parameter_vector_all(), 0.0)


class TestAllocationFree:
    """Tests that in-place stepping allocates no arrays.

    Arrays scale with the number of DOFs or basis functions, so with large
    sizes any temporary array shows up as a traced peak of several kB.
    """

    MAX_PEAK_BYTES = 4096

    @staticmethod
    def traced_peak(function, n_calls: int = 3) -> int:
        function()
        tracemalloc.start()
        try:
            current, _ = tracemalloc.get_traced_memory()
            for _ in range(n_calls):
                function()
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()
        return peak - current

    @pytest.fixture
    def wide_dmp(self, ts) -> Dmp:
        """Trained DMP with 1000 DOFs."""
        n_dofs = 1000
        demonstration = Trajectory.generate_min_jerk(
            ts, y_from=np.zeros(n_dofs), y_to=np.linspace(0.5, 1.5, n_dofs)
        )
        config = DmpConfig(n_basis_functions=3, intersection_height=0.7)
        dmp = Dmp.from_config(config, demonstration.initial_y, demonstration.final_y)
        dmp.train(demonstration)
        return dmp

    @pytest.mark.parametrize("method", ["euler", "rk4"])
    def test_integrate_step(self, wide_dmp, method) -> None:
        """Test that a step with given buffers allocates no state-sized arrays."""
        x, xd = wide_dmp.integrate_start()
        x_updated, xd_updated = np.empty_like(x), np.empty_like(xd)
        peak = self.traced_peak(
            lambda: wide_dmp.integrate_step(0.01, x, x_updated, xd_updated, method)
        )
        assert peak < self.MAX_PEAK_BYTES

    @pytest.mark.parametrize("dmp_type", ["KULVICIUS_2012_JOINING", "IJSPEERT_2002_MOVEMENT"])
    def test_differential_equation(self, dmp_type) -> None:
        """Test the rate computation of both DMP types with an output buffer."""
        n_dofs = 1000
        dmp = Dmp.from_config(DmpConfig(dmp_type=dmp_type), np.zeros(n_dofs), np.ones(n_dofs))
        x, xd = dmp.integrate_start()
        peak = self.traced_peak(lambda: dmp.differential_equation(x, xd))
        assert peak < self.MAX_PEAK_BYTES

    @pytest.mark.parametrize("cls", [FunctionApproximatorRBFN, FunctionApproximatorLWR])
    def test_single_input_predict(self, cls) -> None:
        """Test that predicting one input into a buffer allocates no kernel-sized arrays."""
        fa = cls(n_basis_functions=1000, intersection_height=0.5, regularization=1e-6)
        inputs = np.linspace(0.0, 1.0, 2000)
        fa.train(inputs, np.sin(2.0 * np.pi * inputs))
        phase, output = np.array([[0.3]]), np.zeros(1)
        peak = self.traced_peak(lambda: fa.predict(phase, output))
        assert peak < self.MAX_PEAK_BYTES
