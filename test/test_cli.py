"""Tests for the command line entry point."""

import pytest

from dmp_bbo.cli import OptimizationConfig, TrainConfig, main, make_updater
from dmp_bbo.bbo import UpdaterCovarAdaptation, UpdaterCovarDecay, UpdaterMean


class TestConfigs:
    """Tests for configuration validation."""

    def test_mismatched_boundaries_raise(self) -> None:
        """Test that start and end must have the same dimension."""
        with pytest.raises(ValueError):
            TrainConfig(y_from=(0.0,), y_to=(1.0, 1.0))

    def test_mismatched_viapoint_raises(self) -> None:
        """Test that the via-point must match the number of DOFs."""
        with pytest.raises(ValueError):
            OptimizationConfig(viapoint=(0.5,))

    def test_unknown_updater_raises(self) -> None:
        """Test that unknown updaters are rejected."""
        with pytest.raises(ValueError):
            OptimizationConfig(updater="cma")

    @pytest.mark.parametrize("name, cls", [
        ("mean", UpdaterMean),
        ("decay", UpdaterCovarDecay),
        ("adaptation", UpdaterCovarAdaptation),
    ])
    def test_make_updater(self, name, cls) -> None:
        """Test updater selection by name."""
        assert isinstance(make_updater(OptimizationConfig(updater=name)), cls)


class TestMain:
    """Tests for the train and optimize subcommands."""

    def test_train(self, tmp_path) -> None:
        """Test that training writes the demonstration and its reproduction."""
        main(TrainConfig(output_dir=str(tmp_path), dt=0.05))
        assert (tmp_path / "demonstration.txt").is_file()
        assert (tmp_path / "reproduced.txt").is_file()

    def test_optimize(self, tmp_path) -> None:
        """Test that optimization writes trajectories and checkpoints."""
        save_directory = tmp_path / "optimization"
        main(OptimizationConfig(
            output_dir=str(tmp_path),
            dt=0.05,
            n_updates=2,
            n_samples_per_update=3,
            save_directory=str(save_directory),
            seed=0,
        ))
        assert (tmp_path / "optimized.txt").is_file()
        assert (save_directory / "learning_curve.txt").is_file()
        assert (save_directory / "update00001" / "costs.txt").is_file()

    def test_existing_output_exits(self, tmp_path) -> None:
        """Test that existing trajectories are not silently kept without overwrite."""
        main(TrainConfig(output_dir=str(tmp_path), dt=0.05))
        with pytest.raises(SystemExit, match="demonstration.txt"):
            main(TrainConfig(output_dir=str(tmp_path), dt=0.05))
        main(TrainConfig(output_dir=str(tmp_path), dt=0.05, overwrite=True))

    def test_existing_checkpoints_exit(self, tmp_path) -> None:
        """Test that a checkpoint that cannot be written ends the run."""
        save_directory = tmp_path / "optimization"
        (save_directory / "update00000").mkdir(parents=True)
        (save_directory / "update00000" / "distribution_mean.txt").write_text("0\n")
        with pytest.raises(SystemExit, match="update 0"):
            main(OptimizationConfig(
                output_dir=str(tmp_path / "trajectories"),
                dt=0.05,
                n_updates=2,
                n_samples_per_update=3,
                save_directory=str(save_directory),
                seed=0,
            ))
