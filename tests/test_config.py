"""Tests for configuration loading."""

import logging

import pytest

from matchcut_align.core.config import AlignerConfig, KalmanConfig, load_config, load_yaml


class TestDefaults:
    def test_default_values(self):
        config = load_config()
        assert config.preprocessor.min_confidence == 0.7
        assert config.solver.residual_tolerance == 50.0
        assert config.solver.full_correspondence_count == 20
        assert config.kalman.velocity_decay == 0.95
        assert config.history_capacity == 50
        assert config.smoothing_method == "kalman"

    def test_round_trip_through_dict(self):
        config = AlignerConfig(kalman=KalmanConfig(process_noise=0.1))
        assert AlignerConfig.from_dict(config.to_dict()) == config


class TestYaml:
    def test_file_overrides_defaults(self, tmp_path):
        path = tmp_path / "align.yaml"
        path.write_text("kalman:\n  process_noise: 0.01\nhistory_capacity: 5\n", encoding="utf-8")

        config = load_config(path)

        assert config.kalman.process_noise == 0.01
        assert config.kalman.measurement_noise == 0.05
        assert config.history_capacity == 5

    def test_overrides_win_over_file(self, tmp_path):
        path = tmp_path / "align.yaml"
        path.write_text("solver:\n  residual_tolerance: 30.0\n", encoding="utf-8")

        config = load_config(path, {"solver": {"residual_tolerance": 10.0}, "smoothing_method": "ema"})

        assert config.solver.residual_tolerance == 10.0
        assert config.solver.degenerate_ratio == 1e-3
        assert config.smoothing_method == "ema"

    def test_missing_file_warns_and_uses_defaults(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            config = load_config(tmp_path / "missing.yaml")
        assert config == AlignerConfig()
        assert "not found" in caplog.text

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_yaml(path) == {}

    def test_non_mapping_top_level(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    def test_unknown_top_level_key(self):
        with pytest.raises(ValueError, match="Unknown config key"):
            load_config(overrides={"colour": "red"})

    def test_unknown_section_key(self):
        with pytest.raises(ValueError, match="kalman"):
            load_config(overrides={"kalman": {"gain": 1.0}})
