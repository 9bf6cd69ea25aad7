"""
Tests for planner configuration defaults and YAML loading.
"""

import pytest
import yaml

from trajectory_pkg import config as cfg
from trajectory_pkg.config import PlannerConfig, lane_center, load_config, mph_to_ms
from trajectory_pkg.errors import InvalidDuration


class TestDefaults:
    def test_defaults_match_module_constants(self):
        config = PlannerConfig()

        assert config.nb_points == cfg.NB_POINTS == 50
        assert config.dt == cfg.DT == 0.02
        assert config.jmt_horizon == cfg.JMT_HORIZON == 2.0
        assert config.waypoint_spacing == cfg.WAYPOINT_SPACING == 30.0
        assert config.nb_forward_waypoints == 3
        assert config.speed_unit_factor == cfg.MPH_TO_MS

    def test_lane_center(self):
        assert lane_center(0) == 2.0
        assert lane_center(1) == 6.0
        assert lane_center(2) == 10.0
        assert PlannerConfig(lane_width=3.5).lane_center(1) == pytest.approx(5.25)

    def test_speed_conversion(self):
        assert mph_to_ms(49) == pytest.approx(21.905, abs=1e-3)
        assert PlannerConfig().to_ms(49) == pytest.approx(mph_to_ms(49))
        assert PlannerConfig(speed_unit_factor=1.0).to_ms(20.0) == 20.0


class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"nb_points": 0},
            {"dt": 0.0},
            {"dt": -0.02},
            {"dt": float("nan")},
            {"nb_forward_waypoints": 0},
            {"waypoint_spacing": 0.0},
        ],
    )
    def test_invalid_values_are_rejected(self, overrides):
        with pytest.raises(ValueError):
            PlannerConfig(**overrides)

    @pytest.mark.parametrize("jmt_horizon", [0.0, -2.0, float("nan")])
    def test_invalid_horizon_is_invalid_duration(self, jmt_horizon):
        with pytest.raises(InvalidDuration):
            PlannerConfig(jmt_horizon=jmt_horizon)

    def test_unknown_keys_are_rejected(self):
        with pytest.raises(ValueError):
            PlannerConfig.from_dict({"nb_point": 50})


class TestLoadConfig:
    def test_top_level_keys(self, tmp_path):
        path = tmp_path / "planner.yaml"
        path.write_text(yaml.dump({"nb_points": 30, "dt": 0.05}))

        config = load_config(path)

        assert config.nb_points == 30
        assert config.dt == 0.05
        assert config.jmt_horizon == cfg.JMT_HORIZON

    def test_planner_section(self, tmp_path):
        path = tmp_path / "av.yaml"
        path.write_text(yaml.dump({"planner": {"jmt_horizon": 3.0, "lane_width": 3.7}}))

        config = load_config(path)

        assert config.jmt_horizon == 3.0
        assert config.lane_width == 3.7

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config(path) == PlannerConfig()

    def test_non_mapping_is_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text(yaml.dump([1, 2, 3]))

        with pytest.raises(ValueError):
            load_config(path)

    def test_round_trip_through_dict(self):
        config = PlannerConfig(nb_points=20, dt=0.1)
        assert PlannerConfig.from_dict(config.to_dict()) == config
