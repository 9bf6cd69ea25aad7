from dataclasses import dataclass, fields, asdict

import yaml

from trajectory_pkg.errors import InvalidDuration

# horizon config
NB_POINTS = 50  # points handed to the controller every cycle
DT = 0.02       # seconds between two consecutive points

# jmt config
JMT_HORIZON = 2.0  # seconds to reach the terminal state
CONTINUITY_TOL = 1e-6

# spline config
WAYPOINT_SPACING = 30.0  # meters between forward waypoints in frenet s
NB_FORWARD_WAYPOINTS = 3
SPLINE_TARGET_X = 30.0   # local x used to size the resampling step

# road config
LANE_WIDTH = 4.0

# unit config
MPH_TO_MS = 0.44704


def mph_to_ms(speed_mph):
    return speed_mph * MPH_TO_MS


def lane_center(lane, lane_width=LANE_WIDTH):
    """Lateral offset of the center of ``lane`` (0 is the innermost lane)."""
    return lane_width / 2 + lane_width * lane


@dataclass
class PlannerConfig:
    """Tunable parameters of the trajectory generators."""

    nb_points: int = NB_POINTS
    dt: float = DT
    jmt_horizon: float = JMT_HORIZON
    continuity_tol: float = CONTINUITY_TOL
    waypoint_spacing: float = WAYPOINT_SPACING
    nb_forward_waypoints: int = NB_FORWARD_WAYPOINTS
    spline_target_x: float = SPLINE_TARGET_X
    lane_width: float = LANE_WIDTH
    speed_unit_factor: float = MPH_TO_MS  # target speed unit -> m/s

    def __post_init__(self):
        if self.nb_points <= 0:
            raise ValueError(f"nb_points must be positive, got {self.nb_points}")
        if not self.dt > 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if not self.jmt_horizon > 0:
            raise InvalidDuration(self.jmt_horizon)
        if self.nb_forward_waypoints < 1:
            raise ValueError("at least one forward waypoint is required")
        if self.waypoint_spacing <= 0 or self.spline_target_x <= 0:
            raise ValueError("waypoint_spacing and spline_target_x must be positive")

    def to_ms(self, speed):
        return speed * self.speed_unit_factor

    def lane_center(self, lane):
        return lane_center(lane, self.lane_width)

    @classmethod
    def from_dict(cls, values):
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"unknown planner config keys: {sorted(unknown)}")
        return cls(**values)

    def to_dict(self):
        return asdict(self)


def load_config(path):
    """Load a ``PlannerConfig`` from a YAML file.

    The parameters may sit at the top level or under a ``planner`` section.
    An empty file gives the defaults.
    """
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping, got {type(data).__name__}")
    if "planner" in data:
        data = data["planner"] or {}
    return PlannerConfig.from_dict(data)
