import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np
from scipy.interpolate import CubicSpline

from trajectory_pkg.config import PlannerConfig
from trajectory_pkg.errors import ContinuityViolation, InvalidWaypoints
from trajectory_pkg.frenet_path import FrenetPathState
from trajectory_pkg.polynomial import jmt, polyeval, polyeval_dot, polyeval_ddot

logger = logging.getLogger(__name__)


@dataclass
class VehiclePose:
    x: float
    y: float
    yaw: float  # rad
    s: float
    d: float


def _split_previous_path(previous_path, nb_points):
    if previous_path is None:
        return [], []
    xlist, ylist = previous_path
    xlist, ylist = list(xlist), list(ylist)
    if len(xlist) != len(ylist):
        raise ValueError(f"previous path x/y length mismatch: {len(xlist)} != {len(ylist)}")
    if len(xlist) > nb_points:
        raise ValueError(f"previous path has {len(xlist)} points, horizon is {nb_points}")
    return xlist, ylist


# terminal state policies
# (start_s, start_d, pose, target_lane, target_speed, config) -> (end_s, end_d, T)

def stop_at_current_s(start_s, start_d, pose, target_lane, target_speed, config):
    """Reach the target lane center at the current s with no residual motion."""
    end_s = [pose.s, 0.0, 0.0]
    end_d = [config.lane_center(target_lane), 0.0, 0.0]
    return end_s, end_d, config.jmt_horizon


def keep_velocity(start_s, start_d, pose, target_lane, target_speed, config):
    """Reach the target speed on the target lane center, s projected forward.

    Pair with ``graft_on_tail=True`` so that each segment continues the
    carried-over path instead of restarting behind it.
    """
    tt = config.jmt_horizon
    v = config.to_ms(target_speed)
    end_s = [start_s[0] + 0.5 * (start_s[1] + v) * tt, v, 0.0]
    end_d = [config.lane_center(target_lane), 0.0, 0.0]
    return end_s, end_d, tt


class TrajectoryGenerator(ABC):
    def __init__(self, config=None):
        self.config = config if config is not None else PlannerConfig()

    @abstractmethod
    def generate(self, target_lane, target_speed, road_map, pose, previous_path):
        """
        Build the next path handed to the controller.

        target_lane: lane index, its center is ``config.lane_center(target_lane)``
        target_speed: in the unit converted by ``config.speed_unit_factor``
        road_map: provides get_xy(s, d) and get_xy_spline(s, d)
        pose: VehiclePose of the vehicle
        previous_path: (xlist, ylist) of the points not executed since the last cycle

        returns (xlist, ylist), always ``config.nb_points`` long. The points of
        ``previous_path`` come first, unchanged.
        """


class JMTTrajectoryGenerator(TrajectoryGenerator):
    """Quintic polynomials in s and d grafted on the tracked path state."""

    def __init__(self, config=None, terminal_policy=stop_at_current_s, graft_on_tail=False):
        super().__init__(config)
        self.terminal_policy = terminal_policy
        # False: new segment starts on the last executed point (reference law)
        # True: new segment continues from the end of the carried-over path
        self.graft_on_tail = graft_on_tail
        self.state = FrenetPathState(self.config.nb_points)

    def reset(self, s0, d0):
        self.state.initialize(s0, d0)

    def generate(self, target_lane, target_speed, road_map, pose, previous_path):
        nb_points = self.config.nb_points
        prev_xlist, prev_ylist = _split_previous_path(previous_path, nb_points)
        prev_size = len(prev_xlist)
        nb_points_used = nb_points - prev_size
        last_point = nb_points_used - 1

        if not self.state.is_initialized:
            self.reset(pose.s, pose.d)

        if nb_points_used == 0:
            # nothing executed since the last cycle, the horizon is still full
            return prev_xlist, prev_ylist

        try:
            self.state.check_continuity(last_point, pose.s, pose.d, self.config.continuity_tol)
        except ContinuityViolation:
            logger.warning("path state out of sync with vehicle at index %d", last_point)
            raise

        if self.graft_on_tail and prev_size > 0:
            graft_point = nb_points - 1
            t = self.config.dt
        else:
            graft_point = last_point
            t = 0.0

        start_s, start_d = self.state.read(graft_point)
        end_s, end_d, tt = self.terminal_policy(
            start_s, start_d, pose, target_lane, target_speed, self.config
        )

        poly_s = jmt(start_s, end_s, tt)
        poly_d = jmt(start_d, end_d, tt)
        logger.debug("jmt s: %s -> %s, d: %s -> %s, T=%.2f", start_s, end_s, start_d, end_d, tt)

        self.state.roll_forward(nb_points_used)
        next_x_vals = prev_xlist[:]
        next_y_vals = prev_ylist[:]

        for i in range(prev_size, nb_points):
            s_triple = (polyeval(poly_s, t), polyeval_dot(poly_s, t), polyeval_ddot(poly_s, t))
            d_triple = (polyeval(poly_d, t), polyeval_dot(poly_d, t), polyeval_ddot(poly_d, t))
            self.state.write(i, s_triple, d_triple)

            x, y = road_map.get_xy_spline(s_triple[0], d_triple[0])
            next_x_vals.append(x)
            next_y_vals.append(y)

            t += self.config.dt

        return next_x_vals, next_y_vals


class SplineTrajectoryGenerator(TrajectoryGenerator):
    """Cubic spline through the previous path tail and forward waypoints,
    built in the local frame of the last path point."""

    def build_anchor_points(self, target_lane, road_map, pose, previous_path):
        """
        returns (ptsx, ptsy, ref_x, ref_y, ref_yaw), the anchors expressed in
        the frame centered on (ref_x, ref_y) with heading ref_yaw
        """
        prev_xlist, prev_ylist = _split_previous_path(previous_path, self.config.nb_points)
        prev_size = len(prev_xlist)

        ptsx = []
        ptsy = []

        if prev_size < 2:
            ref_x = pose.x
            ref_y = pose.y
            ref_yaw = pose.yaw

            ptsx += [pose.x - math.cos(pose.yaw), pose.x]
            ptsy += [pose.y - math.sin(pose.yaw), pose.y]
        else:
            ref_x = prev_xlist[-1]
            ref_y = prev_ylist[-1]

            ref_x_prev = prev_xlist[-2]
            ref_y_prev = prev_ylist[-2]
            ref_yaw = math.atan2(ref_y - ref_y_prev, ref_x - ref_x_prev)

            ptsx += [ref_x_prev, ref_x]
            ptsy += [ref_y_prev, ref_y]

        target_d = self.config.lane_center(target_lane)
        for k in range(1, self.config.nb_forward_waypoints + 1):
            wp_x, wp_y = road_map.get_xy(pose.s + k * self.config.waypoint_spacing, target_d)
            ptsx.append(wp_x)
            ptsy.append(wp_y)

        # shift and rotate: reference point at origin, heading at zero
        shift_x = np.array(ptsx) - ref_x
        shift_y = np.array(ptsy) - ref_y
        local_x = shift_x * math.cos(-ref_yaw) - shift_y * math.sin(-ref_yaw)
        local_y = shift_x * math.sin(-ref_yaw) + shift_y * math.cos(-ref_yaw)

        return local_x.tolist(), local_y.tolist(), ref_x, ref_y, ref_yaw

    def generate(self, target_lane, target_speed, road_map, pose, previous_path):
        nb_points = self.config.nb_points
        prev_xlist, prev_ylist = _split_previous_path(previous_path, nb_points)
        prev_size = len(prev_xlist)

        if prev_size == nb_points:
            return prev_xlist, prev_ylist

        target_vel = self.config.to_ms(target_speed)
        if target_vel <= 0:
            raise ValueError(f"target speed must be positive, got {target_speed}")

        ptsx, ptsy, ref_x, ref_y, ref_yaw = self.build_anchor_points(
            target_lane, road_map, pose, (prev_xlist, prev_ylist)
        )
        if np.any(np.diff(ptsx) <= 0):
            logger.warning("degenerate spline anchors at s=%.2f, lane %s", pose.s, target_lane)
            raise InvalidWaypoints(ptsx)

        spl = CubicSpline(ptsx, ptsy, bc_type="natural")

        next_x_vals = prev_xlist[:]
        next_y_vals = prev_ylist[:]

        # break up the spline so that consecutive points are target_vel * dt apart
        target_x = self.config.spline_target_x
        target_y = float(spl(target_x))
        target_dist = math.hypot(target_x, target_y)
        n = target_dist / (self.config.dt * target_vel)
        x_step = target_x / n

        x_add_on = 0.0
        for _ in range(nb_points - prev_size):
            x_local = x_add_on + x_step
            y_local = float(spl(x_local))
            x_add_on = x_local

            # rotate back to the world frame
            x_point = x_local * math.cos(ref_yaw) - y_local * math.sin(ref_yaw) + ref_x
            y_point = x_local * math.sin(ref_yaw) + y_local * math.cos(ref_yaw) + ref_y

            next_x_vals.append(x_point)
            next_y_vals.append(y_point)

        logger.debug("spline path: %d reused, %d new, step %.3f m", prev_size, nb_points - prev_size, x_step)
        return next_x_vals, next_y_vals


GENERATORS = {
    "jmt": JMTTrajectoryGenerator,
    "spline": SplineTrajectoryGenerator,
}


def make_generator(kind, config=None):
    try:
        generator_cls = GENERATORS[kind]
    except KeyError:
        raise ValueError(f"unknown generator {kind!r}, expected one of {sorted(GENERATORS)}") from None
    return generator_cls(config)
