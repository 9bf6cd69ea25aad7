"""
Closed-loop run of a trajectory generator against a simulated controller.

The controller executes a fixed number of points of the last path every cycle
and reports the pose of the last executed point, which is what a simulator
does between two planning ticks.
"""

import argparse
import logging
import math

import matplotlib.pyplot as plt
import numpy as np

from trajectory_pkg.config import PlannerConfig, load_config
from trajectory_pkg.frenet import WaypointMap
from trajectory_pkg.planner import (
    GENERATORS,
    JMTTrajectoryGenerator,
    VehiclePose,
    keep_velocity,
    make_generator,
)

logger = logging.getLogger(__name__)


def straight_road(length=1000.0, step=10.0, heading=0.0):
    s = np.arange(0.0, length + step, step)
    return WaypointMap(s * math.cos(heading), s * math.sin(heading))


def curved_road(radius=500.0, length=1000.0, step=10.0):
    theta = np.arange(0.0, length + step, step) / radius
    xlist = radius * np.sin(theta)
    ylist = radius * (1 - np.cos(theta))
    return WaypointMap(xlist, ylist)


def _reported_pose(generator, road_map, xlist, ylist, index, prev_pose):
    x, y = xlist[index], ylist[index]
    if index > 0:
        yaw = math.atan2(y - ylist[index - 1], x - xlist[index - 1])
    else:
        yaw = prev_pose.yaw

    if isinstance(generator, JMTTrajectoryGenerator):
        # the simulated vehicle lands exactly on the planned frenet state
        (s, _, _), (d, _, _) = generator.state.read(index)
    else:
        s, d = road_map.get_frenet(x, y)
    return VehiclePose(x=x, y=y, yaw=yaw, s=s, d=d)


def run_simulation(generator, road_map, pose, target_lane, target_speed, cycles=50, consume_per_cycle=5):
    """
    returns a dict with the executed ``x``/``y`` points and the ``poses``
    reported after every cycle
    """
    nb_points = generator.config.nb_points
    if not 0 < consume_per_cycle <= nb_points:
        raise ValueError(f"consume_per_cycle must be in [1, {nb_points}], got {consume_per_cycle}")

    history = {"x": [], "y": [], "poses": []}
    previous_path = ([], [])

    for cycle in range(cycles):
        xlist, ylist = generator.generate(target_lane, target_speed, road_map, pose, previous_path)

        last = consume_per_cycle - 1
        # the tracker is rolled forward on the next generate call, so read the
        # executed state before that happens
        pose = _reported_pose(generator, road_map, xlist, ylist, last, pose)

        history["x"].extend(xlist[:consume_per_cycle])
        history["y"].extend(ylist[:consume_per_cycle])
        history["poses"].append(pose)
        previous_path = (xlist[consume_per_cycle:], ylist[consume_per_cycle:])

        logger.debug("cycle %d: pose s=%.2f d=%.2f", cycle, pose.s, pose.d)

    return history


def plot_history(road_map, history, title=None):
    plt.figure()
    plt.plot(road_map.xlist, road_map.ylist, "--k", label="center line")
    plt.plot(history["x"], history["y"], ".-r", label="executed path")
    plt.axis("equal")
    plt.title(title or "trajectory")
    plt.legend()
    plt.show()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run a trajectory generator in closed loop.")
    parser.add_argument("--generator", choices=sorted(GENERATORS), default="spline")
    parser.add_argument("--road", choices=["straight", "curve"], default="straight")
    parser.add_argument("--map-file", help="waypoint file, one 'x y [z]' line per waypoint")
    parser.add_argument("--config", help="YAML file with planner parameters")
    parser.add_argument("--lane", type=int, default=1)
    parser.add_argument("--speed", type=float, default=49.5, help="target speed (mph by default)")
    parser.add_argument("--cycles", type=int, default=100)
    parser.add_argument("--consume", type=int, default=5, help="points executed per cycle")
    parser.add_argument("--keep-velocity", action="store_true",
                        help="jmt: track the target speed instead of holding the current s")
    parser.add_argument("--plot", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = load_config(args.config) if args.config else PlannerConfig()
    if args.map_file:
        road_map = WaypointMap.from_file(args.map_file)
    elif args.road == "curve":
        road_map = curved_road()
    else:
        road_map = straight_road()

    generator = make_generator(args.generator, config)
    if args.keep_velocity and isinstance(generator, JMTTrajectoryGenerator):
        generator.terminal_policy = keep_velocity
        generator.graft_on_tail = True

    s0, d0 = 0.0, config.lane_center(args.lane)
    x0, y0 = road_map.get_xy_spline(s0, d0)
    yaw0 = math.atan2(road_map.y_spline(s0, 1), road_map.x_spline(s0, 1))
    pose = VehiclePose(x=x0, y=y0, yaw=float(yaw0), s=s0, d=d0)

    history = run_simulation(generator, road_map, pose, args.lane, args.speed, args.cycles, args.consume)
    final = history["poses"][-1] if history["poses"] else pose
    logger.info("%s: %d points executed, final s=%.2f d=%.2f",
                args.generator, len(history["x"]), final.s, final.d)

    if args.plot:
        plot_history(road_map, history, title=f"{args.generator} generator")
    return history


if __name__ == "__main__":
    main()
