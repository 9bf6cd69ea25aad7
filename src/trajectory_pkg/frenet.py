import numpy as np
from scipy.interpolate import CubicSpline

# Frenet convention: s is the arc length along the center line, d the offset
# to the left of the driving direction.


def find_closest_waypoint(curr_x, curr_y, center_line_xlist, center_line_ylist):
    xlist = np.array(center_line_xlist)
    ylist = np.array(center_line_ylist)

    distance_list = np.hypot(xlist - curr_x, ylist - curr_y)
    closest_wp = np.argmin(distance_list)
    return int(closest_wp)


def get_next_waypoint(curr_x, curr_y, center_line_xlist, center_line_ylist):
    closest_wp = find_closest_waypoint(curr_x, curr_y, center_line_xlist, center_line_ylist)

    # loop until the next waypoint is ahead
    while True:
        if closest_wp == len(center_line_xlist) - 1:
            break
        traj_vec = np.array([center_line_xlist[closest_wp + 1] - center_line_xlist[closest_wp],
                             center_line_ylist[closest_wp + 1] - center_line_ylist[closest_wp]])
        ego_vec = np.array([curr_x - center_line_xlist[closest_wp], curr_y - center_line_ylist[closest_wp]])

        # check if waypoint is ahead of ego vehicle.
        is_waypoint_ahead = np.sign(np.dot(ego_vec, traj_vec))
        if is_waypoint_ahead < 0:
            break

        closest_wp += 1

    return closest_wp


def world2frenet(curr_x, curr_y, center_line_xlist, center_line_ylist, center_line_slist=None):
    next_wp = get_next_waypoint(curr_x, curr_y, center_line_xlist, center_line_ylist)
    prev_wp = max(next_wp - 1, 0)
    if next_wp == prev_wp:
        next_wp = prev_wp + 1

    ego_vec = np.array([
        curr_x - center_line_xlist[prev_wp],
        curr_y - center_line_ylist[prev_wp]
    ])
    traj_vec = np.array([
        center_line_xlist[next_wp] - center_line_xlist[prev_wp],
        center_line_ylist[next_wp] - center_line_ylist[prev_wp]
    ])

    if (traj_vec @ traj_vec) == 0:
        ego_proj_vec = np.zeros_like(traj_vec)
    else:
        ego_proj_vec = ((ego_vec @ traj_vec) / (traj_vec @ traj_vec)) * traj_vec

    frenet_d_sign = np.sign(traj_vec[0] * ego_vec[1] - traj_vec[1] * ego_vec[0])

    frenet_d = frenet_d_sign * np.hypot(ego_proj_vec[0] - ego_vec[0], ego_proj_vec[1] - ego_vec[1])

    if center_line_slist is not None:
        frenet_s = center_line_slist[prev_wp]
    else:
        frenet_s = 0.0
        for i in range(prev_wp):
            frenet_s += np.hypot(
                center_line_xlist[i + 1] - center_line_xlist[i],
                center_line_ylist[i + 1] - center_line_ylist[i]
            )

    # signed: points behind the first waypoint get s below its s
    frenet_s += np.sign(ego_vec @ traj_vec) * np.hypot(ego_proj_vec[0], ego_proj_vec[1])

    return float(frenet_s), float(frenet_d)


def frenet2world(curr_s, curr_d, center_line_xlist, center_line_ylist, center_line_slist):
    next_wp = 0

    while curr_s > center_line_slist[next_wp] and next_wp + 1 < len(center_line_slist):
        next_wp += 1

    wp = 0 if next_wp - 1 < 0 else next_wp - 1
    if wp == next_wp:
        next_wp = wp + 1

    dx = center_line_xlist[next_wp] - center_line_xlist[wp]
    dy = center_line_ylist[next_wp] - center_line_ylist[wp]

    heading = np.arctan2(dy, dx)

    seg_s = curr_s - center_line_slist[wp]
    seg_vec = np.array([
        center_line_xlist[wp] + seg_s * np.cos(heading),
        center_line_ylist[wp] + seg_s * np.sin(heading)
        ])

    vertical_heading = heading + (np.pi / 2)
    world_x = seg_vec[0] + curr_d * np.cos(vertical_heading)
    world_y = seg_vec[1] + curr_d * np.sin(vertical_heading)

    return float(world_x), float(world_y), float(heading)


class WaypointMap:
    """Road center line given as waypoints.

    Implements the map interface the trajectory generators rely on:

    * ``get_xy(s, d)``: piecewise linear conversion between waypoints
    * ``get_xy_spline(s, d)``: conversion through cubic splines of the center
      line and its normal, free of the kinks of the linear one
    """

    def __init__(self, xlist, ylist, slist=None):
        self.xlist = np.asarray(xlist, dtype=float)
        self.ylist = np.asarray(ylist, dtype=float)
        if self.xlist.shape != self.ylist.shape or self.xlist.ndim != 1:
            raise ValueError("xlist and ylist must be 1-D sequences of the same length")
        if self.xlist.size < 2:
            raise ValueError("a map needs at least 2 waypoints")

        if slist is None:
            ds = np.hypot(np.diff(self.xlist), np.diff(self.ylist))
            slist = np.concatenate([[0.0], np.cumsum(ds)])
        self.slist = np.asarray(slist, dtype=float)
        if self.slist.shape != self.xlist.shape:
            raise ValueError("slist must have one value per waypoint")
        if np.any(np.diff(self.slist) <= 0):
            raise ValueError("waypoint s values must be strictly increasing")

        self.x_spline = CubicSpline(self.slist, self.xlist)
        self.y_spline = CubicSpline(self.slist, self.ylist)

    @classmethod
    def from_file(cls, file_path):
        """Read a waypoint file, one ``x y [z ...]`` line per waypoint."""
        xlist, ylist = [], []
        with open(file_path, "r") as f:
            for line in f:
                values = line.split()
                if not values or values[0].startswith("#"):
                    continue
                xlist.append(float(values[0]))
                ylist.append(float(values[1]))
        return cls(xlist, ylist)

    @property
    def length(self):
        return float(self.slist[-1] - self.slist[0])

    def get_frenet(self, x, y):
        return world2frenet(x, y, self.xlist, self.ylist, self.slist)

    def get_xy(self, s, d):
        s = float(np.clip(s, self.slist[0], self.slist[-1]))
        x, y, _ = frenet2world(s, d, self.xlist, self.ylist, self.slist)
        return x, y

    def get_xy_spline(self, s, d):
        dx = self.x_spline(s, 1)
        dy = self.y_spline(s, 1)
        norm = np.hypot(dx, dy)
        # unit normal pointing left of the center line
        nx, ny = -dy / norm, dx / norm
        x = self.x_spline(s) + d * nx
        y = self.y_spline(s) + d * ny
        return float(x), float(y)
