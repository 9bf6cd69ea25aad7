import numpy as np

from trajectory_pkg.config import NB_POINTS, CONTINUITY_TOL
from trajectory_pkg.errors import ContinuityViolation


class FrenetPathState:
    """Planned (position, velocity, acceleration) in s and d for every point
    of the current horizon.

    Index 0 is the earliest point the controller has not executed yet.
    """

    def __init__(self, nb_points=NB_POINTS):
        self.nb_points = nb_points

        # longitudinal traj
        self.s0 = np.zeros(nb_points)  # position
        self.s1 = np.zeros(nb_points)  # velocity
        self.s2 = np.zeros(nb_points)  # acceleration

        # lateral traj
        self.d0 = np.zeros(nb_points)  # position
        self.d1 = np.zeros(nb_points)  # velocity
        self.d2 = np.zeros(nb_points)  # acceleration

        self.is_initialized = False

    def initialize(self, s0, d0):
        # vehicle at rest: every slot holds the initial pose so that the
        # first graft index, whatever it is, reads it back
        self.s0[:] = s0
        self.s1[:] = 0.0
        self.s2[:] = 0.0
        self.d0[:] = d0
        self.d1[:] = 0.0
        self.d2[:] = 0.0
        self.is_initialized = True

    def roll_forward(self, consumed):
        if not 0 <= consumed <= self.nb_points:
            raise ValueError(f"consumed must be in [0, {self.nb_points}], got {consumed}")
        if consumed == 0:
            return
        for buf in (self.s0, self.s1, self.s2, self.d0, self.d1, self.d2):
            buf[:self.nb_points - consumed] = buf[consumed:].copy()

    def write(self, index, triple_s, triple_d):
        self.s0[index], self.s1[index], self.s2[index] = triple_s
        self.d0[index], self.d1[index], self.d2[index] = triple_d

    def read(self, index):
        triple_s = (float(self.s0[index]), float(self.s1[index]), float(self.s2[index]))
        triple_d = (float(self.d0[index]), float(self.d1[index]), float(self.d2[index]))
        return triple_s, triple_d

    def check_continuity(self, index, s, d, tol=CONTINUITY_TOL):
        tracked = (float(self.s0[index]), float(self.d0[index]))
        if abs(tracked[0] - s) > tol or abs(tracked[1] - d) > tol:
            raise ContinuityViolation(index, tracked, (s, d))

    def __len__(self):
        return self.nb_points
