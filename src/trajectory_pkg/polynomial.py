import math

import numpy as np

from trajectory_pkg.errors import InvalidDuration


def jmt(start, end, tt):
    """
    Jerk minimizing trajectory connecting ``start`` to ``end`` in ``tt`` seconds.

    start, end: [p, p_dot, p_ddot]
    returns the 6 coefficients of p(t) = a0 + a1*t + ... + a5*t**5

    >>> jmt([0, 10, 0], [10, 10, 0], 1)
    array([ 0., 10.,  0.,  0.,  0.,  0.])
    """
    if not (math.isfinite(tt) and tt > 0):
        raise InvalidDuration(tt)

    qi = np.asarray(start, dtype=float)
    qt = np.asarray(end, dtype=float)
    if qi.shape != (3,) or qt.shape != (3,):
        raise ValueError("start and end states must be [p, p_dot, p_ddot]")

    c012 = np.array([qi[0], qi[1], qi[2] * 0.5])

    m1 = np.array([
        [1, tt, tt**2],
        [0, 1, 2*tt],
        [0, 0, 2]
    ])

    m2 = np.array([
        [tt**3, tt**4, tt**5],
        [3*(tt**2), 4*(tt**3), 5*(tt**4)],
        [6*tt, 12*(tt**2), 20*(tt**3)]
    ])

    try:
        c345 = np.linalg.solve(m2, qt - (m1 @ c012))
    except np.linalg.LinAlgError as e:
        raise InvalidDuration(tt, reason="singular boundary value system") from e

    return np.concatenate([c012, c345])


# c: coefficients of the polynomial, lowest order first
def polyeval(c, t):
    res = 0.0
    for i, ci in enumerate(c):
        res += ci * t**i
    return res


def polyeval_dot(c, t):
    res = 0.0
    for i in range(1, len(c)):
        res += i * c[i] * t**(i - 1)
    return res


def polyeval_ddot(c, t):
    res = 0.0
    for i in range(2, len(c)):
        res += i * (i - 1) * c[i] * t**(i - 2)
    return res


class Quintic:
    def __init__(self, qi_0, qi_1, qi_2, qt_0, qt_1, qt_2, tt):
        self.tt = tt
        self.c0, self.c1, self.c2, self.c3, self.c4, self.c5 = jmt(
            [qi_0, qi_1, qi_2], [qt_0, qt_1, qt_2], tt
        )

    @property
    def coeffs(self):
        return [self.c0, self.c1, self.c2, self.c3, self.c4, self.c5]

    def get_position(self, t):
        return self.c5*(t**5) + self.c4*(t**4) + self.c3*(t**3) + self.c2*(t**2) + self.c1*t + self.c0

    def get_velocity(self, t):
        return 5*self.c5*(t**4) + 4*self.c4*(t**3) + 3*self.c3*(t**2) + 2*self.c2*t + self.c1

    def get_acceleration(self, t):
        return 20 * self.c5 * (t ** 3) + 12 * self.c4 * (t ** 2) + 6 * self.c3 * t + 2 * self.c2

    def get_jerk(self, t):
        return 60*self.c5*(t**2) + 24*self.c4*t + 6*self.c3

    def get_state(self, t):
        return self.get_position(t), self.get_velocity(t), self.get_acceleration(t)
