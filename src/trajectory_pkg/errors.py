class TrajectoryError(Exception):
    """Base class of the errors raised by the trajectory generators."""


class ContinuityViolation(TrajectoryError):
    """Tracked path state disagrees with the reported vehicle pose.

    The tracker and the consumed path are out of sync; the caller usually
    recovers by resetting the generator on the current pose.
    """

    def __init__(self, index, tracked, reported):
        self.index = index
        self.tracked = tuple(tracked)
        self.reported = tuple(reported)
        super().__init__(
            f"tracked (s, d) at index {index} is {self.tracked}, "
            f"vehicle reports {self.reported}"
        )


class InvalidWaypoints(TrajectoryError, ValueError):
    """Spline anchors are not strictly increasing in local x."""

    def __init__(self, local_x):
        self.local_x = [float(x) for x in local_x]
        super().__init__(
            "anchor points must be strictly increasing in local x, got "
            + ", ".join(f"{x:.3f}" for x in self.local_x)
        )


class InvalidDuration(TrajectoryError, ValueError):
    """Boundary value problem has no unique solution for this duration."""

    def __init__(self, tt, reason=None):
        self.tt = tt
        if reason is None:
            reason = "trajectory duration must be positive and finite"
        super().__init__(f"{reason}, got T={tt}")
