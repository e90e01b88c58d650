"""Errors raised by the waypoint trajectory pipeline.

Every error here is recoverable per publish tick: the pipeline logs it,
skips publishing and tries again on the next tick.
"""


class TrajectoryError(Exception):
    """Base class for per-tick trajectory failures."""


class InsufficientWaypoints(TrajectoryError):
    """Fewer than two waypoints are available."""


class InvalidSegmentTiming(TrajectoryError):
    """A segment duration is zero, negative or not finite."""


class OptimizationFailed(TrajectoryError):
    """The polynomial optimization problem could not be solved."""


class OutOfDomain(TrajectoryError):
    """A sample time lies outside the trajectory's time range."""


class InvalidSpacing(TrajectoryError):
    """The marker spacing is not strictly positive."""


class InvalidVertex(TrajectoryError):
    """A vertex constraint has the wrong dimension."""


class TooManySamples(TrajectoryError):
    """Sampling the trajectory would exceed the configured sample limit."""
