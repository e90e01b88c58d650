#!/usr/bin/env python3

import logging

from offboard_trajectory.errors import (
    InsufficientWaypoints,
    InvalidSpacing,
    TrajectoryError,
)
from offboard_trajectory.polynomial_optimization import PolynomialOptimization
from offboard_trajectory.sampling import DEFAULT_MAX_SAMPLES, sample_whole_trajectory
from offboard_trajectory.timing import (
    estimate_segment_times,
    estimate_segment_times_velocity_ramp,
)
from offboard_trajectory.vertex import ACCELERATION, SNAP
from offboard_trajectory.visualization import (
    DEFAULT_FRAME_ID,
    draw_mav_trajectory,
    draw_vertices,
)
from offboard_trajectory.waypoint_buffer import build_vertices


# Segment time estimators
FABIAN = "fabian"
VELOCITY_RAMP = "velocity_ramp"


class PipelineConfig:
    """Fixed startup configuration of the waypoint trajectory pipeline."""

    def __init__(
        self,
        v_max=1.0,
        a_max=3.0,
        magic_fabian_constant=6.5,
        derivative_to_optimize=SNAP,
        endpoint_derivative=ACCELERATION,
        num_coefficients=10,
        dimension=3,
        sampling_interval=0.01,
        marker_distance=1.6,
        frame_id=DEFAULT_FRAME_ID,
        segment_time_method=FABIAN,
        max_samples=DEFAULT_MAX_SAMPLES,
    ):
        self.v_max = v_max
        self.a_max = a_max
        self.magic_fabian_constant = magic_fabian_constant
        self.derivative_to_optimize = derivative_to_optimize
        self.endpoint_derivative = endpoint_derivative
        self.num_coefficients = num_coefficients
        self.dimension = dimension
        self.sampling_interval = sampling_interval
        self.marker_distance = marker_distance
        self.frame_id = frame_id
        self.segment_time_method = segment_time_method
        self.max_samples = max_samples

    def validate(self):
        if not self.marker_distance > 0.0:
            raise InvalidSpacing(
                f"marker_distance must be positive, got {self.marker_distance}"
            )
        for name in ("v_max", "a_max", "magic_fabian_constant", "sampling_interval"):
            value = getattr(self, name)
            if not value > 0.0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.num_coefficients % 2 != 0:
            raise ValueError(
                f"num_coefficients must be even, got {self.num_coefficients}"
            )
        if self.endpoint_derivative >= self.num_coefficients // 2:
            raise ValueError(
                f"endpoint_derivative {self.endpoint_derivative} needs more than "
                f"{self.num_coefficients} coefficients"
            )
        if not 0 <= self.derivative_to_optimize < self.num_coefficients:
            raise ValueError(
                f"derivative_to_optimize must be in [0, {self.num_coefficients}), "
                f"got {self.derivative_to_optimize}"
            )
        if self.segment_time_method not in (FABIAN, VELOCITY_RAMP):
            raise ValueError(
                f"Unknown segment_time_method '{self.segment_time_method}', "
                f"expected {FABIAN} or {VELOCITY_RAMP}"
            )
        if not self.max_samples > 0:
            raise ValueError(f"max_samples must be positive, got {self.max_samples}")


class PipelineResult:
    def __init__(self, trajectory, trajectory_markers, vertex_markers):
        self.trajectory = trajectory
        self.trajectory_markers = trajectory_markers
        self.vertex_markers = vertex_markers


class TrajectoryPipeline:
    """One publish tick: waypoints in, marker arrays out.

    Nothing is carried over between ticks, the trajectory is rebuilt from
    scratch every time.
    """

    def __init__(self, config=None, logger=None):
        self.config = config or PipelineConfig()
        self.config.validate()
        self.logger = logger if logger is not None else logging.getLogger(__name__)

    def estimate_segment_times(self, vertices):
        config = self.config
        if config.segment_time_method == VELOCITY_RAMP:
            return estimate_segment_times_velocity_ramp(
                vertices, config.v_max, config.a_max
            )
        return estimate_segment_times(
            vertices, config.v_max, config.a_max, config.magic_fabian_constant
        )

    def build(self, waypoints, stamp=0.0):
        """Run every stage, raising on the first failure."""
        config = self.config
        if len(waypoints) < 2:
            raise InsufficientWaypoints(
                f"Need at least 2 waypoints, got {len(waypoints)}"
            )

        vertices = build_vertices(
            waypoints, config.dimension, config.endpoint_derivative, self.logger
        )
        if len(vertices) < 2:
            raise InsufficientWaypoints(
                f"Only {len(vertices)} of {len(waypoints)} waypoints are usable"
            )

        segment_times = self.estimate_segment_times(vertices)

        opt = PolynomialOptimization(config.dimension, config.num_coefficients)
        opt.setup_from_vertices(vertices, segment_times, config.derivative_to_optimize)
        opt.solve_linear()
        trajectory = opt.get_trajectory()

        points = sample_whole_trajectory(
            trajectory, config.sampling_interval, config.max_samples
        )
        trajectory_markers = draw_mav_trajectory(
            points, config.marker_distance, config.frame_id, stamp
        )
        vertex_markers = draw_vertices(
            vertices, config.frame_id, stamp, config.dimension, self.logger
        )

        self.logger.debug(
            f"Built trajectory through {len(vertices)} vertices, "
            f"duration {trajectory.max_time:.2f}s, "
            f"{len(trajectory_markers.markers)} markers"
        )
        return PipelineResult(trajectory, trajectory_markers, vertex_markers)

    def run_once(self, waypoints, stamp=0.0):
        """Like build(), but a failed tick is logged and returns None."""
        if len(waypoints) < 2:
            self.logger.debug(
                f"Waiting for waypoints ({len(waypoints)} received), skipping cycle"
            )
            return None
        try:
            return self.build(waypoints, stamp)
        except TrajectoryError as e:
            self.logger.warning(f"Skipping cycle, {type(e).__name__}: {e}")
            return None
