#!/usr/bin/env python3

import math

import numpy as np

from offboard_trajectory.errors import InsufficientWaypoints, InvalidSegmentTiming
from offboard_trajectory.vertex import POSITION


def _check_limits(vertices, v_max, a_max):
    if len(vertices) < 2:
        raise InsufficientWaypoints(
            f"Need at least 2 vertices to estimate segment times, got {len(vertices)}"
        )
    if v_max <= 0.0 or a_max <= 0.0:
        raise ValueError(f"v_max and a_max must be positive, got {v_max}, {a_max}")


def _segment_distances(vertices):
    distances = []
    for start, end in zip(vertices[:-1], vertices[1:]):
        if not start.has_constraint(POSITION) or not end.has_constraint(POSITION):
            raise InvalidSegmentTiming("Every vertex needs a position constraint")
        distances.append(
            float(
                np.linalg.norm(
                    end.get_constraint(POSITION) - start.get_constraint(POSITION)
                )
            )
        )
    return distances


def _check_times(segment_times):
    for index, segment_time in enumerate(segment_times):
        if not segment_time > 0.0:
            raise InvalidSegmentTiming(
                f"Segment {index} has non-positive duration {segment_time:.6f}s"
            )
        if not math.isfinite(segment_time):
            raise InvalidSegmentTiming(f"Segment {index} has infinite duration")
    return segment_times


def estimate_segment_times(vertices, v_max, a_max, magic_fabian_constant=6.5):
    """Heuristic duration for every segment.

    Twice the time at constant v_max, inflated by an exponential term that
    dominates on short hops where the vehicle never reaches v_max.
    magic_fabian_constant is a free tuning knob.
    """
    _check_limits(vertices, v_max, a_max)
    if magic_fabian_constant <= 0.0:
        raise ValueError(
            f"magic_fabian_constant must be positive, got {magic_fabian_constant}"
        )

    segment_times = []
    for distance in _segment_distances(vertices):
        segment_time = (
            distance
            / v_max
            * 2.0
            * (
                1.0
                + magic_fabian_constant
                * v_max
                / a_max
                * math.exp(-distance / v_max * 2.0)
            )
        )
        segment_times.append(segment_time)
    return _check_times(segment_times)


def compute_time_velocity_ramp(distance, v_max, a_max):
    """Time for a rest-to-rest trapezoidal velocity profile over distance."""
    acc_time = v_max / a_max
    acc_distance = 0.5 * v_max * acc_time
    if distance < 2.0 * acc_distance:
        # Never reaches v_max, triangular profile
        return 2.0 * math.sqrt(distance / a_max)
    return 2.0 * acc_time + (distance - 2.0 * acc_distance) / v_max


def estimate_segment_times_velocity_ramp(vertices, v_max, a_max, time_factor=1.0):
    _check_limits(vertices, v_max, a_max)
    if time_factor <= 0.0:
        raise ValueError(f"time_factor must be positive, got {time_factor}")

    segment_times = [
        compute_time_velocity_ramp(distance, v_max, a_max) * time_factor
        for distance in _segment_distances(vertices)
    ]
    return _check_times(segment_times)
