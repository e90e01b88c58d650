#!/usr/bin/env python3

import numpy as np
from scipy.spatial.transform import Rotation as R

from offboard_trajectory.errors import OutOfDomain
from offboard_trajectory.polynomial_optimization import (
    DOMAIN_TOLERANCE,
    sampling_times,
)
from offboard_trajectory.vertex import POSITION, VELOCITY, ACCELERATION

GRAVITY = 9.81
DEFAULT_SAMPLING_INTERVAL = 0.01
# 1000s of flight at the default interval
DEFAULT_MAX_SAMPLES = 100000


class TrajectoryPoint:
    """Flat state of the vehicle at one instant."""

    def __init__(self, time, position, velocity, acceleration):
        self.time = float(time)
        self.position = np.asarray(position, dtype=float)
        self.velocity = np.asarray(velocity, dtype=float)
        self.acceleration = np.asarray(acceleration, dtype=float)

    @property
    def orientation(self):
        """Body attitude as an (x, y, z, w) quaternion.

        The body z axis follows the thrust direction (acceleration plus
        gravity) and the heading follows the horizontal velocity.
        """
        return attitude_from_flat_state(self.velocity, self.acceleration)

    def __repr__(self):
        return (
            f"TrajectoryPoint(t={self.time:.3f}, p={self.position.tolist()}, "
            f"v={self.velocity.tolist()}, a={self.acceleration.tolist()})"
        )


def heading_from_velocity(velocity, min_speed=1e-6):
    if np.hypot(velocity[0], velocity[1]) < min_speed:
        return 0.0
    return float(np.arctan2(velocity[1], velocity[0]))


def _to_3d(vector):
    vector = np.asarray(vector, dtype=float).reshape(-1)[:3]
    return np.pad(vector, (0, 3 - vector.shape[0]))


def attitude_from_flat_state(velocity, acceleration):
    velocity = _to_3d(velocity)
    acceleration = _to_3d(acceleration)

    thrust = acceleration + np.array([0.0, 0.0, GRAVITY])
    z_body = thrust / np.linalg.norm(thrust)

    yaw = heading_from_velocity(velocity)
    x_course = np.array([np.cos(yaw), np.sin(yaw), 0.0])
    y_body = np.cross(z_body, x_course)
    norm = np.linalg.norm(y_body)
    if norm < 1e-9:
        # Thrust aligned with the heading, fall back to yaw only
        return R.from_euler("z", yaw).as_quat()
    y_body /= norm
    x_body = np.cross(y_body, z_body)

    return R.from_matrix(np.column_stack((x_body, y_body, z_body))).as_quat()


def _check_window(trajectory, t_start, t_end):
    if (
        t_start < trajectory.min_time - DOMAIN_TOLERANCE
        or t_end > trajectory.max_time + DOMAIN_TOLERANCE
    ):
        raise OutOfDomain(
            f"Sampling window [{t_start:.4f}, {t_end:.4f}]s outside trajectory "
            f"range [{trajectory.min_time:.4f}, {trajectory.max_time:.4f}]s"
        )


def sample_at(trajectory, t, derivative_order=POSITION):
    return trajectory.evaluate(t, derivative_order)


def sample_range(trajectory, t_start, t_end, dt, derivative_order=POSITION):
    """Evaluate one derivative order over [t_start, t_end], end inclusive.

    Out-of-domain windows are rejected, not clamped.
    """
    _check_window(trajectory, t_start, t_end)
    return trajectory.evaluate_range(t_start, t_end, dt, derivative_order)


def sample_flat_state(trajectory, t):
    return TrajectoryPoint(
        t,
        trajectory.evaluate(t, POSITION),
        trajectory.evaluate(t, VELOCITY),
        trajectory.evaluate(t, ACCELERATION),
    )


def sample_flat_states(trajectory, t_start, t_end, dt, max_samples=None):
    _check_window(trajectory, t_start, t_end)
    times = sampling_times(t_start, t_end, dt, max_samples)
    return [sample_flat_state(trajectory, t) for t in times]


def sample_whole_trajectory(
    trajectory, dt=DEFAULT_SAMPLING_INTERVAL, max_samples=DEFAULT_MAX_SAMPLES
):
    return sample_flat_states(
        trajectory, trajectory.min_time, trajectory.max_time, dt, max_samples
    )
