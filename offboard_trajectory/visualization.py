#!/usr/bin/env python3

import logging
from dataclasses import dataclass, field

import numpy as np
from scipy.spatial.transform import Rotation as R

from offboard_trajectory.errors import InvalidSpacing
from offboard_trajectory.sampling import (
    DEFAULT_SAMPLING_INTERVAL,
    sample_whole_trajectory,
)
from offboard_trajectory.vertex import POSITION, VELOCITY, ACCELERATION, derivative_to_string

# Same values as visualization_msgs/Marker
ARROW = 0
LINE_STRIP = 4
ADD = 0

DEFAULT_FRAME_ID = "world"


@dataclass
class Marker:
    ns: str = ""
    id: int = 0
    type: int = ARROW
    action: int = ADD
    frame_id: str = ""
    stamp: float = 0.0
    lifetime: float = 0.0
    color: tuple = (1.0, 1.0, 1.0, 1.0)
    scale: tuple = (1.0, 1.0, 1.0)
    points: list = field(default_factory=list)


@dataclass
class MarkerArray:
    markers: list = field(default_factory=list)

    def by_namespace(self, ns):
        return [m for m in self.markers if m.ns == ns]


def create_color_rgba(r, g, b, a=1.0):
    return (float(r), float(g), float(b), float(a))


PATH_COLOR = create_color_rgba(1.0, 0.5, 0.0, 1.0)
VERTICES_COLOR = create_color_rgba(0.5, 1.0, 0.0, 1.0)
ACCELERATION_COLOR = create_color_rgba(190.0 / 255.0, 81.0 / 255.0, 80.0 / 255.0, 1.0)
VELOCITY_COLOR = create_color_rgba(80.0 / 255.0, 172.0 / 255.0, 196.0 / 255.0, 1.0)
AXES_COLORS = (
    create_color_rgba(1.0, 0.0, 0.0, 1.0),
    create_color_rgba(0.0, 1.0, 0.0, 1.0),
    create_color_rgba(0.0, 0.0, 1.0, 1.0),
)


def to_point(vector):
    vector = np.asarray(vector, dtype=float).reshape(-1)
    padded = np.zeros(3)
    padded[: min(3, vector.shape[0])] = vector[:3]
    return (float(padded[0]), float(padded[1]), float(padded[2]))


def draw_arrow(start, end, color, diameter):
    return Marker(
        type=ARROW,
        color=color,
        scale=(diameter, diameter * 2.0, 0.0),
        points=[to_point(start), to_point(end)],
    )


def draw_axes_arrows(position, orientation, scale=0.3, diameter=0.3):
    """One arrow per body axis: x red, y green, z blue."""
    rotation = R.from_quat(orientation).as_matrix()
    position = np.asarray(to_point(position))
    markers = MarkerArray()
    for axis, color in enumerate(AXES_COLORS):
        markers.markers.append(
            draw_arrow(position, position + rotation[:, axis] * scale, color, diameter)
        )
    return markers


def append_markers(markers_to_insert, marker_namespace, marker_array):
    for marker in markers_to_insert.markers:
        if marker_namespace:
            marker.ns = marker_namespace
        marker_array.markers.append(marker)


def set_marker_properties(frame_id, stamp, lifetime, action, marker_array):
    for count, marker in enumerate(marker_array.markers):
        marker.frame_id = frame_id
        marker.stamp = stamp
        marker.lifetime = lifetime
        marker.action = action
        marker.id = count


def draw_mav_trajectory(points, distance, frame_id=DEFAULT_FRAME_ID, stamp=0.0):
    """Build the marker array for a sampled trajectory.

    A continuous path line covers every sample. Each time the travelled
    distance since the last cluster exceeds `distance`, a cluster of pose
    axes, an acceleration arrow and a velocity arrow is added.
    """
    if not distance > 0.0:
        raise InvalidSpacing(f"Marker distance must be positive, got {distance}")

    marker_array = MarkerArray()
    line_strip = Marker(
        ns="path",
        type=LINE_STRIP,
        color=PATH_COLOR,
        scale=(0.01, 0.0, 0.0),
    )

    accumulated_distance = 0.0
    last_position = points[0].position if points else None
    for point in points:
        accumulated_distance += float(np.linalg.norm(point.position - last_position))
        if accumulated_distance > distance:
            accumulated_distance = 0.0

            axes_arrows = draw_axes_arrows(point.position, point.orientation, 0.3, 0.3)
            append_markers(axes_arrows, "pose", marker_array)

            arrow = draw_arrow(
                point.position,
                point.position + point.acceleration,
                ACCELERATION_COLOR,
                0.3,
            )
            arrow.ns = derivative_to_string(ACCELERATION)
            marker_array.markers.append(arrow)

            arrow = draw_arrow(
                point.position,
                point.position + point.velocity,
                VELOCITY_COLOR,
                0.3,
            )
            arrow.ns = derivative_to_string(VELOCITY)
            marker_array.markers.append(arrow)

        last_position = point.position
        line_strip.points.append(to_point(last_position))

    marker_array.markers.append(line_strip)
    set_marker_properties(frame_id, stamp, 0.0, ADD, marker_array)
    return marker_array


def draw_trajectory(trajectory, distance, frame_id=DEFAULT_FRAME_ID, stamp=0.0,
                    dt=DEFAULT_SAMPLING_INTERVAL):
    if not distance > 0.0:
        raise InvalidSpacing(f"Marker distance must be positive, got {distance}")
    points = sample_whole_trajectory(trajectory, dt)
    return draw_mav_trajectory(points, distance, frame_id, stamp)


def draw_vertices(vertices, frame_id=DEFAULT_FRAME_ID, stamp=0.0, dimension=3,
                  logger=None):
    """Straight line through the vertex positions."""
    if logger is None:
        logger = logging.getLogger(__name__)

    marker = Marker(
        ns="straight_path",
        type=LINE_STRIP,
        color=VERTICES_COLOR,
        scale=(0.01, 0.0, 0.0),
    )
    for vertex in vertices:
        if vertex.dimension != dimension:
            logger.error(
                f"Vertex has dimension {vertex.dimension} but should have "
                f"dimension {dimension}, skipping"
            )
            continue
        if not vertex.has_constraint(POSITION):
            logger.warning("Vertex does not have a position constraint, skipping")
            continue
        marker.points.append(to_point(vertex.get_constraint(POSITION)))

    marker_array = MarkerArray([marker])
    set_marker_properties(frame_id, stamp, 0.0, ADD, marker_array)
    return marker_array
