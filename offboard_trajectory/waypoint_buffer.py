#!/usr/bin/env python3

import logging
import threading

import numpy as np

from offboard_trajectory.errors import InvalidVertex
from offboard_trajectory.vertex import Vertex, POSITION


class WaypointBuffer:
    """Latest waypoint list, replaced wholesale on every update.

    The subscription callback is the only writer. Readers take a snapshot
    at the start of a tick so an update arriving mid-tick is used on the
    next tick.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._waypoints = ()

    def update(self, waypoints):
        snapshot = tuple(tuple(float(v) for v in waypoint) for waypoint in waypoints)
        with self._lock:
            self._waypoints = snapshot

    def snapshot(self):
        with self._lock:
            return self._waypoints

    def __len__(self):
        with self._lock:
            return len(self._waypoints)


def build_vertices(waypoints, dimension, up_to_derivative, logger=None):
    """Turn a waypoint list into start, interior and end vertices.

    Waypoints whose dimension does not match or that hold NaN or infinite
    coordinates are logged and skipped. Every interior waypoint gets its own
    vertex with a single position constraint.
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    valid = []
    for index, waypoint in enumerate(waypoints):
        if len(waypoint) != dimension:
            logger.warning(
                f"Waypoint {index} has dimension {len(waypoint)} "
                f"but should have dimension {dimension}, skipping"
            )
            continue
        if not np.all(np.isfinite(np.asarray(waypoint, dtype=float))):
            logger.warning(f"Waypoint {index} is not finite: {waypoint}, skipping")
            continue
        valid.append(waypoint)

    vertices = []
    for index, waypoint in enumerate(valid):
        vertex = Vertex(dimension)
        try:
            if index == 0 or index == len(valid) - 1:
                vertex.make_start_or_end(waypoint, up_to_derivative)
            else:
                vertex.add_constraint(POSITION, waypoint)
        except InvalidVertex as e:
            logger.warning(f"Skipping waypoint {index}: {e}")
            continue
        vertices.append(vertex)
    return vertices
