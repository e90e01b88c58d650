#!/usr/bin/env python3

import numpy as np

from offboard_trajectory.errors import InvalidVertex

# Derivative orders of position
POSITION = 0
VELOCITY = 1
ACCELERATION = 2
JERK = 3
SNAP = 4

_DERIVATIVE_NAMES = {
    POSITION: "position",
    VELOCITY: "velocity",
    ACCELERATION: "acceleration",
    JERK: "jerk",
    SNAP: "snap",
}


def derivative_to_string(derivative_order):
    return _DERIVATIVE_NAMES.get(derivative_order, "unknown")


class Vertex:
    """A point the trajectory must pass through.

    Holds one constraint vector per derivative order. Interior vertices
    usually only constrain the position, start and end vertices also pin
    the lower derivatives to zero.
    """

    def __init__(self, dimension):
        if dimension <= 0:
            raise ValueError(f"Vertex dimension must be positive, got {dimension}")
        self.dimension = dimension
        self.constraints = {}

    def add_constraint(self, derivative_order, value):
        value = np.asarray(value, dtype=float).reshape(-1)
        if value.shape[0] != self.dimension:
            raise InvalidVertex(
                f"Constraint for {derivative_to_string(derivative_order)} has "
                f"dimension {value.shape[0]} but vertex has dimension {self.dimension}"
            )
        self.constraints[derivative_order] = value

    def make_start_or_end(self, position, up_to_derivative):
        """Fix the position and set derivatives 1..up_to_derivative to zero."""
        self.add_constraint(POSITION, position)
        for derivative_order in range(1, up_to_derivative + 1):
            self.constraints[derivative_order] = np.zeros(self.dimension)

    def has_constraint(self, derivative_order):
        return derivative_order in self.constraints

    def get_constraint(self, derivative_order):
        return self.constraints.get(derivative_order)

    def __repr__(self):
        constraints = ", ".join(
            f"{derivative_to_string(order)}={value.tolist()}"
            for order, value in sorted(self.constraints.items())
        )
        return f"Vertex(dimension={self.dimension}, {constraints})"
