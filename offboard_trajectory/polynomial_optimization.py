#!/usr/bin/env python3

"""
Piecewise polynomial trajectories and their linear optimization.

Each segment stores its coefficients over normalized time tau = t / T in
[0, 1]; derivatives with respect to t pick up a factor T^-k. The optimizer
minimizes the integral of the squared k-th derivative subject to the
vertex constraints and continuity of derivatives 0..N/2-1 at interior
vertices, by solving the KKT system once for all dimensions.
"""

import math

import numpy as np
from scipy import linalg

from offboard_trajectory.errors import OptimizationFailed, OutOfDomain, TooManySamples
from offboard_trajectory.vertex import SNAP

DOMAIN_TOLERANCE = 1e-9


def _falling_factorial(n, k):
    result = 1
    for i in range(k):
        result *= n - i
    return result


def basis_vector(num_coefficients, derivative_order, tau):
    """Row mapping coefficients to the derivative_order-th tau-derivative."""
    row = np.zeros(num_coefficients)
    for i in range(derivative_order, num_coefficients):
        row[i] = _falling_factorial(i, derivative_order) * tau ** (i - derivative_order)
    return row


def cost_matrix(num_coefficients, derivative_order):
    """Hessian of the integral over [0, 1] of the squared tau-derivative."""
    q = np.zeros((num_coefficients, num_coefficients))
    for i in range(derivative_order, num_coefficients):
        for j in range(derivative_order, num_coefficients):
            power = i + j - 2 * derivative_order + 1
            q[i, j] = (
                _falling_factorial(i, derivative_order)
                * _falling_factorial(j, derivative_order)
                / power
            )
    return q


def sampling_times(t_start, t_end, dt, max_samples=None):
    """End-inclusive sample times, floor((t_end - t_start) / dt) + 1 of them.

    All steps are dt apart except the last one, which is moved onto t_end.
    A window shorter than dt still yields both ends. Raises TooManySamples
    before building the list when it would exceed max_samples.
    """
    if dt <= 0.0:
        raise ValueError(f"Sampling interval must be positive, got {dt}")
    if t_end < t_start:
        raise ValueError(f"t_end ({t_end}) must not be before t_start ({t_start})")

    n_samples = int(math.floor((t_end - t_start) / dt + DOMAIN_TOLERANCE)) + 1
    if max_samples is not None and n_samples > max_samples:
        raise TooManySamples(
            f"Sampling [{t_start:.4f}, {t_end:.4g}]s every {dt}s needs {n_samples} "
            f"samples, the limit is {max_samples}"
        )
    times = [t_start + i * dt for i in range(n_samples)]
    if n_samples > 1:
        times[-1] = t_end
    elif t_end > t_start:
        times.append(t_end)
    return times


class Segment:
    def __init__(self, coefficients, duration):
        self.coefficients = np.array(coefficients, dtype=float)
        self.coefficients.setflags(write=False)
        self.duration = float(duration)

    @property
    def dimension(self):
        return self.coefficients.shape[0]

    @property
    def num_coefficients(self):
        return self.coefficients.shape[1]

    def evaluate(self, t, derivative_order=0):
        tau = t / self.duration
        row = basis_vector(self.num_coefficients, derivative_order, tau)
        return self.coefficients @ row / self.duration**derivative_order

    def __repr__(self):
        return (
            f"Segment(duration={self.duration:.3f}, dimension={self.dimension}, "
            f"N={self.num_coefficients})"
        )


class Trajectory:
    """Immutable piecewise polynomial, queried by (time, derivative order)."""

    def __init__(self, segments):
        if not segments:
            raise ValueError("A trajectory needs at least one segment")
        self._segments = tuple(segments)
        self._boundaries = np.cumsum([0.0] + [s.duration for s in self._segments])

    @property
    def segments(self):
        return self._segments

    @property
    def segment_times(self):
        return [s.duration for s in self._segments]

    @property
    def dimension(self):
        return self._segments[0].dimension

    @property
    def min_time(self):
        return 0.0

    @property
    def max_time(self):
        return float(self._boundaries[-1])

    def evaluate(self, t, derivative_order=0):
        if t < self.min_time - DOMAIN_TOLERANCE or t > self.max_time + DOMAIN_TOLERANCE:
            raise OutOfDomain(
                f"Time {t:.4f}s outside trajectory range "
                f"[{self.min_time:.4f}, {self.max_time:.4f}]s"
            )
        t = min(max(t, self.min_time), self.max_time)
        index = int(np.searchsorted(self._boundaries, t, side="right")) - 1
        index = min(max(index, 0), len(self._segments) - 1)
        return self._segments[index].evaluate(
            t - self._boundaries[index], derivative_order
        )

    def evaluate_range(self, t_start, t_end, dt, derivative_order=0, max_samples=None):
        times = sampling_times(t_start, t_end, dt, max_samples)
        return [self.evaluate(t, derivative_order) for t in times], times


class PolynomialOptimization:
    """Linear minimum-derivative polynomial optimization.

    Usage mirrors the usual setup / solve / fetch flow:

        opt = PolynomialOptimization(3)
        opt.setup_from_vertices(vertices, segment_times, SNAP)
        opt.solve_linear()
        trajectory = opt.get_trajectory()
    """

    def __init__(self, dimension, num_coefficients=10):
        if num_coefficients % 2 != 0:
            raise OptimizationFailed(
                f"Number of coefficients has to be even, got {num_coefficients}"
            )
        self.dimension = dimension
        self.num_coefficients = num_coefficients
        self.vertices = []
        self.segment_times = []
        self.derivative_to_optimize = SNAP
        self._segments = None

    def setup_from_vertices(self, vertices, segment_times, derivative_to_optimize):
        if len(vertices) < 2:
            raise OptimizationFailed(
                f"Need at least 2 vertices, got {len(vertices)}"
            )
        if len(segment_times) != len(vertices) - 1:
            raise OptimizationFailed(
                f"Got {len(segment_times)} segment times for {len(vertices)} vertices"
            )
        if any(not (t > 0.0 and math.isfinite(t)) for t in segment_times):
            raise OptimizationFailed(
                f"Segment times must be positive and finite: {segment_times}"
            )
        if not 0 <= derivative_to_optimize < self.num_coefficients:
            raise OptimizationFailed(
                f"Cannot optimize derivative {derivative_to_optimize} "
                f"with {self.num_coefficients} coefficients"
            )
        max_constrained = self.num_coefficients // 2
        for index, vertex in enumerate(vertices):
            if vertex.dimension != self.dimension:
                raise OptimizationFailed(
                    f"Vertex {index} has dimension {vertex.dimension}, "
                    f"expected {self.dimension}"
                )
            if any(order >= max_constrained for order in vertex.constraints):
                raise OptimizationFailed(
                    f"Vertex {index} constrains a derivative of order "
                    f">= {max_constrained}"
                )

        self.vertices = list(vertices)
        self.segment_times = [float(t) for t in segment_times]
        self.derivative_to_optimize = derivative_to_optimize
        self._segments = None

    def _constraint_system(self):
        n = self.num_coefficients
        n_segments = len(self.segment_times)
        rows = []
        rhs = []

        # Vertex constraints, scaled to tau-derivatives
        for k, vertex in enumerate(self.vertices):
            segment = min(k, n_segments - 1)
            tau = 0.0 if k < n_segments else 1.0
            duration = self.segment_times[segment]
            for order, value in sorted(vertex.constraints.items()):
                row = np.zeros(n * n_segments)
                row[segment * n:(segment + 1) * n] = basis_vector(n, order, tau)
                rows.append(row)
                rhs.append(value * duration**order)

        # Continuity at interior vertices
        for k in range(1, n_segments):
            ratio = self.segment_times[k - 1] / self.segment_times[k]
            for order in range(n // 2):
                row = np.zeros(n * n_segments)
                row[(k - 1) * n:k * n] = basis_vector(n, order, 1.0)
                row[k * n:(k + 1) * n] = -(ratio**order) * basis_vector(n, order, 0.0)
                rows.append(row)
                rhs.append(np.zeros(self.dimension))

        return np.array(rows), np.array(rhs)

    def _cost_system(self):
        n = self.num_coefficients
        r = self.derivative_to_optimize
        n_segments = len(self.segment_times)
        # Costs relative to the shortest segment, rescaling the total cost
        # leaves the minimizer unchanged
        shortest = min(self.segment_times)
        scales = [(t / shortest) ** (1 - 2 * r) for t in self.segment_times]
        q_unit = cost_matrix(n, r)
        q = np.zeros((n * n_segments, n * n_segments))
        for s, scale in enumerate(scales):
            q[s * n:(s + 1) * n, s * n:(s + 1) * n] = q_unit * scale
        return q

    def _check_well_posed(self, a):
        # The KKT matrix is regular iff the constraints are independent and
        # no zero-cost polynomial (degree < derivative_to_optimize in every
        # segment) satisfies them. Both tests only involve the constraint
        # rows, whose scale does not depend on the segment times.
        if np.linalg.matrix_rank(a) < a.shape[0]:
            raise OptimizationFailed("Constraints are redundant or contradictory")

        n = self.num_coefficients
        r = self.derivative_to_optimize
        low_order = [
            s * n + i for s in range(len(self.segment_times)) for i in range(r)
        ]
        if low_order and np.linalg.matrix_rank(a[:, low_order]) < len(low_order):
            raise OptimizationFailed(
                "Trajectory is under-constrained for minimizing the "
                f"derivative of order {r}"
            )

    def solve_linear(self):
        if not self.vertices:
            raise OptimizationFailed("setup_from_vertices() has not been called")

        try:
            solution = self._solve_kkt()
        except (ArithmeticError, ValueError, linalg.LinAlgError) as e:
            raise OptimizationFailed(
                f"Linear solve failed: {type(e).__name__}: {e}"
            ) from e
        if not np.all(np.isfinite(solution)):
            raise OptimizationFailed("Linear solve produced non-finite coefficients")

        n = self.num_coefficients
        self._segments = [
            Segment(solution[s * n:(s + 1) * n, :].T, duration)
            for s, duration in enumerate(self.segment_times)
        ]
        return True

    def _solve_kkt(self):
        # Extreme segment times overflow in the time scaling
        a, b = self._constraint_system()
        q = self._cost_system()
        n_vars = q.shape[0]
        n_constraints = a.shape[0]

        kkt = np.zeros((n_vars + n_constraints, n_vars + n_constraints))
        kkt[:n_vars, :n_vars] = 2.0 * q
        kkt[:n_vars, n_vars:] = a.T
        kkt[n_vars:, :n_vars] = a
        rhs = np.zeros((n_vars + n_constraints, self.dimension))
        rhs[n_vars:, :] = b

        self._check_well_posed(a)
        return linalg.solve(kkt, rhs)

    def get_segments(self):
        if self._segments is None:
            raise OptimizationFailed("solve_linear() has not succeeded yet")
        return list(self._segments)

    def get_trajectory(self):
        return Trajectory(self.get_segments())


def optimize(vertices, segment_times, dimension=3, derivative_to_optimize=SNAP,
             num_coefficients=10):
    opt = PolynomialOptimization(dimension, num_coefficients)
    opt.setup_from_vertices(vertices, segment_times, derivative_to_optimize)
    opt.solve_linear()
    return opt.get_trajectory()
