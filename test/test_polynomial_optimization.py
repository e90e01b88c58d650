import numpy as np
import pytest

from offboard_trajectory.errors import OptimizationFailed, OutOfDomain
from offboard_trajectory.polynomial_optimization import (
    PolynomialOptimization,
    Trajectory,
    optimize,
)
from offboard_trajectory.vertex import (
    ACCELERATION,
    JERK,
    POSITION,
    SNAP,
    VELOCITY,
    Vertex,
)


def start_end(position):
    vertex = Vertex(3)
    vertex.make_start_or_end(position, ACCELERATION)
    return vertex


def interior(position):
    vertex = Vertex(3)
    vertex.add_constraint(POSITION, position)
    return vertex


def test_single_segment_meets_boundary_conditions():
    trajectory = optimize([start_end((0, 0, 0)), start_end((5, 0, 0))], [10.0], 3, SNAP)

    assert trajectory.min_time == 0.0
    assert trajectory.max_time == pytest.approx(10.0)
    np.testing.assert_allclose(trajectory.evaluate(0.0, POSITION), [0, 0, 0], atol=1e-5)
    np.testing.assert_allclose(trajectory.evaluate(10.0, POSITION), [5, 0, 0], atol=1e-5)
    for order in (VELOCITY, ACCELERATION):
        np.testing.assert_allclose(trajectory.evaluate(0.0, order), [0, 0, 0], atol=1e-4)
        np.testing.assert_allclose(trajectory.evaluate(10.0, order), [0, 0, 0], atol=1e-4)


def test_rest_to_rest_is_symmetric():
    trajectory = optimize([start_end((0, 0, 0)), start_end((5, 0, 0))], [10.0], 3, SNAP)

    np.testing.assert_allclose(trajectory.evaluate(5.0, POSITION), [2.5, 0, 0], atol=1e-3)
    assert trajectory.evaluate(5.0, VELOCITY)[0] > 0.0


def test_multi_segment_passes_through_waypoints_and_is_smooth():
    positions = [(0, 0, 0), (2, 0, 0), (2, 2, 0), (0, 2, 0)]
    vertices = [start_end(positions[0]), interior(positions[1]),
                interior(positions[2]), start_end(positions[3])]
    segment_times = [3.0, 4.0, 3.5]

    opt = PolynomialOptimization(3)
    opt.setup_from_vertices(vertices, segment_times, SNAP)
    opt.solve_linear()
    segments = opt.get_segments()
    trajectory = opt.get_trajectory()

    assert len(segments) == 3
    assert trajectory.segment_times == pytest.approx(segment_times)
    for t, position in zip(np.cumsum([0.0] + segment_times), positions):
        np.testing.assert_allclose(trajectory.evaluate(t, POSITION), position, atol=1e-4)

    for before, after in zip(segments[:-1], segments[1:]):
        for order in (POSITION, VELOCITY, ACCELERATION, JERK, SNAP):
            np.testing.assert_allclose(
                before.evaluate(before.duration, order),
                after.evaluate(0.0, order),
                atol=1e-4,
            )


def test_minimum_acceleration_also_solves():
    trajectory = optimize(
        [start_end((0, 0, 0)), interior((1, 1, 0)), start_end((3, 0, 0))],
        [2.0, 2.0],
        3,
        ACCELERATION,
    )
    np.testing.assert_allclose(trajectory.evaluate(2.0), [1, 1, 0], atol=1e-4)


def test_evaluate_outside_domain_rejected():
    trajectory = optimize([start_end((0, 0, 0)), start_end((1, 0, 0))], [2.0], 3, SNAP)
    with pytest.raises(OutOfDomain):
        trajectory.evaluate(2.5)
    with pytest.raises(OutOfDomain):
        trajectory.evaluate(-0.1)


def test_fewer_than_two_vertices_fails():
    opt = PolynomialOptimization(3)
    with pytest.raises(OptimizationFailed):
        opt.setup_from_vertices([start_end((0, 0, 0))], [], SNAP)


@pytest.mark.parametrize("segment_times", [[], [1.0, 1.0], [0.0], [-2.0]])
def test_bad_segment_times_fail(segment_times):
    opt = PolynomialOptimization(3)
    with pytest.raises(OptimizationFailed):
        opt.setup_from_vertices(
            [start_end((0, 0, 0)), start_end((1, 0, 0))], segment_times, SNAP
        )


def test_odd_number_of_coefficients_fails():
    with pytest.raises(OptimizationFailed):
        PolynomialOptimization(3, num_coefficients=9)


def test_dimension_mismatch_fails():
    vertex = Vertex(2)
    vertex.make_start_or_end((0, 0), ACCELERATION)
    opt = PolynomialOptimization(3)
    with pytest.raises(OptimizationFailed):
        opt.setup_from_vertices([vertex, start_end((1, 0, 0))], [1.0], SNAP)


def test_under_constrained_problem_fails():
    # Positions only, minimum snap leaves a family of cubics free
    opt = PolynomialOptimization(3)
    opt.setup_from_vertices([interior((0, 0, 0)), interior((1, 0, 0))], [1.0], SNAP)
    with pytest.raises(OptimizationFailed):
        opt.solve_linear()


def test_trajectory_before_solve_fails():
    opt = PolynomialOptimization(3)
    opt.setup_from_vertices([start_end((0, 0, 0)), start_end((1, 0, 0))], [1.0], SNAP)
    with pytest.raises(OptimizationFailed):
        opt.get_trajectory()


def test_empty_trajectory_rejected():
    with pytest.raises(ValueError):
        Trajectory([])


def test_very_different_segment_times_solve():
    vertices = [start_end((0, 0, 0)), interior((0.5, 0, 0)), start_end((10, 0, 0))]
    trajectory = optimize(vertices, [0.8, 16.0])

    np.testing.assert_allclose(trajectory.evaluate(0.8), [0.5, 0, 0], atol=1e-5)
    np.testing.assert_allclose(trajectory.evaluate(16.8), [10, 0, 0], atol=1e-5)


def test_overflowing_time_scaling_fails():
    vertices = [start_end((0, 0, 0)), interior((1, 0, 0)), start_end((2, 0, 0))]
    with pytest.raises(OptimizationFailed):
        optimize(vertices, [1e100, 1.0])


@pytest.mark.parametrize("segment_time", [float("inf"), float("nan")])
def test_non_finite_segment_time_fails(segment_time):
    opt = PolynomialOptimization(3)
    with pytest.raises(OptimizationFailed):
        opt.setup_from_vertices(
            [start_end((0, 0, 0)), start_end((1, 0, 0))], [segment_time], SNAP
        )
