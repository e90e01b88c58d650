import numpy as np
import pytest

from offboard_trajectory.errors import InvalidSpacing
from offboard_trajectory.polynomial_optimization import optimize
from offboard_trajectory.sampling import TrajectoryPoint
from offboard_trajectory.vertex import ACCELERATION, POSITION, SNAP, VELOCITY, Vertex
from offboard_trajectory.visualization import (
    ACCELERATION_COLOR,
    ADD,
    ARROW,
    LINE_STRIP,
    VELOCITY_COLOR,
    draw_arrow,
    draw_axes_arrows,
    draw_mav_trajectory,
    draw_trajectory,
    draw_vertices,
)


def straight_line(length, step=0.01, origin=(0.0, 0.0, 0.0)):
    origin = np.asarray(origin, dtype=float)
    n_steps = int(round(length / step))
    return [
        TrajectoryPoint(i * step, origin + [i * step, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.5, 0.0])
        for i in range(n_steps + 1)
    ]


def clusters(marker_array):
    return len(marker_array.by_namespace("velocity"))


def test_empty_samples_give_empty_path_only():
    markers = draw_mav_trajectory([], 1.0, "world")
    assert len(markers.markers) == 1
    assert markers.markers[0].ns == "path"
    assert markers.markers[0].type == LINE_STRIP
    assert markers.markers[0].points == []


def test_single_sample_gives_single_point_path():
    markers = draw_mav_trajectory(straight_line(0.0), 1.0, "world")
    assert len(markers.markers) == 1
    assert markers.markers[0].points == [(0.0, 0.0, 0.0)]


def test_spacing_longer_than_path_gives_path_only():
    points = straight_line(5.0)
    markers = draw_mav_trajectory(points, 6.0, "world")
    assert len(markers.markers) == 1
    assert len(markers.markers[0].points) == len(points)


def test_first_sample_far_from_origin_emits_nothing_extra():
    markers = draw_mav_trajectory(straight_line(1.0, origin=(10.0, 10.0, 0.0)), 1.6, "world")
    assert clusters(markers) == 0
    assert len(markers.markers) == 1


@pytest.mark.parametrize("distance", [0.0, -1.0])
def test_non_positive_spacing_rejected(distance):
    with pytest.raises(InvalidSpacing):
        draw_mav_trajectory(straight_line(1.0), distance, "world")


def test_clusters_every_spacing_interval():
    markers = draw_mav_trajectory(straight_line(5.0), 1.6, "world")
    assert clusters(markers) == 3
    assert len(markers.by_namespace("acceleration")) == 3
    assert len(markers.by_namespace("pose")) == 9
    assert markers.markers[-1].ns == "path"


def test_cluster_arrows_point_along_derivatives():
    markers = draw_mav_trajectory(straight_line(2.0), 1.6, "world")
    velocity = markers.by_namespace("velocity")[0]
    acceleration = markers.by_namespace("acceleration")[0]

    start = np.array(velocity.points[0])
    np.testing.assert_allclose(np.array(velocity.points[1]) - start, [1.0, 0.0, 0.0], atol=1e-9)
    np.testing.assert_allclose(
        np.array(acceleration.points[1]) - np.array(acceleration.points[0]), [0.0, 0.5, 0.0], atol=1e-9
    )
    assert velocity.type == ARROW
    assert velocity.color == VELOCITY_COLOR
    assert acceleration.color == ACCELERATION_COLOR
    assert start[0] == pytest.approx(1.6, abs=0.02)


def test_common_header_and_sequential_ids():
    markers = draw_mav_trajectory(straight_line(5.0), 1.6, "map", stamp=12.5)
    assert [m.id for m in markers.markers] == list(range(len(markers.markers)))
    assert {m.frame_id for m in markers.markers} == {"map"}
    assert {m.stamp for m in markers.markers} == {12.5}
    assert {m.action for m in markers.markers} == {ADD}


def test_build_is_idempotent():
    points = straight_line(5.0)
    assert draw_mav_trajectory(points, 1.6, "world", 3.0) == draw_mav_trajectory(points, 1.6, "world", 3.0)


def test_draw_trajectory_samples_optimized_path():
    start, end = Vertex(3), Vertex(3)
    start.make_start_or_end((0, 0, 0), ACCELERATION)
    end.make_start_or_end((5, 0, 0), ACCELERATION)
    trajectory = optimize([start, end], [10.0], 3, SNAP)

    markers = draw_trajectory(trajectory, 1.6, "world", dt=0.01)
    assert clusters(markers) >= 3
    assert len(markers.by_namespace("path")[0].points) == 1001


def test_axes_arrows_follow_orientation():
    axes = draw_axes_arrows((1.0, 2.0, 3.0), (0.0, 0.0, 0.0, 1.0), scale=0.5, diameter=0.1)
    assert len(axes.markers) == 3
    ends = [np.array(m.points[1]) - np.array(m.points[0]) for m in axes.markers]
    np.testing.assert_allclose(ends, 0.5 * np.eye(3), atol=1e-9)


def test_arrow_scale_from_diameter():
    arrow = draw_arrow((0, 0, 0), (1, 0, 0), VELOCITY_COLOR, 0.3)
    assert arrow.scale == (0.3, 0.6, 0.0)
    assert arrow.points == [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)]


def test_draw_vertices_skips_bad_vertices():
    good_start, good_end = Vertex(3), Vertex(3)
    good_start.add_constraint(POSITION, (0, 0, 0))
    good_end.add_constraint(POSITION, (1, 1, 0))
    wrong_dimension = Vertex(2)
    wrong_dimension.add_constraint(POSITION, (5, 5))
    no_position = Vertex(3)
    no_position.add_constraint(VELOCITY, (1, 0, 0))

    markers = draw_vertices([good_start, wrong_dimension, no_position, good_end], "world")

    assert len(markers.markers) == 1
    assert markers.markers[0].ns == "straight_path"
    assert markers.markers[0].points == [(0.0, 0.0, 0.0), (1.0, 1.0, 0.0)]
