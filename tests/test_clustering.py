import numpy as np
import pytest

from recogpilot.clustering import (
    CRASH_FLAG,
    GPS2DIAGONAL,
    GPS2LIDAR,
    GPS2SIDE,
    MIN_RADIUS_FLAG,
    PEAK_DEGREE,
    U_TURN_FLAG,
    calculate_margin,
    circle_approximation,
    cluster_obstacles,
    dbscan,
    min_radius_turn_flag,
    process_clusters,
    steer_command,
    u_turn_flag,
)
from recogpilot.off_params import MAX_RANGE, ORIGINAL_INDEX, Obstacle

AHEAD = 720  # scan index of the straight-ahead bearing


def _two_clusters_and_noise():
    steps = 0.004 * np.arange(30)
    xs = np.concatenate([1.0 + steps, np.zeros(30), [5.0]])
    ys = np.concatenate([np.zeros(30), 3.0 + steps, [5.0]])
    return xs, ys


def test_dbscan_separates_groups_and_noise():
    xs, ys = _two_clusters_and_noise()
    labels, groups = dbscan(xs, ys, 0.1, 15, 0, 1)
    assert groups == 2
    assert labels == [1] * 30 + [2] * 30 + [-1]


def test_dbscan_with_hashing_matches_single_bucket_on_rays():
    xs, ys = _two_clusters_and_noise()
    flat = dbscan(xs, ys, 0.1, 15, 0, 1)
    hashed = dbscan(xs, ys, 0.1, 15, 60, 1, np.random.default_rng(4))
    assert hashed == flat


def test_dbscan_sparse_points_are_noise():
    xs = np.arange(10, dtype=float)
    labels, groups = dbscan(xs, np.zeros(10), 0.1, 15, 0, 1)
    assert groups == 0
    assert labels == [-1] * 10


def test_margin_at_key_bearings():
    assert calculate_margin(0.0) == pytest.approx(GPS2LIDAR)
    assert calculate_margin(PEAK_DEGREE) == pytest.approx(GPS2DIAGONAL)
    assert calculate_margin(90.0) == pytest.approx(GPS2SIDE)


def test_margin_outside_range_is_zero():
    assert calculate_margin(120.0) == 0.0
    assert calculate_margin(-91.0) == 0.0


def test_margin_is_symmetric():
    assert calculate_margin(-45.0) == calculate_margin(45.0)


def test_cluster_obstacles_centre_and_radius():
    xs = [1.0, 2.0, 3.0, 9.0]
    ys = [0.0, 0.0, 0.0, 9.0]
    obstacles = cluster_obstacles(xs, ys, [1, 1, 1, -1], 1)
    assert len(obstacles) == 1
    obstacle = obstacles[0]
    assert obstacle.x == pytest.approx(2.0 + GPS2LIDAR)
    assert obstacle.y == pytest.approx(0.0)
    assert obstacle.r == pytest.approx(1.0 + calculate_margin(0.0))


def test_circle_approximation_without_obstacles():
    ranges = circle_approximation([])
    assert ranges.shape == (ORIGINAL_INDEX,)
    assert ranges.tolist() == [MAX_RANGE] * ORIGINAL_INDEX


def test_circle_approximation_obstacle_ahead():
    ranges = circle_approximation([Obstacle(5.0, 0.0, 1.0)])
    assert ranges[AHEAD] == pytest.approx(4.0)
    assert ranges[0] == MAX_RANGE
    assert ranges.max() <= MAX_RANGE
    for k in range(1, 60):
        assert ranges[AHEAD - k] == pytest.approx(ranges[AHEAD + k])


@pytest.mark.parametrize("obstacle", [Obstacle(20.0, 0.0, 1.0), Obstacle(1.0, 0.0, 2.0)])
def test_circle_approximation_ignores_unreachable_obstacles(obstacle):
    ranges = circle_approximation([obstacle])
    assert ranges.tolist() == [MAX_RANGE] * ORIGINAL_INDEX


def test_steer_follows_request_on_open_field():
    off = np.full(ORIGINAL_INDEX, MAX_RANGE)
    assert steer_command(off, 10.0) == pytest.approx(10.0)


def test_steer_keeps_previous_when_nothing_scores():
    off = np.full(ORIGINAL_INDEX, -100.0)
    assert steer_command(off, 0.0, 12.5) == 12.5


def test_steer_rejects_short_profile():
    with pytest.raises(ValueError):
        steer_command([1.0] * 10, 0.0)


def test_u_turn_flag():
    assert u_turn_flag([Obstacle(5.0, 0.3, 0.5)]) == U_TURN_FLAG
    assert u_turn_flag([Obstacle(5.0, 0.0, 0.5)]) == 0
    assert u_turn_flag([Obstacle(9.0, 0.1, 0.5)]) == 0


def test_min_radius_turn_flag():
    assert min_radius_turn_flag([Obstacle(1.0, 0.5, 2.0)]) == CRASH_FLAG
    assert min_radius_turn_flag([Obstacle(0.5, 0.1, 0.2)]) == MIN_RADIUS_FLAG
    assert min_radius_turn_flag([Obstacle(9.0, 5.0, 0.5)]) == 0


def test_process_clusters_without_groups():
    flag, ranges = process_clusters([], [], [], 0)
    assert flag == 0
    assert ranges.tolist() == [0.0] * ORIGINAL_INDEX


def test_process_clusters_is_consistent_with_parts():
    xs = [4.0, 4.0, 4.0]
    ys = [-0.2, 0.0, 0.3]
    labels = [1, 1, 1]
    flag, ranges = process_clusters(xs, ys, labels, 1)
    obstacles = cluster_obstacles(xs, ys, labels, 1)
    assert flag == min_radius_turn_flag(obstacles)
    assert np.allclose(ranges, circle_approximation(obstacles))
    assert ranges.min() < MAX_RANGE