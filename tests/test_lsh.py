import math

import numpy as np
import pytest

from recogpilot.lsh import LSH


def test_single_bucket_returns_points_within_eps():
    lsh = LSH([0.0, 0.05, 0.1, 1.0], [0.0, 0.0, 0.0, 0.0], 0, 1)
    assert lsh.nearest_neighbor(0, 0.06) == [1]
    assert lsh.nearest_neighbor(1, 0.06) == [0, 2]
    assert lsh.nearest_neighbor(3, 0.06) == []


def test_point_is_never_its_own_neighbor():
    lsh = LSH([0.0, 0.0], [0.0, 0.0], 0, 1)
    assert lsh.nearest_neighbor(0, 1.0) == [1]
    assert lsh.nearest_neighbor(1, 1.0) == [0]


def test_each_table_contributes_its_matches():
    lsh = LSH([0.0, 0.05, 1.0], [0.0, 0.0, 0.0], 0, 2)
    assert lsh.nearest_neighbor(0, 0.1) == [1, 1]


def test_points_on_a_ray_share_a_bucket():
    xs = np.linspace(0.5, 0.6, 30)
    ys = np.zeros_like(xs)
    hashed = LSH(xs, ys, 60, 1, np.random.default_rng(1))
    flat = LSH(xs, ys, 0, 1)
    for idx in range(len(xs)):
        assert hashed.nearest_neighbor(idx, 0.02) == flat.nearest_neighbor(idx, 0.02)


def test_returned_points_are_within_eps():
    gen = np.random.default_rng(7)
    xs = gen.uniform(-1.0, 1.0, 200)
    ys = gen.uniform(-1.0, 1.0, 200)
    lsh = LSH(xs, ys, 8, 2, np.random.default_rng(3))
    eps = 0.2
    for idx in range(len(xs)):
        for other in lsh.nearest_neighbor(idx, eps):
            assert other != idx
            assert math.hypot(xs[idx] - xs[other], ys[idx] - ys[other]) <= eps


def test_same_seed_gives_same_result():
    gen = np.random.default_rng(11)
    xs = gen.uniform(-2.0, 2.0, 100)
    ys = gen.uniform(-2.0, 2.0, 100)
    first = LSH(xs, ys, 10, 1, 5)
    second = LSH(xs, ys, 10, 1, 5)
    assert [first.nearest_neighbor(i, 0.5) for i in range(100)] == [
        second.nearest_neighbor(i, 0.5) for i in range(100)
    ]


def test_length_reports_point_count():
    assert len(LSH([1.0, 2.0, 3.0], [0.0, 0.0, 0.0], 4, 1, 0)) == 3


def test_mismatched_lengths_are_rejected():
    with pytest.raises(ValueError):
        LSH([0.0, 1.0], [0.0], 4, 1)


def test_negative_hyperplanes_are_rejected():
    with pytest.raises(ValueError):
        LSH([0.0], [0.0], -1, 1)


def test_index_out_of_range():
    lsh = LSH([0.0, 1.0], [0.0, 0.0], 4, 1, 0)
    with pytest.raises(IndexError):
        lsh.nearest_neighbor(2, 0.1)