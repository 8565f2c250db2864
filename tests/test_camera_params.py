import math

import numpy as np
import pytest

from recogpilot.camera_params import (
    bev_transform,
    camera_matrix,
    compute_point4bev,
    dist_coeffs,
    extrinsics,
    perspective_transform,
    project_points,
    world_corners,
)
from recogpilot.steering import CX, CY, FX, FY, K1, K2, ROLL, destination_points


def _apply(m, point):
    vec = m @ np.array([point[0], point[1], 1.0])
    return vec[:2] / vec[2]


def test_camera_matrix_holds_intrinsics():
    k = camera_matrix()
    assert k[0, 0] == FX
    assert k[1, 1] == FY
    assert k[0, 2] == CX
    assert k[1, 2] == CY
    assert k[2, 2] == 1.0


def test_dist_coeffs_values():
    assert dist_coeffs().tolist() == [K1, K2, 0.0, 0.0]


def test_extrinsics_rotation_and_translation():
    tvec, rvec = extrinsics()
    assert tvec.shape == (3,)
    assert rvec[0] == ROLL


def test_world_corners_are_symmetric_on_ground():
    corners = world_corners()
    assert corners.shape == (4, 3)
    assert np.all(corners[:, 2] == 0.0)
    assert corners[0, 0] == -corners[1, 0]
    assert corners[0, 1] > corners[2, 1]


def test_project_on_axis_hits_principal_point():
    out = project_points([[0.0, 0.0, 1.0]], [0, 0, 0], [0, 0, 0], camera_matrix(), dist_coeffs())
    assert out[0, 0] == pytest.approx(CX)
    assert out[0, 1] == pytest.approx(CY)


def test_project_rotation_about_z_flips_x():
    plain = project_points([[1.0, 0.0, 1.0]], [0, 0, 0], [0, 0, 0], camera_matrix(), None)
    turned = project_points([[1.0, 0.0, 1.0]], [0, 0, math.pi], [0, 0, 0], camera_matrix(), None)
    assert plain[0, 0] == pytest.approx(CX + FX)
    assert turned[0, 0] == pytest.approx(CX - FX)
    assert turned[0, 1] == pytest.approx(CY, abs=1e-6)


def test_translation_matches_shifted_point():
    a = project_points([[0.2, 0.1, 2.0]], [0.1, 0.2, 0.0], [0.0, 0.0, 0.0], camera_matrix(), dist_coeffs())
    b = project_points([[0.2, 0.1, 2.0]], [0.0, 0.0, 0.0], [0.0, 0.0, 0.0], camera_matrix(), dist_coeffs())
    assert not np.allclose(a, b)
    c = project_points([[0.0, 0.0, 1.0]], [0, 0, 0], [0.2, 0.1, 1.0], camera_matrix(), None)
    d = project_points([[0.2, 0.1, 2.0]], [0, 0, 0], [0, 0, 0], camera_matrix(), None)
    assert np.allclose(c, d)


def test_project_rejects_bad_shapes():
    with pytest.raises(ValueError):
        project_points([[1.0, 2.0]], [0, 0, 0], [0, 0, 0], camera_matrix(), None)
    with pytest.raises(ValueError):
        project_points([[1.0, 2.0, 3.0]], [0, 0], [0, 0, 0], camera_matrix(), None)
    with pytest.raises(ValueError):
        project_points([[1.0, 2.0, 3.0]], [0, 0, 0], [0, 0, 0], camera_matrix(), [1.0, 2.0])


def test_compute_point4bev_reorders_corners():
    tvec, rvec = extrinsics()
    world = world_corners()
    projected = project_points(world, rvec, tvec, camera_matrix(), dist_coeffs())
    points = compute_point4bev(camera_matrix(), dist_coeffs(), tvec, rvec, world)
    assert np.allclose(points, projected[[0, 1, 3, 2]])


def test_perspective_transform_maps_points():
    src = [(10.0, 20.0), (300.0, 25.0), (280.0, 400.0), (5.0, 390.0)]
    dst = destination_points()
    m = perspective_transform(src, dst)
    assert m[2, 2] == 1.0
    for s, d in zip(src, dst):
        assert np.allclose(_apply(m, s), d)


def test_perspective_identity():
    pts = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
    assert np.allclose(perspective_transform(pts, pts), np.eye(3))


def test_perspective_transform_errors():
    with pytest.raises(ValueError):
        perspective_transform([(1.0, 1.0)] * 4, destination_points())
    with pytest.raises(ValueError):
        perspective_transform([(0.0, 0.0)] * 3, destination_points()[:3])


def test_bev_transform_maps_road_corners_to_image_corners():
    m = bev_transform()
    tvec, rvec = extrinsics()
    src = compute_point4bev(camera_matrix(), dist_coeffs(), tvec, rvec, world_corners())
    assert np.all(np.isfinite(m))
    for s, d in zip(src, destination_points()):
        assert np.allclose(_apply(m, s), d, atol=1e-6)