"""Lower camera calibration and the perspective transform to the bird's-eye view."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .lane import LENGTH, WIDTH, YMAX
from .steering import (
    CAM_X,
    CAM_Y,
    CAM_Z,
    CX,
    CY,
    FX,
    FY,
    K1,
    K2,
    P1,
    P2,
    PITCH,
    ROLL,
    YAW,
    destination_points,
)

# Order in which the projected road corners are matched to the image corners.
_BEV_ORDER = (0, 1, 3, 2)


def camera_matrix() -> np.ndarray:
    """Intrinsic matrix of the lower camera."""
    return np.array(
        [
            [FX, 0.0, CX],
            [0.0, FY, CY],
            [0.0, 0.0, 1.0],
        ]
    )


def dist_coeffs() -> np.ndarray:
    """Distortion coefficients k1, k2, p1, p2 of the lower camera."""
    return np.array([K1, K2, P1, P2])


def extrinsics() -> tuple[np.ndarray, np.ndarray]:
    """Translation and rotation (Rodrigues vector) of the lower camera."""
    tvec = np.array([CAM_X, CAM_Y, CAM_Z])
    rvec = np.array([ROLL, PITCH, YAW])
    return tvec, rvec


def world_corners() -> np.ndarray:
    """Ground corners of the bird's-eye area: far left, far right, near left, near right."""
    half = WIDTH * 0.5
    return np.array(
        [
            [-half, LENGTH, 0.0],
            [half, LENGTH, 0.0],
            [-half, YMAX, 0.0],
            [half, YMAX, 0.0],
        ]
    )


def _rodrigues(rvec: Sequence[float]) -> np.ndarray:
    r = np.asarray(rvec, dtype=float).ravel()
    if r.size != 3:
        raise ValueError("rotation vector must have 3 elements")
    theta = float(np.linalg.norm(r))
    if theta < 1e-12:
        return np.eye(3)
    k = r / theta
    cross = np.array(
        [
            [0.0, -k[2], k[1]],
            [k[2], 0.0, -k[0]],
            [-k[1], k[0], 0.0],
        ]
    )
    return (
        np.cos(theta) * np.eye(3)
        + (1.0 - np.cos(theta)) * np.outer(k, k)
        + np.sin(theta) * cross
    )


def project_points(
    points: Sequence[Sequence[float]],
    rvec: Sequence[float],
    tvec: Sequence[float],
    camera: Sequence[Sequence[float]],
    dist: Sequence[float] | None,
) -> np.ndarray:
    """Project 3D points into the image with a pinhole model and lens distortion.

    ``dist`` holds k1, k2, p1, p2 and optionally k3; None or empty means none.
    Returns an N x 2 array of pixel positions.
    """
    pts = np.asarray(points, dtype=float)
    if pts.ndim != 2 or pts.shape[1] != 3:
        raise ValueError("points must be an N x 3 array")
    k_mat = np.asarray(camera, dtype=float)
    if k_mat.shape != (3, 3):
        raise ValueError("camera matrix must be 3 x 3")
    t = np.asarray(tvec, dtype=float).ravel()
    if t.size != 3:
        raise ValueError("translation vector must have 3 elements")

    coeffs = np.zeros(5)
    if dist is not None:
        d = np.asarray(dist, dtype=float).ravel()
        if d.size not in (0, 4, 5):
            raise ValueError("distortion needs 4 or 5 coefficients")
        coeffs[: d.size] = d
    k1, k2, p1, p2, k3 = coeffs

    cam = pts @ _rodrigues(rvec).T + t
    z = cam[:, 2]
    inv_z = np.where(z != 0.0, 1.0 / np.where(z != 0.0, z, 1.0), 1.0)
    x = cam[:, 0] * inv_z
    y = cam[:, 1] * inv_z

    r2 = x * x + y * y
    radial = 1.0 + k1 * r2 + k2 * r2 * r2 + k3 * r2 * r2 * r2
    xd = x * radial + 2.0 * p1 * x * y + p2 * (r2 + 2.0 * x * x)
    yd = y * radial + p1 * (r2 + 2.0 * y * y) + 2.0 * p2 * x * y

    homogeneous = np.stack([xd, yd, np.ones_like(xd)], axis=1) @ k_mat.T
    return homogeneous[:, :2]


def compute_point4bev(
    camera: Sequence[Sequence[float]],
    dist: Sequence[float] | None,
    tvec: Sequence[float],
    rvec: Sequence[float],
    world: Sequence[Sequence[float]],
) -> np.ndarray:
    """Image positions of the four road corners in bird's-eye corner order."""
    projected = project_points(world, rvec, tvec, camera, dist)
    if projected.shape[0] != 4:
        raise ValueError("exactly four world corners are needed")
    return projected[list(_BEV_ORDER)]


def perspective_transform(
    src: Sequence[Sequence[float]], dst: Sequence[Sequence[float]]
) -> np.ndarray:
    """3 x 3 homography taking four source points onto four destination points."""
    s = np.asarray(src, dtype=float)
    d = np.asarray(dst, dtype=float)
    if s.shape != (4, 2) or d.shape != (4, 2):
        raise ValueError("source and destination must each be four 2D points")

    a = np.zeros((8, 8))
    b = np.zeros(8)
    for i, ((x, y), (u, v)) in enumerate(zip(s, d)):
        a[i] = [x, y, 1.0, 0.0, 0.0, 0.0, -x * u, -y * u]
        b[i] = u
        a[i + 4] = [0.0, 0.0, 0.0, x, y, 1.0, -x * v, -y * v]
        b[i + 4] = v
    try:
        h = np.linalg.solve(a, b)
    except np.linalg.LinAlgError as exc:
        raise ValueError("points do not define a perspective transform") from exc
    return np.append(h, 1.0).reshape(3, 3)


def bev_transform() -> np.ndarray:
    """Homography from the undistorted camera image to the bird's-eye view."""
    tvec, rvec = extrinsics()
    src = compute_point4bev(camera_matrix(), dist_coeffs(), tvec, rvec, world_corners())
    return perspective_transform(src, destination_points())