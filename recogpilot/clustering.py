"""DBSCAN clustering of LiDAR points into circular obstacles and steering."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

import numpy as np

from .lsh import LSH
from .off_params import (
    INTERESTED_DEGREE,
    INTERESTED_INDEX,
    INTERESTED_OFFSET,
    MAX_RANGE,
    OBSERVE_DEGREE,
    ORIGINAL_INDEX,
    RESOLUTION,
    RS,
    SIGMA,
    WEIGHT,
    Obstacle,
)

# DBSCAN parameters.
EPS_CLUSTER = 0.10
MINIMUM_DATAPOINTS = 15
NUM_LSH_TABLE = 1
NUM_LSH_HYPERPLANES = 60

# Offsets from the GPS antenna to the vehicle outline.
GPS2LIDAR = 0.80
GPS2SIDE = 0.37
GPS2DIAGONAL = math.hypot(GPS2LIDAR, GPS2SIDE)
PEAK_DEGREE = 28.9510
GRADIENT_0_2_PEAK = (GPS2DIAGONAL - GPS2LIDAR) / PEAK_DEGREE
GRADIENT_PEAK_2_90 = (GPS2SIDE - GPS2DIAGONAL) / (90.0 - PEAK_DEGREE)

# Flag thresholds.
UTURN_THRESHOLD_X = 8.0
UTURN_THRESHOLD_Y = 0.6
MIN_TURN_RADIUS = 3.0
CAR_HALF_WIDTH = 0.6

U_TURN_FLAG = 0b01
MIN_RADIUS_FLAG = 0b10
CRASH_FLAG = -1

_SCAN_RADIANS = np.radians(OBSERVE_DEGREE - RESOLUTION * np.arange(ORIGINAL_INDEX))
_INTERESTED_ANGLES = INTERESTED_DEGREE - RESOLUTION * np.arange(INTERESTED_INDEX)


def dbscan(
    x: Sequence[float],
    y: Sequence[float],
    eps: float = EPS_CLUSTER,
    min_num_points: int = MINIMUM_DATAPOINTS,
    num_lsh_hyperplanes: int = NUM_LSH_HYPERPLANES,
    num_lsh_tables: int = NUM_LSH_TABLE,
    rng: np.random.Generator | int | None = None,
) -> tuple[list[int], int]:
    """Label scan-ordered points; returns the labels and the number of groups.

    Noise is labelled -1, groups are numbered from 1.
    """
    xs = np.asarray(x, dtype=float).ravel().tolist()
    ys = np.asarray(y, dtype=float).ravel().tolist()
    hash_map = LSH(xs, ys, num_lsh_hyperplanes, num_lsh_tables, rng)

    labels = [0] * len(xs)
    groups = 0
    previous_count = 0
    last = 0

    for idx in range(len(xs)):
        candidates = hash_map.nearest_neighbor(idx, eps)
        near_last = math.hypot(xs[idx] - xs[last], ys[idx] - ys[last]) <= eps

        if len(candidates) < min_num_points:
            labels[idx] = -1
            # A sparse point next to a dense one joins the dense one's group.
            if previous_count > min_num_points and near_last:
                labels[idx] = labels[last]
            continue

        if labels[last] and near_last:
            group = labels[idx - 1]
            labels[idx] = group
        elif not labels[idx]:
            groups += 1
            group = groups
            labels[idx] = group
        else:
            group = labels[idx]

        for candidate in candidates:
            if not labels[candidate]:
                labels[candidate] = group

        previous_count = len(candidates)
        last = idx

    return labels, groups


def calculate_margin(degree: float) -> float:
    """Distance from the GPS antenna to the vehicle outline at a bearing."""
    magnitude = abs(degree)
    if magnitude > 90:
        return 0.0
    if magnitude <= PEAK_DEGREE:
        return GRADIENT_0_2_PEAK * magnitude + GPS2LIDAR
    return GRADIENT_PEAK_2_90 * magnitude + GPS2SIDE + GRADIENT_PEAK_2_90 * -90.0


def cluster_obstacles(
    x: Sequence[float], y: Sequence[float], labels: Sequence[int], num_label: int
) -> list[Obstacle]:
    """Turn each labelled group into a circle centred on its mean point."""
    members: list[list[tuple[float, float]]] = [[] for _ in range(num_label)]
    for px, py, label in zip(x, y, labels):
        if 1 <= label <= num_label:
            members[label - 1].append((float(px), float(py)))

    obstacles = []
    for points in members:
        if not points:
            obstacles.append(Obstacle(math.nan, math.nan, 0.0))
            continue
        cx = sum(p[0] for p in points) / len(points)
        cy = sum(p[1] for p in points) / len(points)
        ox = cx + GPS2LIDAR
        margin = calculate_margin(math.degrees(math.atan2(cy, ox)))
        # The radius is the last member's spread plus the margin, as on the vehicle.
        px, py = points[-1]
        obstacles.append(Obstacle(ox, cy, math.hypot(cx - px, cy - py) + margin))
    return obstacles


def circle_approximation(obstacles: Iterable[Obstacle]) -> np.ndarray:
    """Free range along each scan bearing (+90 to -90 degrees) given circles."""
    out = np.full(ORIGINAL_INDEX, MAX_RANGE)
    for obstacle in obstacles:
        center_range = math.hypot(obstacle.x, obstacle.y)
        min_range = center_range - obstacle.r
        if center_range <= 0 or min_range >= MAX_RANGE or min_range <= 0:
            continue

        half_width = math.asin(obstacle.r / center_range)
        center_angle = math.atan2(obstacle.y, obstacle.x)
        selected = (_SCAN_RADIANS < center_angle + half_width) & (
            _SCAN_RADIANS >= center_angle - half_width
        )
        if not selected.any():
            continue

        tan = np.tan(_SCAN_RADIANS[selected])
        b = obstacle.x + obstacle.y * tan
        k = tan * tan + 1.0
        c = obstacle.x**2 + obstacle.y**2 - obstacle.r**2
        with np.errstate(invalid="ignore"):
            root = np.sqrt(b * b - k * c)
        x1 = (b + root) / k
        x2 = (b - root) / k
        r1 = np.hypot(x1, tan * x1)
        r2 = np.hypot(x2, tan * x2)

        segment = out[selected]
        segment = np.where(r1 < segment, r1, segment)
        segment = np.where(r2 < segment, r2, segment)
        out[selected] = segment
    return out


def steer_command(off: Sequence[float], sff_degree: float, previous: float = 0.0) -> float:
    """Blend the free-range field with a Gaussian around the requested steer.

    Returns the bearing of the best score within +-40 degrees, or ``previous``
    when no score is positive.
    """
    ranges = np.asarray(off, dtype=float)
    window = ranges[INTERESTED_OFFSET : INTERESTED_OFFSET + INTERESTED_INDEX]
    if window.size != INTERESTED_INDEX:
        raise ValueError(f"expected at least {INTERESTED_OFFSET + INTERESTED_INDEX} ranges")

    sff = RS * np.exp(-((_INTERESTED_ANGLES - sff_degree) ** 2) / (2.0 * SIGMA**2))
    iff = WEIGHT * sff + (1.0 - WEIGHT) * window
    iff = np.where(np.isnan(iff), -np.inf, iff)
    best = int(np.argmax(iff))
    if iff[best] > 0.0:
        return float(_INTERESTED_ANGLES[best])
    return previous


def u_turn_flag(obstacles: Iterable[Obstacle]) -> int:
    """U_TURN_FLAG if an obstacle lies in the lane close ahead, else 0."""
    for obstacle in obstacles:
        if obstacle.x == 0.0 or obstacle.y == 0.0:
            continue
        if -UTURN_THRESHOLD_Y < obstacle.y < UTURN_THRESHOLD_Y and obstacle.x < UTURN_THRESHOLD_X:
            return U_TURN_FLAG
    return 0


def min_radius_turn_flag(obstacles: Iterable[Obstacle]) -> int:
    """MIN_RADIUS_FLAG if an obstacle blocks both tightest turns, CRASH_FLAG on contact."""
    for obstacle in obstacles:
        if obstacle.x == 0.0 or obstacle.y == 0.0:
            continue
        distance = math.hypot(obstacle.x, obstacle.y)
        if distance < obstacle.r:
            return CRASH_FLAG

        factor = 1.0 - obstacle.r / distance
        closest_x = obstacle.x * factor
        closest_y = obstacle.y * factor
        r1 = math.hypot(closest_x - MIN_TURN_RADIUS, closest_y)
        r2 = math.hypot(closest_x + MIN_TURN_RADIUS, closest_y)
        limit = MIN_TURN_RADIUS + CAR_HALF_WIDTH
        if r1 < limit and r2 < limit:
            return MIN_RADIUS_FLAG
    return 0


def process_clusters(
    x: Sequence[float], y: Sequence[float], labels: Sequence[int], num_label: int
) -> tuple[int, np.ndarray]:
    """Flag and free-range profile for a labelled scan.

    With no groups the flag is 0 and the profile is all zeros. The flag is the
    minimum-radius check; the u-turn check does not decide it.
    """
    if num_label == 0:
        return 0, np.zeros(ORIGINAL_INDEX)
    obstacles = cluster_obstacles(x, y, labels, num_label)
    return min_radius_turn_flag(obstacles), circle_approximation(obstacles)