"""Median filtering of a 2D LiDAR scan and approximation of obstacles as circles."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .off_params import (
    DEGREE_OFFSET,
    LIDAR2GPS_TRANSLATION,
    MAX_RANGE,
    MEDIAN_SIZE,
    MIN_OBJECT_SIZE,
    OBSERVE_DEGREE,
    OBSTACLE_THRESHOLD,
    ORIGINAL_INDEX,
    RESOLUTION,
    Obstacle,
)

_SCAN_RADIANS = np.radians(OBSERVE_DEGREE - RESOLUTION * np.arange(ORIGINAL_INDEX))


@dataclass(frozen=True)
class Segment:
    """A run of scan points taken as one obstacle, inclusive at both ends."""

    start: int
    end: int
    start_angle: float
    end_angle: float


def median_filter(distances: Sequence[float]) -> np.ndarray:
    """Median-filter the +90..-90 degree window of a raw range scan.

    Missing (zero) and over-range readings in the window count as MAX_RANGE.
    The first and last few points, which have no full neighbourhood, are
    copied through unfiltered. The input is left unchanged.
    """
    raw = np.array(distances, dtype=float).ravel()
    if raw.size < DEGREE_OFFSET + ORIGINAL_INDEX:
        raise ValueError(f"scan needs at least {DEGREE_OFFSET + ORIGINAL_INDEX} readings")

    window = raw[DEGREE_OFFSET : DEGREE_OFFSET + ORIGINAL_INDEX]
    window[(window == 0) | (window > MAX_RANGE)] = MAX_RANGE

    half = MEDIAN_SIZE // 2
    steps = np.arange(half)
    out = np.empty(ORIGINAL_INDEX)
    out[:half] = window[:half]
    out[ORIGINAL_INDEX - 1 - steps] = raw[raw.size - DEGREE_OFFSET - 1 - steps]
    out[half : ORIGINAL_INDEX - half] = np.median(sliding_window_view(window, MEDIAN_SIZE), axis=1)
    return out


def find_obstacle_segments(angles: Sequence[float], ranges: Sequence[float]) -> list[Segment]:
    """Split a filtered scan into obstacle segments.

    A segment closes once it is long enough and the range jumps, reaches
    MAX_RANGE or the scan ends; the closing point itself is not included.
    """
    angle_list = np.asarray(angles, dtype=float).ravel().tolist()
    range_list = np.asarray(ranges, dtype=float).ravel().tolist()
    if len(angle_list) < len(range_list):
        raise ValueError("every range needs an angle")
    if not range_list:
        return []

    last = len(range_list) - 1
    segments: list[Segment] = []
    start = 0
    start_angle = angle_list[0]
    tracking = False
    before = range_list[0]

    for i, value in enumerate(range_list):
        is_object = i - start >= MIN_OBJECT_SIZE
        at_max = value == MAX_RANGE
        jump = abs(value - before) > OBSTACLE_THRESHOLD

        if tracking and is_object and (jump or at_max or i == last):
            segments.append(Segment(start, i - 1, start_angle, angle_list[i - 1]))

        if at_max:
            tracking = not tracking
        if not tracking or jump:
            start = i
            start_angle = angle_list[i]
            tracking = True
        before = value

    return segments


def _circumcenter(
    p1: tuple[float, float], p2: tuple[float, float], p3: tuple[float, float]
) -> tuple[float, float]:
    (x1, y1), (x2, y2), (x3, y3) = p1, p2, p3
    den = 2.0 * ((x2 - x1) * (y3 - y2) - (y2 - y1) * (x3 - x2))
    if den == 0.0:
        return math.nan, math.nan
    s12 = x2 * x2 - x1 * x1 + y2 * y2 - y1 * y1
    s23 = x3 * x3 - x2 * x2 + y3 * y3 - y2 * y2
    cx = ((y3 - y2) * s12 + (y1 - y2) * s23) / den
    cy = ((x2 - x3) * s12 + (x2 - x1) * s23) / den
    return cx, cy


def fit_obstacles(
    angles: Sequence[float], ranges: Sequence[float], segments: Iterable[Segment]
) -> list[Obstacle]:
    """Fit a circle to each segment, shifted from the LiDAR to the GPS antenna.

    The circle runs through both ends and the nearest interior point; when the
    nearest point is an end, it is centred on the chord between the ends.
    """
    angle_list = np.asarray(angles, dtype=float).ravel().tolist()
    range_list = np.asarray(ranges, dtype=float).ravel().tolist()

    obstacles = []
    for seg in segments:
        x1 = math.cos(seg.start_angle) * range_list[seg.start]
        y1 = math.sin(seg.start_angle) * range_list[seg.start]
        x2 = math.cos(seg.end_angle) * range_list[seg.end]
        y2 = math.sin(seg.end_angle) * range_list[seg.end]

        min_index = seg.start
        min_data = MAX_RANGE
        for idx in range(seg.start, seg.end + 1):
            if min_data > range_list[idx]:
                min_index = idx
                min_data = range_list[idx]

        if min_index in (seg.start, seg.end):
            cx = (x1 + x2) * 0.5
            cy = (y1 + y2) * 0.5
        else:
            # The nearest point takes the bearing of the point before it.
            bearing = angle_list[min_index - 1]
            p3 = (math.cos(bearing) * min_data, math.sin(bearing) * min_data)
            cx, cy = _circumcenter((x1, y1), (x2, y2), p3)

        radius = math.hypot(cx - x1, cy - y1)
        obstacles.append(Obstacle(cx + LIDAR2GPS_TRANSLATION, cy, radius))
    return obstacles


def range_profile(obstacles: Iterable[Obstacle]) -> np.ndarray:
    """Nearest circle hit along each scan bearing, +90 to -90 degrees."""
    out = np.full(ORIGINAL_INDEX, MAX_RANGE)
    for obstacle in obstacles:
        center_range = math.hypot(obstacle.x, obstacle.y)
        min_range = center_range - obstacle.r
        if not math.isfinite(min_range) or center_range == 0.0:
            continue
        if min_range > MAX_RANGE or min_range < 0.0:
            continue

        half_width = math.asin(min(obstacle.r / center_range, 1.0))
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


def circle_approx(
    angles: Sequence[float], ranges: Sequence[float]
) -> tuple[list[Obstacle], np.ndarray]:
    """Obstacles found in a filtered scan window and the range profile they leave."""
    range_array = np.asarray(ranges, dtype=float).ravel()
    if range_array.size != ORIGINAL_INDEX:
        raise ValueError(f"expected {ORIGINAL_INDEX} ranges, got {range_array.size}")
    segments = find_obstacle_segments(angles, range_array)
    obstacles = fit_obstacles(angles, range_array, segments)
    return obstacles, range_profile(obstacles)