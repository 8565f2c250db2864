"""Sliding-window lane search and line fitting in the bird's-eye view."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

# Ground area covered by the bird's-eye view.
WIDTH = 4.0  # [m]
LENGTH = 6.0  # [m]
YMAX = 1.0  # [m]

METER_PER_COL = 0.01
METER_PER_ROW = 0.01
# 2.4 m and 4.4 m of road at 1 cm per pixel, as computed in single precision.
OUT_MAX_COLS = 240
OUT_MAX_ROWS = 440

LOAD_WIDTH = 1.4  # [m]
SLOPE_THRESHOLD = 0.13
ROAD_WIDTH_PX = round(LOAD_WIDTH / METER_PER_COL)

N_WINDOWS = 1
THRESHOLD_VALUE = 200

WINDOW_COLOR = (0, 255, 0)
LEFT_COLOR = (0, 0, 255)
RIGHT_COLOR = (255, 0, 0)
CENTER_COLOR = (255, 255, 255)
STEER_COLOR = (0, 0, 255)


@dataclass(frozen=True, eq=False)
class WindowResult:
    """Lane points found in one band of the bird's-eye view.

    Points are (column, row) in the band; ``center_fit_x`` holds the centre
    column for every row and is what the next frame falls back on.
    """

    steer_point: tuple[float, float]
    left_point: tuple[float, float]
    right_point: tuple[float, float]
    center_fit_x: np.ndarray
    left_coeff: np.ndarray
    right_coeff: np.ndarray
    image: np.ndarray


def _column(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 2 and arr.shape[1] == 1:
        arr = arr[:, 0]
    if arr.ndim != 1:
        raise ValueError("x and y must be column vectors")
    return arr


def poly_fit(x: Sequence[float], y: Sequence[float], n: int) -> np.ndarray:
    """Least-squares polynomial of degree ``n``; coefficients highest power first."""
    xs = _column(x)
    ys = _column(y)
    if xs.shape != ys.shape:
        raise ValueError("x and y must have the same number of rows")
    if n < 0:
        raise ValueError("degree must not be negative")
    a = np.vander(xs, n + 1)
    coeffs, *_ = np.linalg.lstsq(a.T @ a, a.T @ ys, rcond=None)
    return coeffs


def _to_gray(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return image.astype(float)
    if image.ndim == 3 and image.shape[2] == 3:
        bgr = image.astype(float)
        return np.rint(0.114 * bgr[..., 0] + 0.587 * bgr[..., 1] + 0.299 * bgr[..., 2])
    raise ValueError("image must be single-channel or 3-channel BGR")


def _fill(img: np.ndarray, x0: int, x1: int, y0: int, y1: int, color) -> None:
    rows, cols = img.shape[:2]
    x0, x1 = max(x0, 0), min(x1, cols)
    y0, y1 = max(y0, 0), min(y1, rows)
    if x0 < x1 and y0 < y1:
        img[y0:y1, x0:x1] = color


def _draw_rect(img: np.ndarray, x: int, y: int, w: int, h: int, color) -> None:
    x1, y1 = x + w, y + h
    _fill(img, x - 1, x1 + 1, y - 1, y + 1, color)
    _fill(img, x - 1, x1 + 1, y1 - 1, y1 + 1, color)
    _fill(img, x - 1, x + 1, y - 1, y1 + 1, color)
    _fill(img, x1 - 1, x1 + 1, y - 1, y1 + 1, color)


def _draw_disc(img: np.ndarray, cx: int, cy: int, radius: int, color) -> None:
    rows, cols = img.shape[:2]
    yy, xx = np.ogrid[:rows, :cols]
    img[(xx - cx) ** 2 + (yy - cy) ** 2 <= radius * radius] = color


def _draw_polyline(img: np.ndarray, points: list[tuple[int, int]], color) -> None:
    rows, cols = img.shape[:2]
    clipped = [(min(max(px, -1), cols), min(max(py, -1), rows)) for px, py in points]
    for (px, py), (qx, qy) in zip(clipped, clipped[1:] or clipped):
        count = max(abs(qx - px), abs(qy - py)) + 1
        xs = np.rint(np.linspace(px, qx, count)).astype(int)
        ys = np.rint(np.linspace(py, qy, count)).astype(int)
        for offset in (0, 1):
            sx = xs + offset
            ok = (sx >= 0) & (sx < cols) & (ys >= 0) & (ys < rows)
            img[ys[ok], sx[ok]] = color


def sliding_window(
    bev_roi: np.ndarray, prev_center_fit_x: np.ndarray, roi_num: int
) -> WindowResult:
    """Find the left and right lane lines in one band and the road centre.

    Bright pixels inside the left and right search windows are fitted with a
    line each. With one line the centre is a road width away from it; with
    none, row ``roi_num`` of ``prev_center_fit_x`` is used. A steeply slanted
    line overrides the centre as if it were the only one.
    """
    image = np.asarray(bev_roi)
    gray = _to_gray(image)
    rows, cols = gray.shape
    if rows == 0 or cols == 0:
        raise ValueError("empty image band")

    history = np.asarray(prev_center_fit_x, dtype=float)
    if history.ndim != 2 or not 0 <= roi_num < history.shape[0]:
        raise ValueError(f"no centre history for band {roi_num}")
    previous = history[roi_num]
    if previous.size < rows:
        raise ValueError(f"centre history holds {previous.size} rows, band has {rows}")

    left_x = cols // 4
    right_x = 3 * cols // 4
    window_height = rows // N_WINDOWS
    margin = cols // 6
    minpix = window_height >> 1

    ys, xs = np.nonzero(gray)
    bright = gray[ys, xs] >= THRESHOLD_VALUE
    ys, xs = ys[bright], xs[bright]

    rectangles = []
    left_sel = np.zeros(xs.size, dtype=bool)
    right_sel = np.zeros(xs.size, dtype=bool)
    for window in range(N_WINDOWS):
        y_start = rows - (window + 1) * window_height
        y_end = rows - window * window_height
        left_start, left_end = left_x - margin, left_x + margin - 20
        right_start, right_end = right_x - margin + 20, right_x + margin
        rectangles.append((left_start, y_start, 2 * margin, window_height))
        rectangles.append((right_start, y_start, 2 * margin, window_height))

        in_rows = (ys >= y_start) & (ys < y_end)
        in_left = in_rows & (xs >= left_start) & (xs < left_end)
        in_right = in_rows & (xs >= right_start) & (xs < right_end)
        left_sel |= in_left
        right_sel |= in_right

        if int(in_left.sum()) > minpix:
            left_x = int(xs[in_left].sum()) // int(in_left.sum())
        if int(in_right.sum()) > minpix:
            right_x = int(xs[in_right].sum()) // int(in_right.sum())

    def fit(selected: np.ndarray) -> np.ndarray:
        if not selected.any():
            return np.zeros(2, dtype=np.float32)
        return poly_fit(ys[selected], xs[selected], 1).astype(np.float32)

    left_coeff = fit(left_sel)
    right_coeff = fit(right_sel)
    lc = left_coeff.astype(float)
    rc = right_coeff.astype(float)

    row = np.arange(rows, dtype=float)
    left_fit = lc[0] * row + lc[1]
    right_fit = rc[0] * row + rc[1]
    left_found = lc[0] != 0 or lc[1] != 0
    right_found = rc[0] != 0 or rc[1] != 0

    if left_found and right_found:
        center = (left_fit + right_fit) / 2.0
    elif left_found:
        center = left_fit + ROAD_WIDTH_PX
    elif right_found:
        center = right_fit - ROAD_WIDTH_PX
    else:
        center = previous[:rows].copy()
    if lc[0] < -SLOPE_THRESHOLD:
        center = left_fit + ROAD_WIDTH_PX
    if rc[0] > SLOPE_THRESHOLD:
        center = right_fit - ROAD_WIDTH_PX

    steer_point = (float(int(center[0])), 0.0)
    left_point = (float(int(left_fit[0])), 0.0)
    right_point = (float(int(right_fit[0])), 0.0)

    out = np.zeros((rows, cols, 3), dtype=np.uint8)
    for rect in rectangles:
        _draw_rect(out, *rect, WINDOW_COLOR)
    _draw_disc(out, int(steer_point[0]), 0, 10, STEER_COLOR)
    out[ys[left_sel], xs[left_sel]] = LEFT_COLOR
    out[ys[right_sel], xs[right_sel]] = RIGHT_COLOR
    for fitted, color in ((left_fit, LEFT_COLOR), (right_fit, RIGHT_COLOR), (center, CENTER_COLOR)):
        points = [(int(value), i) for i, value in enumerate(fitted.tolist())]
        _draw_polyline(out, points, color)

    return WindowResult(
        steer_point=steer_point,
        left_point=left_point,
        right_point=right_point,
        center_fit_x=center,
        left_coeff=left_coeff,
        right_coeff=right_coeff,
        image=out,
    )