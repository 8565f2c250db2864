"""Steering from the lane centre in the bird's-eye view of the lower camera."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

from .detection import DetectedObject
from .lane import METER_PER_COL, METER_PER_ROW, OUT_MAX_COLS, OUT_MAX_ROWS, sliding_window

# Lower camera intrinsics.
FX = 745.5741557364419
FY = 746.0437250295756
CX = 645.3469963983930
CY = 359.2217191875898
K1 = -0.310168356441994
K2 = 0.067011411982780
P1 = 0.0
P2 = 0.0

# Lower camera pose.
TRANS_Y = 0.0
CAM_X = 0.0
CAM_Y = 0.3
CAM_Z = 0.5
ROLL = 1.750756134537095
PITCH = -0.002
YAW = 0.0

MAX_FRAME_PREVIOUS = 1
FRAME_WIDTH = 1280
FRAME_HEIGHT = 720
ROI = 2

WHEEL_BASE = 1.175151  # [m]
BEV_STEER_MAX = 30.0  # [degree]
WHEEL2CAM = 1.420127  # [m]

# Distance from the camera to the top row of the bird's-eye view.
BEV_TOP_DISTANCE = 4.866  # [m]
STEER_GAIN = 6.0
LANE_MARGIN_PX = 50

N_ROIS = 3
WEIGHTS = (0.4, 0.3, 0.3)


@dataclass(frozen=True)
class LaneOutput:
    """Steering angle in degrees and lateral offsets of the lanes in metres."""

    steer: float = 0.0
    left_lane_x: float = 0.0
    right_lane_x: float = 0.0


def compute_world_point(u: float, v: float) -> tuple[float, float]:
    """Ground position (lateral, forward) in metres of a bird's-eye pixel."""
    world_x = (u - (OUT_MAX_COLS >> 1)) * METER_PER_COL
    world_y = BEV_TOP_DISTANCE - v * METER_PER_ROW
    return world_x, world_y


def destination_points() -> list[tuple[float, float]]:
    """Corners of the bird's-eye image, in the order of the projected road corners."""
    return [
        (0.0, 0.0),
        (float(OUT_MAX_COLS), 0.0),
        (float(OUT_MAX_COLS), float(OUT_MAX_ROWS)),
        (0.0, float(OUT_MAX_ROWS)),
    ]


def select_lane_objects(objects: Iterable[DetectedObject], mid: int) -> list[DetectedObject]:
    """Keep the detections from the nearest left lane to the nearest right lane.

    Detections are ordered by box x. The left lane is the rightmost one left of
    ``mid``; the right lane is the first one past ``mid`` plus a margin.
    """
    ordered = sorted(objects, key=lambda obj: obj.bbox.x)
    left = 0
    right = -1
    for idx, obj in enumerate(ordered):
        if obj.bbox.x >= ordered[left].bbox.x and obj.bbox.x < mid:
            left = idx
        if obj.bbox.x > mid + LANE_MARGIN_PX:
            right = idx
            break
    if right >= 0:
        ordered = ordered[: right + 1]
    return ordered[left:]


class LaneTracker:
    """Computes steering from segmented bird's-eye frames, three bands at a time.

    ``history`` keeps each band's last centre line for frames with no lane;
    ``frame`` is the annotated image of the last frame tracked.
    """

    def __init__(self) -> None:
        self.history = np.full((N_ROIS, OUT_MAX_COLS), OUT_MAX_COLS / 2.0)
        self.frame: np.ndarray | None = None

    def track(self, bev: np.ndarray) -> LaneOutput:
        """Steering and lane offsets for one segmented bird's-eye frame."""
        image = np.asarray(bev)
        if image.ndim == 2:
            image = np.repeat(image[..., None], 3, axis=2)
        elif not (image.ndim == 3 and image.shape[2] == 3):
            raise ValueError("bird's-eye frame must be single-channel or 3-channel")
        band_height = image.shape[0] // N_ROIS
        if band_height == 0:
            raise ValueError(f"bird's-eye frame needs at least {N_ROIS} rows")

        frame = image.astype(np.uint8, copy=True)
        center_y = 0.0
        left_x = 0.0
        right_x = 0.0
        world_center = (0.0, 0.0)

        for i, weight in enumerate(WEIGHTS):
            band = slice(i * band_height, (i + 1) * band_height)
            result = sliding_window(image[band], self.history, i)
            self.history[i, :band_height] = result.center_fit_x
            frame[band] = result.image

            world_center = compute_world_point(*result.steer_point)
            center_y += weight * world_center[1]
            left_x += weight * compute_world_point(*result.left_point)[0]
            right_x += weight * compute_world_point(*result.right_point)[0]

        # Look-ahead from the last band's lateral offset and the blended distance.
        look_ahead = math.hypot(world_center[0], center_y + WHEEL2CAM)
        alpha = math.atan2(world_center[0], world_center[1] + WHEEL2CAM)
        steer = STEER_GAIN * math.degrees(
            math.atan2(2.0 * WHEEL_BASE * math.sin(alpha), look_ahead)
        )
        steer = max(-BEV_STEER_MAX, min(BEV_STEER_MAX, steer))

        self.frame = frame
        return LaneOutput(steer, left_x, right_x)