"""Scan geometry, limits and tuning constants of the 2D LiDAR obstacle field."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum


class Angle(IntEnum):
    """Scan index of a bearing: 0.125 degree per step, 1080 straight ahead."""

    DEGREE_m90 = 1800
    DEGREE_m80 = 1720
    DEGREE_m60 = 1560
    DEGREE_m40 = 1400
    DEGREE_m30 = 1320
    DEGREE_0 = 1080
    DEGREE_30 = 840
    DEGREE_40 = 760
    DEGREE_60 = 600
    DEGREE_80 = 440
    DEGREE_90 = 360


# Number of scan points between +90 and -90 degrees.
ORIGINAL_INDEX = 1441
# Number of scan points between +40 and -40 degrees.
INTERESTED_INDEX = int(Angle.DEGREE_m40 - Angle.DEGREE_40) + 1

# Offset of +90 degrees in the raw scan.
DEGREE_OFFSET = int(Angle.DEGREE_90)
# Offset of +40 degrees inside the +90..-90 window.
INTERESTED_OFFSET = int(Angle.DEGREE_40 - Angle.DEGREE_90)

OBSERVE_DEGREE = 90.0
INTERESTED_DEGREE = 40.0

# Sensor specification.
MAX_RANGE = 10.0  # [m]
RESOLUTION = 0.125  # [degree]

DEG2RAD = math.pi / 180.0
RAD2DEG = 180.0 / math.pi

# Visualisation grid.
OFF_WIDTH = 501
OFF_HEIGHT = 251
GRID_SIZE = 0.05  # [m]

# Steering field.
RS = 3.0
SIGMA = 1.0
WEIGHT = 0.5

# Sensor mounting offsets.
LIDAR2CAMERA_TRANSLATION = 0.292  # [m]
CAMERA2GPS_TRANSLATION = 0.261  # [m]
LIDAR2GPS_TRANSLATION = 0.553  # [m]
OBSTACLE_THRESHOLD = 0.15  # [m]

# Circle approximation.
MIN_OBJECT_SIZE = 15
OBSTACLE_INDEX = int(ORIGINAL_INDEX / MIN_OBJECT_SIZE)
MEDIAN_SIZE = 15


@dataclass(frozen=True)
class Obstacle:
    """An obstacle approximated as a circle in the vehicle frame (x forward)."""

    x: float
    y: float
    r: float

    @property
    def distance(self) -> float:
        """Distance from the origin to the circle centre."""
        return math.hypot(self.x, self.y)


def x_to_uv(x: float) -> int:
    """Map a lateral offset in metres to an image column."""
    return int(OFF_WIDTH / 2.0 + x / GRID_SIZE)


def y_to_uv(y: float) -> int:
    """Map a forward distance in metres to an image row."""
    return int(OFF_HEIGHT - y / GRID_SIZE)