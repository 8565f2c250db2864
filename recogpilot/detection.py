"""Bounding boxes and detected objects with the box checks used for matching."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


@dataclass(frozen=True)
class BBox:
    """Axis-aligned box in pixels: top-left corner and size."""

    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class DetectedObject:
    """One detector result: class label, confidence, box and optional mask.

    ``seg`` is the segmentation mask cropped to ``bbox`` when the detector
    provides one.
    """

    label: int
    score: float
    bbox: BBox
    seg: np.ndarray | None = field(default=None, compare=False, repr=False)


def bound_inner_check(present: BBox, target: BBox) -> bool:
    """Whether the top-left corner of ``target`` lies strictly inside ``present``."""
    diff_width = target.x - present.x
    diff_height = target.y - present.y
    inner_width = 0 < diff_width < present.width
    inner_height = 0 < diff_height < present.height
    return inner_width and inner_height


def bbox_norm1(a: BBox, b: BBox) -> int:
    """Manhattan distance between the top-left corners of two boxes."""
    return abs(a.x - b.x) + abs(a.y - b.y)