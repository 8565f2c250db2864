import numpy as np
import pytest

from recogpilot.detection import BBox, DetectedObject
from recogpilot.lane import METER_PER_COL, OUT_MAX_COLS, OUT_MAX_ROWS
from recogpilot.steering import (
    BEV_STEER_MAX,
    LaneTracker,
    compute_world_point,
    destination_points,
    select_lane_objects,
)


def _obj(x):
    return DetectedObject(label=1, score=0.9, bbox=BBox(x, 0, 10, 10))


def _bev():
    return np.zeros((OUT_MAX_ROWS, OUT_MAX_COLS, 3), dtype=np.uint8)


def test_world_point_of_top_centre():
    assert compute_world_point(OUT_MAX_COLS >> 1, 0) == pytest.approx((0.0, 4.866))


def test_world_point_scales_per_pixel():
    x0, y0 = compute_world_point(100, 10)
    x1, y1 = compute_world_point(101, 11)
    assert x1 - x0 == pytest.approx(METER_PER_COL)
    assert y0 - y1 == pytest.approx(0.01)


def test_destination_points_are_image_corners():
    assert destination_points() == [
        (0.0, 0.0),
        (float(OUT_MAX_COLS), 0.0),
        (float(OUT_MAX_COLS), float(OUT_MAX_ROWS)),
        (0.0, float(OUT_MAX_ROWS)),
    ]


def test_select_lane_objects_keeps_nearest_pair():
    objects = [_obj(x) for x in (200, 10, 230, 100, 50)]
    selected = select_lane_objects(objects, 120)
    assert [o.bbox.x for o in selected] == [100, 200]


def test_select_lane_objects_without_right_lane():
    objects = [_obj(x) for x in (10, 100, 50)]
    selected = select_lane_objects(objects, 120)
    assert [o.bbox.x for o in selected] == [100]


def test_select_lane_objects_empty():
    assert select_lane_objects([], 120) == []


def test_blank_frame_steers_straight():
    tracker = LaneTracker()
    output = tracker.track(_bev())
    assert output.steer == pytest.approx(0.0, abs=1e-12)
    assert output.left_lane_x == pytest.approx(-1.2)
    assert output.left_lane_x == pytest.approx(output.right_lane_x)
    assert tracker.frame.shape == (OUT_MAX_ROWS, OUT_MAX_COLS, 3)


def test_lane_on_left_steers_right_and_is_remembered():
    bev = _bev()
    bev[:, 78] = 255
    tracker = LaneTracker()
    first = tracker.track(bev)
    assert 0.0 < first.steer <= BEV_STEER_MAX
    assert np.allclose(tracker.history[0, :146], tracker.history[0, 0])
    second = tracker.track(_bev())
    assert second.steer == pytest.approx(first.steer)


def test_lane_on_right_steers_left():
    bev = _bev()
    bev[:, 200] = 255
    output = LaneTracker().track(bev)
    assert -BEV_STEER_MAX <= output.steer < 0.0


def test_grayscale_frame_accepted():
    gray = np.zeros((OUT_MAX_ROWS, OUT_MAX_COLS), dtype=np.uint8)
    gray[:, 78] = 255
    color = _bev()
    color[:, 78] = 255
    assert LaneTracker().track(gray).steer == pytest.approx(LaneTracker().track(color).steer)


def test_too_tall_frame_rejected():
    with pytest.raises(ValueError):
        LaneTracker().track(np.zeros((900, OUT_MAX_COLS, 3), dtype=np.uint8))


def test_too_short_frame_rejected():
    with pytest.raises(ValueError):
        LaneTracker().track(np.zeros((2, OUT_MAX_COLS, 3), dtype=np.uint8))