# recogpilot

Perception logic for a small autonomous vehicle, in Python on top of NumPy.
The package works on data that has already been acquired: LiDAR scans as
arrays, detector results as `DetectedObject` values, and segmented
bird's-eye-view masks as images. From these it produces steering commands and
mission flags.

## Modules

### Obstacle following with a 2D LiDAR

- `recogpilot.off_params`: the scan geometry and tuning constants. A scan
  step is 0.125 degrees, the +90..-90 degree window holds `ORIGINAL_INDEX`
  (1441) points, and `MAX_RANGE` is 10 m. The module also provides the `Angle`
  index enum, the `Obstacle` circle (`x`, `y`, `r` and a `distance` property),
  and `x_to_uv` / `y_to_uv` for mapping metres onto a grid image.
- `recogpilot.lsh.LSH`: random-hyperplane locality-sensitive hashing of 2D
  points. `nearest_neighbor(idx, eps)` returns the points that share a bucket
  with point `idx` and lie within `eps` of it.
- `recogpilot.clustering`:
  - `dbscan(x, y, ...)` labels scan-ordered points. It returns `(labels, groups)`,
    where noise is labelled -1 and groups are numbered from 1.
  - `cluster_obstacles` turns each group into an `Obstacle` and adds a margin
    that depends on the bearing (`calculate_margin`).
  - `circle_approximation` gives the free range along every scan bearing.
  - `steer_command(off, sff_degree, previous)` blends that range profile with
    a Gaussian centred on the requested steer. It returns the best bearing
    within ±40 degrees, or `previous` when no score is positive.
  - `u_turn_flag` and `min_radius_turn_flag` return `U_TURN_FLAG`,
    `MIN_RADIUS_FLAG`, `CRASH_FLAG` or 0.
  - `process_clusters` returns the minimum-radius flag together with the range
    profile.
- `recogpilot.circle_approx`: the alternative path, working from polar scans.
  - `median_filter` filters the +90..-90 degree window of a raw scan.
  - `find_obstacle_segments` splits the filtered window into `Segment`s.
  - `fit_obstacles` fits a circle to each segment.
  - `range_profile` builds the free-range profile.
  - `circle_approx(angles, ranges)` runs all of these steps.
- `recogpilot.off_pipeline`:
  - `ObstacleFollower.step(x, y, global_steer)` runs DBSCAN, clustering, the
    flag check and steering on one 1441-point window. It returns a
    `StepResult` with `flag`, `steer`, `labels`, `num_label`, `profile` and a
    `packet` property.
  - `Packet.pack()` / `Packet.unpack()` handle the wire form: a signed byte,
    three pad bytes, then a little-endian float.
- `recogpilot.control_link`:
  - `ControlLink(host, port, timeout)` is a UDP client.
  - `start()` launches a background thread that keeps the most recent
    `RecvPacket`. Read it with `latest()`.
  - `send(SendPacket)` transmits a packet.
  - `close()` stops the thread and closes the socket. The link also works as
    a context manager.

### Lane tracking with the lower camera

- `recogpilot.camera_params`:
  - Calibration values: `camera_matrix()`, `dist_coeffs()`, `extrinsics()`
    and `world_corners()`.
  - `project_points`: a pinhole model with radial and tangential distortion.
  - `compute_point4bev` and `perspective_transform`.
  - `bev_transform()`: the 3×3 homography from the undistorted camera image to
    the 240×440 bird's-eye view.
- `recogpilot.lane`:
  - `poly_fit(x, y, n)`: a least-squares polynomial, highest power first.
  - `sliding_window(bev_roi, prev_center_fit_x, roi_num)` finds the left and
    right lane lines and the road centre in one band. It returns a
    `WindowResult` that includes an annotated BGR image.
- `recogpilot.steering`:
  - `LaneTracker.track(bev)` splits a segmented bird's-eye frame into three
    bands and weights them. It returns a `LaneOutput` with the steer in
    degrees (clamped to ±30) and the left and right lane offsets in metres.
  - The annotated frame is kept in `LaneTracker.frame`.
  - `select_lane_objects` keeps the detections from the nearest left lane to
    the nearest right lane.
  - `compute_world_point` maps a bird's-eye pixel to ground metres.

### Mission logic with the upper camera

- `recogpilot.detection`: `BBox`, `DetectedObject`, `bound_inner_check` and
  `bbox_norm1`.
- `recogpilot.delivery`:
  - `classify_objects` and `verify_object` match number signs to sign boards
    that carry a letter.
  - `DeliveryTracker.process(objects)` returns a target once the same number
    sign has been seen in 20 frames.
  - `DeliveryTracker.check_stop(distance)` returns 1 at the pick-up sign (and
    moves to stage B) and 2 at the drop-off sign, both within 2 m. Otherwise
    it returns 0.
- `recogpilot.traffic_light`:
  - `TrafficLightVoter.update(labels)` counts detected `LightLabel`s frame by
    frame. Once more than 40 frames have been counted, it decides a state.
  - `light_state_text` gives the caption for a decided state.

## Installation

```
pip install .
```

To install and run the tests:

```
pip install ".[test]"
pytest
```

## Examples

```python
import numpy as np
from recogpilot.off_pipeline import ObstacleFollower

bearings = np.radians(90.0 - 0.125 * np.arange(1441))
ranges = np.full(1441, 10.0)
x, y = ranges * np.cos(bearings), ranges * np.sin(bearings)

follower = ObstacleFollower(rng=0)
result = follower.step(x, y, global_steer=5.0)
print(result.steer, result.flag, result.packet.pack())
```

```python
import numpy as np
from recogpilot.steering import LaneTracker

mask = np.zeros((440, 240), dtype=np.uint8)   # segmented bird's-eye view
mask[:, 55:60] = 255                          # a left lane line
output = LaneTracker().track(mask)
print(output.steer, output.left_lane_x, output.right_lane_x)
```

```python
from recogpilot.traffic_light import TrafficLightVoter, light_state_text

voter = TrafficLightVoter()
state = voter.update([2])        # labels detected in this frame; None if nothing
print(light_state_text(state) if state is not None else "collecting")
```

## What the package does not do

- It does not drive any hardware. There is no camera capture, no LiDAR
  driver, and no 3D LiDAR distance measurement. `DeliveryTracker.check_stop`
  expects the distance to be supplied by the caller.
- It runs no object detector. Lane, sign and light detections must be passed
  in as `DetectedObject` values.
- It does not undistort or warp images. `bev_transform` returns the
  homography only.
- It has no display windows and does no video recording. The annotated
  images are returned as arrays.
- It ships no command-line program or main loop. The caller combines the
  pieces and supplies the network addresses to `ControlLink`.