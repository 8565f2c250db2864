"""Delivery sign recognition: matching letter and number signs and locking a target."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import IntEnum

from .detection import BBox, DetectedObject, bbox_norm1, bound_inner_check

DETECTED_OBJECT_MINIMUM_SCORE = 0.75
OBJECT_MATCH_THRESHOLD = 20
MIN_COUNT_FRAME = 20
DELIVERY_STOP_THRESHOLD = 2.0  # [m]


class SignLabel(IntEnum):
    """Class labels of the sign detector."""

    NONE = 0
    SIGN_1 = 1
    SIGN_2 = 2
    SIGN_3 = 3
    SIGN_A = 4
    SIGN_B = 5
    SIGN_BOX = 6


_ALPHABET = {SignLabel.SIGN_A: "A", SignLabel.SIGN_B: "B"}
_NUMBERS = (SignLabel.SIGN_1, SignLabel.SIGN_2, SignLabel.SIGN_3)


@dataclass(frozen=True)
class DeliveryState:
    """Letter found on a sign board and index of the matching number sign (-1: none)."""

    labels: str = ""
    sign_num_idx: int = -1


def classify_objects(
    objects: Iterable[DetectedObject],
) -> tuple[list[DetectedObject], list[DetectedObject], list[DetectedObject]]:
    """Split confident detections into sign boards, letters and numbers."""
    signs: list[DetectedObject] = []
    signs_alp: list[DetectedObject] = []
    signs_num: list[DetectedObject] = []
    for obj in objects:
        if obj.score <= DETECTED_OBJECT_MINIMUM_SCORE:
            continue
        if obj.label == SignLabel.SIGN_BOX:
            signs.append(obj)
        elif obj.label in _ALPHABET:
            signs_alp.append(obj)
        elif obj.label in _NUMBERS:
            signs_num.append(obj)
    return signs, signs_alp, signs_num


def verify_object(
    signs: Sequence[DetectedObject],
    signs_alp: Sequence[DetectedObject],
    signs_num: Sequence[DetectedObject],
    confirmed: SignLabel,
    delivery_spot: int,
) -> DeliveryState:
    """Find a number sign on a board that also carries a letter.

    Any letter inside a board marks it with the letter of the ``confirmed``
    stage; once marked, the mark carries over to later boards. In stage B the
    number must equal ``delivery_spot``.
    """
    labels = ""
    for sign in signs:
        for alp in signs_alp:
            if bound_inner_check(sign.bbox, alp.bbox):
                labels = _ALPHABET.get(confirmed, "")
        if not labels:
            continue
        for idx, num in enumerate(signs_num):
            if not bound_inner_check(sign.bbox, num.bbox):
                continue
            if confirmed == SignLabel.SIGN_B and num.label != delivery_spot:
                continue
            if confirmed in _ALPHABET:
                return DeliveryState(labels, idx)
    return DeliveryState(labels, -1)


class DeliveryTracker:
    """Follows the delivery mission from pick-up sign A to drop-off sign B."""

    def __init__(self) -> None:
        self.confirmed = SignLabel.SIGN_A
        self.delivery_spot = 0
        self.detection_frame_count = 0
        self._last = DetectedObject(int(SignLabel.NONE), 0.0, BBox(0, 0, 0, 0))

    def lock(self, sign_num: DetectedObject) -> DetectedObject | None:
        """Count frames the same number sign stays put; return it once stable.

        In stage A the stable sign's number becomes the delivery spot.
        """
        if bbox_norm1(sign_num.bbox, self._last.bbox) <= OBJECT_MATCH_THRESHOLD:
            self.detection_frame_count += 1
        else:
            self.detection_frame_count = 1
        self._last = sign_num

        if self.detection_frame_count < MIN_COUNT_FRAME:
            return None
        if self.confirmed == SignLabel.SIGN_A:
            self.delivery_spot = sign_num.label
        return sign_num

    def process(self, objects: Iterable[DetectedObject]) -> DetectedObject | None:
        """Handle one frame of detections; returns the locked target, if any."""
        signs, signs_alp, signs_num = classify_objects(objects)
        state = verify_object(signs, signs_alp, signs_num, self.confirmed, self.delivery_spot)
        if state.sign_num_idx == -1:
            self.detection_frame_count = 0
            return None
        target = self.lock(signs_num[state.sign_num_idx])
        if target is None or not target.bbox.x:
            return None
        return target

    def check_stop(self, distance: float) -> int:
        """Stop flag for a target at ``distance`` metres ahead.

        1 at the pick-up sign (moving on to stage B), 2 at the drop-off sign,
        0 otherwise. A distance of 0 means no measurement.
        """
        if not distance or abs(distance) > DELIVERY_STOP_THRESHOLD:
            return 0
        if self.confirmed == SignLabel.SIGN_A:
            self.confirmed = SignLabel.SIGN_B
            return 1
        if self.confirmed == SignLabel.SIGN_B:
            return 2
        return 0