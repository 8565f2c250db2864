"""Traffic light state voting over the detections of successive frames."""

from __future__ import annotations

from collections.abc import Iterable
from enum import IntEnum

# Frames without a detection after which the vote starts over.
MAX_MISSED_FRAMES = 30
# Detected frames needed before the vote is decided.
MIN_VOTE_FRAMES = 40
# Votes a light needs to be chosen.
MIN_LIGHT_VOTES = 30

NO_LIGHT = -1


class LightLabel(IntEnum):
    """Class labels of the traffic light detector."""

    G4 = 0
    GL4 = 1
    R4 = 2
    RL3 = 3
    RL4 = 4
    Y4 = 5


LIGHT_COLORS = {
    LightLabel.G4: (0, 165, 255),
    LightLabel.GL4: (0, 255, 255),
    LightLabel.R4: (0, 255, 0),
    LightLabel.RL3: (255, 255, 0),
    LightLabel.RL4: (255, 123, 0),
    LightLabel.Y4: (255, 0, 0),
}


def light_state_text(label: int) -> str:
    """Caption shown for a decided light state; -1 means no light."""
    if label == NO_LIGHT:
        return "light_state: NONE"
    try:
        return f"light_state: {LightLabel(label).name}"
    except ValueError:
        return "Unknown Light"


class TrafficLightVoter:
    """Counts detected light labels frame by frame and decides the light state.

    After more than 40 frames with detections, the label seen at least 30
    times (the most often, the lowest on a tie) is decided and the counts
    start over. More than 30 frames in a row without detections also clear
    the counts.
    """

    def __init__(self) -> None:
        self._votes = [0] * len(LightLabel)
        self._frames = 0
        self._missed = 0
        self.flag = 0
        self.state: int | None = None

    @property
    def votes(self) -> tuple[int, ...]:
        """Votes counted for each light label since the last decision."""
        return tuple(self._votes)

    @property
    def frames(self) -> int:
        """Detected frames counted since the last decision."""
        return self._frames

    @property
    def missed(self) -> int:
        """Frames in a row without a detection."""
        return self._missed

    def _reset(self) -> None:
        self._votes = [0] * len(LightLabel)
        self._frames = 0

    def update(self, labels: Iterable[int] | None) -> int | None:
        """Add one frame's labels, or None when the detector found nothing.

        Returns the decided label (-1 for none) when the vote closes on this
        frame, otherwise None. ``flag`` is set to -1 for a frame without a
        detection and 0 otherwise.
        """
        if self._missed > MAX_MISSED_FRAMES:
            self._reset()

        if labels is None:
            self._missed += 1
            self.flag = -1
            return None

        self._missed = 0
        self.flag = 0
        for label in labels:
            if 0 <= label < len(self._votes):
                self._votes[label] += 1
        self._frames += 1

        if self._frames <= MIN_VOTE_FRAMES:
            return None

        best = NO_LIGHT
        for idx, count in enumerate(self._votes):
            if count < MIN_LIGHT_VOTES:
                continue
            if best == NO_LIGHT or count > self._votes[best]:
                best = idx
        self._reset()
        self.state = best
        return best