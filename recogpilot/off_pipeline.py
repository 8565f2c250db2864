"""One cycle of the obstacle-following field: cluster, flag and steer."""

from __future__ import annotations

import struct
from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar

import numpy as np

from .clustering import dbscan, process_clusters, steer_command
from .off_params import ORIGINAL_INDEX

_PACKET = struct.Struct("<b3xf")


@dataclass(frozen=True)
class Packet:
    """Flag and steering value exchanged with the path planner."""

    flag: int = 0
    data: float = 0.0

    SIZE: ClassVar[int] = _PACKET.size

    def pack(self) -> bytes:
        """Wire form: a signed byte, three pad bytes, a little-endian float."""
        try:
            return _PACKET.pack(self.flag, self.data)
        except struct.error as exc:
            raise ValueError(str(exc)) from exc

    @staticmethod
    def unpack(data: bytes) -> Packet:
        """Read a packet from the start of ``data``."""
        if len(data) < Packet.SIZE:
            raise ValueError(f"packet needs {Packet.SIZE} bytes, got {len(data)}")
        flag, value = _PACKET.unpack_from(data)
        return Packet(flag, value)


@dataclass(frozen=True, eq=False)
class StepResult:
    """Outcome of one scan: the flag and steer sent on, and what led to them."""

    flag: int
    steer: float
    labels: tuple[int, ...]
    num_label: int
    profile: np.ndarray

    @property
    def packet(self) -> Packet:
        return Packet(self.flag, self.steer)


class ObstacleFollower:
    """Turns scan windows into steering commands, remembering the last steer."""

    def __init__(self, rng: np.random.Generator | int | None = None) -> None:
        self._rng = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)
        self._steer = 0.0

    @property
    def steer(self) -> float:
        """The last steering command produced."""
        return self._steer

    def step(self, x: Sequence[float], y: Sequence[float], global_steer: float) -> StepResult:
        """Process one +90..-90 degree window of Cartesian scan points."""
        xs = np.asarray(x, dtype=float).ravel()
        ys = np.asarray(y, dtype=float).ravel()
        if xs.size != ORIGINAL_INDEX or ys.size != ORIGINAL_INDEX:
            raise ValueError(f"expected {ORIGINAL_INDEX} points in x and y")

        labels, num_label = dbscan(xs, ys, rng=self._rng)
        flag, profile = process_clusters(xs, ys, labels, num_label)
        self._steer = steer_command(profile, global_steer, self._steer)
        return StepResult(flag, self._steer, tuple(labels), num_label, profile)