"""Locality-sensitive hashing of 2D points with random hyperplanes."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

_MASK = (1 << 64) - 1


class LSH:
    """Buckets points by the signs of their projections on random hyperplanes.

    The key of each table continues from the key of the previous table,
    kept to 64 bits.
    """

    def __init__(
        self,
        x: Sequence[float],
        y: Sequence[float],
        num_hyperplanes: int,
        num_tables: int = 1,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        xs = np.asarray(x, dtype=float).ravel()
        ys = np.asarray(y, dtype=float).ravel()
        if xs.shape != ys.shape:
            raise ValueError("x and y must have the same length")
        if num_hyperplanes < 0 or num_tables < 0:
            raise ValueError("hyperplane and table counts must not be negative")

        gen = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)
        self._planes = gen.standard_normal((num_tables, num_hyperplanes, 2))
        self._x = xs.tolist()
        self._y = ys.tolist()
        self._keys = [self._hash(px, py) for px, py in zip(self._x, self._y)]

        self._tables: list[dict[int, list[int]]] = [{} for _ in range(num_tables)]
        for idx, keys in enumerate(self._keys):
            for table, key in zip(self._tables, keys):
                table.setdefault(key, []).append(idx)

    def __len__(self) -> int:
        return len(self._x)

    def _hash(self, px: float, py: float) -> tuple[int, ...]:
        signs = (self._planes[..., 0] * px + self._planes[..., 1] * py) >= 0
        value = 0
        keys = []
        for row in signs.tolist():
            for bit in row:
                value = ((value << 1) | int(bit)) & _MASK
            keys.append(value)
        return tuple(keys)

    def nearest_neighbor(self, idx: int, eps: float) -> list[int]:
        """Indices sharing a bucket with point ``idx`` and within ``eps`` of it.

        A point found in several tables is listed once per table.
        """
        if not 0 <= idx < len(self._x):
            raise IndexError(f"point index {idx} out of range")
        px = self._x[idx]
        py = self._y[idx]
        found = []
        for table, key in zip(self._tables, self._keys[idx]):
            for other in table.get(key, ()):
                if other != idx and math.hypot(px - self._x[other], py - self._y[other]) <= eps:
                    found.append(other)
        return found