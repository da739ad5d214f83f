"""Shared geometry and colour helpers for the heatmap pipeline.

Holds the axis-aligned bounding volume used for culling and RGBA colour
normalisation/interpolation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
from matplotlib.colors import to_rgba as _mpl_to_rgba

Vector3 = Tuple[float, float, float]
RGBA = Tuple[float, float, float, float]


def _as_vector3(values: Sequence[float], name: str) -> Vector3:
    if len(values) != 3:
        raise ValueError(f"{name} must have exactly 3 coordinates, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


@dataclass(frozen=True)
class BoundingVolume:
    """Axis-aligned box given by its minimum and maximum corners."""

    min: Vector3
    max: Vector3

    def __post_init__(self) -> None:
        object.__setattr__(self, "min", _as_vector3(self.min, "min"))
        object.__setattr__(self, "max", _as_vector3(self.max, "max"))

    @classmethod
    def from_center_size(cls, center: Sequence[float], size: Sequence[float]) -> "BoundingVolume":
        """Build a box from its centre and full edge lengths (collider-style bounds)."""

        c = np.asarray(_as_vector3(center, "center"))
        half = np.asarray(_as_vector3(size, "size")) / 2.0
        return cls(min=tuple(c - half), max=tuple(c + half))

    @property
    def is_degenerate(self) -> bool:
        """True when any minimum exceeds its maximum; such a box contains nothing."""

        return any(lo > hi for lo, hi in zip(self.min, self.max))

    def contains(self, points: np.ndarray) -> np.ndarray:
        """
        Return a boolean mask of points inside the box, bounds inclusive.
        Every axis is tested against its own min/max.
        """

        pts = np.asarray(points, dtype=float).reshape(-1, 3)
        lower = np.asarray(self.min, dtype=float)
        upper = np.asarray(self.max, dtype=float)
        return np.all((pts >= lower) & (pts <= upper), axis=1)


def to_rgba(color: object) -> RGBA:
    """Normalise any matplotlib colour spec (name, hex, RGB/RGBA list) to an RGBA float tuple."""

    if isinstance(color, (list, tuple)):
        color = tuple(float(c) for c in color)
    r, g, b, a = _mpl_to_rgba(color)
    return (float(r), float(g), float(b), float(a))


def lerp_color(low: RGBA, high: RGBA, t: float) -> RGBA:
    """Linear interpolation between two RGBA colours, t clamped to [0, 1]."""

    t = min(max(float(t), 0.0), 1.0)
    lo = np.asarray(low, dtype=float)
    hi = np.asarray(high, dtype=float)
    mixed = lo * (1.0 - t) + hi * t
    return tuple(float(c) for c in mixed)  # type: ignore[return-value]
