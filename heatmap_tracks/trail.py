"""Ordered trail polylines over the session samples.

The trail connects samples in temporal order. With ``close_only`` enabled a
sample further than ``max_segment_distance`` from the true previous sample is
not connected; how such gaps appear in the emitted vertices is set by the
:class:`GapPolicy`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence

import numpy as np

from .geometry import RGBA
from .records import RecordSet


class GapPolicy(str, Enum):
    # Drop unconnected samples from the emitted vertices.
    COMPACT = "compact"
    # Legacy: keep one vertex per sample, unconnected samples placed at the origin.
    ZERO_FILL = "zero_fill"


@dataclass(frozen=True, eq=False)
class Trail:
    vertices: np.ndarray
    segment_visible: np.ndarray
    source_indices: np.ndarray
    policy: GapPolicy = GapPolicy.COMPACT
    color: RGBA = (1.0, 1.0, 1.0, 1.0)
    width: float = 0.02
    connected: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=bool))

    def __len__(self) -> int:
        return len(self.vertices)

    def runs(self) -> List[np.ndarray]:
        """Split the trail into polylines of consecutive visible segments (each with >= 2 vertices)."""

        runs: List[np.ndarray] = []
        start = 0
        for k, visible in enumerate(self.segment_visible.tolist()):
            if not visible:
                if k - start >= 1:
                    runs.append(self.vertices[start : k + 1])
                start = k + 1
        if len(self.vertices) - start >= 2:
            runs.append(self.vertices[start:])
        return runs


def build_trail(
    points: RecordSet | np.ndarray | Sequence[Sequence[float]],
    close_only: bool,
    max_segment_distance: float,
    policy: GapPolicy = GapPolicy.COMPACT,
    color: RGBA = (1.0, 1.0, 1.0, 1.0),
    width: float = 0.02,
    source: str = "gaze",
) -> Trail:
    """
    Walk the samples in order and emit the trail.

    A sample is connected when it is the first one, when ``close_only`` is
    off, or when it lies within ``max_segment_distance`` of the previous
    sample. A segment is visible when both of its endpoints are connected and
    they are consecutive samples.
    """

    if isinstance(points, RecordSet):
        pts = points.positions(source)
    else:
        pts = np.asarray(points, dtype=float).reshape(-1, 3)
    policy = GapPolicy(policy)
    n = len(pts)

    connected = np.ones(n, dtype=bool)
    if close_only and n > 1:
        # Gating is always relative to the true previous sample, visible or not.
        steps = np.linalg.norm(pts[1:] - pts[:-1], axis=1)
        connected[1:] = steps <= max_segment_distance

    if policy is GapPolicy.COMPACT:
        source_indices = np.flatnonzero(connected)
        vertices = pts[source_indices].copy()
    else:
        source_indices = np.arange(n)
        vertices = np.where(connected[:, None], pts, 0.0)

    if len(source_indices) > 1:
        adjacent = np.diff(source_indices) == 1
        visible = adjacent & connected[source_indices[1:]] & connected[source_indices[:-1]]
    else:
        visible = np.zeros(0, dtype=bool)

    return Trail(
        vertices=vertices.reshape(-1, 3),
        segment_visible=visible,
        source_indices=source_indices,
        policy=policy,
        color=tuple(color),
        width=float(width),
        connected=connected,
    )
