"""Local neighbour density analysis for heatmap colouring.

Phase 1 computes, for every point, the distance to its nearest other point and
the number of other points closer than ``max_point_distance``. Phase 2 runs
only once every point's statistics are known: the neighbour counts are
normalised by the global maximum and each point is classified as clustered
(coloured along the low/high gradient) or isolated (failed colour).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Sequence, Tuple

import numpy as np
from joblib import Parallel, delayed
from scipy.spatial.distance import cdist

from .geometry import RGBA, lerp_color
from .records import RecordSet


class Classification(str, Enum):
    CLUSTERED = "clustered"
    ISOLATED = "isolated"


@dataclass(frozen=True)
class ClusterResult:
    """Density statistics and colour of one point."""

    neighbor_count: int
    nearest_distance: float
    density: float
    classification: Classification
    color: RGBA

    @property
    def is_clustered(self) -> bool:
        return self.classification is Classification.CLUSTERED


def _as_points(points: RecordSet | np.ndarray | Sequence[Sequence[float]], source: str) -> np.ndarray:
    if isinstance(points, RecordSet):
        return points.positions(source)
    return np.asarray(points, dtype=float).reshape(-1, 3)


def _chunk_statistics(
    points: np.ndarray, start: int, stop: int, max_point_distance: float
) -> Tuple[np.ndarray, np.ndarray]:
    """Neighbour counts and nearest distances for rows [start, stop) against all points."""

    block = cdist(points[start:stop], points, metric="euclidean")
    rows = np.arange(stop - start)
    # A point is never its own neighbour; duplicates at distance 0 still count.
    block[rows, start + rows] = np.inf
    nearest = block.min(axis=1)
    counts = np.count_nonzero(block < max_point_distance, axis=1)
    return counts.astype(int), nearest


def neighbor_statistics(
    points: RecordSet | np.ndarray | Sequence[Sequence[float]],
    max_point_distance: float,
    n_jobs: int = 1,
    chunk_size: int = 1024,
    source: str = "gaze",
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Phase 1: return (neighbor_counts, nearest_distances), one entry per point.

    Rows are processed in chunks of ``chunk_size`` so the distance block stays
    bounded in memory; with ``n_jobs != 1`` chunks run in parallel via joblib.
    The nearest distance of a lone point is ``inf``.
    """

    pts = _as_points(points, source)
    n = len(pts)
    if n == 0:
        return np.zeros(0, dtype=int), np.zeros(0, dtype=float)

    chunk_size = max(int(chunk_size), 1)
    bounds = [(start, min(start + chunk_size, n)) for start in range(0, n, chunk_size)]
    # TODO: bucket points into a grid of max_point_distance cells so each chunk only scans adjacent cells.
    if n_jobs == 1 or len(bounds) == 1:
        parts = [_chunk_statistics(pts, start, stop, max_point_distance) for start, stop in bounds]
    else:
        parts = Parallel(n_jobs=n_jobs)(
            delayed(_chunk_statistics)(pts, start, stop, max_point_distance) for start, stop in bounds
        )

    counts = np.concatenate([part[0] for part in parts])
    nearest = np.concatenate([part[1] for part in parts])
    return counts, nearest


def classify(
    counts: np.ndarray,
    nearest: np.ndarray,
    max_point_distance: float,
    min_cluster_size: int,
    color_low: RGBA,
    color_high: RGBA,
    failed_color: RGBA,
) -> List[ClusterResult]:
    """Phase 2: normalise counts by the global maximum and classify every point."""

    counts = np.asarray(counts, dtype=int)
    nearest = np.asarray(nearest, dtype=float)
    global_max = int(counts.max()) if len(counts) else 0

    results: List[ClusterResult] = []
    for count, near in zip(counts.tolist(), nearest.tolist()):
        if near > max_point_distance or count < min_cluster_size:
            results.append(ClusterResult(count, near, 0.0, Classification.ISOLATED, tuple(failed_color)))
            continue
        density = min(count / global_max, 1.0) if global_max > 0 else 0.0
        results.append(
            ClusterResult(
                count,
                near,
                density,
                Classification.CLUSTERED,
                lerp_color(color_low, color_high, density),
            )
        )
    return results


def analyze(
    points: RecordSet | np.ndarray | Sequence[Sequence[float]],
    max_point_distance: float,
    min_cluster_size: int,
    color_low: RGBA,
    color_high: RGBA,
    failed_color: RGBA,
    n_jobs: int = 1,
    chunk_size: int = 1024,
    source: str = "gaze",
) -> List[ClusterResult]:
    """
    Classify every point by local neighbour density.

    Returns one ClusterResult per input point, in input order. Points farther
    than ``max_point_distance`` from all others, or with fewer than
    ``min_cluster_size`` neighbours, are isolated and get ``failed_color``.
    """

    counts, nearest = neighbor_statistics(
        points, max_point_distance, n_jobs=n_jobs, chunk_size=chunk_size, source=source
    )
    results = classify(counts, nearest, max_point_distance, min_cluster_size, color_low, color_high, failed_color)
    if results:
        logging.info(
            "Density analysis: %d points, max neighbour count %d",
            len(results),
            int(counts.max()),
        )
    return results


def summarize(results: Sequence[ClusterResult]) -> Dict[str, int]:
    """Counts of clustered and isolated points plus the global maximum neighbour count."""

    clustered = sum(1 for r in results if r.is_clustered)
    return {
        "n_points": len(results),
        "n_clustered": clustered,
        "n_isolated": len(results) - clustered,
        "global_max_neighbor_count": max((r.neighbor_count for r in results), default=0),
    }
