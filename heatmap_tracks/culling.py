"""Working-set reduction ahead of density analysis and trail construction.

Records can be restricted to an inclusive index range and/or to the samples
whose position lies inside an axis-aligned bounding volume. Inconsistent
settings never raise: the affected reduction is skipped with a warning.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import numpy as np

from .geometry import BoundingVolume
from .records import RecordSet

if TYPE_CHECKING:
    from .config import CullingConfig


def range_cull(records: RecordSet, start: int, stop: int) -> RecordSet:
    """
    Keep the records with index in [start, stop], both inclusive.
    Invalid ranges (start >= stop, start past the end, stop beyond len) return the input unchanged.
    """

    n = len(records)
    if not (n > start and n >= stop and start < stop) or start < 0:
        logging.warning("Ignoring cull range [%d, %d] for %d records", start, stop, n)
        return records

    culled = records.take(np.arange(start, min(stop, n - 1) + 1))
    logging.info("Culled by range from %d to %d records", n, len(culled))
    return culled


def volume_cull(records: RecordSet, box: BoundingVolume, source: str = "gaze") -> RecordSet:
    """Keep the records whose position (of the given source) lies inside the box, bounds inclusive."""

    if box.is_degenerate:
        logging.warning("Ignoring degenerate cull volume min=%s max=%s", box.min, box.max)
        return records

    mask = box.contains(records.positions(source))
    culled = records.take(mask)
    logging.info("Culled by volume from %d to %d records", len(records), len(culled))
    return culled


def cull_records(records: RecordSet, cfg: "CullingConfig", source: str = "gaze") -> RecordSet:
    """Apply the enabled reductions: range first, then volume on the range result."""

    if not cfg.by_range and not cfg.by_volume:
        return records

    culled = records
    if cfg.by_range:
        culled = range_cull(culled, cfg.range_from, cfg.range_to)
    if cfg.by_volume:
        volume: Optional[BoundingVolume] = cfg.volume
        if volume is None:
            logging.warning("Volume culling enabled without a volume; skipping")
        else:
            culled = volume_cull(culled, volume, source=source)
    return culled
