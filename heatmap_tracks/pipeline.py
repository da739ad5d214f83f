"""High-level orchestration of the heatmap pipeline.

Loads (or receives) a record set, culls it, then derives the coloured point
sprites and the optional trail for a downstream renderer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .config import HeatmapConfig, VisualizationMode
from .culling import cull_records
from .density import ClusterResult, analyze, summarize
from .geometry import RGBA, Vector3
from .io import load_records
from .records import RecordSet
from .trail import Trail, build_trail


@dataclass(frozen=True)
class PointSprite:
    """One renderable point: position, colour and size."""

    position: Vector3
    color: RGBA
    size: float


@dataclass(frozen=True)
class HeatmapOutput:
    records: RecordSet
    points: List[PointSprite]
    clusters: List[ClusterResult] = field(default_factory=list)
    trail: Optional[Trail] = None


class HeatmapPipeline:
    """Coordinate culling, density analysis and trail construction for one run."""

    def __init__(self, config: HeatmapConfig) -> None:
        self.config: HeatmapConfig = config
        self.logger: logging.Logger = logging.getLogger(self.__class__.__name__)

    def load(self, path: str | Path | None = None) -> RecordSet:
        """Read the session log named by ``path`` or, if omitted, by the input config."""

        input_cfg = self.config.input
        target = path if path is not None else input_cfg.file
        if target is None:
            raise ValueError("No input file given and input.file is not configured.")
        return load_records(
            target,
            separator=input_cfg.separator,
            decimal=input_cfg.decimal,
            schema=self.config.schema,
            data_dir=input_cfg.data_dir,
        )

    def run(self, records: RecordSet) -> HeatmapOutput:
        """Execute culling, then density colouring and the trail on the culled set."""

        cfg = self.config
        source = cfg.source
        culled = cull_records(records, cfg.culling, source=source)
        if len(culled) == 0:
            self.logger.info("No records left to visualise")
        positions = culled.positions(source)

        clusters: List[ClusterResult] = []
        if cfg.mode is VisualizationMode.HEATMAP:
            clusters = analyze(
                positions,
                max_point_distance=cfg.density.max_point_distance,
                min_cluster_size=cfg.density.min_cluster_size,
                color_low=cfg.colors.low,
                color_high=cfg.colors.high,
                failed_color=cfg.colors.failed,
                n_jobs=cfg.density.n_jobs,
                chunk_size=cfg.density.chunk_size,
            )
            colors = [result.color for result in clusters]
            stats = summarize(clusters)
            self.logger.info(
                "Classified %d clustered and %d isolated points",
                stats["n_clustered"],
                stats["n_isolated"],
            )
        else:
            colors = [cfg.colors.point] * len(culled)

        points = [
            PointSprite(position=(float(p[0]), float(p[1]), float(p[2])), color=color, size=cfg.point_size)
            for p, color in zip(positions, colors)
        ]

        trail: Optional[Trail] = None
        if cfg.trail.draw:
            trail = build_trail(
                positions,
                close_only=cfg.trail.close_only,
                max_segment_distance=cfg.trail.max_segment_distance,
                policy=cfg.trail.gap_policy,
                color=cfg.trail.color,
                width=cfg.trail.width,
            )
            self.logger.info(
                "Trail has %d vertices, %d visible segments (%s policy)",
                len(trail),
                int(trail.segment_visible.sum()),
                trail.policy.value,
            )

        return HeatmapOutput(records=culled, points=points, clusters=clusters, trail=trail)

    def run_file(self, path: str | Path | None = None) -> HeatmapOutput:
        """Load the session log and run the pipeline on it."""

        return self.run(self.load(path))
