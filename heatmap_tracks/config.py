"""Configuration helpers for the heatmap pipeline.

Provides YAML loading, nested-value access with defaults, and conversion of the
raw mapping into an immutable :class:`HeatmapConfig` that is passed explicitly
to every pipeline step.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .geometry import RGBA, BoundingVolume, to_rgba
from .records import RecordSchema
from .trail import GapPolicy


class VisualizationMode(str, Enum):
    HEATMAP = "heatmap"
    PATH = "path"


@dataclass(frozen=True)
class InputConfig:
    file: Optional[str] = None
    data_dir: Optional[str] = None
    separator: str = ","
    decimal: str = "."


@dataclass(frozen=True)
class CullingConfig:
    by_range: bool = False
    range_from: int = 0
    range_to: int = 0
    by_volume: bool = False
    volume: Optional[BoundingVolume] = None


@dataclass(frozen=True)
class DensityConfig:
    max_point_distance: float = 0.05
    min_cluster_size: int = 5
    n_jobs: int = 1
    chunk_size: int = 1024


@dataclass(frozen=True)
class ColorConfig:
    low: RGBA = (1.0, 1.0, 1.0, 1.0)
    high: RGBA = (1.0, 0.0, 0.0, 1.0)
    failed: RGBA = (0.5, 0.5, 0.5, 1.0)
    point: RGBA = (1.0, 1.0, 1.0, 1.0)


@dataclass(frozen=True)
class TrailConfig:
    draw: bool = False
    close_only: bool = False
    max_segment_distance: float = 1.0
    color: RGBA = (1.0, 1.0, 1.0, 1.0)
    width: float = 0.02
    gap_policy: GapPolicy = GapPolicy.COMPACT


@dataclass(frozen=True)
class OutputConfig:
    save_plot: bool = False
    dir: str = "output"
    figure_name: str = "heatmap.png"


@dataclass(frozen=True)
class HeatmapConfig:
    """Strongly-typed, immutable settings for one pipeline run."""

    input: InputConfig = field(default_factory=InputConfig)
    mode: VisualizationMode = VisualizationMode.HEATMAP
    schema: RecordSchema = field(default_factory=RecordSchema)
    culling: CullingConfig = field(default_factory=CullingConfig)
    density: DensityConfig = field(default_factory=DensityConfig)
    colors: ColorConfig = field(default_factory=ColorConfig)
    point_size: float = 0.075
    trail: TrailConfig = field(default_factory=TrailConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @property
    def source(self) -> str:
        """Position triple driving culling, colouring and the trail."""

        return "gaze" if self.mode is VisualizationMode.HEATMAP else "position"


def load_config(path: str | Path) -> Dict[str, Any]:
    """Load a YAML configuration file."""

    with Path(path).open("r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def get_nested(config: Dict[str, Any], keys: list[str], default: Any) -> Any:
    """Retrieve a nested value from a config dict with a default."""

    current: Any = config
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


def _parse_volume(volume_cfg: Optional[Dict[str, Any]]) -> Optional[BoundingVolume]:
    if not volume_cfg:
        return None
    if "center" in volume_cfg:
        return BoundingVolume.from_center_size(volume_cfg["center"], volume_cfg.get("size", [0, 0, 0]))
    if "min" not in volume_cfg or "max" not in volume_cfg:
        raise ValueError("culling.volume needs 'min' and 'max' (or 'center' and 'size').")
    return BoundingVolume(min=tuple(volume_cfg["min"]), max=tuple(volume_cfg["max"]))


def _parse_schema(schema_cfg: Dict[str, Any]) -> RecordSchema:
    defaults = RecordSchema()
    position = schema_cfg.get("position", defaults.position)
    gaze = schema_cfg.get("gaze", defaults.gaze)
    return RecordSchema(
        position=tuple(position) if position is not None else None,
        gaze=tuple(gaze) if gaze is not None else None,
    )


def config_from_dict(cfg: Dict[str, Any]) -> HeatmapConfig:
    """Build a :class:`HeatmapConfig` from a raw (YAML) mapping; missing keys take defaults."""

    cfg = cfg or {}
    input_cfg = cfg.get("input", {}) or {}
    culling_cfg = cfg.get("culling", {}) or {}
    density_cfg = cfg.get("density", {}) or {}
    colors_cfg = cfg.get("colors", {}) or {}
    trail_cfg = cfg.get("trail", {}) or {}
    output_cfg = cfg.get("output", {}) or {}
    color_defaults = ColorConfig()
    trail_defaults = TrailConfig()

    try:
        mode = VisualizationMode(str(cfg.get("mode", "heatmap")).lower())
        gap_policy = GapPolicy(str(trail_cfg.get("gap_policy", "compact")).lower())
    except ValueError as exc:
        raise ValueError(f"Invalid configuration value: {exc}") from exc

    return HeatmapConfig(
        input=InputConfig(
            file=input_cfg.get("file"),
            data_dir=input_cfg.get("data_dir"),
            separator=str(input_cfg.get("separator", ",")),
            decimal=str(input_cfg.get("decimal", ".")),
        ),
        mode=mode,
        schema=_parse_schema(cfg.get("schema", {}) or {}),
        culling=CullingConfig(
            by_range=bool(culling_cfg.get("by_range", False)),
            range_from=int(culling_cfg.get("range_from", 0)),
            range_to=int(culling_cfg.get("range_to", 0)),
            by_volume=bool(culling_cfg.get("by_volume", False)),
            volume=_parse_volume(culling_cfg.get("volume")),
        ),
        density=DensityConfig(
            max_point_distance=float(density_cfg.get("max_point_distance", 0.05)),
            min_cluster_size=int(density_cfg.get("min_cluster_size", 5)),
            n_jobs=int(density_cfg.get("n_jobs", 1)),
            chunk_size=int(density_cfg.get("chunk_size", 1024)),
        ),
        colors=ColorConfig(
            low=to_rgba(colors_cfg.get("low", color_defaults.low)),
            high=to_rgba(colors_cfg.get("high", color_defaults.high)),
            failed=to_rgba(colors_cfg.get("failed", color_defaults.failed)),
            point=to_rgba(colors_cfg.get("point", color_defaults.point)),
        ),
        point_size=float(cfg.get("point_size", 0.075)),
        trail=TrailConfig(
            draw=bool(trail_cfg.get("draw", False)),
            close_only=bool(trail_cfg.get("close_only", False)),
            max_segment_distance=float(trail_cfg.get("max_segment_distance", 1.0)),
            color=to_rgba(trail_cfg.get("color", trail_defaults.color)),
            width=float(trail_cfg.get("width", 0.02)),
            gap_policy=gap_policy,
        ),
        output=OutputConfig(
            save_plot=bool(output_cfg.get("save_plot", False)),
            dir=str(output_cfg.get("dir", "output")),
            figure_name=str(output_cfg.get("figure_name", "heatmap.png")),
        ),
    )
